"""
Unified command orchestrator for deduplication.
Constructs and wires every component explicitly (no framework) and owns the
metadata store's lifecycle, so any exit path closes it.
"""
import logging
from typing import Callable, Optional, Tuple

from symdedup.core.filters import PathFilter
from symdedup.core.grouper import RecordGrouperImpl
from symdedup.core.hasher import HasherImpl
from symdedup.core.models import Configuration, PrefetchStats, ResolutionStats
from symdedup.core.resolver import DuplicateResolver
from symdedup.core.scanner import PrefetchPipeline
from symdedup.core.store import CsvMetadataStore
from symdedup.services.file_service import FileService

logger = logging.getLogger(__name__)


class DeduplicationCommand:
    """
    Orchestrates the entire deduplication workflow:
    1. Open the metadata store
    2. Prefetch: walk roots, hash new files, append them to the store
    3. Resolve: reload the full store, group and consolidate duplicates
    4. Close the store

    Usage:
        config = load_configuration("config.yaml")
        with DeduplicationCommand(config) as command:
            prefetch_stats, resolution_stats = command.execute(stopped_flag=event.is_set)
    """

    def __init__(self, config: Configuration, file_service: Optional[FileService] = None):
        self.config = config
        self.store = CsvMetadataStore(config.metadata)
        self.path_filter = PathFilter(config.inclusions, config.exclusions)
        self.pipeline = PrefetchPipeline(
            store=self.store,
            hasher=HasherImpl(config.read_buffer_size),
            path_filter=self.path_filter,
            max_workers=config.max_workers,
            fast_digest=config.fast_digest,
            strong_digest=config.strong_digest,
        )
        self.resolver = DuplicateResolver(
            config,
            path_filter=self.path_filter,
            grouper=RecordGrouperImpl(),
            file_service=file_service or FileService(),
            max_workers=config.max_workers,
        )

    def execute(
            self,
            stopped_flag: Optional[Callable[[], bool]] = None,
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> Tuple[PrefetchStats, Optional[ResolutionStats]]:
        """
        Run prefetch then resolution.

        Returns:
            Tuple of (prefetch statistics, resolution statistics or None if stopped early)

        Raises:
            RollbackError: A prominent file could not be restored after a failed link
        """
        if self.config.dry_run:
            logger.info("Dry run: no files will be moved, linked or deleted")

        prefetch_stats = self.pipeline.run(
            self.config.roots,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback
        )
        if stopped_flag and stopped_flag():
            return prefetch_stats, None

        records = self.store.load_all()
        if not records:
            logger.warning(f"No cached metadata available in {self.store.path}")
        resolution_stats = self.resolver.run(
            records,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback
        )
        return prefetch_stats, resolution_stats

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "DeduplicationCommand":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
