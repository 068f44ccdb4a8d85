"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/resolver.py
Duplicate resolution: consolidate each duplicate group into the content-addressed store.

STATE MACHINE (per group, strictly in this order)
-------------------------------------------------
1. Select prominent : most recently modified member (DuplicateGroup ordering)
2. Stage prominent  : move to <deduplication>/<digest_b>, symlink the original path to it.
                      Link failure -> move back (ROLLED_BACK); move-back failure is fatal.
3. Each redundant   : move to <trash>/<flattened path> (soft delete), then optionally
                      symlink to the slot and purge the trashed copy unless safe-delete is on.
                      Link failure -> move the trashed copy back.

Every step yields a Relocation carrying an explicit LinkState. Dry-run logs the
plan and touches nothing.
Groups are independent and are resolved concurrently; counters live in ResolutionStats.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional

from symdedup.core.errors import RollbackError
from symdedup.core.filters import PathFilter
from symdedup.core.grouper import RecordGrouperImpl
from symdedup.core.interfaces import RecordGrouper
from symdedup.core.models import (
    Configuration, DuplicateGroup, FileRecord, LinkState, Relocation, ResolutionStats
)
from symdedup.services.file_service import FileService
from symdedup.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)


class DuplicateResolver:
    """
    Groups records by content and resolves every processable group.

    Attributes:
        config: Run configuration (dry-run, store/trash roots, delete/link flags)
        path_filter: Inclusion/exclusion predicate applied before grouping
        grouper: Builds validated duplicate groups
        file_service: Filesystem primitives (move, remove, symlink)
        max_workers: Group pool size (None lets ThreadPoolExecutor decide)
    """

    def __init__(
        self,
        config: Configuration,
        path_filter: Optional[PathFilter] = None,
        grouper: Optional[RecordGrouper] = None,
        file_service: Optional[FileService] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config
        self.path_filter = path_filter or PathFilter(config.inclusions, config.exclusions)
        self.grouper = grouper or RecordGrouperImpl()
        self.file_service = file_service or FileService()
        self.max_workers = max_workers or config.max_workers

    def run(
        self,
        records: List[FileRecord],
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> ResolutionStats:
        """
        Resolve all duplicate groups among the filtered records and report totals.

        Raises:
            RollbackError: A prominent file could not be restored after a failed link
        """
        stats = ResolutionStats()
        filtered = [r for r in records if self.path_filter.accepts(r.path)]
        groups = self.grouper.find_duplicate_groups(
            filtered, on_collision=lambda members: stats.add_collision()
        )
        stats.add_redundant_bytes(self.grouper.redundant_bytes(groups))
        logger.info(f"{len(groups)} duplicate groups among {len(filtered)} of {len(records)} records")

        if groups and not self.config.dry_run:
            self._prepare_directories()

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="resolve") as pool:
            futures = [pool.submit(self._process_group, group, stats, stopped_flag) for group in groups]
            try:
                for done, future in enumerate(as_completed(futures), 1):
                    future.result()
                    if progress_callback:
                        progress_callback("resolve", done, len(futures))
            except RollbackError:
                for future in futures:
                    future.cancel()
                raise

        # Unfiltered totals, for the "additional data" hint
        all_groups = self.grouper.find_duplicate_groups(records, warn=False)
        stats.total_redundant_bytes = self.grouper.redundant_bytes(all_groups)

        logger.info(f"{ConvertUtils.bytes_to_human(stats.redundant_bytes)} of redundant data detected")
        if stats.additional_bytes > 0:
            logger.info(
                f"An additional {ConvertUtils.bytes_to_human(stats.additional_bytes)} "
                f"of data may be deduplicated by processing all files."
            )
        return stats

    def _prepare_directories(self) -> None:
        for directory in (self.config.deduplication, self.config.trash):
            try:
                self.file_service.ensure_directory(directory)
            except OSError as e:
                logger.error(f"Could not create {directory}: {e}")

    def _process_group(
        self,
        group: DuplicateGroup,
        stats: ResolutionStats,
        stopped_flag: Optional[Callable[[], bool]]
    ) -> None:
        if stopped_flag and stopped_flag():
            return
        stats.record(self.resolve_group(group))

    def resolve_group(self, group: DuplicateGroup) -> List[Relocation]:
        """
        Run the prominent-then-redundant sequence for one group.
        Returns:
            One Relocation per member, prominent first
        """
        target = self.slot_path(group.digest)
        relocations = [self._stage_prominent(group.prominent.path, target)]

        # Redundant copies are only ever replaced by links to an occupied slot
        if not self.config.dry_run and not self.file_service.exists(target):
            logger.warning(f"{target} is not in place, leaving {len(group.redundant)} copies of "
                           f"{group.prominent.name} untouched")
            relocations.extend(
                Relocation(r.path, self.trash_path(r.path), LinkState.SKIPPED) for r in group.redundant
            )
            return relocations

        for record in group.redundant:
            relocations.append(self._resolve_redundant(record.path, target))
        return relocations

    def slot_path(self, digest: str) -> str:
        return os.path.join(self.config.deduplication, digest)

    def trash_path(self, path: str) -> str:
        return os.path.join(self.config.trash, self.trash_name(path))

    @staticmethod
    def trash_name(path: str) -> str:
        """Flatten an absolute path into one file name: /a/b.txt -> _a_b.txt"""
        name = os.path.abspath(path).replace(os.sep, "_")
        if os.altsep:
            name = name.replace(os.altsep, "_")
        return name

    def _stage_prominent(self, path: str, target: str) -> Relocation:
        fs = self.file_service

        if self.config.dry_run:
            logger.info(f"The prominent {path} will be moved to {target} and a symbolic link created")
            return Relocation(path, target, LinkState.PLANNED)

        if not fs.exists(path) or fs.is_symlink(path) or fs.exists(target):
            logger.info(f"{path} already moved to {target}")
            return Relocation(path, target, LinkState.SKIPPED)

        if not fs.move(path, target):
            return Relocation(path, target, LinkState.FAILED)
        relocation = Relocation(path, target, LinkState.STAGED)

        if fs.create_symlink(path, target):
            relocation.state = LinkState.LINKED
        elif fs.move(target, path):
            relocation.state = LinkState.ROLLED_BACK
            logger.warning(f"Rolled back {target} to {path}")
        else:
            relocation.state = LinkState.ROLLBACK_FAILED
            logger.critical(f"Rollback failed! {path} now only exists as {target}")
            raise RollbackError(path, target)
        return relocation

    def _resolve_redundant(self, path: str, target: str) -> Relocation:
        fs = self.file_service
        trash = self.trash_path(path)

        # the slot itself shows up as a record when the store lives under a root
        if os.path.abspath(path) == target or not fs.exists(path) or fs.is_symlink(path):
            logger.info(f"{path} already pointed at {target}")
            return Relocation(path, trash, LinkState.SKIPPED)

        if self.config.dry_run:
            self._log_dry_run(path, trash, target)
            return Relocation(path, trash, LinkState.PLANNED)

        # soft-delete
        if not fs.move(path, trash):
            return Relocation(path, trash, LinkState.FAILED)
        relocation = Relocation(path, trash, LinkState.STAGED)

        if not self.config.replace_with_symlink:
            return relocation

        if fs.create_symlink(path, target):
            relocation.state = LinkState.LINKED
            if not self.config.safe_delete:
                relocation.purged = fs.remove(trash)
        elif fs.move(trash, path):
            relocation.state = LinkState.ROLLED_BACK
            logger.warning(f"Rolled back {trash} to {path}")
        else:
            relocation.state = LinkState.ROLLBACK_FAILED
            logger.error(f"Rollback failed! {path} remains in trash as {trash}")
        return relocation

    def _log_dry_run(self, path: str, trash: str, target: str) -> None:
        if not self.config.replace_with_symlink:
            message = f"{path} will be moved to {trash}"
        elif self.config.safe_delete:
            message = f"{path} will be moved to {trash} and symlinked to {target}"
        else:
            message = f"{path} will be permanently deleted and symlinked to {target}"
        logger.info(message)
