"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Concurrent directory walk and hash prefetch.
Features:
- Walks every configured root in parallel, hashes new files in a shared worker pool
- Skips paths already present in the metadata cache (no re-stat of the content, no re-hash)
- Persists each new FileRecord to the metadata store and flushes after every root
- Counts extensions of filtered-out files for an advisory "consider these extensions" report
"""

import os
import threading
import time
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, Future, as_completed, wait
from typing import Callable, Dict, Iterable, List, Optional, Union

from symdedup.core.filters import PathFilter
from symdedup.core.hasher import HasherImpl, DEFAULT_FAST_DIGEST, DEFAULT_STRONG_DIGEST
from symdedup.core.interfaces import Hasher, MetadataStore
from symdedup.core.models import FileRecord, PrefetchStats
from symdedup.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)

_PENDING = object()  # placeholder for a path whose hash is being computed


class MetadataCache:
    """
    Thread-safe path-keyed overlay over the metadata store.

    Lives for one pipeline run. A path is claimed with reserve() before hashing so
    that the same file reached through two roots is appended only once.
    """

    def __init__(self, records: Iterable[FileRecord] = ()):
        self._lock = threading.Lock()
        self._entries: Dict[str, Union[FileRecord, object]] = {r.path: r for r in records}

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def reserve(self, path: str) -> bool:
        """Claim a path for hashing. False if it is already cached or claimed."""
        with self._lock:
            if path in self._entries:
                return False
            self._entries[path] = _PENDING
            return True

    def put(self, record: FileRecord) -> None:
        with self._lock:
            self._entries[record.path] = record

    def release(self, path: str) -> None:
        """Drop a claim whose hashing failed; cached records are never removed."""
        with self._lock:
            if self._entries.get(path) is _PENDING:
                del self._entries[path]


class PrefetchPipeline:
    """
    Populates the metadata store with records for every regular file under the roots.

    Attributes:
        store: Metadata store to load from and append to
        hasher: Multi-digest hasher
        path_filter: Only used for the extension report, never to skip hashing
        max_workers: Hash pool size (None lets ThreadPoolExecutor decide)
    """

    PROGRESS_INTERVAL = 1000  # files between progress callbacks

    def __init__(
        self,
        store: MetadataStore,
        hasher: Optional[Hasher] = None,
        path_filter: Optional[PathFilter] = None,
        max_workers: Optional[int] = None,
        fast_digest: str = DEFAULT_FAST_DIGEST,
        strong_digest: str = DEFAULT_STRONG_DIGEST,
    ):
        self.store = store
        self.hasher = hasher or HasherImpl()
        self.path_filter = path_filter or PathFilter()
        self.max_workers = max_workers
        self.fast_digest = fast_digest
        self.strong_digest = strong_digest

    def run(
        self,
        roots: List[str],
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> PrefetchStats:
        """
        Walk and hash all roots.
        Returns:
            PrefetchStats with visit/hash/skip/error counters and the extension table
        """
        stats = PrefetchStats()
        cache = MetadataCache(self.store.load_all())
        logger.info(f"Loaded {len(cache)} cached records")

        start_time = time.time()
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="hash") as hash_pool:
            with ThreadPoolExecutor(max_workers=max(1, len(roots)), thread_name_prefix="walk") as walk_pool:
                futures = [
                    walk_pool.submit(
                        self._prefetch_root, os.path.abspath(root), cache, hash_pool, stats,
                        stopped_flag, progress_callback
                    )
                    for root in roots
                ]
                for future in as_completed(futures):
                    future.result()

        logger.info(
            f"Prefetch finished in {time.time() - start_time:.2f}s: {stats.visited} visited, "
            f"{stats.hashed} hashed, {stats.skipped_cached} cached, {stats.errors} errors"
        )
        self.log_extension_hint(stats.extensions)
        return stats

    def _prefetch_root(
        self,
        root: str,
        cache: MetadataCache,
        hash_pool: ThreadPoolExecutor,
        stats: PrefetchStats,
        stopped_flag: Optional[Callable[[], bool]],
        progress_callback: Optional[Callable[[str, int, object], None]]
    ) -> None:
        if not os.path.isdir(root):
            logger.error(f"Root directory does not exist: {root}")
            return

        logger.info(f"Prefetching {root}")
        futures: List[Future] = []
        visited = 0
        stopped = False

        def on_walk_error(error: OSError) -> None:
            logger.error(f"Prefetch failed for {error.filename}: {error}")
            stats.increment("errors")

        # Symlinked directories are listed but not descended into
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_walk_error):
            for filename in filenames:
                if stopped_flag and stopped_flag():
                    stopped = True
                    break

                path = os.path.join(dirpath, filename)
                # Follows file symlinks: links created by an earlier run are walked normally
                if not os.path.isfile(path):
                    continue

                visited += 1
                stats.increment("visited")
                if not self.path_filter.accepts(path):
                    extension = ConvertUtils.get_extension(filename)
                    if extension:
                        stats.add_extension(extension)

                if not cache.reserve(path):
                    stats.increment("skipped_cached")
                    continue
                futures.append(hash_pool.submit(self._hash_and_store, path, cache, stats))

                if progress_callback and visited % self.PROGRESS_INTERVAL == 0:
                    progress_callback("prefetch", visited, None)
            if stopped:
                logger.info(f"Prefetch of {root} interrupted")
                break

        if stopped:
            for future in futures:
                future.cancel()
        wait(futures)
        for future in futures:
            if not future.cancelled() and future.exception():
                logger.error(f"Failed to store hash under {root}: {future.exception()!r}")
                stats.increment("errors")

        if progress_callback:
            progress_callback("prefetch", visited, None)
        self.store.flush()
        logger.debug(f"Prefetch of {root} complete ({visited} files visited)")

    def _hash_and_store(self, path: str, cache: MetadataCache, stats: PrefetchStats) -> Optional[FileRecord]:
        start_time = time.time()
        try:
            stat_result = os.stat(path)
            hashes = self.hasher.compute(path, (self.fast_digest, self.strong_digest))
        except OSError as e:
            logger.error(f"Failed to store hash for {path}: {e}")
            cache.release(path)
            stats.increment("errors")
            return None

        record = FileRecord(
            path=path,
            size=stat_result.st_size,
            last_modified=stat_result.st_mtime_ns // 1_000_000,
            digest_a=hashes[self.fast_digest],
            digest_b=hashes[self.strong_digest],
        )
        logger.debug(f"Hashed {path} in {time.time() - start_time:.3f}s")

        cache.put(record)
        self.store.append(record)
        stats.increment("hashed")
        return record

    @staticmethod
    def log_extension_hint(extensions: Counter) -> List[str]:
        """
        Log the most frequent extensions among filtered-out files.
        Returns:
            The extensions that were reported, most frequent first
        """
        if not extensions:
            return []

        counts = sorted(extensions.values(), reverse=True)
        cutoff = counts[min(10, len(counts) // 10)]
        hinted = [ext for ext, count in extensions.most_common() if count >= cutoff]

        logger.info("Please consider de-duplicating the following extensions:")
        for ext in hinted:
            logger.info(f"{ext} => {extensions[ext]}")
        return hinted
