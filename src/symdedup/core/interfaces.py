"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the deduplication system.
These protocols enforce structural typing using Python's `typing.Protocol` so that
components can be swapped for fakes in tests.

Key Components:
---------------
- Hasher: Single-pass multi-digest computation over a file.
- MetadataStore: Append-only, thread-safe journal of FileRecords.
- RecordGrouper: Groups records by strong digest and validates them.
"""

from typing import Protocol, List, Dict, Iterable, Optional, Callable
from symdedup.core.models import FileRecord, DuplicateGroup


class Hasher(Protocol):
    """Interface for hashing a whole file with several algorithms at once."""
    def compute(self, path: str, algorithms: Iterable[str]) -> Dict[str, str]: ...


class MetadataStore(Protocol):
    """
    Interface for the persistent metadata cache.

    Methods:
        append: Queue one record for the backing log (visible after the next flush).
        load_all: Flush and read every record; empty list means "no cache available".
        flush: Force buffered writes to durable storage.
        close: Release the underlying handle; safe to call more than once.
    """
    def append(self, record: FileRecord) -> None: ...

    def load_all(self) -> List[FileRecord]: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class RecordGrouper(Protocol):
    """
    Interface for grouping records into validated duplicate groups.
    """
    def group_by_strong_digest(self, records: Iterable[FileRecord]) -> Dict[str, List[FileRecord]]:
        """Group records by digest_b, keeping single-member groups."""
        ...

    def is_ready_for_processing(self, records: List[FileRecord], warn: bool = True) -> bool:
        """True for 2+ records whose fast digests agree."""
        ...

    def find_duplicate_groups(
        self,
        records: Iterable[FileRecord],
        warn: bool = True,
        on_collision: Optional[Callable[[List[FileRecord]], None]] = None
    ) -> List[DuplicateGroup]:
        """
        Build every processable duplicate group.

        Args:
            records: Records to group.
            warn: Log a warning for each hash collision.
            on_collision: Optional callback invoked with the members of each rejected group.

        Returns:
            Groups with 2+ members and matching fast digests.
        """
        ...
