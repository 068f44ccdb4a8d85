"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models and domain logic for metadata caching and duplicate resolution.
"""

from dataclasses import dataclass, field
from collections import Counter
from typing import List, Dict, Optional
import os
import re
import threading
from enum import Enum

from symdedup.core.errors import ConfigurationError
from symdedup.core.hasher import HasherImpl, DEFAULT_BUFFER_SIZE, DEFAULT_FAST_DIGEST, DEFAULT_STRONG_DIGEST
from symdedup.utils.convert_utils import ConvertUtils

DEFAULT_METADATA_FILE = "file-deduplicator.csv"


# =============================
# Enums
# =============================

class LinkState(Enum):
    """
    Outcome of a single move/link operation on one file.

    A live operation walks STAGED → LINKED, or STAGED → ROLLED_BACK when the link
    cannot be created and the file is moved back to where it came from.
    """
    PLANNED = "planned"                  # dry run, nothing touched
    SKIPPED = "skipped"                  # already consolidated or gone
    FAILED = "failed"                    # first move failed, file untouched
    STAGED = "staged"                    # moved, no link requested
    LINKED = "linked"                    # moved and replaced by a symlink
    ROLLED_BACK = "rolled-back"          # link failed, file moved back
    ROLLBACK_FAILED = "rollback-failed"  # link failed and so did the move back

    @property
    def display_name(self) -> str:
        """Human-readable name for summaries."""
        return self.value.replace("-", " ").capitalize()

    def __repr__(self) -> str:
        return self.value


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class FileRecord:
    """
    One observed regular file, as persisted in the metadata log.

    The record stays authoritative for its path until the path disappears from the
    log; size and mtime drift after hashing are not detected.
    """
    path: str
    size: int  # in bytes
    last_modified: int  # epoch millis
    digest_a: str  # fast digest (md5 by default)
    digest_b: str  # strong digest (sha512 by default)

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def __repr__(self):
        return f"<FileRecord path={self.path}, size={self.size}>"


@dataclass
class DuplicateGroup:
    """
    Records sharing the same strong digest (and, once validated, the same fast digest).
    Members are kept ordered by last_modified descending, so the first one is prominent.
    """
    digest: str
    records: List[FileRecord]

    def __post_init__(self):
        # sorted() is stable: equal timestamps keep their input order
        self.records = sorted(self.records, key=lambda r: r.last_modified, reverse=True)

    @property
    def prominent(self) -> FileRecord:
        """The most recently modified member; this copy moves into the store."""
        return self.records[0]

    @property
    def redundant(self) -> List[FileRecord]:
        return self.records[1:]

    @property
    def total_size(self) -> int:
        return sum(r.size for r in self.records)

    @property
    def redundant_size(self) -> int:
        """Bytes that consolidation would free: everything except the prominent copy."""
        return self.total_size - self.prominent.size

    def is_duplicate(self) -> bool:
        """True if this group contains at least two files."""
        return len(self.records) >= 2

    def __repr__(self):
        return f"<DuplicateGroup digest={self.digest[:12]}, count={len(self.records)}>"


@dataclass
class Relocation:
    """A single move (and optional symlink) of one file, with its resulting state."""
    source: str
    destination: str
    state: LinkState
    purged: bool = False  # trashed copy permanently removed after linking

    def __repr__(self):
        return f"<Relocation {self.source} -> {self.destination} [{self.state.value}]>"


@dataclass
class PrefetchStats:
    """Counters collected while walking roots and hashing new files."""
    visited: int = 0
    hashed: int = 0
    skipped_cached: int = 0
    errors: int = 0
    extensions: Counter = field(default_factory=Counter)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def add_extension(self, extension: str) -> None:
        with self._lock:
            self.extensions[extension] += 1


class ResolutionStats:
    """
    Statistics collected while resolving duplicate groups.
    Shared between worker threads; every mutation goes through the lock.
    """
    def __init__(self):
        self.groups_processed: int = 0
        self.collisions: int = 0
        self.redundant_bytes: int = 0
        self.total_redundant_bytes: int = 0
        self.states: Dict[LinkState, int] = {state: 0 for state in LinkState}
        self._lock = threading.Lock()

    def add_collision(self) -> None:
        with self._lock:
            self.collisions += 1

    def add_redundant_bytes(self, amount: int) -> None:
        with self._lock:
            self.redundant_bytes += amount

    def record(self, relocations: List[Relocation]) -> None:
        with self._lock:
            self.groups_processed += 1
            for relocation in relocations:
                self.states[relocation.state] += 1

    @property
    def additional_bytes(self) -> int:
        """Redundant bytes hidden by the inclusion/exclusion filters."""
        return self.total_redundant_bytes - self.redundant_bytes

    def print_summary(self) -> str:
        lines = [
            "Deduplication Statistics:",
            f"Groups processed: {self.groups_processed}",
            f"Hash collisions: {self.collisions}",
            f"Redundant data: {ConvertUtils.bytes_to_human(self.redundant_bytes)}",
        ]
        for state, count in self.states.items():
            if count > 0:
                lines.append(f"{state.display_name}: {count}")
        return "\n".join(lines)


# =============================
# Configuration
# =============================

@dataclass
class Configuration:
    """
    Validated run configuration.
    Interface-agnostic: built by the YAML loader, overridden by the CLI.
    """
    dry_run: bool
    deduplication: str
    safe_delete: bool
    trash: str
    replace_with_symlink: bool
    roots: List[str]
    inclusions: List[str] = field(default_factory=list)
    exclusions: List[str] = field(default_factory=list)
    metadata: str = DEFAULT_METADATA_FILE
    max_workers: Optional[int] = None
    read_buffer_size: int = DEFAULT_BUFFER_SIZE
    fast_digest: str = DEFAULT_FAST_DIGEST
    strong_digest: str = DEFAULT_STRONG_DIGEST

    def __post_init__(self):
        """Validate and normalize immediately after creation."""
        if not self.deduplication:
            raise ConfigurationError("Deduplication directory cannot be empty")
        if not self.trash:
            raise ConfigurationError("Trash directory cannot be empty")
        if not self.roots:
            raise ConfigurationError("At least one root directory is required")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.read_buffer_size < 1:
            raise ConfigurationError("read_buffer_size must be positive")

        self.fast_digest = self.fast_digest.lower()
        self.strong_digest = self.strong_digest.lower()
        for algorithm in (self.fast_digest, self.strong_digest):
            if not HasherImpl.is_supported(algorithm):
                raise ConfigurationError(f"Unknown digest algorithm: '{algorithm}'")

        for pattern in [*self.inclusions, *self.exclusions]:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigurationError(f"Invalid pattern '{pattern}': {e}") from e

        # Symlink targets must be absolute, otherwise they resolve against the link's directory
        self.deduplication = os.path.abspath(os.path.expanduser(self.deduplication))
        self.trash = os.path.abspath(os.path.expanduser(self.trash))
        self.metadata = os.path.abspath(os.path.expanduser(self.metadata))
        self.roots = [os.path.abspath(os.path.expanduser(root)) for root in self.roots]
