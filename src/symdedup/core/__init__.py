"""
Core deduplication engine.

This package contains the performance-critical foundation of symdedup:
- HasherImpl: single-pass streaming computation of several digests (hashlib + xxHash)
- CsvMetadataStore: append-only, read/write-locked CSV journal of FileRecords
- PrefetchPipeline + MetadataCache: concurrent walk of the roots, hashing only new paths
- RecordGrouperImpl: strong-digest grouping with fast-digest collision checks
- DuplicateResolver: move/link/trash/rollback state machine per duplicate group
- Models: FileRecord, DuplicateGroup, Relocation, LinkState, Configuration and stats

All components are pure Python with no UI dependencies.
"""

from .errors import DeduplicationError, ConfigurationError, RollbackError
from .hasher import HasherImpl, DEFAULT_FAST_DIGEST, DEFAULT_STRONG_DIGEST
from .models import (
    FileRecord, DuplicateGroup, Relocation, LinkState, Configuration,
    PrefetchStats, ResolutionStats)
from .filters import PathFilter
from .store import CsvMetadataStore, ReadWriteLock
from .scanner import PrefetchPipeline, MetadataCache
from .grouper import RecordGrouperImpl
from .resolver import DuplicateResolver
from .config import load_configuration, parse_configuration

__all__ = [
    "DeduplicationError",
    "ConfigurationError",
    "RollbackError",
    "HasherImpl",
    "DEFAULT_FAST_DIGEST",
    "DEFAULT_STRONG_DIGEST",
    "FileRecord",
    "DuplicateGroup",
    "Relocation",
    "LinkState",
    "Configuration",
    "PrefetchStats",
    "ResolutionStats",
    "PathFilter",
    "CsvMetadataStore",
    "ReadWriteLock",
    "PrefetchPipeline",
    "MetadataCache",
    "RecordGrouperImpl",
    "DuplicateResolver",
    "load_configuration",
    "parse_configuration",
]
