"""
SymDedup: consolidate duplicate files into a content-addressed store.

Core features:
- Incremental metadata cache (append-only CSV) so unchanged paths are never re-hashed
- Two-digest identity: strong digest groups files, fast digest guards against collisions
- Prominent copy moved to <deduplication>/<digest> and replaced by a symlink
- Redundant copies soft-deleted to a trash directory, optionally symlinked and purged
- Rollback of every move whose symlink could not be created
- CLI interface driven by a YAML configuration file
"""

# Get version
try:
    from importlib.metadata import version as _version
    __version__ = _version("symdedup")
except Exception:
    try:
        import tomllib  # Python 3.11+
    except ImportError:
        import tomli as tomllib  # Python < 3.11: pip install tomli

    with open("pyproject.toml", "rb") as f:
        __version__ = tomllib.load(f)["project"]["version"]

# Public API: only what users should import directly
from symdedup.commands import DeduplicationCommand
from symdedup.core import (
    Configuration, FileRecord, DuplicateGroup, Relocation, LinkState,
    ConfigurationError, RollbackError, load_configuration)
from symdedup.utils.convert_utils import ConvertUtils
from symdedup.services.file_service import FileService

__all__ = [
    "DeduplicationCommand",
    "Configuration",
    "FileRecord",
    "DuplicateGroup",
    "Relocation",
    "LinkState",
    "ConfigurationError",
    "RollbackError",
    "load_configuration",
    "ConvertUtils",
    "FileService",
    "__version__",
]
