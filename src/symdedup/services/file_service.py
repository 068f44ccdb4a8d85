"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Filesystem primitives used by the duplicate resolver.
Each operation logs its outcome and reports success as a boolean instead of raising,
so callers can drive rollback decisions from the return value.
"""
import os
import shutil
import logging

logger = logging.getLogger(__name__)


class FileService:
    """Move / remove / symlink operations with logging."""

    @staticmethod
    def exists(path: str) -> bool:
        """True if the path exists (a dangling symlink counts as existing)."""
        return os.path.lexists(path)

    @staticmethod
    def is_symlink(path: str) -> bool:
        return os.path.islink(path)

    @staticmethod
    def ensure_directory(path: str) -> None:
        os.makedirs(path, exist_ok=True)

    @staticmethod
    def move(source: str, target: str) -> bool:
        """
        Move a file, refusing to overwrite an existing target.
        Falls back to copy + delete across filesystems.
        """
        try:
            if os.path.lexists(target):
                raise FileExistsError(f"Target already exists: {target}")
            shutil.move(source, target)
            logger.info(f"Moved {source} to {target}")
            return True
        except OSError as e:
            logger.error(f"Failed to move {source} to {target}: {e}")
            return False

    @staticmethod
    def remove(path: str) -> bool:
        """Permanently delete a file; a missing file is not an error."""
        try:
            os.remove(path)
            logger.info(f"Deleted {path}")
            return True
        except FileNotFoundError:
            logger.info(f"Deleted {path} (already absent)")
            return True
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            return False

    @staticmethod
    def create_symlink(link: str, target: str) -> bool:
        """Create a symbolic link at `link` pointing to `target`."""
        try:
            os.symlink(target, link)
            logger.info(f"Created symbolic link {link} to {target}")
            return True
        except OSError as e:
            logger.error(f"Failed to create symbolic link {link} to {target}: {e}")
            return False
