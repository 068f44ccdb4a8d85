"""
Shared fixtures for symdedup tests.
Creates isolated temporary directories with controlled test files and configurations.
"""
import os
import pytest
import tempfile
from pathlib import Path
from typing import Dict
import sys

# Add src/ to sys.path so the 'symdedup' package is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from symdedup.core.models import Configuration, FileRecord  # noqa: E402


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def set_mtime(path: Path, seconds: int) -> None:
    os.utime(path, (seconds, seconds))


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files under temp_dir/root:
    - 3 identical files (1KB of 'A'), newest is dup1_c in a subdirectory
    - 2 identical files (2KB of 'B')
    - 2 unique files (different content)
    - 1 .tmp file with the same content as the 'A' set
    """
    root = temp_dir / "root"
    root.mkdir()
    subdir = root / "subdir"
    subdir.mkdir()
    files = {}

    content_a = b"A" * 1024
    files["dup1_a"] = root / "dup1_a.txt"
    files["dup1_b"] = root / "dup1_b.txt"
    files["dup1_c"] = subdir / "dup1_c.txt"
    for i, key in enumerate(("dup1_a", "dup1_b", "dup1_c")):
        files[key].write_bytes(content_a)
        set_mtime(files[key], 1_600_000_000 + i * 100)

    content_b = b"B" * 2048
    files["dup2_a"] = root / "dup2_a.txt"
    files["dup2_b"] = root / "dup2_b.txt"
    for i, key in enumerate(("dup2_a", "dup2_b")):
        files[key].write_bytes(content_b)
        set_mtime(files[key], 1_600_000_000 + i * 100)

    files["unique1"] = root / "unique1.txt"
    files["unique1"].write_bytes(b"C" * 1500)
    files["unique2"] = root / "unique2.txt"
    files["unique2"].write_bytes(b"D" * 2500)

    files["filtered"] = root / "ignore.tmp"
    files["filtered"].write_bytes(content_a)
    set_mtime(files["filtered"], 1_500_000_000)

    return files


@pytest.fixture
def make_record():
    """Factory for FileRecords with sensible defaults."""
    def _make(path, size=10, last_modified=0, digest_a="aa", digest_b="bb"):
        return FileRecord(path=str(path), size=size, last_modified=last_modified,
                          digest_a=digest_a, digest_b=digest_b)
    return _make


@pytest.fixture
def make_config(temp_dir):
    """Factory for Configurations rooted in temp_dir; keyword arguments override defaults."""
    def _make(**overrides):
        values = dict(
            dry_run=False,
            deduplication=str(temp_dir / "store"),
            safe_delete=True,
            trash=str(temp_dir / "trash"),
            replace_with_symlink=True,
            roots=[str(temp_dir / "root")],
            metadata=str(temp_dir / "meta" / "file-deduplicator.csv"),
        )
        values.update(overrides)
        return Configuration(**values)
    return _make
