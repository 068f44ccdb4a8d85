"""
Integration tests for DeduplicationCommand: prefetch followed by resolution on real files.
"""
import hashlib
import os
from pathlib import Path

import pytest
from symdedup import DeduplicationCommand, LinkState


def sha512_of(content: bytes) -> str:
    return hashlib.sha512(content).hexdigest()


class TestDeduplicationCommand:
    """Test the full workflow wired by the command."""

    def test_execute_consolidates_duplicates(self, test_files, make_config):
        config = make_config()
        with DeduplicationCommand(config) as command:
            prefetch_stats, resolution_stats = command.execute()

        assert prefetch_stats.hashed == len(test_files)
        # 'A' content: three .txt copies plus ignore.tmp; 'B' content: two copies
        assert resolution_stats.groups_processed == 2
        assert resolution_stats.states[LinkState.LINKED] == 6

        slot = os.path.join(config.deduplication, sha512_of(b"A" * 1024))
        assert Path(slot).read_bytes() == b"A" * 1024
        for key in ("dup1_a", "dup1_b", "dup1_c", "filtered"):
            assert os.readlink(test_files[key]) == slot
        for key in ("unique1", "unique2"):
            assert not os.path.islink(test_files[key])

    def test_newest_copy_becomes_the_slot(self, test_files, make_config):
        """dup1_c has the latest mtime, so its bytes (not a trashed copy) fill the slot."""
        config = make_config()
        inode = os.stat(test_files["dup1_c"]).st_ino

        with DeduplicationCommand(config) as command:
            command.execute()

        assert os.stat(os.path.join(config.deduplication, sha512_of(b"A" * 1024))).st_ino == inode

    def test_filters_limit_processing(self, test_files, make_config):
        config = make_config(inclusions=[r"\.txt$"])

        with DeduplicationCommand(config) as command:
            _, resolution_stats = command.execute()

        assert not os.path.islink(test_files["filtered"])
        assert resolution_stats.redundant_bytes == 2 * 1024 + 2048
        assert resolution_stats.additional_bytes == 1024

    def test_dry_run_only_writes_metadata(self, temp_dir, test_files, make_config):
        config = make_config(dry_run=True)
        contents = {key: path.read_bytes() for key, path in test_files.items()}

        with DeduplicationCommand(config) as command:
            _, resolution_stats = command.execute()

        assert {key: path.read_bytes() for key, path in test_files.items()} == contents
        assert not any(os.path.islink(p) for p in test_files.values())
        assert not (temp_dir / "store").exists()
        assert os.path.getsize(config.metadata) > 0
        assert resolution_stats.states[LinkState.PLANNED] == 6

    def test_second_run_is_incremental_and_idempotent(self, test_files, make_config):
        config = make_config()
        with DeduplicationCommand(config) as command:
            command.execute()

        with DeduplicationCommand(config) as command:
            prefetch_stats, resolution_stats = command.execute()

        assert prefetch_stats.hashed == 0
        assert prefetch_stats.skipped_cached == len(test_files)
        assert resolution_stats.states[LinkState.SKIPPED] == 6
        assert resolution_stats.states[LinkState.LINKED] == 0

    def test_stop_before_resolution(self, test_files, make_config):
        with DeduplicationCommand(make_config()) as command:
            prefetch_stats, resolution_stats = command.execute(stopped_flag=lambda: True)

        assert resolution_stats is None
        assert not any(os.path.islink(p) for p in test_files.values())

    def test_store_is_closed_on_exit(self, make_config):
        with DeduplicationCommand(make_config()) as command:
            pass
        assert command.store.closed

    def test_store_is_closed_when_execute_fails(self, make_config, monkeypatch):
        command = DeduplicationCommand(make_config())

        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(command.pipeline, "run", boom)
        with pytest.raises(RuntimeError):
            with command:
                command.execute()
        assert command.store.closed
