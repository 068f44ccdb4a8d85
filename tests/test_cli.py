"""
CLI tests: argument parsing, configuration overrides and exit codes.
"""
import logging
import os
import signal
import sys
import textwrap
from unittest import mock

import pytest
from symdedup.cli import CLIApplication, EXIT_ERROR, EXIT_INTERRUPTED, EXIT_OK, main
from symdedup.commands import DeduplicationCommand
from symdedup.core.errors import RollbackError


@pytest.fixture(autouse=True)
def restore_process_state():
    """run() installs a SIGINT handler and reconfigures logging; undo both."""
    handler = signal.getsignal(signal.SIGINT)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    signal.signal(signal.SIGINT, handler)
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(temp_dir, test_files):
    path = temp_dir / "config.yaml"
    path.write_text(textwrap.dedent(f"""\
        dryRun: false
        deduplication: {temp_dir / 'store'}
        safeDelete: true
        trash: {temp_dir / 'trash'}
        replaceWithSymlink: true
        metadata: {temp_dir / 'meta.csv'}
        roots:
          - {temp_dir / 'root'}
    """), encoding="utf-8")
    return path


class TestArgumentParsing:
    """Test command-line options."""

    def test_defaults(self):
        args = CLIApplication.parse_args([])
        assert args.config == "config.yaml"
        assert not args.dry_run
        assert args.metadata is None
        assert args.workers is None

    def test_all_options(self):
        args = CLIApplication.parse_args(["my.yaml", "--dry-run", "--metadata", "m.csv", "-w", "3", "-v"])
        assert args.config == "my.yaml"
        assert args.dry_run
        assert args.metadata == "m.csv"
        assert args.workers == 3
        assert args.verbose

    def test_verbose_and_quiet_are_exclusive(self):
        with pytest.raises(SystemExit):
            CLIApplication.parse_args(["--verbose", "--quiet"])

    def test_overrides_are_applied(self, config_file, temp_dir):
        app = CLIApplication()
        args = app.parse_args([str(config_file), "--dry-run", "--metadata", str(temp_dir / "other.csv"), "-w", "2"])

        config = app.create_configuration(args)

        assert config.dry_run
        assert config.metadata == str(temp_dir / "other.csv")
        assert config.max_workers == 2

    def test_invalid_worker_override_exits(self, config_file):
        app = CLIApplication()
        with pytest.raises(SystemExit) as exc_info:
            app.create_configuration(app.parse_args([str(config_file), "-w", "0"]))
        assert exc_info.value.code == EXIT_ERROR


class TestRun:
    """Test exit codes and end-to-end behaviour of CLIApplication.run()."""

    def test_live_run_links_duplicates(self, config_file, test_files):
        assert CLIApplication().run([str(config_file), "-q"]) == EXIT_OK
        assert os.path.islink(test_files["dup1_a"])

    def test_dry_run_flag_overrides_config(self, config_file, test_files):
        assert CLIApplication().run([str(config_file), "--dry-run", "-v"]) == EXIT_OK
        assert not any(os.path.islink(p) for p in test_files.values())

    def test_missing_config_exits_with_error(self, temp_dir):
        with pytest.raises(SystemExit) as exc_info:
            CLIApplication().run([str(temp_dir / "missing.yaml")])
        assert exc_info.value.code == EXIT_ERROR

    def test_rollback_error_returns_error_code(self, config_file):
        with mock.patch.object(DeduplicationCommand, "execute", side_effect=RollbackError("/a", "/b")):
            assert CLIApplication().run([str(config_file), "-q"]) == EXIT_ERROR

    def test_interrupted_run_returns_130(self, config_file, test_files):
        app = CLIApplication()
        app.stop_event.set()

        assert app.run([str(config_file), "-q"]) == EXIT_INTERRUPTED
        assert not any(os.path.islink(p) for p in test_files.values())

    def test_second_interrupt_aborts(self):
        app = CLIApplication()
        app.handle_interrupt(signal.SIGINT, None)
        assert app.stop_event.is_set()

        with pytest.raises(KeyboardInterrupt):
            app.handle_interrupt(signal.SIGINT, None)


class TestMain:
    """Test the console entry point."""

    def test_keyboard_interrupt_exits_130(self):
        with mock.patch.object(CLIApplication, "run", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_INTERRUPTED

    def test_success_exits_0(self, config_file):
        with mock.patch.object(sys, "argv", ["symdedup", str(config_file), "-q"]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_OK

    def test_unexpected_error_exits_1(self, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        with mock.patch.object(CLIApplication, "run", side_effect=RuntimeError("boom")):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_ERROR
