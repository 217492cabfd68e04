#!/usr/bin/env python3
"""
Unit tests for configuration loading and console logging setup.
"""

import io
import logging
import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent))

from forksync.cli import ColorFormatter, GREEN, RED, RESET, setup_logging
from forksync.config import DEFAULT_COMMIT_MESSAGE, Config, load_configuration
from forksync.errors import ConfigError, ConflictError, NetworkError, SyncOutcome, error_handler


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults(self):
        config = Config(repo_dir=self.temp_dir)
        self.assertEqual(config.branch_prefix, "p")
        self.assertEqual(config.upstream_ref, "upstream/main")
        self.assertEqual(config.primary_branch, "main")
        self.assertEqual(config.commit_message, DEFAULT_COMMIT_MESSAGE)
        self.assertEqual(config.metadata_path, self.temp_dir.resolve() / "package.json")
        self.assertIsNone(config.patch_path)

    def test_invalid_log_level(self):
        with self.assertRaises(ValueError):
            Config(repo_dir=self.temp_dir, log_level="CHATTY")

    def test_empty_remote_rejected(self):
        with self.assertRaises(ValueError):
            Config(repo_dir=self.temp_dir, upstream_remote=" ")

    def test_load_from_environment(self):
        env = {
            "FORKSYNC_REPO_DIR": str(self.temp_dir),
            "FORKSYNC_BRANCH_PREFIX": "patched-",
            "FORKSYNC_UPSTREAM_BRANCH": "develop",
            "FORKSYNC_PATCH_FILE": "patches.json",
            "FORKSYNC_LOG_LEVEL": "debug",
            "FORKSYNC_NO_COLOR": "1",
        }
        with patch.dict(os.environ, env):
            config = load_configuration()

        self.assertEqual(config.repo_dir, self.temp_dir.resolve())
        self.assertEqual(config.branch_prefix, "patched-")
        self.assertEqual(config.upstream_ref, "upstream/develop")
        self.assertEqual(config.patch_path, self.temp_dir.resolve() / "patches.json")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertFalse(config.use_color)

    def test_load_reports_configuration_error(self):
        with patch.dict(os.environ, {"FORKSYNC_REPO_DIR": str(self.temp_dir), "FORKSYNC_COMMIT_MESSAGE": ""}):
            with self.assertRaises(ValueError) as ctx:
                load_configuration()
        self.assertIn("Configuration error", str(ctx.exception))


class TestErrorHandler(unittest.TestCase):

    def test_outcomes(self):
        cases = [
            (ConfigError("no remote", error_code="MISSING_REMOTE"), SyncOutcome.BLOCKED_MISSING_REMOTE),
            (ConfigError("no file", error_code="MISSING_TARGET_FILE"), SyncOutcome.BLOCKED_MISSING_TARGET_FILE),
            (ConfigError("bad metadata", error_code="METADATA_NO_VERSION"), SyncOutcome.BLOCKED_CONFIG),
            (NetworkError("offline"), SyncOutcome.BLOCKED_FETCH_FAILED),
            (ConflictError("conflict"), SyncOutcome.BLOCKED_MERGE_CONFLICT),
            (RuntimeError("boom"), SyncOutcome.BLOCKED_UNEXPECTED_ERROR),
        ]
        for error, outcome in cases:
            with self.subTest(error=error):
                self.assertEqual(error_handler.outcome_for(error), outcome)

    def test_diagnostic_includes_remedy(self):
        response = error_handler.handle_sync_error(
            ConflictError("Merge conflict detected", remedy="resolve conflicts manually")
        )
        self.assertEqual(response.diagnostic(), "Error: Merge conflict detected (resolve conflicts manually)")
        self.assertEqual(response.to_dict()["outcome"], "blocked_merge_conflict")

    def test_unexpected_error_response(self):
        response = error_handler.handle_sync_error(RuntimeError("boom"))
        self.assertEqual(response.error_code, "UNEXPECTED_ERROR")
        self.assertNotIn("remedy", response.to_dict())


class TestLogging(unittest.TestCase):

    def _record(self, level, msg, **extra):
        record = logging.LogRecord("forksync.test", level, __file__, 1, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_color_by_level(self):
        formatter = ColorFormatter('%(message)s', use_color=True)
        self.assertEqual(formatter.format(self._record(logging.ERROR, "bad")), f"{RED}bad{RESET}")
        self.assertEqual(formatter.format(self._record(logging.INFO, "good", highlight=True)), f"{GREEN}good{RESET}")
        self.assertEqual(formatter.format(self._record(logging.INFO, "plain")), "plain")

    def test_no_color(self):
        formatter = ColorFormatter('%(message)s', use_color=False)
        self.assertEqual(formatter.format(self._record(logging.ERROR, "bad")), "bad")

    def test_setup_logging_on_non_tty_has_no_color(self):
        stream = io.StringIO()
        setup_logging(Config(repo_dir=Path.cwd()), stream=stream)
        logging.getLogger('forksync.test').error("Merge conflict detected")
        self.assertEqual(stream.getvalue(), "Merge conflict detected\n")


if __name__ == "__main__":
    unittest.main(verbosity=2)
