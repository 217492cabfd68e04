#!/usr/bin/env python3
"""
Unit tests for stashing and restoring uncommitted work around a sync.
"""

import re
import shutil
import sys
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from git import Repo

from forksync.git_sync.state import RepositoryStateGuard, make_stash_label
from forksync.git_sync.utils import StepStatus
from git_test_utils import commit_file, configure_identity, run_git, stash_entries


class TestRepositoryStateGuard(unittest.TestCase):
    """Test cases for RepositoryStateGuard.save() and restore()."""

    def setUp(self):
        print(f"\nSetting up test: {self._testMethodName}")
        self.temp_dir = Path(tempfile.mkdtemp())
        self.repo_dir = self.temp_dir / "repo"
        self.repo_dir.mkdir()
        run_git(self.repo_dir, "init")
        configure_identity(self.repo_dir)
        commit_file(self.repo_dir, "README.md", "original\n", "Initial")
        self.repo = Repo(self.repo_dir)
        self.guard = RepositoryStateGuard(self.repo)

    def tearDown(self):
        self.repo.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_label_contains_timestamp(self):
        label = make_stash_label(datetime(2026, 10, 18, 9, 5, 7))
        self.assertEqual(label, "Auto-stash before sync 2026-10-18_09-05-07")
        self.assertRegex(make_stash_label(), r"^Auto-stash before sync \d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}$")

    def test_restore_without_save_is_noop(self):
        result = self.guard.restore()
        self.assertEqual(result.status, StepStatus.SKIPPED)
        self.assertTrue(result.success)
        # Idempotent
        self.assertEqual(self.guard.restore().status, StepStatus.SKIPPED)
        print("  ✓ restore() without save() did nothing")

    def test_save_on_clean_tree_is_noop(self):
        result = self.guard.save()
        self.assertEqual(result.status, StepStatus.SKIPPED)
        self.assertIsNone(self.guard.label)
        self.assertEqual(stash_entries(self.repo_dir), [])
        self.assertEqual(self.guard.restore().status, StepStatus.SKIPPED)

    def test_save_and_restore_tracked_and_untracked(self):
        (self.repo_dir / "README.md").write_text("local edit\n", encoding="utf-8")
        (self.repo_dir / "scratch.txt").write_text("untracked\n", encoding="utf-8")

        saved = self.guard.save()
        self.assertEqual(saved.status, StepStatus.SUCCESS)
        self.assertEqual(run_git(self.repo_dir, "status", "--porcelain"), "")
        self.assertEqual(len(stash_entries(self.repo_dir)), 1)
        self.assertIn(self.guard.label, stash_entries(self.repo_dir)[0])

        restored = self.guard.restore()
        self.assertEqual(restored.status, StepStatus.SUCCESS)
        self.assertEqual((self.repo_dir / "README.md").read_text(encoding="utf-8"), "local edit\n")
        self.assertTrue((self.repo_dir / "scratch.txt").exists())
        self.assertEqual(stash_entries(self.repo_dir), [])

        # Consumed at most once
        self.assertEqual(self.guard.restore().status, StepStatus.SKIPPED)
        print("  ✓ Changes stashed and restored")

    def test_preexisting_stash_entries_are_left_alone(self):
        (self.repo_dir / "README.md").write_text("older work\n", encoding="utf-8")
        run_git(self.repo_dir, "stash", "push", "-m", "manual work")

        self.assertEqual(self.guard.restore().status, StepStatus.SKIPPED)
        self.assertEqual(len(stash_entries(self.repo_dir)), 1)

        (self.repo_dir / "README.md").write_text("newer work\n", encoding="utf-8")
        self.guard.save()
        self.assertEqual(len(stash_entries(self.repo_dir)), 2)

        self.guard.restore()
        entries = stash_entries(self.repo_dir)
        self.assertEqual(len(entries), 1)
        self.assertTrue(re.search(r"manual work$", entries[0]))
        self.assertEqual((self.repo_dir / "README.md").read_text(encoding="utf-8"), "newer work\n")

    def test_conflicting_restore_is_recoverable(self):
        (self.repo_dir / "README.md").write_text("local edit\n", encoding="utf-8")
        self.guard.save()
        commit_file(self.repo_dir, "README.md", "changed by sync\n", "Sync change")

        result = self.guard.restore()

        self.assertEqual(result.status, StepStatus.RECOVERABLE_CONFLICT)
        self.assertFalse(result.success)
        self.assertTrue(result.needs_attention)
        self.assertEqual(result.error_code, "STASH_POP_CONFLICT")
        # git keeps the entry when the pop does not apply cleanly
        self.assertEqual(len(stash_entries(self.repo_dir)), 1)
        print("  ✓ Conflict on restore reported, not raised")


if __name__ == "__main__":
    unittest.main(verbosity=2)
