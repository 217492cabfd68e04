"""Snapshot and restore of uncommitted work around a sync run."""

import logging
from datetime import datetime
from typing import Optional

from git import Repo, GitCommandError

from ..errors import ForkSyncError
from .utils import GitSyncResult, StepStatus, create_git_sync_result


STASH_LABEL_PREFIX = "Auto-stash before sync"


def make_stash_label(now: Optional[datetime] = None) -> str:
    """Build the stash message, e.g. ``Auto-stash before sync 2026-10-18_09-30-00``."""
    now = now or datetime.now()
    return f"{STASH_LABEL_PREFIX} {now.strftime('%Y-%m-%d_%H-%M-%S')}"


class RepositoryStateGuard:
    """
    Stashes uncommitted modifications before the sync and pops them afterwards.

    At most one stash entry is created per guard, and only that entry is
    ever restored; stash entries that existed before the run are left alone.
    """

    def __init__(self, repo: Repo):
        self.repo = repo
        self.logger = logging.getLogger('forksync.git_sync.state')
        self._label: Optional[str] = None
        self._consumed = False

    @property
    def label(self) -> Optional[str]:
        """Label of the stash entry created by :meth:`save`, if any."""
        return self._label

    @property
    def has_snapshot(self) -> bool:
        return self._label is not None and not self._consumed

    def _find_stash_ref(self, label: str) -> Optional[str]:
        # Newest first, one "stash@{n} <reflog subject>" per line
        listing = self.repo.git.stash('list', '--format=%gd %gs')
        for line in listing.splitlines():
            ref, _, subject = line.partition(' ')
            if subject.endswith(label):
                return ref
        return None

    def save(self) -> GitSyncResult:
        """Stash tracked and untracked modifications under a timestamped label."""
        if self._label is not None:
            return create_git_sync_result(
                StepStatus.SKIPPED, "Uncommitted changes already stashed for this run", "stash_save"
            )

        if not self.repo.is_dirty(untracked_files=True):
            self.logger.info("No uncommitted changes to stash")
            return create_git_sync_result(StepStatus.SKIPPED, "Nothing to stash", "stash_save")

        label = make_stash_label()
        self.logger.info("Stashing uncommitted changes...", extra={'operation': 'stash_save'})
        try:
            self.repo.git.stash('push', '-u', '-m', label)
        except GitCommandError as e:
            raise ForkSyncError(
                f"Could not stash uncommitted changes: {e.stderr.strip() if e.stderr else e}",
                error_code="STASH_FAILED",
                remedy="commit or discard local changes and run again"
            ) from e

        if self._find_stash_ref(label) is None:
            # git had nothing it was willing to stash
            self.logger.info("No uncommitted changes were stashed")
            return create_git_sync_result(StepStatus.SKIPPED, "Nothing to stash", "stash_save")

        self._label = label
        return create_git_sync_result(StepStatus.SUCCESS, f"Stashed changes as '{label}'", "stash_save")

    def restore(self) -> GitSyncResult:
        """
        Pop the stash entry created by :meth:`save`.

        Without a prior successful save this is a no-op. A failed pop is
        reported as a recoverable conflict; the entry stays in the stash list
        for the operator to resolve.
        """
        if not self.has_snapshot:
            return create_git_sync_result(StepStatus.SKIPPED, "No stashed changes to restore", "stash_restore")

        self._consumed = True
        ref = self._find_stash_ref(self._label)
        if ref is None:
            self.logger.warning(f"Stash entry '{self._label}' is no longer in the stash list")
            return create_git_sync_result(
                StepStatus.SKIPPED, f"Stash entry '{self._label}' not found", "stash_restore"
            )

        self.logger.info("Restoring stashed changes...", extra={'operation': 'stash_restore'})
        try:
            self.repo.git.stash('pop', ref)
        except GitCommandError as e:
            self.logger.warning("Conflicts when restoring stashed changes. Please resolve manually.")
            self.logger.debug(f"git stash pop failed: {e}")
            return create_git_sync_result(
                StepStatus.RECOVERABLE_CONFLICT,
                f"Conflicts when restoring '{self._label}'; resolve manually and drop the stash entry",
                "stash_restore",
                error_code="STASH_POP_CONFLICT"
            )

        self.logger.info("Stashed changes restored", extra={'highlight': True})
        return create_git_sync_result(StepStatus.SUCCESS, "Stashed changes restored", "stash_restore")
