"""Upstream fetch, branch preparation and merges for the sync target branch."""

import logging
from typing import List, Optional

from git import Repo, GitCommandError

from ..config import Config
from ..errors import ConfigError, ConflictError, NetworkError
from .branch_utils import (
    check_local_branch_exists,
    check_remote_configured,
    get_conflicted_files,
    merge_in_progress,
)
from .utils import GitSyncResult, StepStatus, create_git_sync_result


def _stderr(error: GitCommandError) -> str:
    return error.stderr.strip() if error.stderr else str(error)


class BranchSynchronizer:
    """
    Brings the version branch up to date with the upstream integration branch.

    Steps run in order: remote check, fetch, branch preparation, optional
    merge of the branch the run started on, upstream merge. The remote check,
    fetch and upstream merge are fatal on failure; the starting-branch merge
    is best effort.
    """

    def __init__(self, repo: Repo, config: Config):
        self.repo = repo
        self.config = config
        self.logger = logging.getLogger('forksync.git_sync.synchronizer')

    def ensure_upstream_remote(self) -> GitSyncResult:
        remote = self.config.upstream_remote
        if not check_remote_configured(self.repo, remote):
            raise ConfigError(
                f"'{remote}' remote not configured",
                error_code="MISSING_REMOTE",
                remedy=f"add it with: git remote add {remote} {self.config.upstream_url}"
            )
        return create_git_sync_result(StepStatus.SUCCESS, f"Remote '{remote}' is configured", "check_remote")

    def fetch_upstream(self) -> GitSyncResult:
        remote = self.config.upstream_remote
        self.logger.info(f"Fetching from {remote}...", extra={'operation': 'fetch'})
        try:
            self.repo.remote(remote).fetch()
        except GitCommandError as e:
            raise NetworkError(
                f"Fetch from '{remote}' failed: {_stderr(e)}",
                remedy="check network access and the remote URL, then run again"
            ) from e
        return create_git_sync_result(StepStatus.SUCCESS, f"Fetched latest from {remote}", "fetch")

    def prepare_branch(self, branch: str) -> GitSyncResult:
        """Switch to the target branch, creating it from the upstream ref if it does not exist."""
        try:
            if check_local_branch_exists(self.repo, branch):
                self.logger.info(f"Branch {branch} already exists, switching to it...")
                self.repo.git.checkout(branch)
                message = f"Switched to existing branch {branch}"
            else:
                self.logger.info(f"Creating new branch {branch} from {self.config.upstream_ref}...")
                self.repo.git.checkout('-b', branch, self.config.upstream_ref)
                message = f"Created branch {branch} from {self.config.upstream_ref}"
        except GitCommandError as e:
            raise ConflictError(
                f"Could not switch to branch {branch}: {_stderr(e)}",
                error_code="CHECKOUT_FAILED",
                remedy="clean up the working tree and run again"
            ) from e
        return create_git_sync_result(StepStatus.SUCCESS, message, "prepare_branch", branch_used=branch)

    def merge_starting_branch(self, starting_branch: Optional[str], branch: str) -> GitSyncResult:
        """
        Merge the branch the run started on into the target branch.

        Only attempted when the starting branch is neither the target nor the
        primary branch. A failed merge is aborted so the upstream merge starts
        from a clean tree.
        """
        if not starting_branch or starting_branch in (branch, self.config.primary_branch):
            return create_git_sync_result(
                StepStatus.SKIPPED, "No starting branch to merge", "merge_starting_branch", branch_used=branch
            )

        self.logger.warning(f"You were on branch: {starting_branch}")
        self.logger.info(f"Merging changes from {starting_branch} into {branch}...")
        try:
            self.repo.git.merge(starting_branch, '--no-edit')
        except GitCommandError as e:
            self.logger.debug(f"Merge of {starting_branch} failed: {_stderr(e)}")
            if merge_in_progress(self.repo):
                self.repo.git.merge('--abort')
            self.logger.warning(f"Could not merge from {starting_branch}, continuing...")
            return create_git_sync_result(
                StepStatus.RECOVERABLE_CONFLICT,
                f"Could not merge {starting_branch} into {branch}; merge was aborted",
                "merge_starting_branch",
                error_code="STARTING_BRANCH_MERGE_FAILED",
                branch_used=branch
            )

        self.logger.info(f"Merge from {starting_branch} successful", extra={'highlight': True})
        return create_git_sync_result(
            StepStatus.SUCCESS, f"Merged {starting_branch} into {branch}", "merge_starting_branch", branch_used=branch
        )

    def merge_upstream(self, branch: str) -> GitSyncResult:
        upstream_ref = self.config.upstream_ref
        self.logger.info(f"Merging {upstream_ref} into {branch}...", extra={'operation': 'merge_upstream'})
        try:
            self.repo.git.merge(upstream_ref, '--no-edit')
        except GitCommandError as e:
            conflicted = get_conflicted_files(self.repo)
            if conflicted:
                self.logger.debug(f"Conflicted files: {conflicted}")
                raise ConflictError(
                    f"Merge conflict detected while merging {upstream_ref} into {branch}",
                    remedy="resolve conflicts manually, then run: git merge --continue"
                ) from e
            raise ConflictError(
                f"Merging {upstream_ref} into {branch} failed: {_stderr(e)}",
                remedy=f"no merge was started; fix the cause and run: git merge {upstream_ref}"
            ) from e

        self.logger.info("Merge successful", extra={'highlight': True})
        return create_git_sync_result(
            StepStatus.SUCCESS, f"Merged {upstream_ref} into {branch}", "merge_upstream", branch_used=branch
        )

    def synchronize(self, branch: str, starting_branch: Optional[str]) -> List[GitSyncResult]:
        """Run every step in order; fatal steps raise, best-effort steps report."""
        return [
            self.ensure_upstream_remote(),
            self.fetch_upstream(),
            self.prepare_branch(branch),
            self.merge_starting_branch(starting_branch, branch),
            self.merge_upstream(branch),
        ]
