"""Sequencing of a full sync-and-patch run."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from git import Repo, InvalidGitRepositoryError, NoSuchPathError

from .config import Config
from .errors import ConfigError, ErrorResponse, SyncOutcome, error_handler
from .git_sync.branch_utils import get_current_local_branch, merge_in_progress
from .git_sync.state import RepositoryStateGuard
from .git_sync.synchronizer import BranchSynchronizer
from .git_sync.utils import GitSyncResult, StepStatus
from .git_sync.version import resolve_target_branch
from .patching.applier import PatchApplier, PatchResult
from .patching.descriptor import load_patch_descriptors


class SyncState(Enum):
    """Progress of a run; ``BLOCKED`` is the terminal state for every fatal error."""
    START = "start"
    REMOTE_CHECKED = "remote_checked"
    FETCHED = "fetched"
    BRANCH_READY = "branch_ready"
    OPTIONAL_MERGE_ATTEMPTED = "optional_merge_attempted"
    UPSTREAM_MERGED = "upstream_merged"
    PATCHED = "patched"
    COMMITTED = "committed"
    RESTORED = "restored"
    DONE = "done"
    BLOCKED = "blocked"


@dataclass
class SyncReport:
    """Everything a caller needs to know about a finished run."""
    outcome: SyncOutcome = SyncOutcome.BLOCKED_UNEXPECTED_ERROR
    state: SyncState = SyncState.START
    version: Optional[str] = None
    branch: Optional[str] = None
    starting_branch: Optional[str] = None
    upstream_ref: Optional[str] = None
    steps: List[GitSyncResult] = field(default_factory=list)
    patches: List[PatchResult] = field(default_factory=list)
    commit: Optional[str] = None
    actions: List[str] = field(default_factory=list)
    error: Optional[ErrorResponse] = None
    blocked_at: Optional[SyncState] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is SyncOutcome.COMPLETED

    @property
    def warnings(self) -> List[GitSyncResult]:
        return [step for step in self.steps if step.needs_attention]


def exit_code_for(outcome: SyncOutcome) -> int:
    """0 for a completed run (including an already-patched tree), 1 otherwise."""
    return 0 if outcome is SyncOutcome.COMPLETED else 1


def open_repository(config: Config) -> Repo:
    try:
        return Repo(config.repo_dir)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise ConfigError(
            f"{config.repo_dir} is not a git repository",
            error_code="NOT_A_REPOSITORY",
            remedy="run from the root of the fork's working tree"
        ) from e


class ProcessOrchestrator:
    """
    Runs version lookup, stash, branch sync, patching and restore in order.

    Fatal errors stop the run immediately and are turned into a blocked
    outcome with a diagnostic. Uncommitted work stashed by the run is put
    back on every exit path except an unfinished merge, where popping the
    stash would land on a conflicted tree.
    """

    def __init__(self, config: Config, repo: Optional[Repo] = None):
        self.config = config
        self.repo = repo
        self.logger = logging.getLogger('forksync.orchestrator')
        self.report = SyncReport(upstream_ref=config.upstream_ref)
        self.guard: Optional[RepositoryStateGuard] = None

    def _advance(self, state: SyncState) -> None:
        self.logger.debug(f"{self.report.state.value} -> {state.value}")
        self.report.state = state

    def _record(self, result: GitSyncResult, action: Optional[str] = None) -> GitSyncResult:
        self.report.steps.append(result)
        if result.status is StepStatus.SUCCESS:
            self.report.actions.append(action or result.message)
        elif result.needs_attention:
            self.report.actions.append(f"Needs attention: {result.message}")
        return result

    def run(self) -> SyncReport:
        self.logger.info("Starting sync and patch process...", extra={'highlight': True})
        try:
            self._run_steps()
        except Exception as e:
            self._fail(e)
        return self.report

    def _run_steps(self) -> None:
        report = self.report
        report.version, report.branch = resolve_target_branch(self.config)
        self.logger.info(f"Package version: {report.version}")
        self.logger.info(f"Target branch: {report.branch}")

        if self.repo is None:
            self.repo = open_repository(self.config)
        report.starting_branch = get_current_local_branch(self.repo)
        self.logger.info(f"Current branch: {report.starting_branch or '(detached HEAD)'}")

        # Descriptors are loaded up front so a bad patch file stops the run before any git work
        descriptors = load_patch_descriptors(self.config.patch_path)

        synchronizer = BranchSynchronizer(self.repo, self.config)
        synchronizer.ensure_upstream_remote()
        self._advance(SyncState.REMOTE_CHECKED)

        self.guard = RepositoryStateGuard(self.repo)
        self._record(self.guard.save())

        self._record(synchronizer.fetch_upstream(), f"Fetched latest from {self.config.upstream_remote}")
        self._advance(SyncState.FETCHED)

        self._record(synchronizer.prepare_branch(report.branch))
        self._advance(SyncState.BRANCH_READY)

        self._record(synchronizer.merge_starting_branch(report.starting_branch, report.branch))
        self._advance(SyncState.OPTIONAL_MERGE_ATTEMPTED)

        self._record(synchronizer.merge_upstream(report.branch))
        self._advance(SyncState.UPSTREAM_MERGED)

        applier = PatchApplier(self.repo, descriptors, self.config.commit_message)
        report.patches, report.commit = applier.apply_all()
        self._advance(SyncState.PATCHED)
        for result in report.patches:
            if result.applied:
                report.actions.append(f"Applied custom patches to {result.descriptor.target_path}")
            elif result.already_applied:
                report.actions.append(f"Patches already present in {result.descriptor.target_path}")
        if report.commit:
            report.actions.append(f"Committed patches ({report.commit[:8]}): {self.config.commit_message}")
        self._advance(SyncState.COMMITTED)

        self._record(self.guard.restore())
        self._advance(SyncState.RESTORED)

        report.outcome = SyncOutcome.COMPLETED
        self._advance(SyncState.DONE)
        self.logger.info("Sync and patch process completed!", extra={'highlight': True})

    def _fail(self, error: Exception) -> None:
        report = self.report
        report.blocked_at = report.state
        report.error = error_handler.handle_sync_error(error, {'state': report.state.value})
        report.outcome = report.error.outcome
        self._advance(SyncState.BLOCKED)

        if report.outcome is SyncOutcome.BLOCKED_UNEXPECTED_ERROR:
            self.logger.debug("Unexpected error during sync", exc_info=error)
        # Critical so the diagnostic is written at every configured log level
        self.logger.critical(report.error.diagnostic())

        if self.guard is None or not self.guard.has_snapshot:
            return
        if merge_in_progress(self.repo):
            self.logger.warning(
                f"Your uncommitted changes are kept in the stash as '{self.guard.label}'; "
                "run 'git stash pop' after the merge is concluded"
            )
            return
        self._record(self.guard.restore())


def format_summary(report: SyncReport) -> str:
    """Human-readable summary printed after a completed run."""
    lines = [
        "",
        "Summary:",
        f"  - Version: {report.version}",
        f"  - Branch: {report.branch}",
    ]
    lines.extend(f"  - {action}" for action in report.actions)
    lines.extend([
        "",
        f"To push changes to origin, run: git push origin {report.branch}"
    ])
    return "\n".join(lines)
