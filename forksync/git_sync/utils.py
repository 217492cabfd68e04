"""Result types shared by the Git synchronization steps."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StepStatus(Enum):
    """How a best-effort step ended."""
    SUCCESS = "success"
    SKIPPED = "skipped"                            # nothing to do
    RECOVERABLE_CONFLICT = "recoverable_conflict"  # proceeded, operator follow-up needed


@dataclass
class GitSyncResult:
    """Result of a single Git synchronization step."""
    status: StepStatus
    message: str
    operation: str
    error_code: Optional[str] = None
    branch_used: Optional[str] = None

    @property
    def success(self) -> bool:
        """True when the step did its work or had nothing to do."""
        return self.status in (StepStatus.SUCCESS, StepStatus.SKIPPED)

    @property
    def needs_attention(self) -> bool:
        return self.status is StepStatus.RECOVERABLE_CONFLICT


def create_git_sync_result(
    status: StepStatus,
    message: str,
    operation: str,
    error_code: Optional[str] = None,
    branch_used: Optional[str] = None
) -> GitSyncResult:
    """
    Helper function to create GitSyncResult instances.

    Args:
        status: How the step ended
        message: Descriptive message about the step result
        operation: Name of the step that was performed
        error_code: Optional error code for steps that hit a conflict
        branch_used: Optional branch name the step operated on

    Returns:
        GitSyncResult instance with all fields populated
    """
    return GitSyncResult(
        status=status,
        message=message,
        operation=operation,
        error_code=error_code,
        branch_used=branch_used
    )
