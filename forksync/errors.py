"""Error handling framework for forksync runs."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


class ErrorCategory(Enum):
    """Categories of errors for structured error handling."""
    CONFIGURATION = "configuration"
    NETWORK = "network"
    MERGE_CONFLICT = "merge_conflict"
    FILE_IO = "file_io"
    SYSTEM = "system"


class SyncOutcome(Enum):
    """Terminal state of a sync-and-patch run."""
    COMPLETED = "completed"
    BLOCKED_MISSING_REMOTE = "blocked_missing_remote"
    BLOCKED_FETCH_FAILED = "blocked_fetch_failed"
    BLOCKED_MERGE_CONFLICT = "blocked_merge_conflict"
    BLOCKED_MISSING_TARGET_FILE = "blocked_missing_target_file"
    BLOCKED_CONFIG = "blocked_config"
    BLOCKED_UNEXPECTED_ERROR = "blocked_unexpected_error"


class ForkSyncError(Exception):
    """
    Base class for fatal sync errors.

    Every fatal error carries an error code, which selects the run outcome,
    and an optional remedy printed to the operator.
    """

    category = ErrorCategory.SYSTEM
    default_code = "UNEXPECTED_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, remedy: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.remedy = remedy


class ConfigError(ForkSyncError):
    """Missing remote, bad metadata or missing patch target."""
    category = ErrorCategory.CONFIGURATION
    default_code = "CONFIG_ERROR"


class NetworkError(ForkSyncError):
    """Fetching from the upstream remote failed."""
    category = ErrorCategory.NETWORK
    default_code = "FETCH_FAILED"


class ConflictError(ForkSyncError):
    """A merge (or checkout) could not complete without manual resolution."""
    category = ErrorCategory.MERGE_CONFLICT
    default_code = "MERGE_CONFLICT"


_OUTCOME_BY_CODE = {
    "MISSING_REMOTE": SyncOutcome.BLOCKED_MISSING_REMOTE,
    "FETCH_FAILED": SyncOutcome.BLOCKED_FETCH_FAILED,
    "MERGE_CONFLICT": SyncOutcome.BLOCKED_MERGE_CONFLICT,
    "CHECKOUT_FAILED": SyncOutcome.BLOCKED_MERGE_CONFLICT,
    "MISSING_TARGET_FILE": SyncOutcome.BLOCKED_MISSING_TARGET_FILE,
}


@dataclass
class ErrorResponse:
    """Standardized diagnostic for a failed run."""
    error: str
    error_code: str
    message: str
    timestamp: str
    category: str
    outcome: SyncOutcome
    remedy: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error response to dictionary format."""
        result = {
            "error": self.error,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp,
            "category": self.category,
            "outcome": self.outcome.value
        }
        if self.remedy:
            result["remedy"] = self.remedy
        return result

    def diagnostic(self) -> str:
        """Single-line diagnostic written to the error stream."""
        if self.remedy:
            return f"Error: {self.message} ({self.remedy})"
        return f"Error: {self.message}"


class ErrorHandler:
    """Maps exceptions raised during a run onto outcomes and diagnostics."""

    def __init__(self):
        self.logger = logging.getLogger('forksync.error_handler')

    def outcome_for(self, error: Exception) -> SyncOutcome:
        if isinstance(error, ForkSyncError):
            if error.error_code in _OUTCOME_BY_CODE:
                return _OUTCOME_BY_CODE[error.error_code]
            if isinstance(error, ConfigError):
                return SyncOutcome.BLOCKED_CONFIG
            if isinstance(error, NetworkError):
                return SyncOutcome.BLOCKED_FETCH_FAILED
            if isinstance(error, ConflictError):
                return SyncOutcome.BLOCKED_MERGE_CONFLICT
        return SyncOutcome.BLOCKED_UNEXPECTED_ERROR

    def handle_sync_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle a fatal error raised by any sync step."""
        context = context or {}
        outcome = self.outcome_for(error)

        if isinstance(error, ForkSyncError):
            error_response = ErrorResponse(
                error="Sync and patch failed",
                error_code=error.error_code,
                message=error.message,
                timestamp=datetime.now().isoformat(),
                category=error.category.value,
                outcome=outcome,
                remedy=error.remedy
            )
        elif isinstance(error, OSError):
            error_response = ErrorResponse(
                error="File operation failed",
                error_code="FILE_IO_ERROR",
                message=f"File system error: {str(error)}",
                timestamp=datetime.now().isoformat(),
                category=ErrorCategory.FILE_IO.value,
                outcome=outcome
            )
        else:
            error_response = ErrorResponse(
                error="Unexpected error",
                error_code="UNEXPECTED_ERROR",
                message=f"Unexpected error: {str(error)}",
                timestamp=datetime.now().isoformat(),
                category=ErrorCategory.SYSTEM.value,
                outcome=outcome
            )

        self.logger.debug(
            f"Sync error: {error_response.message}",
            extra={
                'operation': context.get('state', 'sync_error'),
                'error_code': error_response.error_code
            }
        )

        return error_response


# Initialize global error handler
error_handler = ErrorHandler()
