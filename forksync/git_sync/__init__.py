"""Git synchronization functionality for forksync."""

from .utils import GitSyncResult, StepStatus, create_git_sync_result
from .version import read_version, branch_name_for, resolve_target_branch
from .state import RepositoryStateGuard
from .synchronizer import BranchSynchronizer

__all__ = [
    'GitSyncResult',
    'StepStatus',
    'create_git_sync_result',
    'read_version',
    'branch_name_for',
    'resolve_target_branch',
    'RepositoryStateGuard',
    'BranchSynchronizer'
]
