"""Branch and remote helpers built on GitPython."""

import logging
from pathlib import Path
from typing import List, Optional

from git import Repo


def check_remote_configured(repo: Repo, remote_name: str) -> bool:
    """Check if a remote with the given name is configured."""
    return remote_name in [remote.name for remote in repo.remotes]


def check_local_branch_exists(repo: Repo, branch_name: str) -> bool:
    """Check if a branch exists in the local repository."""
    return branch_name in [head.name for head in repo.heads]


def get_current_local_branch(repo: Repo) -> Optional[str]:
    """Get the current local branch name, or None on a detached HEAD."""
    logger = logging.getLogger('forksync.git_sync.branch_utils')

    if repo.head.is_detached:
        logger.debug("HEAD is detached; no current branch")
        return None
    return repo.active_branch.name


def merge_in_progress(repo: Repo) -> bool:
    """Check whether a merge has been started but not concluded."""
    return (Path(repo.git_dir) / "MERGE_HEAD").exists()


def get_conflicted_files(repo: Repo) -> List[str]:
    """List paths with unresolved merge conflicts."""
    output = repo.git.diff('--name-only', '--diff-filter=U')
    return [line for line in output.splitlines() if line.strip()]
