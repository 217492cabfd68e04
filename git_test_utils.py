"""Throwaway upstream/fork repositories for the forksync tests."""

import json
import subprocess
from pathlib import Path

from forksync.platform import get_git_executable, get_platform_info


ANCHOR = "import type { IBrowseResponse, IParsedResponse } from './parser/index.js';"
YTNODE_IMPORT = "import { YTNode } from './parser/helpers.js';"

INNERTUBE_SOURCE = (
    "import Session from './core/Session.js';\n"
    f"{ANCHOR}\n"
    "import { HomeFeed, History } from './parser/youtube/index.js';\n"
    "\n"
    "export default class Innertube {\n"
    "  constructor(public session: Session) {}\n"
    "}\n"
)


def run_git(repo_dir: Path, *args: str) -> str:
    """Run a git command in ``repo_dir`` and return its stripped stdout."""
    result = subprocess.run(
        [get_git_executable(), *args],
        check=True,
        capture_output=True,
        text=True,
        cwd=repo_dir,
        shell=get_platform_info().is_windows
    )
    return result.stdout.strip()


def configure_identity(repo_dir: Path) -> None:
    run_git(repo_dir, "config", "user.name", "Test User")
    run_git(repo_dir, "config", "user.email", "test@example.com")
    run_git(repo_dir, "config", "commit.gpgsign", "false")


def commit_file(repo_dir: Path, relative_path: str, content: str, message: str) -> None:
    path = repo_dir / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    run_git(repo_dir, "add", relative_path)
    run_git(repo_dir, "commit", "-m", message)


def create_upstream(base_dir: Path, version: str = "16.0.1", innertube: str = INNERTUBE_SOURCE) -> Path:
    """Create the repository the fork tracks, with a single commit on ``main``."""
    upstream = base_dir / "upstream"
    upstream.mkdir(parents=True)
    run_git(upstream, "init")
    run_git(upstream, "symbolic-ref", "HEAD", "refs/heads/main")
    configure_identity(upstream)

    (upstream / "package.json").write_text(
        json.dumps({"name": "youtubei.js", "version": version}, indent=2) + "\n", encoding="utf-8"
    )
    (upstream / "README.md").write_text("YouTube.js\n", encoding="utf-8")
    if innertube is not None:
        (upstream / "src").mkdir()
        (upstream / "src" / "Innertube.ts").write_text(innertube, encoding="utf-8")
    run_git(upstream, "add", "-A")
    run_git(upstream, "commit", "-m", "Initial release")
    return upstream


def create_fork(base_dir: Path, upstream: Path, add_upstream_remote: bool = True) -> Path:
    """Clone ``upstream`` as the fork and point an ``upstream`` remote back at it."""
    fork = base_dir / "fork"
    run_git(base_dir, "clone", "--quiet", str(upstream), str(fork))
    configure_identity(fork)
    if add_upstream_remote:
        run_git(fork, "remote", "add", "upstream", str(upstream))
    return fork


def commit_count(repo_dir: Path, ref: str = "HEAD") -> int:
    return int(run_git(repo_dir, "rev-list", "--count", ref))


def stash_entries(repo_dir: Path) -> list:
    output = run_git(repo_dir, "stash", "list")
    return [line for line in output.splitlines() if line.strip()]
