"""Configuration management for forksync."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .platform import normalize_path


DEFAULT_UPSTREAM_URL = "https://github.com/LuanRT/YouTube.js.git"
DEFAULT_COMMIT_MESSAGE = "export on latest"


@dataclass
class Config:
    """Configuration for a sync-and-patch run with validation and defaults."""

    # Repository
    repo_dir: Path = field(default_factory=Path.cwd)
    metadata_file: Path = Path("package.json")

    # Branching
    branch_prefix: str = "p"
    upstream_remote: str = "upstream"
    upstream_url: str = DEFAULT_UPSTREAM_URL
    upstream_branch: str = "main"
    primary_branch: str = "main"

    # Patching
    patch_file: Optional[Path] = None
    commit_message: str = DEFAULT_COMMIT_MESSAGE

    # Logging
    log_level: str = "INFO"
    use_color: bool = True

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.repo_dir, str):
            self.repo_dir = Path(self.repo_dir)
        self.repo_dir = normalize_path(self.repo_dir)

        if isinstance(self.metadata_file, str):
            self.metadata_file = Path(self.metadata_file)
        if isinstance(self.patch_file, str):
            self.patch_file = Path(self.patch_file) if self.patch_file else None

        self.log_level = self.log_level.upper()
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")

        for name in ("branch_prefix", "upstream_remote", "upstream_branch", "primary_branch", "commit_message"):
            if not getattr(self, name).strip():
                raise ValueError(f"{name} must not be empty")

    @property
    def metadata_path(self) -> Path:
        """Project metadata document holding the version field."""
        return self.repo_dir / self.metadata_file

    @property
    def patch_path(self) -> Optional[Path]:
        """External patch descriptor file, if one is configured."""
        if self.patch_file is None:
            return None
        return self.repo_dir / self.patch_file

    @property
    def upstream_ref(self) -> str:
        """Remote-tracking ref the target branch is created from and merged with."""
        return f"{self.upstream_remote}/{self.upstream_branch}"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def load_configuration() -> Config:
    """Load configuration from environment variables (and a .env file) with sensible defaults."""
    load_dotenv(find_dotenv(usecwd=True))

    try:
        patch_file = os.getenv("FORKSYNC_PATCH_FILE")
        config = Config(
            repo_dir=Path(os.getenv("FORKSYNC_REPO_DIR", str(Path.cwd()))),
            metadata_file=Path(os.getenv("FORKSYNC_METADATA_FILE", "package.json")),
            branch_prefix=os.getenv("FORKSYNC_BRANCH_PREFIX", "p"),
            upstream_remote=os.getenv("FORKSYNC_UPSTREAM_REMOTE", "upstream"),
            upstream_url=os.getenv("FORKSYNC_UPSTREAM_URL", DEFAULT_UPSTREAM_URL),
            upstream_branch=os.getenv("FORKSYNC_UPSTREAM_BRANCH", "main"),
            primary_branch=os.getenv("FORKSYNC_PRIMARY_BRANCH", "main"),
            patch_file=Path(patch_file) if patch_file else None,
            commit_message=os.getenv("FORKSYNC_COMMIT_MESSAGE", DEFAULT_COMMIT_MESSAGE),
            log_level=os.getenv("FORKSYNC_LOG_LEVEL", "INFO"),
            use_color=not (_env_flag("FORKSYNC_NO_COLOR") or "NO_COLOR" in os.environ)
        )
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}")

    logging.getLogger('forksync.config').debug(f"Loaded configuration for {config.repo_dir}")
    return config
