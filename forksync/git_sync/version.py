"""Version lookup and target branch naming."""

import json
import logging
from pathlib import Path
from typing import Tuple

from ..config import Config
from ..errors import ConfigError


def read_version(metadata_path: Path) -> str:
    """
    Read the ``version`` field from a JSON project metadata document.

    The value is returned verbatim; no normalization is applied.

    Raises:
        ConfigError: if the document is missing, unparseable, or has no version
    """
    logger = logging.getLogger('forksync.git_sync.version')

    if not metadata_path.is_file():
        raise ConfigError(
            f"Project metadata not found: {metadata_path}",
            error_code="METADATA_NOT_FOUND",
            remedy="run from the repository root or set FORKSYNC_METADATA_FILE"
        )

    try:
        metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(
            f"Could not parse project metadata {metadata_path}: {e}",
            error_code="METADATA_UNPARSEABLE"
        ) from e

    version = metadata.get("version") if isinstance(metadata, dict) else None
    if not isinstance(version, str) or not version.strip():
        raise ConfigError(
            f"Project metadata {metadata_path} has no version field",
            error_code="METADATA_NO_VERSION"
        )

    logger.debug(f"Read version {version} from {metadata_path}")
    return version


def branch_name_for(version: str, prefix: str = "p") -> str:
    """Derive the sync branch name: the prefix followed by the exact version string."""
    return f"{prefix}{version}"


def resolve_target_branch(config: Config) -> Tuple[str, str]:
    """Return ``(version, branch_name)`` for the configured repository."""
    version = read_version(config.metadata_path)
    return version, branch_name_for(version, config.branch_prefix)
