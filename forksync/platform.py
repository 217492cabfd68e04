"""Cross-platform helpers for locating git and normalizing paths."""

import platform
import subprocess
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class PlatformType(Enum):
    """Supported platform types."""
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    UNKNOWN = "unknown"


class PlatformInfo:
    """Platform information and utilities."""

    def __init__(self):
        """Initialize platform detection."""
        self._platform_type = self._detect_platform()

    def _detect_platform(self) -> PlatformType:
        """Detect the current platform."""
        system = platform.system().lower()

        if system == "windows":
            return PlatformType.WINDOWS
        elif system == "darwin":
            return PlatformType.MACOS
        elif system == "linux":
            return PlatformType.LINUX
        else:
            return PlatformType.UNKNOWN

    @property
    def platform_type(self) -> PlatformType:
        """Get the detected platform type."""
        return self._platform_type

    @property
    def is_windows(self) -> bool:
        """Check if running on Windows."""
        return self._platform_type == PlatformType.WINDOWS


_platform_info = None


def get_platform_info() -> PlatformInfo:
    """Get the global platform info instance."""
    global _platform_info
    if _platform_info is None:
        _platform_info = PlatformInfo()
    return _platform_info


def normalize_path(path: Union[str, Path]) -> Path:
    """Expand ``~`` and resolve a path to an absolute one."""
    if isinstance(path, str):
        path = Path(path)
    return path.expanduser().resolve()


def get_git_executable() -> str:
    """Get the Git executable name for the current platform."""
    if get_platform_info().is_windows:
        return "git.exe"
    return "git"


def validate_git_availability() -> tuple[bool, Optional[str]]:
    """
    Validate that Git is available on the current platform.

    Returns:
        Tuple of (is_available, error_message)
    """
    git_cmd = get_git_executable()

    try:
        result = subprocess.run(
            [git_cmd, "--version"],
            capture_output=True,
            text=True,
            timeout=10
        )
    except FileNotFoundError:
        return False, f"Git executable '{git_cmd}' not found"
    except subprocess.TimeoutExpired:
        return False, "Git command timed out"

    if result.returncode == 0:
        return True, None
    return False, f"Git command failed: {result.stderr}"
