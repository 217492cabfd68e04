"""
forksync - keep a downstream fork's patches alive across upstream releases.

Fetches the upstream repository, maintains a version-named branch, merges
upstream history into it and reapplies a fixed set of idempotent source
patches.
"""

__version__ = "1.0.0"
__description__ = "Sync a fork with upstream and reapply custom source patches"

from .cli import main

__all__ = ["main"]
