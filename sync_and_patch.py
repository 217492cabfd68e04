#!/usr/bin/env python3
"""
Sync a fork with its upstream repository and reapply custom patches.

Run from the root of the fork's working tree. Takes no arguments;
configuration comes from FORKSYNC_* environment variables or a .env file.
"""

from forksync.cli import run


if __name__ == "__main__":
    run()
