#!/usr/bin/env python3
"""Test runner for the forksync test modules."""

import sys
import subprocess
from pathlib import Path


def run_test(test_file: str, description: str) -> bool:
    """Run a single test file and return success status."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"File: {test_file}")
    print('='*60)

    result = subprocess.run([sys.executable, test_file], cwd=Path(__file__).parent)

    success = result.returncode == 0
    print(f"\n{'PASSED' if success else 'FAILED'}: {description}")
    return success


def main():
    """Run every forksync test module."""
    print("forksync Test Suite")
    print("="*60)

    tests = [
        ("test_config.py", "Configuration, Errors and Logging"),
        ("test_version_resolver.py", "Version Lookup and Branch Naming"),
        ("test_repository_state_guard.py", "Stash Save and Restore"),
        ("test_branch_synchronizer.py", "Upstream Branch Synchronization"),
        ("test_patch_applier.py", "Idempotent Patch Application"),
        ("test_end_to_end_sync.py", "End-to-End Sync and Patch"),
    ]

    results = []
    for test_file, description in tests:
        if (Path(__file__).parent / test_file).exists():
            success = run_test(test_file, description)
            results.append((test_file, description, success))
        else:
            print(f"Test file not found: {test_file}")
            results.append((test_file, description, False))

    print(f"\n{'='*60}")
    print("TEST SUITE SUMMARY")
    print("="*60)

    passed = 0
    for test_file, description, success in results:
        status = "PASS" if success else "FAIL"
        print(f"{status} {description}")
        if success:
            passed += 1

    print(f"\nResults: {passed}/{len(results)} tests passed")
    return passed == len(results)


if __name__ == "__main__":
    try:
        success = main()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nTest suite interrupted by user")
        sys.exit(1)
