"""Idempotent application of text patches and the commit that records them."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from git import Repo

from ..errors import ConfigError
from .descriptor import PatchDescriptor


@dataclass
class PatchResult:
    """What happened to one descriptor's target file."""
    descriptor: PatchDescriptor
    applied: bool = False
    already_applied: bool = False
    import_inserted: bool = False


def insert_after_anchor(content: str, anchor_line: str, new_line: str) -> Tuple[str, bool]:
    """
    Insert ``new_line`` on the line after the first line equal to ``anchor_line``.

    Returns the (possibly unchanged) content and whether the anchor was found.
    """
    lines = content.splitlines(keepends=True)
    for index, line in enumerate(lines):
        stripped = line.rstrip("\r\n")
        if stripped != anchor_line:
            continue
        ending = line[len(stripped):]
        if not ending:
            # Anchor is the final line with no terminator
            lines[index] = line + "\n"
            ending = "\n"
        lines.insert(index + 1, new_line + ending)
        return "".join(lines), True
    return content, False


def apply_patch_text(content: str, descriptor: PatchDescriptor) -> Tuple[str, bool]:
    """
    Apply one descriptor to file content held in memory.

    Content that already carries the marker is returned unchanged. Returns
    the new content and whether the import line was inserted.
    """
    if descriptor.marker in content:
        return content, False

    import_inserted = False
    if descriptor.import_line and descriptor.import_line not in content:
        content, import_inserted = insert_after_anchor(content, descriptor.anchor_line, descriptor.import_line)

    return content + descriptor.append_text, import_inserted


class PatchApplier:
    """Applies patch descriptors to files in a repository and commits the result."""

    def __init__(self, repo: Repo, descriptors: Sequence[PatchDescriptor], commit_message: str):
        self.repo = repo
        self.repo_dir = Path(repo.working_tree_dir)
        self.descriptors = list(descriptors)
        self.commit_message = commit_message
        self.logger = logging.getLogger('forksync.patching')

    def target_for(self, descriptor: PatchDescriptor) -> Path:
        """Path of the descriptor's target file; raises if it does not exist."""
        target = self.repo_dir / descriptor.target_path
        if not target.is_file():
            raise ConfigError(
                f"{descriptor.target_path} not found",
                error_code="MISSING_TARGET_FILE",
                remedy="the upstream layout may have changed; update the patch descriptor"
            )
        return target

    def apply(self, descriptor: PatchDescriptor) -> PatchResult:
        target = self.target_for(descriptor)

        with open(target, encoding="utf-8", newline="") as f:
            content = f.read()

        result = PatchResult(descriptor=descriptor)
        if descriptor.marker in content:
            self.logger.warning(f"Patches already applied to {descriptor.target_path}")
            result.already_applied = True
            return result

        self.logger.info(f"Applying patches to {descriptor.target_path}...", extra={'operation': descriptor.name})
        patched, result.import_inserted = apply_patch_text(content, descriptor)
        if result.import_inserted:
            self.logger.info(f"  Added import: {descriptor.import_line}")
        elif descriptor.import_line and descriptor.import_line not in content:
            self.logger.warning(f"  Anchor line not found in {descriptor.target_path}; import not added")

        with open(target, "w", encoding="utf-8", newline="") as f:
            f.write(patched)

        self.logger.info("  Added custom exports")
        result.applied = True
        return result

    def changed_paths(self, results: Sequence[PatchResult]) -> List[str]:
        """Target paths with uncommitted changes, in descriptor order."""
        paths = []
        for result in results:
            path = result.descriptor.target_path
            if path not in paths and self.repo.git.status('--porcelain', '--', path):
                paths.append(path)
        return paths

    def commit(self, results: Sequence[PatchResult]) -> Optional[str]:
        """Stage exactly the patched files and commit them; returns the new commit sha, if any."""
        paths = self.changed_paths(results)
        if not paths:
            self.logger.info("No changes to commit")
            return None

        self.logger.info("Committing patches...", extra={'operation': 'commit'})
        self.repo.index.add(paths)
        commit = self.repo.index.commit(self.commit_message)
        self.logger.info("Patches committed", extra={'highlight': True})
        return commit.hexsha

    def apply_all(self) -> Tuple[List[PatchResult], Optional[str]]:
        """Apply every descriptor, then commit whatever changed."""
        self.logger.info("Applying custom patches...")
        # Every target must exist before the first write so a failure leaves the tree untouched
        for descriptor in self.descriptors:
            self.target_for(descriptor)
        results = [self.apply(descriptor) for descriptor in self.descriptors]
        if any(result.applied for result in results):
            self.logger.info("Patches applied successfully", extra={'highlight': True})
        return results, self.commit(results)
