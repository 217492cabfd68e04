"""Patch descriptors: what to insert where, and how to tell it is already there."""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConfigError


@dataclass(frozen=True)
class PatchDescriptor:
    """
    A single idempotent text patch against one source file.

    ``marker`` is the substring whose presence means the patch is already
    applied. ``import_line`` is inserted on the line after ``anchor_line``
    when missing; ``append_text`` is appended to the end of the file.
    """
    name: str
    target_path: str
    marker: str
    append_text: str
    import_line: Optional[str] = None
    anchor_line: Optional[str] = None

    def __post_init__(self):
        if not self.target_path:
            raise ValueError(f"Patch '{self.name}' has no target_path")
        if not self.marker:
            raise ValueError(f"Patch '{self.name}' has no marker")
        if self.marker not in self.append_text:
            # Otherwise the patch could never be detected as applied
            raise ValueError(f"Patch '{self.name}' append_text does not contain its marker")
        if bool(self.import_line) != bool(self.anchor_line):
            raise ValueError(f"Patch '{self.name}' needs both import_line and anchor_line, or neither")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchDescriptor":
        return cls(
            name=data.get("name") or data.get("target_path", ""),
            target_path=data.get("target_path", ""),
            marker=data.get("marker", ""),
            append_text=data.get("append_text", ""),
            import_line=data.get("import_line"),
            anchor_line=data.get("anchor_line")
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


INNERTUBE_EXPORTS = PatchDescriptor(
    name="innertube-exports",
    target_path="src/Innertube.ts",
    marker="export const Patch",
    import_line="import { YTNode } from './parser/helpers.js';",
    anchor_line="import type { IBrowseResponse, IParsedResponse } from './parser/index.js';",
    append_text=(
        "\n"
        "export const Patch = {\n"
        "  HomeFeed,\n"
        "  History,\n"
        "  YTNode\n"
        "}\n"
        "\n"
        "export type P_YTNode = YTNode;\n"
    )
)

DEFAULT_PATCHES = (INNERTUBE_EXPORTS,)


def load_patch_descriptors(patch_path: Optional[Path]) -> List[PatchDescriptor]:
    """
    Load patch descriptors from a JSON file, or return the built-in defaults.

    The file holds either a list of descriptor objects or an object with a
    ``patches`` list.
    """
    logger = logging.getLogger('forksync.patching')

    if patch_path is None:
        return list(DEFAULT_PATCHES)

    if not patch_path.is_file():
        raise ConfigError(
            f"Patch descriptor file not found: {patch_path}",
            error_code="PATCH_FILE_NOT_FOUND",
            remedy="fix FORKSYNC_PATCH_FILE or unset it to use the built-in patch"
        )

    try:
        data = json.loads(patch_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not parse patch descriptor file {patch_path}: {e}") from e

    entries = data.get("patches") if isinstance(data, dict) else data
    if not isinstance(entries, list) or not entries:
        raise ConfigError(f"Patch descriptor file {patch_path} defines no patches")

    descriptors = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid patch entry in {patch_path}: {entry!r}")
        try:
            descriptors.append(PatchDescriptor.from_dict(entry))
        except ValueError as e:
            raise ConfigError(f"Invalid patch entry in {patch_path}: {e}") from e

    logger.debug(f"Loaded {len(descriptors)} patch descriptor(s) from {patch_path}")
    return descriptors
