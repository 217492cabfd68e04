"""Source patching for forksync."""

from .descriptor import PatchDescriptor, DEFAULT_PATCHES, INNERTUBE_EXPORTS, load_patch_descriptors
from .applier import PatchApplier, PatchResult, apply_patch_text, insert_after_anchor

__all__ = [
    'PatchDescriptor',
    'DEFAULT_PATCHES',
    'INNERTUBE_EXPORTS',
    'load_patch_descriptors',
    'PatchApplier',
    'PatchResult',
    'apply_patch_text',
    'insert_after_anchor'
]
