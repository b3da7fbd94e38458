from __future__ import annotations

from .normalize import is_canonical, normalize_entry, normalize_list, source_entries, synthetic_id
from .types import LIVE_MODELS_KEY, ProfileRef, empty_profile_document

__all__ = [
    "LIVE_MODELS_KEY",
    "ProfileRef",
    "empty_profile_document",
    "is_canonical",
    "normalize_entry",
    "normalize_list",
    "source_entries",
    "synthetic_id",
]
