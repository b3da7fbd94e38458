from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Keys whose joint presence marks an entry as already canonical.
CANONICAL_MARKER_KEYS = ("id", "index", "displayName")

# Profile documents keep their entries under one of these keys, first present wins.
LIST_KEYS = ("customModels", "custom_models")

LIVE_MODELS_KEY = "customModels"

SYNTHETIC_ID_PREFIX = "custom:"

DEFAULT_DISPLAY_NAME = "Unknown"
DEFAULT_PROVIDER = "anthropic"
DEFAULT_MAX_OUTPUT_TOKENS = 8192

PROFILE_SUFFIX = ".json"


def empty_profile_document() -> dict[str, Any]:
    return {LIVE_MODELS_KEY: []}


@dataclass(frozen=True, slots=True)
class ProfileRef:
    name: str
    path: Path

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": str(self.path)}

    @staticmethod
    def for_path(path: Path) -> "ProfileRef":
        return ProfileRef(name=path.stem, path=path)
