from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .errors import ParseError
from .json_io import ensure_dir, read_json_file, write_json_file


@dataclass(frozen=True, slots=True)
class AppSettings:
    profiles_dir: str | None = None
    order: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.profiles_dir:
            out["profiles_dir"] = self.profiles_dir
        out["order"] = list(self.order)
        return out

    @staticmethod
    def from_dict(raw: Any, *, source: str) -> "AppSettings":
        if not isinstance(raw, dict):
            raise ParseError(f"{source}:root must be an object", path=source)
        profiles_dir = raw.get("profiles_dir")
        if profiles_dir is not None and not isinstance(profiles_dir, str):
            raise ParseError(f"{source}:profiles_dir must be a string or null", path=source)
        order_raw = raw.get("order") or []
        if not isinstance(order_raw, list) or not all(isinstance(n, str) for n in order_raw):
            raise ParseError(f"{source}:order must be a list of strings", path=source)
        return AppSettings(profiles_dir=profiles_dir or None, order=tuple(order_raw))

    def with_order(self, names: list[str] | tuple[str, ...]) -> "AppSettings":
        deduped: list[str] = []
        for name in names:
            if name not in deduped:
                deduped.append(name)
        return replace(self, order=tuple(deduped))

    def with_renamed(self, old_name: str, new_name: str) -> "AppSettings":
        return replace(self, order=tuple(new_name if n == old_name else n for n in self.order))

    def without(self, name: str) -> "AppSettings":
        return replace(self, order=tuple(n for n in self.order if n != name))


class AppSettingsStore:
    """
    Holds the application settings snapshot.

    The file is read at most once (first `get()`); afterwards the snapshot only changes
    through `save()`, which writes the file and swaps the snapshot in one step.
    A missing file yields default settings.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._snapshot: AppSettings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> AppSettings:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._load()
            return self._snapshot

    def save(self, settings: AppSettings) -> AppSettings:
        with self._lock:
            ensure_dir(self._path.parent)
            write_json_file(self._path, settings.to_dict())
            self._snapshot = settings
            return settings

    def _load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        return AppSettings.from_dict(read_json_file(self._path), source=str(self._path))
