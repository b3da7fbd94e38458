from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator

from ..json_io import sanitize_json_value
from ..protocol import Event
from .base import EventLogStore


class FileEventLogStore(EventLogStore):
    """Append-only JSONL event log, one event per line."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: Event) -> None:
        with self._path.open("a", encoding="utf-8", errors="backslashreplace") as f:
            f.write(json.dumps(sanitize_json_value(event.to_dict()), ensure_ascii=False))
            f.write("\n")

    def read(self, since_event_id: str | None = None) -> Iterator[Event]:
        if not self._path.exists():
            return
        seen_anchor = since_event_id is None
        with self._path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    raw = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(raw, dict):
                    continue
                try:
                    event = Event.from_dict(raw)
                except (KeyError, TypeError, ValueError):
                    continue
                if not seen_anchor:
                    if event.event_id == since_event_id:
                        seen_anchor = True
                    continue
                yield event
