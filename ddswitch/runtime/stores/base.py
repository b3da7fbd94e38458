from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from ..protocol import Event


class EventLogStore(ABC):
    @abstractmethod
    def append(self, event: Event) -> None: ...

    @abstractmethod
    def read(self, since_event_id: str | None = None) -> Iterator[Event]: ...

    def tail(self, limit: int) -> list[Event]:
        if limit <= 0:
            return []
        events = list(self.read())
        return events[-limit:]
