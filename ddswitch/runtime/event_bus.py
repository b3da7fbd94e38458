from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .error_codes import ErrorCode
from .ids import new_id, now_ts_ms
from .protocol import Event, EventKind
from .stores import EventLogStore

EventHandler = Callable[[Event], None]


@dataclass(frozen=True, slots=True)
class EventFilter:
    kinds: set[str] | None = None
    operation: str | None = None

    def matches(self, event: Event) -> bool:
        if self.kinds is not None and event.kind not in self.kinds:
            return False
        if self.operation is not None and event.operation != self.operation:
            return False
        return True


def make_event(kind: EventKind | str, payload: dict[str, Any], *, operation: str | None = None) -> Event:
    return Event(
        kind=kind.value if isinstance(kind, EventKind) else str(kind),
        payload=payload,
        event_id=new_id("evt"),
        timestamp=now_ts_ms(),
        operation=operation,
    )


class EventBus:
    def __init__(self, *, event_log_store: EventLogStore | None = None) -> None:
        self._event_log_store = event_log_store
        self._next_sub_id = 1
        self._subs: dict[int, tuple[EventHandler, EventFilter]] = {}

    @property
    def event_log_store(self) -> EventLogStore | None:
        return self._event_log_store

    def _dispatch(self, event: Event) -> None:
        for handler, filt in list(self._subs.values()):
            if filt.matches(event):
                handler(event)

    def subscribe(self, handler: EventHandler, filt: EventFilter | None = None) -> int:
        sub_id = self._next_sub_id
        self._next_sub_id += 1
        self._subs[sub_id] = (handler, filt or EventFilter())
        return sub_id

    def unsubscribe(self, subscription_id: int) -> None:
        self._subs.pop(subscription_id, None)

    def publish(self, event: Event) -> None:
        if self._event_log_store is not None:
            try:
                self._event_log_store.append(event)
            except Exception as e:
                self._notify_append_failed(event, e)
                raise EventLogAppendError(event=event, cause=e) from e
        self._dispatch(event)

    def _notify_append_failed(self, event: Event, exc: BaseException) -> None:
        emergency = Event(
            kind=EventKind.OPERATION_FAILED.value,
            payload={
                "error": f"Failed to append event log: {exc}",
                "error_code": ErrorCode.EVENT_LOG_APPEND_FAILED.value,
                "failed_event": {"kind": event.kind, "event_id": event.event_id},
            },
            event_id=new_id("evt"),
            timestamp=now_ts_ms(),
            operation=event.operation,
            schema_version=event.schema_version,
        )
        for handler, filt in list(self._subs.values()):
            if not filt.matches(emergency):
                continue
            try:
                handler(emergency)
            except Exception:
                pass


class EventLogAppendError(RuntimeError):
    def __init__(self, *, event: Event, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.event = event
        self.cause = cause

    def __str__(self) -> str:
        return f"Event log append failed for kind={self.event.kind!r} event_id={self.event.event_id!r}: {self.cause}"
