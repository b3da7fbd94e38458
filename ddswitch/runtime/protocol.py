from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    PROFILE_ACTIVATED = "profile_activated"
    PROFILE_CREATED = "profile_created"
    PROFILE_SAVED = "profile_saved"
    PROFILE_RENAMED = "profile_renamed"
    PROFILE_DELETED = "profile_deleted"
    PROFILE_DUPLICATED = "profile_duplicated"
    PROFILE_IMPORTED = "profile_imported"
    PROFILE_ORDER_CHANGED = "profile_order_changed"

    SETTINGS_SAVED = "settings_saved"

    OPERATION_FAILED = "operation_failed"


@dataclass(frozen=True, slots=True)
class Event:
    kind: str
    payload: dict[str, Any]
    event_id: str
    timestamp: int
    operation: str | None = None
    schema_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "kind": self.kind,
            "payload": self.payload,
            "event_id": self.event_id,
            "timestamp": self.timestamp,
        }
        if self.operation is not None:
            out["operation"] = self.operation
        if self.schema_version is not None:
            out["schema_version"] = self.schema_version
        return out

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "Event":
        return Event(
            kind=str(raw["kind"]),
            payload=dict(raw.get("payload") or {}),
            event_id=str(raw["event_id"]),
            timestamp=int(raw["timestamp"]),
            operation=str(raw["operation"]) if raw.get("operation") is not None else None,
            schema_version=str(raw["schema_version"]) if raw.get("schema_version") is not None else None,
        )
