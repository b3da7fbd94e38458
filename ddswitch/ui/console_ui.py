from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

from ..runtime.profiles import ProfileRef
from ..runtime.protocol import Event, EventKind


class UIEventKind(str, Enum):
    MENU = "menu"
    STATUS = "status"
    WARNING = "warning"
    ERROR_RAISED = "error_raised"


@dataclass(frozen=True, slots=True)
class UIEvent:
    kind: UIEventKind
    payload: dict


_STATUS_LABELS = {
    EventKind.PROFILE_ACTIVATED.value: "Activated",
    EventKind.PROFILE_CREATED.value: "Created",
    EventKind.PROFILE_SAVED.value: "Saved",
    EventKind.PROFILE_RENAMED.value: "Renamed",
    EventKind.PROFILE_DELETED.value: "Deleted",
    EventKind.PROFILE_DUPLICATED.value: "Duplicated",
    EventKind.PROFILE_IMPORTED.value: "Imported current settings as",
}


def runtime_event_to_ui_event(event: Event) -> UIEvent | None:
    payload = event.payload
    if event.kind == EventKind.OPERATION_FAILED.value:
        return UIEvent(
            UIEventKind.ERROR_RAISED,
            {"message": str(payload.get("error") or "operation failed"), "code": payload.get("error_code")},
        )
    if event.kind == EventKind.PROFILE_ORDER_CHANGED.value:
        order = payload.get("order") or []
        return UIEvent(UIEventKind.STATUS, {"message": "Order: " + (", ".join(order) if order else "(by name)")})
    if event.kind == EventKind.SETTINGS_SAVED.value:
        return UIEvent(UIEventKind.STATUS, {"message": "Settings saved"})
    label = _STATUS_LABELS.get(event.kind)
    if label is None:
        return None
    return UIEvent(UIEventKind.STATUS, {"message": f"{label}: {payload.get('name') or payload.get('profile')}"})


def profile_icon(name: str) -> str:
    n = name.lower()
    if "claude" in n or "anthropic" in n:
        return "C"
    if "gpt" in n or "openai" in n:
        return "O"
    if "gemini" in n or "google" in n:
        return "G"
    if "aws" in n or "amazon" in n:
        return "A"
    return "*"


def _same_path(a: Path | None, b: Path) -> bool:
    if a is None:
        return False
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return a == b


class ConsoleUI:
    """
    Line-mode renderer for the profile menu and operation status.

    Output goes to one stream; runtime events are turned into UIEvents by
    `on_runtime_event`, which can be subscribed to an EventBus directly.
    """

    def __init__(self, *, stream=None, err_stream=None, enable_color: bool = True) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._err_stream = err_stream if err_stream is not None else sys.stderr
        self._ansi = bool(getattr(self._stream, "isatty", lambda: False)())
        self._enable_color = enable_color and self._ansi

    def emit(self, event: UIEvent) -> None:
        self._handle_event(event)

    def on_runtime_event(self, event: Event) -> None:
        ui_event = runtime_event_to_ui_event(event)
        if ui_event is not None:
            self.emit(ui_event)

    def render_menu(self, refs: Sequence[ProfileRef], *, current: Path | None) -> None:
        self.emit(UIEvent(UIEventKind.MENU, {"refs": list(refs), "current": current}))

    def print_status(self, message: str) -> None:
        self.emit(UIEvent(UIEventKind.STATUS, {"message": message}))

    def print_error(self, message: str) -> None:
        self.emit(UIEvent(UIEventKind.ERROR_RAISED, {"message": message}))

    # --- rendering ---
    def _handle_event(self, ev: UIEvent) -> None:
        if ev.kind is UIEventKind.MENU:
            self._write_lines(self.format_menu(ev.payload["refs"], current=ev.payload.get("current")))
        elif ev.kind is UIEventKind.STATUS:
            self._write_lines([self._color(str(ev.payload.get("message") or ""), "32")])
        elif ev.kind is UIEventKind.WARNING:
            self._write_lines([self._color("warning: " + str(ev.payload.get("message") or ""), "33")])
        elif ev.kind is UIEventKind.ERROR_RAISED:
            line = "error: " + str(ev.payload.get("message") or "")
            self._err_stream.write(line + "\n")
            self._err_stream.flush()

    def format_menu(self, refs: Sequence[ProfileRef], *, current: Path | None) -> list[str]:
        if not refs:
            return [
                "No profiles yet. Create one with 'ddswitch create NAME'",
                "or import the live settings with 'ddswitch import'.",
            ]
        lines: list[str] = []
        width = len(str(len(refs)))
        for i, ref in enumerate(refs, start=1):
            active = _same_path(current, ref.path)
            marker = "●" if active else " "
            line = f"{marker} {i:>{width}}. [{profile_icon(ref.name)}] {ref.name}"
            if active:
                line = self._color(line + "  (current)", "1")
            lines.append(line)
        return lines

    def _write_lines(self, lines: list[str]) -> None:
        for line in lines:
            self._stream.write(line + "\n")
        self._stream.flush()

    def _color(self, text: str, code: str) -> str:
        if not self._enable_color:
            return text
        return f"\x1b[{code}m{text}\x1b[0m"
