from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterator

from .activation import ActivationManager
from .app_settings import AppSettings, AppSettingsStore
from .errors import error_code_of
from .event_bus import EventBus, make_event
from .library import ProfileLibrary
from .paths import SwitchPaths, app_settings_path, default_state_dir, events_log_path
from .profiles import ProfileRef
from .protocol import EventKind
from .stores import FileEventLogStore


class ProfileSwitcher:
    """
    In-process API used by the console shell.

    Mutating calls are serialized with one lock so that a menu action and a foreground
    command cannot interleave their read-modify-write of the live settings document.
    Paths are recomputed from the current settings snapshot on every call.
    """

    def __init__(
        self,
        *,
        settings_store: AppSettingsStore,
        event_bus: EventBus | None = None,
        factory_dir: Path | None = None,
        state_dir: Path | None = None,
    ) -> None:
        self._settings_store = settings_store
        self._event_bus = event_bus or EventBus()
        self._factory_dir = factory_dir
        self._state_dir = state_dir
        self._lock = threading.RLock()

    @staticmethod
    def open_default(*, persist_events: bool = True) -> "ProfileSwitcher":
        state_dir = default_state_dir()
        settings_store = AppSettingsStore(app_settings_path(state_dir))
        store = FileEventLogStore(events_log_path(state_dir)) if persist_events else None
        return ProfileSwitcher(
            settings_store=settings_store,
            event_bus=EventBus(event_log_store=store),
            state_dir=state_dir,
        )

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def settings(self) -> AppSettings:
        return self._settings_store.get()

    @property
    def paths(self) -> SwitchPaths:
        return SwitchPaths.resolve(
            settings=self._settings_store.get(),
            factory_dir=self._factory_dir,
            state_dir=self._state_dir,
        )

    def _library(self) -> ProfileLibrary:
        return ProfileLibrary(self.paths, self._settings_store)

    def _activation(self) -> ActivationManager:
        return ActivationManager(self.paths)

    @contextmanager
    def _operation(self, operation: str, /, **context: Any) -> Iterator[None]:
        with self._lock:
            try:
                yield
            except Exception as e:
                payload: dict[str, Any] = {
                    "error": str(e),
                    "error_code": error_code_of(e).value,
                }
                payload.update({k: str(v) for k, v in context.items() if v is not None})
                self._event_bus.publish(make_event(EventKind.OPERATION_FAILED, payload, operation=operation))
                raise

    # --- queries ---
    def list_profiles(self) -> list[ProfileRef]:
        return self._library().list_profiles()

    def resolve(self, name_or_path: str | Path) -> Path:
        return self._library().resolve(name_or_path)

    def read_profile(self, path: Path) -> str:
        return self._library().read_profile(path)

    def identify_current(self) -> Path | None:
        return self._activation().identify_current()

    def live_path(self) -> Path:
        return self.paths.live_path()

    # --- mutations ---
    def activate(self, path: Path) -> Path:
        with self._operation("activate", profile=path):
            return self._activate(path, operation="activate")

    def _activate(self, path: Path, *, operation: str) -> Path:
        target = self._activation().activate(path)
        self._event_bus.publish(
            make_event(
                EventKind.PROFILE_ACTIVATED,
                {"profile": str(path), "name": path.stem, "target": str(target)},
                operation=operation,
            )
        )
        return target

    def save(self, path: Path, content: str) -> bool:
        """Overwrite a profile; re-activate it if it was the current one. Returns True if re-activated."""

        with self._operation("save", profile=path):
            current = self._activation().identify_current()
            was_current = current is not None and current.resolve() == path.resolve()
            self._library().write_profile(path, content)
            self._event_bus.publish(
                make_event(EventKind.PROFILE_SAVED, {"profile": str(path), "name": path.stem}, operation="save")
            )
            if was_current:
                self._activate(path, operation="save")
            return was_current

    def create(self, name: str) -> Path:
        with self._operation("create", name=name):
            path = self._library().create_profile(name)
            self._event_bus.publish(
                make_event(EventKind.PROFILE_CREATED, {"profile": str(path), "name": path.stem}, operation="create")
            )
            return path

    def rename(self, old_path: Path, new_name: str) -> Path:
        with self._operation("rename", profile=old_path, name=new_name):
            new_path = self._library().rename_profile(old_path, new_name)
            self._event_bus.publish(
                make_event(
                    EventKind.PROFILE_RENAMED,
                    {"from": str(old_path), "to": str(new_path), "name": new_path.stem},
                    operation="rename",
                )
            )
            return new_path

    def delete(self, path: Path) -> None:
        with self._operation("delete", profile=path):
            self._library().delete_profile(path)
            self._event_bus.publish(
                make_event(EventKind.PROFILE_DELETED, {"profile": str(path), "name": path.stem}, operation="delete")
            )

    def duplicate(self, path: Path) -> Path:
        with self._operation("duplicate", profile=path):
            new_path = self._library().duplicate_profile(path)
            self._event_bus.publish(
                make_event(
                    EventKind.PROFILE_DUPLICATED,
                    {"from": str(path), "profile": str(new_path), "name": new_path.stem},
                    operation="duplicate",
                )
            )
            return new_path

    def import_current(self) -> Path:
        with self._operation("import"):
            path = self._activation().import_current()
            self._event_bus.publish(
                make_event(EventKind.PROFILE_IMPORTED, {"profile": str(path), "name": path.stem}, operation="import")
            )
            return path

    def set_order(self, names: list[str]) -> tuple[str, ...]:
        with self._operation("order"):
            order = self._library().set_order(names)
            self._event_bus.publish(
                make_event(EventKind.PROFILE_ORDER_CHANGED, {"order": list(order)}, operation="order")
            )
            return order

    def update_settings(self, *, profiles_dir: str | None = None, reset_profiles_dir: bool = False) -> AppSettings:
        with self._operation("settings"):
            current = self._settings_store.get()
            if reset_profiles_dir:
                updated = replace(current, profiles_dir=None)
            elif profiles_dir is not None:
                updated = replace(current, profiles_dir=profiles_dir)
            else:
                updated = current
            saved = self._settings_store.save(updated)
            self._event_bus.publish(make_event(EventKind.SETTINGS_SAVED, saved.to_dict(), operation="settings"))
            return saved
