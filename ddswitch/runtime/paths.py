from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .app_settings import AppSettings

FACTORY_DIRNAME = ".factory"
STATE_DIRNAME = ".ddswitch"
PROFILES_DIRNAME = "configs"
SETTINGS_FILENAME = "settings.json"
CONFIG_FILENAME = "config.json"
APP_SETTINGS_FILENAME = "settings.json"
EVENTS_FILENAME = "events.jsonl"


def default_factory_dir() -> Path:
    override = os.environ.get("DDSWITCH_FACTORY_DIR")
    if override:
        return Path(os.path.expanduser(override))
    return Path.home() / FACTORY_DIRNAME


def default_state_dir() -> Path:
    override = os.environ.get("DDSWITCH_HOME")
    if override:
        return Path(os.path.expanduser(override))
    return Path.home() / STATE_DIRNAME


def app_settings_path(state_dir: Path | None = None) -> Path:
    return (state_dir or default_state_dir()) / APP_SETTINGS_FILENAME


def events_log_path(state_dir: Path | None = None) -> Path:
    return (state_dir or default_state_dir()) / EVENTS_FILENAME


def resolve_profiles_dir(factory_dir: Path, settings: AppSettings) -> Path:
    override = os.environ.get("DDSWITCH_PROFILES_DIR")
    if override:
        return Path(os.path.expanduser(override))
    if settings.profiles_dir:
        return Path(os.path.expanduser(settings.profiles_dir))
    return factory_dir / PROFILES_DIRNAME


@dataclass(frozen=True, slots=True)
class SwitchPaths:
    factory_dir: Path
    profiles_dir: Path
    state_dir: Path

    @property
    def settings_path(self) -> Path:
        return self.factory_dir / SETTINGS_FILENAME

    @property
    def config_path(self) -> Path:
        return self.factory_dir / CONFIG_FILENAME

    @property
    def app_settings_path(self) -> Path:
        return self.state_dir / APP_SETTINGS_FILENAME

    @property
    def events_path(self) -> Path:
        return self.state_dir / EVENTS_FILENAME

    def live_path(self) -> Path:
        # Checked on every call: settings.json may appear after startup.
        settings = self.settings_path
        if settings.exists():
            return settings
        return self.config_path

    def profile_path(self, name: str) -> Path:
        return self.profiles_dir / f"{name}.json"

    @staticmethod
    def resolve(
        *,
        settings: AppSettings,
        factory_dir: Path | None = None,
        state_dir: Path | None = None,
    ) -> "SwitchPaths":
        factory = (factory_dir or default_factory_dir()).expanduser()
        return SwitchPaths(
            factory_dir=factory,
            profiles_dir=resolve_profiles_dir(factory, settings),
            state_dir=(state_dir or default_state_dir()).expanduser(),
        )
