from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from ddswitch.runtime.app_settings import AppSettings, AppSettingsStore
from ddswitch.runtime.paths import SwitchPaths


def write_json(path: Path, obj: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2), encoding="utf-8")
    return path


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


LEGACY_PROFILE = {
    "custom_models": [
        {
            "model_display_name": "Claude Sonnet",
            "model": "claude-sonnet-4",
            "base_url": "https://api.anthropic.com",
            "api_key": "sk-ant-1",
            "provider": "anthropic",
            "max_tokens": 64000,
            "supports_images": True,
        },
        {
            "model_display_name": "GPT Local",
            "model": "gpt-oss",
            "base_url": "http://localhost:8000/v1",
            "api_key": "none",
            "provider": "generic-chat-completion-api",
            "supports_images": False,
        },
    ]
}


@pytest.fixture
def factory_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    factory = tmp_path / "factory"
    factory.mkdir()
    state = tmp_path / "state"
    monkeypatch.setenv("DDSWITCH_FACTORY_DIR", str(factory))
    monkeypatch.setenv("DDSWITCH_HOME", str(state))
    monkeypatch.setenv("DDSWITCH_PLAIN_INPUT", "1")
    monkeypatch.delenv("DDSWITCH_PROFILES_DIR", raising=False)
    return SimpleNamespace(factory=factory, profiles=factory / "configs", state=state)


@pytest.fixture
def settings_store(factory_env: SimpleNamespace) -> AppSettingsStore:
    return AppSettingsStore(factory_env.state / "settings.json")


@pytest.fixture
def paths(factory_env: SimpleNamespace) -> SwitchPaths:
    resolved = SwitchPaths.resolve(settings=AppSettings())
    resolved.profiles_dir.mkdir(parents=True, exist_ok=True)
    return resolved
