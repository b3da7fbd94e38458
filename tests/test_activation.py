from __future__ import annotations

import os

import pytest
from conftest import LEGACY_PROFILE, read_json, write_json

from ddswitch.runtime import activation as activation_module
from ddswitch.runtime.activation import ActivationManager
from ddswitch.runtime.errors import ParseError, ReadError, WriteError
from ddswitch.runtime.paths import SwitchPaths
from ddswitch.runtime.profiles import normalize_list


def test_activate_creates_config_json_when_nothing_exists(paths):
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)

    target = ActivationManager(paths).activate(profile)

    assert target == paths.config_path
    assert not paths.settings_path.exists()
    assert read_json(target) == {"customModels": normalize_list(LEGACY_PROFILE)}


def test_activate_prefers_settings_json_and_keeps_other_fields(paths):
    write_json(paths.config_path, {"customModels": [], "untouched": True})
    write_json(
        paths.settings_path,
        {"model": "claude", "customModels": [{"id": "x", "index": 0, "displayName": "old"}], "other": {"x": 1}},
    )
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)

    target = ActivationManager(paths).activate(profile)

    assert target == paths.settings_path
    live = read_json(paths.settings_path)
    assert live["other"] == {"x": 1}
    assert live["model"] == "claude"
    assert list(live) == ["model", "customModels", "other"]
    assert live["customModels"] == normalize_list(LEGACY_PROFILE)
    assert read_json(paths.config_path) == {"customModels": [], "untouched": True}


def test_live_path_is_checked_on_every_call(paths):
    manager = ActivationManager(paths)
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)

    assert manager.activate(profile) == paths.config_path
    write_json(paths.settings_path, {"theme": "dark"})
    assert manager.activate(profile) == paths.settings_path
    assert read_json(paths.settings_path)["theme"] == "dark"


def test_missing_list_key_activates_empty_array(paths):
    write_json(paths.settings_path, {"customModels": [{"displayName": "x"}], "other": [1, 2]})
    profile = write_json(paths.profile_path("empty"), {"name": "nothing here"})

    ActivationManager(paths).activate(profile)

    assert read_json(paths.settings_path) == {"customModels": [], "other": [1, 2]}


def test_activation_does_not_touch_the_profile(paths):
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)
    before = profile.read_bytes()

    manager = ActivationManager(paths)
    manager.activate(profile)
    manager.identify_current()

    assert profile.read_bytes() == before


def test_missing_profile_raises_read_error(paths):
    with pytest.raises(ReadError):
        ActivationManager(paths).activate(paths.profile_path("nope"))


def test_invalid_profile_raises_parse_error(paths):
    profile = paths.profile_path("broken")
    profile.write_text("{not json", encoding="utf-8")

    with pytest.raises(ParseError):
        ActivationManager(paths).activate(profile)


def test_invalid_live_document_raises_and_is_left_alone(paths):
    paths.settings_path.write_text("{broken", encoding="utf-8")
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)

    with pytest.raises(ParseError):
        ActivationManager(paths).activate(profile)
    assert paths.settings_path.read_text(encoding="utf-8") == "{broken"


def test_live_document_must_be_an_object(paths):
    write_json(paths.settings_path, [1, 2, 3])
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)

    with pytest.raises(ParseError):
        ActivationManager(paths).activate(profile)


def test_unwritable_target_raises_write_error(tmp_path, paths):
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)
    missing = SwitchPaths(
        factory_dir=tmp_path / "does-not-exist",
        profiles_dir=paths.profiles_dir,
        state_dir=paths.state_dir,
    )

    with pytest.raises(WriteError):
        ActivationManager(missing).activate(profile)
    assert list((tmp_path).glob("does-not-exist*")) == []


def test_identify_current_round_trip(paths):
    a = write_json(paths.profile_path("a"), {"customModels": [{"displayName": "A"}]})
    b = write_json(paths.profile_path("b"), LEGACY_PROFILE)
    manager = ActivationManager(paths)

    manager.activate(b)
    assert manager.identify_current() == b

    manager.activate(a)
    assert manager.identify_current() == a


def test_identify_current_miss(paths):
    write_json(paths.profile_path("a"), LEGACY_PROFILE)
    write_json(paths.settings_path, {"customModels": [{"id": "hand", "index": 0, "displayName": "Hand"}]})

    assert ActivationManager(paths).identify_current() is None


@pytest.mark.parametrize(
    "content",
    [None, "{broken", '{"other": 1}', '{"customModels": {"a": 1}}', "[]"],
)
def test_identify_current_without_usable_live_document(paths, content):
    write_json(paths.profile_path("a"), {"customModels": []})
    if content is not None:
        paths.settings_path.write_text(content, encoding="utf-8")

    assert ActivationManager(paths).identify_current() is None


def test_identify_current_skips_broken_and_non_json_candidates(paths):
    (paths.profiles_dir / "0-broken.json").write_text("{nope", encoding="utf-8")
    write_json(paths.profiles_dir / "notes.txt", LEGACY_PROFILE)
    good = write_json(paths.profile_path("good"), LEGACY_PROFILE)
    write_json(paths.settings_path, {"customModels": normalize_list(LEGACY_PROFILE)})

    assert ActivationManager(paths).identify_current() == good


def test_identical_profiles_resolve_to_first_by_name(paths):
    second = write_json(paths.profile_path("zeta"), LEGACY_PROFILE)
    first = write_json(paths.profile_path("alpha"), LEGACY_PROFILE)
    manager = ActivationManager(paths)

    manager.activate(second)

    assert manager.identify_current() == first


def test_identify_current_keeps_json_types_apart(paths):
    write_json(paths.profile_path("a"), {"customModels": [{"displayName": "A"}]})
    live = normalize_list({"customModels": [{"displayName": "A"}]})
    live[0]["maxOutputTokens"] = 8192.0
    write_json(paths.settings_path, {"customModels": live})

    assert ActivationManager(paths).identify_current() is None


def test_identify_current_compares_canonical_extra_fields(paths):
    entry = {"id": "c", "index": 0, "displayName": "C", "extra": {"nested": [1, "two"]}}
    profile = write_json(paths.profile_path("canon"), {"customModels": [entry]})
    manager = ActivationManager(paths)
    manager.activate(profile)

    assert manager.identify_current() == profile

    live = read_json(paths.config_path)
    live["customModels"][0]["extra"]["nested"].append(3)
    write_json(paths.config_path, live)
    assert manager.identify_current() is None


def test_import_current_snapshots_live_models(paths, monkeypatch):
    monkeypatch.setattr(activation_module, "now_ts_s", lambda: 1700000000)
    models = normalize_list(LEGACY_PROFILE)
    write_json(paths.settings_path, {"customModels": models, "other": 1})
    manager = ActivationManager(paths)

    first = manager.import_current()
    second = manager.import_current()

    assert first.name == "imported_1700000000.json"
    assert second.name == "imported_1700000000_1.json"
    assert read_json(first) == {"customModels": models}
    assert manager.identify_current() == first


def test_import_current_without_models_writes_empty_list(paths, monkeypatch):
    monkeypatch.setattr(activation_module, "now_ts_s", lambda: 1)
    write_json(paths.settings_path, {"other": 1})

    path = ActivationManager(paths).import_current()

    assert read_json(path) == {"customModels": []}


def test_import_current_requires_live_document(paths):
    with pytest.raises(ReadError):
        ActivationManager(paths).import_current()


def test_import_current_copies_null_models_as_is(paths, monkeypatch):
    monkeypatch.setattr(activation_module, "now_ts_s", lambda: 2)
    write_json(paths.settings_path, {"customModels": None})

    path = ActivationManager(paths).import_current()

    assert read_json(path) == {"customModels": None}


@pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity", "1e400"])
def test_activate_rejects_non_finite_numbers(paths, token):
    write_json(paths.config_path, {"customModels": []})
    before = paths.config_path.read_bytes()
    profile = paths.profile_path("bad")
    profile.write_text(
        '{"customModels": [{"id": "x", "index": 0, "displayName": "d", "t": %s}]}' % token,
        encoding="utf-8",
    )

    with pytest.raises(ParseError):
        ActivationManager(paths).activate(profile)

    assert paths.config_path.read_bytes() == before


def test_activate_rejects_live_document_with_unpaired_surrogate(paths):
    raw = '{"customModels": [], "other": "a\\ud800b"}'
    paths.settings_path.write_text(raw, encoding="utf-8")
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)

    with pytest.raises(ParseError):
        ActivationManager(paths).activate(profile)

    assert paths.settings_path.read_text(encoding="utf-8") == raw


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_activate_keeps_live_file_permissions(paths):
    write_json(paths.settings_path, {"apiKey": "secret", "customModels": []})
    paths.settings_path.chmod(0o600)
    profile = write_json(paths.profile_path("work"), LEGACY_PROFILE)

    ActivationManager(paths).activate(profile)

    assert paths.settings_path.stat().st_mode & 0o777 == 0o600
    assert read_json(paths.settings_path)["apiKey"] == "secret"
