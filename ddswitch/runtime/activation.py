from __future__ import annotations

from pathlib import Path
from typing import Any

from .errors import ParseError, SwitchError
from .ids import now_ts_s
from .json_io import ensure_dir, json_equal, read_json_file, write_json_file
from .paths import SwitchPaths
from .profiles import LIVE_MODELS_KEY, normalize_list
from .profiles.types import PROFILE_SUFFIX


class ActivationManager:
    """
    Moves normalized profile entries into the live settings document and works out which
    stored profile the live document currently corresponds to.

    The link between the two is never persisted: `identify_current()` re-normalizes every
    profile and compares the results with the live `customModels` array.
    """

    def __init__(self, paths: SwitchPaths) -> None:
        self._paths = paths

    @property
    def paths(self) -> SwitchPaths:
        return self._paths

    def activate(self, profile_path: Path) -> Path:
        """
        Normalize the profile at `profile_path` into the live document and return the live path.

        Raises ReadError / ParseError for the profile or an existing live document, and
        WriteError if the live document cannot be replaced.
        """

        document = read_json_file(profile_path)
        models = normalize_list(document)

        target = self._paths.live_path()
        if target.exists():
            live = read_json_file(target)
            if not isinstance(live, dict):
                raise ParseError(f"Live settings document must be a JSON object: {target}", path=target)
            live[LIVE_MODELS_KEY] = models
        else:
            live = {LIVE_MODELS_KEY: models}

        write_json_file(target, live)
        return target

    def live_models(self) -> list[Any] | None:
        try:
            live = read_json_file(self._paths.live_path())
        except SwitchError:
            return None
        if not isinstance(live, dict):
            return None
        models = live.get(LIVE_MODELS_KEY)
        return models if isinstance(models, list) else None

    def identify_current(self) -> Path | None:
        current = self.live_models()
        if current is None:
            return None

        for path in self._candidates():
            try:
                document = read_json_file(path)
            except SwitchError:
                # One broken profile must not hide the others.
                continue
            if json_equal(normalize_list(document), current):
                return path
        return None

    def import_current(self) -> Path:
        """Snapshot the live `customModels` array into a new `imported_<ts>.json` profile."""

        live = read_json_file(self._paths.live_path())
        # A present key is copied as-is, `null` included; only a missing key becomes [].
        models = live.get(LIVE_MODELS_KEY, []) if isinstance(live, dict) else []
        export = {LIVE_MODELS_KEY: models}

        ensure_dir(self._paths.profiles_dir)
        base = f"imported_{now_ts_s()}"
        path = self._paths.profile_path(base)
        suffix = 1
        while path.exists():
            path = self._paths.profile_path(f"{base}_{suffix}")
            suffix += 1
        write_json_file(path, export)
        return path

    def _candidates(self) -> list[Path]:
        profiles_dir = self._paths.profiles_dir
        try:
            entries = list(profiles_dir.iterdir())
        except OSError:
            return []
        # Lexicographic order makes the winner deterministic when two profiles normalize alike.
        return sorted((p for p in entries if p.suffix == PROFILE_SUFFIX and p.is_file()), key=lambda p: p.name)
