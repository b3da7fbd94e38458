from __future__ import annotations

import shutil
from pathlib import Path

from .app_settings import AppSettingsStore
from .errors import InvalidProfileNameError, ProfileExistsError, ProfileNotFoundError, WriteError
from .json_io import dump_json_text, ensure_dir, read_text_file, write_text_file
from .paths import SwitchPaths
from .profiles import ProfileRef, empty_profile_document
from .profiles.types import PROFILE_SUFFIX

_FORBIDDEN_NAME_CHARS = ("/", "\\", "\x00")


def validate_profile_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise InvalidProfileNameError("Profile name must not be empty")
    if cleaned in {".", ".."} or any(ch in cleaned for ch in _FORBIDDEN_NAME_CHARS):
        raise InvalidProfileNameError(f"Invalid profile name: {name!r}")
    return cleaned


class ProfileLibrary:
    """Profile documents on disk: one `<name>.json` file per profile."""

    def __init__(self, paths: SwitchPaths, settings_store: AppSettingsStore) -> None:
        self._paths = paths
        self._settings_store = settings_store

    @property
    def profiles_dir(self) -> Path:
        return self._paths.profiles_dir

    def list_profiles(self) -> list[ProfileRef]:
        ensure_dir(self.profiles_dir)
        refs = [
            ProfileRef.for_path(p)
            for p in self.profiles_dir.iterdir()
            if p.suffix == PROFILE_SUFFIX and p.is_file()
        ]
        order = self._settings_store.get().order
        rank = {name: i for i, name in enumerate(order)}
        refs.sort(key=lambda r: (0, rank[r.name], r.name) if r.name in rank else (1, 0, r.name))
        return refs

    def resolve(self, name_or_path: str | Path) -> Path:
        candidate = Path(name_or_path).expanduser()
        if candidate.suffix != PROFILE_SUFFIX:
            path = self._paths.profile_path(str(name_or_path))
        elif candidate.is_absolute() or len(candidate.parts) > 1:
            path = candidate
        else:
            path = self._paths.profile_path(candidate.stem)
        if not path.is_file():
            raise ProfileNotFoundError(f"Profile not found: {name_or_path}", path=path)
        return path

    def read_profile(self, path: Path) -> str:
        return read_text_file(path)

    def write_profile(self, path: Path, content: str) -> None:
        write_text_file(path, content)

    def create_profile(self, name: str) -> Path:
        name = validate_profile_name(name)
        ensure_dir(self.profiles_dir)
        path = self._paths.profile_path(name)
        if path.exists():
            raise ProfileExistsError(f"Profile already exists: {name}", path=path)
        write_text_file(path, dump_json_text(empty_profile_document()))
        return path

    def rename_profile(self, old_path: Path, new_name: str) -> Path:
        new_name = validate_profile_name(new_name)
        if not old_path.is_file():
            raise ProfileNotFoundError(f"Profile not found: {old_path}", path=old_path)
        new_path = old_path.with_name(f"{new_name}{PROFILE_SUFFIX}")
        if new_path == old_path:
            return old_path
        if new_path.exists():
            raise ProfileExistsError(f"Profile already exists: {new_name}", path=new_path)
        try:
            old_path.rename(new_path)
        except OSError as e:
            raise WriteError(f"Failed to rename profile: {old_path} -> {new_path} ({e})", path=new_path) from e

        settings = self._settings_store.get()
        if old_path.stem in settings.order:
            self._settings_store.save(settings.with_renamed(old_path.stem, new_name))
        return new_path

    def delete_profile(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise ProfileNotFoundError(f"Profile not found: {path}", path=path) from e
        except OSError as e:
            raise WriteError(f"Failed to delete profile: {path} ({e})", path=path) from e

        settings = self._settings_store.get()
        if path.stem in settings.order:
            self._settings_store.save(settings.without(path.stem))

    def duplicate_profile(self, path: Path) -> Path:
        if not path.is_file():
            raise ProfileNotFoundError(f"Profile not found: {path}", path=path)
        new_path = path.with_name(f"{path.stem}-copy{PROFILE_SUFFIX}")
        if new_path.exists():
            raise ProfileExistsError(f"Profile already exists: {new_path.stem}", path=new_path)
        try:
            shutil.copyfile(path, new_path)
        except OSError as e:
            raise WriteError(f"Failed to duplicate profile: {path} ({e})", path=new_path) from e
        return new_path

    def set_order(self, names: list[str]) -> tuple[str, ...]:
        settings = self._settings_store.save(self._settings_store.get().with_order(names))
        return settings.order
