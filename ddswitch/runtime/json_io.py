from __future__ import annotations

import json
import math
import os
import stat
from pathlib import Path
from typing import Any

from .errors import ParseError, ReadError, WriteError


def _replace_surrogates(text: str) -> str:
    out: list[str] = []
    changed = False
    for ch in text:
        o = ord(ch)
        if 0xD800 <= o <= 0xDFFF:
            out.append("\uFFFD")
            changed = True
        else:
            out.append(ch)
    return "".join(out) if changed else text


def sanitize_json_value(value: Any) -> Any:
    if isinstance(value, str):
        return _replace_surrogates(value)
    if isinstance(value, list):
        return [sanitize_json_value(v) for v in value]
    if isinstance(value, dict):
        out: dict[Any, Any] = {}
        for k, v in value.items():
            key = _replace_surrogates(k) if isinstance(k, str) else k
            out[key] = sanitize_json_value(v)
        return out
    return value


def read_text_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ReadError(f"File not found: {path}", path=path) from e
    except UnicodeDecodeError as e:
        raise ReadError(f"File is not valid UTF-8: {path} ({e})", path=path) from e
    except OSError as e:
        raise ReadError(f"Failed to read file: {path} ({e})", path=path) from e


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not a JSON value")


def _parse_finite_float(token: str) -> float:
    value = float(token)
    if math.isinf(value):
        raise ValueError(f"number out of range: {token}")
    return value


def _find_lone_surrogate(value: Any) -> str | None:
    if isinstance(value, str):
        return value if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value) else None
    if isinstance(value, list):
        for item in value:
            found = _find_lone_surrogate(item)
            if found is not None:
                return found
    elif isinstance(value, dict):
        for k, v in value.items():
            found = _find_lone_surrogate(k)
            if found is None:
                found = _find_lone_surrogate(v)
            if found is not None:
                return found
    return None


def parse_json_text(raw: str, *, source: Path | str) -> Any:
    """
    Parse strict JSON.

    Rejects `NaN`, `Infinity`, numbers outside the float range and unpaired surrogate escapes.
    """

    try:
        value = json.loads(raw, parse_constant=_reject_constant, parse_float=_parse_finite_float)
    except ValueError as e:
        raise ParseError(f"File is not valid JSON: {source} ({e})", path=source) from e
    bad = _find_lone_surrogate(value)
    if bad is not None:
        raise ParseError(f"File is not valid JSON: {source} (unpaired surrogate in {bad!r})", path=source)
    return value


def read_json_file(path: Path) -> Any:
    return parse_json_text(read_text_file(path), source=path)


def dump_json_text(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, allow_nan=False) + "\n"


def _existing_mode(path: Path) -> int | None:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return None


def write_text_file(path: Path, text: str) -> None:
    """
    Replace `path` with `text` via a sibling temp file and an atomic rename.

    The parent directory must already exist. An existing file keeps its permission bits.
    On failure the previous content is left in place.
    """

    tmp = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    try:
        mode = _existing_mode(path)
        tmp.write_text(text, encoding="utf-8", errors="strict")
        if mode is not None:
            os.chmod(tmp, mode)
        tmp.replace(path)
    except (OSError, UnicodeEncodeError) as e:
        try:
            tmp.unlink(missing_ok=True)
        except OSError:
            pass
        raise WriteError(f"Failed to write file: {path} ({e})", path=path) from e


def write_json_file(path: Path, obj: Any) -> None:
    try:
        text = dump_json_text(obj)
    except (TypeError, ValueError) as e:
        raise WriteError(f"Value is not JSON serializable for {path}: {e}", path=path) from e
    write_text_file(path, text)


def json_equal(a: Any, b: Any) -> bool:
    """
    Structural JSON equality that keeps JSON types apart.

    Plain `==` treats `True == 1` and `1 == 1.0` as equal; JSON documents do not.
    """

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, int) and isinstance(b, int):
        return a == b
    if isinstance(a, float) and isinstance(b, float):
        return a == b
    if isinstance(a, (int, float)) or isinstance(b, (int, float)):
        return False
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(json_equal(v, b[k]) for k, v in a.items())
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return False


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteError(f"Failed to create directory: {path} ({e})", path=path) from e
    return path
