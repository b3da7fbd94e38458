from __future__ import annotations

from typing import Any

from .types import (
    CANONICAL_MARKER_KEYS,
    DEFAULT_DISPLAY_NAME,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_PROVIDER,
    LIST_KEYS,
    SYNTHETIC_ID_PREFIX,
)

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


def is_canonical(entry: Any) -> bool:
    if not isinstance(entry, dict):
        return False
    return all(key in entry for key in CANONICAL_MARKER_KEYS)


def synthetic_id(display_name: str, position_index: int) -> str:
    clean_name = display_name.replace(" ", "-")
    return f"{SYNTHETIC_ID_PREFIX}{clean_name}-{position_index}"


def normalize_entry(entry: Any, position_index: int) -> Any:
    """
    Convert one model entry (legacy or alternate shape) into the canonical shape.

    Entries that already carry `id`, `index` and `displayName` are returned as-is, extra
    fields included. Everything else is rebuilt from scratch: the synthetic `id` and the
    `index` come from `position_index`, never from the input.

    Key priority is decided by presence: when the snake_case key exists its value wins even
    if it has the wrong type (which then falls back to the default).
    """

    if is_canonical(entry):
        return entry

    fields = entry if isinstance(entry, dict) else {}

    display_name = _pick_str(fields, "model_display_name", "displayName", default=DEFAULT_DISPLAY_NAME)
    model = _pick_str(fields, "model", default="")
    base_url = _pick_str(fields, "base_url", "baseUrl", default="")
    api_key = _pick_str(fields, "api_key", "apiKey", default="")
    provider = _pick_str(fields, "provider", default=DEFAULT_PROVIDER)
    max_tokens = _pick_int(fields, "max_tokens", "maxOutputTokens", default=DEFAULT_MAX_OUTPUT_TOKENS)
    no_image_support = _no_image_support(fields)

    return {
        "model": model,
        "id": synthetic_id(display_name, position_index),
        "index": position_index,
        "baseUrl": base_url,
        "apiKey": api_key,
        "displayName": display_name,
        "maxOutputTokens": max_tokens,
        "noImageSupport": no_image_support,
        "provider": provider,
    }


def source_entries(document: Any) -> list[Any]:
    if not isinstance(document, dict):
        return []
    for key in LIST_KEYS:
        if key in document:
            value = document[key]
            return list(value) if isinstance(value, list) else []
    return []


def normalize_list(document: Any) -> list[Any]:
    return [normalize_entry(entry, i) for i, entry in enumerate(source_entries(document))]


def _first_present(fields: dict[str, Any], keys: tuple[str, ...]) -> tuple[bool, Any]:
    for key in keys:
        if key in fields:
            return True, fields[key]
    return False, None


def _pick_str(fields: dict[str, Any], *keys: str, default: str) -> str:
    found, value = _first_present(fields, keys)
    if found and isinstance(value, str):
        return value
    return default


def _pick_int(fields: dict[str, Any], *keys: str, default: int) -> int:
    found, value = _first_present(fields, keys)
    if not found or isinstance(value, bool) or not isinstance(value, int):
        return default
    if value < _I64_MIN or value > _I64_MAX:
        return default
    return value


def _no_image_support(fields: dict[str, Any]) -> bool:
    # supports_images has the inverted sense; a non-boolean value falls through to noImageSupport.
    supports_images = fields.get("supports_images")
    if isinstance(supports_images, bool):
        return not supports_images
    no_image_support = fields.get("noImageSupport")
    if isinstance(no_image_support, bool):
        return no_image_support
    return False
