"""Helpers for turning loosely-typed server JSON into domain values.

Every helper raises ``DecodeError`` instead of ``KeyError``/``TypeError`` so
callers only deal with one failure type for a malformed response.
"""

from typing import Any, Mapping, Optional

from idlemmo.errors import DecodeError


def require_mapping(payload: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise DecodeError(f"{context}: expected a JSON object, got {type(payload).__name__}")
    return payload


def require_int(payload: Mapping[str, Any], key: str, context: str) -> int:
    if key not in payload:
        raise DecodeError(f"{context}: missing field '{key}'")
    return _coerce_int(payload[key], key, context)


def optional_int(payload: Mapping[str, Any], key: str, context: str, default: Optional[int] = None) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return default
    return _coerce_int(value, key, context)


def require_str(payload: Mapping[str, Any], key: str, context: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"{context}: field '{key}' must be a string")
    return value


def optional_list(payload: Mapping[str, Any], key: str, context: str) -> list:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"{context}: field '{key}' must be a list")
    return value


def _coerce_int(value: Any, key: str, context: str) -> int:
    # bool is an int subclass; the server never sends booleans for counters
    if isinstance(value, bool):
        raise DecodeError(f"{context}: field '{key}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise DecodeError(f"{context}: field '{key}' must be an integer, got {value!r}")
