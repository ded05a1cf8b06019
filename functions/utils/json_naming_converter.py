"""
functions/utils/json_naming_converter.py

WHAT THIS FILE IS FOR
---------------------
Recursive snake_case -> camelCase key conversion for response bodies.

Internal models (schemas/diagnostic_report_schema.py) use snake_case. The
public diagnostics report is camelCase, matching what monitoring clients
already parse:

    {"checks": {"privateKeyValidation": {"details": {"keyLength": 1704}}}}

PRESERVED CONTAINERS
--------------------
Some containers are keyed by data rather than by field names. The
environment check's `found` map is keyed by raw variable names such as
NEXT_PUBLIC_FIREBASE_PROJECT_ID, which must not be rewritten.

For each key listed in `preserve_container_keys` (snake or camel spelling):
- the container key itself is still converted
- its child keys are copied verbatim

The input is never mutated; values are never changed.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


def snake_to_camel(s: str) -> str:
    """
    Convert a snake_case identifier to camelCase.

    Leading/trailing underscores are kept; strings without an inner
    underscore come back unchanged.
    """
    core = s.strip("_")
    if "_" not in core:
        return s

    head, *tail = [part for part in core.split("_") if part]
    camel = head + "".join(part[:1].upper() + part[1:] for part in tail)

    prefix = s[: len(s) - len(s.lstrip("_"))]
    suffix = s[len(s.rstrip("_")):]
    return prefix + camel + suffix


def convert_keys_snake_to_camel(
    obj: Any,
    *,
    preserve_container_keys: Optional[Iterable[str]] = None,
) -> Any:
    preserve = frozenset(preserve_container_keys or ())
    return _convert(obj, preserve)


def _convert(obj: Any, preserve: frozenset) -> Any:
    if isinstance(obj, list):
        return [_convert(item, preserve) for item in obj]

    if not isinstance(obj, dict):
        return obj

    out: dict[Any, Any] = {}
    for key, value in obj.items():
        if not isinstance(key, str):
            out[key] = value
            continue

        new_key = snake_to_camel(key)
        if isinstance(value, dict) and (key in preserve or new_key in preserve):
            out[new_key] = dict(value)
        else:
            out[new_key] = _convert(value, preserve)
    return out
