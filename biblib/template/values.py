"""
Value model for template variables.

Variables are plain Python data: str, int, float, bool, None, lists/tuples
and nested mappings (CSL-JSON shape).  Lookups of paths that do not exist
return the `MISSING` sentinel instead of raising.

Stringification follows the rules template authors know from the
JavaScript world the templates were written for: booleans render as
``true``/``false``, ``2024.0`` renders as ``2024`` and lists join with commas.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any


class _Missing:
    """Sentinel for a path that resolves to nothing."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

SEQUENCE_TYPES = (list, tuple)

_INDEX_RE = re.compile(r"[0-9]+")


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def resolve_path(scope: Mapping, path: str) -> Any:
    """
    Resolve ``path`` against ``scope``.

    A key that exists verbatim wins (so ``@index``, ``.`` and hyphenated CSL
    names such as ``container-title`` resolve directly).  Otherwise the path
    is split on dots and walked through mappings, list indices and the
    ``length`` pseudo-attribute.  ``.name`` resolves ``name`` on the current
    loop item.
    """
    if path in scope:
        return scope[path]

    if path.startswith(".") and len(path) > 1 and "." in scope:
        return _walk(scope["."], path[1:].split("."))

    return _walk(scope, path.split("."))


def _walk(current: Any, parts: list[str]) -> Any:
    for part in parts:
        if current is MISSING or current is None:
            return MISSING
        current = _step(current, part)
    return current


def _step(current: Any, part: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(part, MISSING)
    if isinstance(current, (str, *SEQUENCE_TYPES)):
        if part == "length":
            return len(current)
        if _INDEX_RE.fullmatch(part):
            idx = int(part)
            return current[idx] if idx < len(current) else MISSING
    return MISSING


# ---------------------------------------------------------------------------
# Truthiness
# ---------------------------------------------------------------------------

def is_truthy(value: Any) -> bool:
    """Positive-block test: anything but missing/None/""/False/empty list."""
    if value is MISSING or value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, SEQUENCE_TYPES):
        return len(value) > 0
    return True


def is_empty(value: Any) -> bool:
    """Negative-block test: missing, None, "" or an empty list."""
    if value is MISSING or value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, SEQUENCE_TYPES):
        return len(value) == 0
    return False


# ---------------------------------------------------------------------------
# Stringification
# ---------------------------------------------------------------------------

def format_number(value: float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def stringify(value: Any) -> str:
    """String form used as formatter input (mirrors JS ``String(value)``)."""
    if value is MISSING or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, SEQUENCE_TYPES):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, Mapping):
        return to_json(value, fallback="[Object]")
    return str(value)


def to_json(value: Any, fallback: str = "[Invalid JSON]") -> str:
    """Compact JSON (no spaces), as JSON.stringify produces."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return fallback


def to_text(value: Any) -> str:
    """String form for a bare ``{{name}}`` substitution."""
    if isinstance(value, (Mapping, *SEQUENCE_TYPES)):
        return to_json(value, fallback="[Object]")
    return stringify(value)
