# =============================================================================
# core/json_path.py  —  Path Resolver & Object Flattener
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Two small, pure helpers used by extract_json:
#
#   resolve_json_path(value, "data.customers[0].name")
#       Walks a nested dict/list structure.  Supports dot segments, bracket
#       indices ("a[0]" == "a.0") and a bracket wildcard ("items[*].id")
#       that fans out over a list.
#
#   flatten_object({"a": {"b": 1}})  ->  {"a.b": 1}
#       Collapses nested dicts into dot-notation keys.  Lists are leaves.
#
# NOT-FOUND SEMANTICS:
#   A missing key, an out-of-range index, or a step through a scalar all
#   resolve to None.  Nothing in here raises for a bad path.
# =============================================================================

import re
from typing import Any

_INDEX_RE = re.compile(r"\[(\d+)\]")
_WILDCARD_RE = re.compile(r"\[\*\]")


def split_json_path(path: str) -> list[str]:
    """Normalize bracket syntax to dot segments and split.

    Empty segments are dropped, so "[0].name" and "0.name" are the same path.
    """
    normalized = _WILDCARD_RE.sub(".*", _INDEX_RE.sub(r".\1", path))
    return [segment for segment in normalized.split(".") if segment]


def resolve_json_path(value: Any, path: str) -> Any:
    """Resolve a dot/bracket path against a nested value.

    Args:
        value: Any JSON-like structure (dicts, lists, scalars).
        path: e.g. "data.customers", "results[0].name", "items[*].id".

    Returns:
        The value at the path, a list of per-element results for a
        wildcard, or None when the path does not resolve.
    """
    return _resolve_segments(value, split_json_path(path))


def _resolve_segments(current: Any, segments: list[str]) -> Any:
    for i, segment in enumerate(segments):
        if current is None:
            return None

        if segment == "*" and isinstance(current, list):
            remaining = segments[i + 1:]
            if remaining:
                return [_resolve_segments(item, remaining) for item in current]
            return current

        if isinstance(current, list):
            if not segment.isdecimal():
                return None
            index = int(segment)
            current = current[index] if index < len(current) else None
        elif isinstance(current, dict):
            current = current.get(segment)
        else:
            return None

    return current


def flatten_object(obj: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested dicts into single-level dot-notation keys.

    {"a": {"b": 1, "c": {"d": 2}}}  ->  {"a.b": 1, "a.c.d": 2}

    Lists are kept intact under their key.  If two paths produce the same
    key, the later one wins.
    """
    result: dict[str, Any] = {}
    for key, value in obj.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            result.update(flatten_object(value, full_key))
        else:
            result[full_key] = value
    return result
