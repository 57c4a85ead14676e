"""Profile field resolution.

A selector names one raw field or an ordered list of fallback fields; the first
candidate carrying a usable value wins. Absence is always ``None``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .profiles.models import FallbackFields, FieldSelector, SingleField


@dataclass(frozen=True, slots=True)
class FieldMatch:
    """Raw field that satisfied a selector, with its original value."""

    key: str
    value: Any


def field_candidates(selector: FieldSelector | None) -> list[str]:
    """Return the raw field names a selector tries, in order."""
    if selector is None:
        return []
    if isinstance(selector, SingleField):
        return [selector.field]
    if isinstance(selector, FallbackFields):
        return list(selector.fields)
    return []


def to_non_empty_text(value: Any) -> str | None:
    """Coerce a scalar to trimmed text; blank strings and non-scalars are absent."""
    if value is None:
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _has_renderable_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def resolve_text(record: Mapping[str, Any], selector: FieldSelector | None) -> str | None:
    """Return the first non-empty text value among the selector's candidates."""
    for name in field_candidates(selector):
        text = to_non_empty_text(record.get(name))
        if text is not None:
            return text
    return None


def resolve_match(record: Mapping[str, Any], selector: FieldSelector | None) -> FieldMatch | None:
    """Return which candidate matched and its raw value (objects and lists included)."""
    for name in field_candidates(selector):
        if name not in record:
            continue
        value = record[name]
        if not _has_renderable_value(value):
            continue
        return FieldMatch(key=name, value=value)
    return None
