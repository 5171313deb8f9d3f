"""Typed values flowing through the rule matcher and filter chains.

Frontmatter arrives untyped. Everything downstream works on the explicit
variants below instead: ``Text``, ``Number``, ``Bool``, ``ListValue`` and
``Empty``. String conversion follows the host's conventions (``true``/``false``
for booleans, integral floats printed without a fraction, lists joined with
``,``) so that templates render the same text the host would.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

# Shared by editor-time property scanning and runtime coercion.
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T")

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_LEADING_NUMBER_PATTERN = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Number:
    value: int | float


@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class ListValue:
    items: tuple[Text | Number, ...] = ()


@dataclass(frozen=True)
class Empty:
    pass


FilterValue = Union[Text, Number, Bool, ListValue, Empty]

EMPTY = Empty()


def normalize_number(value: int | float) -> int | float:
    """Collapse integral floats to ints so ``8.0`` and ``8`` behave alike."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def iso_text(value: date | datetime) -> str:
    """Render a YAML date/datetime the way it was written in frontmatter."""
    if isinstance(value, datetime):
        if value.microsecond:
            return value.isoformat()
        return value.isoformat(timespec="seconds")
    return value.isoformat()


def _list_item(obj: Any) -> Text | Number:
    if isinstance(obj, Text | Number):
        return obj
    if isinstance(obj, bool):
        return Text("true" if obj else "false")
    if isinstance(obj, int | float):
        return Number(obj)
    return Text(to_text(from_raw(obj)))


def from_raw(obj: Any) -> FilterValue:
    """Wrap a plain Python value (frontmatter, filter output) as a FilterValue."""
    if obj is None:
        return EMPTY
    if isinstance(obj, Text | Number | Bool | ListValue | Empty):
        return obj
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return Bool(obj)
    if isinstance(obj, int | float):
        return Number(obj)
    if isinstance(obj, str):
        return Text(obj)
    if isinstance(obj, date | datetime):
        return Text(iso_text(obj))
    if isinstance(obj, list | tuple | set | frozenset):
        return ListValue(tuple(_list_item(item) for item in obj))
    if isinstance(obj, dict):
        return Text(json.dumps(obj, default=str))
    return Text(str(obj))


def to_raw(value: FilterValue) -> Any:
    """Unwrap a FilterValue into plain Python data (for JSON output)."""
    if isinstance(value, Text | Number | Bool):
        return value.value
    if isinstance(value, ListValue):
        return [item.value for item in value.items]
    return None


def format_number(value: int | float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def to_text(value: FilterValue) -> str:
    """Stringify a value the way the host's template engine does."""
    if isinstance(value, Text):
        return value.value
    if isinstance(value, Number):
        return format_number(value.value)
    if isinstance(value, Bool):
        return "true" if value.value else "false"
    if isinstance(value, ListValue):
        return ",".join(to_text(item) for item in value.items)
    return ""


def parse_number(text: str) -> int | float | None:
    """Parse text that is entirely a decimal number; anything else is None."""
    stripped = text.strip()
    if not _NUMBER_PATTERN.match(stripped):
        return None
    if re.fullmatch(r"[+-]?\d+", stripped):
        return int(stripped)
    return float(stripped)


def parse_leading_number(text: str) -> float | None:
    """Parse the leading numeric prefix of text (``"12px"`` -> 12.0)."""
    match = _LEADING_NUMBER_PATTERN.match(text)
    if not match:
        return None
    return float(match.group(0))


def to_number(value: FilterValue) -> int | float | None:
    """Numeric coercion used by the comparison operators."""
    if isinstance(value, Number):
        return value.value
    if isinstance(value, Text):
        return parse_number(value.value)
    return None


def is_truthy(value: FilterValue) -> bool:
    if isinstance(value, Text):
        return value.value != ""
    if isinstance(value, Number):
        return value.value != 0 and not (isinstance(value.value, float) and math.isnan(value.value))
    if isinstance(value, Bool):
        return value.value
    if isinstance(value, ListValue):
        return len(value.items) > 0
    return False


def value_type(value: FilterValue) -> str:
    """Runtime type of a resolved value, in property-type vocabulary."""
    if isinstance(value, ListValue):
        return "list"
    if isinstance(value, Number):
        return "number"
    if isinstance(value, Bool):
        return "checkbox"
    if isinstance(value, Text):
        if DATE_PATTERN.match(value.value):
            return "date"
        if DATETIME_PATTERN.match(value.value):
            return "datetime"
        return "text"
    return "unknown"
