"""Operator semantics for leaf filters.

Operators are data (strings in the persisted rules); evaluation is code.
Every function here is total: an operator that is unknown, or not defined
for the shape of the resolved value, evaluates to False.

Text comparisons are case-insensitive.
"""

from __future__ import annotations

import operator as op
import re
from datetime import date, datetime, timezone
from typing import Callable

from ..document import DocumentContext
from ..values import (
    DATE_PATTERN,
    DATETIME_PATTERN,
    FilterValue,
    ListValue,
    Number,
    Text,
    is_truthy,
    parse_number,
    to_number,
    to_text,
)
from ..vault.parser import extract_value_links, strip_tag_prefix
from .fields import resolve_file_tags

# Negated operators evaluate their positive form and invert it.
NEGATIONS = {
    "is not": "is",
    "does not contain": "contains",
    "does not contain any of": "contains any of",
    "does not contain all of": "contains all of",
    "not on": "on",
    "does not link to": "links to",
    "is not in folder": "in folder",
    "does not have tag": "has tag",
    "does not have property": "has property",
}

TEXT_TESTS: dict[str, Callable[[str, str], bool]] = {
    "is": lambda target, needle: target == needle,
    "contains": lambda target, needle: needle in target,
    "starts with": lambda target, needle: target.startswith(needle),
    "ends with": lambda target, needle: target.endswith(needle),
}

# Defined for scalars only; lists never match.
SCALAR_ONLY = {"starts with", "ends with"}

TOKEN_TESTS: dict[str, Callable[[list[str], list[str]], bool]] = {
    "contains any of": lambda elements, tokens: any(t in e for t in tokens for e in elements),
    "contains all of": lambda elements, tokens: all(any(t in e for e in elements) for t in tokens),
}

NUMBER_COMPARISONS: dict[str, Callable[[float, float], bool]] = {
    "=": op.eq,
    "≠": op.ne,
    "<": op.lt,
    "≤": op.le,
    ">": op.gt,
    "≥": op.ge,
}

DAY_COMPARISONS: dict[str, Callable[[date, date], bool]] = {
    "on": op.eq,
    "not on": op.ne,
    "before": op.lt,
    "on or before": op.le,
    "after": op.gt,
    "on or after": op.ge,
}

_BRACKETED_LINK = re.compile(r"^\[\[(.*)\]\]$")


def split_tokens(filter_value: str) -> list[str]:
    """Split a multi-value filter value on commas, dropping blanks."""
    return [t.strip().lower() for t in filter_value.split(",") if t.strip()]


def _norm(value: FilterValue) -> str:
    return to_text(value).lower()


def _elements(target: FilterValue) -> list[str]:
    if isinstance(target, ListValue):
        return [_norm(item) for item in target.items]
    return [_norm(target)]


def to_day(value: FilterValue) -> date | None:
    """Calendar day of a value: ms timestamps in UTC, ISO date(-time) text."""
    if isinstance(value, Number):
        try:
            return datetime.fromtimestamp(value.value / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, Text):
        text = value.value.strip()
        if DATE_PATTERN.match(text) or DATETIME_PATTERN.match(text):
            try:
                return date.fromisoformat(text[:10])
            except ValueError:
                return None
    return None


def _compare_numbers(compare: Callable[[float, float], bool], target: FilterValue, filter_value: str) -> bool:
    if isinstance(target, ListValue):
        return False
    left = to_number(target)
    right = parse_number(filter_value)
    if left is None or right is None:
        return False
    return compare(left, right)


def _compare_days(compare: Callable[[date, date], bool], target: FilterValue, filter_value: str) -> bool:
    if isinstance(target, ListValue):
        return False
    left = to_day(target)
    right = to_day(Text(filter_value))
    if left is None or right is None:
        return False
    return compare(left, right)


def _positive(operator: str) -> tuple[str, bool]:
    if operator in NEGATIONS:
        return NEGATIONS[operator], True
    return operator, False


def evaluate_operator(operator: str, target: FilterValue, filter_value: str) -> bool:
    """Evaluate a value operator against a resolved field value."""
    if operator == "is empty":
        return not is_truthy(target)
    if operator == "is not empty":
        return is_truthy(target)
    if operator in NUMBER_COMPARISONS:
        return _compare_numbers(NUMBER_COMPARISONS[operator], target, filter_value)
    if operator in DAY_COMPARISONS:
        return _compare_days(DAY_COMPARISONS[operator], target, filter_value)

    positive, negated = _positive(operator)

    if positive in TOKEN_TESTS:
        tokens = split_tokens(filter_value)
        if not tokens:
            return False
        result = TOKEN_TESTS[positive](_elements(target), tokens)
    elif positive in TEXT_TESTS:
        if isinstance(target, ListValue) and positive in SCALAR_ONLY:
            return False
        test = TEXT_TESTS[positive]
        needle = filter_value.lower()
        result = any(test(element, needle) for element in _elements(target))
    else:
        return False

    return not result if negated else result


# -- file pseudo-field ---------------------------------------------------------


def _links_to(filter_value: str, doc: DocumentContext) -> bool | None:
    raw = filter_value.strip()
    bracketed = _BRACKETED_LINK.match(raw)
    if bracketed:
        raw = bracketed.group(1)
    if not raw:
        return None

    wanted = doc.resolve_link(raw)
    outbound = {doc.resolve_link(link) for link in doc.links}
    for value in doc.frontmatter.values():
        outbound.update(doc.resolve_link(link) for link in extract_value_links(value))
    return wanted in outbound


def _in_folder(filter_value: str, doc: DocumentContext) -> bool | None:
    wanted = filter_value.strip().strip("/")
    if not wanted:
        return None
    folder = doc.folder.strip("/")
    return folder == wanted or folder.startswith(f"{wanted}/")


def _tag_matches(wanted: str, tag: str) -> bool:
    return tag == wanted or tag.startswith(f"{wanted}/") or wanted.startswith(f"{tag}/")


def _has_tag(filter_value: str, doc: DocumentContext) -> bool | None:
    wanted = [strip_tag_prefix(t).lower() for t in filter_value.split(",")]
    wanted = [t for t in wanted if t]
    if not wanted:
        return None

    tags = [_norm(t) for t in resolve_file_tags(doc).items]
    return any(_tag_matches(w, t) for w in wanted for t in tags)


def _has_property(filter_value: str, doc: DocumentContext) -> bool | None:
    key = filter_value.strip()
    if not key:
        return None
    return key in doc.frontmatter


FILE_TESTS: dict[str, Callable[[str, DocumentContext], bool | None]] = {
    "links to": _links_to,
    "in folder": _in_folder,
    "has tag": _has_tag,
    "has property": _has_property,
}


def is_file_operator(operator: str) -> bool:
    return _positive(operator)[0] in FILE_TESTS


def evaluate_file_operator(operator: str, filter_value: str, doc: DocumentContext) -> bool:
    """Evaluate an operator of the ``file`` pseudo-field.

    A test that cannot be decided (empty tag list, empty link) is False for
    both the positive and the negated operator.
    """
    positive, negated = _positive(operator)
    test = FILE_TESTS.get(positive)
    if test is None:
        return False
    result = test(filter_value, doc)
    if result is None:
        return False
    return not result if negated else result
