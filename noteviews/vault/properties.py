"""Property discovery and the operator catalogue for rule authoring.

Property types here are advisory: they drive which operators an editor
offers. The matcher re-derives the type of every resolved value itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models import Condition, Filter, FilterGroup, PropertyDef, PropertyType
from ..values import DATE_PATTERN, DATETIME_PATTERN
from .loader import Vault

EMPTY_OPERATORS = ["is empty", "is not empty"]

TEXT_OPERATORS = [
    "contains",
    "does not contain",
    "contains any of",
    "does not contain any of",
    "contains all of",
    "does not contain all of",
    "is",
    "is not",
    "starts with",
    "ends with",
    *EMPTY_OPERATORS,
]

LIST_OPERATORS = [
    "contains",
    "does not contain",
    "contains any of",
    "does not contain any of",
    "contains all of",
    "does not contain all of",
    "is",
    "is not",
    *EMPTY_OPERATORS,
]

NUMBER_OPERATORS = ["=", "≠", "<", "≤", ">", "≥", *EMPTY_OPERATORS]

DATE_OPERATORS = ["on", "not on", "before", "on or before", "after", "on or after", *EMPTY_OPERATORS]

FILE_OPERATORS = [
    "links to",
    "does not link to",
    "in folder",
    "is not in folder",
    "has tag",
    "does not have tag",
    "has property",
    "does not have property",
]

OPERATORS: dict[str, list[str]] = {
    "text": TEXT_OPERATORS,
    "list": LIST_OPERATORS,
    "number": NUMBER_OPERATORS,
    "date": DATE_OPERATORS,
    "checkbox": ["is"],
    "file": FILE_OPERATORS,
}

BUILTIN_PROPERTIES: dict[str, PropertyType] = {
    "file": "file",
    "file.name": "text",
    "file.basename": "text",
    "file.path": "text",
    "file.folder": "text",
    "file.extension": "text",
    "file.size": "number",
    "file.ctime": "datetime",
    "file.mtime": "datetime",
    "file tags": "list",
    "aliases": "list",
    "tags": "list",
}


def infer_property_type(value: Any) -> PropertyType:
    """Infer a property type from a raw frontmatter value."""
    if value is None:
        return "unknown"
    if isinstance(value, list):
        return "list"
    if isinstance(value, bool):
        return "checkbox"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        if DATE_PATTERN.match(value):
            return "date"
        if DATETIME_PATTERN.match(value):
            return "datetime"
    return "text"


def operators_for(prop_type: str) -> list[str]:
    """Operators valid for a property type (datetime shares the date set)."""
    if prop_type == "datetime":
        prop_type = "date"
    return OPERATORS.get(prop_type, TEXT_OPERATORS)


def scan_properties(vault: Vault) -> list[PropertyDef]:
    """Scan the vault's frontmatter and infer a type for every key.

    Built-in fields come first; a key keeps the first non-unknown type seen.
    """
    prop_map: dict[str, PropertyType] = dict(BUILTIN_PROPERTIES)

    for note in vault.all_notes:
        for key, value in note.frontmatter.items():
            if key == "position":
                continue
            if key in prop_map and prop_map[key] != "unknown":
                continue
            prop_map[key] = infer_property_type(value)

    return sorted((PropertyDef(key=k, type=t) for k, t in prop_map.items()), key=lambda p: p.key)


@dataclass
class RuleIssue:
    """An operator that is not offered for its field's type."""

    view: str
    field: str
    operator: str
    expected_type: str

    def __str__(self) -> str:
        return (
            f"[{self.view}] '{self.field}' ({self.expected_type}) "
            f"does not support operator '{self.operator}'"
        )


def _walk_filters(condition: Condition):
    if isinstance(condition, Filter):
        yield condition
    elif isinstance(condition, FilterGroup):
        for child in condition.conditions:
            yield from _walk_filters(child)


def validate_rules(view_name: str, group: FilterGroup, properties: list[PropertyDef]) -> list[RuleIssue]:
    """Report leaves whose operator is not valid for the field's inferred type."""
    types = {p.key: p.type for p in properties}
    issues = []
    for leaf in _walk_filters(group):
        prop_type = types.get(leaf.field, "text")
        if leaf.operator not in operators_for(prop_type):
            issues.append(
                RuleIssue(view=view_name, field=leaf.field, operator=leaf.operator, expected_type=prop_type)
            )
    return issues
