"""Data models for views, rule trees, and property definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

# Group combinators
Conjunction = Literal["AND", "OR", "NOR"]

# Advisory property types, used by the rule editor and `views check`
PropertyType = Literal[
    "text",
    "number",
    "date",
    "datetime",
    "list",
    "checkbox",
    "file",
    "unknown",
]


@dataclass
class Filter:
    """A leaf condition: compare one field against a value."""

    field: str
    operator: str
    value: str | None = None  # None when the persisted filter carried no value


@dataclass
class FilterGroup:
    """A boolean combinator over child filters and groups."""

    operator: str = "AND"
    conditions: list[Condition] = field(default_factory=list)


Condition = Union[Filter, FilterGroup]


@dataclass
class ViewConfig:
    """A named (rules, template) pair. First matching view wins."""

    id: str
    name: str
    rules: FilterGroup = field(default_factory=FilterGroup)
    template: str = ""


@dataclass(frozen=True)
class PropertyDef:
    """A field key and its inferred type."""

    key: str
    type: PropertyType
