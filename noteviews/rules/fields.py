"""Resolve a filter's field name to a typed value for one document."""

from __future__ import annotations

from typing import Any, Callable

from ..document import DocumentContext
from ..values import EMPTY, FilterValue, ListValue, Number, Text, from_raw
from ..vault.parser import frontmatter_tags, strip_tag_prefix

FILE_FIELDS: dict[str, Callable[[DocumentContext], FilterValue]] = {
    "file.name": lambda doc: Text(doc.name),
    "file.basename": lambda doc: Text(doc.basename),
    "file.path": lambda doc: Text(doc.path),
    "file.folder": lambda doc: Text(doc.folder),
    "file.extension": lambda doc: Text(doc.extension),
    "file.size": lambda doc: Number(doc.size),
    "file.ctime": lambda doc: Number(doc.ctime),
    "file.mtime": lambda doc: Number(doc.mtime),
    "file": lambda doc: Text(doc.path),
}


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def resolve_file_tags(doc: DocumentContext) -> ListValue:
    """Body tags plus frontmatter tags, '#' stripped, first occurrence kept."""
    tags: list[str] = []
    for tag in [*doc.tags, *frontmatter_tags(dict(doc.frontmatter))]:
        cleaned = strip_tag_prefix(tag)
        if cleaned and cleaned not in tags:
            tags.append(cleaned)
    return ListValue(tuple(Text(t) for t in tags))


def resolve_aliases(doc: DocumentContext) -> ListValue:
    """Union of frontmatter ``aliases`` and ``alias``.

    The two sources are skipped only when they are the very same object;
    equal values from distinct sources are kept as they are.
    """
    primary = doc.frontmatter.get("aliases")
    secondary = doc.frontmatter.get("alias")

    items = _as_list(primary)
    if secondary is not None and secondary is not primary:
        items = [*items, *_as_list(secondary)]
    return from_raw(items)


def resolve_field(field: str, doc: DocumentContext) -> FilterValue | None:
    """Resolve a field to a value.

    Returns None for an unknown ``file.*`` built-in (the leaf cannot match);
    a missing frontmatter key resolves to Empty.
    """
    if field in FILE_FIELDS:
        return FILE_FIELDS[field](doc)
    if field in ("file tags", "tags"):
        return resolve_file_tags(doc)
    if field == "aliases":
        return resolve_aliases(doc)
    if field.startswith("file."):
        return None

    if field not in doc.frontmatter:
        return EMPTY
    return from_raw(doc.frontmatter[field])
