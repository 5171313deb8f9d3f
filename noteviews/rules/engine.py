from __future__ import annotations

import logging
from typing import Iterable

from ..document import DocumentContext
from ..models import Condition, Filter, FilterGroup, ViewConfig
from .fields import resolve_field
from .operators import evaluate_file_operator, evaluate_operator, is_file_operator

logger = logging.getLogger(__name__)


def evaluate_filter(leaf: Filter, doc: DocumentContext) -> bool:
    """Evaluate one leaf filter against a document."""
    value = leaf.value if isinstance(leaf.value, str) else ("" if leaf.value is None else str(leaf.value))

    if leaf.field == "file" and is_file_operator(leaf.operator):
        return evaluate_file_operator(leaf.operator, value, doc)

    target = resolve_field(leaf.field, doc)
    if target is None:
        return False
    return evaluate_operator(leaf.operator, target, value)


def evaluate_condition(condition: Condition, doc: DocumentContext) -> bool:
    if isinstance(condition, FilterGroup):
        return matches(condition, doc)
    if isinstance(condition, Filter):
        return evaluate_filter(condition, doc)
    return False


def matches(group: FilterGroup | None, doc: DocumentContext) -> bool:
    """
    Evaluate a rule tree against a document.

    A group without conditions matches everything, at any depth. NOR is the
    negation of OR over the same (non-empty) conditions.
    """
    if group is None or not group.conditions:
        return True

    results = [evaluate_condition(c, doc) for c in group.conditions]

    conjunction = (group.operator or "AND").strip().upper()
    if conjunction == "AND":
        return all(results)
    if conjunction == "OR":
        return any(results)
    if conjunction == "NOR":
        return not any(results)

    logger.debug(f"Unknown group operator {group.operator!r}; group does not match")
    return False


def select_view(views: Iterable[ViewConfig], doc: DocumentContext) -> ViewConfig | None:
    """Return the first view whose rules match the document, in list order."""
    for view in views:
        if matches(view.rules, doc):
            logger.debug(f"View {view.name!r} matched {doc.path}")
            return view
    return None
