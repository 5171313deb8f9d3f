"""Rule matching: filter trees evaluated against document metadata."""

from .engine import matches, select_view
from .fields import resolve_field

__all__ = ["matches", "resolve_field", "select_view"]
