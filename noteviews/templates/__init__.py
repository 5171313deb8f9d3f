"""Template placeholders, filter chains and rendering."""

from .filters import FILTERS, apply_filter_chain
from .markdown import MarkdownItRenderer, MarkdownRenderer
from .renderer import PreparedScript, RenderedView, render_template

__all__ = [
    "FILTERS",
    "apply_filter_chain",
    "MarkdownItRenderer",
    "MarkdownRenderer",
    "PreparedScript",
    "RenderedView",
    "render_template",
]
