"""View activation: decide whether a document gets a custom view, and show it.

The host tells us which display mode a document is in; we check the
settings, pick the first matching view, render it and hand the result to
a render target. Whenever no view applies, the target is asked to restore
its default presentation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from bs4 import BeautifulSoup, Tag

from .document import DocumentContext
from .models import ViewConfig
from .rules import select_view
from .settings import Settings
from .templates import MarkdownRenderer, PreparedScript, RenderedView, render_template
from .templates.renderer import CUSTOM_VIEW_CLASS

logger = logging.getLogger(__name__)

HIDE_MARKDOWN_CLASS = "obsidian-custom-view-hidden"
STYLE_ID = "custom-views-css"

VIEW_CSS = f"""
.{HIDE_MARKDOWN_CLASS} .markdown-source-view,
.{HIDE_MARKDOWN_CLASS} .markdown-preview-view {{
    display: none !important;
}}

.{CUSTOM_VIEW_CLASS} {{
    padding: 30px;
    height: 100%;
    overflow-y: auto;
    width: 100%;
    position: absolute;
    top: 0;
    left: 0;
    background-color: var(--background-primary);
    z-index: 10;
}}

.{HIDE_MARKDOWN_CLASS} {{
    position: relative;
}}

.{CUSTOM_VIEW_CLASS} .markdown-rendered-content {{
    margin-top: 20px;
}}

.{CUSTOM_VIEW_CLASS} .markdown-preview-section {{
    padding: 0;
}}

.{CUSTOM_VIEW_CLASS} .markdown-preview-section ul,
.{CUSTOM_VIEW_CLASS} .markdown-preview-section ol {{
    padding-left: 1.625em;
    margin-block-start: 1em;
    margin-block-end: 1em;
}}

.{CUSTOM_VIEW_CLASS} .markdown-preview-section li {{
    margin-block-start: 0.3em;
    margin-block-end: 0.3em;
}}

.{CUSTOM_VIEW_CLASS} .markdown-preview-section li > ul,
.{CUSTOM_VIEW_CLASS} .markdown-preview-section li > ol {{
    margin-block-start: 0.3em;
    margin-block-end: 0.3em;
}}

.{CUSTOM_VIEW_CLASS} .markdown-preview-section p {{
    margin-block-start: 1em;
    margin-block-end: 1em;
}}

.{CUSTOM_VIEW_CLASS} .markdown-preview-section p:first-child {{
    margin-block-start: 0;
}}

.{CUSTOM_VIEW_CLASS} .markdown-preview-section p:last-child {{
    margin-block-end: 0;
}}
"""


class DisplayMode(str, Enum):
    SOURCE = "source"
    LIVE_PREVIEW = "live_preview"
    READING = "reading"
    CANVAS = "canvas"


def should_render(settings: Settings, mode: DisplayMode) -> bool:
    """Whether a custom view may replace the default presentation in this mode."""
    if not settings.enabled:
        return False
    if mode == DisplayMode.SOURCE:
        return False
    if mode == DisplayMode.READING:
        return True
    if mode == DisplayMode.LIVE_PREVIEW:
        return settings.work_in_live_preview
    if mode == DisplayMode.CANVAS:
        return settings.work_in_canvas
    return False


class RenderTarget(Protocol):
    """Where a rendered view is displayed.

    ``attach`` / ``detach`` bracket the target's lifetime (stylesheet
    injection); ``show`` replaces the default presentation with a rendered
    view; ``restore`` brings the default presentation back.
    """

    def attach(self) -> None: ...

    def detach(self) -> None: ...

    def container(self) -> Tag | None: ...

    def show(self, doc: DocumentContext, view: ViewConfig, rendered: RenderedView) -> None: ...

    def restore(self, doc: DocumentContext) -> None: ...


class HtmlPageTarget:
    """Render target producing a standalone HTML page.

    The page carries the view stylesheet while attached. Scripts prepared
    by the renderer are only kept when ``allow_scripts`` is set; otherwise
    they are dropped from the output.
    """

    def __init__(self, allow_scripts: bool = False, output: Path | None = None):
        self.allow_scripts = allow_scripts
        self.output = output
        self.soup = BeautifulSoup(
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\"><title></title></head>"
            "<body><div class=\"markdown-view-content\"></div></body></html>",
            "html.parser",
        )
        self.current_view: ViewConfig | None = None
        self.scripts: list[PreparedScript] = []

    @property
    def content(self) -> Tag:
        return self.soup.find("div", class_="markdown-view-content")

    @property
    def style(self) -> Tag | None:
        return self.soup.find("style", id=STYLE_ID)

    def attach(self) -> None:
        if self.style is not None:
            return
        style = self.soup.new_tag("style", id=STYLE_ID)
        style.string = VIEW_CSS
        self.soup.head.append(style)

    def detach(self) -> None:
        style = self.style
        if style is not None:
            style.decompose()

    def container(self) -> Tag | None:
        return self.content.find("div", class_=CUSTOM_VIEW_CLASS)

    def _set_title(self, doc: DocumentContext) -> None:
        self.soup.title.string = doc.basename

    def show(self, doc: DocumentContext, view: ViewConfig, rendered: RenderedView) -> None:
        self._set_title(doc)
        existing = self.container()
        if existing is not None and existing is not rendered.container:
            existing.decompose()
        if rendered.container.parent is not self.content:
            self.content.append(rendered.container)
        if not self.allow_scripts:
            for script in rendered.container.find_all("script"):
                script.decompose()
        self.scripts = list(rendered.scripts) if self.allow_scripts else []
        classes = self.content.get("class", [])
        if HIDE_MARKDOWN_CLASS not in classes:
            self.content["class"] = [*classes, HIDE_MARKDOWN_CLASS]
        self.current_view = view

    def restore(self, doc: DocumentContext) -> None:
        self._set_title(doc)
        existing = self.container()
        if existing is not None:
            existing.decompose()
        self.content["class"] = [c for c in self.content.get("class", []) if c != HIDE_MARKDOWN_CLASS]
        preview = self.content.find("div", class_="markdown-preview-view")
        if preview is None:
            preview = self.soup.new_tag("div", attrs={"class": "markdown-preview-view"})
            self.content.append(preview)
        preview.string = doc.body
        self.current_view = None
        self.scripts = []

    def to_html(self) -> str:
        return str(self.soup)

    def write(self, path: Path | None = None) -> Path:
        target = path or self.output
        if target is None:
            raise ValueError("No output path given")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.to_html(), encoding="utf-8")
        return target


@dataclass
class ProcessOutcome:
    view: ViewConfig | None = None
    reason: str = "rendered"  # rendered | disabled | no-match | mode
    rendered: RenderedView | None = field(default=None, repr=False)

    @property
    def is_rendered(self) -> bool:
        return self.view is not None and self.rendered is not None


async def process_document(
    settings: Settings,
    doc: DocumentContext,
    mode: DisplayMode,
    target: RenderTarget,
    renderer: MarkdownRenderer,
) -> ProcessOutcome:
    """
    Show the first matching view for a document, or restore the default.

    Args:
        settings: Current settings (enabled flag, mode flags, ordered views)
        doc: Document being displayed
        mode: Display mode the host reports for the document
        target: Where the view is shown
        renderer: Markdown renderer for body-context values

    Returns:
        Which view was shown, or why none was
    """
    if not settings.enabled:
        target.restore(doc)
        return ProcessOutcome(reason="disabled")

    view = select_view(settings.views, doc)
    if view is None:
        logger.debug(f"No view matches {doc.path}")
        target.restore(doc)
        return ProcessOutcome(reason="no-match")

    if not should_render(settings, mode):
        logger.debug(f"View {view.name!r} matched {doc.path} but mode {mode.value} is not rendered")
        target.restore(doc)
        return ProcessOutcome(view=view, reason="mode")

    rendered = await render_template(view.template, doc, renderer, container=target.container())
    target.show(doc, view, rendered)
    return ProcessOutcome(view=view, reason="rendered", rendered=rendered)


