"""Template rendering.

Placeholders are resolved against the document, run through their filter
chains and substituted. Attribute values get the raw text; everything in
body context is replaced by a marker span and rendered as markdown in a
second pass. ``{{file.content}}`` becomes a block holding the rendered
document body. Scripts in the template are prepared for re-execution but
never executed here; that is left to whoever displays the result.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable

from bs4 import BeautifulSoup, NavigableString, Tag

from ..document import DocumentContext
from ..values import Empty, FilterValue, ListValue, Number, Text, from_raw, to_text
from .filters import apply_filter_chain
from .markdown import MarkdownRenderer
from .placeholders import Placeholder, scan_placeholders

logger = logging.getLogger(__name__)

CUSTOM_VIEW_CLASS = "obsidian-custom-view-render"
CONTENT_CLASS = "markdown-rendered-content"
SIZER_CLASSES = ["markdown-preview-sizer", "markdown-preview-section"]

BUILTIN_VALUES: dict[str, Callable[[DocumentContext], FilterValue]] = {
    "name": lambda doc: Text(doc.name),
    "basename": lambda doc: Text(doc.basename),
    "path": lambda doc: Text(doc.path),
    "folder": lambda doc: Text(doc.folder),
    "extension": lambda doc: Text(doc.extension),
    "size": lambda doc: Number(doc.size),
    "ctime": lambda doc: Number(doc.ctime),
    "mtime": lambda doc: Number(doc.mtime),
}


@dataclass(frozen=True)
class PreparedScript:
    """A template script, ready for the host to execute if it chooses to."""

    attrs: dict[str, str]
    code: str | None = None  # inline code wrapped in an immediately-invoked function
    src: str | None = None  # external script, only when there is no inline code


@dataclass
class RenderedView:
    container: Tag
    scripts: list[PreparedScript] = field(default_factory=list)

    @property
    def html(self) -> str:
        return self.container.decode_contents()


def resolve_value(key: str, doc: DocumentContext, index: int | None = None, *, builtins_first: bool = True) -> FilterValue | None:
    """Resolve a placeholder key to a value; None when the key is unknown.

    ``file.``-prefixed keys look at built-ins before frontmatter; bare keys
    look at frontmatter first.
    """
    value: FilterValue | None = None
    in_frontmatter = key in doc.frontmatter

    if builtins_first and key in BUILTIN_VALUES:
        value = BUILTIN_VALUES[key](doc)
    elif in_frontmatter:
        value = from_raw(doc.frontmatter[key])
    elif key in BUILTIN_VALUES:
        value = BUILTIN_VALUES[key](doc)
    else:
        return None

    if index is not None and isinstance(value, ListValue):
        return value.items[index] if index < len(value.items) else Text("")
    return value


def _unwrap_single_paragraph(mount: Tag) -> None:
    children = list(mount.children)
    elements = [child for child in children if isinstance(child, Tag)]
    blanks = [child for child in children if isinstance(child, NavigableString) and not child.strip()]
    if len(elements) != 1 or elements[0].name != "p" or len(elements) + len(blanks) != len(children):
        return
    for blank in blanks:
        blank.extract()
    elements[0].unwrap()


def _attr_text(value) -> str:
    return " ".join(value) if isinstance(value, list) else str(value)


def prepare_scripts(container: Tag, factory: BeautifulSoup) -> list[PreparedScript]:
    """Replace every <script> with a fresh clone and describe it.

    Attributes are copied; inline code is wrapped in an IIFE so that
    top-level declarations of separate scripts do not collide.
    """
    prepared = []
    for old in container.find_all("script"):
        attrs = {name: _attr_text(value) for name, value in old.attrs.items()}
        new = factory.new_tag("script", attrs=dict(attrs))

        code = old.get_text().strip()
        wrapped = f"(function() {{\n{code}\n}})();" if code else None
        if wrapped:
            new.string = wrapped

        old.replace_with(new)
        prepared.append(
            PreparedScript(attrs=attrs, code=wrapped, src=attrs.get("src") if not code else None)
        )
    return prepared


async def render_template(
    template: str,
    doc: DocumentContext,
    markdown: MarkdownRenderer,
    *,
    body_text: str | None = None,
    container: Tag | None = None,
) -> RenderedView:
    """
    Render a view template for a document.

    Args:
        template: HTML with ``{{...}}`` placeholders
        doc: Document being rendered
        markdown: Renderer used for body-context values and the document body
        body_text: Document body (defaults to ``doc.body``)
        container: Element to render into; its children are replaced

    Returns:
        The populated container and the scripts found in it
    """
    body = doc.body if body_text is None else body_text
    token = uuid.uuid4().hex[:12]
    markdown_queue: list[tuple[str, str]] = []
    content_ids: list[str] = []

    def substitute(placeholder: Placeholder) -> str:
        if placeholder.is_content:
            content_id = f"custom-view-content-{len(content_ids)}-{token}"
            content_ids.append(content_id)
            return f'<div id="{content_id}" class="{CONTENT_CLASS}"></div>'

        value = resolve_value(
            placeholder.name, doc, placeholder.index, builtins_first=placeholder.is_file_key
        )
        if value is None:
            return ""
        if placeholder.chain:
            value = apply_filter_chain(value, placeholder.chain)
        if isinstance(value, Empty):
            return ""

        text = to_text(value)
        if placeholder.in_attribute or not text:
            return text

        marker_id = f"cv-md-{len(markdown_queue)}-{token}"
        markdown_queue.append((marker_id, text))
        return f'<span id="{marker_id}"></span>'

    pieces = []
    pos = 0
    for placeholder in scan_placeholders(template):
        pieces.append(template[pos:placeholder.start])
        pieces.append(substitute(placeholder))
        pos = placeholder.end
    pieces.append(template[pos:])
    filled = "".join(pieces)

    logger.debug(f"Rendering {doc.path}: {len(markdown_queue)} markdown values, {len(content_ids)} content blocks")

    # Parse detached, then move nodes into the real container.
    fragment = BeautifulSoup(filled, "html.parser")
    if container is None:
        container = fragment.new_tag("div", attrs={"class": CUSTOM_VIEW_CLASS})
    else:
        container.clear()
    for node in list(fragment.contents):
        container.append(node.extract())

    for marker_id, text in markdown_queue:
        mount = container.find(attrs={"id": marker_id})
        if mount is None:
            continue
        await markdown.render(text, mount, doc.path)
        del mount["id"]
        _unwrap_single_paragraph(mount)

    for content_id in content_ids:
        content_el = container.find(attrs={"id": content_id})
        if content_el is None:
            continue
        sizer = fragment.new_tag("div", attrs={"class": " ".join(SIZER_CLASSES)})
        content_el.append(sizer)
        await markdown.render(body, sizer, doc.path)
        del content_el["id"]

    scripts = prepare_scripts(container, fragment)
    return RenderedView(container=container, scripts=scripts)
