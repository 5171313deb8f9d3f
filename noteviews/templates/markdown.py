"""Markdown rendering into BeautifulSoup mount points."""

from __future__ import annotations

import html
import posixpath
from typing import Protocol

from bs4 import BeautifulSoup, NavigableString, Tag
from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline

from ..vault.loader import Vault
from ..vault.parser import link_path

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".bmp", ".avif"}


class MarkdownRenderer(Protocol):
    """Renders markdown text into a mount element, appending children."""

    async def render(self, markdown_text: str, mount: Tag, source_path: str) -> None: ...


def _render_wikilink(self, tokens, idx, options, env) -> str:
    meta = tokens[idx].meta
    return (
        f'<a data-href="{html.escape(meta["target"], quote=True)}" '
        f'href="{html.escape(meta["href"], quote=True)}" '
        f'class="internal-link">{html.escape(meta["display"])}</a>'
    )


def _render_embed(self, tokens, idx, options, env) -> str:
    meta = tokens[idx].meta
    href = html.escape(meta["href"], quote=True)
    if posixpath.splitext(meta["target"])[1].lower() in IMAGE_EXTENSIONS:
        return f'<img src="{href}" alt="{html.escape(meta["display"], quote=True)}">'
    return f'<span class="internal-embed" src="{href}">{html.escape(meta["target"])}</span>'


class MarkdownItRenderer:
    """Default renderer: markdown-it (CommonMark + tables) with wiki-links.

    ``[[target|alias]]`` and ``![[target]]`` are parsed by an inline rule,
    so code spans and fenced blocks keep them as literal text.
    """

    def __init__(self, vault: Vault | None = None):
        self.vault = vault
        self._md = MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])
        self._md.inline.ruler.before("link", "wikilink", self._wikilink_rule)
        self._md.add_render_rule("wikilink", _render_wikilink)
        self._md.add_render_rule("wikilink_embed", _render_embed)

    def _href(self, target: str, source_path: str) -> str:
        if self.vault is not None:
            resolved = self.vault.resolve_link_target(target, source_path)
            if resolved is not None:
                return resolved
        return target

    def _wikilink_rule(self, state: StateInline, silent: bool) -> bool:
        src, pos = state.src, state.pos
        embed = src.startswith("![[", pos)
        if not embed and not src.startswith("[[", pos):
            return False

        start = pos + (3 if embed else 2)
        end = src.find("]]", start, state.posMax)
        if end == -1:
            return False
        inner = src[start:end]
        if not inner.strip() or any(c in inner for c in "[]\n"):
            return False

        if not silent:
            target = link_path(inner)
            alias = inner.split("|", 1)[1] if "|" in inner else ""
            token = state.push("wikilink_embed" if embed else "wikilink", "", 0)
            token.content = inner
            token.meta = {
                "target": target,
                "href": self._href(target, state.env.get("source_path", "")),
                "display": alias if embed else (alias or inner),
            }
        state.pos = end + 2
        return True

    def to_html(self, markdown_text: str, source_path: str) -> str:
        return self._md.render(markdown_text, {"source_path": source_path})

    async def render(self, markdown_text: str, mount: Tag, source_path: str) -> None:
        fragment = BeautifulSoup(self.to_html(markdown_text, source_path), "html.parser")
        for node in list(fragment.contents):
            # markdown-it ends every block with a newline; those are not content.
            if isinstance(node, NavigableString) and not node.strip():
                continue
            mount.append(node.extract())
