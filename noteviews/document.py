"""The read-only document view consumed by the rule matcher and renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Protocol

from .vault.loader import Note
from .vault.parser import frontmatter_tags, link_path


class LinkResolver(Protocol):
    def resolve_link_target(self, link_text: str, source_path: str) -> str | None: ...


@dataclass(frozen=True)
class DocumentContext:
    """Identity, metadata, links and tags of one document.

    ``links`` holds the raw outbound wiki-link paths from the body;
    ``tags`` is the union of body tags and frontmatter tags, '#' stripped.
    """

    name: str
    basename: str
    path: str
    folder: str
    extension: str
    size: int = 0
    ctime: int = 0
    mtime: int = 0
    frontmatter: Mapping[str, Any] = field(default_factory=dict)
    links: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    body: str = ""
    resolver: LinkResolver | None = None

    @classmethod
    def from_note(cls, note: Note, resolver: LinkResolver | None = None) -> DocumentContext:
        tags: list[str] = []
        for tag in [*note.body_tags, *frontmatter_tags(note.frontmatter)]:
            if tag not in tags:
                tags.append(tag)

        return cls(
            name=note.name,
            basename=note.basename,
            path=note.rel_path,
            folder=note.folder,
            extension=note.extension,
            size=note.size,
            ctime=note.ctime,
            mtime=note.mtime,
            frontmatter=MappingProxyType(dict(note.frontmatter)),
            links=tuple(note.links),
            tags=tuple(tags),
            body=note.body,
            resolver=resolver,
        )

    def resolve_link(self, link_text: str) -> str:
        """Resolve link text relative to this document.

        Unresolvable links fall back to their normalized link path so that
        links to notes that do not exist yet still compare consistently.
        """
        if self.resolver is not None:
            resolved = self.resolver.resolve_link_target(link_text, self.path)
            if resolved is not None:
                return resolved.lower()
        fallback = link_path(link_text).lstrip("/").lower()
        if fallback and "." not in fallback.rsplit("/", 1)[-1]:
            fallback += ".md"
        return fallback
