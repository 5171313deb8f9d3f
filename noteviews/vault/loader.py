"""Vault loading and link resolution."""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import frontmatter

from ..errors import NoteNotFoundError
from ..values import iso_text
from .parser import extract_links, extract_tags, link_path

logger = logging.getLogger(__name__)


@dataclass
class Note:
    """A markdown file in the vault with its parsed frontmatter."""

    path: Path  # absolute path on disk
    rel_path: str  # POSIX path relative to the vault root
    frontmatter: dict  # parsed YAML, dates normalized to ISO strings
    body: str  # text after the frontmatter block, trimmed
    raw: str  # full file text
    size: int = 0
    ctime: int = 0  # milliseconds since epoch
    mtime: int = 0
    links: list[str] = field(default_factory=list)  # [[target]] paths in the body
    body_tags: list[str] = field(default_factory=list)  # inline #tags, no '#'

    @property
    def name(self) -> str:
        """File name with extension."""
        return posixpath.basename(self.rel_path)

    @property
    def basename(self) -> str:
        """File name without extension."""
        return posixpath.splitext(self.name)[0]

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.name)[1].lstrip(".")

    @property
    def folder(self) -> str:
        """Parent folder relative to the vault root ("" for the root)."""
        return posixpath.dirname(self.rel_path)


def _normalize_frontmatter_value(value: Any) -> Any:
    # YAML turns bare dates into date objects; the host keeps them as text.
    if isinstance(value, date | datetime):
        return iso_text(value)
    if isinstance(value, list):
        return [_normalize_frontmatter_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize_frontmatter_value(v) for k, v in value.items()}
    return value


def _file_times(stat: os.stat_result) -> tuple[int, int]:
    created = getattr(stat, "st_birthtime", None) or stat.st_ctime
    return int(created * 1000), int(stat.st_mtime * 1000)


def load_note(path: Path, vault_path: Path) -> Note:
    """Load a single markdown file and parse its frontmatter."""
    raw = path.read_text(encoding="utf-8")
    post = frontmatter.loads(raw)

    fm = {str(k): _normalize_frontmatter_value(v) for k, v in post.metadata.items()}
    body = post.content.strip()
    stat = path.stat()
    ctime, mtime = _file_times(stat)

    return Note(
        path=path,
        rel_path=path.relative_to(vault_path).as_posix(),
        frontmatter=fm,
        body=body,
        raw=raw,
        size=stat.st_size,
        ctime=ctime,
        mtime=mtime,
        links=extract_links(body),
        body_tags=extract_tags(body),
    )


@dataclass
class Vault:
    """Container for all loaded notes plus the file index used for links."""

    path: Path
    notes: list[Note] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)  # non-markdown rel paths

    # Lookup tables built after loading
    _by_path: dict[str, Note] = field(default_factory=dict)
    _files: dict[str, str] = field(default_factory=dict)  # lowercase rel path -> rel path

    def __post_init__(self):
        self._build_lookups()

    def _build_lookups(self):
        """Build path lookups for notes and linkable files."""
        self._by_path = {}
        self._files = {}
        for note in self.notes:
            self._by_path[note.rel_path.lower()] = note
            self._files[note.rel_path.lower()] = note.rel_path
        for rel in self.attachments:
            self._files.setdefault(rel.lower(), rel)

    def add(self, note: Note) -> None:
        """Add or replace a note (used when a file changes on disk)."""
        self.notes = [n for n in self.notes if n.rel_path != note.rel_path]
        self.notes.append(note)
        self._build_lookups()

    def refresh(self, path: Path) -> Note | None:
        """Reload one file after it changed on disk; drop it if it is gone."""
        rel = path.relative_to(self.path).as_posix()
        if not path.exists():
            self.notes = [n for n in self.notes if n.rel_path != rel]
            self._build_lookups()
            return None
        try:
            note = load_note(path, self.path)
        except Exception as e:
            logger.warning(f"Failed to load {path}: {e}")
            return None
        self.add(note)
        return note

    def get(self, ref: str) -> Note | None:
        """Get a note by vault-relative path or by basename."""
        key = ref.strip().lstrip("/").lower()
        note = self._by_path.get(key) or self._by_path.get(f"{key}.md")
        if note is not None:
            return note
        resolved = self.resolve_link_target(ref, "")
        if resolved is None:
            return None
        return self._by_path.get(resolved.lower())

    def require(self, ref: str) -> Note:
        note = self.get(ref)
        if note is None:
            raise NoteNotFoundError(ref)
        return note

    def _candidates(self, target: str) -> list[str]:
        lowered = target.lower()
        if posixpath.splitext(lowered)[1]:
            return [lowered, f"{lowered}.md"]
        return [f"{lowered}.md", lowered]

    def resolve_link_target(self, link_text: str, source_path: str) -> str | None:
        """Resolve link text to a vault-relative path, as the host does.

        Order: exact vault path, path relative to the source note's folder,
        then the first file whose path ends with the link path (same folder
        as the source preferred, then shortest path).
        """
        target = link_path(link_text).lstrip("/")
        if not target:
            return None

        candidates = self._candidates(target)
        for candidate in candidates:
            if candidate in self._files:
                return self._files[candidate]

        source_folder = posixpath.dirname(source_path)
        if source_folder:
            for candidate in candidates:
                joined = posixpath.normpath(posixpath.join(source_folder.lower(), candidate))
                if joined in self._files:
                    return self._files[joined]

        matches: list[str] = []
        for candidate in candidates:
            suffix = f"/{candidate}"
            matches.extend(rel for key, rel in self._files.items() if key.endswith(suffix))
            if matches:
                break
        if not matches:
            return None

        same_folder = [m for m in matches if posixpath.dirname(m) == source_folder]
        if same_folder:
            return same_folder[0]
        return min(matches, key=lambda m: (len(m), m))

    @property
    def all_notes(self) -> list[Note]:
        """All notes in the vault, sorted by path."""
        return sorted(self.notes, key=lambda n: n.rel_path)


def load_vault(vault_path: Path) -> Vault:
    """Load all markdown files from the vault.

    Hidden files and directories (``.obsidian``, ``.trash``) are skipped.
    A file that fails to parse is logged and left out.
    """
    vault = Vault(path=vault_path)

    for file in sorted(vault_path.rglob("*")):
        rel = file.relative_to(vault_path)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if not file.is_file():
            continue

        if file.suffix.lower() != ".md":
            vault.attachments.append(rel.as_posix())
            continue

        try:
            vault.notes.append(load_note(file, vault_path))
        except Exception as e:
            # Log error but continue loading
            logger.warning(f"Failed to load {file}: {e}")

    vault._build_lookups()
    return vault
