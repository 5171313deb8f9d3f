"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Callable

import pytest
from bs4 import BeautifulSoup, Tag

from noteviews.document import DocumentContext
from noteviews.vault.loader import Vault, load_vault


def write_note(vault: Path, rel_path: str, *, frontmatter: str = "", body: str = "") -> Path:
    """Write a markdown note under the vault, creating folders as needed."""
    path = vault / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    parts = []
    if frontmatter:
        parts.extend(["---", frontmatter.strip("\n"), "---", ""])
    parts.append(body)
    path.write_text("\n".join(parts), encoding="utf-8")
    return path


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    """An empty vault (a folder with .obsidian)."""
    vault = tmp_path / "vault"
    (vault / ".obsidian").mkdir(parents=True)
    return vault


@pytest.fixture
def movie_vault(vault_path: Path) -> Path:
    """A small vault with a movie note, a book note and a plain note."""
    write_note(
        vault_path,
        "movies/Alien.md",
        frontmatter="\n".join(
            [
                "type: movie",
                "title: Alien",
                "rating: 9",
                "released: 1979-05-25",
                "director: '[[Ridley Scott]]'",
                "cast:",
                "  - Sigourney Weaver",
                "  - Tom Skerritt",
                "tags: [scifi, horror/space]",
                "cover: covers/alien.jpg",
            ]
        ),
        body="In space no one can hear you scream. #classic\n\nSee [[Aliens]].",
    )
    write_note(vault_path, "movies/Aliens.md", frontmatter="type: movie\nrating: 8", body="Sequel.")
    write_note(vault_path, "people/Ridley Scott.md", body="Director.")
    write_note(
        vault_path,
        "books/Dune.md",
        frontmatter="type: book\ntags:\n  - scifi\n  - books/novel",
        body="Spice.",
    )
    write_note(vault_path, "Inbox.md", body="Nothing here.")
    return vault_path


@pytest.fixture
def loaded_vault(movie_vault: Path) -> Vault:
    return load_vault(movie_vault)


@pytest.fixture
def doc_for(loaded_vault: Vault) -> Callable[[str], DocumentContext]:
    """Build a DocumentContext for a note in the movie vault."""

    def build(ref: str) -> DocumentContext:
        return DocumentContext.from_note(loaded_vault.require(ref), loaded_vault)

    return build


def _make_doc(frontmatter: dict | None = None, **kwargs) -> DocumentContext:
    values = {
        "name": "Note.md",
        "basename": "Note",
        "path": "Note.md",
        "folder": "",
        "extension": "md",
    }
    values.update(kwargs)
    return DocumentContext(frontmatter=frontmatter or {}, **values)


@pytest.fixture
def make_doc() -> Callable[..., DocumentContext]:
    """Build a document that does not exist on disk."""
    return _make_doc


class RecordingMarkdown:
    """Markdown renderer double: records calls, mounts text inside a <p>."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    async def render(self, markdown_text: str, mount: Tag, source_path: str) -> None:
        self.calls.append((markdown_text, source_path))
        fragment = BeautifulSoup(f"<p>{markdown_text}</p>", "html.parser")
        for node in list(fragment.contents):
            mount.append(node.extract())


@pytest.fixture
def recording_markdown() -> RecordingMarkdown:
    return RecordingMarkdown()
