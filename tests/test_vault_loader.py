from pathlib import Path

import pytest

from noteviews.errors import NoteNotFoundError
from noteviews.vault.loader import load_vault
from noteviews.vault.parser import extract_links, extract_tags, extract_value_links, frontmatter_tags


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_note_identity_and_frontmatter(loaded_vault) -> None:
    note = loaded_vault.require("movies/Alien.md")
    assert note.name == "Alien.md"
    assert note.basename == "Alien"
    assert note.extension == "md"
    assert note.folder == "movies"
    assert note.frontmatter["rating"] == 9
    assert note.frontmatter["released"] == "1979-05-25"  # YAML date kept as text
    assert note.body.startswith("In space")
    assert note.links == ["Aliens"]
    assert note.body_tags == ["classic"]
    assert note.size > 0
    assert note.mtime > 0


def test_root_note_has_empty_folder(loaded_vault) -> None:
    assert loaded_vault.require("Inbox").folder == ""


def test_lookup_by_name_and_missing_note(loaded_vault) -> None:
    assert loaded_vault.get("alien").rel_path == "movies/Alien.md"
    assert loaded_vault.get("Ridley Scott").rel_path == "people/Ridley Scott.md"
    with pytest.raises(NoteNotFoundError):
        loaded_vault.require("Missing")


def test_hidden_folders_skipped_and_bad_yaml_logged(vault_path: Path, caplog) -> None:
    _write(vault_path / ".obsidian" / "ignored.md", "# hidden")
    _write(vault_path / "good.md", "---\ntype: ok\n---\nbody")
    _write(vault_path / "bad.md", "---\ntype: [unclosed\n---\nbody")
    _write(vault_path / "img" / "cover.png", "png")

    vault = load_vault(vault_path)

    assert [n.rel_path for n in vault.all_notes] == ["good.md"]
    assert vault.attachments == ["img/cover.png"]
    assert "bad.md" in caplog.text


def test_resolve_link_target_prefers_same_folder(vault_path: Path) -> None:
    _write(vault_path / "a" / "Topic.md", "a")
    _write(vault_path / "b" / "Topic.md", "b")
    _write(vault_path / "b" / "Source.md", "[[Topic]]")
    vault = load_vault(vault_path)

    assert vault.resolve_link_target("Topic", "b/Source.md") == "b/Topic.md"
    assert vault.resolve_link_target("a/Topic#Heading", "b/Source.md") == "a/Topic.md"
    assert vault.resolve_link_target("Nowhere", "b/Source.md") is None


def test_refresh_reloads_and_drops(vault_path: Path) -> None:
    path = vault_path / "n.md"
    _write(path, "---\nv: 1\n---\n")
    vault = load_vault(vault_path)

    _write(path, "---\nv: 2\n---\n")
    vault.refresh(path)
    assert vault.require("n").frontmatter["v"] == 2

    path.unlink()
    assert vault.refresh(path) is None
    assert vault.get("n") is None


def test_extract_links_skips_embeds_and_strips_suffixes() -> None:
    text = "[[One|shown]] ![[pic.png]] [[Two#Part]] [[One]]"
    assert extract_links(text) == ["One", "Two"]


def test_extract_value_links_recurses() -> None:
    assert extract_value_links(["[[A]]", {"x": "see [[B|b]]"}, 3]) == ["A", "B"]


def test_extract_tags_ignores_code_and_numbers() -> None:
    text = "#one #parent/child `#code` #2024\n```\n#fenced\n```\nmid#word"
    assert extract_tags(text) == ["one", "parent/child"]


def test_frontmatter_tags_string_or_list() -> None:
    assert frontmatter_tags({"tags": "#a, b"}) == ["a", "b"]
    assert frontmatter_tags({"tags": ["#a", None, "b/c"]}) == ["a", "b/c"]
    assert frontmatter_tags({}) == []
