import pytest
from bs4 import BeautifulSoup

from noteviews.templates import MarkdownItRenderer


def _mount():
    soup = BeautifulSoup("<span></span>", "html.parser")
    return soup.find("span")


@pytest.mark.asyncio
async def test_renders_commonmark_into_mount() -> None:
    mount = _mount()
    await MarkdownItRenderer().render("Some **bold** text", mount, "Note.md")
    assert mount.find("p").find("strong").get_text() == "bold"


@pytest.mark.asyncio
async def test_tables_and_strikethrough_enabled() -> None:
    mount = _mount()
    await MarkdownItRenderer().render("| a | b |\n|---|---|\n| 1 | ~~2~~ |", mount, "Note.md")
    assert mount.find("table") is not None
    assert mount.find("s").get_text() == "2"


@pytest.mark.asyncio
async def test_wikilinks_resolve_through_vault(loaded_vault) -> None:
    mount = _mount()
    await MarkdownItRenderer(loaded_vault).render("See [[Aliens|the sequel]]", mount, "movies/Alien.md")
    link = mount.find("a", class_="internal-link")
    assert link["data-href"] == "Aliens"
    assert link["href"] == "movies/Aliens.md"
    assert link.get_text() == "the sequel"


@pytest.mark.asyncio
async def test_embeds_become_images_or_embed_spans() -> None:
    mount = _mount()
    await MarkdownItRenderer().render("![[cover.png|Cover]] ![[Other note]]", mount, "Note.md")
    assert mount.find("img")["src"] == "cover.png"
    assert mount.find("img")["alt"] == "Cover"
    assert mount.find("span", class_="internal-embed")["src"] == "Other note"


@pytest.mark.asyncio
async def test_wikilinks_in_code_stay_literal() -> None:
    mount = _mount()
    await MarkdownItRenderer().render("Use `[[Note]]` syntax\n\n```\n![[cover.png]]\n```", mount, "Note.md")
    assert mount.find("a") is None
    assert mount.find("img") is None
    inline, fenced = mount.find_all("code")
    assert inline.get_text() == "[[Note]]"
    assert fenced.get_text() == "![[cover.png]]\n"


@pytest.mark.asyncio
async def test_block_separators_are_not_mounted() -> None:
    mount = _mount()
    await MarkdownItRenderer().render("one\n\ntwo", mount, "Note.md")
    assert [child.name for child in mount.children] == ["p", "p"]
