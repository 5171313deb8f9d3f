"""Markdown parsing utilities for wiki-links and tags."""

import re
from typing import Any

# Match [[target]], [[target|display]], [[target#section]], [[target#section|display]]
# Embeds (![[...]]) are not outbound links.
WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\[\]]+?)\]\]")

# Any wiki-link, embeds included; used on frontmatter values
ANY_WIKILINK_PATTERN = re.compile(r"\[\[([^\[\]]+?)\]\]")

# Inline tags: #tag, #parent/child. Must contain at least one non-digit.
TAG_PATTERN = re.compile(r"(?<![\w/#&])#([\w/-]*[^\W\d][\w/-]*)")

_FENCED_CODE = re.compile(r"^(```|~~~).*?^\1", re.MULTILINE | re.DOTALL)
_INLINE_CODE = re.compile(r"`[^`\n]*`")


def link_path(raw: str) -> str:
    """Strip display text, heading and block references from a link target."""
    target = raw.split("|", 1)[0]
    target = target.split("#", 1)[0]
    target = target.split("^", 1)[0]
    return target.strip()


def extract_links(content: str) -> list[str]:
    """Extract wiki-link targets from content.

    Returns link paths (display text and headings removed), deduplicated
    in order of appearance. Case is preserved; resolution is case-insensitive.
    """
    seen = set()
    result = []
    for match in WIKILINK_PATTERN.findall(content):
        target = link_path(match)
        if target and target not in seen:
            seen.add(target)
            result.append(target)
    return result


def extract_value_links(value: Any) -> list[str]:
    """Extract wiki-link targets from a frontmatter value, recursing into lists."""
    if isinstance(value, str):
        return [t for t in (link_path(m) for m in ANY_WIKILINK_PATTERN.findall(value)) if t]
    if isinstance(value, list | tuple):
        result = []
        for item in value:
            result.extend(extract_value_links(item))
        return result
    if isinstance(value, dict):
        result = []
        for item in value.values():
            result.extend(extract_value_links(item))
        return result
    return []


def strip_tag_prefix(tag: str) -> str:
    return tag.strip().lstrip("#")


def extract_tags(content: str) -> list[str]:
    """Extract inline #tags from markdown body, skipping code.

    Tags are returned without the leading '#', deduplicated in order.
    """
    text = _FENCED_CODE.sub("", content)
    text = _INLINE_CODE.sub("", text)

    seen = set()
    result = []
    for tag in TAG_PATTERN.findall(text):
        tag = tag.rstrip("/")
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def frontmatter_tags(frontmatter: dict) -> list[str]:
    """Tags declared in frontmatter ``tags`` (string or list)."""
    tags = frontmatter.get("tags")
    if tags is None:
        return []

    if isinstance(tags, str):
        tags = tags.split(",")
    elif not isinstance(tags, list):
        tags = [tags]

    result = []
    for tag in tags:
        if tag is None:
            continue
        cleaned = strip_tag_prefix(str(tag))
        if cleaned:
            result.append(cleaned)
    return result
