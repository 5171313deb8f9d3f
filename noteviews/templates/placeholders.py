"""Placeholder scanning for view templates.

Grammar::

    {{ FIELD [INDEX] [| FILTER_CHAIN] }}

``FIELD`` is either ``file.<name>`` (built-ins first, then frontmatter) or a
bare frontmatter key, which may contain spaces. ``{{file.content}}`` is the
document body and never goes through a filter chain.

Whether a placeholder sits inside an HTML attribute is decided by quote
parity: an odd number of unescaped ``"`` or ``'`` in the template text
before it means it is inside an attribute value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

PLACEHOLDER_PATTERN = re.compile(
    r"\{\{\s*(?P<key>[^\[\]|{}]+?)\s*(?:\[(?P<index>\d+)\])?\s*(?:\|(?P<chain>.*?))?\}\}",
    re.DOTALL,
)

CONTENT_KEYS = {"file.content", "content"}
FILE_PREFIX = "file."


@dataclass(frozen=True)
class Placeholder:
    start: int
    end: int
    key: str  # as written, e.g. "file.basename" or "cover"
    index: int | None = None
    chain: str | None = None
    in_attribute: bool = False

    @property
    def is_content(self) -> bool:
        return self.key in CONTENT_KEYS

    @property
    def is_file_key(self) -> bool:
        return self.key.startswith(FILE_PREFIX)

    @property
    def name(self) -> str:
        """Key without the ``file.`` namespace."""
        return self.key[len(FILE_PREFIX):] if self.is_file_key else self.key


def _count_quotes(text: str, start: int, end: int, counts: dict[str, int]) -> None:
    for i in range(start, end):
        char = text[i]
        if char in counts and (i == 0 or text[i - 1] != "\\"):
            counts[char] += 1


def scan_placeholders(template: str) -> list[Placeholder]:
    """Find every placeholder in order, tracking attribute context as we go."""
    placeholders = []
    counts = {'"': 0, "'": 0}
    pos = 0

    for match in PLACEHOLDER_PATTERN.finditer(template):
        _count_quotes(template, pos, match.start(), counts)
        inside_attribute = counts['"'] % 2 == 1 or counts["'"] % 2 == 1

        index = match.group("index")
        chain = match.group("chain")
        placeholders.append(
            Placeholder(
                start=match.start(),
                end=match.end(),
                key=match.group("key").strip(),
                index=int(index) if index is not None else None,
                chain=chain.strip() if chain and chain.strip() else None,
                in_attribute=inside_attribute,
            )
        )
        pos = match.end()

    return placeholders
