"""Filter command - try a filter chain on a literal value."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console

from ..templates import apply_filter_chain
from ..values import to_text, value_type


def parse_literal(text: str) -> Any:
    """Read a JSON number, list, string or boolean; anything else is text."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text
    # Objects and null are not template values.
    if parsed is None or isinstance(parsed, dict):
        return text
    return parsed


def run_filter(value: str, chain: str, *, raw: bool = False) -> int:
    console = Console(stderr=True)
    result = apply_filter_chain(value if raw else parse_literal(value), chain)
    console.print(value_type(result), style="dim")
    print(to_text(result))
    return 0
