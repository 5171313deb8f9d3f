"""Value filters for template placeholders.

A filter chain is a pipe-separated list of steps, each ``name`` or
``name:args``::

    {{file.title | lower | replace:" ","-"}}
    {{file.ctime | date:"dddd, MMMM Do YYYY"}}
    {{file.rating | calc:"*20" | calc:"/100"}}

Arguments may be wrapped in parentheses, are split on commas outside quotes,
and unquoted arguments that are entirely numeric become numbers. Unknown
filter names are skipped; a filter that raises leaves the value as it was
and the chain carries on.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable

from bs4 import BeautifulSoup

from ..values import (
    EMPTY,
    FilterValue,
    ListValue,
    Number,
    Text,
    format_number,
    from_raw,
    normalize_number,
    parse_leading_number,
    parse_number,
    to_text,
)
from .dates import add_duration, format_date, from_timestamp, parse_date

logger = logging.getLogger(__name__)

Arg = str | int | float
FilterFunction = Callable[..., FilterValue]

# Words for case conversion: acronyms, capitalized words, lowercase runs, digits
WORD_PATTERN = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]+[0-9]*|\b)|[A-Z]?[a-z]+[0-9]*|[A-Z]|[0-9]+")

_JS_REPLACEMENT = re.compile(r"\$(\$|&|\d{1,2}|<[^>]*>)")

REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "u": 0,
    "y": 0,
}


def _arg_text(arg: Any) -> str:
    if isinstance(arg, bool):
        return "true" if arg else "false"
    if isinstance(arg, int | float):
        return format_number(arg)
    return str(arg)


def _parse_value_date(value: FilterValue, input_format: str | None = None):
    if isinstance(value, Number) and input_format is None:
        return from_timestamp(value.value)
    return parse_date(to_text(value), input_format)


# -- dates -------------------------------------------------------------------


def filter_date(value: FilterValue, fmt: Arg | None = None, input_format: Arg | None = None) -> FilterValue:
    fmt_str = fmt if isinstance(fmt, str) else "YYYY-MM-DD"
    input_str = input_format if isinstance(input_format, str) else None
    parsed = _parse_value_date(value, input_str)
    if parsed is None:
        return value
    return Text(format_date(parsed, fmt_str))


def filter_date_modify(value: FilterValue, modification: Arg = "") -> FilterValue:
    parts = _arg_text(modification).strip().split(" ")
    amount_match = re.match(r"^[+-]?\d+", parts[0])
    parsed = _parse_value_date(value)
    if parsed is None or amount_match is None:
        return value
    unit = parts[1] if len(parts) > 1 else ""
    return Text(format_date(add_duration(parsed, int(amount_match.group(0)), unit), "YYYY-MM-DD"))


# -- case and text -------------------------------------------------------------


def filter_capitalize(value: FilterValue) -> FilterValue:
    text = to_text(value)
    return Text(text[:1].upper() + text[1:].lower())


def filter_title(value: FilterValue) -> FilterValue:
    return Text(re.sub(r"\w\S*", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), to_text(value)))


def filter_camel(value: FilterValue) -> FilterValue:
    return Text(re.sub(r"[^a-zA-Z0-9]+(.)", lambda m: m.group(1).upper(), to_text(value).lower()))


def _join_words(value: FilterValue, sep: str) -> FilterValue:
    words = WORD_PATTERN.findall(to_text(value))
    if not words:
        return value
    return Text(sep.join(w.lower() for w in words))


def _js_replacement(replacement: str) -> Callable[[re.Match], str]:
    """Expand ``$&``, ``$1`` and ``$<name>`` the way JavaScript's replace does."""

    def expand(match: re.Match) -> str:
        def token(m: re.Match) -> str:
            ref = m.group(1)
            if ref == "$":
                return "$"
            if ref == "&":
                return match.group(0)
            if ref.startswith("<"):
                name = ref[1:-1]
                return (match.groupdict().get(name) or "") if name in match.re.groupindex else m.group(0)
            index = int(ref)
            if 0 < index <= match.re.groups:
                return match.group(index) or ""
            return m.group(0)

        return _JS_REPLACEMENT.sub(token, replacement)

    return expand


def filter_replace(value: FilterValue, search: Arg = "", replacement: Arg = "") -> FilterValue:
    search_str = _arg_text(search) if search else ""
    replace_str = _arg_text(replacement) if replacement else ""
    text = to_text(value)

    last_slash = search_str.rfind("/")
    if search_str.startswith("/") and last_slash > 0:
        pattern = search_str[1:last_slash]
        flags = 0
        for flag in search_str[last_slash + 1:]:
            if flag not in REGEX_FLAGS:
                raise ValueError(f"Invalid regular expression flag: {flag!r}")
            flags |= REGEX_FLAGS[flag]
        return Text(re.compile(pattern, flags).sub(_js_replacement(replace_str), text))

    return Text(text.replace(search_str, replace_str))


# -- markdown emitters ---------------------------------------------------------


def _map_items(value: FilterValue, render: Callable[[str], str], sep: str) -> FilterValue:
    if isinstance(value, ListValue):
        return Text(sep.join(render(to_text(item)) for item in value.items))
    return Text(render(to_text(value)))


def filter_wikilink(value: FilterValue, alias: Arg | None = None) -> FilterValue:
    suffix = f"|{alias}" if isinstance(alias, str) and alias else ""
    return _map_items(value, lambda v: f"[[{v}{suffix}]]", ", ")


def filter_link(value: FilterValue, text: Arg | None = None) -> FilterValue:
    label = text if isinstance(text, str) else "link"
    return _map_items(value, lambda v: f"[{label}]({v})", ", ")


def filter_image(value: FilterValue, alt: Arg | None = None) -> FilterValue:
    alt_text = alt if isinstance(alt, str) else ""
    return _map_items(value, lambda v: f"![{alt_text}]({v})", "\n")


def filter_blockquote(value: FilterValue) -> FilterValue:
    return Text("\n".join(f"> {line}" for line in to_text(value).split("\n")))


def filter_strip_tags(value: FilterValue, keep: Arg | None = None) -> FilterValue:
    """Strip HTML down to its text. Tag names listed in ``keep`` survive."""
    soup = BeautifulSoup(to_text(value), "html.parser")
    allowed = {name.lower() for name in re.findall(r"[A-Za-z][\w-]*", keep)} if isinstance(keep, str) else set()
    if not allowed:
        return Text(soup.get_text())

    for tag in soup.find_all(True):
        if tag.name.lower() not in allowed:
            tag.unwrap()
    return Text(str(soup))


# -- arrays --------------------------------------------------------------------


def filter_split(value: FilterValue, separator: Arg | None = None) -> FilterValue:
    sep = separator if isinstance(separator, str) else ","
    text = to_text(value)
    parts = list(text) if sep == "" else text.split(sep)
    return ListValue(tuple(Text(p) for p in parts))


def filter_join(value: FilterValue, separator: Arg | None = None) -> FilterValue:
    if not isinstance(value, ListValue):
        return value
    sep = separator if isinstance(separator, str) else ","
    return Text(sep.join(to_text(item) for item in value.items))


def filter_first(value: FilterValue) -> FilterValue:
    if isinstance(value, ListValue):
        return value.items[0] if value.items else EMPTY
    return value


def filter_last(value: FilterValue) -> FilterValue:
    if isinstance(value, ListValue):
        return value.items[-1] if value.items else EMPTY
    return value


def filter_slice(value: FilterValue, start: Arg | None = None, end: Arg | None = None) -> FilterValue:
    start_idx = int(start) if isinstance(start, int | float) else 0
    end_idx = int(end) if isinstance(end, int | float) else None
    if isinstance(value, Text):
        return Text(value.value[start_idx:end_idx])
    if isinstance(value, ListValue):
        return ListValue(value.items[start_idx:end_idx])
    return value


def filter_count(value: FilterValue) -> FilterValue:
    if isinstance(value, ListValue):
        return Number(len(value.items))
    return Number(len(to_text(value)))


# -- arithmetic ----------------------------------------------------------------


def _arith(base: float, symbol: str, operand: float) -> float:
    try:
        if symbol == "+":
            return base + operand
        if symbol == "-":
            return base - operand
        if symbol == "*":
            return base * operand
        if symbol == "/":
            if operand == 0:
                return math.nan if base == 0 else math.copysign(math.inf, base)
            return base / operand
        return math.pow(base, operand)
    except OverflowError:
        return math.inf


def filter_calc(value: FilterValue, expression: Arg = "") -> FilterValue:
    """Apply ``+n``, ``-n``, ``*n``, ``/n``, ``^n`` or ``**n`` to a number.

    A bare numeric argument (``calc:+3`` parses to the number 3) is added.
    """
    base = value.value if isinstance(value, Number) else parse_leading_number(to_text(value))
    if base is None or isinstance(base, bool):
        return value

    if isinstance(expression, int | float):
        return Number(normalize_number(_arith(float(base), "+", float(expression))))

    trimmed = expression.strip()
    if trimmed.startswith("**"):
        symbol, operand_text = "^", trimmed[2:]
    else:
        symbol, operand_text = trimmed[:1], trimmed[1:]

    if symbol not in {"+", "-", "*", "/", "^"}:
        return value
    operand = parse_leading_number(operand_text)
    if operand is None:
        return value
    return Number(normalize_number(_arith(float(base), symbol, operand)))


FILTERS: dict[str, FilterFunction] = {
    "date": filter_date,
    "date_modify": filter_date_modify,
    "capitalize": filter_capitalize,
    "upper": lambda value: Text(to_text(value).upper()),
    "lower": lambda value: Text(to_text(value).lower()),
    "title": filter_title,
    "camel": filter_camel,
    "kebab": lambda value: _join_words(value, "-"),
    "snake": lambda value: _join_words(value, "_"),
    "trim": lambda value: Text(to_text(value).strip()),
    "replace": filter_replace,
    "wikilink": filter_wikilink,
    "link": filter_link,
    "image": filter_image,
    "blockquote": filter_blockquote,
    "strip_tags": filter_strip_tags,
    "split": filter_split,
    "join": filter_join,
    "first": filter_first,
    "last": filter_last,
    "slice": filter_slice,
    "count": filter_count,
    "calc": filter_calc,
}


# -- chain parsing -------------------------------------------------------------


def _clean_arg(piece: str) -> Arg:
    piece = piece.strip()
    if len(piece) >= 2 and piece[0] == piece[-1] and piece[0] in "\"'":
        return piece[1:-1]
    number = parse_number(piece)
    return piece if number is None else number


def _split_outside_quotes(text: str, separator: str) -> list[str]:
    pieces: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for char in text:
        if quote is not None:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == separator:
            pieces.append("".join(current))
            current = []
            continue
        current.append(char)
    pieces.append("".join(current))
    return pieces


def parse_args(arg_string: str) -> list[Arg]:
    """Parse filter arguments: ``"YYYY"``, ``("a", "b")``, ``0,3``."""
    content = arg_string.strip()
    if not content:
        return []
    if content.startswith("(") and content.endswith(")"):
        content = content[1:-1]

    pieces = _split_outside_quotes(content, ",")
    if pieces and pieces[-1] == "":
        pieces.pop()
    return [_clean_arg(p) for p in pieces]


def split_chain(chain: str) -> list[str]:
    """Split a filter chain on pipes that are not inside quotes."""
    return [step.strip() for step in _split_outside_quotes(chain, "|") if step.strip()]


def parse_step(step: str) -> tuple[str, list[Arg]]:
    name, sep, arg_string = step.partition(":")
    return name.strip(), parse_args(arg_string) if sep else []


def apply_filter_chain(value: Any, chain: str | None) -> FilterValue:
    """Run a value through a pipe-separated filter chain."""
    result = from_raw(value)
    if not chain:
        return result

    for step in split_chain(chain):
        name, args = parse_step(step)
        fn = FILTERS.get(name)
        if fn is None:
            logger.debug(f"Unknown filter '{name}' skipped")
            continue
        try:
            result = from_raw(fn(result, *args))
        except Exception as e:
            logger.warning(f"Filter error '{name}': {e}")

    return result
