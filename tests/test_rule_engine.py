from datetime import datetime, timezone

import pytest

from noteviews.models import Filter, FilterGroup, ViewConfig
from noteviews.rules import matches, resolve_field, select_view
from noteviews.values import EMPTY, ListValue, Text


def _ms(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


def test_empty_group_matches_at_any_depth(make_doc) -> None:
    doc = make_doc()
    assert matches(FilterGroup("AND", []), doc)
    assert matches(FilterGroup("NOR", []), doc)
    nested = FilterGroup("AND", [FilterGroup("OR", [FilterGroup("AND", [])])])
    assert matches(nested, doc)


@pytest.mark.parametrize(
    "conditions",
    [
        [Filter("type", "is", "movie")],
        [Filter("type", "is", "book")],
        [Filter("type", "is", "book"), Filter("rating", ">", "5")],
        [Filter("type", "is", "book"), FilterGroup("AND", [Filter("rating", "<", "5")])],
    ],
)
def test_nor_is_negated_or(make_doc, conditions) -> None:
    doc = make_doc({"type": "movie", "rating": 9})
    assert matches(FilterGroup("NOR", conditions), doc) == (not matches(FilterGroup("OR", conditions), doc))


def test_and_or_combine_children(make_doc) -> None:
    doc = make_doc({"type": "movie", "rating": 9})
    hit, miss = Filter("type", "is", "movie"), Filter("type", "is", "book")
    assert matches(FilterGroup("AND", [hit, hit]), doc)
    assert not matches(FilterGroup("AND", [hit, miss]), doc)
    assert matches(FilterGroup("OR", [miss, hit]), doc)
    assert not matches(FilterGroup("OR", [miss, miss]), doc)


def test_unknown_group_operator_and_operator_do_not_match(make_doc) -> None:
    doc = make_doc({"type": "movie"})
    assert not matches(FilterGroup("XOR", [Filter("type", "is", "movie")]), doc)
    assert not matches(FilterGroup("AND", [Filter("type", "resembles", "movie")]), doc)


def test_text_operators_are_case_insensitive(make_doc) -> None:
    doc = make_doc({"title": "The Thing"})

    def check(operator: str, value: str) -> bool:
        return matches(FilterGroup("AND", [Filter("title", operator, value)]), doc)

    assert check("is", "the thing")
    assert not check("is not", "THE THING")
    assert check("contains", "thin")
    assert check("starts with", "the")
    assert check("ends with", "THING")
    assert check("does not contain", "alien")


def test_contains_all_and_any_on_lists(make_doc) -> None:
    both = make_doc({"k": ["xa", "yb"]})
    one = make_doc({"k": ["xa"]})

    def check(doc, operator: str) -> bool:
        return matches(FilterGroup("AND", [Filter("k", operator, "a,b")]), doc)

    assert check(both, "contains all of")
    assert not check(one, "contains all of")
    assert check(one, "contains any of")
    assert check(one, "does not contain all of")
    assert not check(one, "does not contain any of")


def test_starts_with_is_scalar_only(make_doc) -> None:
    doc = make_doc({"cast": ["Sigourney Weaver"]})
    assert not matches(FilterGroup("AND", [Filter("cast", "starts with", "Sig")]), doc)
    assert matches(FilterGroup("AND", [Filter("cast", "contains", "weaver")]), doc)


def test_missing_key_behaves_as_empty(make_doc) -> None:
    doc = make_doc({})
    assert matches(FilterGroup("AND", [Filter("status", "is empty")]), doc)
    assert matches(FilterGroup("AND", [Filter("status", "is", "")]), doc)
    assert not matches(FilterGroup("AND", [Filter("status", "contains any of", "a,b")]), doc)
    assert not matches(FilterGroup("AND", [Filter("status", "contains any of", " , ")]), doc)


def test_number_comparisons(make_doc) -> None:
    doc = make_doc({"rating": 9, "score": "7.5", "label": "high"})

    def check(field: str, operator: str, value: str) -> bool:
        return matches(FilterGroup("AND", [Filter(field, operator, value)]), doc)

    assert check("rating", ">", "8")
    assert check("rating", "≥", "9")
    assert check("rating", "≠", "3")
    assert check("score", "<", "8")
    assert not check("label", ">", "1")
    assert not check("rating", "=", "nine")


def test_ctime_date_operators_ignore_time_of_day(make_doc) -> None:
    morning = make_doc(ctime=_ms(2024, 3, 5, 0, 15))
    evening = make_doc(ctime=_ms(2024, 3, 5, 23, 50))
    for doc in (morning, evening):
        assert matches(FilterGroup("AND", [Filter("file.ctime", "on", "2024-03-05")]), doc)
        assert matches(FilterGroup("AND", [Filter("file.ctime", "on or before", "2024-03-05")]), doc)
        assert not matches(FilterGroup("AND", [Filter("file.ctime", "after", "2024-03-05")]), doc)
        assert matches(FilterGroup("AND", [Filter("file.ctime", "before", "2024-03-06")]), doc)


def test_ctime_empty_checks_raw_number(make_doc) -> None:
    assert matches(FilterGroup("AND", [Filter("file.mtime", "is empty")]), make_doc(mtime=0))
    assert matches(FilterGroup("AND", [Filter("file.mtime", "is not empty")]), make_doc(mtime=_ms(2024, 1, 1)))


def test_frontmatter_dates(make_doc) -> None:
    doc = make_doc({"released": "1979-05-25", "seen": "2023-01-02T20:00"})
    assert matches(FilterGroup("AND", [Filter("released", "before", "1980-01-01")]), doc)
    assert matches(FilterGroup("AND", [Filter("seen", "on", "2023-01-02")]), doc)
    assert not matches(FilterGroup("AND", [Filter("released", "on", "not a date")]), doc)


def test_resolve_field_builtins_and_specials(make_doc) -> None:
    doc = make_doc(
        {"aliases": ["A"], "alias": "B", "tags": "x, #y"},
        path="notes/Note.md",
        folder="notes",
        tags=("body",),
    )
    assert resolve_field("file.folder", doc) == Text("notes")
    assert resolve_field("file", doc) == Text("notes/Note.md")
    assert resolve_field("file.unknown", doc) is None
    assert resolve_field("missing", doc) == EMPTY
    assert resolve_field("aliases", doc) == ListValue((Text("A"), Text("B")))
    assert resolve_field("file tags", doc) == ListValue((Text("body"), Text("x"), Text("y")))
    assert resolve_field("tags", doc) == resolve_field("file tags", doc)
    assert matches(FilterGroup("AND", [Filter("tags", "contains all of", "body, y")]), doc)


def test_aliases_skip_only_identical_object(make_doc) -> None:
    shared = ["A"]
    doc = make_doc({"aliases": shared, "alias": shared})
    assert resolve_field("aliases", doc) == ListValue((Text("A"),))

    doc = make_doc({"aliases": ["A"], "alias": ["A"]})
    assert resolve_field("aliases", doc) == ListValue((Text("A"), Text("A")))


def test_unknown_file_builtin_never_matches(make_doc) -> None:
    doc = make_doc()
    assert not matches(FilterGroup("AND", [Filter("file.colour", "is empty")]), doc)


def test_select_view_first_match_wins(make_doc) -> None:
    doc = make_doc({"type": "movie"})
    books = ViewConfig("v1", "Books", FilterGroup("AND", [Filter("type", "is", "book")]), "b")
    movies = ViewConfig("v2", "Movies", FilterGroup("AND", [Filter("type", "is", "movie")]), "m")
    fallback = ViewConfig("v3", "All", FilterGroup("AND", []), "all")

    assert select_view([books, movies, fallback], doc) is movies
    assert select_view([fallback, movies], doc) is fallback
    assert select_view([books], doc) is None
