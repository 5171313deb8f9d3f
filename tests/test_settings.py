import json
from pathlib import Path

import pytest

from noteviews.models import Filter, FilterGroup, ViewConfig
from noteviews.settings import (
    DEFAULT_TEMPLATE,
    NEW_VIEW_TEMPLATE,
    Settings,
    load_settings,
    move_view,
    new_view,
    remove_view,
    save_settings,
    settings_path,
)


def _views(*names: str) -> list[ViewConfig]:
    return [ViewConfig(id=f"id-{n}", name=n, rules=FilterGroup("AND", []), template="") for n in names]


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "data.json")
    assert settings.enabled is True
    assert settings.work_in_live_preview is True
    assert settings.work_in_canvas is False
    [view] = settings.views
    assert (view.id, view.name, view.template) == ("default-1", "View 1", DEFAULT_TEMPLATE)
    assert view.rules == FilterGroup("AND", [])


def test_corrupt_json_gives_defaults(tmp_path: Path, caplog) -> None:
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    settings = load_settings(path)
    assert [v.id for v in settings.views] == ["default-1"]
    assert "using defaults" in caplog.text


def test_shallow_merge_and_malformed_entries(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    data = {
        "enabled": "yes",
        "workInCanvas": True,
        "views": [
            "not a view",
            {
                "id": "v1",
                "name": "Movies",
                "rules": {
                    "type": "group",
                    "operator": "AND",
                    "conditions": [
                        {"type": "filter", "field": "type", "operator": "is", "value": "movie"},
                        {"type": "filter", "field": 3},
                        {"type": "group", "operator": "OR", "conditions": []},
                    ],
                },
                "template": "<h1>{{title}}</h1>",
            },
        ],
        "theme": "dark",
    }
    path.write_text(json.dumps(data), encoding="utf-8")

    settings = load_settings(path)

    assert settings.enabled is True  # bad type falls back to the default
    assert settings.work_in_canvas is True
    assert settings.work_in_live_preview is True
    [view] = settings.views
    assert view.rules.conditions == [Filter("type", "is", "movie"), FilterGroup("OR", [])]
    assert settings.extra == {"theme": "dark"}


def test_round_trip_preserves_views_exactly(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "data.json"
    rules = FilterGroup(
        "OR",
        [
            Filter("file", "has tag", "movies, books"),
            FilterGroup("NOR", [Filter("status", "is empty")]),
        ],
    )
    original = Settings(
        enabled=False,
        views=[
            ViewConfig("b", "Second", FilterGroup("AND", []), "<p>{{file.content}}</p>"),
            ViewConfig("a", "First", rules, '<img src="{{cover}}">\n{{title | upper}}'),
        ],
        extra={"theme": "dark"},
    )

    save_settings(original, path)
    first = path.read_text(encoding="utf-8")
    reloaded = load_settings(path)
    save_settings(reloaded, path)

    assert reloaded.views == original.views
    assert reloaded.enabled is False
    assert path.read_text(encoding="utf-8") == first
    raw = json.loads(first)
    assert raw["theme"] == "dark"
    assert raw["views"][1]["rules"]["conditions"][1]["conditions"][0] == {
        "type": "filter",
        "field": "status",
        "operator": "is empty",
    }


def test_new_view_defaults() -> None:
    settings = Settings(views=_views("a"))
    view = new_view(settings)
    other = new_view(settings, "Named")

    assert view.name == "View 2"
    assert view.template == NEW_VIEW_TEMPLATE
    assert view.rules == FilterGroup("AND", [])
    assert other.name == "Named"
    assert view.id != other.id
    assert [v.name for v in settings.views] == ["a", "View 2", "Named"]


def test_remove_view_by_id() -> None:
    settings = Settings(views=_views("a", "b"))
    removed = remove_view(settings, "id-a")
    assert removed.name == "a"
    assert [v.name for v in settings.views] == ["b"]
    with pytest.raises(KeyError):
        remove_view(settings, "id-zzz")


@pytest.mark.parametrize(
    ("from_index", "to_index", "expected"),
    [
        (0, 2, ["b", "c", "a", "d"]),  # downward: lands at the target position
        (3, 1, ["a", "d", "b", "c"]),  # upward: lands before the item that was there
        (1, 1, ["a", "b", "c", "d"]),
        (0, 99, ["b", "c", "d", "a"]),  # clamped
        (2, -5, ["c", "a", "b", "d"]),
    ],
)
def test_move_view(from_index: int, to_index: int, expected: list[str]) -> None:
    settings = Settings(views=_views("a", "b", "c", "d"))
    move_view(settings, from_index, to_index)
    assert [v.name for v in settings.views] == expected


def test_move_view_rejects_bad_source() -> None:
    with pytest.raises(IndexError):
        move_view(Settings(views=_views("a")), 3, 0)


def test_settings_path_resolution(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("NOTEVIEWS_SETTINGS", raising=False)
    assert settings_path(tmp_path) == tmp_path / ".obsidian" / "plugins" / "custom-views" / "data.json"
    monkeypatch.setenv("NOTEVIEWS_SETTINGS", str(tmp_path / "env.json"))
    assert settings_path(tmp_path) == tmp_path / "env.json"
    assert settings_path(tmp_path, tmp_path / "flag.json") == tmp_path / "flag.json"
