"""Persisted settings: the ordered view list and activation flags.

Settings live in a JSON document using the host's keys::

    {"enabled": true, "workInLivePreview": true, "workInCanvas": false,
     "views": [{"id": ..., "name": ..., "rules": {...}, "template": ...}]}

Loading never fails: a missing or corrupt file yields defaults, a bad
top-level field falls back to its default, and a malformed view or rule
node is dropped with a warning.
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import Condition, Filter, FilterGroup, ViewConfig

logger = logging.getLogger(__name__)

SETTINGS_ENV = "NOTEVIEWS_SETTINGS"
SETTINGS_RELPATH = Path(".obsidian") / "plugins" / "custom-views" / "data.json"

DEFAULT_TEMPLATE = "<h1>{{file.basename}}</h1> <p>{{file.content}}</p>"
NEW_VIEW_TEMPLATE = "<h1>{{file.basename}}</h1>"


@dataclass
class Settings:
    enabled: bool = True
    work_in_live_preview: bool = True
    work_in_canvas: bool = False
    views: list[ViewConfig] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)  # unknown keys, kept on save


def default_views() -> list[ViewConfig]:
    return [ViewConfig(id="default-1", name="View 1", rules=FilterGroup("AND", []), template=DEFAULT_TEMPLATE)]


def default_settings() -> Settings:
    return Settings(views=default_views())


def settings_path(vault_path: Path, override: Path | None = None) -> Path:
    """Where settings live: explicit override, $NOTEVIEWS_SETTINGS, or the vault's plugin folder."""
    if override is not None:
        return override
    env = os.environ.get(SETTINGS_ENV)
    if env:
        return Path(env)
    return vault_path / SETTINGS_RELPATH


# -- (de)serialization ---------------------------------------------------------


def condition_to_dict(condition: Condition) -> dict[str, Any]:
    if isinstance(condition, FilterGroup):
        return {
            "type": "group",
            "operator": condition.operator,
            "conditions": [condition_to_dict(c) for c in condition.conditions],
        }
    data: dict[str, Any] = {"type": "filter", "field": condition.field, "operator": condition.operator}
    if condition.value is not None:
        data["value"] = condition.value
    return data


def condition_from_dict(raw: Any) -> Condition | None:
    """Parse a rule node; None for anything that is not a group or filter."""
    if not isinstance(raw, dict):
        return None

    kind = raw.get("type")
    if kind == "group" or (kind is None and "conditions" in raw):
        return group_from_dict(raw)

    if kind == "filter" or (kind is None and "field" in raw):
        field_name = raw.get("field")
        operator = raw.get("operator")
        if not isinstance(field_name, str) or not isinstance(operator, str):
            return None
        value = raw.get("value")
        if value is not None and not isinstance(value, str):
            value = json.dumps(value) if isinstance(value, bool) else str(value)
        return Filter(field=field_name, operator=operator, value=value)

    return None


def group_from_dict(raw: Any) -> FilterGroup:
    if not isinstance(raw, dict):
        return FilterGroup("AND", [])

    operator = raw.get("operator")
    operator_str = operator if isinstance(operator, str) and operator.strip() else "AND"

    conditions: list[Condition] = []
    raw_conditions = raw.get("conditions")
    for item in raw_conditions if isinstance(raw_conditions, list) else []:
        condition = condition_from_dict(item)
        if condition is None:
            logger.warning(f"Skipping malformed rule node: {item!r}")
            continue
        conditions.append(condition)

    return FilterGroup(operator=operator_str, conditions=conditions)


def view_to_dict(view: ViewConfig) -> dict[str, Any]:
    return {
        "id": view.id,
        "name": view.name,
        "rules": condition_to_dict(view.rules),
        "template": view.template,
    }


def view_from_dict(raw: Any) -> ViewConfig | None:
    if not isinstance(raw, dict):
        return None

    view_id = raw.get("id")
    if not isinstance(view_id, str) or not view_id.strip():
        view_id = new_view_id()

    name = raw.get("name")
    template = raw.get("template")
    return ViewConfig(
        id=view_id,
        name=name if isinstance(name, str) else "",
        rules=group_from_dict(raw.get("rules")),
        template=template if isinstance(template, str) else "",
    )


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    data = dict(settings.extra)
    data.update(
        {
            "enabled": settings.enabled,
            "workInLivePreview": settings.work_in_live_preview,
            "workInCanvas": settings.work_in_canvas,
            "views": [view_to_dict(v) for v in settings.views],
        }
    )
    return data


def settings_from_dict(data: Any) -> Settings:
    """Shallow-merge persisted data over defaults, field by field."""
    settings = default_settings()
    if not isinstance(data, dict):
        return settings

    for key, attr in (
        ("enabled", "enabled"),
        ("workInLivePreview", "work_in_live_preview"),
        ("workInCanvas", "work_in_canvas"),
    ):
        if key in data:
            if isinstance(data[key], bool):
                setattr(settings, attr, data[key])
            else:
                logger.warning(f"Ignoring non-boolean setting {key}={data[key]!r}")

    if "views" in data:
        raw_views = data["views"]
        if isinstance(raw_views, list):
            views = []
            for raw in raw_views:
                view = view_from_dict(raw)
                if view is None:
                    logger.warning(f"Skipping malformed view: {raw!r}")
                    continue
                views.append(view)
            settings.views = views
        else:
            logger.warning("Ignoring malformed 'views' setting")

    known = {"enabled", "workInLivePreview", "workInCanvas", "views"}
    settings.extra = {k: v for k, v in data.items() if k not in known}
    return settings


def load_settings(path: Path) -> Settings:
    if not path.exists():
        return default_settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to read settings {path}: {e}; using defaults")
        return default_settings()
    return settings_from_dict(data)


def save_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings_to_dict(settings), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


# -- view list editing ---------------------------------------------------------


def new_view_id() -> str:
    return f"view-{uuid.uuid4().hex[:12]}"


def new_view(settings: Settings, name: str | None = None) -> ViewConfig:
    """Append a fresh view (empty rules, minimal template) and return it."""
    view = ViewConfig(
        id=new_view_id(),
        name=name or f"View {len(settings.views) + 1}",
        rules=FilterGroup("AND", []),
        template=NEW_VIEW_TEMPLATE,
    )
    settings.views.append(view)
    return view


def find_view(settings: Settings, view_id: str) -> ViewConfig | None:
    for view in settings.views:
        if view.id == view_id:
            return view
    return None


def remove_view(settings: Settings, view_id: str) -> ViewConfig:
    view = find_view(settings, view_id)
    if view is None:
        raise KeyError(view_id)
    settings.views.remove(view)
    return view


def move_view(settings: Settings, from_index: int, to_index: int) -> None:
    """Move a view to a new position.

    The view is removed, then inserted at ``to_index`` (clamped). Moving
    down lands it after the view that held ``to_index``; moving up lands
    it before.
    """
    if not 0 <= from_index < len(settings.views):
        raise IndexError(f"view index out of range: {from_index}")
    view = settings.views.pop(from_index)
    target = max(0, min(to_index, len(settings.views)))
    settings.views.insert(target, view)
