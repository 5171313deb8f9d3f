"""View list commands - list, add, remove, reorder and check views, toggle the plugin."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..models import Filter, FilterGroup
from ..settings import load_settings, move_view, new_view, remove_view, save_settings
from ..vault.loader import load_vault
from ..vault.properties import scan_properties, validate_rules


def _count_filters(group: FilterGroup) -> int:
    total = 0
    for condition in group.conditions:
        if isinstance(condition, Filter):
            total += 1
        elif isinstance(condition, FilterGroup):
            total += _count_filters(condition)
    return total


def run_views_list(settings_file: Path) -> int:
    settings = load_settings(settings_file)
    console = Console()

    status = "enabled" if settings.enabled else "disabled"
    table = Table(title=f"Views ({status})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("name")
    table.add_column("rules")
    table.add_column("template", style="dim", overflow="ellipsis", max_width=48)

    for i, view in enumerate(settings.views):
        count = _count_filters(view.rules)
        rules = f"{view.rules.operator} · {count} filter(s)" if count else "matches everything"
        table.add_row(str(i), view.id, view.name, rules, view.template.replace("\n", " "))

    console.print(table)
    return 0


def run_views_add(settings_file: Path, name: str | None = None) -> int:
    console = Console(stderr=True)
    settings = load_settings(settings_file)
    view = new_view(settings, name)
    save_settings(settings, settings_file)
    console.print(f"✓ Added view '{view.name}' ({view.id})", style="green")
    print(view.id)
    return 0


def run_views_remove(settings_file: Path, view_id: str) -> int:
    """Remove a view by id. Raises KeyError when the id is unknown."""
    console = Console(stderr=True)
    settings = load_settings(settings_file)
    view = remove_view(settings, view_id)
    save_settings(settings, settings_file)
    console.print(f"✓ Removed view '{view.name}' ({view.id})", style="green")
    return 0


def run_views_move(settings_file: Path, from_index: int, to_index: int) -> int:
    """Move a view. Raises IndexError when ``from_index`` is out of range."""
    console = Console(stderr=True)
    settings = load_settings(settings_file)
    move_view(settings, from_index, to_index)
    save_settings(settings, settings_file)
    order = ", ".join(v.name for v in settings.views)
    console.print(f"✓ View order: {order}", style="green")
    return 0


def run_views_check(vault_path: Path, settings_file: Path) -> int:
    """Report rule operators that do not fit their field's inferred type."""
    console = Console(stderr=True)
    settings = load_settings(settings_file)
    properties = scan_properties(load_vault(vault_path))

    issues = []
    for view in settings.views:
        issues.extend(validate_rules(view.name, view.rules, properties))

    if not issues:
        console.print(f"✓ {len(settings.views)} view(s), no operator mismatches", style="green")
        return 0

    for issue in issues:
        console.print(f"  warning: {issue}", style="yellow")
    console.print(f"\n{len(issues)} operator mismatch(es)", style="bold yellow")
    return 1


def run_set_enabled(settings_file: Path, enabled: bool) -> int:
    console = Console(stderr=True)
    settings = load_settings(settings_file)
    settings.enabled = enabled
    save_settings(settings, settings_file)
    console.print("Custom Views Enabled" if enabled else "Custom Views Disabled", style="green")
    return 0
