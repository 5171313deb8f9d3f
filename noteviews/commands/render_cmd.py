"""Match, render and watch commands - show which view a note gets, and what it looks like."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..document import DocumentContext
from ..orchestrator import DisplayMode, HtmlPageTarget, ProcessOutcome, process_document
from ..rules import select_view
from ..settings import Settings, load_settings
from ..templates import MarkdownItRenderer
from ..vault.loader import Note, Vault, load_vault
from ..watcher import PendingChange, run_watch_loop


def _load(vault_path: Path, settings_file: Path) -> tuple[Vault, Settings]:
    return load_vault(vault_path), load_settings(settings_file)


def run_match(vault_path: Path, settings_file: Path, note_ref: str) -> int:
    """Print the first view whose rules match the note."""
    console = Console(stderr=True)
    vault, settings = _load(vault_path, settings_file)
    note = vault.require(note_ref)
    doc = DocumentContext.from_note(note, vault)

    if not settings.enabled:
        console.print("Custom views are disabled; matching anyway.", style="yellow")

    view = select_view(settings.views, doc)
    if view is None:
        console.print(f"No view matches {note.rel_path}", style="yellow")
        return 1

    print(f"{view.id}\t{view.name}")
    return 0


def _report(console: Console, note: Note, outcome: ProcessOutcome) -> None:
    if outcome.is_rendered:
        console.print(f"✓ {note.rel_path} rendered with view '{outcome.view.name}'", style="green")
    elif outcome.reason == "mode":
        console.print(
            f"View '{outcome.view.name}' matches {note.rel_path}, but is not shown in this mode",
            style="yellow",
        )
    elif outcome.reason == "disabled":
        console.print("Custom views are disabled; showing the default view", style="yellow")
    else:
        console.print(f"No view matches {note.rel_path}; showing the default view", style="yellow")


async def render_note(
    vault: Vault,
    settings: Settings,
    note: Note,
    mode: DisplayMode,
    target: HtmlPageTarget,
) -> ProcessOutcome:
    doc = DocumentContext.from_note(note, vault)
    return await process_document(settings, doc, mode, target, MarkdownItRenderer(vault))


def run_render(
    vault_path: Path,
    settings_file: Path,
    note_ref: str,
    *,
    mode: str = "reading",
    output: Path | None = None,
    allow_scripts: bool = False,
) -> int:
    """Render a note through its matching view into a standalone HTML page."""
    console = Console(stderr=True)
    vault, settings = _load(vault_path, settings_file)
    note = vault.require(note_ref)

    target = HtmlPageTarget(allow_scripts=allow_scripts, output=output)
    target.attach()
    outcome = asyncio.run(render_note(vault, settings, note, DisplayMode(mode), target))
    _report(console, note, outcome)

    if output is not None:
        written = target.write()
        console.print(f"Wrote {written}", style="dim")
    else:
        print(target.to_html())
    return 0


def run_watch(
    vault_path: Path,
    settings_file: Path,
    note_ref: str,
    *,
    mode: str = "reading",
    output: Path | None = None,
    allow_scripts: bool = False,
) -> int:
    """
    Re-render a note whenever the vault or settings change.

    This is a blocking command that runs until interrupted (Ctrl+C).
    """
    console = Console(stderr=True)
    vault, settings = _load(vault_path, settings_file)
    note = vault.require(note_ref)
    rel_path = note.rel_path
    output = output or vault_path / ".noteviews" / f"{note.basename}.html"

    target = HtmlPageTarget(allow_scripts=allow_scripts, output=output)
    target.attach()

    def render() -> None:
        current = vault.get(rel_path)
        if current is None:
            console.print(f"{rel_path} no longer exists; waiting", style="yellow")
            return
        outcome = asyncio.run(render_note(vault, settings, current, DisplayMode(mode), target))
        target.write()
        stamp = datetime.now().strftime("%H:%M:%S")
        console.print(f"[dim]{stamp}[/dim] ", end="")
        _report(console, current, outcome)

    def on_change(changes: list[PendingChange]) -> None:
        nonlocal settings
        for change in changes:
            if change.is_settings:
                settings = load_settings(settings_file)
                console.print("Settings reloaded", style="dim")
            else:
                vault.refresh(change.path)
        render()

    console.print(f"[bold]Watching[/bold] {vault_path}")
    console.print(f"  Note: {rel_path}")
    console.print(f"  Output: {output}")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    render()
    run_watch_loop(vault_path, settings_path=settings_file, on_change=on_change)

    console.print()
    console.print("[bold]Stopped watching[/bold]")
    return 0
