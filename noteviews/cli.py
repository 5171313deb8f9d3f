"""CLI entrypoint for noteviews."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .errors import NoteviewsError
from .settings import settings_path


def _auto_detect_vault(start: Path) -> Path | None:
    """Find a vault (a folder holding .obsidian) by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / ".obsidian").is_dir():
            return p
    return None


def _exit_with(run, *args, **kwargs) -> None:
    """Run a command, turning host-edge errors into click errors."""
    try:
        exit_code = run(*args, **kwargs)
    except NoteviewsError as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


@click.group()
@click.version_option(__version__, prog_name="noteviews")
@click.option(
    "--vault",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the vault (defaults to the nearest folder containing .obsidian)",
)
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar="NOTEVIEWS_SETTINGS",
    help="Settings JSON (defaults to <vault>/.obsidian/plugins/custom-views/data.json)",
)
@click.option("--verbose", is_flag=True, help="Log debug output")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, settings_file: Path | None, verbose: bool) -> None:
    """noteviews - Rule-selected custom views for markdown notes.

    Match notes against ordered view rules and render them through
    HTML templates.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    if vault is None:
        vault = _auto_detect_vault(Path.cwd())
    elif not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault")

    # `filter` works without a vault; other commands ask for it through _vault().
    ctx.obj["vault"] = vault.resolve() if vault is not None else None
    ctx.obj["settings_override"] = settings_file


def _vault(ctx: click.Context) -> Path:
    vault = ctx.obj["vault"]
    if vault is None:
        raise click.ClickException("Vault not found. Pass --vault /path/to/vault or run from inside one.")
    return vault


def _settings(ctx: click.Context) -> Path:
    override = ctx.obj["settings_override"]
    if override is not None:
        return override
    return settings_path(_vault(ctx))


# -----------------------------------------------------------------------------
# Matching and rendering
# -----------------------------------------------------------------------------


@cli.command()
@click.argument("note")
@click.pass_context
def match(ctx: click.Context, note: str) -> None:
    """Print the first view whose rules match NOTE.

    NOTE is a vault-relative path or a note name. Exits 1 when no view matches.
    """
    from .commands.render_cmd import run_match

    _exit_with(run_match, _vault(ctx), _settings(ctx), note)


MODE_CHOICE = click.Choice(["reading", "live_preview", "canvas", "source"])


@cli.command()
@click.argument("note")
@click.option("--mode", type=MODE_CHOICE, default="reading", show_default=True, help="Display mode to simulate")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the HTML page here instead of stdout",
)
@click.option("--allow-scripts", is_flag=True, help="Keep template <script> elements in the page")
@click.pass_context
def render(ctx: click.Context, note: str, mode: str, output: Path | None, allow_scripts: bool) -> None:
    """Render NOTE through its matching view as a standalone HTML page.

    Examples:

        noteviews render "movies/Alien.md" -o alien.html

        noteviews render Alien --mode live_preview
    """
    from .commands.render_cmd import run_render

    _exit_with(
        run_render,
        _vault(ctx),
        _settings(ctx),
        note,
        mode=mode,
        output=output,
        allow_scripts=allow_scripts,
    )


@cli.command()
@click.argument("note")
@click.option("--mode", type=MODE_CHOICE, default="reading", show_default=True, help="Display mode to simulate")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="HTML page to keep up to date (defaults to <vault>/.noteviews/<note>.html)",
)
@click.option("--allow-scripts", is_flag=True, help="Keep template <script> elements in the page")
@click.pass_context
def watch(ctx: click.Context, note: str, mode: str, output: Path | None, allow_scripts: bool) -> None:
    """Re-render NOTE whenever the vault or the settings change.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.render_cmd import run_watch

    _exit_with(
        run_watch,
        _vault(ctx),
        _settings(ctx),
        note,
        mode=mode,
        output=output,
        allow_scripts=allow_scripts,
    )


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def properties(ctx: click.Context, output_json: bool) -> None:
    """List the fields rules can test, with inferred types and operators."""
    from .commands.properties_cmd import run_properties

    _exit_with(run_properties, _vault(ctx), output_json=output_json)


@cli.command("filter")
@click.argument("value")
@click.argument("chain")
@click.option("--raw", is_flag=True, help="Treat VALUE as text even if it parses as JSON")
def filter_cmd(value: str, chain: str, raw: bool) -> None:
    """Apply a filter CHAIN to a literal VALUE.

    VALUE is read as JSON when possible, so numbers and lists work:

        noteviews filter 5 "calc:+3 | calc:**2"

        noteviews filter '["a","b"]' "join:' / ' | upper"
    """
    from .commands.filter_cmd import run_filter

    _exit_with(run_filter, value, chain, raw=raw)


# -----------------------------------------------------------------------------
# Settings: view list and activation
# -----------------------------------------------------------------------------


@cli.group()
def views() -> None:
    """Manage the ordered list of views."""
    pass


@views.command("list")
@click.pass_context
def views_list(ctx: click.Context) -> None:
    """Show views in matching order."""
    from .commands.views_cmd import run_views_list

    _exit_with(run_views_list, _settings(ctx))


@views.command("add")
@click.argument("name", required=False)
@click.pass_context
def views_add(ctx: click.Context, name: str | None) -> None:
    """Append a new view (matches everything until rules are added)."""
    from .commands.views_cmd import run_views_add

    _exit_with(run_views_add, _settings(ctx), name)


@views.command("remove")
@click.argument("view_id")
@click.pass_context
def views_remove(ctx: click.Context, view_id: str) -> None:
    """Remove the view with id VIEW_ID."""
    from .commands.views_cmd import run_views_remove

    try:
        exit_code = run_views_remove(_settings(ctx), view_id)
    except KeyError:
        raise click.BadParameter(f"No view with id '{view_id}'.", param_hint="VIEW_ID")
    sys.exit(exit_code)


@views.command("move")
@click.argument("from_index", type=int)
@click.argument("to_index", type=int)
@click.pass_context
def views_move(ctx: click.Context, from_index: int, to_index: int) -> None:
    """Move the view at FROM_INDEX to TO_INDEX (0-based)."""
    from .commands.views_cmd import run_views_move

    try:
        exit_code = run_views_move(_settings(ctx), from_index, to_index)
    except IndexError:
        raise click.BadParameter(f"No view at index {from_index}.", param_hint="FROM_INDEX")
    sys.exit(exit_code)


@views.command("check")
@click.pass_context
def views_check(ctx: click.Context) -> None:
    """Report rule operators that do not fit their field's type."""
    from .commands.views_cmd import run_views_check

    _exit_with(run_views_check, _vault(ctx), _settings(ctx))


@cli.command()
@click.pass_context
def enable(ctx: click.Context) -> None:
    """Enable custom views."""
    from .commands.views_cmd import run_set_enabled

    _exit_with(run_set_enabled, _settings(ctx), True)


@cli.command()
@click.pass_context
def disable(ctx: click.Context) -> None:
    """Disable custom views (every note shows its default view)."""
    from .commands.views_cmd import run_set_enabled

    _exit_with(run_set_enabled, _settings(ctx), False)


if __name__ == "__main__":
    cli()
