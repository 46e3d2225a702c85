"""Command-line entry point.

``shellcraft`` with no command opens the TUI.  The other commands work on
the same configured files without a terminal UI, which is handy for
scripting and for moving a section between machines.
"""

import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from shellcraft import fileio
from shellcraft.backup import BackupError, list_backups, restore_backup
from shellcraft.config import ConfigError, Settings, load_settings
from shellcraft.constants import SECTION_TITLES, SECTIONS, TABLE_COLUMNS
from shellcraft.log import setup_logger
from shellcraft.sections import ConflictError, Section, all_sections
from shellcraft.widgets.entry_table import row_cells

app = typer.Typer(
    help="Edit zsh aliases, functions, PATH and environment variables in place",
    invoke_without_command=True,
)

_SECTION_HELP = f"One of: {', '.join(SECTIONS)}"

console = Console()


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _load_section(ctx: typer.Context, name: str) -> Section:
    if name not in SECTIONS:
        typer.echo(f"Unknown section '{name}'. {_SECTION_HELP}", err=True)
        sys.exit(1)
    section = all_sections(_settings(ctx))[name]
    try:
        section.load()
    except fileio.FileIOError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    for warning in section.warnings:
        typer.echo(f"warning: {warning}", err=True)
    return section


@app.callback()
def main(ctx: typer.Context) -> None:
    """Load settings and logging, then run a command (default: the TUI)."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    interactive = ctx.invoked_subcommand in (None, "tui")
    setup_logger(settings.log_level, console=not interactive)
    ctx.obj = {"settings": settings}

    if ctx.invoked_subcommand is None:
        _run_tui(settings)


def _run_tui(settings: Settings) -> None:
    from shellcraft.app import ShellCraftApp

    logger.info("Starting TUI on {}", ", ".join(settings.files))
    ShellCraftApp(settings).run()


@app.command()
def tui(ctx: typer.Context) -> None:
    """Open the interactive editor."""
    _run_tui(_settings(ctx))


@app.command("list")
def list_entries(
    ctx: typer.Context,
    section: str = typer.Argument(..., help=_SECTION_HELP),  # noqa: B008
) -> None:
    """Print a section's entries as a table."""
    loaded = _load_section(ctx, section)
    if section == "path":
        loaded.validate()  # type: ignore[attr-defined]

    table = Table(title=SECTION_TITLES[section])
    for column in TABLE_COLUMNS[section]:
        table.add_column(column)
    for i, item in enumerate(loaded.items, start=1):
        table.add_row(*row_cells(i, item))
    console.print(table)


@app.command()
def export(
    ctx: typer.Context,
    section: str = typer.Argument(..., help=_SECTION_HELP),  # noqa: B008
    output: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Write to this file instead of stdout"
    ),
) -> None:
    """Render a section as a sourceable script."""
    script = _load_section(ctx, section).export()
    if output is None:
        typer.echo(script, nl=False)
        return
    try:
        fileio.write_file(str(output), script, backup=False)
    except fileio.FileIOError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    typer.echo(f"Exported {SECTION_TITLES[section]} to {output}")


@app.command("import")
def import_entries(
    ctx: typer.Context,
    section: str = typer.Argument(..., help=_SECTION_HELP),  # noqa: B008
    source: Path = typer.Argument(..., help="Script to merge in"),  # noqa: B008
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Only show what would change"),  # noqa: B008
    force: bool = typer.Option(False, "--force", help="Write even if a file changed on disk"),  # noqa: B008
) -> None:
    """Merge a script's entries into a section and save."""
    loaded = _load_section(ctx, section)
    try:
        content = fileio.read_file(str(source))
    except fileio.FileIOError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    preview = loaded.preview_import(content)
    typer.echo(f"{preview.section}: {preview.summary}")
    for name in preview.new_items:
        typer.echo(f"  + {name}")
    for name in preview.updated_items:
        typer.echo(f"  * {name}")
    if dry_run or preview.total_changes == 0:
        return

    loaded.apply_import(content)
    try:
        written = loaded.save(force=force)
    except ConflictError as exc:
        typer.echo(f"Error: {exc} (use --force to overwrite)", err=True)
        sys.exit(1)
    except fileio.FileIOError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    typer.echo(f"Saved {', '.join(written)}")


@app.command()
def backups(
    file: str = typer.Argument("~/.zshrc", help="Config file whose backups to list"),  # noqa: B008
) -> None:
    """List stored backups of a config file, newest first."""
    infos = list_backups(file)
    if not infos:
        typer.echo(f"No backups for {file}")
        return
    table = Table(title=f"Backups of {file}")
    table.add_column("#")
    table.add_column("Backup")
    table.add_column("Modified")
    table.add_column("Size", justify="right")
    for i, info in enumerate(infos):
        table.add_row(str(i), info.filename, info.modified.strftime("%Y-%m-%d %H:%M:%S"), str(info.size))
    console.print(table)


@app.command()
def restore(
    ctx: typer.Context,
    file: str = typer.Argument("~/.zshrc", help="Config file to restore"),  # noqa: B008
    index: int = typer.Option(0, "--index", "-i", help="Backup number from `shellcraft backups`"),  # noqa: B008
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),  # noqa: B008
) -> None:
    """Replace a config file with one of its backups (the current file is backed up first)."""
    infos = list_backups(file)
    if not 0 <= index < len(infos):
        typer.echo(f"No backup #{index} for {file}", err=True)
        sys.exit(1)
    chosen = infos[index]
    if not yes and not typer.confirm(f"Restore {file} from {chosen.filename}?"):
        typer.echo("Aborted")
        return
    try:
        restore_backup(chosen, file, keep=_settings(ctx).backup_keep)
    except BackupError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    typer.echo(f"Restored {file} from {chosen.filename}")
