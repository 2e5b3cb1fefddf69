"""CLI entrypoint for gridlog."""

import logging
import sys
from pathlib import Path

import click

from . import __version__


@click.group()
@click.version_option(__version__, prog_name="gridlog")
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Project directory (defaults to the current directory)",
)
@click.option("--verbose", is_flag=True, help="Log history operations to stderr")
@click.pass_context
def cli(ctx: click.Context, project: Path | None, verbose: bool) -> None:
    """gridlog - Undoable change history for tabular data.

    Apply, undo, redo and replay changes to a project's grid.
    """
    ctx.ensure_object(dict)
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    project = project or Path.cwd()
    if project.exists() and not project.is_dir():
        raise click.BadParameter(f"'{project}' is not a directory.", param_hint="--project / -p")

    ctx.obj["project"] = project.resolve()


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def init(ctx: click.Context, csv_path: Path) -> None:
    """Create a project history from a CSV file."""
    from .commands.history_cmd import run_init

    sys.exit(run_init(ctx.obj["project"], csv_path))


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output the grid as JSON")
@click.option("--limit", type=int, default=None, help="Show at most this many rows")
@click.pass_context
def show(ctx: click.Context, output_json: bool, limit: int | None) -> None:
    """Show the grid at the current history position."""
    from .commands.history_cmd import run_show

    sys.exit(run_show(ctx.obj["project"], output_json=output_json, limit=limit))


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output entries as JSON")
@click.pass_context
def log(ctx: click.Context, output_json: bool) -> None:
    """List history entries with the current position marked."""
    from .commands.history_cmd import run_log

    sys.exit(run_log(ctx.obj["project"], output_json=output_json))


@cli.command()
@click.argument("change_json")
@click.option("--description", "-d", default=None, help="Description recorded with the entry")
@click.pass_context
def apply(ctx: click.Context, change_json: str, description: str | None) -> None:
    """Apply one change given as JSON (or @file).

    Examples:

        gridlog apply '{"type": "column-addition", "name": "C", "default": 0}'

        gridlog apply @rename.json -d "Fix header"
    """
    from .commands.history_cmd import run_apply

    sys.exit(run_apply(ctx.obj["project"], change_json, description=description))


@cli.command()
@click.argument("changes_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def replay(ctx: click.Context, changes_file: Path) -> None:
    """Apply a JSON list of changes; all succeed or none are recorded."""
    from .commands.history_cmd import run_replay

    sys.exit(run_replay(ctx.obj["project"], changes_file))


@cli.command()
@click.pass_context
def undo(ctx: click.Context) -> None:
    """Step back one entry."""
    from .commands.history_cmd import run_undo

    sys.exit(run_undo(ctx.obj["project"]))


@cli.command()
@click.pass_context
def redo(ctx: click.Context) -> None:
    """Step forward one entry."""
    from .commands.history_cmd import run_redo

    sys.exit(run_redo(ctx.obj["project"]))


@cli.command()
@click.pass_context
def verify(ctx: click.Context) -> None:
    """Check that cached states match a full replay."""
    from .commands.history_cmd import run_verify

    sys.exit(run_verify(ctx.obj["project"]))


@cli.command()
@click.argument("csv_path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export(ctx: click.Context, csv_path: Path) -> None:
    """Write the current grid to a CSV file."""
    from .commands.history_cmd import run_export

    sys.exit(run_export(ctx.obj["project"], csv_path))


@cli.command()
def types() -> None:
    """List registered change types."""
    from .commands.history_cmd import run_types

    sys.exit(run_types())


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
