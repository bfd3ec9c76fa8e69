"""apidelta CLI entry point."""

# apidelta:service=cli

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from apidelta import __version__

if TYPE_CHECKING:
    from apidelta.changes import ApiChanges, ApiCollectionChanges

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


# apidelta:service=cli
@click.group()
@click.version_option(version=__version__, prog_name="apidelta")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: ./apidelta.yml if present).",
)
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool, config_path: Path | None) -> None:
    """apidelta - structural diff and breaking-change detection for API graphs."""
    from apidelta.config import load_settings

    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = load_settings(config_path)


def _check_exclusive(ctx: click.Context, *, diff_only: bool, directory: bool) -> None:
    """Reject flag combinations that select more than one mode."""
    ruleset_given = ctx.get_parameter_source("ruleset") is click.core.ParameterSource.COMMANDLINE
    if diff_only and directory:
        msg = "--diff-only and --dir cannot be used together"
        raise click.UsageError(msg, ctx=ctx)
    if ruleset_given and diff_only:
        msg = "--ruleset and --diff-only cannot be used together"
        raise click.UsageError(msg, ctx=ctx)
    if ruleset_given and directory:
        msg = "--ruleset and --dir cannot be used together"
        raise click.UsageError(msg, ctx=ctx)


def _emit(
    changes: ApiChanges | ApiCollectionChanges,
    *,
    out_file: Path | None,
    fmt: str | None,
) -> None:
    """Write *changes* to *out_file* (JSON by default) or to stdout (text by default)."""
    from apidelta.render import format_json, format_text, render

    if out_file is not None:
        output = format_text(changes) if fmt == "text" else format_json(changes)
        out_file.write_text(output if output.endswith("\n") else f"{output}\n", encoding="utf-8")
        return

    if fmt == "json":
        click.echo(format_json(changes))
    elif sys.stdout.isatty():
        from rich.console import Console

        render(changes, Console())
    else:
        click.echo(format_text(changes), nl=False)


# apidelta:domain=differencer
@main.command("diff")
@click.argument("base", type=click.Path(exists=True, path_type=Path))
@click.argument("new", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--ruleset",
    "-r",
    type=click.Path(path_type=Path),
    default=None,
    envvar="APIDELTA_RULESET",
    help="Rules to categorize the changes with (default: shipped rules).",
)
@click.option(
    "--diff-only",
    is_flag=True,
    default=False,
    help="Only show differences without evaluating a ruleset.",
)
@click.option(
    "--dir",
    "directory",
    is_flag=True,
    default=False,
    help="Find the differences for all documents in two directories.",
)
@click.option(
    "--out-file",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to store the computed difference.",
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["json", "text"]),
    default=None,
    help="Output format (default: json with --out-file, text otherwise).",
)
@click.pass_context
def diff_cmd(
    ctx: click.Context,
    *,
    base: Path,
    new: Path,
    ruleset: Path | None,
    diff_only: bool,
    directory: bool,
    out_file: Path | None,
    fmt: str | None,
) -> None:
    """Compute the difference between two API documents.

    \b
    Modes:
      ruleset (default)  compare two files and categorize the changes
      --diff-only        compare two files without categorizing
      --dir              compare every document of two directories

    \b
    Exit codes:
      0  no breaking changes (ruleset) or no differences (diff-only / dir)
      1  breaking changes (ruleset) or differences found (diff-only / dir)
      2  the comparison could not be completed
    """
    from apidelta.collection import diff_collections
    from apidelta.differencer import ApiDifferencer
    from apidelta.graph.delta_parser import InvalidDeltaError

    _check_exclusive(ctx, diff_only=diff_only, directory=directory)
    settings = ctx.obj["settings"]

    if directory:
        if not (base.is_dir() and new.is_dir()):
            click.echo("Error: --dir requires two directories.", err=True)
            sys.exit(2)
    elif not (base.is_file() and new.is_file()):
        click.echo("Error: BASE and NEW must be files (use --dir for directories).", err=True)
        sys.exit(2)

    try:
        if directory:
            collection = diff_collections(base, new, categorize=False, settings=settings)
            _emit(collection, out_file=out_file, fmt=fmt)
            failed = collection.has_changes()
        elif diff_only:
            changes = ApiDifferencer(base, new, settings=settings).find_changes()
            _emit(changes, out_file=out_file, fmt=fmt)
            failed = changes.has_changes()
        else:
            changes = ApiDifferencer(base, new, settings=settings).find_and_categorize_changes(
                ruleset
            )
            _emit(changes, out_file=out_file, fmt=fmt)
            failed = changes.has_breaking_changes()
    except (ValueError, OSError, InvalidDeltaError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    except Exception as exc:  # exit 1 is reserved for found differences
        logging.getLogger(__name__).debug("Comparison failed", exc_info=True)
        click.echo(f"Error: comparison failed: {exc!r}", err=True)
        sys.exit(2)

    if failed:
        sys.exit(1)
