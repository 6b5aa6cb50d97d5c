"""
Formats Unison source files.
Files are rewritten in place; `-` reads from stdin and writes to stdout.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from .config import ConfigError, FormatConfig, build_config
from .exceptions import UnstableFormattingError
from .filesystem import normalize_filepath
from .formatter import FormatFileError, format_file, format_source, render_diff, verify_stable

__all__ = ["cli"]

STDIN_PATH = "-"

logger = logging.getLogger(__name__)


def _configure_logging(verbose: int):
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _format_stdin(config: FormatConfig, check: bool, diff: bool, safe: bool) -> bool:
    source = click.get_text_stream("stdin").read()
    try:
        formatted = verify_stable(source, config) if safe else format_source(source, config)
    except UnstableFormattingError as error:
        raise click.ClickException(f"<stdin>: {error}") from error

    if diff:
        click.echo(render_diff(source, formatted), nl=False)
    elif not check:
        click.echo(formatted, nl=False)
    return formatted != source


@click.command()
@click.version_option()
@click.option("--indent-size", type=int, help="Width of one indentation level")
@click.option(
    "--use-spaces/--use-tabs",
    default=None,
    help="Indent with spaces or with one tab per level",
)
@click.option("--check", is_flag=True, help="Report files that would be reformatted and exit 1")
@click.option("--diff", is_flag=True, help="Print a unified diff instead of rewriting files")
@click.option("--safe", is_flag=True, help="Verify that formatting is stable before writing")
@click.option("-v", "--verbose", count=True, help="Increase logging verbosity (-v, -vv)")
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False, allow_dash=True))
def cli(
    files: tuple[str, ...],
    indent_size: int | None = None,
    use_spaces: bool | None = None,
    check: bool = False,
    diff: bool = False,
    safe: bool = False,
    verbose: int = 0,
):
    """
    Entry point for formatting Unison source files.

    Args:
        files: Paths to `.u` files, or `-` for stdin.
        indent_size: Override for the indentation width.
        use_spaces: Override for spaces versus tabs.
        check: Do not write; exit with status 1 when a file would change.
        diff: Do not write; print a unified diff of the changes.
        safe: Refuse to write output that a second pass would change.
        verbose: Logging verbosity.

    Returns:
        None.

    Raises:
        click.BadParameter: If a path is invalid or the configuration holds
            unsupported values.
        click.ClickException: If a file cannot be read, formatted or written.

    Examples:
        unison-format src/main.u --indent-size 4
        cat main.u | unison-format -
    """
    _configure_logging(verbose)
    base_dir = Path.cwd().resolve()
    would_change: list[str] = []

    for raw_path in files:
        if raw_path == STDIN_PATH:
            try:
                config = build_config(base_dir, indent_size=indent_size, use_spaces=use_spaces)
            except ConfigError as error:
                raise click.BadParameter(str(error)) from error
            if _format_stdin(config, check, diff, safe):
                would_change.append("<stdin>")
            continue

        try:
            filepath = normalize_filepath(raw_path, base_dir)
        except ValueError as error:
            raise click.BadParameter(str(error)) from error
        try:
            config = build_config(filepath.parent, indent_size=indent_size, use_spaces=use_spaces)
        except ConfigError as error:
            raise click.BadParameter(str(error)) from error

        try:
            result = format_file(
                filepath,
                config,
                check=check or diff,
                safe=safe,
                warn=lambda message: click.echo(message, err=True),
            )
        except FormatFileError as error:
            raise click.ClickException(str(error)) from error

        if diff:
            click.echo(render_diff(result.original, result.formatted, raw_path), nl=False)
        if result.changed:
            would_change.append(raw_path)
        logger.debug("%s: %s", raw_path, "changed" if result.changed else "unchanged")

    if check:
        for raw_path in would_change:
            click.echo(f"would reformat {raw_path}", err=True)
        if would_change:
            sys.exit(1)


if __name__ == "__main__":
    cli()
