"""
mlog - Formatter and Checker Command-Line Interface
===================================================

This module implements the ``mlog`` command, a front end for the formatter
and the static checks.

Usage Examples
--------------
Format a file and print the result:
    $ mlog format program.mlog

Format files in place with tabs:
    $ mlog format --use-tabs -i *.mlog

Fail if any file is not formatted (for CI):
    $ mlog format --check src/*.mlog

Check a program for problems:
    $ mlog check program.mlog
    $ mlog check --json program.mlog

Rewrite numeric jump targets as labels, or back:
    $ mlog jumps --labels program.mlog
    $ mlog jumps --indexes -i program.mlog

Read from standard input:
    $ cat program.mlog | mlog format -

Exit Codes
----------
0 - Success
1 - Errors found, or a file would be reformatted
2 - Invalid arguments or configuration error
3 - Internal error
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from mlog_tools import __version__
from mlog_tools.analysis.validation import check_document
from mlog_tools.cli.errors import ExitCode, handle_cli_exception
from mlog_tools.config import MlogConfig
from mlog_tools.diagnostics import DiagnosticCollector
from mlog_tools.document import MlogDocument
from mlog_tools.formatter import format_document
from mlog_tools.refactoring import apply_edits, convert_to_labeled_jumps, convert_to_numbered_jumps

logger = logging.getLogger(__name__)

STDIN_NAME = "-"


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the verbosity flag and the configuration read from the
    environment, which commands refine with their own options.
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.config: MlogConfig = MlogConfig()

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def read_source(name: str) -> str:
    """Read a source file, or standard input for ``-``."""
    if name == STDIN_NAME:
        return click.get_text_stream("stdin").read()
    return Path(name).read_text(encoding="utf-8")


def display_name(name: str) -> str:
    return "<stdin>" if name == STDIN_NAME else name


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="mlog")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Format and check mlog programs for Mindustry logic processors.

    Settings not given on the command line are read from MLOG_TAB_SIZE,
    MLOG_INSERT_SPACES, MLOG_FINAL_NEWLINE, MLOG_MAX_INSTRUCTIONS and
    MLOG_MAX_LABELS.
    """
    ctx.verbose = verbose
    ctx.setup_logging()
    ctx.config = MlogConfig.from_env()


# =============================================================================
# Format Command
# =============================================================================

@main.command("format")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, allow_dash=True),
)
@click.option(
    "--tab-size",
    type=int,
    default=None,
    help="Spaces per indentation level (default: 4)",
)
@click.option(
    "--use-tabs",
    is_flag=True,
    help="Indent with tabs instead of spaces",
)
@click.option(
    "--no-final-newline",
    is_flag=True,
    help="Do not end the output with a newline",
)
@click.option(
    "-i", "--in-place",
    is_flag=True,
    help="Rewrite the files instead of printing the result",
)
@click.option(
    "--check",
    is_flag=True,
    help="Only report files that would change; exit 1 if any would",
)
@pass_context
def format_command(
    ctx: Context,
    files: tuple[str, ...],
    tab_size: Optional[int],
    use_tabs: bool,
    no_final_newline: bool,
    in_place: bool,
    check: bool,
) -> None:
    """
    Format mlog source files.

    FILES are the source files to format; use - for standard input.

    \b
    Examples:
        mlog format program.mlog           # Print formatted source
        mlog format -i program.mlog        # Rewrite the file
        mlog format --check *.mlog         # Verify formatting
    """
    try:
        if in_place and STDIN_NAME in files:
            raise click.BadParameter("cannot rewrite standard input in place", param_hint="FILES")

        config = ctx.config
        if tab_size is not None:
            config.tab_size = tab_size
        if use_tabs:
            config.insert_spaces = False
        if no_final_newline:
            config.insert_final_newline = False
        options = config.validate().format_options()

        unformatted = 0
        for name in files:
            source = read_source(name)
            formatted = format_document(MlogDocument(source, uri=name), options)
            changed = formatted != source

            if check:
                if changed:
                    unformatted += 1
                    click.echo(f"would reformat {display_name(name)}", err=True)
            elif in_place:
                if changed:
                    Path(name).write_text(formatted, encoding="utf-8")
                    click.echo(f"reformatted {name}", err=True)
                else:
                    logger.debug(f"{name} already formatted")
            else:
                click.echo(formatted, nl=False)

        if unformatted:
            click.echo(f"{unformatted} of {len(files)} file(s) would be reformatted", err=True)
            sys.exit(ExitCode.CHECK_FAILED)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Check Command
# =============================================================================

@main.command("check")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, allow_dash=True),
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print diagnostics as JSON (Language Server Protocol shape)",
)
@pass_context
def check_command(ctx: Context, files: tuple[str, ...], as_json: bool) -> None:
    """
    Check mlog source files for problems.

    FILES are the source files to check; use - for standard input.
    Exits with status 1 when any error is found. Warnings, information and
    hints are reported but do not fail the check.

    \b
    Examples:
        mlog check program.mlog
        mlog check --json program.mlog > diagnostics.json
    """
    try:
        config = ctx.config.validate()
        results = {}
        has_errors = False

        for name in files:
            source = read_source(name)
            doc = MlogDocument(source, uri=name)

            collector = DiagnosticCollector(display_name(name), source)
            collector.extend(check_document(doc, config))
            has_errors = has_errors or collector.has_errors()

            if as_json:
                results[display_name(name)] = collector.to_list()
            else:
                click.echo(collector.report())

        if as_json:
            click.echo(json.dumps(results, indent=2))

        if has_errors:
            sys.exit(ExitCode.CHECK_FAILED)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Jumps Command
# =============================================================================

@main.command("jumps")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, allow_dash=True),
)
@click.option(
    "--labels/--indexes", "to_labels",
    default=True,
    help="Convert numeric targets to labels (default), or labels to instruction indexes",
)
@click.option(
    "-i", "--in-place",
    is_flag=True,
    help="Rewrite the files instead of printing the result",
)
@pass_context
def jumps_command(ctx: Context, files: tuple[str, ...], to_labels: bool, in_place: bool) -> None:
    """
    Rewrite jump targets between labels and instruction indexes.

    FILES are the source files to rewrite; use - for standard input.
    Targets that do not resolve to an instruction are left unchanged.

    \b
    Examples:
        mlog jumps program.mlog              # Print with labeled jumps
        mlog jumps --indexes program.mlog    # Print with numbered jumps
        mlog jumps -i *.mlog                 # Rewrite the files
    """
    convert = convert_to_labeled_jumps if to_labels else convert_to_numbered_jumps

    try:
        if in_place and STDIN_NAME in files:
            raise click.BadParameter("cannot rewrite standard input in place", param_hint="FILES")

        for name in files:
            doc = MlogDocument(read_source(name), uri=name)
            edits = convert(doc)
            result = apply_edits(doc, edits)

            if not in_place:
                click.echo(result, nl=False)
            elif edits:
                Path(name).write_text(result, encoding="utf-8")
                click.echo(f"rewrote {len(edits)} span(s) in {name}", err=True)
            else:
                logger.debug(f"{name}: no jumps to convert")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


if __name__ == "__main__":
    main()
