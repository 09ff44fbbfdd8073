"""Typer application and console-script entry point of ``sdkforge``.

The sub-commands (``generate``, ``init``, ``inspect``) are plain functions
from :mod:`sdkforge.commands` registered on :data:`app`. The root callback
runs before any of them: it installs the
:class:`~sdkforge.output.OutputManager` for the invocation and sends the
package's :mod:`logging` records to stderr through Rich, at ``DEBUG`` with
``--verbose`` and ``WARNING`` otherwise.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from sdkforge import __version__
from sdkforge.commands.generate import generate_command
from sdkforge.commands.init import init_command
from sdkforge.commands.inspect import inspect_command
from sdkforge.exceptions import SdkForgeError
from sdkforge.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from sdkforge.output import OutputFormat, OutputManager, error, set_output

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="sdkforge",
    help="Generate Python SDKs from Postman collections and OpenAPI documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.command("generate")(generate_command)
app.command("init")(init_command)
app.command("inspect")(inspect_command)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sdkforge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the sdkforge version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Write data to stdout as JSON."),
    plain_output: bool = typer.Option(
        False, "--plain", help="Write data as tab-separated text."
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only report warnings and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug messages."),
) -> None:
    """Install output and logging for the sub-command that follows.

    ``--json`` wins over ``--plain``; with neither, Rich tables are used on
    a terminal and plain text when stdout is piped.
    """
    requested = OutputFormat.AUTO
    if json_output:
        requested = OutputFormat.JSON
    elif plain_output:
        requested = OutputFormat.PLAIN

    output = OutputManager(format=requested, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output.stderr, verbose)


def configure_logging(console: Console, verbose: bool) -> None:
    """Route ``sdkforge.*`` log records to *console*, replacing an earlier handler."""
    package_logger = logging.getLogger("sdkforge")
    for handler in [h for h in package_logger.handlers if isinstance(h, RichHandler)]:
        package_logger.removeHandler(handler)

    handler = RichHandler(console=console, show_time=False, show_path=verbose)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _on_sigint(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def main() -> None:
    """Console-script entry point.

    A :class:`~sdkforge.exceptions.SdkForgeError` that escapes a command is
    printed and ends the process with the error's ``exit_code``; anything
    else ends it with :data:`~sdkforge.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    signal.signal(signal.SIGINT, _on_sigint)
    try:
        app()
    except SdkForgeError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        logger.debug("Unhandled error", exc_info=True)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
