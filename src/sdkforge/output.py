"""Terminal output for the ``sdkforge`` CLI.

Data (the ``inspect`` tables, the ``--dry-run`` file list, ``--show``
source) goes to stdout and every diagnostic goes to stderr, so
``sdkforge --json inspect spec.json | jq`` sees nothing but JSON.

Rich renders both streams when stdout is an interactive terminal; piped
output is plain text. ``NO_COLOR`` or ``TERM=dumb`` turns colour off.

The CLI callback installs one :class:`OutputManager` with :func:`set_output`
and the module-level helpers (:func:`info`, :func:`error`, ...) write through
whichever manager is installed.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Sequence
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


class OutputFormat(str, Enum):
    """How data written to stdout is rendered; ``AUTO`` picks ``RICH`` or ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Level(NamedTuple):
    prefix: str
    prefix_style: str
    text_style: str
    hidden_when_quiet: bool
    needs_verbose: bool = False


_LEVELS: dict[str, _Level] = {
    "info": _Level("", "", "", hidden_when_quiet=True),
    "success": _Level("", "", "green", hidden_when_quiet=True),
    "warning": _Level("Warning: ", "yellow", "", hidden_when_quiet=False),
    "error": _Level("Error: ", "bold red", "", hidden_when_quiet=False),
    "debug": _Level("[debug] ", "dim", "dim", hidden_when_quiet=False, needs_verbose=True),
}


def color_disabled_by_env() -> bool:
    """``NO_COLOR`` (with any value, even empty) or ``TERM=dumb`` turns colour off."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def stdout_is_terminal() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if stdout_is_terminal() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


class OutputManager:
    """The consoles and flags of one CLI invocation.

    Args:
        format: Requested data format; ``AUTO`` is resolved immediately.
        no_color: Disable colour and Rich markup (also implied by the
            environment, see :func:`color_disabled_by_env`).
        quiet: Hide ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.no_color = no_color or color_disabled_by_env()
        self.quiet = quiet
        self.verbose = verbose
        self.format = resolve_format(format, self.no_color)

        rich_stdout = self.format == OutputFormat.RICH
        self.stdout = Console(file=sys.stdout, no_color=self.no_color, force_terminal=rich_stdout)
        self.stderr = Console(file=sys.stderr, no_color=self.no_color, stderr=True)

    # --- stdout ---

    def print_data(self, text: str) -> None:
        sys.stdout.write(text + "\n")
        sys.stdout.flush()

    def print_json(self, data: Any) -> None:
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def print_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        title: Optional[str] = None,
    ) -> None:
        """Print *rows* as a Rich table, a JSON array of objects or tab-separated lines."""
        cells = [[str(cell) for cell in row] for row in rows]
        if self.format == OutputFormat.JSON:
            self.print_json([dict(zip(headers, row)) for row in cells])
            return
        if self.format == OutputFormat.PLAIN:
            self.print_data("\n".join("\t".join(line) for line in [list(headers), *cells]))
            return

        table = Table(*headers, title=title, header_style="bold cyan")
        for row in cells:
            table.add_row(*row)
        self.stdout.print(table)

    def print_source(self, source: str, title: Optional[str] = None) -> None:
        """Print generated Python source, syntax-highlighted in Rich mode."""
        if self.format == OutputFormat.JSON:
            self.print_json({"path": title, "source": source})
        elif self.format == OutputFormat.PLAIN:
            header = [f"# --- {title}"] if title else []
            self.print_data("\n".join([*header, source.rstrip("\n")]))
        else:
            if title:
                self.stdout.rule(title)
            self.stdout.print(Syntax(source, "python", theme="monokai"))

    # --- stderr ---

    def emit(self, level: str, message: str) -> None:
        """Write a diagnostic of *level* to stderr unless quiet/verbose filter it."""
        spec = _LEVELS[level]
        if (spec.hidden_when_quiet and self.quiet) or (spec.needs_verbose and not self.verbose):
            return
        if self.no_color:
            sys.stderr.write(f"{spec.prefix}{message}\n")
            sys.stderr.flush()
            return
        line = Text.assemble((spec.prefix, spec.prefix_style), (message, spec.text_style))
        self.stderr.print(line, highlight=False)

    def info(self, message: str) -> None:
        self.emit("info", message)

    def success(self, message: str) -> None:
        self.emit("success", message)

    def warning(self, message: str) -> None:
        self.emit("warning", message)

    def error(self, message: str) -> None:
        self.emit("error", message)

    def debug(self, message: str) -> None:
        self.emit("debug", message)


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, installing a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (used between tests)."""
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().emit("info", message)


def success(message: str) -> None:
    get_output().emit("success", message)


def warning(message: str) -> None:
    get_output().emit("warning", message)


def error(message: str) -> None:
    get_output().emit("error", message)


def debug(message: str) -> None:
    get_output().emit("debug", message)
