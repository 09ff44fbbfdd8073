"""Built-in CLI sub-commands for sdkforge.

* :mod:`~sdkforge.commands.generate` -- generate an SDK from a spec.
* :mod:`~sdkforge.commands.init` -- write a starter config file.
* :mod:`~sdkforge.commands.inspect` -- show what a spec parses into.

Each module exports a plain callback function registered directly on the
root app. :func:`handle_errors` turns an
:class:`~sdkforge.exceptions.SdkForgeError` into an error message and the
error's exit code.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from sdkforge.exceptions import SdkForgeError
from sdkforge.output import error


@contextmanager
def handle_errors() -> Iterator[None]:
    try:
        yield
    except SdkForgeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
