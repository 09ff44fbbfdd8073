"""Generate command -- turn a specification into SDK source files.

Implements ``sdkforge generate``. Configuration is layered: documented
defaults < config file (``--config`` or ``./generator-config.json``) < the
command-line flags, which are passed to
:func:`~sdkforge.config.load_config` as overrides. Flags that are not given
do not override anything.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from sdkforge.commands import handle_errors
from sdkforge.exceptions import InvalidUsageError
from sdkforge.output import debug, get_output, info, success


def generate_command(
    spec: str = typer.Argument(
        ..., help="Postman collection or OpenAPI document (path, URL, or '-' for stdin)."
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Generator config file (JSON or YAML)."
    ),
    spec_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Specification format: postman or openapi."
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Directory the SDK is written to."
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", help="Root namespace of the generated classes."
    ),
    connector: Optional[str] = typer.Option(
        None, "--connector", help="Class name of the generated connector."
    ),
    force: Optional[bool] = typer.Option(
        None, "--force/--no-force", "-f", help="Overwrite existing files."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="List the files without writing them."
    ),
    show: bool = typer.Option(
        False, "--show", help="With --dry-run, print the generated source too."
    ),
) -> None:
    """Generate an SDK from a specification document.

    Example::

        sdkforge generate collection.json
        sdkforge generate openapi.yaml --type openapi --namespace Petstore -o ./sdk
    """
    from sdkforge.pipeline import run

    overrides = {
        "specType": spec_type,
        "outputDir": output_dir,
        "namespace": namespace,
        "connectorName": connector,
        "force": force,
    }
    given = {k: v for k, v in overrides.items() if v is not None}
    debug(f"Config overrides: {given}")

    with handle_errors():
        if show and not dry_run:
            raise InvalidUsageError("--show only applies together with --dry-run")
        result, written = run(config, spec, overrides, dry_run=dry_run)

    if dry_run:
        output = get_output()
        rows = [[f.artifact.kind.value, f.artifact.qualified_name, f.path] for f in result.files]
        output.print_table(["Kind", "Class", "Path"], rows, title=f"{len(rows)} files (dry run)")
        if show:
            for generated in result.files:
                output.print_source(generated.content, title=generated.path)
        return

    info(f"{len(result.model.endpoints)} endpoints in {len(result.model.resources)} resources")
    success(f"Generated {len(written)} files in {result.config.output_dir}")
