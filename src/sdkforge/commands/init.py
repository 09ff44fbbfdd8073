"""Init command -- write a starter ``generator-config.json``."""

from __future__ import annotations

from pathlib import Path

import typer

from sdkforge.commands import handle_errors
from sdkforge.output import success


def init_command(
    path: Path = typer.Option(
        Path("generator-config.json"), "--path", "-p", help="Where to write the config file."
    ),
    connector: str = typer.Option("Sdk", "--connector", help="Connector class name."),
    namespace: str = typer.Option("App", "--namespace", help="Root namespace."),
    spec_type: str = typer.Option("postman", "--type", "-t", help="postman or openapi."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a config file holding every option with its default value.

    Example::

        sdkforge init --connector Petstore --namespace Petstore --type openapi
    """
    from sdkforge.config import load_config, save_config
    from sdkforge.exceptions import OutputExistsError

    with handle_errors():
        if path.exists() and not force:
            raise OutputExistsError(f"{path} already exists (use --force to overwrite)")
        config = load_config(
            {}, {"connectorName": connector, "namespace": namespace, "specType": spec_type}
        )
        save_config(config, path)

    success(f"Wrote {path}")
