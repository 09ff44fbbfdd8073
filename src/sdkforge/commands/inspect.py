"""Inspect command -- show the resources, endpoints and shapes of a spec.

Runs only the parsing stage, so it is a quick way to see how a document will
be grouped and typed before generating anything. Without a config file the
connector and namespace default to placeholders, which do not affect
parsing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from sdkforge.commands import handle_errors
from sdkforge.output import get_output, info

_PLACEHOLDERS = {"connectorName": "Sdk", "namespace": "App"}


def inspect_command(
    spec: str = typer.Argument(..., help="Spec path, URL, or '-' for stdin."),
    spec_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Specification format: postman or openapi."
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Generator config file (for ignore lists)."
    ),
) -> None:
    """List the endpoints and shapes a specification parses into.

    Example::

        sdkforge inspect openapi.yaml --type openapi
        sdkforge --json inspect collection.json
    """
    from sdkforge.config import DEFAULT_CONFIG_FILENAME, load_config
    from sdkforge.parser import load_document, parse_specification

    with handle_errors():
        source: Any = config
        if source is None and not Path(DEFAULT_CONFIG_FILENAME).is_file():
            source = _PLACEHOLDERS
        generator_config = load_config(source, {"specType": spec_type})
        model = parse_specification(load_document(spec), generator_config)

    output = get_output()
    rows = [
        [
            resource.name,
            endpoint.method.value.upper(),
            endpoint.path,
            endpoint.name,
            endpoint.body.annotation() if endpoint.body else "-",
            endpoint.response.annotation() if endpoint.response else "-",
        ]
        for resource in model.resources
        for endpoint in resource.endpoints
    ]
    output.print_table(
        ["Resource", "Method", "Path", "Name", "Body", "Response"],
        rows,
        title=f"{model.name} -- {len(rows)} endpoints",
    )

    if not model.shapes:
        info("No shapes inferred.")
        return
    output.print_table(
        ["Shape", "Fields"],
        [
            [shape.name, ", ".join(f"{f.name}: {f.type.annotation()}" for f in shape.fields)]
            for shape in model.shapes.values()
        ],
        title=f"Shapes ({len(model.shapes)})",
    )
