"""sdkforge -- Generate Python SDKs from Postman collections and OpenAPI specs.

A generation run parses one specification document into a format-independent
model, builds a code artifact (connector, resources, requests, DTOs) for
every part of it, maps each artifact to a file under the output directory
and renders it with Jinja2 templates. Generated DTOs serialise themselves
through the attribute serialisation protocol in
:mod:`sdkforge.serialization`.

Typical workflow::

    sdkforge init                         # write generator-config.json
    sdkforge generate collection.json     # write the SDK to ./build

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Generator configuration loading with precedence resolution.
    pipeline: Parse, build, resolve, render and write.
    emitter: Jinja2 rendering of code artifacts.
    serialization: Attribute serialisation protocol of generated DTOs.
    runtime: Base classes the generated code builds on.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
