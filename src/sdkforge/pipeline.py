"""End-to-end generation: document -> model -> artifacts -> files.

:func:`generate` is pure. It parses, builds, resolves paths and renders
everything in memory, so any failure aborts the run before a file exists.
:func:`write_result` then checks every target before writing the first one,
and writes each file atomically.

Typical usage::

    config = load_config("generator-config.json")
    result = generate(config, load_document("collection.json"))
    write_result(result)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

from sdkforge.config import ConfigSource, atomic_write, load_config
from sdkforge.emitter import render_artifact
from sdkforge.exceptions import OutputExistsError
from sdkforge.generator.builder import build_artifacts
from sdkforge.generator.paths import resolve_all
from sdkforge.models import ApiModel, CodeArtifact, GeneratedSdk, GeneratorConfig
from sdkforge.parser import load_document, parse_specification
from sdkforge.parser.loader import DocumentSource

logger = logging.getLogger(__name__)


class GeneratedFile(BaseModel):
    """One rendered artifact and the path it is written to."""

    model_config = ConfigDict(frozen=True)

    artifact: CodeArtifact
    path: str
    content: str


class GenerationResult(BaseModel):
    """Everything one run produced, before anything is written."""

    model_config = ConfigDict(frozen=True)

    model: ApiModel
    sdk: GeneratedSdk
    files: list[GeneratedFile]

    @property
    def config(self) -> GeneratorConfig:
        return self.sdk.config


def generate(config: GeneratorConfig, document: dict[str, Any]) -> GenerationResult:
    """Parse *document* and render the SDK described by *config*.

    Raises:
        ConfigError: If ``config.spec_type`` names no parser.
        ParseError: If the document is malformed.
        GenerationError: On duplicate artifacts or path collisions.
    """
    model = parse_specification(document, config)
    logger.info(
        "Parsed %d resources, %d endpoints, %d shapes",
        len(model.resources),
        len(model.endpoints),
        len(model.shapes),
    )
    sdk = build_artifacts(model, config)
    files = [
        GeneratedFile(artifact=artifact, path=path, content=render_artifact(artifact, config))
        for artifact, path in resolve_all(sdk.artifacts, config)
    ]
    return GenerationResult(model=model, sdk=sdk, files=files)


def write_result(
    result: GenerationResult,
    root: Union[str, Path] = ".",
    force: Optional[bool] = None,
) -> list[Path]:
    """Write the files of *result* below *root*.

    Args:
        result: The output of :func:`generate`.
        root: Directory relative paths are resolved against.
        force: Overwrite existing files. Defaults to ``config.force``.

    Returns:
        The paths written, in artifact order.

    Raises:
        OutputExistsError: If any target exists and *force* is false.
            Nothing is written in that case.
    """
    if force is None:
        force = result.config.force
    base = Path(root)
    targets = [(base / f.path, f) for f in result.files]

    if not force:
        existing = [str(path) for path, _ in targets if path.exists()]
        if existing:
            raise OutputExistsError(
                f"{len(existing)} file(s) already exist (use --force to overwrite): "
                + ", ".join(existing[:5])
                + (", ..." if len(existing) > 5 else "")
            )

    written: list[Path] = []
    for path, generated in targets:
        atomic_write(path, generated.content)
        logger.debug("Wrote %s", path)
        written.append(path)
    return written


def run(
    config_source: ConfigSource,
    spec_source: DocumentSource,
    overrides: Optional[dict[str, Any]] = None,
    root: Union[str, Path] = ".",
    dry_run: bool = False,
) -> tuple[GenerationResult, list[Path]]:
    """Load config and document, generate, and write unless *dry_run*.

    Returns:
        The generation result and the paths written (empty on a dry run).
    """
    config = load_config(config_source, overrides)
    result = generate(config, load_document(spec_source))
    if dry_run:
        return result, []
    return result, write_result(result, root=root)
