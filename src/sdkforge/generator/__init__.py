"""Artifact generation -- turn an ``ApiModel`` into code artifacts and paths.

This sub-package is responsible for the second half of the sdkforge
pipeline: taking the :class:`~sdkforge.models.ApiModel` produced by the
parser and describing, without rendering anything, every class of the SDK
and the file it belongs in.

Typical usage::

    from sdkforge.generator import build_artifacts, resolve_all

    sdk = build_artifacts(model, config)
    for artifact, path in resolve_all(sdk.artifacts, config):
        ...

Sub-modules:

* :mod:`~sdkforge.generator.naming` -- Identifier helpers shared by the
  builder and the emitter.
* :mod:`~sdkforge.generator.builder` -- Builds the connector, base resource,
  resources, requests and DTOs.
* :mod:`~sdkforge.generator.paths` -- Maps artifacts to output paths and
  rejects collisions.
"""

from sdkforge.generator.builder import build_artifacts
from sdkforge.generator.paths import resolve_all, resolve_output_path

__all__ = ["build_artifacts", "resolve_all", "resolve_output_path"]
