"""Specification parsers -- load a document and turn it into an ``ApiModel``.

This sub-package is responsible for the first half of the sdkforge pipeline:
turning a raw Postman collection or OpenAPI 3.x document (JSON or YAML, local
file, remote URL or stdin) into a format-independent
:class:`~sdkforge.models.ApiModel` that the artifact builder can consume.

Typical usage::

    from sdkforge.parser import load_document, parse_specification

    document = load_document("collection.json")
    model = parse_specification(document, config)

Sub-modules:

* :mod:`~sdkforge.parser.loader` -- I/O layer (URL, file, stdin) plus
  JSON/YAML detection.
* :mod:`~sdkforge.parser.resolver` -- ``$ref`` dereferencing with loop
  detection.
* :mod:`~sdkforge.parser.shapes` -- Type inference from example values and
  JSON Schemas.
* :mod:`~sdkforge.parser.postman` / :mod:`~sdkforge.parser.openapi` -- The
  format-specific :class:`~sdkforge.parser.base.SpecParser` implementations.
"""

from __future__ import annotations

from typing import Any

from sdkforge.exceptions import ConfigError
from sdkforge.models import ApiModel, GeneratorConfig
from sdkforge.parser.base import SpecParser
from sdkforge.parser.loader import load_document
from sdkforge.parser.openapi import OpenApiParser
from sdkforge.parser.postman import PostmanParser

PARSERS: dict[str, type[SpecParser]] = {
    PostmanParser.spec_type: PostmanParser,
    OpenApiParser.spec_type: OpenApiParser,
}


def get_parser(spec_type: str, config: GeneratorConfig) -> SpecParser:
    """Instantiate the parser registered for *spec_type*.

    Raises:
        ConfigError: If no parser handles *spec_type*.
    """
    try:
        parser_cls = PARSERS[spec_type.lower()]
    except KeyError:
        raise ConfigError(
            f"Unknown specType {spec_type!r}. Available: {', '.join(sorted(PARSERS))}"
        ) from None
    return parser_cls(config)


def parse_specification(document: dict[str, Any], config: GeneratorConfig) -> ApiModel:
    """Parse *document* with the parser selected by ``config.spec_type``."""
    return get_parser(config.spec_type, config).parse(document)


__all__ = [
    "PARSERS",
    "SpecParser",
    "get_parser",
    "load_document",
    "parse_specification",
]
