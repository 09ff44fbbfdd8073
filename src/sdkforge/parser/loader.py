"""Load specification documents from a URL, local file, or stdin.

All I/O for fetching raw specification documents lives here. Both JSON and
YAML are accepted; the format is picked from the file extension or the HTTP
``content-type`` when available and sniffed otherwise.

The public entry point is :func:`load_document`. The returned dict is passed
to a format-specific :class:`~sdkforge.parser.base.SpecParser`.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

import httpx
import yaml

from sdkforge.exceptions import ParseError

DocumentSource = Union[str, Path, Mapping[str, Any]]


def load_document(source: DocumentSource) -> dict[str, Any]:
    """Load a specification from a URL, a file path, ``-`` (stdin) or a mapping.

    Args:
        source: An ``http(s)://`` URL, a path, ``"-"`` for stdin, or an
            already-parsed document (returned as a shallow copy).

    Returns:
        The parsed document.

    Raises:
        ParseError: If the source cannot be read or is not a JSON/YAML object.
    """
    if isinstance(source, Mapping):
        return dict(source)

    text_source = str(source)
    if text_source == "-":
        content, hint, origin = _read_stdin(), "", "stdin"
    elif text_source.startswith(("http://", "https://")):
        content, hint = _fetch(text_source)
        origin = text_source
    else:
        content, hint = _read_file(Path(text_source))
        origin = text_source

    if not content.strip():
        raise ParseError(f"Specification is empty: {origin}")
    return parse_document(content, hint=hint)


def _read_stdin() -> str:
    try:
        return sys.stdin.read()
    except OSError as exc:
        raise ParseError(f"Failed to read from stdin: {exc}") from exc


def _fetch(url: str) -> tuple[str, str]:
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ParseError(
            f"HTTP {exc.response.status_code} fetching specification from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise ParseError(f"Failed to fetch specification from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        return response.text, "json"
    if "yaml" in content_type or "yml" in content_type:
        return response.text, "yaml"
    return response.text, ""


def _read_file(path: Path) -> tuple[str, str]:
    if not path.is_file():
        raise ParseError(f"Specification file not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseError(f"Failed to read specification {path}: {exc}") from exc

    suffix = path.suffix.lower()
    if suffix == ".json":
        return content, "json"
    if suffix in (".yaml", ".yml"):
        return content, "yaml"
    return content, ""


def parse_document(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    JSON is tried first unless *hint* is ``"yaml"``; an explicit ``"json"``
    hint disables the YAML fallback.

    Raises:
        ParseError: If neither parser accepts the content, or the top level
            is not an object.
    """
    errors: list[str] = []

    if hint != "yaml":
        try:
            return _require_object(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise ParseError(f"Invalid JSON: {exc}") from exc
            errors.append(f"JSON error: {exc}")

    try:
        return _require_object(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        errors.append(f"YAML error: {exc}")

    raise ParseError("Failed to parse specification as JSON or YAML\n  " + "\n  ".join(errors))


def _require_object(document: Any) -> dict[str, Any]:
    if not isinstance(document, dict):
        kind = type(document).__name__ if document is not None else "empty document"
        raise ParseError(f"Specification must be a JSON/YAML object (got {kind})")
    return document
