"""Parse Postman collections (v2.0 / v2.1) into the intermediate model.

Postman collections are trees of *items*: an item with an ``item`` list is a
folder, an item with a ``request`` is an endpoint. The mapping is:

* Each top-level folder becomes a resource named after the folder; requests
  in nested folders belong to their top-level folder. Top-level requests go
  to the fallback resource.
* Path segments ``:id`` and ``{{id}}`` become ``{id}`` path parameters.
* ``url.query`` entries become query parameters (disabled entries and
  ``ignoredQueryParams`` are skipped); ``request.header`` entries become
  header parameters, except transport headers such as ``Content-Type``.
* ``raw`` JSON bodies are typed by example (see
  :mod:`sdkforge.parser.shapes`); ``urlencoded`` and ``formdata`` fields
  become body parameters. ``ignoredBodyParams`` applies to both.
* The first saved example response with a JSON body types the response.

The collection may also be wrapped as ``{"collection": {...}}``, as the
Postman API returns it.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional
from urllib.parse import urlsplit

from sdkforge.exceptions import ParseError
from sdkforge.generator.naming import pascal_case
from sdkforge.models import (
    ApiModel,
    Endpoint,
    HTTPMethod,
    Parameter,
    ParameterLocation,
    PrimitiveKind,
    SimpleType,
    TypeDescriptor,
)
from sdkforge.parser.base import SpecParser
from sdkforge.parser.shapes import ShapeRegistry

logger = logging.getLogger(__name__)

_SKIPPED_HEADERS = frozenset(
    {"content-type", "accept", "authorization", "user-agent", "content-length"}
)
_BASE_URL_VARIABLES = ("baseUrl", "base_url", "baseURL", "url", "host")
_VARIABLE_RE = re.compile(r"^\{\{\s*([^{}]+?)\s*\}\}$")
_UNQUOTED_VARIABLE_RE = re.compile(r'(?<!")\{\{[^{}]+\}\}(?!")')


class PostmanParser(SpecParser):
    """Parser for ``specType = "postman"``."""

    spec_type = "postman"

    def parse(self, document: dict[str, Any]) -> ApiModel:
        collection = document.get("collection", document)
        if not isinstance(collection, dict):
            raise ParseError("Postman collection must be an object")

        info = collection.get("info")
        items = collection.get("item")
        if not isinstance(info, dict) or not isinstance(items, list):
            raise ParseError(
                "Not a Postman collection: expected top-level 'info' and 'item'"
            )

        variables = _variables(collection.get("variable"))
        shapes = ShapeRegistry()
        groups: dict[Optional[str], list[Endpoint]] = {}
        descriptions: dict[str, str] = {}
        first_url: Optional[Any] = None

        for item in items:
            _require_item(item)
            if "item" in item:
                folder = str(item.get("name") or "").strip() or None
                groups.setdefault(folder, [])
                if folder and isinstance(item.get("description"), str):
                    descriptions[folder] = item["description"]
                for request_item in _walk_requests(item):
                    groups[folder].append(self._endpoint(request_item, shapes))
                    first_url = first_url or _request_of(request_item).get("url")
            else:
                groups.setdefault(None, []).append(self._endpoint(item, shapes))
                first_url = first_url or _request_of(item).get("url")

        return ApiModel(
            name=str(info.get("name") or self.config.connector_name),
            base_url=_base_url(variables, first_url),
            description=_text(info.get("description")),
            resources=self.build_resources(groups, descriptions),
            shapes=shapes.shapes,
        )

    def _endpoint(self, item: dict[str, Any], shapes: ShapeRegistry) -> Endpoint:
        request = _request_of(item)
        method_name = str(request.get("method") or "GET").lower()
        try:
            method = HTTPMethod(method_name)
        except ValueError:
            raise ParseError(
                f"Unsupported HTTP method {method_name.upper()!r} in '{item.get('name')}'"
            ) from None

        segments, query = _split_url(request.get("url"))
        path = "/" + "/".join(_template_segment(s) for s in segments)
        name = str(item.get("name") or f"{method.value} {path}")

        parameters: list[Parameter] = []
        for segment in segments:
            param = _path_variable(segment)
            if param:
                parameters.append(
                    Parameter(name=param, location=ParameterLocation.PATH, required=True)
                )

        for entry in query:
            key = _entry_key(entry, "Query", name)
            if not key or entry.get("disabled"):
                continue
            if key in self.config.ignored_query_params:
                logger.debug("Ignoring query parameter %s on %s", key, name)
                continue
            parameters.append(
                Parameter(
                    name=key,
                    location=ParameterLocation.QUERY,
                    type=_scalar_type(entry.get("value")),
                    description=_text(entry.get("description")),
                )
            )

        headers = request.get("header")
        # A v2.1 header block may also be a raw string, which carries no keys.
        for header in headers if isinstance(headers, list) else []:
            key = _entry_key(header, "Header", name)
            if not key or header.get("disabled") or key.lower() in _SKIPPED_HEADERS:
                continue
            parameters.append(
                Parameter(
                    name=key,
                    location=ParameterLocation.HEADER,
                    description=_text(header.get("description")),
                )
            )

        body, body_params = self._body(request.get("body"), name, shapes)
        parameters.extend(body_params)

        return Endpoint(
            name=name,
            method=method,
            path=path,
            description=_text(request.get("description")),
            parameters=tuple(parameters),
            body=body,
            response=self._response(item.get("response"), name, shapes),
        )

    def _body(
        self, body: Any, endpoint_name: str, shapes: ShapeRegistry
    ) -> tuple[Optional[TypeDescriptor], list[Parameter]]:
        if not isinstance(body, dict) or body.get("disabled"):
            return None, []

        mode = body.get("mode")
        ignored = self.config.ignored_body_params

        if mode in ("urlencoded", "formdata"):
            params = []
            for entry in body.get(mode) or []:
                key = _entry_key(entry, "Body", endpoint_name)
                if not key or entry.get("disabled") or key in ignored:
                    continue
                is_file = entry.get("type") == "file"
                params.append(
                    Parameter(
                        name=key,
                        location=ParameterLocation.BODY,
                        type=SimpleType.of("any" if is_file else "str"),
                        description=_text(entry.get("description")),
                    )
                )
            return None, params

        if mode == "raw":
            raw = body.get("raw") or ""
            if not raw.strip():
                return None, []
            value = _decode_json(raw)
            if value is _NOT_JSON:
                logger.warning("Body of '%s' is not JSON, typing it as str", endpoint_name)
                return SimpleType.of("str"), []
            return shapes.from_example(value, f"{pascal_case(endpoint_name)}Body", ignored), []

        if mode in ("file", "graphql"):
            return SimpleType.of("any"), []
        return None, []

    def _response(
        self, responses: Any, endpoint_name: str, shapes: ShapeRegistry
    ) -> Optional[TypeDescriptor]:
        for response in responses or []:
            if not isinstance(response, dict):
                continue
            raw = response.get("body")
            if not isinstance(raw, str) or not raw.strip():
                continue
            value = _decode_json(raw)
            if value is _NOT_JSON:
                continue
            return shapes.from_example(value, f"{pascal_case(endpoint_name)}Response")
        return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


_NOT_JSON = object()


def _decode_json(raw: str) -> Any:
    """Decode *raw*; unquoted ``{{variables}}`` are read as ``null``."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(_UNQUOTED_VARIABLE_RE.sub("null", raw))
    except json.JSONDecodeError:
        return _NOT_JSON


def _require_item(item: Any) -> None:
    if not isinstance(item, dict):
        raise ParseError(f"Collection item must be an object, got {type(item).__name__}")
    if "item" in item:
        if not isinstance(item["item"], list):
            raise ParseError(f"Folder '{item.get('name')}' has a non-list 'item'")
    elif "request" not in item:
        raise ParseError(f"Item '{item.get('name')}' is neither a folder nor a request")


def _entry_key(entry: Any, what: str, endpoint_name: str) -> Optional[str]:
    """Return the ``key`` of a Postman key/value entry, or None when it is blank."""
    if not isinstance(entry, dict):
        raise ParseError(f"{what} entry of '{endpoint_name}' must be an object")
    key = entry.get("key")
    if key is None or key == "":
        return None
    if not isinstance(key, str):
        raise ParseError(
            f"{what} key of '{endpoint_name}' must be a string, got {type(key).__name__}"
        )
    return key


def _walk_requests(folder: dict[str, Any]):
    """Yield the request items below *folder*, depth-first in source order."""
    for child in folder["item"]:
        _require_item(child)
        if "item" in child:
            yield from _walk_requests(child)
        else:
            yield child


def _request_of(item: dict[str, Any]) -> dict[str, Any]:
    request = item["request"]
    # v2 allows a bare URL string as the request.
    if isinstance(request, str):
        return {"method": "GET", "url": request}
    if not isinstance(request, dict):
        raise ParseError(f"Request of '{item.get('name')}' must be an object or URL")
    return request


def _split_url(url: Any) -> tuple[list[str], list[dict[str, Any]]]:
    """Return ``(path segments, query entries)`` of a Postman URL."""
    if isinstance(url, dict):
        path = url.get("path")
        if path is None:
            segments, query = _split_raw(str(url.get("raw") or ""))
        elif isinstance(path, str):
            segments, query = [s for s in path.split("/") if s], []
        else:
            segments, query = [str(s) for s in path if str(s)], []
        if "query" in url:
            query = [q for q in url.get("query") or [] if isinstance(q, dict)]
        return segments, query
    if isinstance(url, str):
        return _split_raw(url)
    return [], []


def _split_raw(raw: str) -> tuple[list[str], list[dict[str, Any]]]:
    raw, _, query_string = raw.partition("?")
    if raw.startswith("{{"):
        # Host given as a variable: drop it, keep what follows.
        _, _, raw = raw.partition("}}")
    elif "://" in raw:
        raw = urlsplit(raw).path
    else:
        # Bare host without scheme.
        first, _, rest = raw.partition("/")
        raw = rest if "." in first else raw
    segments = [s for s in raw.split("/") if s]

    query = []
    for pair in query_string.split("&") if query_string else []:
        key, _, value = pair.partition("=")
        query.append({"key": key, "value": value})
    return segments, query


def _path_variable(segment: str) -> Optional[str]:
    if segment.startswith(":") and len(segment) > 1:
        return segment[1:]
    match = _VARIABLE_RE.match(segment)
    if match:
        return match.group(1)
    return None


def _template_segment(segment: str) -> str:
    name = _path_variable(segment)
    return f"{{{name}}}" if name else segment


def _scalar_type(value: Any) -> SimpleType:
    """Type a query example: integers and booleans are recognised, the rest is str."""
    text = str(value or "").strip()
    if re.fullmatch(r"-?\d+", text):
        return SimpleType(kind=PrimitiveKind.INTEGER)
    if text in ("true", "false"):
        return SimpleType(kind=PrimitiveKind.BOOLEAN)
    return SimpleType(kind=PrimitiveKind.STRING)


def _variables(entries: Any) -> dict[str, str]:
    result: dict[str, str] = {}
    for entry in entries or []:
        if isinstance(entry, dict) and entry.get("key"):
            result[str(entry["key"])] = str(entry.get("value") or "")
    return result


def _base_url(variables: dict[str, str], first_url: Any) -> str:
    for key in _BASE_URL_VARIABLES:
        if variables.get(key):
            return variables[key].rstrip("/")

    raw = first_url.get("raw") if isinstance(first_url, dict) else first_url
    if not isinstance(raw, str):
        return ""
    raw = raw.partition("?")[0]
    if raw.startswith("{{"):
        return raw[: raw.index("}}") + 2] if "}}" in raw else ""
    if "://" in raw:
        parts = urlsplit(raw)
        return f"{parts.scheme}://{parts.netloc}"
    return ""


def _text(value: Any) -> Optional[str]:
    """Descriptions may be strings or ``{"content": ...}`` objects."""
    if isinstance(value, dict):
        value = value.get("content")
    return value if isinstance(value, str) and value else None
