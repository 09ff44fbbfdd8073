"""Parse OpenAPI 3.0 / 3.1 documents into the intermediate model.

The parser walks ``paths`` in document order. Every path + HTTP method pair
becomes an :class:`~sdkforge.models.Endpoint` grouped under the operation's
first tag (untagged operations go to the fallback resource).

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values. Cookie parameters have no place
in the generated requests and are skipped.

Request bodies are typed from the ``application/json`` (or any ``+json``)
schema. Form bodies (``application/x-www-form-urlencoded`` and
``multipart/form-data``) become ``body`` parameters instead. Responses are
typed from the first 2xx status that declares a JSON schema.

``$ref`` pointers are followed lazily through
:class:`~sdkforge.parser.resolver.RefResolver`; named components keep their
component name as the DTO class name.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

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
from sdkforge.parser.resolver import RefResolver
from sdkforge.parser.shapes import ShapeRegistry

logger = logging.getLogger(__name__)

_HTTP_METHODS = tuple(m.value for m in HTTPMethod)
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_PARAMETER_LOCATIONS = {
    "path": ParameterLocation.PATH,
    "query": ParameterLocation.QUERY,
    "header": ParameterLocation.HEADER,
}


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Supports OpenAPI 3.0.x and 3.1.x; later 3.x minors are accepted with a
    warning.

    Raises:
        ParseError: If the version is missing, unsupported, or indicates
            Swagger 2.x.
    """
    if "swagger" in document:
        raise ParseError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.0.x and 3.1.x are supported. "
            "Consider converting with https://converter.swagger.io"
        )

    version = document.get("openapi")
    if version is None:
        raise ParseError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(version)
    if version_str.startswith(("3.0.", "3.1.")):
        return version_str
    if version_str.startswith("3."):
        logger.warning("OpenAPI %s is newer than 3.1, parsing as 3.1", version_str)
        return version_str
    raise ParseError(f"Unsupported OpenAPI version: {version_str}")


class OpenApiParser(SpecParser):
    """Parser for ``specType = "openapi"``."""

    spec_type = "openapi"

    def parse(self, document: dict[str, Any]) -> ApiModel:
        version = validate_openapi_version(document)
        logger.debug("Parsing OpenAPI %s document", version)

        paths = document.get("paths") or {}
        if not isinstance(paths, dict):
            raise ParseError("'paths' must be an object")

        resolver = RefResolver(document)
        shapes = ShapeRegistry(resolver)
        groups: dict[Optional[str], list[Endpoint]] = {}

        for path, path_item in paths.items():
            path_item, _ = resolver.deref(path_item)
            if not isinstance(path_item, dict):
                raise ParseError(f"Path item for '{path}' must be an object")

            path_params = path_item.get("parameters") or []
            for method in _HTTP_METHODS:
                operation = path_item.get(method)
                if operation is None:
                    continue
                if not isinstance(operation, dict):
                    raise ParseError(f"Operation {method.upper()} {path} must be an object")

                endpoint = self._endpoint(
                    path, HTTPMethod(method), operation, path_params, resolver, shapes
                )
                tags = operation.get("tags") or []
                group = str(tags[0]) if tags else None
                groups.setdefault(group, []).append(endpoint)

        info = document.get("info") or {}
        return ApiModel(
            name=str(info.get("title") or self.config.connector_name),
            base_url=_base_url(document.get("servers")),
            description=info.get("description"),
            resources=self.build_resources(groups, _tag_descriptions(document)),
            shapes=shapes.shapes,
        )

    def _endpoint(
        self,
        path: str,
        method: HTTPMethod,
        operation: dict[str, Any],
        path_params: list[Any],
        resolver: RefResolver,
        shapes: ShapeRegistry,
    ) -> Endpoint:
        name = str(
            operation.get("operationId")
            or operation.get("summary")
            or f"{method.value} {path}"
        )
        parameters = self._parameters(
            _merge_parameters(path_params, operation.get("parameters") or [], resolver),
            name,
            shapes,
        )

        body: Optional[TypeDescriptor] = None
        request_body, _ = resolver.deref(operation.get("requestBody"))
        if isinstance(request_body, dict):
            body, body_params = self._request_body(request_body, name, shapes)
            parameters.extend(body_params)

        return Endpoint(
            name=name,
            method=method,
            path=path,
            description=operation.get("description") or operation.get("summary"),
            parameters=tuple(parameters),
            body=body,
            response=self._response(operation.get("responses") or {}, name, resolver, shapes),
        )

    def _parameters(
        self, raw_params: list[dict[str, Any]], endpoint_name: str, shapes: ShapeRegistry
    ) -> list[Parameter]:
        parameters: list[Parameter] = []
        for param in raw_params:
            name = param.get("name")
            location_str = param.get("in")
            if not name or location_str == "cookie":
                continue
            location = _PARAMETER_LOCATIONS.get(location_str)
            if location is None:
                raise ParseError(
                    f"Parameter '{name}' of '{endpoint_name}' has invalid location {location_str!r}"
                )
            if location == ParameterLocation.QUERY and name in self.config.ignored_query_params:
                logger.debug("Ignoring query parameter %s on %s", name, endpoint_name)
                continue

            schema = param.get("schema")
            param_type = (
                shapes.from_schema(schema, f"{pascal_case(endpoint_name)}{pascal_case(name)}")
                if isinstance(schema, dict)
                else SimpleType(kind=PrimitiveKind.STRING)
            )
            default = schema.get("default") if isinstance(schema, dict) else None
            parameters.append(
                Parameter(
                    name=name,
                    location=location,
                    type=param_type,
                    # Path parameters are always required.
                    required=location == ParameterLocation.PATH or bool(param.get("required")),
                    description=param.get("description"),
                    default=default,
                )
            )
        return parameters

    def _request_body(
        self, request_body: dict[str, Any], endpoint_name: str, shapes: ShapeRegistry
    ) -> tuple[Optional[TypeDescriptor], list[Parameter]]:
        content = request_body.get("content") or {}
        ignored = self.config.ignored_body_params

        media = _json_media(content)
        if media is not None:
            schema = media.get("schema")
            if schema is None:
                return SimpleType(kind=PrimitiveKind.ANY), []
            return shapes.from_schema(schema, f"{pascal_case(endpoint_name)}Body", ignored), []

        for content_type in _FORM_TYPES:
            media = content.get(content_type)
            if not isinstance(media, dict):
                continue
            schema, _ = shapes.resolver.deref(media.get("schema") or {})
            if not isinstance(schema, dict):
                schema = {}
            required = set(schema.get("required") or [])
            params = []
            for key, prop in (schema.get("properties") or {}).items():
                if key in ignored:
                    continue
                prop_schema, _ = shapes.resolver.deref(prop)
                is_binary = isinstance(prop_schema, dict) and prop_schema.get("format") == "binary"
                params.append(
                    Parameter(
                        name=key,
                        location=ParameterLocation.BODY,
                        type=(
                            SimpleType(kind=PrimitiveKind.ANY)
                            if is_binary
                            else shapes.from_schema(prop, f"{pascal_case(endpoint_name)}{pascal_case(key)}")
                        ),
                        required=key in required,
                        description=prop_schema.get("description") if isinstance(prop_schema, dict) else None,
                    )
                )
            return None, params

        if content:
            logger.info("Body of '%s' has no JSON or form content, typing it as Any", endpoint_name)
            return SimpleType(kind=PrimitiveKind.ANY), []
        return None, []

    def _response(
        self,
        responses: dict[str, Any],
        endpoint_name: str,
        resolver: RefResolver,
        shapes: ShapeRegistry,
    ) -> Optional[TypeDescriptor]:
        for status in sorted(str(code) for code in responses):
            if not (len(status) == 3 and status.startswith("2")):
                continue
            response, _ = resolver.deref(responses.get(status, responses.get(_as_int(status))))
            if not isinstance(response, dict):
                continue
            media = _json_media(response.get("content") or {})
            if media is None or "schema" not in media:
                continue
            return shapes.from_schema(media["schema"], f"{pascal_case(endpoint_name)}Response")
        return None


def _merge_parameters(
    path_params: list[Any],
    op_params: list[Any],
    resolver: RefResolver,
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field).
    """
    path_resolved = [resolver.deref(p)[0] for p in path_params]
    op_resolved = [resolver.deref(p)[0] for p in op_params]
    for param in (*path_resolved, *op_resolved):
        if not isinstance(param, dict):
            raise ParseError(f"Parameter must be an object, got {type(param).__name__}")

    overridden = {(p.get("name"), p.get("in")) for p in op_resolved}
    merged = [p for p in path_resolved if (p.get("name"), p.get("in")) not in overridden]
    merged.extend(op_resolved)
    return merged


def _json_media(content: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Return the media object of the first JSON content type."""
    for content_type, media in content.items():
        base = content_type.split(";")[0].strip().lower()
        if (base == "application/json" or base.endswith("+json")) and isinstance(media, dict):
            return media
    return None


def _as_int(status: str) -> Any:
    # YAML loads unquoted status codes as integers.
    return int(status) if status.isdigit() else status


def _base_url(servers: Any) -> str:
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        return str(servers[0].get("url") or "").rstrip("/")
    return ""


def _tag_descriptions(document: dict[str, Any]) -> dict[str, str]:
    return {
        str(tag["name"]): tag["description"]
        for tag in document.get("tags") or []
        if isinstance(tag, dict) and tag.get("name") and tag.get("description")
    }
