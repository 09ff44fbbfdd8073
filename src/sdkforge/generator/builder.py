"""Build the code artifacts of an SDK from the intermediate model.

:func:`build_artifacts` produces, in order:

1. The connector ``<namespace>\\<ConnectorName>``.
2. The shared base resource ``<baseResourceNamespace or namespace>\\Resource``.
3. One resource per model resource, ``<namespace>\\<resourceSuffix>\\<Name>``.
4. One request per endpoint,
   ``<namespace>\\<requestSuffix>\\<Resource>\\<Endpoint>``. Its fields are the
   path parameters, then query and header parameters, then the body (a
   single ``body`` field for typed bodies, one field per form parameter).
5. One DTO per shape, ``<namespace>\\<dtoSuffix>\\<Shape>``. Shapes used only
   as endpoint responses go to ``<namespace>\\<responseSuffix>`` instead.

Every artifact lists the classes it depends on in ``metadata["imports"]`` as
``(namespace, class_name)`` pairs, so it can be rendered on its own.

Names that would shadow attributes of the runtime base classes
(:mod:`sdkforge.runtime`) get a numeric suffix, as do clashing method and
request class names within one resource.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sdkforge.exceptions import GenerationError
from sdkforge.generator.naming import camel_case, field_name, pascal_case, unique_name
from sdkforge.models import (
    ADDITIONAL_PROPERTIES,
    ApiModel,
    ArtifactField,
    ArtifactKind,
    CodeArtifact,
    Endpoint,
    GeneratedSdk,
    GeneratorConfig,
    ParameterLocation,
    PrimitiveKind,
    Resource,
    SimpleType,
    TypeDescriptor,
    referenced_classes,
)

logger = logging.getLogger(__name__)

BASE_RESOURCE_CLASS = "Resource"

# Attributes of the runtime base classes that generated members must not shadow.
_CONNECTOR_RESERVED = frozenset({"base_url", "default_headers", "send", "close"})
_RESOURCE_RESERVED = frozenset({"connector"})
_REQUEST_RESERVED = frozenset(
    {
        "method",
        "endpoint",
        "body_format",
        "path_parameters",
        "default_query",
        "default_headers",
        "default_body",
        "resolve_endpoint",
        "create_dto",
    }
)

_PARAMETER_ORDER = (
    ParameterLocation.PATH,
    ParameterLocation.QUERY,
    ParameterLocation.HEADER,
    ParameterLocation.BODY,
)


def build_artifacts(model: ApiModel, config: GeneratorConfig) -> GeneratedSdk:
    """Build every :class:`~sdkforge.models.CodeArtifact` for *model*.

    Raises:
        GenerationError: If two artifacts end up with the same
            ``(namespace, class_name)`` identity, or a type references a
            shape the model does not define.
    """
    dtos = _dto_namespaces(model, config)
    base_resource = _base_resource(config)

    resources: list[CodeArtifact] = []
    requests: list[CodeArtifact] = []
    resource_names: list[str] = []
    for resource in model.resources:
        class_name = unique_name(pascal_case(resource.name), resource_names)
        resource_names.append(class_name)
        resource_requests = _requests(resource, class_name, config, dtos)
        requests.extend(resource_requests)
        resources.append(
            _resource(resource, class_name, resource_requests, base_resource, config)
        )

    artifacts = [
        _connector(model, config, resources),
        base_resource,
        *resources,
        *requests,
        *(_dto(shape_name, namespace, model, dtos) for shape_name, namespace in dtos.items()),
    ]

    seen: set[tuple[str, str]] = set()
    for artifact in artifacts:
        if artifact.identity in seen:
            raise GenerationError(f"Duplicate artifact {artifact.qualified_name}")
        seen.add(artifact.identity)
        logger.debug("Built %s %s", artifact.kind.value, artifact.qualified_name)

    return GeneratedSdk(config=config, artifacts=tuple(artifacts))


# ---------------------------------------------------------------------------
# Connector and resources
# ---------------------------------------------------------------------------


def _connector(
    model: ApiModel, config: GeneratorConfig, resources: list[CodeArtifact]
) -> CodeArtifact:
    accessors: list[dict[str, str]] = []
    taken = set(_CONNECTOR_RESERVED)
    for resource in resources:
        accessor = unique_name(camel_case(resource.metadata["name"]), taken)
        taken.add(accessor)
        accessors.append(
            {
                "accessor": accessor,
                "class_name": resource.class_name,
                "namespace": resource.namespace,
            }
        )

    return CodeArtifact(
        namespace=config.namespace,
        class_name=pascal_case(config.connector_name),
        kind=ArtifactKind.CONNECTOR,
        base_class="Connector",
        description=model.description or model.name,
        metadata={
            "base_url": model.base_url,
            "resources": accessors,
            "imports": [(r.namespace, r.class_name) for r in resources],
        },
    )


def _base_resource(config: GeneratorConfig) -> CodeArtifact:
    namespace = config.base_resource_namespace or config.namespace
    qualified = f"{namespace}\\{BASE_RESOURCE_CLASS}"
    return CodeArtifact(
        namespace=namespace,
        class_name=BASE_RESOURCE_CLASS,
        kind=ArtifactKind.BASE_RESOURCE,
        base_class="BaseResource",
        metadata={
            # With the default suffix the resources live in a package that
            # shares this module's name.
            "package_dir": config.namespace_for(config.resource_namespace_suffix) == qualified,
            "imports": [],
        },
    )


def _resource(
    resource: Resource,
    class_name: str,
    requests: list[CodeArtifact],
    base_resource: CodeArtifact,
    config: GeneratorConfig,
) -> CodeArtifact:
    methods: list[dict[str, Any]] = []
    taken = set(_RESOURCE_RESERVED)
    imports: list[tuple[str, str]] = [base_resource.identity]
    for request in requests:
        name = unique_name(camel_case(request.metadata["endpoint_name"]), taken)
        taken.add(name)
        methods.append(
            {
                "name": name,
                "request_class": request.class_name,
                "request_namespace": request.namespace,
                "fields": request.fields,
                "description": request.description,
            }
        )
        imports.append(request.identity)
        imports.extend(i for i in request.metadata["type_imports"] if i not in imports)

    return CodeArtifact(
        namespace=config.namespace_for(config.resource_namespace_suffix),
        class_name=class_name,
        kind=ArtifactKind.RESOURCE,
        base_class=base_resource.qualified_name,
        description=resource.description,
        metadata={"name": resource.name, "methods": methods, "imports": imports},
    )


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def _requests(
    resource: Resource,
    resource_class: str,
    config: GeneratorConfig,
    dtos: dict[str, str],
) -> list[CodeArtifact]:
    namespace = config.namespace_for(config.request_namespace_suffix, resource_class)
    taken: list[str] = []
    result: list[CodeArtifact] = []
    for endpoint in resource.endpoints:
        class_name = unique_name(pascal_case(endpoint.name), taken)
        taken.append(class_name)
        result.append(_request(endpoint, namespace, class_name, dtos))
    return result


def _request(
    endpoint: Endpoint, namespace: str, class_name: str, dtos: dict[str, str]
) -> CodeArtifact:
    fields: list[ArtifactField] = []
    wire_names: dict[str, str] = {}
    taken = set(_REQUEST_RESERVED)

    def add(name: str, wire: str, **kwargs: Any) -> str:
        python_name = unique_name(field_name(name), taken)
        taken.add(python_name)
        wire_names[python_name] = wire
        fields.append(ArtifactField(name=python_name, **kwargs))
        return python_name

    for location in _PARAMETER_ORDER:
        for param in endpoint.parameters_in(location):
            add(
                param.name,
                param.name,
                type=param.type,
                required=param.required,
                default=param.default if _literal(param.default) else None,
                location=location,
                description=param.description,
            )

    body_format: Optional[str] = None
    body_field: Optional[str] = None
    if endpoint.body is not None:
        body_field = add(
            "body",
            "body",
            type=endpoint.body,
            required=True,
            location=ParameterLocation.BODY,
        )
        body_format = "json"
    elif endpoint.parameters_in(ParameterLocation.BODY):
        body_format = "form"

    type_imports = _type_imports(
        [f.type for f in fields], dtos, f"{namespace}\\{class_name}"
    )
    imports = list(type_imports)
    if endpoint.response is not None:
        imports.extend(
            i
            for i in _type_imports([endpoint.response], dtos, endpoint.name)
            if i not in imports
        )

    return CodeArtifact(
        namespace=namespace,
        class_name=class_name,
        kind=ArtifactKind.REQUEST,
        fields=tuple(fields),
        base_class="Request",
        description=endpoint.description,
        metadata={
            "endpoint_name": endpoint.name,
            "method": endpoint.method.value.upper(),
            "path": endpoint.path,
            "response": endpoint.response,
            "body_format": body_format,
            "body_field": body_field,
            "wire_names": wire_names,
            "type_imports": type_imports,
            "imports": imports,
        },
    )


def _literal(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


# ---------------------------------------------------------------------------
# DTOs
# ---------------------------------------------------------------------------


def _dto_namespaces(model: ApiModel, config: GeneratorConfig) -> dict[str, str]:
    """Return ``{shape name: namespace}`` in shape order.

    A shape reached only from endpoint responses (directly or as an array
    element) is a response DTO; everything else is a plain DTO.
    """
    nested: set[str] = set()
    for shape in model.shapes.values():
        for field in shape.fields:
            nested.update(referenced_classes(field.type))
    for endpoint in model.endpoints:
        for param in endpoint.parameters:
            nested.update(referenced_classes(param.type))
        if endpoint.body is not None:
            nested.update(referenced_classes(endpoint.body))

    responses: set[str] = set()
    for endpoint in model.endpoints:
        if endpoint.response is not None:
            responses.update(referenced_classes(endpoint.response))

    dto_ns = config.namespace_for(config.dto_namespace_suffix)
    response_ns = config.namespace_for(config.response_namespace_suffix)
    return {
        name: response_ns if name in responses and name not in nested else dto_ns
        for name in model.shapes
    }


def _dto(
    shape_name: str, namespace: str, model: ApiModel, dtos: dict[str, str]
) -> CodeArtifact:
    shape = model.shapes[shape_name]
    fields = [
        ArtifactField(
            name=f.name,
            type=f.type,
            required=f.required,
            description=f.description,
            wire_name=f.wire_name,
        )
        for f in shape.fields
    ]
    if shape.additional_properties:
        fields.append(
            ArtifactField(
                name=ADDITIONAL_PROPERTIES,
                type=SimpleType(kind=PrimitiveKind.MAPPING),
                required=False,
            )
        )
    imports = _type_imports([f.type for f in fields], dtos, f"{namespace}\\{shape_name}")

    return CodeArtifact(
        namespace=namespace,
        class_name=shape_name,
        kind=ArtifactKind.DTO,
        fields=tuple(fields),
        base_class="Arrayable",
        description=shape.description,
        metadata={"imports": [i for i in imports if i != (namespace, shape_name)]},
    )


def _type_imports(
    descriptors: list[TypeDescriptor], dtos: dict[str, str], owner: str
) -> list[tuple[str, str]]:
    result: list[tuple[str, str]] = []
    for descriptor in descriptors:
        for name in referenced_classes(descriptor):
            if name not in dtos:
                raise GenerationError(f"{owner} references unknown type {name}")
            pair = (dtos[name], name)
            if pair not in result:
                result.append(pair)
    return result


__all__ = ["BASE_RESOURCE_CLASS", "build_artifacts"]
