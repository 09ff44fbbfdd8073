"""Render code artifacts as Python source with Jinja2 templates.

One template per :class:`~sdkforge.models.ArtifactKind` lives in the
``templates/`` directory next to this module. The Python side of this module
prepares everything that needs logic (imports, aliases, annotations,
literals) so the templates stay declarative.

Generated modules import each other with relative imports computed from the
artifacts' namespaces, so the output directory can be used as a package
under any name. Imported classes whose names clash with the class being
rendered (or with each other) are imported under an alias.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader

from sdkforge.generator.naming import pascal_case, unique_name
from sdkforge.generator.paths import module_segments, relative_namespace
from sdkforge.models import (
    ADDITIONAL_PROPERTIES,
    NAMESPACE_SEPARATOR,
    ArrayOf,
    ArtifactField,
    ArtifactKind,
    CodeArtifact,
    GeneratorConfig,
    ObjectReference,
    ParameterLocation,
    SimpleType,
    TypeDescriptor,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``sdkforge/templates/``)."""

TEMPLATES: dict[ArtifactKind, str] = {
    ArtifactKind.CONNECTOR: "connector.py.j2",
    ArtifactKind.BASE_RESOURCE: "base_resource.py.j2",
    ArtifactKind.RESOURCE: "resource.py.j2",
    ArtifactKind.REQUEST: "request.py.j2",
    ArtifactKind.DTO: "dto.py.j2",
}

# Names the templates import themselves; imported classes using them get an alias.
_RUNTIME_NAMES = frozenset(
    {
        "Any",
        "Optional",
        "dataclasses",
        "os",
        "Arrayable",
        "serializable",
        "SimpleType",
        "ObjectReference",
        "ArrayOf",
        "Connector",
        "BaseResource",
        "Request",
        "Response",
    }
)

_env: Optional[Environment] = None


def _create_jinja_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["repr"] = repr
    env.filters["docstring"] = _docstring
    return env


def get_env() -> Environment:
    global _env
    if _env is None:
        _env = _create_jinja_env()
    return _env


def render_artifact(artifact: CodeArtifact, config: GeneratorConfig) -> str:
    """Return the Python source of *artifact*."""
    context = _base_context(artifact, config)
    builder = _CONTEXT_BUILDERS[artifact.kind]
    context.update(builder(artifact, context))
    logger.debug("Rendering %s with %s", artifact.qualified_name, TEMPLATES[artifact.kind])
    return get_env().get_template(TEMPLATES[artifact.kind]).render(**context)


# ---------------------------------------------------------------------------
# Imports and annotations
# ---------------------------------------------------------------------------


def relative_import(source: list[str], target: list[str]) -> str:
    """Return the ``from`` target importing module *target* from module *source*.

    Example::

        >>> relative_import(["Dto", "Pet"], ["Dto", "Category"])
        '..Dto.Category'
    """
    return "." * len(source) + ".".join(target)


def _base_context(artifact: CodeArtifact, config: GeneratorConfig) -> dict[str, Any]:
    source = module_segments(artifact.namespace, artifact.class_name, config)
    taken = {artifact.class_name, *_RUNTIME_NAMES}
    imports: list[str] = []
    by_identity: dict[tuple[str, str], str] = {}
    dto_namespaces = {
        config.namespace_for(config.dto_namespace_suffix),
        config.namespace_for(config.response_namespace_suffix),
    }
    aliases: dict[str, str] = {}

    for namespace, class_name in artifact.metadata.get("imports", []):
        if (namespace, class_name) in by_identity:
            continue
        name = class_name
        if name in taken:
            relative = relative_namespace(namespace, config)
            prefix = pascal_case(relative.replace(NAMESPACE_SEPARATOR, " "), default="")
            name = unique_name(prefix + class_name, taken)
        taken.add(name)
        by_identity[(namespace, class_name)] = name
        if namespace in dto_namespaces:
            aliases[class_name] = name

        target = module_segments(namespace, class_name, config)
        line = f"from {relative_import(source, target)} import {class_name}"
        if name != class_name:
            line += f" as {name}"
        imports.append(line)

    return {
        "artifact": artifact,
        "class_name": artifact.class_name,
        "description": artifact.description,
        "imports": imports,
        "aliases": aliases,
        "names": by_identity,
    }


def render_annotation(descriptor: TypeDescriptor, aliases: dict[str, str]) -> str:
    """Render *descriptor* as a type annotation, using imported aliases."""
    if isinstance(descriptor, ObjectReference):
        return aliases.get(descriptor.class_name, descriptor.class_name)
    if isinstance(descriptor, ArrayOf):
        return f"list[{render_annotation(descriptor.element, aliases)}]"
    return descriptor.annotation()


def render_descriptor(descriptor: TypeDescriptor) -> str:
    """Render *descriptor* as the Python expression that rebuilds it."""
    if isinstance(descriptor, SimpleType):
        return f"SimpleType.of({descriptor.kind.value!r})"
    if isinstance(descriptor, ObjectReference):
        return f"ObjectReference(class_name={descriptor.class_name!r})"
    return f"ArrayOf.of({render_descriptor(descriptor.element)})"


def _descriptor_classes(descriptors: list[TypeDescriptor]) -> list[str]:
    found: set[str] = set()

    def visit(descriptor: TypeDescriptor) -> None:
        found.add(type(descriptor).__name__)
        if isinstance(descriptor, ArrayOf):
            visit(descriptor.element)

    for descriptor in descriptors:
        visit(descriptor)
    return sorted(found)


def _parameter(field: ArtifactField, aliases: dict[str, str]) -> str:
    annotation = render_annotation(field.type, aliases)
    if field.required:
        return f"{field.name}: {annotation}"
    return f"{field.name}: Optional[{annotation}] = {field.default!r}"


def _docstring(text: Optional[str]) -> str:
    if not text:
        return ""
    text = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text += " "
    return text


# ---------------------------------------------------------------------------
# Per-kind context
# ---------------------------------------------------------------------------


def _connector_context(artifact: CodeArtifact, context: dict[str, Any]) -> dict[str, Any]:
    names = context["names"]
    resources = [
        {"accessor": r["accessor"], "class_name": names[(r["namespace"], r["class_name"])]}
        for r in artifact.metadata.get("resources", [])
    ]
    return {"base_url": artifact.metadata.get("base_url", ""), "resources": resources}


def _base_resource_context(artifact: CodeArtifact, context: dict[str, Any]) -> dict[str, Any]:
    return {"package_dir": artifact.metadata.get("package_dir", False)}


def _resource_context(artifact: CodeArtifact, context: dict[str, Any]) -> dict[str, Any]:
    names, aliases = context["names"], context["aliases"]
    methods = []
    for method in artifact.metadata.get("methods", []):
        fields = method["fields"]
        methods.append(
            {
                "name": method["name"],
                "request_class": names[(method["request_namespace"], method["request_class"])],
                "parameters": [_parameter(f, aliases) for f in fields],
                "arguments": [f"{f.name}={f.name}" for f in fields],
                "description": method.get("description"),
            }
        )
    base_namespace, _, base_class = (artifact.base_class or "").rpartition(NAMESPACE_SEPARATOR)
    return {"methods": methods, "base_class": names.get((base_namespace, base_class), base_class)}


def _request_context(artifact: CodeArtifact, context: dict[str, Any]) -> dict[str, Any]:
    aliases = context["aliases"]
    wire = artifact.metadata.get("wire_names", {})
    body_field = artifact.metadata.get("body_field")

    def by_location(*locations: ParameterLocation) -> list[tuple[str, str]]:
        return [
            (wire.get(f.name, f.name), f.name)
            for f in artifact.fields
            if f.location in locations and f.name != body_field
        ]

    response: Optional[TypeDescriptor] = artifact.metadata.get("response")
    response_kind = "json"
    response_class = None
    if isinstance(response, ObjectReference):
        response_kind, response_class = "object", aliases.get(response.class_name, response.class_name)
    elif isinstance(response, ArrayOf) and isinstance(response.element, ObjectReference):
        name = response.element.class_name
        response_kind, response_class = "array", aliases.get(name, name)

    body_format = artifact.metadata.get("body_format")
    return {
        "method": artifact.metadata["method"],
        "path": artifact.metadata["path"],
        "body_format": body_format,
        "parameters": [_parameter(f, aliases) for f in artifact.fields],
        "field_names": [f.name for f in artifact.fields],
        "path_fields": by_location(ParameterLocation.PATH),
        "query_fields": by_location(ParameterLocation.QUERY),
        "header_fields": by_location(ParameterLocation.HEADER),
        "body_fields": by_location(ParameterLocation.BODY) if body_format == "form" else [],
        "body_field": body_field,
        "response_kind": response_kind,
        "response_class": response_class,
        "response_annotation": (
            render_annotation(response, aliases) if response is not None else "Any"
        ),
    }


def _dto_context(artifact: CodeArtifact, context: dict[str, Any]) -> dict[str, Any]:
    aliases = context["aliases"]
    fields = []
    for f in artifact.fields:
        fields.append(
            {
                "name": f.name,
                "annotation": render_annotation(f.type, aliases),
                "descriptor": render_descriptor(f.type),
                "factory": f.name == ADDITIONAL_PROPERTIES,
                "description": f.description,
            }
        )
    return {
        "fields": fields,
        "attribute_keys": artifact.attribute_keys(),
        "descriptor_classes": _descriptor_classes([f.type for f in artifact.fields]),
    }


_CONTEXT_BUILDERS = {
    ArtifactKind.CONNECTOR: _connector_context,
    ArtifactKind.BASE_RESOURCE: _base_resource_context,
    ArtifactKind.RESOURCE: _resource_context,
    ArtifactKind.REQUEST: _request_context,
    ArtifactKind.DTO: _dto_context,
}
