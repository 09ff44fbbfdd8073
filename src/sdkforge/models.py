"""Canonical Pydantic models shared across all sdkforge modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Configuration** -- :class:`GeneratorConfig`, loaded by
    :func:`~sdkforge.config.load_config` and immutable thereafter.

**Type descriptors** -- the tagged union :data:`TypeDescriptor` made of
    :class:`SimpleType`, :class:`ObjectReference` and :class:`ArrayOf`. The
    same descriptors drive code emission and runtime serialisation.

**Intermediate model** -- produced by the specification parsers and consumed
    by the artifact builder: :class:`HTTPMethod`, :class:`ParameterLocation`,
    :class:`Parameter`, :class:`ShapeField`, :class:`Shape`,
    :class:`Endpoint`, :class:`Resource` and :class:`ApiModel`.

**Code artifacts** -- :class:`ArtifactKind`, :class:`ArtifactField`,
    :class:`CodeArtifact` and :class:`GeneratedSdk`, the logical description of
    every generated class prior to rendering.

All models use Pydantic v2. Everything built during a generation run is
frozen so that a run's model cannot be mutated after construction.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sdkforge.exceptions import InvalidAttributeTypeError

NAMESPACE_SEPARATOR = "\\"
"""Separator between namespace segments (``App\\Resource``)."""

ADDITIONAL_PROPERTIES = "additionalProperties"
"""Field name whose serialised entries are merged into the parent mapping."""


# --- Generator Config ---


class GeneratorConfig(BaseModel):
    """Validated generation options.

    Populated from camelCase keys (``connectorName``) as they appear in the
    config file, or from the snake_case attribute names. Instances are
    immutable; use :func:`~sdkforge.config.load_config` to build one with
    the documented precedence (override > source > default).

    Example::

        GeneratorConfig(connectorName="Acme", namespace="App")
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    connector_name: str = Field(alias="connectorName", min_length=1)
    namespace: str = Field(alias="namespace", min_length=1)
    resource_namespace_suffix: str = Field(
        default="Resource", alias="resourceNamespaceSuffix"
    )
    request_namespace_suffix: str = Field(
        default="Requests", alias="requestNamespaceSuffix"
    )
    response_namespace_suffix: str = Field(
        default="Responses", alias="responseNamespaceSuffix"
    )
    dto_namespace_suffix: str = Field(default="Dto", alias="dtoNamespaceSuffix")
    base_resource_namespace: Optional[str] = Field(
        default=None,
        alias="baseResourceNamespace",
        description="Namespace of the shared base resource class (defaults to namespace)",
    )
    fallback_resource_name: str = Field(
        default="Misc",
        alias="fallbackResourceName",
        description="Resource name used for endpoints that cannot be grouped",
    )
    spec_type: str = Field(default="postman", alias="specType")
    output_dir: str = Field(default="./build", alias="outputDir")
    force: bool = Field(default=False, description="Overwrite existing files")
    ignored_query_params: tuple[str, ...] = Field(
        default=(), alias="ignoredQueryParams"
    )
    ignored_body_params: tuple[str, ...] = Field(
        default=(), alias="ignoredBodyParams"
    )
    extra: dict[str, Any] = Field(
        default_factory=dict, description="Free-form options for custom generators"
    )

    @field_validator("namespace", "base_resource_namespace")
    @classmethod
    def _strip_namespace(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.replace("/", NAMESPACE_SEPARATOR).strip(NAMESPACE_SEPARATOR)

    @field_validator("output_dir")
    @classmethod
    def _normalise_output_dir(cls, value: str) -> str:
        return normalise_output_dir(value)

    def namespace_for(self, *segments: str) -> str:
        """Join the root namespace with *segments*, skipping empty ones."""
        parts = [self.namespace, *segments]
        return NAMESPACE_SEPARATOR.join(p.strip(NAMESPACE_SEPARATOR) for p in parts if p)


def normalise_output_dir(value: str) -> str:
    """Trim leading and trailing path separators.

    ``"/out//"`` -> ``"out"``, ``"./build/"`` -> ``"./build"``. The directory is
    always relative to the directory the SDK is written into; a value that
    trims to nothing becomes ``"."``.
    """
    return value.strip("/\\") or "."


# --- Type Descriptors ---


class PrimitiveKind(str, enum.Enum):
    """Primitive value kinds copied through serialisation unchanged."""

    STRING = "str"
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    MAPPING = "dict"
    ANY = "any"


class SimpleType(BaseModel):
    """A primitive field type."""

    model_config = ConfigDict(frozen=True)

    tag: Literal["simple"] = "simple"
    kind: PrimitiveKind

    @classmethod
    def of(cls, kind: PrimitiveKind | str) -> SimpleType:
        return cls(kind=PrimitiveKind(kind))

    def annotation(self) -> str:
        if self.kind == PrimitiveKind.MAPPING:
            return "dict[str, Any]"
        if self.kind == PrimitiveKind.ANY:
            return "Any"
        return self.kind.value


class ObjectReference(BaseModel):
    """A field holding an instance of another generated class."""

    model_config = ConfigDict(frozen=True)

    tag: Literal["object"] = "object"
    class_name: str = Field(min_length=1)

    def annotation(self) -> str:
        return self.class_name


class ArrayOf(BaseModel):
    """An ordered sequence of values sharing one element type.

    ``element_types`` must hold exactly one descriptor. Any other count means
    the type was built incorrectly and raises
    :class:`~sdkforge.exceptions.InvalidAttributeTypeError` at construction.
    """

    model_config = ConfigDict(frozen=True)

    tag: Literal["array"] = "array"
    element_types: tuple[TypeDescriptor, ...]

    @model_validator(mode="after")
    def _single_element_type(self) -> ArrayOf:
        count = len(self.element_types)
        if count != 1:
            raise InvalidAttributeTypeError(
                "Complex array type must have a single value "
                f"(the type of the array items), {count} given"
            )
        return self

    @classmethod
    def of(cls, element: TypeDescriptor) -> ArrayOf:
        return cls(element_types=(element,))

    @property
    def element(self) -> TypeDescriptor:
        return self.element_types[0]

    def annotation(self) -> str:
        return f"list[{self.element.annotation()}]"


TypeDescriptor = Annotated[
    Union[SimpleType, ObjectReference, ArrayOf], Field(discriminator="tag")
]
"""Tagged field type: ``Simple``, ``ObjectReference`` or ``ArrayOf``."""

ArrayOf.model_rebuild()


def referenced_classes(descriptor: TypeDescriptor) -> list[str]:
    """Return the class names an annotation depends on (through arrays)."""
    if isinstance(descriptor, ObjectReference):
        return [descriptor.class_name]
    if isinstance(descriptor, ArrayOf):
        return referenced_classes(descriptor.element)
    return []


# --- Intermediate Model ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods an endpoint can use."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Where a request parameter travels."""

    QUERY = "query"
    PATH = "path"
    HEADER = "header"
    BODY = "body"


class Parameter(BaseModel):
    """A single endpoint parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: ParameterLocation
    type: TypeDescriptor = Field(default_factory=lambda: SimpleType.of("str"))
    required: bool = False
    description: Optional[str] = None
    default: Any = None


class ShapeField(BaseModel):
    """One property of a body or response :class:`Shape`.

    ``name`` is the Python attribute name. ``wire_name`` is the JSON key when
    it differs from ``name`` (``first-name`` stored as ``first_name``).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeDescriptor
    required: bool = False
    description: Optional[str] = None
    wire_name: Optional[str] = None

    @property
    def key(self) -> str:
        return self.wire_name or self.name


class Shape(BaseModel):
    """A distinct object shape found in request bodies or responses.

    Each shape becomes exactly one DTO class. When ``additional_properties``
    is set the DTO carries an extra ``additionalProperties`` mapping whose
    entries are flattened into the serialised output.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[ShapeField, ...] = ()
    additional_properties: bool = False
    description: Optional[str] = None

    def same_structure(self, other: Shape) -> bool:
        """Return True if *other* declares the same fields (names ignored)."""
        return (
            self.fields == other.fields
            and self.additional_properties == other.additional_properties
        )


class Endpoint(BaseModel):
    """One request: an HTTP method on a path template.

    Path templates always use ``{param}`` placeholders, whatever the source
    dialect used.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    method: HTTPMethod
    path: str
    description: Optional[str] = None
    parameters: tuple[Parameter, ...] = ()
    body: Optional[TypeDescriptor] = None
    response: Optional[TypeDescriptor] = None

    def parameters_in(self, location: ParameterLocation) -> list[Parameter]:
        return [p for p in self.parameters if p.location == location]


class Resource(BaseModel):
    """A named group of endpoints, in source order."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    endpoints: tuple[Endpoint, ...] = ()


class ApiModel(BaseModel):
    """Format-independent representation of an API.

    Produced by a :class:`~sdkforge.parser.base.SpecParser` and consumed by
    :func:`~sdkforge.generator.builder.build_artifacts`.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    base_url: str = ""
    description: Optional[str] = None
    resources: tuple[Resource, ...] = ()
    shapes: dict[str, Shape] = Field(default_factory=dict)

    @property
    def endpoints(self) -> list[Endpoint]:
        return [e for r in self.resources for e in r.endpoints]


# --- Code Artifacts ---


class ArtifactKind(str, enum.Enum):
    """Kind of generated class."""

    CONNECTOR = "connector"
    BASE_RESOURCE = "base_resource"
    RESOURCE = "resource"
    REQUEST = "request"
    DTO = "dto"


class ArtifactField(BaseModel):
    """A typed field (constructor parameter) of a generated class."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeDescriptor
    required: bool = True
    default: Any = None
    location: Optional[ParameterLocation] = None
    description: Optional[str] = None
    wire_name: Optional[str] = None


class CodeArtifact(BaseModel):
    """Logical description of one generated class.

    Identity is the ``(namespace, class_name)`` pair. The ``fields`` tuple is
    the only declaration of the class's attributes: the emitter renders it and
    the serialisation protocol reads it back through
    :meth:`attribute_types`.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str
    class_name: str
    kind: ArtifactKind
    fields: tuple[ArtifactField, ...] = ()
    base_class: Optional[str] = None
    description: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def identity(self) -> tuple[str, str]:
        return (self.namespace, self.class_name)

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}{NAMESPACE_SEPARATOR}{self.class_name}"

    def attribute_types(self) -> dict[str, TypeDescriptor]:
        return {f.name: f.type for f in self.fields}

    def attribute_keys(self) -> dict[str, str]:
        """Field name to serialised key, for fields whose key differs."""
        return {f.name: f.wire_name for f in self.fields if f.wire_name}


class GeneratedSdk(BaseModel):
    """The complete artifact set of one generation run."""

    model_config = ConfigDict(frozen=True)

    config: GeneratorConfig
    artifacts: tuple[CodeArtifact, ...] = ()

    def of_kind(self, kind: ArtifactKind) -> list[CodeArtifact]:
        return [a for a in self.artifacts if a.kind == kind]

    def find(self, class_name: str) -> Optional[CodeArtifact]:
        for artifact in self.artifacts:
            if artifact.class_name == class_name:
                return artifact
        return None
