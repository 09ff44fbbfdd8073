"""Attribute serialisation protocol for generated data objects.

Every generated DTO converts itself into a plain nested mapping (and back)
using the field types it declares, never a separate schema file. The field
types come from one of two places on the class itself:

1. An explicit ``__attribute_types__`` mapping of field name to
   :data:`~sdkforge.models.TypeDescriptor` (or to a plain annotation). The
   emitter writes this mapping from the same artifact field list it renders
   the class from, so the two cannot drift.
2. Otherwise the constructor signature: dataclass fields or the annotated
   parameters of ``__init__``, read with :func:`typing.get_type_hints` and
   mapped by :func:`descriptor_for_annotation`.

A field is serialised under its own name unless the class maps it to
another key in ``__attribute_keys__`` (``{"first_name": "first-name"}``), which
lets DTO attributes be valid identifiers while the payload keeps the API's
keys.
Known serialisable classes live in an explicit :class:`TypeRegistry`, which
is passed to :class:`AttributeSerializer` rather than discovered at runtime.
Field types are derived when a class is registered, so a malformed
declaration fails at that point instead of during the first serialisation.

The traversal (:meth:`AttributeSerializer.to_dict`) is depth-first in
declaration order:

* ``None`` stays ``None``; nothing below it is visited.
* ``Simple`` values are copied through unchanged.
* ``ObjectReference(T)`` requires ``T`` to be registered and recurses.
* ``ArrayOf(T)`` maps each element in order.
* The ``additionalProperties`` field is not nested: its entries are merged
  into the parent mapping. An entry that collides with a declared sibling
  field raises :class:`~sdkforge.exceptions.AttributeCollisionError`.

Example::

    @serializable
    @dataclass
    class Tag(Arrayable):
        id: int
        name: Optional[str] = None

    Tag(id=1, name="x").to_dict()   # {"id": 1, "name": "x"}
"""

from __future__ import annotations

import collections.abc
import dataclasses
import inspect
import logging
import types
import typing
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar, Optional, Union

from sdkforge.exceptions import (
    AttributeCollisionError,
    GenerationError,
    InvalidAttributeTypeError,
)
from sdkforge.models import (
    ADDITIONAL_PROPERTIES,
    ArrayOf,
    ArtifactKind,
    CodeArtifact,
    ObjectReference,
    PrimitiveKind,
    SimpleType,
    TypeDescriptor,
)

logger = logging.getLogger(__name__)

_DESCRIPTOR_TYPES = (SimpleType, ObjectReference, ArrayOf)

_SIMPLE_ANNOTATIONS: dict[Any, PrimitiveKind] = {
    str: PrimitiveKind.STRING,
    int: PrimitiveKind.INTEGER,
    float: PrimitiveKind.FLOAT,
    bool: PrimitiveKind.BOOLEAN,
    dict: PrimitiveKind.MAPPING,
    Any: PrimitiveKind.ANY,
    object: PrimitiveKind.ANY,
}

_MAPPING_ORIGINS = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)

_UNION_ORIGINS: tuple[Any, ...] = (Union, types.UnionType)


# ---------------------------------------------------------------------------
# Deriving descriptors from declarations
# ---------------------------------------------------------------------------


def descriptor_for_annotation(annotation: Any, where: str = "field") -> TypeDescriptor:
    """Map a Python type annotation to a :data:`~sdkforge.models.TypeDescriptor`.

    ``Optional[X]`` maps like ``X``; ``list[X]``, ``tuple[X, ...]`` and
    ``Sequence[X]`` map to ``ArrayOf(X)``; mappings and ``Any`` are simple;
    any other class becomes an ``ObjectReference`` to its name.

    Args:
        annotation: The annotation object (or a forward-reference string).
        where: ``Class.field`` label used in error messages.

    Raises:
        InvalidAttributeTypeError: For unions of several types, containers
            without exactly one element type, or unsupported annotations.
    """
    if annotation in _SIMPLE_ANNOTATIONS:
        return SimpleType(kind=_SIMPLE_ANNOTATIONS[annotation])

    if isinstance(annotation, str):
        return ObjectReference(class_name=annotation)

    if isinstance(annotation, typing.ForwardRef):
        return ObjectReference(class_name=annotation.__forward_arg__)

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin in _UNION_ORIGINS:
        members = [a for a in args if a is not type(None)]
        if len(members) != 1:
            raise InvalidAttributeTypeError(
                f"{where} has an ambiguous union type {annotation!r}"
            )
        return descriptor_for_annotation(members[0], where)

    if annotation in _MAPPING_ORIGINS or origin in _MAPPING_ORIGINS:
        return SimpleType(kind=PrimitiveKind.MAPPING)

    if annotation in _SEQUENCE_ORIGINS or origin in _SEQUENCE_ORIGINS:
        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            args = args[:1]
        try:
            return ArrayOf(
                element_types=tuple(descriptor_for_annotation(a, where) for a in args)
            )
        except InvalidAttributeTypeError as exc:
            raise InvalidAttributeTypeError(f"{where}: {exc}") from exc

    if isinstance(annotation, type):
        return ObjectReference(class_name=annotation.__name__)

    raise InvalidAttributeTypeError(
        f"{where} has an unsupported type annotation {annotation!r}"
    )


def attribute_types(cls: type) -> dict[str, TypeDescriptor]:
    """Return the ordered field-type declaration of *cls*.

    Raises:
        InvalidAttributeTypeError: If *cls* declares no usable fields, or a
            field has no annotation or an unusable one.
    """
    declared = cls.__dict__.get("__attribute_types__")
    if declared is not None:
        return _coerce_declared(cls, declared)

    if dataclasses.is_dataclass(cls):
        names = [f.name for f in dataclasses.fields(cls) if f.init]
        hints = _type_hints(cls, cls)
    else:
        init = cls.__init__
        if init is object.__init__:
            raise InvalidAttributeTypeError(f"{cls.__name__} must declare field types")
        params = [
            p
            for p in list(inspect.signature(init).parameters.values())[1:]
            if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        ]
        names = [p.name for p in params]
        hints = _type_hints(cls, init)

    if not names:
        raise InvalidAttributeTypeError(f"{cls.__name__} must declare field types")

    result: dict[str, TypeDescriptor] = {}
    for name in names:
        if name not in hints:
            raise InvalidAttributeTypeError(
                f"{cls.__name__}.{name} must declare a type annotation"
            )
        result[name] = descriptor_for_annotation(hints[name], f"{cls.__name__}.{name}")
    return result


def attribute_keys(cls: type, field_types: Mapping[str, TypeDescriptor]) -> dict[str, str]:
    """Return the serialised key of every field of *cls*, in declaration order.

    Raises:
        InvalidAttributeTypeError: If ``__attribute_keys__`` names an
            undeclared field or two fields share a key.
    """
    declared = cls.__dict__.get("__attribute_keys__") or {}
    if not isinstance(declared, Mapping):
        raise InvalidAttributeTypeError(f"{cls.__name__}.__attribute_keys__ must be a mapping")
    unknown = sorted(set(declared) - set(field_types))
    if unknown:
        raise InvalidAttributeTypeError(
            f"{cls.__name__}.__attribute_keys__ names undeclared fields: {', '.join(unknown)}"
        )
    keys = {name: str(declared.get(name, name)) for name in field_types}
    # additionalProperties is flattened into the parent, so it owns no key
    keyed = [key for name, key in keys.items() if name != ADDITIONAL_PROPERTIES]
    if len(set(keyed)) != len(keyed):
        raise InvalidAttributeTypeError(f"{cls.__name__} serialises two fields under one key")
    return keys


def _type_hints(cls: type, target: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(target)
    except NameError as exc:
        raise InvalidAttributeTypeError(
            f"{cls.__name__} has an unresolvable type annotation: {exc}"
        ) from exc


def _coerce_declared(cls: type, declared: Any) -> dict[str, TypeDescriptor]:
    if not isinstance(declared, Mapping) or not declared:
        raise InvalidAttributeTypeError(f"{cls.__name__} must declare field types")
    result: dict[str, TypeDescriptor] = {}
    for name, value in declared.items():
        if isinstance(value, _DESCRIPTOR_TYPES):
            result[name] = value
        else:
            result[name] = descriptor_for_annotation(value, f"{cls.__name__}.{name}")
    return result


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TypeRegistry:
    """Explicit mapping of class name to serialisable class.

    :meth:`register` derives and stores the class's field types, so a
    malformed type is rejected when it is registered. It returns the class
    unchanged and can be used as a decorator.
    """

    def __init__(self, classes: Iterable[type] = ()):
        self._classes: dict[str, type] = {}
        self._types: dict[str, dict[str, TypeDescriptor]] = {}
        self._keys: dict[str, dict[str, str]] = {}
        for cls in classes:
            self.register(cls)

    def register(self, cls: type) -> type:
        name = cls.__name__
        existing = self._classes.get(name)
        if existing is not None and existing is not cls and not _same_origin(existing, cls):
            raise InvalidAttributeTypeError(
                f"A different class named `{name}` is already registered"
            )
        field_types = attribute_types(cls)
        self._keys[name] = attribute_keys(cls, field_types)
        self._types[name] = field_types
        self._classes[name] = cls
        logger.debug("Registered serialisable type %s", name)
        return cls

    def __contains__(self, name: object) -> bool:
        if isinstance(name, type):
            return self._classes.get(name.__name__) is name
        return name in self._classes

    def __len__(self) -> int:
        return len(self._classes)

    def get(self, name: str) -> type:
        try:
            return self._classes[name]
        except KeyError:
            raise InvalidAttributeTypeError(
                f"Class `{name}` is not a registered serialisable type"
            ) from None

    def types_of(self, name: str) -> dict[str, TypeDescriptor]:
        self.get(name)
        return self._types[name]

    def keys_of(self, name: str) -> dict[str, str]:
        """Field name to serialised key for registered class *name*."""
        self.get(name)
        return self._keys[name]


def _same_origin(first: type, second: type) -> bool:
    # A reloaded module redefines its classes; the new definition replaces the old.
    return (first.__module__, first.__qualname__) == (second.__module__, second.__qualname__)


default_registry = TypeRegistry()
"""Registry used by :class:`Arrayable` when no serializer is passed."""

serializable = default_registry.register
"""Class decorator registering a type with :data:`default_registry`."""


# ---------------------------------------------------------------------------
# Serializer
# ---------------------------------------------------------------------------


class AttributeSerializer:
    """Convert registered objects to plain nested mappings and back.

    Args:
        registry: The known serialisable types. Defaults to
            :data:`default_registry`.
    """

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    def to_dict(self, instance: Any) -> dict[str, Any]:
        """Serialise *instance* using its class's declared field types."""
        cls = type(instance)
        if cls not in self.registry:
            raise InvalidAttributeTypeError(
                f"Class `{cls.__name__}` is not a registered serialisable type"
            )
        return self._object_to_dict(instance, cls.__name__)

    def _object_to_dict(self, instance: Any, class_name: str) -> dict[str, Any]:
        field_types = self.registry.types_of(class_name)
        keys = self.registry.keys_of(class_name)
        result: dict[str, Any] = {}
        for name, descriptor in field_types.items():
            value = self.value_to_dict(getattr(instance, name), descriptor)
            if name == ADDITIONAL_PROPERTIES:
                self._merge_additional(result, value, keys, type(instance))
            else:
                result[keys[name]] = value
        return result

    def _merge_additional(
        self,
        result: dict[str, Any],
        extra: Any,
        keys: dict[str, str],
        cls: type,
    ) -> None:
        if extra is None:
            return
        if not isinstance(extra, Mapping):
            raise TypeError(
                f"{cls.__name__}.{ADDITIONAL_PROPERTIES} must be a mapping, "
                f"got {type(extra).__name__}"
            )
        declared = set(keys.values())
        clashes = sorted(k for k in extra if k in declared)
        if clashes:
            raise AttributeCollisionError(
                f"{cls.__name__}.{ADDITIONAL_PROPERTIES} entries collide with "
                f"declared fields: {', '.join(clashes)}"
            )
        result.update(extra)

    def value_to_dict(self, value: Any, descriptor: TypeDescriptor) -> Any:
        """Serialise a single value according to *descriptor*."""
        if value is None:
            return None

        if isinstance(descriptor, SimpleType):
            return value

        if isinstance(descriptor, ObjectReference):
            cls = self.registry.get(descriptor.class_name)
            if not isinstance(value, cls):
                raise TypeError(
                    f"Expected an instance of {descriptor.class_name}, "
                    f"got {type(value).__name__}"
                )
            return self._object_to_dict(value, descriptor.class_name)

        if isinstance(descriptor, ArrayOf):
            _require_sequence(value)
            return [self.value_to_dict(item, descriptor.element) for item in value]

        raise InvalidAttributeTypeError(f"Unknown type descriptor {descriptor!r}")

    def from_dict(self, cls: type, data: Mapping[str, Any]) -> Any:
        """Build an instance of registered *cls* from a plain mapping.

        Each field is read from its serialised key. Keys that match no
        declared field are collected into ``additionalProperties`` when the
        class declares it, and dropped otherwise.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"Cannot build {cls.__name__} from {type(data).__name__}")
        field_types = self.registry.types_of(cls.__name__)
        keys = self.registry.keys_of(cls.__name__)

        kwargs: dict[str, Any] = {}
        for name, descriptor in field_types.items():
            if name != ADDITIONAL_PROPERTIES and keys[name] in data:
                kwargs[name] = self.value_from_dict(data[keys[name]], descriptor)

        if ADDITIONAL_PROPERTIES in field_types:
            declared = set(keys.values())
            kwargs[ADDITIONAL_PROPERTIES] = {
                k: v for k, v in data.items() if k not in declared
            }
        return cls(**kwargs)

    def value_from_dict(self, value: Any, descriptor: TypeDescriptor) -> Any:
        """Rebuild a single value from its serialised form."""
        if value is None:
            return None
        if isinstance(descriptor, SimpleType):
            return value
        if isinstance(descriptor, ObjectReference):
            return self.from_dict(self.registry.get(descriptor.class_name), value)
        if isinstance(descriptor, ArrayOf):
            _require_sequence(value)
            return [self.value_from_dict(item, descriptor.element) for item in value]
        raise InvalidAttributeTypeError(f"Unknown type descriptor {descriptor!r}")


def _require_sequence(value: Any) -> None:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(
        value, collections.abc.Sequence
    ):
        raise TypeError(f"Expected a sequence, got {type(value).__name__}")


# ---------------------------------------------------------------------------
# Shared capability for generated types
# ---------------------------------------------------------------------------


class Arrayable:
    """Base class of generated DTOs.

    Gives every DTO ``to_dict`` / ``from_dict``; the traversal itself lives
    in :class:`AttributeSerializer`.
    """

    __attribute_types__: ClassVar[Optional[Mapping[str, Any]]]
    __attribute_keys__: ClassVar[Optional[Mapping[str, str]]]

    def to_dict(self, serializer: Optional[AttributeSerializer] = None) -> dict[str, Any]:
        return (serializer or AttributeSerializer()).to_dict(self)

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], serializer: Optional[AttributeSerializer] = None
    ) -> Any:
        return (serializer or AttributeSerializer()).from_dict(cls, data)


def build_dto_class(artifact: CodeArtifact, registry: Optional[TypeRegistry] = None) -> type:
    """Materialise a DTO artifact as a runtime dataclass and register it.

    The class declares ``__attribute_types__`` straight from
    ``artifact.fields``, the same list the emitter renders. Every field
    defaults to ``None`` (``additionalProperties`` to an empty dict) so the
    declaration order is kept.

    Raises:
        GenerationError: If *artifact* is not a DTO.
    """
    if artifact.kind != ArtifactKind.DTO:
        raise GenerationError(
            f"{artifact.qualified_name} is a {artifact.kind.value}, not a DTO"
        )
    target = registry if registry is not None else default_registry

    fields: list[tuple[str, Any, Any]] = []
    for f in artifact.fields:
        if f.name == ADDITIONAL_PROPERTIES:
            spec = dataclasses.field(default_factory=dict)
        else:
            spec = dataclasses.field(default=None)
        fields.append((f.name, f"Optional[{f.type.annotation()}]", spec))

    cls = dataclasses.make_dataclass(
        artifact.class_name,
        fields,
        bases=(Arrayable,),
        namespace={
            "__attribute_types__": artifact.attribute_types(),
            "__attribute_keys__": artifact.attribute_keys(),
        },
    )
    return target.register(cls)
