"""Infer field types and object shapes from example values and JSON Schemas.

Both parsers describe bodies and responses through a :class:`ShapeRegistry`:
Postman collections only carry example payloads, so their types are
inferred from values; OpenAPI documents carry JSON Schemas. Either way every
object with properties becomes a named :class:`~sdkforge.models.Shape` and
is referenced through :class:`~sdkforge.models.ObjectReference`.

**Example inference**

============  ==========================================
value         descriptor
============  ==========================================
``bool``      ``Simple(bool)``
``int``       ``Simple(int)``
``float``     ``Simple(float)``
``str``       ``Simple(str)``
``None``      ``Simple(any)``
``[]``        ``ArrayOf(any)``
``[x, ...]``  ``ArrayOf(<type of x>)``
``{}``        ``Simple(dict)``
``{...}``     ``ObjectReference(<new shape>)``
============  ==========================================

**Naming** -- shapes are named from context (component name, property key,
singular of an array key, or ``<Endpoint>Body`` / ``<Endpoint>Response``).
Registering a structurally identical shape under a taken name reuses it; a
different shape under a taken name gets the first free numeric suffix
(``Address``, ``Address2``). A component that refers back to itself has its
name reserved before its properties are converted, so the inner reference
and the registered shape agree.

**Fields** -- property keys become identifiers (``first-name`` ->
``first_name``, ``from`` -> ``from_``); the original key is kept as the
field's ``wire_name``. Keys that map to the same identifier get numeric
suffixes, and ``additionalProperties`` is never used as a field name.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import Any, Optional

from sdkforge.exceptions import ParseError
from sdkforge.generator.naming import field_name, pascal_case, singular, unique_name
from sdkforge.models import (
    ADDITIONAL_PROPERTIES,
    ArrayOf,
    ObjectReference,
    PrimitiveKind,
    Shape,
    ShapeField,
    SimpleType,
    TypeDescriptor,
)
from sdkforge.parser.resolver import RefResolver

logger = logging.getLogger(__name__)

_SCHEMA_TYPES: dict[str, PrimitiveKind] = {
    "string": PrimitiveKind.STRING,
    "integer": PrimitiveKind.INTEGER,
    "number": PrimitiveKind.FLOAT,
    "boolean": PrimitiveKind.BOOLEAN,
    "null": PrimitiveKind.ANY,
}

_IN_PROGRESS = object()


def simple(kind: PrimitiveKind | str) -> SimpleType:
    return SimpleType.of(kind)


class ShapeRegistry:
    """Collects the distinct shapes of one parse.

    Args:
        resolver: Used to follow ``$ref`` pointers in JSON Schemas. Only
            needed for :meth:`from_schema`.
    """

    def __init__(self, resolver: Optional[RefResolver] = None):
        self.resolver = resolver
        self._shapes: dict[str, Shape] = {}
        self._refs: dict[str, Any] = {}
        # $ref -> shape name held for a component while it is being converted
        self._reserved: dict[str, str] = {}
        self._cyclic: set[str] = set()

    @property
    def shapes(self) -> dict[str, Shape]:
        return dict(self._shapes)

    def add(self, shape: Shape, reserved: Optional[str] = None) -> str:
        """Register *shape*, returning the name it is registered under.

        With *reserved*, the shape is stored under that previously reserved
        name without looking for an identical shape to reuse.
        """
        if reserved is not None:
            self._shapes[reserved] = shape.model_copy(update={"name": reserved})
            return reserved
        name = shape.name
        n = 1
        while True:
            candidate = name if n == 1 else f"{name}{n}"
            if candidate in self._reserved.values():
                n += 1
                continue
            existing = self._shapes.get(candidate)
            if existing is None:
                if candidate != name:
                    logger.info("Shape name %s is taken, using %s", name, candidate)
                    shape = shape.model_copy(update={"name": candidate})
                self._shapes[candidate] = shape
                return candidate
            if existing.same_structure(shape):
                return candidate
            n += 1

    # --- Example values ---

    def from_example(
        self,
        value: Any,
        name_hint: str,
        ignored: Collection[str] = (),
    ) -> TypeDescriptor:
        """Infer a descriptor from an example *value*.

        Args:
            value: A decoded JSON value.
            name_hint: Name for the shape if *value* is an object.
            ignored: Keys dropped from a top-level object.
        """
        if isinstance(value, bool):
            return simple(PrimitiveKind.BOOLEAN)
        if isinstance(value, int):
            return simple(PrimitiveKind.INTEGER)
        if isinstance(value, float):
            return simple(PrimitiveKind.FLOAT)
        if isinstance(value, str):
            return simple(PrimitiveKind.STRING)
        if value is None:
            return simple(PrimitiveKind.ANY)
        if isinstance(value, list):
            if not value:
                return ArrayOf.of(simple(PrimitiveKind.ANY))
            return ArrayOf.of(self.from_example(value[0], singular(name_hint)))
        if isinstance(value, dict):
            if not value:
                return simple(PrimitiveKind.MAPPING)
            taken: set[str] = {ADDITIONAL_PROPERTIES}
            fields = tuple(
                _shape_field(
                    key,
                    taken,
                    type=self.from_example(item, key),
                    required=item is not None,
                )
                for key, item in value.items()
                if key not in ignored
            )
            if not fields:
                return simple(PrimitiveKind.MAPPING)
            name = self.add(Shape(name=pascal_case(name_hint), fields=fields))
            return ObjectReference(class_name=name)
        return simple(PrimitiveKind.ANY)

    # --- JSON Schema ---

    def from_schema(
        self,
        schema: Any,
        name_hint: str,
        ignored: Collection[str] = (),
    ) -> TypeDescriptor:
        """Infer a descriptor from a JSON Schema node.

        Named components (``$ref``) are converted once and reused; a
        reference back into a component that is still being converted
        yields an object reference to that component.
        """
        ref = schema.get("$ref") if isinstance(schema, dict) else None
        if isinstance(ref, str):
            cached = self._refs.get(ref)
            if cached is _IN_PROGRESS:
                self._cyclic.add(ref)
                return ObjectReference(class_name=self._reserved[ref])
            if cached is not None:
                return cached
            node, name = self._deref(schema)
            reserved = self._free_name(pascal_case(name or name_hint))
            self._refs[ref] = _IN_PROGRESS
            self._reserved[ref] = reserved
            try:
                result = self._from_node(node, name or name_hint, ignored, ref)
            except BaseException:
                del self._refs[ref]
                raise
            finally:
                del self._reserved[ref]
            if ref in self._cyclic and result != ObjectReference(class_name=reserved):
                del self._refs[ref]
                raise ParseError(f"Schema {ref} refers to itself but is not an object")
            self._refs[ref] = result
            return result

        return self._from_node(schema, name_hint, ignored)

    def _free_name(self, name: str) -> str:
        taken = set(self._shapes) | set(self._reserved.values())
        return unique_name(name, taken)

    def _deref(self, schema: Any) -> tuple[Any, Optional[str]]:
        if self.resolver is None:
            return schema, None
        return self.resolver.deref(schema)

    def _from_node(
        self,
        node: Any,
        name_hint: str,
        ignored: Collection[str],
        ref: Optional[str] = None,
    ) -> TypeDescriptor:
        if not isinstance(node, dict):
            return simple(PrimitiveKind.ANY)

        if "allOf" in node:
            node = self._merge_all_of(node)

        for key in ("oneOf", "anyOf"):
            if key in node:
                members = [m for m in node[key] if _schema_type(self._deref(m)[0]) != "null"]
                if len(members) == 1:
                    return self.from_schema(members[0], name_hint, ignored)
                return simple(PrimitiveKind.ANY)

        schema_type = _schema_type(node)

        if schema_type == "array":
            items = node.get("items")
            if items is None:
                return ArrayOf.of(simple(PrimitiveKind.ANY))
            return ArrayOf.of(self.from_schema(items, singular(name_hint)))

        if schema_type == "object" or "properties" in node:
            return self._object(node, name_hint, ignored, ref)

        if schema_type in _SCHEMA_TYPES:
            return simple(_SCHEMA_TYPES[schema_type])
        return simple(PrimitiveKind.ANY)

    def _object(
        self,
        node: dict[str, Any],
        name_hint: str,
        ignored: Collection[str],
        ref: Optional[str] = None,
    ) -> TypeDescriptor:
        properties = node.get("properties") or {}
        if not properties:
            return simple(PrimitiveKind.MAPPING)

        required = set(node.get("required") or [])
        taken: set[str] = {ADDITIONAL_PROPERTIES}
        fields = tuple(
            _shape_field(
                key,
                taken,
                type=self.from_schema(prop, key),
                required=key in required,
                description=_description(self._deref(prop)[0]),
            )
            for key, prop in properties.items()
            if key not in ignored
        )
        if not fields:
            return simple(PrimitiveKind.MAPPING)

        additional = node.get("additionalProperties")
        shape = Shape(
            name=pascal_case(name_hint),
            fields=fields,
            additional_properties=additional is True or isinstance(additional, dict),
            description=node.get("description"),
        )
        reserved = self._reserved.get(ref) if ref in self._cyclic else None
        return ObjectReference(class_name=self.add(shape, reserved))

    def _merge_all_of(self, node: dict[str, Any]) -> dict[str, Any]:
        merged: dict[str, Any] = {k: v for k, v in node.items() if k != "allOf"}
        properties: dict[str, Any] = dict(merged.get("properties") or {})
        required: list[str] = list(merged.get("required") or [])
        for part in node["allOf"]:
            resolved, _ = self._deref(part)
            if not isinstance(resolved, dict):
                continue
            if "allOf" in resolved:
                resolved = self._merge_all_of(resolved)
            properties.update(resolved.get("properties") or {})
            required.extend(resolved.get("required") or [])
            if "additionalProperties" in resolved:
                merged.setdefault("additionalProperties", resolved["additionalProperties"])
        merged["type"] = "object"
        merged["properties"] = properties
        merged["required"] = required
        return merged


def _schema_type(node: Any) -> str:
    """Return the schema's type; 3.1 type arrays yield their first non-null member."""
    if not isinstance(node, dict):
        return ""
    value = node.get("type", "")
    if isinstance(value, list):
        non_null = [t for t in value if t != "null"]
        return non_null[0] if non_null else "null"
    return str(value)


def _shape_field(key: str, taken: set[str], **kwargs: Any) -> ShapeField:
    """Name the field for JSON *key*, suffixing names already in *taken*."""
    name = unique_name(field_name(key), taken)
    taken.add(name)
    if name != key:
        logger.debug("Property %r is exposed as field %s", key, name)
    return ShapeField(name=name, wire_name=key if name != key else None, **kwargs)


def _description(node: Any) -> Optional[str]:
    if isinstance(node, dict):
        return node.get("description")
    return None
