"""Resolve ``$ref`` JSON Reference pointers in OpenAPI documents.

Unlike a full inlining pass, :class:`RefResolver` dereferences one node at a
time and reports the name of the component it landed on. The shape inference
in :mod:`sdkforge.parser.shapes` uses that name for the generated DTO class
(``#/components/schemas/Pet`` becomes ``Pet``) and to stop at circular
references, which become object references to the already-named shape.

Only **internal** references (those starting with ``#/``) are supported.
External file or URL references raise :class:`~sdkforge.exceptions.ParseError`.
"""

from __future__ import annotations

from typing import Any, Optional

from sdkforge.exceptions import ParseError


class RefResolver:
    """Dereference ``$ref`` pointers against a root document.

    Args:
        root: The complete OpenAPI document.
    """

    def __init__(self, root: dict[str, Any]):
        self.root = root

    def deref(self, node: Any) -> tuple[Any, Optional[str]]:
        """Follow ``$ref`` chains starting at *node*.

        Returns:
            ``(target, name)`` where *name* is the last path segment of the
            first reference followed, or ``None`` when *node* was not a
            reference.

        Raises:
            ParseError: On external, dangling or self-looping references.
        """
        name: Optional[str] = None
        visited: set[str] = set()
        while isinstance(node, dict) and "$ref" in node:
            ref = node["$ref"]
            if not isinstance(ref, str):
                raise ParseError(f"Invalid $ref value: {ref!r}")
            if ref in visited:
                raise ParseError(f"Reference loop through {ref}")
            visited.add(ref)
            if name is None:
                name = ref_name(ref)
            node = self.lookup(ref)
        return node, name

    def lookup(self, ref: str) -> Any:
        """Return the value the JSON Pointer *ref* points to.

        Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``).
        """
        if not ref.startswith("#/"):
            raise ParseError(
                f"External $ref not supported: {ref}. "
                "Only internal references (#/...) are handled."
            )

        current: Any = self.root
        for raw in ref[2:].split("/"):
            segment = raw.replace("~1", "/").replace("~0", "~")
            if isinstance(current, dict):
                if segment not in current:
                    raise ParseError(
                        f"Cannot resolve $ref '{ref}': key '{segment}' not found"
                    )
                current = current[segment]
            elif isinstance(current, list):
                try:
                    current = current[int(segment)]
                except (ValueError, IndexError) as exc:
                    raise ParseError(
                        f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                    ) from exc
            else:
                raise ParseError(
                    f"Cannot resolve $ref '{ref}': "
                    f"cannot navigate into {type(current).__name__}"
                )
        return current

    def resolve_shallow(self, node: Any) -> Any:
        """Dereference *node* and return just the target."""
        return self.deref(node)[0]


def ref_name(ref: str) -> str:
    """Return the last pointer segment of *ref* (``#/a/b/Pet`` -> ``Pet``)."""
    return ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")
