"""Common interface of the specification parsers.

A parser turns one decoded document into an
:class:`~sdkforge.models.ApiModel`. Concrete parsers set ``spec_type`` (the
value of the ``specType`` config option that selects them) and implement
:meth:`SpecParser.parse`; they share the grouping helper that applies the
configured fallback resource name.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from sdkforge.models import ApiModel, Endpoint, GeneratorConfig, Resource


class SpecParser(ABC):
    """Base class for format-specific parsers.

    Args:
        config: The run's configuration (ignore lists, fallback resource
            name).
    """

    spec_type: ClassVar[str]

    def __init__(self, config: GeneratorConfig):
        self.config = config

    @abstractmethod
    def parse(self, document: dict[str, Any]) -> ApiModel:
        """Translate *document* into an :class:`~sdkforge.models.ApiModel`.

        Raises:
            ParseError: If the document is malformed for this format.
        """

    def build_resources(
        self,
        groups: dict[Optional[str], list[Endpoint]],
        descriptions: Optional[dict[str, str]] = None,
    ) -> tuple[Resource, ...]:
        """Turn ordered ``{group: endpoints}`` into resources.

        The ``None`` group collects ungroupable endpoints and is named after
        ``fallbackResourceName``; if a real group already has that name the
        endpoints are appended to it. Empty groups are dropped and group order
        is preserved.
        """
        descriptions = descriptions or {}
        merged: dict[str, list[Endpoint]] = {}
        for group, endpoints in groups.items():
            name = group if group else self.config.fallback_resource_name
            merged.setdefault(name, []).extend(endpoints)

        return tuple(
            Resource(
                name=name,
                description=descriptions.get(name),
                endpoints=tuple(endpoints),
            )
            for name, endpoints in merged.items()
            if endpoints
        )
