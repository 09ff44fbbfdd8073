"""Base classes the generated SDK code builds on.

Generated connectors, resources and requests are thin subclasses of the
classes here; generated DTOs subclass :class:`~sdkforge.serialization.Arrayable`.

* :class:`Connector` -- owns the :class:`httpx.Client` and sends requests.
  Must be closed (or used as a context manager).
* :class:`BaseResource` -- groups request methods; holds its connector.
* :class:`Request` -- one endpoint call. Subclasses set ``method`` and
  ``endpoint`` and override the ``default_*`` hooks.
* :class:`Response` -- wraps :class:`httpx.Response` and turns the body into
  the request's DTO through :meth:`Request.create_dto`.

Example::

    with Petstore() as sdk:
        pet = sdk.pets().getPetById(petId=1).dto()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Optional
from urllib.parse import quote

import httpx

from sdkforge.serialization import Arrayable

FORMAT_JSON = "json"
FORMAT_FORM = "form"


def to_payload(value: Any) -> Any:
    """Convert DTOs (also inside lists and mappings) into plain data."""
    if isinstance(value, Arrayable):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    if isinstance(value, Mapping):
        return {key: to_payload(item) for key, item in value.items()}
    return value


def _without_none(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


class Request:
    """A single API call.

    Subclasses set ``method`` and ``endpoint`` (a ``{name}`` path template)
    and override the hooks they need. ``None`` values are left out of the
    query, headers and form bodies.
    """

    method: ClassVar[str] = "GET"
    endpoint: ClassVar[str] = "/"
    body_format: ClassVar[Optional[str]] = None

    def path_parameters(self) -> dict[str, Any]:
        return {}

    def default_query(self) -> dict[str, Any]:
        return {}

    def default_headers(self) -> dict[str, Any]:
        return {}

    def default_body(self) -> Any:
        return None

    def resolve_endpoint(self) -> str:
        """Return ``endpoint`` with its placeholders filled in, URL-quoted."""
        path = self.endpoint
        for name, value in self.path_parameters().items():
            path = path.replace("{" + name + "}", quote(str(value), safe=""))
        return path

    def create_dto(self, response: Response) -> Any:
        """Build the typed result from *response*; the decoded JSON by default."""
        return response.json()


class Response:
    """The result of :meth:`Connector.send`."""

    def __init__(self, raw: httpx.Response, request: Request):
        self.raw = raw
        self.request = request

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    def json(self) -> Any:
        if not self.raw.content:
            return None
        return self.raw.json()

    def dto(self) -> Any:
        """Return the request's typed result (see :meth:`Request.create_dto`)."""
        return self.request.create_dto(self)

    def raise_for_status(self) -> Response:
        self.raw.raise_for_status()
        return self


class Connector:
    """Entry point of a generated SDK.

    Args:
        base_url: Overrides the class-level ``base_url``.
        headers: Headers sent with every request.
        timeout: Request timeout in seconds.
        client: An existing client to send through (for example one with a
            mock transport). A client passed in is not closed by
            :meth:`close`.
    """

    base_url: ClassVar[str] = ""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url if base_url is not None else self.base_url,
            headers={**self.default_headers(), **dict(headers or {})},
            timeout=timeout,
            follow_redirects=True,
        )

    def default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    def send(self, request: Request) -> Response:
        """Send *request* and wrap the reply. HTTP error statuses are not raised."""
        body = request.default_body()
        kwargs: dict[str, Any] = {}
        if body is not None:
            if request.body_format == FORMAT_FORM:
                kwargs["data"] = _without_none(body)
            else:
                kwargs["json"] = to_payload(body)

        raw = self._client.request(
            request.method,
            request.resolve_endpoint(),
            params=_without_none(request.default_query()),
            headers={k: str(v) for k, v in _without_none(request.default_headers()).items()},
            **kwargs,
        )
        return Response(raw, request)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Connector:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class BaseResource:
    """Base of generated resource classes."""

    def __init__(self, connector: Connector):
        self.connector = connector
