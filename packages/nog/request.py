"""Request snapshots observed at the transport boundary.

``Request`` is the only view of an outgoing request the rest of nog ever
sees. It is built from the client's own request object (``httpx.Request`` or
``requests.PreparedRequest``) and shares that object's property mapping, so
marking a snapshot as seen also marks the request the transport is about to
send.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Iterable, Mapping, MutableMapping, Optional

import httpx

SEEN_PROPERTY = "NetworkLoggerHook"
PROPERTIES_EXTENSION = "nog"
_REQUESTS_ATTRIBUTE = "_nog_properties"

HeaderPairs = tuple[tuple[str, str], ...]


def _normalize_headers(headers: Any) -> HeaderPairs:
    if headers is None:
        return ()
    if isinstance(headers, httpx.Headers):
        items: Iterable[Any] = headers.multi_items()
    elif isinstance(headers, Mapping):
        items = headers.items()
    else:
        items = headers
    return tuple((str(name), str(value)) for name, value in items)


def _normalize_body(body: Any) -> bytes:
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    # Streams and generators are never consumed by the logger.
    return b""


@dataclass(frozen=True)
class Request:
    """Immutable snapshot of an outgoing HTTP request."""

    method: str
    url: str
    headers: HeaderPairs = ()
    body: bytes = b""
    properties: MutableMapping[str, Any] = field(
        default_factory=dict, compare=False, repr=False
    )

    @classmethod
    def build(
        cls,
        url: str,
        method: str = "GET",
        headers: Any = None,
        body: Any = None,
        properties: Optional[MutableMapping[str, Any]] = None,
    ) -> "Request":
        return cls(
            method=method.upper(),
            url=url,
            headers=_normalize_headers(headers),
            body=_normalize_body(body),
            properties={} if properties is None else properties,
        )

    # URL parts -------------------------------------------------------------

    def _parsed_url(self) -> Optional[httpx.URL]:
        try:
            return httpx.URL(self.url)
        except (httpx.InvalidURL, TypeError):
            return None

    @property
    def scheme(self) -> str:
        parsed = self._parsed_url()
        return parsed.scheme.lower() if parsed is not None else ""

    @property
    def host(self) -> str:
        parsed = self._parsed_url()
        return parsed.host if parsed is not None else ""

    # Headers ---------------------------------------------------------------

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive lookup; the last value wins for repeated names."""

        lowered = name.lower()
        found = None
        for header_name, value in self.headers:
            if header_name.lower() == lowered:
                found = value
        return found

    def header_map(self) -> httpx.Headers:
        return httpx.Headers(list(self.headers))

    # Marker ----------------------------------------------------------------

    def seen_by(self) -> FrozenSet[str]:
        """Markers of every hook that has already observed this request."""

        return frozenset(self.properties.get(SEEN_PROPERTY, ()))

    def is_marked_seen(self, marker: Optional[str] = None) -> bool:
        """Seen by the hook owning ``marker``, or by any hook when omitted."""

        seen = self.seen_by()
        if marker is None:
            return bool(seen)
        return marker in seen

    def mark_seen(self, marker: str) -> None:
        # Written to the shared mapping, so the client request is marked too.
        self.properties[SEEN_PROPERTY] = self.seen_by() | {marker}

    def with_seen_marker(self, marker: str) -> "Request":
        return self.with_properties(**{SEEN_PROPERTY: self.seen_by() | {marker}})

    def with_properties(self, **properties: Any) -> "Request":
        """Copy of the request with ``properties`` merged into a new mapping."""

        merged = dict(self.properties)
        merged.update(properties)
        return replace(self, properties=merged)


# ---------------------------------------------------------------------------
# Client adapters
# ---------------------------------------------------------------------------


def from_httpx(request: httpx.Request) -> Request:
    properties = request.extensions.setdefault(PROPERTIES_EXTENSION, {})
    try:
        body = request.content
    except httpx.RequestNotRead:
        body = b""
    return Request(
        method=request.method,
        url=str(request.url),
        headers=_normalize_headers(request.headers),
        body=body,
        properties=properties,
    )


def from_requests(prepared: Any) -> Request:
    properties = getattr(prepared, _REQUESTS_ATTRIBUTE, None)
    if properties is None:
        properties = {}
        setattr(prepared, _REQUESTS_ATTRIBUTE, properties)
    return Request(
        method=(prepared.method or "GET").upper(),
        url=prepared.url or "",
        headers=_normalize_headers(prepared.headers),
        body=_normalize_body(prepared.body),
        properties=properties,
    )
