"""Request filters deciding which intercepted requests get logged.

A filter is any pure callable ``(Request) -> bool``. Filters never mutate
the request or shared state; the logger alone reacts to the verdict of the
whole chain.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, List, Optional

from .request import Request

RequestFilter = Callable[[Request], bool]

HTTP_SCHEMES = frozenset({"http", "https"})


def no_request_filter(request: Request) -> bool:
    """Allows every request through."""

    return True


def http_only_request_filter(request: Request) -> bool:
    """Allows only ``http`` and ``https`` requests through."""

    return request.scheme in HTTP_SCHEMES


def default_filters(custom_filter: Optional[RequestFilter] = None) -> List[RequestFilter]:
    return [http_only_request_filter, custom_filter or no_request_filter]


# ---------------------------------------------------------------------------
# Composable filters
# ---------------------------------------------------------------------------


def _host_matches(pattern: str, host: str) -> bool:
    pattern = pattern.lower()
    if pattern.startswith("*."):
        return host.endswith(pattern[1:])
    return host == pattern


def host_filter(*hosts: str) -> RequestFilter:
    """Allows requests whose host matches one of ``hosts``.

    ``*.example.com`` matches any subdomain of ``example.com`` but not the
    bare domain.
    """

    patterns = tuple(hosts)

    def _filter(request: Request) -> bool:
        host = request.host.lower()
        return any(_host_matches(pattern, host) for pattern in patterns)

    return _filter


def exclude_hosts(*hosts: str) -> RequestFilter:
    return negate(host_filter(*hosts))


def method_filter(*methods: str) -> RequestFilter:
    allowed = frozenset(method.upper() for method in methods)

    def _filter(request: Request) -> bool:
        return request.method.upper() in allowed

    return _filter


def all_of(*filters: RequestFilter) -> RequestFilter:
    chain = FilterChain(filters)
    return chain.allows


def any_of(*filters: RequestFilter) -> RequestFilter:
    def _filter(request: Request) -> bool:
        return any(request_filter(request) for request_filter in filters)

    return _filter


def negate(request_filter: RequestFilter) -> RequestFilter:
    def _filter(request: Request) -> bool:
        return not request_filter(request)

    return _filter


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------


class FilterChain:
    """Ordered AND of filters; an empty chain allows everything."""

    def __init__(self, filters: Iterable[RequestFilter] = ()) -> None:
        self._filters: List[RequestFilter] = list(filters)

    def append(self, request_filter: RequestFilter) -> None:
        self._filters.append(request_filter)

    def first_rejection(self, request: Request) -> Optional[int]:
        """Index of the first filter rejecting ``request``, or ``None``."""

        for index, request_filter in enumerate(self._filters):
            if not request_filter(request):
                return index
        return None

    def allows(self, request: Request) -> bool:
        return self.first_rejection(request) is None

    def __iter__(self) -> Iterator[RequestFilter]:
        return iter(tuple(self._filters))

    def __len__(self) -> int:
        return len(self._filters)
