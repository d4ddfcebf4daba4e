"""Request redirection for nog.

A redirector pairs an evaluator predicate with a pure function producing a
replacement request. Redirectors are consulted in registration order and the
first matching evaluator wins, so at most one redirect fires per request.
Nothing here re-issues a request: the replacement is handed back to the
transport, which sends it instead of the original.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional
from urllib.parse import urlsplit

from .filters import RequestFilter, host_filter
from .request import Request

RequestRedirect = Callable[[Request], Request]


@dataclass(frozen=True)
class Redirector:
    """Evaluator/redirect pair."""

    evaluator: RequestFilter
    redirect: RequestRedirect

    def matches(self, request: Request) -> bool:
        return self.evaluator(request)

    def apply(self, request: Request) -> Request:
        return self.redirect(request)


class Redirection:
    """Ordered set of redirectors."""

    def __init__(self, redirectors: Iterable[Redirector] = ()) -> None:
        self._redirectors: List[Redirector] = list(redirectors)
        self._lock = threading.Lock()

    def register(self, redirector: Redirector) -> None:
        with self._lock:
            self._redirectors.append(redirector)

    def unregister(self, redirector: Redirector) -> None:
        with self._lock:
            if redirector in self._redirectors:
                self._redirectors.remove(redirector)

    def _match(self, request: Request) -> Optional[Redirector]:
        with self._lock:
            redirectors = tuple(self._redirectors)
        for redirector in redirectors:
            if redirector.matches(request):
                return redirector
        return None

    def is_redirectable(self, request: Request) -> bool:
        return self._match(request) is not None

    def redirected_request(self, request: Request) -> Request:
        redirector = self._match(request)
        if redirector is None:
            return request
        return redirector.apply(request)

    def __len__(self) -> int:
        with self._lock:
            return len(self._redirectors)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def rebase_url(url: str, base_url: str) -> str:
    """Move the path and query of ``url`` under ``base_url``."""

    base = base_url.rstrip("/")
    parsed = urlsplit(url)
    path = parsed.path.lstrip("/")
    rebased = f"{base}/{path}" if path else base
    if parsed.query:
        rebased = f"{rebased}?{parsed.query}"
    return rebased


def host_redirector(hosts: Iterable[str], base_url: str) -> Redirector:
    """Redirect every request for ``hosts`` onto ``base_url``.

    The ``Host`` header, if present, is dropped so the client recomputes it
    for the new target.
    """

    def _redirect(request: Request) -> Request:
        headers = tuple(
            (name, value) for name, value in request.headers if name.lower() != "host"
        )
        return replace(request, url=rebase_url(request.url, base_url), headers=headers)

    return Redirector(evaluator=host_filter(*hosts), redirect=_redirect)
