"""Interception hook and the ordered handler chain transports consult.

Transports that opt into interception (see :mod:`nog.transports`) run every
outgoing request through :data:`GLOBAL_CHAIN` before sending it. The hook
installs itself at the head of that chain, observes each request exactly
once, publishes a marked copy on its dispatcher, and never claims the request
for itself: the transport always goes on to send it. Every hook marks requests
with its own marker, so several hooks on one chain each see every request.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import List, Optional, Protocol

from .dispatcher import DEFAULT_DISPATCHER, Dispatcher
from .redirect import Redirection
from .request import Request

logger = logging.getLogger(__name__)

# Guards the marker set all hooks share on a request.
_seen_lock = threading.Lock()


class RequestHandler(Protocol):
    def should_intercept(self, request: Request) -> bool:  # pragma: no cover - interface
        ...

    def canonicalize(self, request: Request) -> Request:  # pragma: no cover - interface
        ...

    def is_redirectable(self, request: Request) -> bool:  # pragma: no cover - interface
        ...

    def redirected_request(self, request: Request) -> Request:  # pragma: no cover - interface
        ...


# ---------------------------------------------------------------------------
# Handler chain
# ---------------------------------------------------------------------------


class HandlerChain:
    """Ordered, thread-safe list of request handlers."""

    def __init__(self) -> None:
        self._handlers: List[RequestHandler] = []
        self._lock = threading.Lock()

    def insert_first(self, handler: RequestHandler) -> None:
        with self._lock:
            self._handlers = [h for h in self._handlers if h is not handler]
            self._handlers.insert(0, handler)

    def remove(self, handler: RequestHandler) -> bool:
        with self._lock:
            remaining = [h for h in self._handlers if h is not handler]
            removed = len(remaining) != len(self._handlers)
            self._handlers = remaining
        return removed

    def contains(self, handler: RequestHandler) -> bool:
        with self._lock:
            return any(h is handler for h in self._handlers)

    def handlers(self) -> List[RequestHandler]:
        with self._lock:
            return list(self._handlers)

    def process(self, request: Request) -> Request:
        """Return the request the transport should actually send."""

        handlers = self.handlers()
        for handler in handlers:
            if handler.should_intercept(request):
                request = handler.canonicalize(request)
        for handler in handlers:
            if handler.is_redirectable(request):
                return handler.redirected_request(request)
        return request

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)


# Chain consulted by transports that are not given one explicitly.
GLOBAL_CHAIN = HandlerChain()


# ---------------------------------------------------------------------------
# Hook
# ---------------------------------------------------------------------------


class InterceptionHook:
    """Observes every request passing through a handler chain."""

    def __init__(
        self,
        dispatcher: Dispatcher = DEFAULT_DISPATCHER,
        *,
        redirection: Optional[Redirection] = None,
        chain: HandlerChain = GLOBAL_CHAIN,
    ) -> None:
        self.dispatcher = dispatcher
        self.redirection = redirection
        self.chain = chain
        self.marker = f"nog-hook-{uuid.uuid4().hex}"
        self._lock = threading.Lock()
        self._installed = False

    @property
    def is_installed(self) -> bool:
        return self._installed

    def install(self) -> bool:
        with self._lock:
            if self._installed:
                logger.debug("Interception hook already installed")
                return False
            self.chain.insert_first(self)
            self._installed = True
        logger.debug("Interception hook installed")
        return True

    def uninstall(self) -> bool:
        with self._lock:
            if not self._installed:
                logger.debug("Interception hook not installed")
                return False
            self.chain.remove(self)
            self._installed = False
        logger.debug("Interception hook uninstalled")
        return True

    def should_intercept(self, request: Request) -> bool:
        """Publish genuinely new requests; never claim ownership."""

        if not request.headers:
            return False
        with _seen_lock:
            if request.is_marked_seen(self.marker):
                return False
            request.mark_seen(self.marker)
        self.dispatcher.publish(self.canonicalize(request))
        return False

    def canonicalize(self, request: Request) -> Request:
        return request.with_seen_marker(self.marker)

    def is_redirectable(self, request: Request) -> bool:
        if self.redirection is None:
            return False
        return self.redirection.is_redirectable(request)

    def redirected_request(self, request: Request) -> Request:
        if self.redirection is None:
            return request
        return self.redirection.redirected_request(request)
