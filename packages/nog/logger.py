"""Network logger: lifecycle, filtering and the in-memory request log.

``NetworkLogger`` is the only owner of the log and of the running request
count. It receives requests from the interception hook through a dispatcher
subscription that exists only while logging, and hands accepted requests to
its display sink and ``after_log_request`` callback.

Sequence ids are assigned under the logger's lock, in the order
``log_request`` acquires it. Requests arriving through the dispatcher are
delivered one at a time in publish order, so their ids follow interception
order.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

from .config import LoggerSettings
from .console import ConsoleLogger
from .dispatcher import DEFAULT_DISPATCHER, Dispatcher
from .display import ConsoleDisplay, NetworkLogDisplayable, NullDisplay, RequestListDisplay
from .filters import FilterChain, RequestFilter, default_filters
from .hook import GLOBAL_CHAIN, HandlerChain, InterceptionHook
from .models import LoggedRequest, LogResult, Rejected
from .redirect import Redirection, Redirector
from .request import Request

logger = logging.getLogger(__name__)

ALREADY_STARTED = "Attempt to `start` while already started. Returning."
ALREADY_STOPPED = "Attempt to `stop` while already stopped. Returning."


class NetworkLogger:
    """Records requests observed by an :class:`InterceptionHook`.

    Args:
        request_filters: Filters applied in order; defaults to the http/https
            filter followed by ``custom_filter``.
        custom_filter: Extra filter used when ``request_filters`` is omitted.
        redirectors: Redirectors for the hook this logger creates.
        dispatcher: Bus the hook publishes on (default: process-wide bus).
        chain: Handler chain the hook installs into (default: global chain).
        hook: Pre-built hook; overrides ``redirectors``, ``dispatcher`` and
            ``chain``.
        console: Diagnostic channel; ``verbose`` turns it on or off.
        display: Primary display sink (default: console lines).
        after_log_request: Called with every logged request.
    """

    def __init__(
        self,
        request_filters: Optional[Sequence[RequestFilter]] = None,
        *,
        custom_filter: Optional[RequestFilter] = None,
        redirectors: Iterable[Redirector] = (),
        dispatcher: Optional[Dispatcher] = None,
        chain: Optional[HandlerChain] = None,
        hook: Optional[InterceptionHook] = None,
        console: Optional[ConsoleLogger] = None,
        display: Optional[NetworkLogDisplayable] = None,
        after_log_request: Optional[Callable[[LoggedRequest], Any]] = None,
        verbose: bool = True,
    ) -> None:
        if request_filters is None:
            request_filters = default_filters(custom_filter)
        self.request_filters = FilterChain(request_filters)

        if hook is None:
            hook = InterceptionHook(
                dispatcher if dispatcher is not None else DEFAULT_DISPATCHER,
                redirection=Redirection(redirectors),
                chain=chain if chain is not None else GLOBAL_CHAIN,
            )
        self.hook = hook
        self.dispatcher = hook.dispatcher

        self.console = console if console is not None else ConsoleLogger()
        self.console.turn(verbose)
        self.after_log_request = after_log_request

        self._lock = threading.RLock()
        self._is_logging = False
        self._request_count = 0
        self._requests: list[LoggedRequest] = []
        self.display: NetworkLogDisplayable = NullDisplay()
        self.attach_display(display if display is not None else ConsoleDisplay(self.console))

    @classmethod
    def from_settings(cls, settings: LoggerSettings, **kwargs: Any) -> "NetworkLogger":
        kwargs.setdefault("console", ConsoleLogger(tag=settings.console_tag))
        return cls(settings.build_filters(), verbose=settings.verbose, **kwargs)

    # State -----------------------------------------------------------------

    @property
    def is_logging(self) -> bool:
        with self._lock:
            return self._is_logging

    @property
    def request_count(self) -> int:
        with self._lock:
            return self._request_count

    @property
    def requests(self) -> Tuple[LoggedRequest, ...]:
        """Snapshot of the log, most recent first."""

        with self._lock:
            return tuple(self._requests)

    @property
    def verbose(self) -> bool:
        return self.console.is_on

    @verbose.setter
    def verbose(self, value: bool) -> None:
        self.console.turn(value)

    # Lifecycle -------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            if self._is_logging:
                self.console.log(ALREADY_STARTED)
                return
            # Subscribed before installing, so nothing is published unheard.
            self.dispatcher.subscribe(self._receive, name="NetworkLogger")
            self.hook.install()
            self._is_logging = True
        logger.debug("Network logging started")

    def stop(self) -> None:
        with self._lock:
            if not self._is_logging:
                self.console.log(ALREADY_STOPPED)
                return
            self.hook.uninstall()
            self.dispatcher.unsubscribe(self._receive)
            self._is_logging = False
        logger.debug("Network logging stopped")

    def toggle(self) -> None:
        with self._lock:
            if self._is_logging:
                self.stop()
            else:
                self.start()

    def close(self) -> None:
        """Stop logging and drop every reference the bus holds to this logger."""

        with self._lock:
            if self._is_logging:
                self.stop()
            self.hook.uninstall()
            self.dispatcher.unsubscribe(self._receive)

    def __enter__(self) -> "NetworkLogger":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Log -------------------------------------------------------------------

    def attach_display(self, display: Optional[NetworkLogDisplayable]) -> None:
        if display is None:
            display = NullDisplay()
        if isinstance(display, RequestListDisplay):
            display.bind(lambda: self.is_logging, self.toggle)
        self.display = display

    def clear(self) -> None:
        """Empty the log; sequence ids keep counting from ``request_count``."""

        with self._lock:
            self._requests = []

    def mock_request(self, url: str = "https://hello.world") -> LogResult:
        return self.log_request(Request.build(url))

    def log_request(self, request: Request) -> LogResult:
        with self._lock:
            if not self._is_logging:
                return LogResult.reject(Rejected.NOT_LOGGING)
            if not self.request_filters.allows(request):
                return LogResult.reject(Rejected.FILTERED_OUT)

            self._request_count += 1
            logged = LoggedRequest.from_request(self._request_count, request)
            self._requests.insert(0, logged)
            self._notify(logged)
        return LogResult.success(logged)

    def _receive(self, request: Request) -> None:
        self.log_request(request)

    def _notify(self, logged: LoggedRequest) -> None:
        try:
            self.display.display_request(logged)
        except Exception:
            logger.exception(f"Display failed to render request #{logged.sequence_id}")
        if self.after_log_request is not None:
            try:
                self.after_log_request(logged)
            except Exception:
                logger.exception(f"after_log_request failed for request #{logged.sequence_id}")
