"""Display sinks rendering logged requests."""

from __future__ import annotations

import threading
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence, Tuple

from .console import ConsoleLogger
from .curl import Cookies, Credential, curl_description
from .models import LoggedRequest

INVALID_INDEX = "Invalid"

Scheduler = Callable[[Callable[[], None]], Any]
CustomAction = Tuple[str, Callable[[], None]]


class NetworkLogDisplayable(Protocol):
    def display_request(self, logged: LoggedRequest) -> None:  # pragma: no cover - interface
        ...


class NullDisplay:
    def display_request(self, logged: LoggedRequest) -> None:  # pragma: no cover
        return None


class CallbackDisplay:
    """Adapts a plain callable to the display interface."""

    def __init__(self, callback: Callable[[LoggedRequest], Any]) -> None:
        self.callback = callback

    def display_request(self, logged: LoggedRequest) -> None:
        self.callback(logged)


class ConsoleDisplay:
    """Writes one line per logged request to the console channel."""

    def __init__(self, console: Optional[ConsoleLogger] = None) -> None:
        self.console = console or ConsoleLogger(is_on=True)

    def display_request(self, logged: LoggedRequest) -> None:
        self.console.log(f"Request #{logged.sequence_id}: {logged.method} {logged.url}")


def _run_now(callback: Callable[[], None]) -> None:
    callback()


class RequestListDisplay:
    """List/detail view model over logged requests, most recent first.

    Rendering frameworks usually own a single UI thread; pass a ``scheduler``
    that posts a callable onto it (for example ``loop.call_soon_threadsafe``)
    and every store update is handed off through it.
    """

    def __init__(
        self,
        *,
        session_headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Cookies] = None,
        credential: Optional[Credential] = None,
        custom_actions: Sequence[CustomAction] = (),
        scheduler: Scheduler = _run_now,
    ) -> None:
        self.session_headers = dict(session_headers or {})
        self.cookies = cookies
        self.credential = credential
        self.custom_actions: List[CustomAction] = list(custom_actions)
        self.scheduler = scheduler
        self.after_display_request: Optional[Callable[[LoggedRequest, str], Any]] = None
        self._is_logging: Callable[[], bool] = lambda: False
        self._toggle_logging: Callable[[], None] = lambda: None
        self._requests: List[Tuple[int, LoggedRequest]] = []
        self._lock = threading.Lock()

    def bind(self, is_logging: Callable[[], bool], toggle_logging: Callable[[], None]) -> None:
        """Connect the toggle action to the logger owning this display."""

        self._is_logging = is_logging
        self._toggle_logging = toggle_logging

    def is_logging(self) -> bool:
        return self._is_logging()

    def toggle_logging(self) -> None:
        self._toggle_logging()

    @property
    def requests(self) -> Tuple[Tuple[int, LoggedRequest], ...]:
        with self._lock:
            return tuple(self._requests)

    def display_request(self, logged: LoggedRequest) -> None:
        self.scheduler(lambda: self._store(logged))

    def _store(self, logged: LoggedRequest) -> None:
        with self._lock:
            self._requests.insert(0, (logged.sequence_id, logged))
        if self.after_display_request is not None:
            self.after_display_request(logged, self.curl_for(logged))

    def curl_for(self, logged: LoggedRequest) -> str:
        return curl_description(
            logged,
            session_headers=self.session_headers,
            cookies=self.cookies,
            credential=self.credential,
        )

    def curl_description(self, index: int) -> str:
        with self._lock:
            if not 0 <= index < len(self._requests):
                return INVALID_INDEX
            logged = self._requests[index][1]
        return self.curl_for(logged)

    def request_display_number(self, index: int) -> int:
        with self._lock:
            return len(self._requests) - index

    def rows(self) -> List[str]:
        with self._lock:
            entries = list(self._requests)
        total = len(entries)
        return [
            f"#{total - index} {logged.method} {logged.url}"
            for index, (_, logged) in enumerate(entries)
        ]

    def actions(self) -> List[CustomAction]:
        """Custom actions followed by the built-in toggle and clear actions."""

        toggle_title = f"Turn Logging {'Off' if self.is_logging() else 'On'}"
        return [
            *self.custom_actions,
            (toggle_title, self.toggle_logging),
            ("Clear", self.clear),
        ]

    def clear(self) -> None:
        self.scheduler(self._clear)

    def _clear(self) -> None:
        with self._lock:
            self._requests = []
