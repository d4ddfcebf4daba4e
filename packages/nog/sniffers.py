"""Sniffers observing the raw intercepted request stream.

Unlike :class:`nog.logger.NetworkLogger`, a sniffer keeps no log and applies
no filter chain of its own: each one is subscribed straight to the
dispatcher and sees every request the hook publishes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from .console import ConsoleLogger
from .curl import curl_description
from .dispatcher import DEFAULT_DISPATCHER, Dispatcher
from .filters import http_only_request_filter
from .hook import GLOBAL_CHAIN, HandlerChain, InterceptionHook
from .redirect import Redirection, Redirector
from .request import Request

logger = logging.getLogger(__name__)


class RequestSniffer(Protocol):
    def sniff_request(self, request: Request) -> None:  # pragma: no cover - interface
        ...


class ConsoleSniffer:
    """Prints a numbered cURL line for every http(s) request."""

    def __init__(self, console: Optional[ConsoleLogger] = None) -> None:
        self.console = console or ConsoleLogger(is_on=True)
        self.request_count = 0

    def sniff_request(self, request: Request) -> None:
        if not http_only_request_filter(request):
            return
        self.request_count += 1
        self.console.log(f"Request #{self.request_count}: CURL => {curl_description(request)}")


@dataclass
class NetworkInterceptorConfig:
    request_sniffers: List[RequestSniffer] = field(default_factory=list)
    redirectors: List[Redirector] = field(default_factory=list)


class NetworkInterceptor:
    """Fans intercepted requests out to the configured sniffers."""

    def __init__(
        self,
        config: Optional[NetworkInterceptorConfig] = None,
        *,
        dispatcher: Dispatcher = DEFAULT_DISPATCHER,
        chain: HandlerChain = GLOBAL_CHAIN,
    ) -> None:
        self.config = config or NetworkInterceptorConfig()
        self.dispatcher = dispatcher
        self.hook = InterceptionHook(
            dispatcher,
            redirection=Redirection(self.config.redirectors),
            chain=chain,
        )

    @property
    def is_recording(self) -> bool:
        return self.hook.is_installed

    def start_recording(self) -> None:
        if self.hook.is_installed:
            logger.warning("start_recording called while already recording")
            return
        for sniffer in self.config.request_sniffers:
            self.dispatcher.subscribe(sniffer.sniff_request, name=type(sniffer).__name__)
        self.hook.install()

    def stop_recording(self) -> None:
        if not self.hook.uninstall():
            logger.warning("stop_recording called while not recording")
            return
        for sniffer in self.config.request_sniffers:
            self.dispatcher.unsubscribe(sniffer.sniff_request)
