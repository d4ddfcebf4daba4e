"""Client integrations routing outgoing requests through a handler chain.

Clients opt in by using one of the wrappers below as their transport
(``httpx``) or adapter (``requests``). Call sites keep issuing requests the
usual way; every request is first run through the handler chain, and the
request the chain returns is the one that goes out.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from requests.structures import CaseInsensitiveDict

from .hook import GLOBAL_CHAIN, HandlerChain
from .request import Request, from_httpx, from_requests

_BODY_HEADERS = {"content-length", "transfer-encoding"}


# ---------------------------------------------------------------------------
# httpx
# ---------------------------------------------------------------------------


def _rebuild_httpx(original: httpx.Request, observed: Request, outgoing: Request) -> httpx.Request:
    headers = list(outgoing.headers)
    if not any(name.lower() == "host" for name, _ in headers):
        # httpx only fills in Host itself when it encodes the body.
        headers.insert(0, ("Host", httpx.URL(outgoing.url).netloc.decode("ascii")))
    extensions = dict(original.extensions)
    if outgoing.body == observed.body:
        return httpx.Request(
            outgoing.method,
            outgoing.url,
            headers=headers,
            stream=original.stream,
            extensions=extensions,
        )
    headers = [(name, value) for name, value in headers if name.lower() not in _BODY_HEADERS]
    return httpx.Request(
        outgoing.method,
        outgoing.url,
        headers=headers,
        content=outgoing.body,
        extensions=extensions,
    )


def _process_httpx(request: httpx.Request, chain: HandlerChain) -> httpx.Request:
    observed = from_httpx(request)
    outgoing = chain.process(observed)
    if outgoing == observed:
        return request
    return _rebuild_httpx(request, observed, outgoing)


class InterceptingTransport(httpx.BaseTransport):
    """Wraps an ``httpx`` transport; extra kwargs build a default ``HTTPTransport``."""

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        *,
        chain: HandlerChain = GLOBAL_CHAIN,
        **transport_kwargs: Any,
    ) -> None:
        self._transport = transport if transport is not None else httpx.HTTPTransport(**transport_kwargs)
        self._chain = chain

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self._transport.handle_request(_process_httpx(request, self._chain))

    def close(self) -> None:
        self._transport.close()


class AsyncInterceptingTransport(httpx.AsyncBaseTransport):
    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        *,
        chain: HandlerChain = GLOBAL_CHAIN,
        **transport_kwargs: Any,
    ) -> None:
        self._transport = (
            transport if transport is not None else httpx.AsyncHTTPTransport(**transport_kwargs)
        )
        self._chain = chain

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._transport.handle_async_request(_process_httpx(request, self._chain))

    async def aclose(self) -> None:
        await self._transport.aclose()


def intercepting_client(*, chain: HandlerChain = GLOBAL_CHAIN, **client_kwargs: Any) -> httpx.Client:
    transport = client_kwargs.pop("transport", None)
    return httpx.Client(transport=InterceptingTransport(transport, chain=chain), **client_kwargs)


def intercepting_async_client(
    *, chain: HandlerChain = GLOBAL_CHAIN, **client_kwargs: Any
) -> httpx.AsyncClient:
    transport = client_kwargs.pop("transport", None)
    return httpx.AsyncClient(
        transport=AsyncInterceptingTransport(transport, chain=chain), **client_kwargs
    )


# ---------------------------------------------------------------------------
# requests
# ---------------------------------------------------------------------------


def _apply_to_prepared(prepared: Any, observed: Request, outgoing: Request) -> None:
    prepared.method = outgoing.method
    prepared.url = outgoing.url
    prepared.headers = CaseInsensitiveDict(list(outgoing.headers))
    if outgoing.body != observed.body:
        prepared.body = outgoing.body
        prepared.headers.pop("Transfer-Encoding", None)
        prepared.headers["Content-Length"] = str(len(outgoing.body))


class InterceptingAdapter(BaseAdapter):
    """Wraps a ``requests`` adapter (default: ``HTTPAdapter``)."""

    def __init__(self, adapter: Optional[Any] = None, *, chain: HandlerChain = GLOBAL_CHAIN) -> None:
        super().__init__()
        self._adapter = adapter if adapter is not None else HTTPAdapter()
        self._chain = chain

    def send(self, request, **kwargs):
        observed = from_requests(request)
        outgoing = self._chain.process(observed)
        if outgoing != observed:
            _apply_to_prepared(request, observed, outgoing)
        return self._adapter.send(request, **kwargs)

    def close(self) -> None:
        self._adapter.close()


def mount_session(
    session: Any, *, adapter: Optional[Any] = None, chain: HandlerChain = GLOBAL_CHAIN
) -> InterceptingAdapter:
    intercepting = InterceptingAdapter(adapter, chain=chain)
    session.mount("http://", intercepting)
    session.mount("https://", intercepting)
    return intercepting


def intercepting_session(*, chain: HandlerChain = GLOBAL_CHAIN) -> requests.Session:
    session = requests.Session()
    mount_session(session, chain=chain)
    return session
