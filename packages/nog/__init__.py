"""Client-facing exports for nog."""

from .config import LoggerSettings
from .console import ConsoleLogger
from .curl import curl_description
from .dispatcher import DEFAULT_DISPATCHER, Dispatcher, Subscription
from .display import (
    CallbackDisplay,
    ConsoleDisplay,
    NetworkLogDisplayable,
    NullDisplay,
    RequestListDisplay,
)
from .filters import (
    FilterChain,
    RequestFilter,
    all_of,
    any_of,
    default_filters,
    exclude_hosts,
    host_filter,
    http_only_request_filter,
    method_filter,
    negate,
    no_request_filter,
)
from .hook import GLOBAL_CHAIN, HandlerChain, InterceptionHook
from .logger import NetworkLogger
from .models import LoggedRequest, LogResult, Rejected
from .redirect import Redirection, Redirector, host_redirector
from .request import SEEN_PROPERTY, Request
from .session import network_logging
from .sniffers import ConsoleSniffer, NetworkInterceptor, NetworkInterceptorConfig
from .transports import (
    AsyncInterceptingTransport,
    InterceptingAdapter,
    InterceptingTransport,
    intercepting_async_client,
    intercepting_client,
    intercepting_session,
    mount_session,
)

__all__ = [
    "AsyncInterceptingTransport",
    "CallbackDisplay",
    "ConsoleDisplay",
    "ConsoleLogger",
    "ConsoleSniffer",
    "DEFAULT_DISPATCHER",
    "Dispatcher",
    "FilterChain",
    "GLOBAL_CHAIN",
    "HandlerChain",
    "InterceptingAdapter",
    "InterceptingTransport",
    "InterceptionHook",
    "LogResult",
    "LoggedRequest",
    "LoggerSettings",
    "NetworkInterceptor",
    "NetworkInterceptorConfig",
    "NetworkLogDisplayable",
    "NetworkLogger",
    "NullDisplay",
    "Redirection",
    "Redirector",
    "Rejected",
    "Request",
    "RequestFilter",
    "RequestListDisplay",
    "SEEN_PROPERTY",
    "Subscription",
    "all_of",
    "any_of",
    "curl_description",
    "default_filters",
    "exclude_hosts",
    "host_filter",
    "host_redirector",
    "http_only_request_filter",
    "intercepting_async_client",
    "intercepting_client",
    "intercepting_session",
    "method_filter",
    "mount_session",
    "negate",
    "network_logging",
    "no_request_filter",
]
