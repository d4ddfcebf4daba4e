"""User-facing context manager for a scoped logging session."""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from typing import Any, Iterator

from .logger import NetworkLogger


@contextmanager
def network_logging(**logger_kwargs: Any) -> Iterator[NetworkLogger]:
    """Log requests made inside the managed block.

    Keyword arguments are passed to :class:`NetworkLogger`. The logger is
    closed on exit, so the bus holds no reference to it afterwards.
    """

    network_logger = NetworkLogger(**logger_kwargs)
    with ExitStack() as stack:
        stack.enter_context(network_logger)
        yield network_logger
