"""
Shared pytest fixtures for all tests.

Every fixture builds its own dispatcher and handler chain, so tests never
touch the process-wide defaults and cannot leak hooks into each other.
"""

import threading
from pathlib import Path

import pytest
from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from nog import (
    ConsoleLogger,
    Dispatcher,
    HandlerChain,
    NetworkLogger,
    NullDisplay,
    Request,
)


class Recorder:
    """Thread-safe callable collecting everything it is called with."""

    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail
        self._lock = threading.Lock()

    def __call__(self, item):
        with self._lock:
            self.calls.append(item)
        if self.fail:
            raise RuntimeError("recorder configured to fail")


@pytest.fixture
def make_recorder():
    return Recorder


@pytest.fixture
def dispatcher():
    bus = Dispatcher()
    yield bus
    bus.close()


@pytest.fixture
def chain():
    return HandlerChain()


@pytest.fixture
def console():
    return ConsoleLogger(is_on=True)


@pytest.fixture
def network_logger(dispatcher, chain, console):
    """Stopped logger wired to the isolated dispatcher and chain."""
    logger = NetworkLogger(
        dispatcher=dispatcher,
        chain=chain,
        console=console,
        display=NullDisplay(),
    )
    yield logger
    logger.close()


@pytest.fixture
def make_request():
    def _make(url="https://github.com", method="GET", headers=None, body=None):
        if headers is None:
            headers = {"Accept": "*/*"}
        return Request.build(url, method=method, headers=headers, body=body)

    return _make
