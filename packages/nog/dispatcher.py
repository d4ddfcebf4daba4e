"""In-process notification bus between the interception hook and its consumers.

Every subscription owns a single-worker executor: deliveries to one consumer
run one at a time and in publish order, while different consumers proceed
independently of each other and of the publisher. ``publish`` only enqueues,
so it is safe to call from any number of transport threads.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional

from .request import Request

logger = logging.getLogger(__name__)

Consumer = Callable[[Request], Any]


class Subscription:
    """A consumer attached to a :class:`Dispatcher`."""

    def __init__(self, consumer: Consumer, *, name: Optional[str] = None) -> None:
        self.consumer = consumer
        self.name = name or getattr(consumer, "__qualname__", repr(consumer))
        self.delivered = 0
        self.failures = 0
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"nog-{self.name}"
        )
        self._pending: List[Future] = []
        self._pending_lock = threading.Lock()

    def submit(self, request: Request) -> None:
        future = self._executor.submit(self._deliver, request)
        with self._pending_lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def _deliver(self, request: Request) -> None:
        try:
            self.consumer(request)
        except Exception:
            self.failures += 1
            logger.exception(f"Consumer {self.name} failed on {request.method} {request.url}")
        else:
            self.delivered += 1

    def flush(self, timeout: Optional[float] = None) -> bool:
        with self._pending_lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        # wait=False: a consumer may unsubscribe itself from its own worker.
        self._executor.shutdown(wait=False, cancel_futures=True)


class Dispatcher:
    """Single-producer, multi-consumer publish mechanism."""

    def __init__(self) -> None:
        self._subscriptions: Dict[Consumer, Subscription] = {}
        self._lock = threading.Lock()
        self.published = 0

    def subscribe(self, consumer: Consumer, *, name: Optional[str] = None) -> Subscription:
        with self._lock:
            existing = self._subscriptions.get(consumer)
            if existing is not None:
                logger.debug(f"Consumer {existing.name} already subscribed")
                return existing
            subscription = Subscription(consumer, name=name)
            self._subscriptions[consumer] = subscription
        logger.debug(f"Subscribed {subscription.name}")
        return subscription

    def unsubscribe(self, consumer: Consumer) -> bool:
        with self._lock:
            subscription = self._subscriptions.pop(consumer, None)
        if subscription is None:
            return False
        subscription.close()
        logger.debug(f"Unsubscribed {subscription.name}")
        return True

    def is_subscribed(self, consumer: Consumer) -> bool:
        with self._lock:
            return consumer in self._subscriptions

    def publish(self, request: Request) -> int:
        """Queue ``request`` for every current subscriber.

        Returns the number of subscribers the request was queued for.
        """

        with self._lock:
            self.published += 1
            subscriptions = list(self._subscriptions.values())
            for subscription in subscriptions:
                try:
                    subscription.submit(request)
                except RuntimeError:
                    # Executor shut down by a concurrent unsubscribe.
                    logger.debug(f"Dropped delivery to closed consumer {subscription.name}")
        return len(subscriptions)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued delivery has run; ``False`` on timeout."""

        with self._lock:
            subscriptions = list(self._subscriptions.values())
        return all(subscription.flush(timeout) for subscription in subscriptions)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def close(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.close()


# Process-wide bus used when no dispatcher is given explicitly.
DEFAULT_DISPATCHER = Dispatcher()
