"""Fan-out broadcaster - push mutation events to every live subscriber."""

import itertools
import queue
import threading
from typing import Iterator, Optional

from src.models.event import MutationEvent
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

DEFAULT_BUFFER_SIZE = 100


class Subscription:
    """One subscriber's bounded, FIFO event stream.

    Only events published after ``Broadcaster.subscribe`` returned are delivered.
    Once closed (by the subscriber, the broadcaster, or an overflow drop) no
    further events are returned, including any still buffered.
    """

    def __init__(self, subscriber_id: int, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.subscriber_id = subscriber_id
        self.buffer_size = buffer_size
        self._queue: "queue.Queue[Optional[MutationEvent]]" = queue.Queue(maxsize=buffer_size)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def offer(self, event: MutationEvent) -> bool:
        """Enqueue without blocking; False if the subscriber is closed or full."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            return False
        return True

    def next_event(self, timeout: Optional[float] = None) -> Optional[MutationEvent]:
        """Wait for the next event; None on timeout or once closed."""
        if self.closed:
            return None
        try:
            event = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if self.closed:
            return None
        return event

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._closed.set()
        # Wake a reader blocked in next_event; a full queue never blocks one
        try:
            self._queue.put_nowait(None)
        except queue.Full:
            pass

    def __iter__(self) -> Iterator[MutationEvent]:
        """Yield events until the subscription closes."""
        while not self.closed:
            event = self.next_event(timeout=0.5)
            if event is not None:
                yield event

    def __repr__(self) -> str:
        return f"Subscription(id={self.subscriber_id}, pending={self.pending()}, closed={self.closed})"


class Broadcaster:
    """Process-wide publish/subscribe channel, owned by the composition root.

    ``publish`` never blocks on a subscriber: a subscriber whose buffer is full
    (or that has already closed) is dropped and the rest still get the event.
    Fan-out runs under one lock, so all subscribers see events in the same order.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        self.buffer_size = buffer_size
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._closed = False
        logger.info("Broadcaster initialized", buffer_size=buffer_size)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        with self._lock:
            subscription = Subscription(next(self._ids), self.buffer_size)
            if self._closed:
                subscription.close()
                return subscription
            self._subscribers[subscription.subscriber_id] = subscription
            total = len(self._subscribers)

        logger.info(
            "Subscriber connected",
            subscriber_id=subscription.subscriber_id,
            subscriber_count=total,
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber; safe to call more than once."""
        subscription.close()
        with self._lock:
            removed = self._subscribers.pop(subscription.subscriber_id, None)
            total = len(self._subscribers)

        if removed is not None:
            logger.info(
                "Subscriber disconnected",
                subscriber_id=subscription.subscriber_id,
                subscriber_count=total,
            )

    def publish(self, event: MutationEvent) -> int:
        """Deliver an event to every current subscriber; returns how many got it."""
        delivered = 0
        dropped: list[Subscription] = []

        with self._lock:
            for subscription in list(self._subscribers.values()):
                if subscription.offer(event):
                    delivered += 1
                else:
                    subscription.close()
                    del self._subscribers[subscription.subscriber_id]
                    dropped.append(subscription)

        for subscription in dropped:
            logger.warning(
                "Dropped slow or closed subscriber",
                subscriber_id=subscription.subscriber_id,
                message_type=event.message_type.value,
                buffer_size=self.buffer_size,
            )

        logger.debug(
            "Event published",
            message_type=event.message_type.value,
            delivered=delivered,
            dropped=len(dropped),
        )
        return delivered

    def close(self) -> None:
        """Close every subscription and refuse new ones."""
        with self._lock:
            self._closed = True
            subscriptions = list(self._subscribers.values())
            self._subscribers.clear()

        for subscription in subscriptions:
            subscription.close()
        logger.info("Broadcaster closed", subscribers_closed=len(subscriptions))
