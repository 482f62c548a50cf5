"""Shared directory tracking for any number of subscribers."""

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Set

from .config import TrackerConfig
from .exceptions import SessionClosedError
from .models import Delta, DirEntry
from .session import WatchSession
from .subscription import ReceiverLike, Subscription, as_callback

logger = logging.getLogger(__name__)

_CLOSED = object()


class _Subscriber:
    """An attached receiver with its own replica of known entries."""

    __slots__ = ("subscription", "callback", "replica")

    def __init__(self, subscription: Subscription, callback: Callable[[Delta], None]):
        self.subscription = subscription
        self.callback = callback
        self.replica: Set[DirEntry] = set()


class DirectoryTracker:
    """
    Event source of changes in a tracked directory.
    
    All subscribers share one watch session, started by the first one to
    subscribe and closed when the last one unsubscribes. A subscriber joining
    after the directory has been scanned first receives a catch-up delta
    with every known entry as added, then the regular deltas.
    
    Each subscriber keeps its own replica of the entries reported to it, and
    every delta is re-derived against that replica before delivery.
    
    Example:
        tracker = track_directory("/data/inbox", ignore_patterns=["*.tmp"])
        
        def on_delta(delta):
            print("added:", delta.added_names, "removed:", delta.removed_names)
        
        subscription = tracker.subscribe(on_delta)
        ...
        subscription.cancel()
    """

    def __init__(
        self,
        path: Path,
        config: Optional[TrackerConfig] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the tracker. Nothing is watched until the first subscription.
        
        Args:
            path: Directory to track
            config: Tracker configuration
            loop: Event loop to run on (the running loop by default)
        """
        self.path = Path(path).resolve()
        self.config = config or TrackerConfig()
        self._loop = loop
        self._session: Optional[WatchSession] = None
        self._subscribers: List[_Subscriber] = []
        self._closed = False
        self._failure: Optional[Exception] = None

    @property
    def session(self) -> Optional[WatchSession]:
        """The active watch session, if any."""
        return self._session

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def is_closed(self) -> bool:
        """Check if the tracker was closed or its session failed."""
        return self._closed or self._failure is not None

    @property
    def failure(self) -> Optional[Exception]:
        """Error that closed the tracker's session, if any."""
        return self._failure

    def entries(self) -> List[DirEntry]:
        """Copy of the current snapshot entries. Empty when not watching."""
        if self._session is None:
            return []
        return self._session.entries()

    def subscribe(
        self,
        receiver: ReceiverLike,
        subscription: Optional[Subscription] = None,
    ) -> Subscription:
        """
        Attach a receiver.
        
        Args:
            receiver: Callable taking a Delta, or object with ``receive(delta)``
            subscription: Cancellation handle to use instead of a new one
            
        Returns:
            The subscription controlling delivery to the receiver
            
        Raises:
            WatchRegistrationError: If starting the watch session failed
            SessionClosedError: If the tracker is closed
        """
        callback = as_callback(receiver)
        subscription = subscription or Subscription()

        if self.is_closed:
            raise SessionClosedError(f"Tracker is closed: {self.path}")
        if subscription.is_cancelled:
            return subscription

        session = self._session or self._open_session()
        subscriber = _Subscriber(subscription, callback)
        self._subscribers.append(subscriber)
        subscription.when_cancelled(lambda reason: self._detach(subscriber))

        if session.has_snapshot:
            self._deliver(subscriber, Delta.snapshot(session.entries()))

        return subscription

    async def next_delta(self) -> Delta:
        """
        Wait for the next delta.
        
        Resolves with the catch-up delta right away when the directory has
        been scanned already.
        
        Raises:
            SessionClosedError: If tracking stops before a delta arrives
        """
        loop = self._loop or asyncio.get_running_loop()
        future = loop.create_future()
        subscription = Subscription()

        def receive(delta: Delta) -> None:
            if not future.done():
                future.set_result(delta)
            subscription.cancel()

        def cancelled(reason: Optional[Exception]) -> None:
            if not future.done():
                error = SessionClosedError(f"Tracking stopped: {self.path}")
                error.__cause__ = reason
                future.set_exception(error)

        try:
            self.subscribe(receive, subscription)
            subscription.when_cancelled(cancelled)
            return await future
        finally:
            subscription.cancel()

    async def deltas(self) -> AsyncIterator[Delta]:
        """
        Iterate over deltas as they arrive.
        
        The iteration ends when tracking stops.
        """
        queue: asyncio.Queue = asyncio.Queue()
        subscription = Subscription()
        subscription.when_cancelled(lambda reason: queue.put_nowait(_CLOSED))
        self.subscribe(queue.put_nowait, subscription)

        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            subscription.cancel()

    def close(self) -> None:
        """Stop tracking and cancel all subscriptions. Final."""
        if self._closed:
            return
        self._closed = True

        session, self._session = self._session, None
        if session is not None:
            session.close()
        self._cancel_all(None)

    async def wait_closed(self) -> None:
        """Wait for the current session, if any, to close."""
        if self._session is not None:
            await self._session.wait_closed()

    async def __aenter__(self) -> "DirectoryTracker":
        return self

    async def __aexit__(self, *args) -> None:
        session = self._session
        self.close()
        if session is not None:
            await session.wait_closed()

    def _open_session(self) -> WatchSession:
        session = WatchSession(self.path, self.config, emit=self._emit, loop=self._loop)
        session.when_closed(lambda reason: self._session_closed(session, reason))
        session.start()
        self._session = session
        return session

    def _session_closed(self, session: WatchSession, reason: Optional[Exception]) -> None:
        if self._session is session:
            self._session = None
        if reason is not None:
            self._failure = reason
        self._cancel_all(reason)

    def _cancel_all(self, reason: Optional[Exception]) -> None:
        for subscriber in list(self._subscribers):
            subscriber.subscription.cancel(reason)

    def _detach(self, subscriber: _Subscriber) -> None:
        try:
            self._subscribers.remove(subscriber)
        except ValueError:
            return
        subscriber.replica.clear()

        if not self._subscribers and self._session is not None:
            session, self._session = self._session, None
            logger.debug(f"Last subscriber detached from {self.path}")
            session.close()

    def _emit(self, delta: Delta) -> None:
        for subscriber in list(self._subscribers):
            self._deliver(subscriber, delta)

    def _deliver(self, subscriber: _Subscriber, delta: Delta) -> None:
        if subscriber.subscription.is_cancelled:
            return

        effective = delta.apply_to(subscriber.replica)
        if delta and not effective:
            return

        try:
            subscriber.callback(effective)
        except Exception as e:
            logger.exception(f"Delta receiver failed for {self.path}")
            subscriber.subscription.cancel(e)


def track_directory(
    path: Path,
    config: Optional[TrackerConfig] = None,
    **options,
) -> DirectoryTracker:
    """
    Create a tracker of changes in a directory.
    
    Args:
        path: Tracked directory path
        config: Tracker configuration
        **options: TrackerConfig fields overriding ``config``
            (e.g. ``entry_filter``, ``is_modified``, ``ignore_patterns``)
        
    Returns:
        A DirectoryTracker reporting deltas of tracked directory entries
    """
    if config is None:
        config = TrackerConfig(**options)
    elif options:
        config = dataclasses.replace(config, **options)
    return DirectoryTracker(path, config)
