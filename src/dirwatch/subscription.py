"""Subscription handles for delta receivers."""

import logging
from typing import Callable, List, Optional, Protocol, Union, runtime_checkable

from .models import Delta

logger = logging.getLogger(__name__)


@runtime_checkable
class DeltaReceiver(Protocol):
    """Object receiving directory deltas."""

    def receive(self, delta: Delta) -> None:
        ...


ReceiverLike = Union[DeltaReceiver, Callable[[Delta], None]]


class Subscription:
    """
    Cancellation handle of a delta receiver.
    
    Once cancelled, the receiver gets no further deltas, even ones already
    being dispatched. Cancellation is final.
    """

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[Exception] = None
        self._callbacks: List[Callable[[Optional[Exception]], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[Exception]:
        """Error that caused the cancellation, if any."""
        return self._reason

    def cancel(self, reason: Optional[Exception] = None) -> None:
        """
        Cancel the subscription.
        
        Args:
            reason: Error that caused the cancellation, if any
        """
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                logger.exception("Subscription cancel callback failed")

    def when_cancelled(self, callback: Callable[[Optional[Exception]], None]) -> None:
        """
        Register a callback to run on cancellation.
        
        Runs immediately if already cancelled.
        """
        if self._cancelled:
            callback(self._reason)
        else:
            self._callbacks.append(callback)

    def needs(self, other: "Subscription") -> "Subscription":
        """Cancel this subscription whenever ``other`` is cancelled."""
        other.when_cancelled(self.cancel)
        return self

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *args) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<Subscription {state}>"


def as_callback(receiver: ReceiverLike) -> Callable[[Delta], None]:
    """Normalize a receiver object or plain callable into a callable."""
    if isinstance(receiver, DeltaReceiver):
        return receiver.receive
    if callable(receiver):
        return receiver
    raise TypeError(f"receiver must be callable or have a receive() method: {receiver!r}")
