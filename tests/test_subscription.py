"""Tests for subscription module."""

import pytest

from src.dirwatch.models import Delta
from src.dirwatch.subscription import DeltaReceiver, Subscription, as_callback


class TestSubscription:
    """Tests for Subscription class."""

    def test_create(self):
        subscription = Subscription()
        assert subscription.is_cancelled is False
        assert subscription.reason is None

    def test_cancel(self):
        subscription = Subscription()
        calls = []
        subscription.when_cancelled(calls.append)

        subscription.cancel()

        assert subscription.is_cancelled is True
        assert calls == [None]

    def test_cancel_with_reason(self):
        subscription = Subscription()
        error = RuntimeError("boom")
        calls = []
        subscription.when_cancelled(calls.append)

        subscription.cancel(error)

        assert subscription.reason is error
        assert calls == [error]

    def test_cancel_once(self):
        subscription = Subscription()
        calls = []
        subscription.when_cancelled(calls.append)

        subscription.cancel()
        subscription.cancel(RuntimeError("later"))

        assert calls == [None]
        assert subscription.reason is None

    def test_when_cancelled_after_cancel(self):
        subscription = Subscription()
        subscription.cancel()
        calls = []

        subscription.when_cancelled(calls.append)

        assert calls == [None]

    def test_failing_callback_does_not_stop_others(self):
        subscription = Subscription()
        calls = []

        def failing(reason):
            raise ValueError("bad callback")

        subscription.when_cancelled(failing)
        subscription.when_cancelled(calls.append)
        subscription.cancel()

        assert calls == [None]

    def test_needs(self):
        parent = Subscription()
        child = Subscription().needs(parent)

        parent.cancel()

        assert child.is_cancelled is True

    def test_needs_does_not_cancel_parent(self):
        parent = Subscription()
        child = Subscription().needs(parent)

        child.cancel()

        assert parent.is_cancelled is False

    def test_context_manager(self):
        with Subscription() as subscription:
            assert not subscription.is_cancelled
        assert subscription.is_cancelled


class TestAsCallback:
    """Tests for as_callback."""

    def test_callable(self):
        received = []
        callback = as_callback(received.append)

        callback(Delta())

        assert len(received) == 1

    def test_receiver_object(self):
        class Receiver:
            def __init__(self):
                self.received = []

            def receive(self, delta):
                self.received.append(delta)

        receiver = Receiver()
        assert isinstance(receiver, DeltaReceiver)

        as_callback(receiver)(Delta())

        assert len(receiver.received) == 1

    def test_rejects_other_objects(self):
        with pytest.raises(TypeError):
            as_callback(42)
