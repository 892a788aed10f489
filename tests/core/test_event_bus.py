"""Tests for EventBus."""

import logging
from uuid import uuid4

import pytest

from core.event_bus import EventBus
from core.events import (
    LedgerEntryEvent, PaymentRecorded, RefundRecorded, ReservationOpened,
)
from core.models import PaymentEntry, PaymentMethod
from utils.timezone import now_utc


@pytest.fixture
def _entry(reservation):
    return PaymentEntry(
        id=uuid4(), reservation_id=reservation.id, created_at=now_utc(),
        amount_cents=40000, currency="USD", method=PaymentMethod.CASH,
    )


# =============================================================================
# SUBSCRIBE AND PUBLISH
# =============================================================================


class TestSubscribeAndPublish:

    def test_single_handler_receives_the_exact_event_object(self, _entry, reservation):
        bus = EventBus()
        received = []
        bus.subscribe("PaymentRecorded", received.append)

        event = PaymentRecorded.create(_entry, reservation)
        bus.publish(event)

        assert len(received) == 1
        assert received[0] is event

    def test_subscribe_by_class(self, _entry, reservation):
        bus = EventBus()
        received = []
        bus.subscribe(PaymentRecorded, received.append)

        bus.publish(PaymentRecorded.create(_entry, reservation))

        assert len(received) == 1

    def test_handler_can_read_payload_fields(self, _entry, reservation):
        bus = EventBus()
        amounts = []
        bus.subscribe("PaymentRecorded", lambda e: amounts.append(e.entry.amount_cents))

        bus.publish(PaymentRecorded.create(_entry, reservation))

        assert amounts == [40000]

    def test_multiple_handlers_called_in_subscription_order(self, _entry, reservation):
        bus = EventBus()
        order = []
        bus.subscribe("PaymentRecorded", lambda e: order.append("A"))
        bus.subscribe("PaymentRecorded", lambda e: order.append("B"))
        bus.subscribe("PaymentRecorded", lambda e: order.append("C"))

        bus.publish(PaymentRecorded.create(_entry, reservation))

        assert order == ["A", "B", "C"]

    def test_type_isolation_only_matching_subscribers_called(self, _entry, reservation):
        bus = EventBus()
        payment_calls = []
        refund_calls = []
        bus.subscribe("PaymentRecorded", payment_calls.append)
        bus.subscribe("RefundRecorded", refund_calls.append)

        bus.publish(PaymentRecorded.create(_entry, reservation))

        assert len(payment_calls) == 1
        assert refund_calls == []

    def test_base_class_subscription_receives_subclass_events(self, _entry, reservation):
        """LedgerEntryEvent subscribers see every entry event, specific handlers first."""
        bus = EventBus()
        order = []
        bus.subscribe(LedgerEntryEvent, lambda e: order.append("base"))
        bus.subscribe(RefundRecorded, lambda e: order.append("refund"))

        bus.publish(RefundRecorded.create(_entry, reservation))
        bus.publish(ReservationOpened.create(reservation))

        assert order == ["refund", "base"]

    def test_no_subscribers_does_not_raise(self, _entry, reservation):
        EventBus().publish(PaymentRecorded.create(_entry, reservation))

    def test_two_publishes_deliver_two_distinct_events(self, _entry, reservation):
        bus = EventBus()
        received = []
        bus.subscribe("PaymentRecorded", received.append)

        bus.publish(PaymentRecorded.create(_entry, reservation))
        bus.publish(PaymentRecorded.create(_entry, reservation))

        assert len(received) == 2
        assert received[0].event_id != received[1].event_id


# =============================================================================
# HANDLER ERROR ISOLATION
# =============================================================================


class TestHandlerErrorIsolation:

    def test_handler_exception_does_not_propagate(self, _entry, reservation):
        bus = EventBus()
        bus.subscribe("PaymentRecorded", lambda e: (_ for _ in ()).throw(RuntimeError("boom")))

        # Must not raise
        bus.publish(PaymentRecorded.create(_entry, reservation))

    def test_handler_exception_is_logged_with_event_type_and_event_id(self, _entry, reservation, caplog):
        bus = EventBus()

        def failing_handler(event):
            raise ValueError("gateway unreachable")

        bus.subscribe("PaymentRecorded", failing_handler)

        with caplog.at_level(logging.ERROR, logger="core.event_bus"):
            event = PaymentRecorded.create(_entry, reservation)
            bus.publish(event)

        assert "gateway unreachable" in caplog.text
        assert "PaymentRecorded" in caplog.text
        assert event.event_id in caplog.text

    def test_all_handlers_run_even_if_multiple_fail(self, _entry, reservation):
        bus = EventBus()
        results = []

        bus.subscribe("PaymentRecorded", lambda e: (_ for _ in ()).throw(RuntimeError("fail 1")))
        bus.subscribe("PaymentRecorded", lambda e: results.append("survived_1"))
        bus.subscribe("PaymentRecorded", lambda e: (_ for _ in ()).throw(RuntimeError("fail 2")))
        bus.subscribe("PaymentRecorded", lambda e: results.append("survived_2"))

        bus.publish(PaymentRecorded.create(_entry, reservation))

        assert results == ["survived_1", "survived_2"]
