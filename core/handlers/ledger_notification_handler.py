"""
Handler for payment and refund events.

On PaymentRecorded or RefundRecorded, tells the guest what was received or
returned and what is still owed. Runs after the ledger commit; a gateway
failure is logged by the event bus and never undoes the entry.
"""

import logging
from typing import Callable

from clients.notification_client import NotificationGatewayClient
from core.event_bus import EventBus
from core.events import LedgerEntryEvent, PaymentRecorded, RefundRecorded
from core.money import Money

logger = logging.getLogger(__name__)


def handle_ledger_notification(client: NotificationGatewayClient, locale: str = "en_US") -> Callable:
    """
    Factory that returns a payment/refund notification handler.

    Args:
        client: NotificationGatewayClient instance
        locale: Locale for amounts in the message

    Returns:
        Handler callable for PaymentRecorded and RefundRecorded
    """

    def handler(event: LedgerEntryEvent):
        entry = event.entry
        reservation = event.reservation
        amount = entry.amount.format(locale)
        remaining = Money(max(reservation.outstanding_balance_cents, 0), reservation.currency)

        if isinstance(event, RefundRecorded):
            event_type = "refund_recorded"
            subject = "Refund issued"
            body = f"A refund of {amount} has been issued for your reservation."
        else:
            event_type = "payment_recorded"
            subject = "Payment received"
            body = f"Thank you! We received {amount} for your reservation."

        if remaining.is_zero():
            body += " Your balance is fully settled."
        else:
            body += f" Remaining balance: {remaining.format(locale)}."

        client.send_notification(
            event_type=event_type,
            guest_id=reservation.guest_id,
            reservation_id=reservation.id,
            subject=subject,
            body=body,
            data={
                "entry_id": str(entry.id),
                "amount_cents": entry.amount_cents,
                "currency": entry.currency,
                "outstanding_balance_cents": reservation.outstanding_balance_cents,
                "payment_status": reservation.payment_status.value,
            },
        )

    return handler


def register_ledger_notifications(
    event_bus: EventBus,
    client: NotificationGatewayClient,
    locale: str = "en_US",
) -> None:
    """Subscribe the notification handler to payment and refund events."""
    handler = handle_ledger_notification(client, locale)
    event_bus.subscribe(PaymentRecorded, handler)
    event_bus.subscribe(RefundRecorded, handler)
    logger.info("Ledger notifications registered")
