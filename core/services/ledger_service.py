"""
Ledger service: the single place ledger entries are written.

Each mutation takes the reservation lock, replays the stored entries to get
current totals, validates the new entry against them, then appends the entry
and the recomputed derived columns in one transaction. Audit and events run
after the commit.

Expected failures come back as failed LedgerResults; infrastructure errors
propagate.
"""

import logging
from typing import Callable
from uuid import UUID, uuid4

from core.audit import AuditAction, AuditLogger, log_after_commit
from core.config import LedgerConfig
from core.event_bus import EventBus
from core.events import event_for_entry
from core import ledger_rules as rules
from core.exceptions import LedgerError, ValidationError
from core.ledger import (
    LedgerTotals,
    apply_entry,
    compute_totals,
    derive_payment_status,
    opening_total_cents,
)
from core.locks import LockManager
from core.models.ledger_entry import (
    AdjustmentEntry,
    AdjustmentType,
    LedgerEntry,
    PaymentEntry,
    PaymentMethod,
    PriceChangeEntry,
    RefundEntry,
)
from core.models.ledger_snapshot import LedgerSnapshot
from core.models.reservation import Reservation
from core.money import Money
from core.repositories.base import LedgerRepository
from core.results import LedgerResult
from utils.timezone import now_utc
from utils.user_context import get_current_user_id

logger = logging.getLogger(__name__)

RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
RESERVATION_TERMINAL = "RESERVATION_TERMINAL"

# build(reservation, totals) -> (entry, warnings)
EntryBuilder = Callable[[Reservation, LedgerTotals], tuple[LedgerEntry, list[str]]]


class LedgerService:
    """
    Records payments, refunds, adjustments and price changes.

    Usage:
        result = ledger.record_payment(reservation_id, 40000, "credit_card")
        if not result.success:
            return result.error_code, result.errors
    """

    def __init__(
        self,
        repository: LedgerRepository,
        locks: LockManager,
        audit: AuditLogger,
        event_bus: EventBus,
        config: LedgerConfig | None = None,
    ):
        self.repository = repository
        self.locks = locks
        self.audit = audit
        self.event_bus = event_bus
        self.config = config or LedgerConfig()

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def record_payment(
        self,
        reservation_id: UUID,
        amount: Money | int,
        method: PaymentMethod | str,
        reference: str | None = None,
        description: str | None = None,
        is_deposit: bool = False,
    ) -> LedgerResult[LedgerEntry]:
        """
        Record money received from the guest.

        Args:
            reservation_id: Reservation UUID
            amount: Money or minor units in the reservation currency
            method: Payment method (credit_card, paypal, bank_transfer, cash, check)
            reference: External reference (card slip, transfer id)
            description: Free text shown on receipts
            is_deposit: Deposits and advances are never capped by the
                overpayment floor

        Returns:
            LedgerResult with the PaymentEntry. warnings may contain
            OVERPAYMENT or RESERVATION_TERMINAL.
        """
        def build(reservation: Reservation, totals: LedgerTotals):
            errors = rules.FieldErrors()
            amount_cents = rules.amount_to_cents(amount, reservation.currency, errors)
            payment_method = rules.payment_method(method, errors)
            errors.raise_if_any()

            warnings = rules.check_payment(
                totals, amount_cents, is_deposit, self.config.overpayment_floor_cents
            )
            entry = PaymentEntry(
                **self._entry_fields(reservation, amount_cents),
                method=payment_method,
                reference=rules.optional_text(reference),
                description=rules.optional_text(description),
                is_deposit=is_deposit,
            )
            return entry, warnings

        return self._append(reservation_id, build)

    def record_refund(
        self,
        reservation_id: UUID,
        amount: Money | int,
        method: PaymentMethod | str,
        reference: str | None = None,
        description: str | None = None,
    ) -> LedgerResult[LedgerEntry]:
        """
        Record money returned to the guest.

        A refund can never exceed what has been paid. Recording one clears
        the refund-pending flag set by the approval workflow.

        Returns:
            LedgerResult with the RefundEntry, or REFUND_EXCEEDS_PAID
        """
        def build(reservation: Reservation, totals: LedgerTotals):
            errors = rules.FieldErrors()
            amount_cents = rules.amount_to_cents(amount, reservation.currency, errors)
            payment_method = rules.payment_method(method, errors)
            errors.raise_if_any()

            rules.check_refund(totals, amount_cents)
            entry = RefundEntry(
                **self._entry_fields(reservation, amount_cents),
                method=payment_method,
                reference=rules.optional_text(reference),
                description=rules.optional_text(description),
            )
            return entry, []

        return self._append(reservation_id, build)

    def add_adjustment(
        self,
        reservation_id: UUID,
        adjustment_type: AdjustmentType | str,
        amount: Money | int,
        description: str,
        reason: str,
    ) -> LedgerResult[LedgerEntry]:
        """
        Apply a discount, fee, refund credit or deposit return.

        FEE increases the amount owed; the other types reduce it. Both
        description and reason are required.
        """
        def build(reservation: Reservation, totals: LedgerTotals):
            errors = rules.FieldErrors()
            kind = rules.adjustment_type(adjustment_type, errors)
            amount_cents = rules.amount_to_cents(amount, reservation.currency, errors)
            text = rules.required_text(description, "description", "Description", errors)
            why = rules.required_text(reason, "reason", "Reason", errors)
            errors.raise_if_any()

            rules.require_positive(amount_cents, "Adjustment amount")
            entry = AdjustmentEntry(
                **self._entry_fields(reservation, amount_cents),
                adjustment_type=kind,
                description=text,
                reason=why,
            )
            return entry, []

        return self._append(reservation_id, build)

    def change_price(
        self,
        reservation_id: UUID,
        new_amount: Money | int,
        reason: str,
    ) -> LedgerResult[LedgerEntry]:
        """
        Change the contracted total.

        Emits a PriceChange entry recording old and new totals; payments
        and adjustments are untouched, so the outstanding balance moves by
        the difference.
        """
        def build(reservation: Reservation, totals: LedgerTotals):
            errors = rules.FieldErrors()
            new_cents = rules.amount_to_cents(
                new_amount, reservation.currency, errors, field="new_amount"
            )
            why = rules.required_text(reason, "reason", "Reason", errors)
            errors.raise_if_any()

            rules.require_positive(new_cents, "New price")
            entry = PriceChangeEntry(
                **self._entry_fields(reservation, new_cents),
                old_amount_cents=totals.total_amount_cents,
                new_amount_cents=new_cents,
                reason=why,
            )
            return entry, []

        return self._append(reservation_id, build)

    def mark_refund_pending(self, reservation_id: UUID) -> LedgerResult[LedgerSnapshot]:
        """Flag a refund as awaiting approval (payment status PENDING_REFUND)."""
        return self._set_refund_pending(reservation_id, True)

    def clear_refund_pending(self, reservation_id: UUID) -> LedgerResult[LedgerSnapshot]:
        """Withdraw the pending-refund flag without recording a refund."""
        return self._set_refund_pending(reservation_id, False)

    # =========================================================================
    # READS
    # =========================================================================

    def get_snapshot(self, reservation_id: UUID) -> LedgerResult[LedgerSnapshot]:
        """
        Point-in-time view of totals and entries. Takes no lock.
        """
        reservation = self.repository.get_reservation(reservation_id)
        if reservation is None:
            return LedgerResult.from_error(self._not_found(reservation_id))
        entries = self.repository.list_entries(reservation_id)
        return LedgerResult.ok(self._snapshot(reservation, entries))

    def list_entries(self, reservation_id: UUID) -> LedgerResult[list[LedgerEntry]]:
        """Entries in the order they were recorded."""
        if self.repository.get_reservation(reservation_id) is None:
            return LedgerResult.from_error(self._not_found(reservation_id))
        return LedgerResult.ok(self.repository.list_entries(reservation_id))

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _append(self, reservation_id: UUID, build: EntryBuilder) -> LedgerResult[LedgerEntry]:
        try:
            with self.locks.hold(reservation_id):
                reservation = self._require(reservation_id)
                entries = self.repository.list_entries(reservation_id)
                totals = self._totals(reservation, entries)

                entry, warnings = build(reservation, totals)

                if reservation.is_terminal:
                    warnings.append(RESERVATION_TERMINAL)

                refund_pending = reservation.refund_pending and not isinstance(entry, RefundEntry)
                updated = self._with_totals(
                    reservation,
                    apply_entry(totals, entry),
                    entries + [entry],
                    refund_pending,
                )
                stored = self.repository.append_entry(entry, updated)
        except LedgerError as e:
            logger.info(f"Ledger entry rejected for {reservation_id}: {e.code} {e.message}")
            return LedgerResult.from_error(e)
        except OverflowError as e:
            # Amount fits on its own but pushes a running total out of range
            logger.info(f"Ledger entry rejected for {reservation_id}: {e}")
            return LedgerResult.from_error(ValidationError(
                "Please correct: amount",
                errors={"amount": ["Amount is too large"]},
            ))

        logger.info(
            f"Recorded {entry.kind} of {entry.amount} on reservation {reservation_id}; "
            f"outstanding {stored.outstanding_balance}"
        )
        for warning in warnings:
            logger.warning(f"{warning} on reservation {reservation_id} ({entry.kind} {entry.id})")

        log_after_commit(
            self.audit,
            entity_type="ledger_entry",
            entity_id=entry.id,
            action=AuditAction.CREATE,
            changes={"created": entry.model_dump(mode="json")},
        )
        self.event_bus.publish(event_for_entry(entry, stored))

        return LedgerResult.ok(entry, warnings)

    def _set_refund_pending(self, reservation_id: UUID, pending: bool) -> LedgerResult[LedgerSnapshot]:
        try:
            with self.locks.hold(reservation_id):
                reservation = self._require(reservation_id)
                entries = self.repository.list_entries(reservation_id)
                if reservation.refund_pending == pending:
                    return LedgerResult.ok(self._snapshot(reservation, entries))

                totals = self._totals(reservation, entries)
                status = derive_payment_status(totals, entries, pending)
                stored = self.repository.update_reservation(
                    reservation_id,
                    {
                        "refund_pending": pending,
                        "payment_status": status,
                        "updated_at": now_utc(),
                    },
                )
        except LedgerError as e:
            return LedgerResult.from_error(e)

        log_after_commit(
            self.audit,
            entity_type="reservation",
            entity_id=reservation_id,
            action=AuditAction.UPDATE,
            changes={
                "refund_pending": {"old": reservation.refund_pending, "new": pending},
                "payment_status": {
                    "old": reservation.payment_status.value,
                    "new": status.value,
                },
            },
        )
        logger.info(f"Refund pending set to {pending} on reservation {reservation_id}")
        return LedgerResult.ok(self._snapshot(stored, entries))

    def _require(self, reservation_id: UUID) -> Reservation:
        reservation = self.repository.get_reservation(reservation_id)
        if reservation is None:
            raise self._not_found(reservation_id)
        return reservation

    @staticmethod
    def _not_found(reservation_id: UUID) -> ValidationError:
        return ValidationError(
            f"Reservation {reservation_id} not found",
            errors={"reservation_id": ["Reservation not found"]},
            code=RESERVATION_NOT_FOUND,
        )

    @staticmethod
    def _entry_fields(reservation: Reservation, amount_cents: int) -> dict:
        return {
            "id": uuid4(),
            "reservation_id": reservation.id,
            "created_at": now_utc(),
            "created_by": get_current_user_id(),
            "amount_cents": amount_cents,
            "currency": reservation.currency,
        }

    @staticmethod
    def _totals(reservation: Reservation, entries: list[LedgerEntry]) -> LedgerTotals:
        """Replay the entries; the stored derived columns are not trusted."""
        return compute_totals(
            opening_total_cents(reservation.total_amount_cents, entries),
            reservation.currency,
            entries,
        )

    @staticmethod
    def _with_totals(
        reservation: Reservation,
        totals: LedgerTotals,
        entries: list[LedgerEntry],
        refund_pending: bool,
    ) -> Reservation:
        return reservation.model_copy(update={
            "total_amount_cents": totals.total_amount_cents,
            "paid_amount_cents": totals.paid_amount_cents,
            "adjustment_total_cents": totals.adjustment_total_cents,
            "outstanding_balance_cents": totals.outstanding_balance_cents,
            "payment_status": derive_payment_status(totals, entries, refund_pending),
            "refund_pending": refund_pending,
            "updated_at": now_utc(),
        })

    def _snapshot(self, reservation: Reservation, entries: list[LedgerEntry]) -> LedgerSnapshot:
        totals = self._totals(reservation, entries)
        return LedgerSnapshot(
            reservation_id=reservation.id,
            property_id=reservation.property_id,
            guest_id=reservation.guest_id,
            guest_name=reservation.guest_name,
            property_name=reservation.property_name,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            status=reservation.status,
            currency=reservation.currency,
            total_amount_cents=totals.total_amount_cents,
            paid_amount_cents=totals.paid_amount_cents,
            adjustment_total_cents=totals.adjustment_total_cents,
            outstanding_balance_cents=totals.outstanding_balance_cents,
            payment_status=derive_payment_status(totals, entries, reservation.refund_pending),
            entries=tuple(entries),
            taken_at=now_utc(),
        )
