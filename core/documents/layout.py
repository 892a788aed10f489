"""
Format-independent document layout.

build_layout() turns a snapshot into titled blocks of display strings. The
text and PDF writers only arrange these blocks; every amount and label is
decided here, from the snapshot alone.
"""

from dataclasses import dataclass, field
from datetime import date

from core.documents.models import DocumentRequest, DocumentType
from core.models.ledger_entry import (
    AdjustmentEntry,
    PaymentEntry,
    PriceChangeEntry,
    RefundEntry,
)
from core.models.ledger_snapshot import LedgerSnapshot
from core.money import Money

NOT_AVAILABLE = "N/A"

_TITLES = {
    DocumentType.RECEIPT: ("PAYMENT RECEIPT", "Paid"),
    DocumentType.INVOICE: ("INVOICE", "Outstanding"),
    DocumentType.REFUND_RECEIPT: ("REFUND RECEIPT", "Refunded"),
}

_CLOSING = {
    DocumentType.RECEIPT: "Thank you for your payment. This receipt confirms your transaction.",
    DocumentType.INVOICE: "Please remit payment by the due date. Thank you for your business.",
    DocumentType.REFUND_RECEIPT: (
        "Refund has been processed and will be credited to your account "
        "within 3-5 business days."
    ),
}


@dataclass(frozen=True)
class KeyValueBlock:
    title: str
    rows: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class TableBlock:
    title: str
    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    right_aligned: frozenset[int] = frozenset()


@dataclass(frozen=True)
class TextBlock:
    title: str | None
    paragraphs: tuple[str, ...]


Block = KeyValueBlock | TableBlock | TextBlock


@dataclass(frozen=True)
class DocumentLayout:
    business_name: str
    title: str
    status_label: str
    issued_on: date
    reference_rows: tuple[tuple[str, str], ...]
    blocks: tuple[Block, ...] = field(default_factory=tuple)


def _or_na(value) -> str:
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    return text or NOT_AVAILABLE


def _label(value: str) -> str:
    return value.replace("_", " ").upper()


def _money(cents: int, snapshot: LedgerSnapshot, locale: str) -> str:
    return Money(cents, snapshot.currency).format(locale)


def _payment_rows(snapshot: LedgerSnapshot, locale: str) -> tuple[tuple[str, ...], ...]:
    rows = []
    for entry in snapshot.entries:
        if isinstance(entry, PaymentEntry):
            signed, default = entry.amount_cents, "Payment"
        elif isinstance(entry, RefundEntry):
            signed, default = -entry.amount_cents, "Refund"
        else:
            continue
        rows.append((
            entry.created_at.date().isoformat(),
            _label(entry.method.value),
            entry.reference or "-",
            _money(signed, snapshot, locale),
            entry.description or default,
        ))
    return tuple(rows)


def _adjustment_rows(snapshot: LedgerSnapshot, locale: str) -> tuple[tuple[str, ...], ...]:
    rows = []
    for entry in snapshot.entries:
        if isinstance(entry, AdjustmentEntry):
            rows.append((
                entry.created_at.date().isoformat(),
                _label(entry.adjustment_type.value),
                _money(entry.signed_amount_cents, snapshot, locale),
                f"{entry.description} ({entry.reason})",
            ))
        elif isinstance(entry, PriceChangeEntry):
            old = _money(entry.old_amount_cents, snapshot, locale)
            new = _money(entry.new_amount_cents, snapshot, locale)
            rows.append((
                entry.created_at.date().isoformat(),
                "PRICE CHANGE",
                _money(entry.difference_cents, snapshot, locale),
                f"{old} -> {new} ({entry.reason})",
            ))
    return tuple(rows)


def _summary(snapshot: LedgerSnapshot, locale: str) -> KeyValueBlock:
    rows = [
        ("Total Amount", _money(snapshot.total_amount_cents, snapshot, locale)),
        ("Adjustments", _money(snapshot.adjustment_total_cents, snapshot, locale)),
        ("Paid Amount", _money(snapshot.paid_amount_cents, snapshot, locale)),
        ("Outstanding Balance", _money(snapshot.display_outstanding_cents, snapshot, locale)),
    ]
    if snapshot.credit_cents:
        rows.append(("Credit", _money(snapshot.credit_cents, snapshot, locale)))
    rows.append(("Balance", "SETTLED" if snapshot.is_settled else "OUTSTANDING"))
    return KeyValueBlock("AMOUNT SUMMARY", tuple(rows))


def build_layout(
    snapshot: LedgerSnapshot,
    request: DocumentRequest,
    business_name: str,
    issued_on: date,
    locale: str,
) -> DocumentLayout:
    """Arrange a snapshot into the blocks of one document."""
    title, status_label = _TITLES[request.document_type]

    blocks: list[Block] = [
        KeyValueBlock("BILL TO", (
            ("Guest", _or_na(snapshot.guest_name)),
            ("Guest ID", _or_na(snapshot.guest_id)),
        )),
        KeyValueBlock("RESERVATION DETAILS", (
            ("Property", _or_na(snapshot.property_name)),
            ("Check-in", _or_na(snapshot.check_in)),
            ("Check-out", _or_na(snapshot.check_out)),
            ("Nights", _or_na(snapshot.nights)),
            ("Booking Status", _or_na(snapshot.status.value if snapshot.status else None)),
            ("Payment Status", _label(snapshot.payment_status.value)),
        )),
    ]

    if request.include_breakdown and snapshot.entries:
        payments = _payment_rows(snapshot, locale)
        if payments:
            blocks.append(TableBlock(
                "PAYMENT BREAKDOWN",
                ("DATE", "METHOD", "REFERENCE", "AMOUNT", "DESCRIPTION"),
                payments,
                right_aligned=frozenset({3}),
            ))
        adjustments = _adjustment_rows(snapshot, locale)
        if adjustments:
            blocks.append(TableBlock(
                "ADJUSTMENTS",
                ("DATE", "TYPE", "AMOUNT", "REASON"),
                adjustments,
                right_aligned=frozenset({2}),
            ))

    blocks.append(_summary(snapshot, locale))

    notes = (request.notes or "").strip()
    if notes:
        blocks.append(TextBlock("ADDITIONAL NOTES", tuple(notes.splitlines())))

    blocks.append(TextBlock(None, (_CLOSING[request.document_type],)))

    return DocumentLayout(
        business_name=business_name,
        title=title,
        status_label=status_label,
        issued_on=issued_on,
        reference_rows=(
            ("Reservation ID", str(snapshot.reservation_id)),
            ("Date", issued_on.isoformat()),
        ),
        blocks=tuple(blocks),
    )
