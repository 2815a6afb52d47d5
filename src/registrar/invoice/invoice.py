"""Invoice and CreditNote aggregates.

An invoice is issued once per paid order and is never edited afterwards.
Refunds and paid cancellations do not touch its amounts; they issue a
CreditNote and move the invoice to CREDITED.

State Machine:
    SENT → PAID → CREDITED
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from registrar.domain import registrar
from registrar.invoice.events import CreditNoteIssued, InvoiceCredited, InvoiceIssued, InvoicePaid
from registrar.pricing.money import percent_of


class InvoiceStatus(Enum):
    SENT = "SENT"
    PAID = "PAID"
    CREDITED = "CREDITED"


_VALID_TRANSITIONS = {
    InvoiceStatus.SENT: {InvoiceStatus.PAID},
    InvoiceStatus.PAID: {InvoiceStatus.CREDITED},
    InvoiceStatus.CREDITED: set(),
}


@registrar.entity(part_of="Invoice")
class InvoiceLineItem:
    description = String(required=True, max_length=500)
    quantity = Integer(required=True, min_value=1)
    base_cents = Integer(required=True, min_value=0)
    discount_cents = Integer(default=0, min_value=0)
    total_cents = Integer(required=True, min_value=0)


@registrar.aggregate
class Invoice:
    organizer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    purchaser_id = Identifier(required=True)
    invoice_number = String(required=True, max_length=50)
    line_items = HasMany(InvoiceLineItem)
    subtotal_cents = Integer(default=0, min_value=0)
    discount_cents = Integer(default=0, min_value=0)
    mva_rate = String(max_length=10, default="0")
    mva_cents = Integer(default=0, min_value=0)
    total_cents = Integer(default=0, min_value=0)
    currency = String(max_length=3, required=True)
    status = String(choices=InvoiceStatus, default=InvoiceStatus.SENT.value)
    invoice_date = DateTime(required=True)
    due_date = DateTime(required=True)
    paid_at = DateTime()
    paid_amount_cents = Integer(min_value=0)
    credited_at = DateTime()

    def _assert_can_transition(self, target_status: InvoiceStatus) -> None:
        current = InvoiceStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @classmethod
    def issue_for(cls, order, invoice_number: str, due_days: int, issued_at: datetime | None = None):
        """Invoice a paid order from its pricing snapshot.

        ``subtotal_cents`` on the invoice is the discounted subtotal; the
        discount is carried separately for display.
        """
        now = issued_at or datetime.now(UTC)
        snapshot = order.snapshot
        invoice = cls(
            organizer_id=order.organizer_id,
            order_id=order.id,
            purchaser_id=order.purchaser_id,
            invoice_number=invoice_number,
            subtotal_cents=order.subtotal_after_discount_cents,
            discount_cents=order.discount_cents,
            mva_rate=order.mva_rate,
            mva_cents=order.mva_cents,
            total_cents=order.total_cents,
            currency=order.currency,
            invoice_date=now,
            due_date=now + timedelta(days=due_days),
        )
        for line in snapshot.lines:
            invoice.add_line_items(
                InvoiceLineItem(
                    description=line.description or str(line.reference_id),
                    quantity=line.quantity,
                    base_cents=line.base_cents,
                    discount_cents=line.discount_cents,
                    total_cents=line.final_cents,
                )
            )

        invoice.raise_(
            InvoiceIssued(
                invoice_id=str(invoice.id),
                order_id=str(order.id),
                organizer_id=str(order.organizer_id),
                invoice_number=invoice_number,
                total_cents=invoice.total_cents,
                issued_at=now,
            )
        )
        return invoice

    @property
    def rate(self) -> Decimal:
        return Decimal(self.mva_rate or "0")

    def mark_paid(self, amount_cents: int, paid_at: datetime | None = None) -> None:
        self._assert_can_transition(InvoiceStatus.PAID)
        now = paid_at or datetime.now(UTC)
        self.status = InvoiceStatus.PAID.value
        self.paid_at = now
        self.paid_amount_cents = amount_cents
        self.raise_(
            InvoicePaid(
                invoice_id=str(self.id),
                order_id=str(self.order_id),
                paid_amount_cents=amount_cents,
                paid_at=now,
            )
        )

    def credit(self, credit_note_number: str) -> None:
        self._assert_can_transition(InvoiceStatus.CREDITED)
        now = datetime.now(UTC)
        self.status = InvoiceStatus.CREDITED.value
        self.credited_at = now
        self.raise_(
            InvoiceCredited(
                invoice_id=str(self.id),
                order_id=str(self.order_id),
                credit_note_number=credit_note_number,
                credited_at=now,
            )
        )


@registrar.aggregate
class CreditNote:
    organizer_id = Identifier(required=True)
    invoice_id = Identifier(required=True)
    order_id = Identifier(required=True)
    credit_note_number = String(required=True, max_length=50)
    reason = Text()
    amount_cents = Integer(required=True, min_value=0)
    mva_rate = String(max_length=10, default="0")
    mva_cents = Integer(default=0, min_value=0)
    total_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, required=True)
    issued_at = DateTime(required=True)

    @classmethod
    def issue_for(cls, invoice: Invoice, credit_note_number: str, amount_cents: int, reason: str | None = None):
        """Credit ``amount_cents`` (before MVA) of ``invoice``."""
        if amount_cents > invoice.subtotal_cents:
            raise ValidationError({"amount_cents": ["Cannot credit more than was invoiced"]})

        now = datetime.now(UTC)
        mva_cents = percent_of(amount_cents, invoice.rate)
        note = cls(
            organizer_id=invoice.organizer_id,
            invoice_id=invoice.id,
            order_id=invoice.order_id,
            credit_note_number=credit_note_number,
            reason=reason,
            amount_cents=amount_cents,
            mva_rate=invoice.mva_rate,
            mva_cents=mva_cents,
            total_cents=amount_cents + mva_cents,
            currency=invoice.currency,
            issued_at=now,
        )
        note.raise_(
            CreditNoteIssued(
                credit_note_id=str(note.id),
                invoice_id=str(invoice.id),
                order_id=str(invoice.order_id),
                credit_note_number=credit_note_number,
                total_cents=note.total_cents,
                issued_at=now,
            )
        )
        return note


def invoice_for_order(order_id) -> Invoice | None:
    repo = current_domain.repository_for(Invoice)
    found = repo._dao.query.filter(order_id=str(order_id)).all().items
    return repo.get(found[0].id) if found else None
