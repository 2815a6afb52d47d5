"""Domain events for invoices and credit notes."""

from protean.fields import DateTime, Identifier, Integer, String

from registrar.domain import registrar


@registrar.event(part_of="Invoice")
class InvoiceIssued:
    __version__ = 1

    invoice_id = Identifier(required=True)
    order_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    invoice_number = String(required=True)
    total_cents = Integer(required=True)
    issued_at = DateTime(required=True)


@registrar.event(part_of="Invoice")
class InvoicePaid:
    __version__ = 1

    invoice_id = Identifier(required=True)
    order_id = Identifier(required=True)
    paid_amount_cents = Integer(required=True)
    paid_at = DateTime(required=True)


@registrar.event(part_of="Invoice")
class InvoiceCredited:
    __version__ = 1

    invoice_id = Identifier(required=True)
    order_id = Identifier(required=True)
    credit_note_number = String(required=True)
    credited_at = DateTime(required=True)


@registrar.event(part_of="CreditNote")
class CreditNoteIssued:
    __version__ = 1

    credit_note_id = Identifier(required=True)
    invoice_id = Identifier(required=True)
    order_id = Identifier(required=True)
    credit_note_number = String(required=True)
    total_cents = Integer(required=True)
    issued_at = DateTime(required=True)
