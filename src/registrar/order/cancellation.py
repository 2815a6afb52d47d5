"""Cancelling and refunding orders.

A paid order is never reversed: a CreditNote supersedes its invoice and
the entitlements it produced are released.
"""

from decimal import Decimal

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from registrar.access import get_gate, load_owned
from registrar.domain import registrar
from registrar.errors import ConflictError
from registrar.invoice.invoice import CreditNote, Invoice, invoice_for_order
from registrar.order.order import Order, OrderStatus
from registrar.organizer.ledger import Counter, NumberLedger, format_credit_note_number
from registrar.organizer.organizer import Organizer
from registrar.payment.payment import Payment
from registrar.pricing.money import percent_of
from registrar.registration.event_registration import EventRegistration
from registrar.registration.membership import Membership
from registrar.registration.registration import Registration, RegistrationStatus
from registrar.ticket.ticket import EventTicket, Ticket, TicketStatus

logger = structlog.get_logger(__name__)


@registrar.command(part_of="Order")
class CancelOrder:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@registrar.command(part_of="Order")
class RefundOrder:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    refund_percent = Integer(default=100, min_value=1, max_value=100)
    reason = String(max_length=500)


@registrar.command(part_of="Order")
class AbandonOrder:
    """The purchaser walks away from an unpaid checkout."""

    order_id = Identifier(required=True)
    person_id = Identifier(required=True)


def _order_of_organizer(order_id, organizer_id) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.organizer_id) != str(organizer_id):
        raise ObjectNotFoundError(f"Order with id {order_id} does not exist")
    return order


def _children(aggregate_cls, order_id):
    return current_domain.repository_for(aggregate_cls)._dao.query.filter(order_id=str(order_id)).all().items


def _issue_credit_note(order: Order, amount_cents: int, reason: str | None) -> CreditNote:
    invoice = invoice_for_order(order.id)
    if invoice is None:
        raise ConflictError({"invoice": [f"Paid order {order.id} has no invoice to credit"]})

    organizer = current_domain.repository_for(Organizer).get(order.organizer_id)
    ledger_repo = current_domain.repository_for(NumberLedger)
    ledger = ledger_repo.get(organizer.ledger_id)
    number = format_credit_note_number(organizer.invoice_prefix, ledger.allocate(Counter.CREDIT_NOTE))

    note = CreditNote.issue_for(invoice, number, amount_cents, reason)
    invoice.credit(number)

    ledger_repo.add(ledger)
    current_domain.repository_for(CreditNote).add(note)
    current_domain.repository_for(Invoice).add(invoice)

    for payment in _children(Payment, order.id):
        payment.record_refund(note.total_cents)
        current_domain.repository_for(Payment).add(payment)

    logger.info("Credit note issued", order_id=str(order.id), credit_note_number=number, total_cents=note.total_cents)
    return note


def _release_entitlements(order: Order) -> None:
    registration_repo = current_domain.repository_for(Registration)
    released_periods: set[tuple[str, str]] = set()
    for registration in _children(Registration, order.id):
        registration.cancel(reason="Order cancelled")
        registration_repo.add(registration)
        released_periods.add((str(registration.period_id), str(registration.person_id)))

    # A period ticket stays valid while the person still holds another seat in that period
    ticket_repo = current_domain.repository_for(Ticket)
    for period_id, person_id in released_periods:
        still_seated = [
            registration
            for registration in registration_repo._dao.query.filter(period_id=period_id, person_id=person_id)
            .all()
            .items
            if registration.status == RegistrationStatus.ACTIVE.value and str(registration.order_id) != str(order.id)
        ]
        if still_seated:
            continue
        for ticket in ticket_repo._dao.query.filter(period_id=period_id, person_id=person_id).all().items:
            if ticket.status == TicketStatus.ACTIVE.value:
                ticket.void()
                ticket_repo.add(ticket)

    event_registration_repo = current_domain.repository_for(EventRegistration)
    for registration in _children(EventRegistration, order.id):
        registration.cancel()
        event_registration_repo.add(registration)

    event_ticket_repo = current_domain.repository_for(EventTicket)
    for ticket in _children(EventTicket, order.id):
        ticket.void()
        event_ticket_repo.add(ticket)

    membership_repo = current_domain.repository_for(Membership)
    for membership in _children(Membership, order.id):
        membership.cancel()
        membership_repo.add(membership)


@registrar.command_handler(part_of=Order)
class OrderCancellationHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)
        order = _order_of_organizer(command.order_id, command.organizer_id)

        if order.status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value):
            raise ConflictError({"status": [f"Order is already {order.status}"]})

        was_paid = order.is_paid
        order.cancel(command.reason)
        if was_paid:
            _issue_credit_note(order, order.subtotal_after_discount_cents, command.reason)
        _release_entitlements(order)
        current_domain.repository_for(Order).add(order)

        logger.info("Order cancelled", order_id=str(order.id), was_paid=was_paid)

    @handle(RefundOrder)
    def refund_order(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)
        order = _order_of_organizer(command.order_id, command.organizer_id)

        if not order.is_paid:
            raise ConflictError({"status": [f"Only paid orders can be refunded, order is {order.status}"]})

        amount = percent_of(order.subtotal_after_discount_cents, Decimal(command.refund_percent or 100))
        note = _issue_credit_note(order, amount, command.reason)
        order.refund(note.total_cents, command.reason)
        _release_entitlements(order)
        current_domain.repository_for(Order).add(order)

        logger.info("Order refunded", order_id=str(order.id), refunded_cents=note.total_cents)
        return note.credit_note_number

    @handle(AbandonOrder)
    def abandon_order(self, command):
        order = load_owned(Order, command.order_id, command.person_id, owner_field="purchaser_id")

        if order.status not in (OrderStatus.DRAFT.value, OrderStatus.PENDING_PAYMENT.value):
            raise ConflictError({"status": [f"Order in status {order.status} cannot be abandoned"]})

        order.cancel("Checkout abandoned")
        _release_entitlements(order)
        current_domain.repository_for(Order).add(order)
