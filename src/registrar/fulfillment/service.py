"""Fulfillment: turns a paid order into entitlements and an invoice.

Runs inside the caller's unit of work; nothing is visible until it
commits, and any exception rolls every step back. A second call for the
same order finds it PAID and returns without touching anything.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from registrar.catalogue.catalogue import MembershipTier
from registrar.errors import ConflictError
from registrar.invoice.invoice import Invoice
from registrar.order.order import Order, OrderStatus, OrderType
from registrar.organizer.ledger import (
    Counter,
    NumberLedger,
    format_invoice_number,
    format_member_number,
    format_order_number,
)
from registrar.organizer.organizer import Organizer
from registrar.payment.payment import Payment
from registrar.registration.event_registration import EventRegistration, EventRegistrationStatus
from registrar.registration.membership import Membership
from registrar.registration.registration import Registration, RegistrationStatus
from registrar.settings import INVOICE_DUE_DAYS
from registrar.ticket.ticket import (
    EventTicket,
    Ticket,
    TicketStatus,
    event_tickets_for,
    generate_qr_token,
    period_ticket_for,
)

logger = structlog.get_logger(__name__)

_FULFILLABLE = {OrderStatus.DRAFT.value, OrderStatus.PENDING_PAYMENT.value}


@dataclass(frozen=True)
class FulfillmentResult:
    order_id: str
    fulfilled: bool
    order_number: str | None = None
    invoice_number: str | None = None


def _children(aggregate_cls, order_id):
    return current_domain.repository_for(aggregate_cls)._dao.query.filter(order_id=str(order_id)).all().items


def _fulfill_course_period(order: Order, ledger: NumberLedger, now: datetime) -> None:
    registration_repo = current_domain.repository_for(Registration)
    ticket_repo = current_domain.repository_for(Ticket)
    seen: set[tuple[str, str]] = set()

    for registration in _children(Registration, order.id):
        if registration.status == RegistrationStatus.CANCELLED.value:
            logger.warning("Skipping cancelled registration on paid order", registration_id=str(registration.id))
            continue
        registration.activate()
        registration_repo.add(registration)

        key = (str(registration.period_id), str(registration.person_id))
        if key in seen:
            continue
        seen.add(key)

        ticket = period_ticket_for(*key)
        if ticket is None:
            ticket_repo.add(Ticket.issue(order.organizer_id, key[0], key[1], order.id))
        elif ticket.status == TicketStatus.VOID.value:
            ticket.reinstate(order.id)
            ticket_repo.add(ticket)


def _fulfill_event(order: Order, ledger: NumberLedger, now: datetime) -> None:
    registration_repo = current_domain.repository_for(EventRegistration)
    ticket_repo = current_domain.repository_for(EventTicket)

    for registration in _children(EventRegistration, order.id):
        if registration.status == EventRegistrationStatus.CANCELLED.value:
            logger.warning("Skipping cancelled event registration", registration_id=str(registration.id))
            continue
        registration.activate()
        registration_repo.add(registration)

        # Only the seats that have no ticket yet
        existing = len(event_tickets_for(registration.id))
        for seat in range(existing + 1, registration.quantity + 1):
            ticket_repo.add(
                EventTicket(
                    organizer_id=order.organizer_id,
                    event_id=registration.event_id,
                    event_registration_id=registration.id,
                    person_id=registration.person_id,
                    order_id=order.id,
                    seat_number=seat,
                    qr_token=generate_qr_token("EVENT", registration.event_id, registration.person_id),
                )
            )


def _fulfill_membership(order: Order, ledger: NumberLedger, now: datetime) -> None:
    membership_repo = current_domain.repository_for(Membership)
    tier_repo = current_domain.repository_for(MembershipTier)

    for membership in _children(Membership, order.id):
        tier = tier_repo.get(membership.tier_id)
        member_number = membership.member_number or format_member_number(now.year, ledger.allocate(Counter.MEMBER))
        membership.settle(
            member_number=member_number,
            validity_months=tier.validity_months,
            validation_required=bool(tier.validation_required),
            paid_at=now,
        )
        membership_repo.add(membership)


_BRANCHES = {
    OrderType.COURSE_PERIOD.value: _fulfill_course_period,
    OrderType.EVENT.value: _fulfill_event,
    OrderType.MEMBERSHIP.value: _fulfill_membership,
}


def fulfill_order(order_id, provider_ref: str | None, paid_at: datetime | None = None) -> FulfillmentResult:
    """Mark an order paid and issue everything it bought, exactly once."""
    order_repo = current_domain.repository_for(Order)
    order = order_repo.get(order_id)

    if order.is_paid:
        logger.info("Order already paid, nothing to fulfill", order_id=str(order.id))
        return FulfillmentResult(order_id=str(order.id), fulfilled=False, order_number=order.order_number)

    if order.status not in _FULFILLABLE:
        raise ConflictError({"status": [f"Order in status {order.status} cannot be fulfilled"]})

    now = paid_at or datetime.now(UTC)
    organizer = current_domain.repository_for(Organizer).get(order.organizer_id)
    ledger_repo = current_domain.repository_for(NumberLedger)
    ledger = ledger_repo.get(organizer.ledger_id)

    order_number = format_order_number(organizer.invoice_prefix, ledger.allocate(Counter.ORDER))
    invoice_number = format_invoice_number(organizer.invoice_prefix, ledger.allocate(Counter.INVOICE))

    payment = Payment.record(order, provider_ref, now)
    order.mark_paid(order_number, provider_ref, now)

    invoice = Invoice.issue_for(order, invoice_number, INVOICE_DUE_DAYS, now)
    invoice.mark_paid(order.total_cents, now)

    _BRANCHES[order.order_type](order, ledger, now)

    ledger_repo.add(ledger)
    current_domain.repository_for(Payment).add(payment)
    current_domain.repository_for(Invoice).add(invoice)
    order_repo.add(order)

    logger.info(
        "Order fulfilled",
        order_id=str(order.id),
        order_type=order.order_type,
        order_number=order_number,
        invoice_number=invoice_number,
    )
    return FulfillmentResult(
        order_id=str(order.id),
        fulfilled=True,
        order_number=order_number,
        invoice_number=invoice_number,
    )
