"""Event registration: seats for one event on an EVENT order."""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from registrar.catalogue.catalogue import Event
from registrar.catalogue.person import Person
from registrar.checkout.quote import pricing_context
from registrar.domain import registrar
from registrar.errors import ConflictError
from registrar.order.order import Order, OrderType
from registrar.organizer.organizer import Organizer
from registrar.pricing.cart import CartItem, ItemKind
from registrar.pricing.engine import calculate_pricing
from registrar.pricing.rules import as_utc
from registrar.registration.event_registration import EventRegistration, EventRegistrationStatus

logger = structlog.get_logger(__name__)


@registrar.command(part_of="Order")
class RegisterForEvent:
    person_id = Identifier(required=True)
    event_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1, max_value=20)
    as_of = DateTime()  # Optional: defaults to now


def _check_sales_window(event: Event, now: datetime) -> None:
    if event.sales_open_at and as_utc(now) < as_utc(event.sales_open_at):
        raise ValidationError({"event_id": ["Ticket sales have not opened yet"]})
    if event.sales_close_at and as_utc(now) > as_utc(event.sales_close_at):
        raise ValidationError({"event_id": ["Ticket sales have closed"]})


@registrar.command_handler(part_of=Order)
class EventCheckoutHandler:
    @handle(RegisterForEvent)
    def register(self, command):
        now = command.as_of or datetime.now(UTC)
        quantity = command.quantity or 1
        current_domain.repository_for(Person).get(command.person_id)
        event = current_domain.repository_for(Event).get(command.event_id)
        _check_sales_window(event, now)

        registration_repo = current_domain.repository_for(EventRegistration)
        live = [
            registration
            for registration in registration_repo._dao.query.filter(event_id=str(event.id)).all().items
            if registration.status != EventRegistrationStatus.CANCELLED.value
        ]
        if any(str(registration.person_id) == str(command.person_id) for registration in live):
            raise ValidationError({"event_id": ["Already registered for this event"]})
        if event.capacity is not None and sum(r.quantity for r in live) + quantity > event.capacity:
            raise ConflictError({"quantity": ["Not enough seats left"]})

        organizer = current_domain.repository_for(Organizer).get(event.organizer_id)
        context = pricing_context(organizer, command.person_id, now)
        item = CartItem(
            reference_id=str(event.id),
            organizer_id=str(event.organizer_id),
            kind=ItemKind.EVENT.value,
            price_single_cents=event.price_for(context.is_member),
            quantity=quantity,
            description=event.title,
        )
        snapshot = calculate_pricing([item], [], context)

        order = Order.draft(
            organizer_id=organizer.id,
            purchaser_id=command.person_id,
            order_type=OrderType.EVENT.value,
            snapshot=snapshot,
            event_id=event.id,
        )
        registration = EventRegistration(
            organizer_id=organizer.id,
            event_id=event.id,
            person_id=command.person_id,
            order_id=order.id,
            quantity=quantity,
        )
        current_domain.repository_for(Order).add(order)
        registration_repo.add(registration)

        logger.info("Event registration drafted", order_id=str(order.id), event_id=str(event.id), quantity=quantity)
        return {"order_id": str(order.id), "event_registration_id": str(registration.id)}
