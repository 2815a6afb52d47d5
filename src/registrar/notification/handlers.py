"""Customer notifications triggered by order and waitlist events.

Sending is best effort. A missing recipient or a failing sender is
logged; the transition that raised the event has already committed and
stays committed.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from registrar.catalogue.catalogue import CourseTrack
from registrar.catalogue.person import Person
from registrar.domain import registrar
from registrar.notification.dispatch import notify
from registrar.order.events import OrderCancelled, OrderPaid, OrderRefunded
from registrar.order.order import Order
from registrar.organizer.organizer import Organizer
from registrar.pricing.money import format_cents
from registrar.waitlist.entry import WaitlistEntry
from registrar.waitlist.events import OfferExtended

logger = structlog.get_logger(__name__)


def _load(aggregate_cls, identifier):
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        logger.warning("Notification context missing", kind=aggregate_cls.__name__, id=str(identifier))
        return None


@registrar.event_handler(part_of=Order)
class OrderNotifications:
    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        person = _load(Person, event.purchaser_id)
        organizer = _load(Organizer, event.organizer_id)
        if person is None or organizer is None:
            return
        notify(
            "order-confirmation",
            person.email,
            {
                "recipientName": person.display_name,
                "organizationName": organizer.name,
                "orderNumber": event.order_number,
                "orderType": event.order_type,
                "total": format_cents(event.total_cents, event.currency),
            },
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        person = _load(Person, event.purchaser_id)
        organizer = _load(Organizer, event.organizer_id)
        if person is None or organizer is None:
            return
        notify(
            "order-cancelled",
            person.email,
            {
                "recipientName": person.display_name,
                "organizationName": organizer.name,
                "reason": event.reason or "",
                "wasPaid": bool(event.was_paid),
            },
        )

    @handle(OrderRefunded)
    def on_order_refunded(self, event: OrderRefunded) -> None:
        person = _load(Person, event.purchaser_id)
        organizer = _load(Organizer, event.organizer_id)
        if person is None or organizer is None:
            return
        notify(
            "order-refunded",
            person.email,
            {
                "recipientName": person.display_name,
                "organizationName": organizer.name,
                "refunded": format_cents(event.refunded_cents),
            },
        )


@registrar.event_handler(part_of=WaitlistEntry)
class WaitlistNotifications:
    @handle(OfferExtended)
    def on_offer_extended(self, event: OfferExtended) -> None:
        person = _load(Person, event.person_id)
        organizer = _load(Organizer, event.organizer_id)
        track = _load(CourseTrack, event.track_id)
        if person is None or organizer is None or track is None:
            return
        notify(
            "waitlist-offer",
            person.email,
            {
                "recipientName": person.display_name,
                "organizationName": organizer.name,
                "trackName": track.title,
                "expiryDate": event.offered_until.isoformat(),
                "hoursValid": event.hours_valid,
            },
        )
