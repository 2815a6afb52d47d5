"""Course cart checkout.

Tracks with free seats become DRAFT registrations on one COURSE_PERIOD
order. Full tracks put the registration on the waitlist instead.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Text
from protean.utils.globals import current_domain

from registrar.catalogue.catalogue import CourseTrack
from registrar.catalogue.person import Person
from registrar.checkout.quote import quote_course_items, track_item
from registrar.domain import registrar
from registrar.order.order import Order, OrderType
from registrar.organizer.organizer import Organizer
from registrar.pricing.engine import PricingSnapshot
from registrar.registration.registration import LIVE, SEATED, Registration
from registrar.waitlist.entry import WaitlistEntry

logger = structlog.get_logger(__name__)


@registrar.command(part_of="Order")
class CheckoutCourseCart:
    person_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{"track_id", "role", "has_partner"}]
    as_of = DateTime()  # Optional: defaults to now


def _parse_items(raw: str) -> list[dict]:
    try:
        items = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError({"items": ["Items must be a JSON list"]}) from None
    if not isinstance(items, list) or not items:
        raise ValidationError({"items": ["Cart is empty"]})

    errors: dict[str, list[str]] = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get("track_id"):
            errors.setdefault(f"items[{index}].track_id", []).append("is required")
    if errors:
        raise ValidationError(errors)

    track_ids = [str(item["track_id"]) for item in items]
    if len(set(track_ids)) != len(track_ids):
        raise ValidationError({"items": ["A track can only appear once in the cart"]})
    return items


def _load_tracks(items: list[dict]) -> list[CourseTrack]:
    track_repo = current_domain.repository_for(CourseTrack)
    tracks = [track_repo.get(item["track_id"]) for item in items]

    if len({str(track.organizer_id) for track in tracks}) > 1:
        raise ValidationError({"items": ["All items in a cart must belong to one organizer"]})
    if len({str(track.period_id) for track in tracks}) > 1:
        raise ValidationError({"items": ["All tracks must belong to one course period"]})
    return tracks


def preview_course_cart(person_id, raw_items: str, now: datetime | None = None) -> PricingSnapshot:
    """Price a course cart without reserving seats or drafting an order."""
    now = now or datetime.now(UTC)
    items = _parse_items(raw_items)
    tracks = _load_tracks(items)
    organizer = current_domain.repository_for(Organizer).get(tracks[0].organizer_id)
    cart = [track_item(track, item.get("role"), item.get("has_partner", False)) for item, track in zip(items, tracks)]
    return quote_course_items(organizer, tracks[0].period_id, person_id, cart, now)


def _live_registrations(track_id) -> list[Registration]:
    registrations = (
        current_domain.repository_for(Registration)._dao.query.filter(track_id=str(track_id)).all().items
    )
    return [registration for registration in registrations if registration.status in LIVE]


@registrar.command_handler(part_of=Order)
class CourseCheckoutHandler:
    @handle(CheckoutCourseCart)
    def checkout(self, command):
        now = command.as_of or datetime.now(UTC)
        items = _parse_items(command.items)
        current_domain.repository_for(Person).get(command.person_id)

        tracks = _load_tracks(items)

        organizer = current_domain.repository_for(Organizer).get(tracks[0].organizer_id)
        period_id = str(tracks[0].period_id)

        seated: list[Registration] = []
        waitlisted: list[Registration] = []
        cart = []
        for item, track in zip(items, tracks):
            live = _live_registrations(track.id)
            if any(str(holder.person_id) == str(command.person_id) for holder in live):
                raise ValidationError({"items": [f"Already registered for {track.title}"]})

            # Waitlisted registrations hold no seat
            holders = [holder for holder in live if holder.status in SEATED]
            is_full = track.capacity is not None and len(holders) >= track.capacity
            registration = Registration.open(
                organizer_id=organizer.id,
                period_id=period_id,
                track_id=track.id,
                person_id=command.person_id,
                chosen_role=item.get("role") or "ANY",
                has_partner=bool(item.get("has_partner")),
                waitlisted=is_full,
            )
            if is_full:
                waitlisted.append(registration)
            else:
                seated.append(registration)
                cart.append(track_item(track, item.get("role"), item.get("has_partner", False)))

        order = None
        if cart:
            snapshot = quote_course_items(organizer, period_id, command.person_id, cart, now)
            order = Order.draft(
                organizer_id=organizer.id,
                purchaser_id=command.person_id,
                order_type=OrderType.COURSE_PERIOD.value,
                snapshot=snapshot,
                period_id=period_id,
            )
            for registration in seated:
                registration.attach_order(order.id)
            current_domain.repository_for(Order).add(order)

        registration_repo = current_domain.repository_for(Registration)
        entry_repo = current_domain.repository_for(WaitlistEntry)
        for registration in seated + waitlisted:
            registration_repo.add(registration)
        for registration in waitlisted:
            entry_repo.add(WaitlistEntry.join(registration, now))

        logger.info(
            "Course cart checked out",
            person_id=str(command.person_id),
            order_id=str(order.id) if order else None,
            seated=len(seated),
            waitlisted=len(waitlisted),
        )
        return {
            "order_id": str(order.id) if order else None,
            "registration_ids": [str(registration.id) for registration in seated],
            "waitlisted_registration_ids": [str(registration.id) for registration in waitlisted],
        }
