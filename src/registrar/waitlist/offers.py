"""Waitlist offers: promote, expire, accept and decline.

``ExpireOffers`` is meant to be triggered from outside (cron, admin
action); nothing in-process schedules it. ``AcceptOffer`` checks the
deadline itself and rejects an offer that lapsed before the sweep ran; the
sweep alone moves entries to EXPIRED.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from registrar.access import get_gate, load_owned
from registrar.catalogue.catalogue import CourseTrack
from registrar.checkout.quote import quote_course_items, track_item
from registrar.domain import registrar
from registrar.errors import ConflictError
from registrar.order.order import Order, OrderType
from registrar.organizer.organizer import Organizer
from registrar.registration.registration import ChosenRole, Registration, RegistrationStatus
from registrar.settings import OFFER_HOURS
from registrar.waitlist.entry import WaitlistEntry, WaitlistStatus, entry_for_registration

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OfferDecision:
    outcome: str  # "accepted" or "declined"
    registration_id: str
    order_id: str | None = None


@registrar.command(part_of="WaitlistEntry")
class PromoteToOffered:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    registration_id = Identifier(required=True)
    hours_valid = Integer(default=OFFER_HOURS, min_value=1)
    as_of = DateTime()  # Optional: defaults to now


@registrar.command(part_of="WaitlistEntry")
class ExpireOffers:
    as_of = DateTime()  # Optional: defaults to now


@registrar.command(part_of="WaitlistEntry")
class AcceptOffer:
    registration_id = Identifier(required=True)
    person_id = Identifier(required=True)
    as_of = DateTime()  # Optional: defaults to now


@registrar.command(part_of="WaitlistEntry")
class DeclineOffer:
    registration_id = Identifier(required=True)
    person_id = Identifier(required=True)
    as_of = DateTime()  # Optional: defaults to now


def _pricing_role(registration: Registration) -> str:
    # TODO: ask for a concrete role when an ANY registrant accepts; priced as LEADER until then
    if registration.chosen_role in (None, ChosenRole.ANY.value):
        logger.warning("Pricing ANY role as LEADER", registration_id=str(registration.id))
        return ChosenRole.LEADER.value
    return registration.chosen_role


@registrar.command_handler(part_of=WaitlistEntry)
class WaitlistOfferHandler:
    @handle(PromoteToOffered)
    def promote(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)
        now = command.as_of or datetime.now(UTC)

        registration = current_domain.repository_for(Registration).get(command.registration_id)
        if str(registration.organizer_id) != str(command.organizer_id):
            raise ObjectNotFoundError(f"Registration with id {command.registration_id} does not exist")

        entry = entry_for_registration(registration.id)
        if entry is None:
            if registration.status != RegistrationStatus.WAITLIST.value:
                raise ConflictError({"status": ["Registration is not on the waitlist"]})
            entry = WaitlistEntry.join(registration, now)

        entry.offer(command.hours_valid or OFFER_HOURS, now)
        current_domain.repository_for(WaitlistEntry).add(entry)

        logger.info(
            "Waitlist offer extended",
            registration_id=str(registration.id),
            offered_until=entry.offered_until.isoformat(),
            offer_count=entry.offer_count,
        )
        return str(entry.id)

    @handle(ExpireOffers)
    def expire_offers(self, command):
        now = command.as_of or datetime.now(UTC)
        repo = current_domain.repository_for(WaitlistEntry)
        offered = repo._dao.query.filter(status=WaitlistStatus.OFFERED.value).all().items

        expired_count = 0
        for entry in offered:
            try:
                if entry.expire(now):
                    repo.add(entry)
                    expired_count += 1
            except (ValidationError, InvalidOperationError) as exc:
                logger.warning("Failed to expire offer", entry_id=str(entry.id), error=str(exc))

        logger.info("Offer expiry sweep complete", expired_count=expired_count, as_of=now.isoformat())
        return expired_count

    @handle(AcceptOffer)
    def accept(self, command):
        now = command.as_of or datetime.now(UTC)
        registration = load_owned(Registration, command.registration_id, command.person_id)

        entry = entry_for_registration(registration.id)
        if entry is None:
            raise ConflictError({"status": ["There is no offer for this registration"]})

        if entry.status == WaitlistStatus.EXPIRED.value or (
            entry.status == WaitlistStatus.OFFERED.value and entry.is_past_deadline(now)
        ):
            logger.info("Offer lapsed before acceptance", registration_id=str(registration.id))
            raise ConflictError({"offered_until": ["The offer has expired"]})

        entry.accept(now)

        track = current_domain.repository_for(CourseTrack).get(registration.track_id)
        organizer = current_domain.repository_for(Organizer).get(registration.organizer_id)
        item = track_item(track, _pricing_role(registration), has_partner=False)
        snapshot = quote_course_items(organizer, registration.period_id, registration.person_id, [item], now)

        order = Order.draft(
            organizer_id=organizer.id,
            purchaser_id=registration.person_id,
            order_type=OrderType.COURSE_PERIOD.value,
            snapshot=snapshot,
            period_id=registration.period_id,
        )
        registration.attach_order(order.id)
        entry.link_order(order.id)

        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(Registration).add(registration)
        current_domain.repository_for(WaitlistEntry).add(entry)

        logger.info("Waitlist offer accepted", registration_id=str(registration.id), order_id=str(order.id))
        return OfferDecision(outcome="accepted", registration_id=str(registration.id), order_id=str(order.id))

    @handle(DeclineOffer)
    def decline(self, command):
        now = command.as_of or datetime.now(UTC)
        registration = load_owned(Registration, command.registration_id, command.person_id)

        entry = entry_for_registration(registration.id)
        if entry is None:
            raise ConflictError({"status": ["There is no waitlist entry for this registration"]})

        entry.remove(now)
        registration.cancel(reason="Declined waitlist offer")

        current_domain.repository_for(WaitlistEntry).add(entry)
        current_domain.repository_for(Registration).add(registration)
        logger.info("Waitlist offer declined", registration_id=str(registration.id))
        return OfferDecision(outcome="declined", registration_id=str(registration.id))
