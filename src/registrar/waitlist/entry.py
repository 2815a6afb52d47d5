"""WaitlistEntry aggregate: a registration waiting for a seat.

State Machine:
    ON_WAITLIST → OFFERED → ACCEPTED | EXPIRED | REMOVED
    EXPIRED → OFFERED   (renewed offer)
    ON_WAITLIST | EXPIRED → REMOVED

An offer is past its deadline once ``now > offered_until``. Status alone
is not trusted for that: the expiry sweep may not have run yet.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from registrar.domain import registrar
from registrar.errors import ConflictError
from registrar.pricing.rules import as_utc
from registrar.waitlist.events import OfferAccepted, OfferExpired, OfferExtended, WaitlistEntryRemoved


class WaitlistStatus(Enum):
    ON_WAITLIST = "ON_WAITLIST"
    OFFERED = "OFFERED"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"
    REMOVED = "REMOVED"


_VALID_TRANSITIONS = {
    WaitlistStatus.ON_WAITLIST: {WaitlistStatus.OFFERED, WaitlistStatus.REMOVED},
    WaitlistStatus.OFFERED: {WaitlistStatus.ACCEPTED, WaitlistStatus.EXPIRED, WaitlistStatus.REMOVED},
    WaitlistStatus.EXPIRED: {WaitlistStatus.OFFERED, WaitlistStatus.REMOVED},
    WaitlistStatus.ACCEPTED: set(),
    WaitlistStatus.REMOVED: set(),
}


@registrar.aggregate
class WaitlistEntry:
    registration_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    period_id = Identifier(required=True)
    track_id = Identifier(required=True)
    person_id = Identifier(required=True)
    status = String(choices=WaitlistStatus, default=WaitlistStatus.ON_WAITLIST.value)
    offer_count = Integer(default=0, min_value=0)
    offered_at = DateTime()
    offered_until = DateTime()
    accepted_at = DateTime()
    expired_at = DateTime()
    removed_at = DateTime()
    order_id = Identifier()
    joined_at = DateTime()

    def _assert_can_transition(self, target_status: WaitlistStatus) -> None:
        current = WaitlistStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ConflictError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @classmethod
    def join(cls, registration, now: datetime | None = None):
        return cls(
            registration_id=registration.id,
            organizer_id=registration.organizer_id,
            period_id=registration.period_id,
            track_id=registration.track_id,
            person_id=registration.person_id,
            joined_at=now or datetime.now(UTC),
        )

    def is_past_deadline(self, now: datetime) -> bool:
        return self.offered_until is not None and as_utc(now) > as_utc(self.offered_until)

    def offer(self, hours_valid: int, now: datetime) -> None:
        if hours_valid is None or hours_valid < 1:
            raise ValidationError({"hours_valid": ["Offer must be valid for at least one hour"]})
        self._assert_can_transition(WaitlistStatus.OFFERED)

        self.status = WaitlistStatus.OFFERED.value
        self.offered_at = now
        self.offered_until = now + timedelta(hours=hours_valid)
        self.offer_count = (self.offer_count or 0) + 1
        self.raise_(
            OfferExtended(
                entry_id=str(self.id),
                registration_id=str(self.registration_id),
                organizer_id=str(self.organizer_id),
                person_id=str(self.person_id),
                track_id=str(self.track_id),
                hours_valid=hours_valid,
                offered_until=self.offered_until,
                offered_at=now,
            )
        )

    def expire(self, now: datetime) -> bool:
        """Expire a lapsed offer. Returns False, changing nothing, otherwise."""
        if self.status != WaitlistStatus.OFFERED.value or not self.is_past_deadline(now):
            return False
        self.status = WaitlistStatus.EXPIRED.value
        self.expired_at = now
        self.raise_(
            OfferExpired(
                entry_id=str(self.id),
                registration_id=str(self.registration_id),
                expired_at=now,
            )
        )
        return True

    def accept(self, now: datetime) -> None:
        self._assert_can_transition(WaitlistStatus.ACCEPTED)
        if self.is_past_deadline(now):
            raise ConflictError({"offered_until": ["The offer has expired"]})

        self.status = WaitlistStatus.ACCEPTED.value
        self.accepted_at = now
        self.raise_(
            OfferAccepted(
                entry_id=str(self.id),
                registration_id=str(self.registration_id),
                person_id=str(self.person_id),
                accepted_at=now,
            )
        )

    def link_order(self, order_id) -> None:
        self.order_id = order_id

    def remove(self, now: datetime) -> None:
        self._assert_can_transition(WaitlistStatus.REMOVED)
        self.status = WaitlistStatus.REMOVED.value
        self.removed_at = now
        self.raise_(
            WaitlistEntryRemoved(
                entry_id=str(self.id),
                registration_id=str(self.registration_id),
                removed_at=now,
            )
        )


def entry_for_registration(registration_id) -> WaitlistEntry | None:
    found = (
        current_domain.repository_for(WaitlistEntry)
        ._dao.query.filter(registration_id=str(registration_id))
        .all()
        .items
    )
    return found[0] if found else None
