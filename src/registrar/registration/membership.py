"""Membership aggregate and the "is this person a member" lookup used by pricing.

A membership is created in PENDING_PAYMENT with its order. Once paid it
becomes ACTIVE, unless the tier requires manual validation, in which case
it waits in PENDING_PAYMENT for an administrator.
"""

import calendar
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from registrar.domain import registrar
from registrar.pricing.rules import as_utc


class MembershipStatus(Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


@registrar.event(part_of="Membership")
class MembershipActivated:
    __version__ = 1

    membership_id = Identifier(required=True)
    person_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    member_number = String(required=True)
    valid_to = DateTime(required=True)
    activated_at = DateTime(required=True)


def add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@registrar.aggregate
class Membership:
    organizer_id = Identifier(required=True)
    tier_id = Identifier(required=True)
    person_id = Identifier(required=True)
    order_id = Identifier()
    status = String(choices=MembershipStatus, default=MembershipStatus.PENDING_PAYMENT.value)
    member_number = String(max_length=50)
    valid_from = DateTime()
    valid_to = DateTime()
    paid_at = DateTime()
    approved_at = DateTime()
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime()

    def settle(self, member_number: str, validity_months: int, validation_required: bool, paid_at: datetime) -> None:
        """Record payment; tier policy decides whether it goes live."""
        if self.status != MembershipStatus.PENDING_PAYMENT.value:
            raise ValidationError({"status": [f"Cannot settle a {self.status} membership"]})
        self.member_number = self.member_number or member_number
        self.paid_at = paid_at
        self.valid_from = paid_at
        self.valid_to = add_months(paid_at, validity_months)
        self.updated_at = paid_at
        if not validation_required:
            self._go_live(paid_at)

    def approve(self, at: datetime | None = None) -> None:
        if self.status != MembershipStatus.PENDING_PAYMENT.value or self.paid_at is None:
            raise ValidationError({"status": ["Only paid memberships awaiting validation can be approved"]})
        self.approved_at = at or datetime.now(UTC)
        self._go_live(self.approved_at)

    def _go_live(self, at: datetime) -> None:
        self.status = MembershipStatus.ACTIVE.value
        self.updated_at = at
        self.raise_(
            MembershipActivated(
                membership_id=str(self.id),
                person_id=str(self.person_id),
                organizer_id=str(self.organizer_id),
                member_number=self.member_number,
                valid_to=self.valid_to,
                activated_at=at,
            )
        )

    def cancel(self) -> None:
        self.status = MembershipStatus.CANCELLED.value
        self.updated_at = datetime.now(UTC)

    def is_current(self, now: datetime) -> bool:
        return (
            self.status == MembershipStatus.ACTIVE.value
            and self.valid_to is not None
            and as_utc(self.valid_to) > as_utc(now)
        )


def is_member(person_id, organizer_id, now: datetime) -> bool:
    memberships = (
        current_domain.repository_for(Membership)
        ._dao.query.filter(person_id=str(person_id), organizer_id=str(organizer_id))
        .all()
        .items
    )
    return any(membership.is_current(now) for membership in memberships)
