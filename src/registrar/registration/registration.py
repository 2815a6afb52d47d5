"""Registration aggregate: one person's seat in one course track.

State Machine:
    WAITLIST → DRAFT → PENDING_PAYMENT → ACTIVE
    DRAFT → ACTIVE
    any non-terminal → CANCELLED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from registrar.domain import registrar


class RegistrationStatus(Enum):
    WAITLIST = "WAITLIST"
    DRAFT = "DRAFT"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class ChosenRole(Enum):
    LEADER = "LEADER"
    FOLLOWER = "FOLLOWER"
    ANY = "ANY"


_VALID_TRANSITIONS = {
    RegistrationStatus.WAITLIST: {RegistrationStatus.DRAFT, RegistrationStatus.CANCELLED},
    RegistrationStatus.DRAFT: {
        RegistrationStatus.PENDING_PAYMENT,
        RegistrationStatus.ACTIVE,
        RegistrationStatus.CANCELLED,
    },
    RegistrationStatus.PENDING_PAYMENT: {RegistrationStatus.ACTIVE, RegistrationStatus.CANCELLED},
    RegistrationStatus.ACTIVE: {RegistrationStatus.CANCELLED},
    RegistrationStatus.CANCELLED: set(),
}

# Statuses that hold a seat in the track
SEATED = {
    RegistrationStatus.DRAFT.value,
    RegistrationStatus.PENDING_PAYMENT.value,
    RegistrationStatus.ACTIVE.value,
}

# Statuses that count as already registered
LIVE = SEATED | {RegistrationStatus.WAITLIST.value}


@registrar.aggregate
class Registration:
    organizer_id = Identifier(required=True)
    period_id = Identifier(required=True)
    track_id = Identifier(required=True)
    person_id = Identifier(required=True)
    order_id = Identifier()
    chosen_role = String(choices=ChosenRole, default=ChosenRole.ANY.value)
    has_partner = Boolean(default=False)
    status = String(choices=RegistrationStatus, default=RegistrationStatus.DRAFT.value)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    def _assert_can_transition(self, target_status: RegistrationStatus) -> None:
        current = RegistrationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @classmethod
    def open(cls, organizer_id, period_id, track_id, person_id, chosen_role, has_partner=False, waitlisted=False):
        now = datetime.now(UTC)
        status = RegistrationStatus.WAITLIST if waitlisted else RegistrationStatus.DRAFT
        return cls(
            organizer_id=organizer_id,
            period_id=period_id,
            track_id=track_id,
            person_id=person_id,
            chosen_role=chosen_role,
            has_partner=has_partner,
            status=status.value,
            created_at=now,
            updated_at=now,
        )

    def _move(self, target: RegistrationStatus) -> None:
        self._assert_can_transition(target)
        self.status = target.value
        self.updated_at = datetime.now(UTC)

    def attach_order(self, order_id) -> None:
        """Link the draft order that will pay for this seat."""
        if self.status == RegistrationStatus.WAITLIST.value:
            self._move(RegistrationStatus.DRAFT)
        self.order_id = order_id
        self.updated_at = datetime.now(UTC)

    def await_payment(self) -> None:
        self._move(RegistrationStatus.PENDING_PAYMENT)

    def activate(self) -> None:
        if self.status == RegistrationStatus.ACTIVE.value:
            return
        self._move(RegistrationStatus.ACTIVE)

    def cancel(self, reason: str | None = None) -> None:
        if self.status == RegistrationStatus.CANCELLED.value:
            return
        self._move(RegistrationStatus.CANCELLED)
        self.cancellation_reason = reason
