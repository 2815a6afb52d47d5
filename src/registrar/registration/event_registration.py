"""EventRegistration aggregate: seats bought for a single event."""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from registrar.domain import registrar


class EventRegistrationStatus(Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


@registrar.aggregate
class EventRegistration:
    organizer_id = Identifier(required=True)
    event_id = Identifier(required=True)
    person_id = Identifier(required=True)
    order_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    status = String(choices=EventRegistrationStatus, default=EventRegistrationStatus.PENDING_PAYMENT.value)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime()

    def activate(self) -> None:
        if self.status == EventRegistrationStatus.ACTIVE.value:
            return
        if self.status != EventRegistrationStatus.PENDING_PAYMENT.value:
            raise ValidationError({"status": [f"Cannot activate a {self.status} registration"]})
        self.status = EventRegistrationStatus.ACTIVE.value
        self.updated_at = datetime.now(UTC)

    def cancel(self) -> None:
        self.status = EventRegistrationStatus.CANCELLED.value
        self.updated_at = datetime.now(UTC)
