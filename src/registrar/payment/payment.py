"""Payment records and processed-webhook receipts."""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String

from registrar.domain import registrar
from registrar.settings import PAYMENT_PROVIDER


class PaymentStatus(Enum):
    SUCCEEDED = "SUCCEEDED"
    REFUNDED = "REFUNDED"


@registrar.aggregate
class Payment:
    organizer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider = String(max_length=50, default=PAYMENT_PROVIDER)
    provider_ref = String(max_length=255)
    amount_cents = Integer(required=True, min_value=0)
    refunded_cents = Integer(default=0, min_value=0)
    currency = String(max_length=3, required=True)
    status = String(choices=PaymentStatus, default=PaymentStatus.SUCCEEDED.value)
    received_at = DateTime(required=True)
    updated_at = DateTime()

    @classmethod
    def record(cls, order, provider_ref: str | None, received_at: datetime):
        return cls(
            organizer_id=order.organizer_id,
            order_id=order.id,
            provider_ref=provider_ref,
            amount_cents=order.total_cents,
            currency=order.currency,
            received_at=received_at,
            updated_at=received_at,
        )

    def record_refund(self, amount_cents: int) -> None:
        self.refunded_cents = min(self.amount_cents, (self.refunded_cents or 0) + amount_cents)
        if self.refunded_cents == self.amount_cents:
            self.status = PaymentStatus.REFUNDED.value
        self.updated_at = datetime.now(UTC)


@registrar.aggregate
class WebhookReceipt:
    """Provider event ids already handled. The id is the provider's event id."""

    event_id = Identifier(identifier=True)
    order_id = Identifier()
    outcome = String(max_length=50)
    received_at = DateTime(default=lambda: datetime.now(UTC))
