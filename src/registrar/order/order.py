"""Order aggregate: a priced cart and its payment lifecycle.

The pricing snapshot is captured when the order is drafted and is never
recomputed; the monetary columns mirror it for querying.

State Machine:
    DRAFT → PENDING_PAYMENT → PAID → CANCELLED | REFUNDED
    DRAFT → PAID            (provider confirms without a pending step)
    DRAFT | PENDING_PAYMENT → CANCELLED
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from registrar.domain import registrar
from registrar.order.events import (
    OrderAwaitingPayment,
    OrderCancelled,
    OrderDrafted,
    OrderPaid,
    OrderRefunded,
)
from registrar.pricing.engine import PricingSnapshot
from registrar.settings import CURRENCY


class OrderStatus(Enum):
    DRAFT = "DRAFT"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class OrderType(Enum):
    COURSE_PERIOD = "COURSE_PERIOD"
    EVENT = "EVENT"
    MEMBERSHIP = "MEMBERSHIP"


_VALID_TRANSITIONS = {
    OrderStatus.DRAFT: {OrderStatus.PENDING_PAYMENT, OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}


@registrar.aggregate
class Order:
    organizer_id = Identifier(required=True)
    purchaser_id = Identifier(required=True)
    order_type = String(required=True, choices=OrderType)
    status = String(choices=OrderStatus, default=OrderStatus.DRAFT.value)
    period_id = Identifier()
    event_id = Identifier()
    currency = String(max_length=3, default=CURRENCY)
    subtotal_cents = Integer(default=0, min_value=0)
    discount_cents = Integer(default=0, min_value=0)
    subtotal_after_discount_cents = Integer(default=0, min_value=0)
    mva_rate = String(max_length=10, default="0")
    mva_cents = Integer(default=0, min_value=0)
    total_cents = Integer(default=0, min_value=0)
    pricing_snapshot = Text(required=True)
    order_number = String(max_length=50)
    provider_session_ref = String(max_length=255)
    provider_ref = String(max_length=255)
    paid_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    refunded_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def totals_add_up(self):
        if self.discount_cents > self.subtotal_cents:
            raise ValidationError({"discount_cents": ["Discount cannot exceed the subtotal"]})
        if self.subtotal_after_discount_cents != self.subtotal_cents - self.discount_cents:
            raise ValidationError({"subtotal_after_discount_cents": ["Must equal subtotal minus discount"]})
        if self.total_cents != self.subtotal_after_discount_cents + self.mva_cents:
            raise ValidationError({"total_cents": ["Must equal discounted subtotal plus MVA"]})

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @classmethod
    def draft(cls, organizer_id, purchaser_id, order_type, snapshot: PricingSnapshot, period_id=None, event_id=None):
        now = datetime.now(UTC)
        order = cls(
            organizer_id=organizer_id,
            purchaser_id=purchaser_id,
            order_type=order_type,
            period_id=period_id,
            event_id=event_id,
            subtotal_cents=snapshot.subtotal_cents,
            discount_cents=snapshot.discount_cents,
            subtotal_after_discount_cents=snapshot.subtotal_after_discount_cents,
            mva_rate=snapshot.to_dict()["mvaRate"],
            mva_cents=snapshot.mva_cents,
            total_cents=snapshot.total_cents,
            pricing_snapshot=snapshot.to_json(),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderDrafted(
                order_id=str(order.id),
                organizer_id=str(organizer_id),
                purchaser_id=str(purchaser_id),
                order_type=order_type,
                total_cents=snapshot.total_cents,
                drafted_at=now,
            )
        )
        return order

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID.value

    @property
    def snapshot(self) -> PricingSnapshot:
        return PricingSnapshot.from_json(self.pricing_snapshot)

    @property
    def rate(self) -> Decimal:
        return Decimal(self.mva_rate or "0")

    def submit_for_payment(self, provider_session_ref: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.PENDING_PAYMENT)
        now = datetime.now(UTC)
        self.status = OrderStatus.PENDING_PAYMENT.value
        self.provider_session_ref = provider_session_ref
        self.updated_at = now
        self.raise_(
            OrderAwaitingPayment(
                order_id=str(self.id),
                provider_session_ref=provider_session_ref,
                submitted_at=now,
            )
        )

    def mark_paid(self, order_number: str, provider_ref: str | None, paid_at: datetime | None = None) -> None:
        self._assert_can_transition(OrderStatus.PAID)
        if self.order_number:
            raise ValidationError({"order_number": ["Order number is already assigned"]})

        now = paid_at or datetime.now(UTC)
        self.status = OrderStatus.PAID.value
        self.order_number = order_number
        self.provider_ref = provider_ref
        self.paid_at = now
        self.updated_at = now
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                organizer_id=str(self.organizer_id),
                purchaser_id=str(self.purchaser_id),
                order_type=self.order_type,
                order_number=order_number,
                total_cents=self.total_cents,
                currency=self.currency,
                provider_ref=provider_ref,
                paid_at=now,
            )
        )

    def cancel(self, reason: str | None = None) -> None:
        was_paid = self.is_paid
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                organizer_id=str(self.organizer_id),
                purchaser_id=str(self.purchaser_id),
                reason=reason,
                was_paid=was_paid,
                cancelled_at=now,
            )
        )

    def refund(self, refunded_cents: int, reason: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.REFUNDED)
        now = datetime.now(UTC)
        self.status = OrderStatus.REFUNDED.value
        self.cancellation_reason = reason
        self.refunded_at = now
        self.updated_at = now
        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                organizer_id=str(self.organizer_id),
                purchaser_id=str(self.purchaser_id),
                reason=reason,
                refunded_cents=refunded_cents,
                refunded_at=now,
            )
        )
