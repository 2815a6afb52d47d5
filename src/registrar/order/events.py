"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from registrar.domain import registrar


@registrar.event(part_of="Order")
class OrderDrafted:
    __version__ = 1

    order_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    purchaser_id = Identifier(required=True)
    order_type = String(required=True)
    total_cents = Integer(required=True)
    drafted_at = DateTime(required=True)


@registrar.event(part_of="Order")
class OrderAwaitingPayment:
    __version__ = 1

    order_id = Identifier(required=True)
    provider_session_ref = String()
    submitted_at = DateTime(required=True)


@registrar.event(part_of="Order")
class OrderPaid:
    """Payment confirmed and the order fulfilled."""

    __version__ = 1

    order_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    purchaser_id = Identifier(required=True)
    order_type = String(required=True)
    order_number = String(required=True)
    total_cents = Integer(required=True)
    currency = String(required=True)
    provider_ref = String()
    paid_at = DateTime(required=True)


@registrar.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    purchaser_id = Identifier(required=True)
    reason = String()
    was_paid = Boolean(default=False)
    cancelled_at = DateTime(required=True)


@registrar.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    purchaser_id = Identifier(required=True)
    reason = String()
    refunded_cents = Integer(required=True)
    refunded_at = DateTime(required=True)
