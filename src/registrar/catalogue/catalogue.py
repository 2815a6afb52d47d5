"""Sellable things: course periods and tracks, events and membership tiers.

These are maintained by organizer staff and only read at pricing and
fulfillment time.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Identifier, Integer, String

from registrar.domain import registrar


@registrar.aggregate
class CoursePeriod:
    organizer_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    starts_on = Date()
    ends_on = Date()
    created_at = DateTime(default=lambda: datetime.now(UTC))


@registrar.aggregate
class CourseTrack:
    """One weekly class inside a period, priced for single or pair sign-up."""

    organizer_id = Identifier(required=True)
    period_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    price_single_cents = Integer(required=True, min_value=0)
    price_pair_cents = Integer(min_value=0)
    capacity = Integer(min_value=1)
    created_at = DateTime(default=lambda: datetime.now(UTC))


@registrar.aggregate
class Event:
    organizer_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    price_cents = Integer(required=True, min_value=0)
    member_price_cents = Integer(min_value=0)
    capacity = Integer(min_value=1)
    sales_open_at = DateTime()
    sales_close_at = DateTime()
    starts_at = DateTime()
    created_at = DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def sales_window_is_ordered(self):
        if self.sales_open_at and self.sales_close_at and self.sales_open_at >= self.sales_close_at:
            raise ValidationError({"sales_close_at": ["Sales must close after they open"]})

    def price_for(self, is_member: bool) -> int:
        if is_member and self.member_price_cents is not None:
            return self.member_price_cents
        return self.price_cents


@registrar.aggregate
class MembershipTier:
    organizer_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    price_cents = Integer(required=True, min_value=0)
    validation_required = Boolean(default=False)
    mva_enabled = Boolean(default=False)
    validity_months = Integer(default=12, min_value=1)
    created_at = DateTime(default=lambda: datetime.now(UTC))
