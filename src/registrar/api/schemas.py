"""Pydantic request/response schemas for the registrar API.

External contracts, kept apart from the protean commands they feed.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Organizer & catalogue
# ---------------------------------------------------------------------------
class RegisterOrganizerRequest(BaseModel):
    name: str
    invoice_prefix: str = Field(pattern=r"^[A-Z0-9]{2,10}$")
    contact_email: str | None = None
    mva_reporting_required: bool = False
    mva_rate: str = "0"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Oslo Swing Society",
                    "invoice_prefix": "OSS",
                    "contact_email": "kasse@example.org",
                    "mva_reporting_required": True,
                    "mva_rate": "25",
                }
            ]
        }
    }


class UpdateBillingRequest(BaseModel):
    invoice_prefix: str | None = Field(default=None, pattern=r"^[A-Z0-9]{2,10}$")
    mva_reporting_required: bool | None = None
    mva_rate: str | None = None


class CreatePeriodRequest(BaseModel):
    name: str
    starts_on: date | None = None
    ends_on: date | None = None


class AddTrackRequest(BaseModel):
    title: str
    price_single_cents: int = Field(ge=0)
    price_pair_cents: int | None = Field(default=None, ge=0)
    capacity: int | None = Field(default=None, ge=1)


class PublishEventRequest(BaseModel):
    title: str
    price_cents: int = Field(ge=0)
    member_price_cents: int | None = Field(default=None, ge=0)
    capacity: int | None = Field(default=None, ge=1)
    sales_open_at: datetime | None = None
    sales_close_at: datetime | None = None
    starts_at: datetime | None = None


class CreateTierRequest(BaseModel):
    name: str
    price_cents: int = Field(ge=0)
    validation_required: bool = False
    mva_enabled: bool = False
    validity_months: int = Field(default=12, ge=1)


class RegisterPersonRequest(BaseModel):
    email: str
    first_name: str
    last_name: str | None = None


class IdResponse(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Discount rules
# ---------------------------------------------------------------------------
class CreateDiscountRuleRequest(BaseModel):
    code: str
    name: str
    priority: int
    rule_type: str
    config: dict[str, Any]
    enabled: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "TWO_COURSES",
                    "name": "Two or more courses",
                    "priority": 10,
                    "rule_type": "MULTI_COURSE_TIERED",
                    "config": {"tiers": [{"min_items": 2, "percent": "15"}]},
                }
            ]
        }
    }


class UpdateDiscountRuleRequest(BaseModel):
    name: str | None = None
    priority: int | None = None
    rule_type: str | None = None
    config: dict[str, Any] | None = None


class SetRuleEnabledRequest(BaseModel):
    enabled: bool


# ---------------------------------------------------------------------------
# Checkout & orders
# ---------------------------------------------------------------------------
class CourseItem(BaseModel):
    track_id: str
    role: Literal["LEADER", "FOLLOWER", "ANY"] | None = None
    has_partner: bool = False


class CourseCheckoutRequest(BaseModel):
    items: list[CourseItem] = Field(min_length=1)


class CourseCheckoutResponse(BaseModel):
    order_id: str | None
    registration_ids: list[str]
    waitlisted_registration_ids: list[str]


class EventCheckoutRequest(BaseModel):
    event_id: str
    quantity: int = Field(default=1, ge=1, le=20)


class EventCheckoutResponse(BaseModel):
    order_id: str
    event_registration_id: str


class MembershipCheckoutRequest(BaseModel):
    tier_id: str


class MembershipCheckoutResponse(BaseModel):
    order_id: str
    membership_id: str


class SubmitOrderResponse(BaseModel):
    checkout_url: str | None
    failure_reason: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class RefundOrderRequest(BaseModel):
    refund_percent: int = Field(default=100, ge=1, le=100)
    reason: str | None = None


class RefundOrderResponse(BaseModel):
    credit_note_number: str


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class PaymentWebhookRequest(BaseModel):
    event_id: str
    order_id: str
    provider_ref: str | None = None
    status: Literal["succeeded", "failed"]
    failure_reason: str | None = None


class StatusResponse(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Waitlist
# ---------------------------------------------------------------------------
class PromoteRequest(BaseModel):
    hours_valid: int = Field(default=48, ge=1)


class ExpireOffersResponse(BaseModel):
    expired_count: int


class OfferDecisionResponse(BaseModel):
    outcome: str
    registration_id: str
    order_id: str | None = None
