"""FastAPI routes for the registrar: back office, checkout, payments and waitlist.

Back-office routes identify the caller with ``X-Actor-Id``; self-service
routes use ``X-Person-Id``. Authentication itself happens upstream.
"""

import json
from dataclasses import asdict

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from registrar.access import get_gate
from registrar.api.schemas import (
    AddTrackRequest,
    CancelOrderRequest,
    CourseCheckoutRequest,
    CourseCheckoutResponse,
    CreateDiscountRuleRequest,
    CreatePeriodRequest,
    CreateTierRequest,
    EventCheckoutRequest,
    EventCheckoutResponse,
    ExpireOffersResponse,
    IdResponse,
    MembershipCheckoutRequest,
    MembershipCheckoutResponse,
    OfferDecisionResponse,
    PaymentWebhookRequest,
    PromoteRequest,
    PublishEventRequest,
    RefundOrderRequest,
    RefundOrderResponse,
    RegisterOrganizerRequest,
    RegisterPersonRequest,
    SetRuleEnabledRequest,
    StatusResponse,
    SubmitOrderResponse,
    UpdateBillingRequest,
    UpdateDiscountRuleRequest,
)
from registrar.catalogue.management import AddCourseTrack, CreateCoursePeriod, CreateMembershipTier, PublishEvent
from registrar.catalogue.person import RegisterPerson
from registrar.checkout.course import CheckoutCourseCart, preview_course_cart
from registrar.checkout.event import RegisterForEvent
from registrar.checkout.membership import ApproveMembership, PurchaseMembership
from registrar.discount.management import CreateDiscountRule, SetDiscountRuleEnabled, UpdateDiscountRule
from registrar.errors import AccessDenied
from registrar.gateway import get_gateway
from registrar.order.cancellation import AbandonOrder, CancelOrder, RefundOrder
from registrar.order.submission import SubmitOrderForPayment
from registrar.organizer.onboarding import RegisterOrganizer, UpdateOrganizerBilling
from registrar.payment.webhook import ProcessPaymentWebhook
from registrar.waitlist.offers import AcceptOffer, DeclineOffer, ExpireOffers, PromoteToOffered


def _caller(header_value: str) -> str:
    if not header_value:
        raise AccessDenied("Authentication required")
    return header_value


def _items_json(items) -> str:
    return json.dumps([item.model_dump() for item in items])


# ---------------------------------------------------------------------------
# Organizer Router (back office)
# ---------------------------------------------------------------------------
organizer_router = APIRouter(prefix="/organizers", tags=["organizers"])


@organizer_router.post("", status_code=201, response_model=IdResponse)
async def register_organizer(body: RegisterOrganizerRequest, x_actor_id: str = Header(default="")) -> IdResponse:
    """Onboard a new organizer. Administrators only."""
    command = RegisterOrganizer(actor_id=_caller(x_actor_id), **body.model_dump())
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@organizer_router.patch("/{organizer_id}/billing", response_model=StatusResponse)
async def update_billing(
    organizer_id: str, body: UpdateBillingRequest, x_actor_id: str = Header(default="")
) -> StatusResponse:
    command = UpdateOrganizerBilling(
        actor_id=_caller(x_actor_id),
        organizer_id=organizer_id,
        **body.model_dump(exclude_none=True),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@organizer_router.post("/{organizer_id}/periods", status_code=201, response_model=IdResponse)
async def create_period(organizer_id: str, body: CreatePeriodRequest, x_actor_id: str = Header(default="")) -> IdResponse:
    command = CreateCoursePeriod(actor_id=_caller(x_actor_id), organizer_id=organizer_id, **body.model_dump())
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@organizer_router.post("/{organizer_id}/periods/{period_id}/tracks", status_code=201, response_model=IdResponse)
async def add_track(
    organizer_id: str, period_id: str, body: AddTrackRequest, x_actor_id: str = Header(default="")
) -> IdResponse:
    command = AddCourseTrack(
        actor_id=_caller(x_actor_id),
        organizer_id=organizer_id,
        period_id=period_id,
        **body.model_dump(),
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@organizer_router.post("/{organizer_id}/events", status_code=201, response_model=IdResponse)
async def publish_event(organizer_id: str, body: PublishEventRequest, x_actor_id: str = Header(default="")) -> IdResponse:
    command = PublishEvent(actor_id=_caller(x_actor_id), organizer_id=organizer_id, **body.model_dump())
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@organizer_router.post("/{organizer_id}/tiers", status_code=201, response_model=IdResponse)
async def create_tier(organizer_id: str, body: CreateTierRequest, x_actor_id: str = Header(default="")) -> IdResponse:
    command = CreateMembershipTier(actor_id=_caller(x_actor_id), organizer_id=organizer_id, **body.model_dump())
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@organizer_router.post(
    "/{organizer_id}/periods/{period_id}/discount-rules", status_code=201, response_model=IdResponse
)
async def create_discount_rule(
    organizer_id: str, period_id: str, body: CreateDiscountRuleRequest, x_actor_id: str = Header(default="")
) -> IdResponse:
    command = CreateDiscountRule(
        actor_id=_caller(x_actor_id),
        organizer_id=organizer_id,
        period_id=period_id,
        code=body.code,
        name=body.name,
        priority=body.priority,
        rule_type=body.rule_type,
        config=json.dumps(body.config),
        enabled=body.enabled,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@organizer_router.put("/{organizer_id}/discount-rules/{rule_id}", response_model=StatusResponse)
async def update_discount_rule(
    organizer_id: str, rule_id: str, body: UpdateDiscountRuleRequest, x_actor_id: str = Header(default="")
) -> StatusResponse:
    command = UpdateDiscountRule(
        actor_id=_caller(x_actor_id),
        organizer_id=organizer_id,
        rule_id=rule_id,
        name=body.name,
        priority=body.priority,
        rule_type=body.rule_type,
        config=json.dumps(body.config) if body.config is not None else None,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@organizer_router.put("/{organizer_id}/discount-rules/{rule_id}/enabled", response_model=StatusResponse)
async def set_discount_rule_enabled(
    organizer_id: str, rule_id: str, body: SetRuleEnabledRequest, x_actor_id: str = Header(default="")
) -> StatusResponse:
    command = SetDiscountRuleEnabled(
        actor_id=_caller(x_actor_id),
        organizer_id=organizer_id,
        rule_id=rule_id,
        enabled=body.enabled,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="enabled" if body.enabled else "disabled")


@organizer_router.post("/{organizer_id}/orders/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(
    organizer_id: str, order_id: str, body: CancelOrderRequest, x_actor_id: str = Header(default="")
) -> StatusResponse:
    command = CancelOrder(actor_id=_caller(x_actor_id), organizer_id=organizer_id, order_id=order_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


@organizer_router.post("/{organizer_id}/orders/{order_id}/refund", response_model=RefundOrderResponse)
async def refund_order(
    organizer_id: str, order_id: str, body: RefundOrderRequest, x_actor_id: str = Header(default="")
) -> RefundOrderResponse:
    command = RefundOrder(
        actor_id=_caller(x_actor_id),
        organizer_id=organizer_id,
        order_id=order_id,
        refund_percent=body.refund_percent,
        reason=body.reason,
    )
    credit_note_number = current_domain.process(command, asynchronous=False)
    return RefundOrderResponse(credit_note_number=credit_note_number)


@organizer_router.post("/{organizer_id}/memberships/{membership_id}/approve", response_model=StatusResponse)
async def approve_membership(
    organizer_id: str, membership_id: str, x_actor_id: str = Header(default="")
) -> StatusResponse:
    command = ApproveMembership(actor_id=_caller(x_actor_id), organizer_id=organizer_id, membership_id=membership_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="approved")


@organizer_router.post("/{organizer_id}/waitlist/{registration_id}/offer", response_model=IdResponse)
async def promote_to_offered(
    organizer_id: str, registration_id: str, body: PromoteRequest, x_actor_id: str = Header(default="")
) -> IdResponse:
    """Offer a waitlisted registration a seat for a limited time."""
    command = PromoteToOffered(
        actor_id=_caller(x_actor_id),
        organizer_id=organizer_id,
        registration_id=registration_id,
        hours_valid=body.hours_valid,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Person Router
# ---------------------------------------------------------------------------
person_router = APIRouter(prefix="/persons", tags=["persons"])


@person_router.post("", status_code=201, response_model=IdResponse)
async def register_person(body: RegisterPersonRequest) -> IdResponse:
    command = RegisterPerson(**body.model_dump())
    return IdResponse(id=current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Checkout Router (self-service)
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/courses/preview")
async def preview_courses(body: CourseCheckoutRequest, x_person_id: str = Header(default="")) -> dict:
    """Price a course cart without reserving anything."""
    snapshot = preview_course_cart(x_person_id or None, _items_json(body.items))
    return snapshot.to_dict()


@checkout_router.post("/courses", status_code=201, response_model=CourseCheckoutResponse)
async def checkout_courses(body: CourseCheckoutRequest, x_person_id: str = Header(default="")) -> CourseCheckoutResponse:
    command = CheckoutCourseCart(person_id=_caller(x_person_id), items=_items_json(body.items))
    result = current_domain.process(command, asynchronous=False)
    return CourseCheckoutResponse(**result)


@checkout_router.post("/events", status_code=201, response_model=EventCheckoutResponse)
async def checkout_event(body: EventCheckoutRequest, x_person_id: str = Header(default="")) -> EventCheckoutResponse:
    command = RegisterForEvent(person_id=_caller(x_person_id), event_id=body.event_id, quantity=body.quantity)
    result = current_domain.process(command, asynchronous=False)
    return EventCheckoutResponse(**result)


@checkout_router.post("/memberships", status_code=201, response_model=MembershipCheckoutResponse)
async def checkout_membership(
    body: MembershipCheckoutRequest, x_person_id: str = Header(default="")
) -> MembershipCheckoutResponse:
    command = PurchaseMembership(person_id=_caller(x_person_id), tier_id=body.tier_id)
    result = current_domain.process(command, asynchronous=False)
    return MembershipCheckoutResponse(**result)


# ---------------------------------------------------------------------------
# Order Router (self-service)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/{order_id}/submit", response_model=SubmitOrderResponse)
async def submit_order(order_id: str, x_person_id: str = Header(default="")) -> SubmitOrderResponse:
    """Open a hosted checkout session for a drafted order."""
    command = SubmitOrderForPayment(order_id=order_id, person_id=_caller(x_person_id))
    result = current_domain.process(command, asynchronous=False)
    return SubmitOrderResponse(**result)


@order_router.post("/{order_id}/abandon", response_model=StatusResponse)
async def abandon_order(order_id: str, x_person_id: str = Header(default="")) -> StatusResponse:
    command = AbandonOrder(order_id=order_id, person_id=_caller(x_person_id))
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=StatusResponse)
async def process_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(default=""),
) -> StatusResponse:
    """Process a payment provider webhook. Redeliveries are acknowledged without effect."""
    gateway = get_gateway()
    if not gateway.verify_webhook_signature(json.dumps(body.model_dump()), x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    command = ProcessPaymentWebhook(**body.model_dump())
    outcome = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=outcome)


# ---------------------------------------------------------------------------
# Waitlist Router
# ---------------------------------------------------------------------------
waitlist_router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@waitlist_router.post("/expire", response_model=ExpireOffersResponse)
async def expire_offers(x_actor_id: str = Header(default="")) -> ExpireOffersResponse:
    """Expire every offer past its deadline. Meant for a scheduler or an administrator."""
    get_gate().assert_admin(_caller(x_actor_id))
    expired_count = current_domain.process(ExpireOffers(), asynchronous=False)
    return ExpireOffersResponse(expired_count=expired_count)


@waitlist_router.post("/{registration_id}/accept", response_model=OfferDecisionResponse)
async def accept_offer(registration_id: str, x_person_id: str = Header(default="")) -> OfferDecisionResponse:
    command = AcceptOffer(registration_id=registration_id, person_id=_caller(x_person_id))
    decision = current_domain.process(command, asynchronous=False)
    return OfferDecisionResponse(**asdict(decision))


@waitlist_router.post("/{registration_id}/decline", response_model=OfferDecisionResponse)
async def decline_offer(registration_id: str, x_person_id: str = Header(default="")) -> OfferDecisionResponse:
    command = DeclineOffer(registration_id=registration_id, person_id=_caller(x_person_id))
    decision = current_domain.process(command, asynchronous=False)
    return OfferDecisionResponse(**asdict(decision))
