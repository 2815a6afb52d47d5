"""Membership purchase and the admin approval of validated tiers."""

import dataclasses
from datetime import UTC, datetime
from decimal import Decimal

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain

from registrar.access import get_gate
from registrar.catalogue.catalogue import MembershipTier
from registrar.catalogue.person import Person
from registrar.checkout.quote import pricing_context
from registrar.domain import registrar
from registrar.order.order import Order, OrderType
from registrar.organizer.organizer import Organizer
from registrar.pricing.cart import CartItem, ItemKind
from registrar.pricing.engine import calculate_pricing
from registrar.registration.membership import Membership, MembershipStatus

logger = structlog.get_logger(__name__)


@registrar.command(part_of="Order")
class PurchaseMembership:
    person_id = Identifier(required=True)
    tier_id = Identifier(required=True)
    as_of = DateTime()  # Optional: defaults to now


@registrar.command(part_of="Membership")
class ApproveMembership:
    actor_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    membership_id = Identifier(required=True)


@registrar.command_handler(part_of=Order)
class MembershipCheckoutHandler:
    @handle(PurchaseMembership)
    def purchase(self, command):
        now = command.as_of or datetime.now(UTC)
        current_domain.repository_for(Person).get(command.person_id)
        tier = current_domain.repository_for(MembershipTier).get(command.tier_id)
        organizer = current_domain.repository_for(Organizer).get(tier.organizer_id)

        membership_repo = current_domain.repository_for(Membership)
        held = membership_repo._dao.query.filter(person_id=str(command.person_id), organizer_id=str(organizer.id))
        for membership in held.all().items:
            if membership.status == MembershipStatus.PENDING_PAYMENT.value or membership.is_current(now):
                raise ValidationError({"tier_id": ["Person already holds or awaits a membership here"]})

        context = pricing_context(organizer, command.person_id, now)
        if not tier.mva_enabled:
            context = dataclasses.replace(context, mva_rate=Decimal(0))
        item = CartItem(
            reference_id=str(tier.id),
            organizer_id=str(organizer.id),
            kind=ItemKind.MEMBERSHIP.value,
            price_single_cents=tier.price_cents,
            description=tier.name,
        )
        snapshot = calculate_pricing([item], [], context)

        order = Order.draft(
            organizer_id=organizer.id,
            purchaser_id=command.person_id,
            order_type=OrderType.MEMBERSHIP.value,
            snapshot=snapshot,
        )
        membership = Membership(
            organizer_id=organizer.id,
            tier_id=tier.id,
            person_id=command.person_id,
            order_id=order.id,
        )
        current_domain.repository_for(Order).add(order)
        membership_repo.add(membership)

        logger.info("Membership purchase drafted", order_id=str(order.id), tier_id=str(tier.id))
        return {"order_id": str(order.id), "membership_id": str(membership.id)}


@registrar.command_handler(part_of=Membership)
class MembershipApprovalHandler:
    @handle(ApproveMembership)
    def approve(self, command):
        get_gate().assert_organizer_access(command.actor_id, command.organizer_id)

        repo = current_domain.repository_for(Membership)
        membership = repo.get(command.membership_id)
        if str(membership.organizer_id) != str(command.organizer_id):
            raise ObjectNotFoundError(f"Membership with id {command.membership_id} does not exist")

        membership.approve()
        repo.add(membership)
        logger.info("Membership approved", membership_id=str(membership.id), actor_id=str(command.actor_id))
