"""Builds cart items from catalogue rows and prices them for an organizer."""

from datetime import datetime

from registrar.catalogue.catalogue import CourseTrack
from registrar.discount.rule import rules_for_period
from registrar.organizer.organizer import Organizer
from registrar.pricing.cart import CartItem, ItemKind
from registrar.pricing.engine import PricingSnapshot, calculate_pricing
from registrar.pricing.evaluator import PricingContext
from registrar.registration.membership import is_member


def track_item(track: CourseTrack, role: str, has_partner: bool = False) -> CartItem:
    return CartItem(
        reference_id=str(track.id),
        organizer_id=str(track.organizer_id),
        kind=ItemKind.TRACK.value,
        role=role,
        has_partner=bool(has_partner),
        price_single_cents=track.price_single_cents,
        price_pair_cents=track.price_pair_cents,
        description=track.title,
    )


def pricing_context(organizer: Organizer, person_id, now: datetime) -> PricingContext:
    return PricingContext(
        is_member=person_id is not None and is_member(person_id, organizer.id, now),
        now=now,
        mva_rate=organizer.effective_mva_rate(),
    )


def quote_course_items(organizer: Organizer, period_id, person_id, items: list[CartItem], now) -> PricingSnapshot:
    """Price course tracks with the period's current discount rules."""
    return calculate_pricing(items, rules_for_period(period_id), pricing_context(organizer, person_id, now))
