"""Discount rule evaluation.

Rules run in ascending priority; equal priorities keep their creation
sequence. Each rule sees the running subtotal left by the rules before it,
except the ones whose basis is the original subtotal (see ``rules.BASIS``).
Nothing here reads the clock: early-bird windows are checked against
``context.now``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from registrar.pricing.cart import CartItem, validate_cart
from registrar.pricing.money import format_cents, percent_of
from registrar.pricing.rules import (
    EarlyBirdConfig,
    FixedAmountOffConfig,
    MembershipPercentConfig,
    MultiCourseTieredConfig,
    PercentOffConfig,
    PricingRule,
    as_utc,
)


@dataclass(frozen=True)
class PricingContext:
    is_member: bool = False
    now: datetime | None = None
    mva_rate: Decimal = Decimal(0)


@dataclass(frozen=True)
class RuleApplication:
    rule_id: str
    code: str
    name: str
    rule_type: str
    amount_cents: int
    explanation: str


@dataclass(frozen=True)
class LineDiscount:
    reference_id: str
    description: str
    quantity: int
    base_cents: int
    discount_cents: int
    applied_rule_codes: tuple[str, ...] = ()  # Rules that took a share of this line

    @property
    def final_cents(self) -> int:
        return self.base_cents - self.discount_cents


@dataclass(frozen=True)
class Evaluation:
    subtotal_cents: int
    discount_cents: int
    applied_rules: tuple[RuleApplication, ...]
    lines: tuple[LineDiscount, ...]


def ordered_rules(rules: list[PricingRule]) -> list[PricingRule]:
    """Enabled rules by (priority, sequence). ``sorted`` is stable."""
    return sorted((rule for rule in rules if rule.enabled), key=lambda rule: (rule.priority, rule.sequence))


def _percent_label(percent: Decimal) -> str:
    return f"{percent.normalize():f}%"


def _early_bird_open(config: EarlyBirdConfig, now: datetime | None) -> bool:
    if now is None:
        return False
    moment = as_utc(now)
    if config.valid_from is not None and moment < as_utc(config.valid_from):
        return False
    return moment <= as_utc(config.valid_until)


def _rule_amount(rule: PricingRule, cart, original: int, running: int, context: PricingContext):
    """Return ``(amount, explanation)`` for one rule, or ``(0, None)``."""
    config = rule.config

    if isinstance(config, PercentOffConfig):
        return percent_of(running, config.percent), f"{_percent_label(config.percent)} off {format_cents(running)}"

    if isinstance(config, FixedAmountOffConfig):
        return config.amount_cents, f"{format_cents(config.amount_cents)} off"

    if isinstance(config, MembershipPercentConfig):
        if not context.is_member:
            return 0, None
        return None, f"Member discount {_percent_label(config.percent)}"

    if isinstance(config, EarlyBirdConfig):
        if not _early_bird_open(config, context.now):
            return 0, None
        if config.percent is not None:
            label = f"Early bird {_percent_label(config.percent)} off {format_cents(original)}"
            return percent_of(original, config.percent), label
        return config.amount_cents, f"Early bird {format_cents(config.amount_cents)} off"

    if isinstance(config, MultiCourseTieredConfig):
        item_count = len(cart)
        tier = config.tier_for(item_count)
        if tier is None:
            return 0, None
        if tier.percent is not None:
            label = f"{item_count} courses: {_percent_label(tier.percent)} off"
            return percent_of(running, tier.percent), label
        return tier.amount_cents, f"{item_count} courses: {format_cents(tier.amount_cents)} off"

    return 0, None


def _distribute(amount: int, remaining: list[int]) -> list[int]:
    """Split ``amount`` evenly over lines with room left, remainder on the last.

    Lines that cannot absorb their share are capped and the excess goes
    round again. ``amount`` never exceeds ``sum(remaining)``.
    """
    shares = [0] * len(remaining)
    left = amount
    while left > 0:
        open_lines = [i for i, room in enumerate(remaining) if room - shares[i] > 0]
        per_line, extra = divmod(left, len(open_lines))
        for position, i in enumerate(open_lines):
            wanted = per_line + (extra if position == len(open_lines) - 1 else 0)
            taken = min(wanted, remaining[i] - shares[i])
            shares[i] += taken
            left -= taken
    return shares


def evaluate(cart: list[CartItem], rules: list[PricingRule], context: PricingContext) -> Evaluation:
    """Apply ``rules`` to ``cart`` and return the discount decomposition."""
    validate_cart(cart)

    bases = [item.line_cents for item in cart]
    original = sum(bases)
    remaining = list(bases)
    applied: list[RuleApplication] = []
    line_codes: list[list[str]] = [[] for _ in cart]

    for rule in ordered_rules(rules):
        running = sum(remaining)
        if running == 0:
            break

        amount, explanation = _rule_amount(rule, cart, original, running, context)
        if amount is None:
            # Member discount: computed per line on the original line price
            shares = [min(percent_of(base, rule.config.percent), room) for base, room in zip(bases, remaining)]
        else:
            amount = min(amount, running)
            if amount <= 0:
                continue
            shares = _distribute(amount, remaining)

        total = sum(shares)
        if total <= 0:
            continue
        remaining = [room - share for room, share in zip(remaining, shares)]
        for codes, share in zip(line_codes, shares):
            if share > 0:
                codes.append(rule.code)
        applied.append(
            RuleApplication(
                rule_id=rule.rule_id,
                code=rule.code,
                name=rule.name,
                rule_type=rule.rule_type.value,
                amount_cents=total,
                explanation=explanation,
            )
        )

    lines = tuple(
        LineDiscount(
            reference_id=item.reference_id,
            description=item.description,
            quantity=item.quantity,
            base_cents=base,
            discount_cents=base - room,
            applied_rule_codes=tuple(codes),
        )
        for item, base, room, codes in zip(cart, bases, remaining, line_codes)
    )
    return Evaluation(
        subtotal_cents=original,
        discount_cents=original - sum(remaining),
        applied_rules=tuple(applied),
        lines=lines,
    )
