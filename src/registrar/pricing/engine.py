"""Pricing engine: discount decomposition plus MVA on the discounted subtotal.

``calculate_order_total`` and ``calculate_pricing`` must agree to the
øre for equivalent input; the second is the first fed by ``evaluate``.
"""

import dataclasses
import json
from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError

from registrar.pricing.cart import CartItem
from registrar.pricing.evaluator import LineDiscount, PricingContext, RuleApplication, evaluate
from registrar.pricing.money import ensure_cents, percent_of, to_rate
from registrar.pricing.rules import PricingRule


def _rate_text(rate: Decimal) -> str:
    return f"{rate.normalize():f}"


@dataclass(frozen=True)
class PricingSnapshot:
    """Immutable record of how an order's price was derived.

    ``to_dict`` keys are read by export tooling and must not change.
    """

    subtotal_cents: int
    discount_cents: int
    subtotal_after_discount_cents: int
    mva_rate: Decimal
    mva_cents: int
    total_cents: int
    applied_rules: tuple[RuleApplication, ...] = ()
    lines: tuple[LineDiscount, ...] = ()
    is_member: bool = False

    def to_dict(self) -> dict:
        return {
            "subtotalCents": self.subtotal_cents,
            "discountCents": self.discount_cents,
            "subtotalAfterDiscountCents": self.subtotal_after_discount_cents,
            "mvaRate": _rate_text(self.mva_rate),
            "mvaCents": self.mva_cents,
            "totalCents": self.total_cents,
            "isMember": self.is_member,
            "appliedRules": [
                {
                    "ruleId": rule.rule_id,
                    "code": rule.code,
                    "name": rule.name,
                    "ruleType": rule.rule_type,
                    "amountCents": rule.amount_cents,
                    "explanation": rule.explanation,
                }
                for rule in self.applied_rules
            ],
            "lineItems": [
                {
                    "referenceId": line.reference_id,
                    "description": line.description,
                    "quantity": line.quantity,
                    "baseCents": line.base_cents,
                    "discountCents": line.discount_cents,
                    "finalCents": line.final_cents,
                    "appliedRuleCodes": list(line.applied_rule_codes),
                }
                for line in self.lines
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: dict) -> "PricingSnapshot":
        return cls(
            subtotal_cents=data["subtotalCents"],
            discount_cents=data["discountCents"],
            subtotal_after_discount_cents=data["subtotalAfterDiscountCents"],
            mva_rate=Decimal(data["mvaRate"]),
            mva_cents=data["mvaCents"],
            total_cents=data["totalCents"],
            is_member=data.get("isMember", False),
            applied_rules=tuple(
                RuleApplication(
                    rule_id=rule["ruleId"],
                    code=rule["code"],
                    name=rule["name"],
                    rule_type=rule["ruleType"],
                    amount_cents=rule["amountCents"],
                    explanation=rule["explanation"],
                )
                for rule in data.get("appliedRules", [])
            ),
            lines=tuple(
                LineDiscount(
                    reference_id=line["referenceId"],
                    description=line["description"],
                    quantity=line["quantity"],
                    base_cents=line["baseCents"],
                    discount_cents=line["discountCents"],
                    applied_rule_codes=tuple(line.get("appliedRuleCodes", ())),
                )
                for line in data.get("lineItems", [])
            ),
        )

    @classmethod
    def from_json(cls, payload: str) -> "PricingSnapshot":
        return cls.from_dict(json.loads(payload))


def calculate_order_total(subtotal_cents: int, discount_cents: int, mva_rate=0) -> PricingSnapshot:
    """Totals for an already-computed discount.

    ``mva_rate`` must be 0 when the organizer does not report MVA.
    """
    subtotal_cents = ensure_cents(subtotal_cents, "subtotal_cents")
    discount_cents = ensure_cents(discount_cents, "discount_cents")
    rate = to_rate(mva_rate)
    if discount_cents > subtotal_cents:
        raise ValidationError({"discount_cents": ["Discount cannot exceed the subtotal"]})

    after_discount = subtotal_cents - discount_cents
    mva_cents = percent_of(after_discount, rate)
    return PricingSnapshot(
        subtotal_cents=subtotal_cents,
        discount_cents=discount_cents,
        subtotal_after_discount_cents=after_discount,
        mva_rate=rate,
        mva_cents=mva_cents,
        total_cents=after_discount + mva_cents,
    )


def calculate_pricing(cart: list[CartItem], rules: list[PricingRule], context: PricingContext) -> PricingSnapshot:
    """Price a full cart: evaluate discounts, then compute the totals."""
    evaluation = evaluate(cart, rules, context)
    totals = calculate_order_total(evaluation.subtotal_cents, evaluation.discount_cents, context.mva_rate)
    return dataclasses.replace(
        totals,
        applied_rules=evaluation.applied_rules,
        lines=evaluation.lines,
        is_member=context.is_member,
    )
