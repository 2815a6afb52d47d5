"""Tests for totals, MVA and the persisted pricing snapshot."""

import json
from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from registrar.pricing.cart import CartItem
from registrar.pricing.engine import PricingSnapshot, calculate_order_total, calculate_pricing
from registrar.pricing.evaluator import PricingContext, evaluate
from registrar.pricing.rules import PricingRule, parse_config


def _cart(*prices):
    return [
        CartItem(
            reference_id=f"trk-{i}",
            organizer_id="org-1",
            price_single_cents=price,
            role="FOLLOWER",
            description=f"Track {i}",
        )
        for i, price in enumerate(prices)
    ]


def _rule(rule_type, config, priority=1, code="R"):
    return PricingRule(
        rule_id=f"rule-{code}",
        code=code,
        name=code.title(),
        priority=priority,
        config=parse_config(rule_type, config),
    )


class TestScenarios:
    def test_percentage_discount_with_mva(self):
        snapshot = calculate_pricing(
            _cart(100000),
            [_rule("PERCENT_OFF", {"percent": "10"})],
            PricingContext(mva_rate=Decimal("25")),
        )
        assert snapshot.discount_cents == 10000
        assert snapshot.subtotal_after_discount_cents == 90000
        assert snapshot.mva_cents == 22500
        assert snapshot.total_cents == 112500

    def test_stacked_fixed_discounts_are_capped(self):
        snapshot = calculate_pricing(
            _cart(5000),
            [
                _rule("FIXED_AMOUNT_OFF", {"amount_cents": 3000}, priority=1, code="A"),
                _rule("FIXED_AMOUNT_OFF", {"amount_cents": 3000}, priority=2, code="B"),
            ],
            PricingContext(),
        )
        assert snapshot.discount_cents == 5000
        assert snapshot.subtotal_after_discount_cents == 0
        assert snapshot.mva_cents == 0
        assert snapshot.total_cents == 0
        assert [rule.amount_cents for rule in snapshot.applied_rules] == [3000, 2000]

    def test_member_rule_is_inactive_for_non_members(self):
        snapshot = calculate_pricing(
            _cart(100000),
            [_rule("MEMBERSHIP_PERCENT", {"percent": "20"})],
            PricingContext(is_member=False),
        )
        assert snapshot.discount_cents == 0
        assert snapshot.applied_rules == ()
        assert snapshot.is_member is False


class TestTotals:
    def test_mva_is_charged_on_the_discounted_subtotal(self):
        snapshot = calculate_order_total(80000, 20000, "25")
        assert snapshot.mva_cents == 15000
        assert snapshot.total_cents == 75000

    def test_zero_rate_when_not_reporting(self):
        snapshot = calculate_order_total(80000, 0)
        assert snapshot.mva_rate == Decimal(0)
        assert snapshot.total_cents == 80000

    def test_discount_larger_than_subtotal_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_order_total(1000, 1001)
        assert "discount_cents" in exc_info.value.messages

    def test_float_amounts_are_rejected(self):
        with pytest.raises(ValidationError):
            calculate_order_total(1000.0, 0)

    def test_float_rate_is_rejected(self):
        with pytest.raises(ValidationError):
            calculate_order_total(1000, 0, 0.25)

    @pytest.mark.parametrize(
        "subtotal, discount, rate",
        [
            (1, 0, "25"),
            (99999, 3, "12.5"),
            (0, 0, "25"),
            (7, 7, "15"),
            (33333, 0, "15"),
            (12347, 1, "12.5"),
            (9, 0, "12.5"),
        ],
    )
    def test_total_identity(self, subtotal, discount, rate):
        snapshot = calculate_order_total(subtotal, discount, rate)
        assert snapshot.subtotal_after_discount_cents == subtotal - discount
        assert snapshot.total_cents == snapshot.subtotal_after_discount_cents + snapshot.mva_cents

    @pytest.mark.parametrize(
        "subtotal, discount, rate, mva",
        [
            (2, 0, "25", 1),
            (4, 0, "12.5", 1),
            (10, 0, "15", 2),
            (3, 0, "15", 0),
            (101, 1, "12.5", 13),
            (333, 0, "15", 50),
            (99999, 3, "12.5", 12500),
        ],
    )
    def test_mva_rounds_half_up(self, subtotal, discount, rate, mva):
        snapshot = calculate_order_total(subtotal, discount, rate)
        assert snapshot.mva_cents == mva
        assert snapshot.total_cents == subtotal - discount + mva


class TestEntryPointEquivalence:
    @pytest.mark.parametrize(
        "prices, rules, rate",
        [
            ([100000], [("PERCENT_OFF", {"percent": "10"})], "25"),
            ([33333, 44444], [("FIXED_AMOUNT_OFF", {"amount_cents": 12345})], "12.5"),
            ([99900, 99900, 99900], [("MULTI_COURSE_TIERED", {"tiers": [{"min_items": 3, "percent": "17"}]})], "15"),
            ([101], [("FIXED_AMOUNT_OFF", {"amount_cents": 1})], "12.5"),
            ([33333], [("PERCENT_OFF", {"percent": "15"})], "12.5"),
            ([3, 7], [("PERCENT_OFF", {"percent": "50"})], "15"),
            ([12347, 1], [("PERCENT_OFF", {"percent": "12.5"}), ("FIXED_AMOUNT_OFF", {"amount_cents": 3})], "25"),
        ],
    )
    def test_cart_pricing_matches_manual_totals(self, prices, rules, rate):
        cart = _cart(*prices)
        pricing_rules = [_rule(rule_type, config, code=f"R{i}") for i, (rule_type, config) in enumerate(rules)]
        context = PricingContext(mva_rate=Decimal(rate))

        snapshot = calculate_pricing(cart, pricing_rules, context)
        evaluation = evaluate(cart, pricing_rules, context)
        manual = calculate_order_total(evaluation.subtotal_cents, evaluation.discount_cents, rate)

        assert snapshot.subtotal_cents == manual.subtotal_cents
        assert snapshot.discount_cents == manual.discount_cents
        assert snapshot.mva_cents == manual.mva_cents
        assert snapshot.total_cents == manual.total_cents

    def test_cart_mva_rounds_half_up(self):
        snapshot = calculate_pricing(
            _cart(101),
            [_rule("FIXED_AMOUNT_OFF", {"amount_cents": 1})],
            PricingContext(mva_rate=Decimal("12.5")),
        )
        assert snapshot.subtotal_after_discount_cents == 100
        assert snapshot.mva_cents == 13
        assert snapshot.total_cents == 113


class TestSnapshotContract:
    def _snapshot(self):
        return calculate_pricing(
            _cart(100000, 50000),
            [_rule("PERCENT_OFF", {"percent": "10"}, code="AUTUMN")],
            PricingContext(mva_rate=Decimal("25"), is_member=True),
        )

    def test_field_names_are_stable(self):
        data = self._snapshot().to_dict()
        assert set(data) == {
            "subtotalCents",
            "discountCents",
            "subtotalAfterDiscountCents",
            "mvaRate",
            "mvaCents",
            "totalCents",
            "isMember",
            "appliedRules",
            "lineItems",
        }
        assert set(data["appliedRules"][0]) == {"ruleId", "code", "name", "ruleType", "amountCents", "explanation"}
        assert set(data["lineItems"][0]) == {
            "referenceId",
            "description",
            "quantity",
            "baseCents",
            "discountCents",
            "finalCents",
            "appliedRuleCodes",
        }

    def test_rate_is_serialized_as_text(self):
        data = json.loads(self._snapshot().to_json())
        assert data["mvaRate"] == "25"
        assert data["totalCents"] == 168750

    def test_json_restores_the_same_snapshot(self):
        snapshot = self._snapshot()
        assert PricingSnapshot.from_json(snapshot.to_json()) == snapshot

    def test_line_items_name_the_rules_applied_to_them(self):
        data = self._snapshot().to_dict()
        assert [line["appliedRuleCodes"] for line in data["lineItems"]] == [["AUTUMN"], ["AUTUMN"]]
