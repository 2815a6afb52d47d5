"""Tests for the DiscountRule aggregate."""

import json

import pytest
from protean.exceptions import ValidationError

from registrar.discount.rule import DiscountRule, load_config
from registrar.pricing.rules import PercentOffConfig, RuleType


def _rule(**overrides):
    defaults = {
        "organizer_id": "org-001",
        "period_id": "per-001",
        "code": "AUTUMN10",
        "name": "Autumn discount",
        "priority": 10,
        "rule_type": "PERCENT_OFF",
        "config": {"percent": "10"},
        "sequence": 1,
    }
    defaults.update(overrides)
    return DiscountRule.define(**defaults)


class TestDefine:
    def test_stores_normalized_config(self):
        rule = _rule()
        assert json.loads(rule.config) == {"percent": "10"}

    def test_accepts_json_text(self):
        rule = _rule(config='{"amount_cents": 5000}', rule_type="FIXED_AMOUNT_OFF")
        assert json.loads(rule.config) == {"amount_cents": 5000}

    def test_rejects_config_of_wrong_shape(self):
        with pytest.raises(ValidationError) as exc_info:
            _rule(config={"amount_cents": 5000})
        assert "config.percent" in exc_info.value.messages

    def test_rejects_bad_code(self):
        with pytest.raises(ValidationError) as exc_info:
            _rule(code="autumn 10")
        assert "code" in exc_info.value.messages

    def test_rejects_non_object_config(self):
        with pytest.raises(ValidationError):
            load_config("[1, 2]")


class TestRevise:
    def test_change_type_and_config_together(self):
        rule = _rule()
        rule.revise(rule_type="FIXED_AMOUNT_OFF", config={"amount_cents": 2500})
        assert rule.rule_type == "FIXED_AMOUNT_OFF"
        assert json.loads(rule.config) == {"amount_cents": 2500}

    def test_changing_type_alone_must_still_fit_config(self):
        rule = _rule()
        with pytest.raises(ValidationError):
            rule.revise(rule_type="FIXED_AMOUNT_OFF")

    def test_rename_and_reprioritize(self):
        rule = _rule()
        rule.revise(name="Autumn sale", priority=1)
        assert rule.name == "Autumn sale"
        assert rule.priority == 1


class TestToPricingRule:
    def test_carries_typed_config(self):
        pricing_rule = _rule().to_pricing_rule()
        assert pricing_rule.rule_type == RuleType.PERCENT_OFF
        assert isinstance(pricing_rule.config, PercentOffConfig)
        assert pricing_rule.sequence == 1

    def test_disabled_flag(self):
        rule = _rule()
        rule.set_enabled(False)
        assert rule.to_pricing_rule().enabled is False
