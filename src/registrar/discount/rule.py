"""DiscountRule aggregate: a configurable pricing rule scoped to a course period."""

import json
import re
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from registrar.domain import registrar
from registrar.pricing.evaluator import ordered_rules
from registrar.pricing.rules import PricingRule, RuleType, dump_config, parse_config

_CODE = re.compile(r"^[A-Z0-9_]{2,20}$")


def load_config(raw) -> dict:
    """Accept a dict or JSON object text."""
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw or "{}")
    except (TypeError, ValueError):
        raise ValidationError({"config": ["Config must be a JSON object"]}) from None
    if not isinstance(value, dict):
        raise ValidationError({"config": ["Config must be a JSON object"]})
    return value


@registrar.aggregate
class DiscountRule:
    organizer_id = Identifier(required=True)
    period_id = Identifier(required=True)
    code = String(required=True, max_length=20)
    name = String(required=True, max_length=200)
    priority = Integer(required=True)
    enabled = Boolean(default=True)
    rule_type = String(required=True, choices=RuleType)
    config = Text(default="{}")
    sequence = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def code_format(self):
        if self.code and not _CODE.match(self.code):
            raise ValidationError({"code": ["Use 2-20 uppercase letters, digits or underscores"]})

    @invariant.post
    def config_matches_rule_type(self):
        parse_config(self.rule_type, load_config(self.config))

    @classmethod
    def define(cls, organizer_id, period_id, code, name, priority, rule_type, config, sequence, enabled=True):
        typed = parse_config(rule_type, load_config(config))
        now = datetime.now(UTC)
        return cls(
            organizer_id=organizer_id,
            period_id=period_id,
            code=code,
            name=name,
            priority=priority,
            enabled=enabled,
            rule_type=rule_type,
            config=json.dumps(dump_config(typed), sort_keys=True),
            sequence=sequence,
            created_at=now,
            updated_at=now,
        )

    def revise(self, name=None, priority=None, rule_type=None, config=None) -> None:
        new_type = rule_type or self.rule_type
        raw = load_config(config) if config is not None else load_config(self.config)
        typed = parse_config(new_type, raw)
        if name is not None:
            self.name = name
        if priority is not None:
            self.priority = priority
        with atomic_change(self):
            self.rule_type = new_type
            self.config = json.dumps(dump_config(typed), sort_keys=True)
        self.updated_at = datetime.now(UTC)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        self.updated_at = datetime.now(UTC)

    def to_pricing_rule(self) -> PricingRule:
        return PricingRule(
            rule_id=str(self.id),
            code=self.code,
            name=self.name,
            priority=self.priority,
            enabled=bool(self.enabled),
            config=parse_config(self.rule_type, load_config(self.config)),
            sequence=self.sequence or 0,
        )


def rules_for_period(period_id) -> list[PricingRule]:
    """Enabled rules of a period in evaluation order."""
    records = (
        current_domain.repository_for(DiscountRule)._dao.query.filter(period_id=str(period_id), enabled=True).all().items
    )
    return ordered_rules([record.to_pricing_rule() for record in records])
