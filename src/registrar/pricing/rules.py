"""Discount rule types and their typed configuration.

Each rule type owns one config model; the stored JSON payload is parsed
into that model through a discriminated union keyed by ``rule_type``, so
evaluation never has to guess the shape of a config.

Basis per rule type:

* ``PERCENT_OFF``, ``FIXED_AMOUNT_OFF`` and ``MULTI_COURSE_TIERED`` work on
  the running subtotal left by earlier rules.
* ``MEMBERSHIP_PERCENT`` and ``EARLY_BIRD`` work on the original (gross)
  subtotal. Their amount is still clamped to what is left.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as ConfigError


class RuleType(Enum):
    PERCENT_OFF = "PERCENT_OFF"
    FIXED_AMOUNT_OFF = "FIXED_AMOUNT_OFF"
    MEMBERSHIP_PERCENT = "MEMBERSHIP_PERCENT"
    EARLY_BIRD = "EARLY_BIRD"
    MULTI_COURSE_TIERED = "MULTI_COURSE_TIERED"


class Basis(Enum):
    RUNNING = "running"
    ORIGINAL = "original"


BASIS = {
    RuleType.PERCENT_OFF: Basis.RUNNING,
    RuleType.FIXED_AMOUNT_OFF: Basis.RUNNING,
    RuleType.MEMBERSHIP_PERCENT: Basis.ORIGINAL,
    RuleType.EARLY_BIRD: Basis.ORIGINAL,
    RuleType.MULTI_COURSE_TIERED: Basis.RUNNING,
}


class _Config(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class _PercentOrAmount(_Config):
    percent: Decimal | None = Field(default=None, gt=0, le=100)
    amount_cents: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _exactly_one(self):
        if (self.percent is None) == (self.amount_cents is None):
            raise ValueError("Exactly one of 'percent' or 'amount_cents' is required")
        return self


class PercentOffConfig(_Config):
    rule_type: Literal["PERCENT_OFF"] = "PERCENT_OFF"
    percent: Decimal = Field(gt=0, le=100)


class FixedAmountOffConfig(_Config):
    rule_type: Literal["FIXED_AMOUNT_OFF"] = "FIXED_AMOUNT_OFF"
    amount_cents: int = Field(gt=0)


class MembershipPercentConfig(_Config):
    rule_type: Literal["MEMBERSHIP_PERCENT"] = "MEMBERSHIP_PERCENT"
    percent: Decimal = Field(gt=0, le=100)


class EarlyBirdConfig(_PercentOrAmount):
    rule_type: Literal["EARLY_BIRD"] = "EARLY_BIRD"
    valid_until: datetime
    valid_from: datetime | None = None

    @model_validator(mode="after")
    def _window(self):
        if self.valid_from is not None and as_utc(self.valid_from) >= as_utc(self.valid_until):
            raise ValueError("'valid_from' must be before 'valid_until'")
        return self


class Tier(_PercentOrAmount):
    min_items: int = Field(ge=2)


class MultiCourseTieredConfig(_Config):
    rule_type: Literal["MULTI_COURSE_TIERED"] = "MULTI_COURSE_TIERED"
    tiers: list[Tier] = Field(min_length=1)

    @model_validator(mode="after")
    def _distinct_tiers(self):
        counts = [tier.min_items for tier in self.tiers]
        if len(set(counts)) != len(counts):
            raise ValueError("Each tier needs a distinct 'min_items'")
        return self

    def tier_for(self, item_count: int) -> Tier | None:
        eligible = [tier for tier in self.tiers if tier.min_items <= item_count]
        return max(eligible, key=lambda tier: tier.min_items) if eligible else None


RuleConfig = Annotated[
    Union[
        PercentOffConfig,
        FixedAmountOffConfig,
        MembershipPercentConfig,
        EarlyBirdConfig,
        MultiCourseTieredConfig,
    ],
    Field(discriminator="rule_type"),
]

_config_adapter = TypeAdapter(RuleConfig)


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_config(rule_type: str, config: dict | None) -> RuleConfig:
    """Parse a raw config payload into the typed model for ``rule_type``.

    Raises ``ValidationError`` with ``config.<field>`` keys on bad input.
    """
    try:
        RuleType(rule_type)
    except ValueError:
        raise ValidationError({"rule_type": [f"Unknown rule type '{rule_type}'"]}) from None

    payload = dict(config or {})
    payload["rule_type"] = rule_type
    try:
        return _config_adapter.validate_python(payload)
    except ConfigError as exc:
        messages: dict[str, list[str]] = {}
        for error in exc.errors():
            location = [str(part) for part in error["loc"] if part != rule_type]
            key = ".".join(["config", *location])
            messages.setdefault(key, []).append(error["msg"])
        raise ValidationError(messages) from None


def dump_config(config: RuleConfig) -> dict:
    """JSON-safe dict of a typed config, without the discriminator."""
    return config.model_dump(mode="json", exclude={"rule_type"}, exclude_none=True)


@dataclass(frozen=True)
class PricingRule:
    """Read-only view of a discount rule handed to the evaluator."""

    rule_id: str
    code: str
    name: str
    priority: int
    config: RuleConfig
    enabled: bool = True
    sequence: int = 0

    @property
    def rule_type(self) -> RuleType:
        return RuleType(self.config.rule_type)

    @property
    def basis(self) -> Basis:
        return BASIS[self.rule_type]
