"""Integer minor-unit arithmetic.

Amounts are always integer øre/cents. Percentages are ``Decimal`` so that
rates like ``12.5`` stay exact. The only rounding point is
:func:`percent_of`, which rounds half-up to the nearest minor unit.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.exceptions import ValidationError

HUNDRED = Decimal(100)


def to_rate(value, field: str = "mva_rate") -> Decimal:
    """Coerce a percentage into a ``Decimal`` between 0 and 100.

    Floats are refused: they cannot be carried through the money chain
    without drift.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError({field: ["Rate must be a decimal string or integer, not a float"]})
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value).strip() or "0")
    except InvalidOperation:
        raise ValidationError({field: [f"'{value}' is not a valid percentage"]}) from None
    if not rate.is_finite() or rate < 0 or rate > HUNDRED:
        raise ValidationError({field: ["Rate must be between 0 and 100"]})
    return rate


def ensure_cents(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError({field: ["Amount must be an integer number of minor units"]})
    if value < 0:
        raise ValidationError({field: ["Amount cannot be negative"]})
    return value


def percent_of(amount_cents: int, percent: Decimal) -> int:
    """``round_half_up(amount_cents * percent / 100)``"""
    exact = Decimal(amount_cents) * percent / HUNDRED
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_cents(amount_cents: int, currency: str = "NOK") -> str:
    return f"{currency} {Decimal(amount_cents) / HUNDRED:.2f}"
