"""Cart items handed to the pricing engine before anything is persisted."""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError


class ItemKind(Enum):
    TRACK = "TRACK"
    EVENT = "EVENT"
    MEMBERSHIP = "MEMBERSHIP"


class DanceRole(Enum):
    LEADER = "LEADER"
    FOLLOWER = "FOLLOWER"


@dataclass(frozen=True)
class CartItem:
    reference_id: str
    organizer_id: str
    price_single_cents: int
    kind: str = ItemKind.TRACK.value
    role: str | None = None
    has_partner: bool = False
    price_pair_cents: int | None = None
    quantity: int = 1
    description: str = ""

    @property
    def unit_price_cents(self) -> int:
        if self.has_partner and self.price_pair_cents is not None:
            return self.price_pair_cents
        return self.price_single_cents

    @property
    def line_cents(self) -> int:
        return self.unit_price_cents * self.quantity


def _is_cents(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_cart(cart: list[CartItem]) -> None:
    """Reject carts with missing fields or items from several organizers."""
    if not cart:
        raise ValidationError({"items": ["Cart is empty"]})

    errors: dict[str, list[str]] = {}
    for index, item in enumerate(cart):
        prefix = f"items[{index}]"
        if not item.reference_id:
            errors.setdefault(f"{prefix}.reference_id", []).append("is required")
        if not item.organizer_id:
            errors.setdefault(f"{prefix}.organizer_id", []).append("is required")
        if item.kind not in {kind.value for kind in ItemKind}:
            errors.setdefault(f"{prefix}.kind", []).append(f"'{item.kind}' is not a valid item kind")
        if item.kind == ItemKind.TRACK.value and item.role not in {role.value for role in DanceRole}:
            errors.setdefault(f"{prefix}.role", []).append("must be LEADER or FOLLOWER")
        if not _is_cents(item.price_single_cents):
            errors.setdefault(f"{prefix}.price_single_cents", []).append("must be a non-negative integer")
        if item.price_pair_cents is not None and not _is_cents(item.price_pair_cents):
            errors.setdefault(f"{prefix}.price_pair_cents", []).append("must be a non-negative integer")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            errors.setdefault(f"{prefix}.quantity", []).append("must be at least 1")
    if errors:
        raise ValidationError(errors)

    organizers = {item.organizer_id for item in cart}
    if len(organizers) > 1:
        raise ValidationError({"items": ["All items in a cart must belong to one organizer"]})
