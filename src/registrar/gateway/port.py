"""Payment provider port.

Checkout happens on the provider's hosted page; this core only opens the
session and later trusts signed webhooks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutSession:
    success: bool
    session_id: str | None = None
    url: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        order_id: str,
        amount_cents: int,
        currency: str,
        description: str,
    ) -> CheckoutSession:
        """Open a hosted checkout session for an order."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload really comes from the provider."""
        ...
