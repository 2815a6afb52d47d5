"""Configurable fake payment provider for development and tests."""

from uuid import uuid4

from registrar.gateway.port import CheckoutSession, PaymentGateway


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Provider unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Provider unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_checkout_session(
        self,
        order_id: str,
        amount_cents: int,
        currency: str,
        description: str,
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_checkout_session",
                "order_id": order_id,
                "amount_cents": amount_cents,
                "currency": currency,
                "description": description,
            }
        )
        if not self.should_succeed:
            return CheckoutSession(success=False, failure_reason=self.failure_reason)

        session_id = f"cs_fake_{uuid4().hex[:12]}"
        return CheckoutSession(
            success=True,
            session_id=session_id,
            url=f"https://checkout.invalid/pay/{session_id}",
        )

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"
