"""Payment provider webhook: command and handler.

Deliveries are at-least-once. A receipt per provider event id filters
redeliveries; the PAID guard in fulfillment covers the rest. The receipt
is written in the same unit of work as the fulfillment, so a failed
attempt leaves no receipt and the provider's retry is processed again.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from registrar.domain import registrar
from registrar.fulfillment.service import fulfill_order
from registrar.payment.payment import Payment, WebhookReceipt

logger = structlog.get_logger(__name__)


@registrar.command(part_of="Payment")
class ProcessPaymentWebhook:
    event_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider_ref = String(max_length=255)
    status = String(required=True, max_length=50)  # succeeded, failed
    failure_reason = String(max_length=500)


@registrar.command_handler(part_of=Payment)
class PaymentWebhookHandler:
    @handle(ProcessPaymentWebhook)
    def process_webhook(self, command):
        receipts = current_domain.repository_for(WebhookReceipt)
        if receipts._dao.query.filter(event_id=str(command.event_id)).all().items:
            logger.info("Duplicate webhook delivery ignored", event_id=str(command.event_id))
            return "duplicate"

        if command.status == "succeeded":
            result = fulfill_order(command.order_id, command.provider_ref)
            outcome = "fulfilled" if result.fulfilled else "already_paid"
        else:
            logger.warning(
                "Payment failed at provider",
                order_id=str(command.order_id),
                reason=command.failure_reason or "Unknown failure",
            )
            outcome = "payment_failed"

        receipts.add(WebhookReceipt(event_id=command.event_id, order_id=command.order_id, outcome=outcome))
        return outcome
