"""FulfillOrder command: the entry point for confirmed payments."""

from protean import handle
from protean.fields import DateTime, Identifier, String

from registrar.domain import registrar
from registrar.fulfillment.service import fulfill_order
from registrar.order.order import Order


@registrar.command(part_of="Order")
class FulfillOrder:
    order_id = Identifier(required=True)
    provider_ref = String(max_length=255)
    paid_at = DateTime()  # Optional: defaults to now


@registrar.command_handler(part_of=Order)
class FulfillOrderHandler:
    @handle(FulfillOrder)
    def fulfill(self, command):
        return fulfill_order(command.order_id, command.provider_ref, command.paid_at)
