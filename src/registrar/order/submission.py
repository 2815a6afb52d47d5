"""Handing a drafted order to the payment provider."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from registrar.access import load_owned
from registrar.domain import registrar
from registrar.errors import ConflictError
from registrar.gateway import get_gateway
from registrar.order.order import Order, OrderStatus
from registrar.registration.registration import Registration, RegistrationStatus

logger = structlog.get_logger(__name__)


@registrar.command(part_of="Order")
class SubmitOrderForPayment:
    order_id = Identifier(required=True)
    person_id = Identifier(required=True)


@registrar.command_handler(part_of=Order)
class OrderSubmissionHandler:
    @handle(SubmitOrderForPayment)
    def submit(self, command):
        order = load_owned(Order, command.order_id, command.person_id, owner_field="purchaser_id")
        if order.status != OrderStatus.DRAFT.value:
            raise ConflictError({"status": [f"Order in status {order.status} cannot be submitted for payment"]})

        session = get_gateway().create_checkout_session(
            order_id=str(order.id),
            amount_cents=order.total_cents,
            currency=order.currency,
            description=f"{order.order_type.replace('_', ' ').title()} order",
        )
        if not session.success:
            logger.warning("Checkout session not created", order_id=str(order.id), reason=session.failure_reason)
            return {"checkout_url": None, "failure_reason": session.failure_reason}

        order.submit_for_payment(session.session_id)
        current_domain.repository_for(Order).add(order)

        registration_repo = current_domain.repository_for(Registration)
        for registration in registration_repo._dao.query.filter(order_id=str(order.id)).all().items:
            if registration.status == RegistrationStatus.DRAFT.value:
                registration.await_payment()
                registration_repo.add(registration)

        return {"checkout_url": session.url, "failure_reason": None}
