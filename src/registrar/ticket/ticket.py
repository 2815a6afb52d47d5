"""Course-period tickets and event tickets.

One course Ticket covers every track a person takes in a period. Event
tickets are one per seat, each with its own QR token.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from registrar.domain import registrar


class TicketStatus(Enum):
    ACTIVE = "ACTIVE"
    VOID = "VOID"


def generate_qr_token(kind: str, entity_id, person_id) -> str:
    return f"{kind}:{entity_id}:{person_id}:{uuid4().hex}"


@registrar.aggregate
class Ticket:
    organizer_id = Identifier(required=True)
    period_id = Identifier(required=True)
    person_id = Identifier(required=True)
    order_id = Identifier(required=True)
    qr_token = String(required=True, max_length=255)
    status = String(choices=TicketStatus, default=TicketStatus.ACTIVE.value)
    issued_at = DateTime(default=lambda: datetime.now(UTC))

    @classmethod
    def issue(cls, organizer_id, period_id, person_id, order_id):
        return cls(
            organizer_id=organizer_id,
            period_id=period_id,
            person_id=person_id,
            order_id=order_id,
            qr_token=generate_qr_token("PERIOD", period_id, person_id),
        )

    def void(self) -> None:
        self.status = TicketStatus.VOID.value

    def reinstate(self, order_id) -> None:
        """Reuse a voided ticket for a new purchase in the same period."""
        self.order_id = order_id
        self.status = TicketStatus.ACTIVE.value


@registrar.aggregate
class EventTicket:
    organizer_id = Identifier(required=True)
    event_id = Identifier(required=True)
    event_registration_id = Identifier(required=True)
    person_id = Identifier(required=True)
    order_id = Identifier(required=True)
    seat_number = Integer(required=True, min_value=1)
    qr_token = String(required=True, max_length=255)
    status = String(choices=TicketStatus, default=TicketStatus.ACTIVE.value)
    issued_at = DateTime(default=lambda: datetime.now(UTC))

    def void(self) -> None:
        self.status = TicketStatus.VOID.value


def period_ticket_for(period_id, person_id) -> Ticket | None:
    found = (
        current_domain.repository_for(Ticket)
        ._dao.query.filter(period_id=str(period_id), person_id=str(person_id))
        .all()
        .items
    )
    return found[0] if found else None


def event_tickets_for(event_registration_id) -> list[EventTicket]:
    return (
        current_domain.repository_for(EventTicket)
        ._dao.query.filter(event_registration_id=str(event_registration_id))
        .all()
        .items
    )
