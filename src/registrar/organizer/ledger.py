"""NumberLedger: organizer-scoped sequential counters (event sourced).

Every allocation is a ``NumberAllocated`` event appended at the ledger's
expected version. Two transactions that loaded the same version cannot
both append, so a number is never handed out twice; the loser's unit of
work fails and rolls back as a whole.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import apply
from protean.fields import DateTime, Identifier, Integer, String

from registrar.domain import registrar


class Counter(Enum):
    ORDER = "order"
    INVOICE = "invoice"
    CREDIT_NOTE = "credit_note"
    MEMBER = "member"


@registrar.event(part_of="NumberLedger")
class LedgerOpened:
    __version__ = 1

    ledger_id = Identifier(required=True)
    organizer_id = Identifier(required=True)
    opened_at = DateTime(required=True)


@registrar.event(part_of="NumberLedger")
class NumberAllocated:
    __version__ = 1

    ledger_id = Identifier(required=True)
    counter = String(required=True, choices=Counter)
    value = Integer(required=True, min_value=1)
    allocated_at = DateTime(required=True)


@registrar.aggregate(is_event_sourced=True)
class NumberLedger:
    organizer_id = Identifier(required=True)
    last_order = Integer(default=0)
    last_invoice = Integer(default=0)
    last_credit_note = Integer(default=0)
    last_member = Integer(default=0)
    opened_at = DateTime()

    @classmethod
    def open(cls, organizer_id):
        ledger = cls._create_new()
        ledger.raise_(
            LedgerOpened(
                ledger_id=str(ledger.id),
                organizer_id=str(organizer_id),
                opened_at=datetime.now(UTC),
            )
        )
        return ledger

    def last(self, counter: Counter) -> int:
        return getattr(self, f"last_{counter.value}") or 0

    def allocate(self, counter: Counter) -> int:
        """Reserve and return the next number of ``counter``."""
        value = self.last(counter) + 1
        self.raise_(
            NumberAllocated(
                ledger_id=str(self.id),
                counter=counter.value,
                value=value,
                allocated_at=datetime.now(UTC),
            )
        )
        return value

    @apply
    def _on_opened(self, event: LedgerOpened):
        self.id = event.ledger_id
        self.organizer_id = event.organizer_id
        self.opened_at = event.opened_at
        for counter in Counter:
            setattr(self, f"last_{counter.value}", 0)

    @apply
    def _on_allocated(self, event: NumberAllocated):
        setattr(self, f"last_{event.counter}", event.value)


def format_order_number(prefix: str, value: int) -> str:
    return f"{prefix}-O-{value:05d}"


def format_invoice_number(prefix: str, value: int) -> str:
    return f"{prefix}-{value:04d}"


def format_credit_note_number(prefix: str, value: int) -> str:
    return f"{prefix}-CR-{value:04d}"


def format_member_number(year: int, value: int) -> str:
    return f"MBR-{year}-{value:04d}"
