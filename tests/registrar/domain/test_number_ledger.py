"""Tests for the event-sourced NumberLedger and number formats."""

from registrar.organizer.ledger import (
    Counter,
    LedgerOpened,
    NumberAllocated,
    NumberLedger,
    format_credit_note_number,
    format_invoice_number,
    format_member_number,
    format_order_number,
)


class TestNumberLedger:
    def test_open_starts_every_counter_at_zero(self):
        ledger = NumberLedger.open("org-001")
        assert str(ledger.organizer_id) == "org-001"
        assert all(ledger.last(counter) == 0 for counter in Counter)
        assert isinstance(ledger._events[-1], LedgerOpened)

    def test_allocate_is_sequential(self):
        ledger = NumberLedger.open("org-001")
        assert [ledger.allocate(Counter.INVOICE) for _ in range(3)] == [1, 2, 3]
        assert ledger.last(Counter.INVOICE) == 3

    def test_counters_are_independent(self):
        ledger = NumberLedger.open("org-001")
        ledger.allocate(Counter.ORDER)
        ledger.allocate(Counter.ORDER)
        assert ledger.allocate(Counter.CREDIT_NOTE) == 1
        assert ledger.last(Counter.ORDER) == 2
        assert ledger.last(Counter.MEMBER) == 0

    def test_allocation_is_recorded_as_event(self):
        ledger = NumberLedger.open("org-001")
        ledger.allocate(Counter.MEMBER)
        event = ledger._events[-1]
        assert isinstance(event, NumberAllocated)
        assert event.counter == "member"
        assert event.value == 1


class TestFormats:
    def test_order_number(self):
        assert format_order_number("OSS", 7) == "OSS-O-00007"

    def test_invoice_number(self):
        assert format_invoice_number("OSS", 1) == "OSS-0001"

    def test_credit_note_number(self):
        assert format_credit_note_number("OSS", 12) == "OSS-CR-0012"

    def test_member_number(self):
        assert format_member_number(2026, 3) == "MBR-2026-0003"

    def test_numbers_grow_past_padding(self):
        assert format_invoice_number("OSS", 12345) == "OSS-12345"
