"""Tests for course registrations and tickets."""

import pytest
from protean.exceptions import ValidationError

from registrar.registration.registration import Registration, RegistrationStatus
from registrar.ticket.ticket import Ticket, TicketStatus, generate_qr_token


def _registration(waitlisted=False):
    return Registration.open(
        organizer_id="org-001",
        period_id="per-001",
        track_id="trk-001",
        person_id="psn-001",
        chosen_role="LEADER",
        waitlisted=waitlisted,
    )


class TestRegistration:
    def test_opens_as_draft(self):
        assert _registration().status == RegistrationStatus.DRAFT.value

    def test_opens_on_waitlist_when_full(self):
        assert _registration(waitlisted=True).status == RegistrationStatus.WAITLIST.value

    def test_attaching_order_leaves_the_waitlist(self):
        registration = _registration(waitlisted=True)
        registration.attach_order("ord-001")
        assert registration.status == RegistrationStatus.DRAFT.value
        assert str(registration.order_id) == "ord-001"

    def test_full_payment_path(self):
        registration = _registration()
        registration.await_payment()
        registration.activate()
        assert registration.status == RegistrationStatus.ACTIVE.value

    def test_activate_is_idempotent(self):
        registration = _registration()
        registration.activate()
        registration.activate()
        assert registration.status == RegistrationStatus.ACTIVE.value

    def test_waitlisted_registration_cannot_activate(self):
        with pytest.raises(ValidationError):
            _registration(waitlisted=True).activate()

    def test_cancelled_is_final(self):
        registration = _registration()
        registration.cancel("Changed plans")
        with pytest.raises(ValidationError):
            registration.activate()


class TestTicket:
    def test_qr_token_format(self):
        kind, entity, person, nonce = generate_qr_token("PERIOD", "per-001", "psn-001").split(":")
        assert (kind, entity, person) == ("PERIOD", "per-001", "psn-001")
        assert len(nonce) == 32

    def test_tokens_are_unique(self):
        assert generate_qr_token("EVENT", "evt", "psn") != generate_qr_token("EVENT", "evt", "psn")

    def test_void_and_reinstate(self):
        ticket = Ticket.issue("org-001", "per-001", "psn-001", "ord-001")
        ticket.void()
        assert ticket.status == TicketStatus.VOID.value
        ticket.reinstate("ord-002")
        assert ticket.status == TicketStatus.ACTIVE.value
        assert str(ticket.order_id) == "ord-002"
