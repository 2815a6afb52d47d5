"""Application tests for organizer onboarding and billing settings."""

from decimal import Decimal

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from registrar.errors import AccessDenied
from registrar.organizer.ledger import Counter, NumberLedger
from registrar.organizer.onboarding import RegisterOrganizer, UpdateOrganizerBilling
from registrar.organizer.organizer import Organizer

ADMIN = "admin-001"
STAFF = "staff-001"


class TestRegisterOrganizer:
    def test_creates_organizer_with_ledger(self, gate):
        organizer_id = current_domain.process(
            RegisterOrganizer(actor_id=ADMIN, name="Bergen Blues", invoice_prefix="BB"),
            asynchronous=False,
        )
        organizer = current_domain.repository_for(Organizer).get(organizer_id)
        assert organizer.invoice_prefix == "BB"
        assert organizer.effective_mva_rate() == Decimal(0)

        ledger = current_domain.repository_for(NumberLedger).get(organizer.ledger_id)
        assert str(ledger.organizer_id) == str(organizer_id)
        assert ledger.last(Counter.INVOICE) == 0

    def test_requires_administrator(self, gate):
        with pytest.raises(AccessDenied):
            current_domain.process(
                RegisterOrganizer(actor_id=STAFF, name="Bergen Blues", invoice_prefix="BB"),
                asynchronous=False,
            )
        assert current_domain.repository_for(Organizer)._dao.query.all().total == 0

    def test_rejects_bad_prefix(self, gate):
        with pytest.raises(ValidationError):
            current_domain.process(
                RegisterOrganizer(actor_id=ADMIN, name="Bergen Blues", invoice_prefix="bb-1"),
                asynchronous=False,
            )


class TestUpdateBilling:
    def test_staff_can_update(self, organizer_id):
        current_domain.process(
            UpdateOrganizerBilling(actor_id=STAFF, organizer_id=organizer_id, mva_rate="15"),
            asynchronous=False,
        )
        organizer = current_domain.repository_for(Organizer).get(organizer_id)
        assert organizer.effective_mva_rate() == Decimal(15)

    def test_rate_is_ignored_when_not_reporting(self, organizer_id):
        current_domain.process(
            UpdateOrganizerBilling(actor_id=STAFF, organizer_id=organizer_id, mva_reporting_required=False),
            asynchronous=False,
        )
        organizer = current_domain.repository_for(Organizer).get(organizer_id)
        assert organizer.mva_rate == "25"
        assert organizer.effective_mva_rate() == Decimal(0)

    def test_other_staff_is_denied(self, organizer_id):
        with pytest.raises(AccessDenied):
            current_domain.process(
                UpdateOrganizerBilling(actor_id="staff-other", organizer_id=organizer_id, mva_rate="15"),
                asynchronous=False,
            )

    def test_invalid_rate_is_rejected(self, organizer_id):
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateOrganizerBilling(actor_id=STAFF, organizer_id=organizer_id, mva_rate="250"),
                asynchronous=False,
            )
