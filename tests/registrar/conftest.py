"""Shared fixtures: a registrar test bed, reset ports and a small catalogue."""

import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from registrar.access import reset_gate, set_gate
from registrar.access.grants import GrantTable
from registrar.catalogue.management import AddCourseTrack, CreateCoursePeriod, CreateMembershipTier, PublishEvent
from registrar.catalogue.person import RegisterPerson
from registrar.checkout.course import CheckoutCourseCart
from registrar.gateway import reset_gateway, set_gateway
from registrar.gateway.fake_adapter import FakeGateway
from registrar.notification import reset_sender, set_sender
from registrar.notification.fake_sender import FakeNotificationSender
from registrar.organizer.onboarding import RegisterOrganizer
from registrar.utils.db import create_schema, drop_schema

ADMIN = "admin-001"
STAFF = "staff-001"


@pytest.fixture(scope="session")
def registrar_bed():
    from registrar.domain import registrar

    bed = DomainFixture(registrar)
    bed.setup()
    create_schema(registrar)
    yield bed
    drop_schema(registrar)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(registrar_bed):
    with registrar_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _ports():
    """Fresh fakes for every test; nothing leaks through module globals."""
    yield
    reset_gate()
    reset_sender()
    reset_gateway()


@pytest.fixture
def gate():
    grants = GrantTable()
    grants.grant_admin(ADMIN)
    set_gate(grants)
    return grants


@pytest.fixture
def sender():
    fake = FakeNotificationSender()
    set_sender(fake)
    return fake


@pytest.fixture
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture
def organizer_id(gate):
    """An organizer reporting 25% MVA, with STAFF granted access."""
    command = RegisterOrganizer(
        actor_id=ADMIN,
        name="Oslo Swing Society",
        invoice_prefix="OSS",
        contact_email="kasse@example.org",
        mva_reporting_required=True,
        mva_rate="25",
    )
    identifier = current_domain.process(command, asynchronous=False)
    gate.grant_organizer(STAFF, identifier)
    return identifier


@pytest.fixture
def period_id(organizer_id):
    command = CreateCoursePeriod(actor_id=STAFF, organizer_id=organizer_id, name="Autumn 2026")
    return current_domain.process(command, asynchronous=False)


@pytest.fixture
def make_track(organizer_id, period_id):
    def _make(title="Lindy Hop 1", price_single_cents=100000, price_pair_cents=180000, capacity=None):
        command = AddCourseTrack(
            actor_id=STAFF,
            organizer_id=organizer_id,
            period_id=period_id,
            title=title,
            price_single_cents=price_single_cents,
            price_pair_cents=price_pair_cents,
            capacity=capacity,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture
def track_id(make_track):
    return make_track()


@pytest.fixture
def make_person():
    counter = {"n": 0}

    def _make(first_name="Kari", last_name="Nordmann"):
        counter["n"] += 1
        command = RegisterPerson(
            email=f"{first_name.lower()}.{counter['n']}@example.org",
            first_name=first_name,
            last_name=last_name,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture
def person_id(make_person):
    return make_person()


@pytest.fixture
def event_id(organizer_id):
    command = PublishEvent(
        actor_id=STAFF,
        organizer_id=organizer_id,
        title="Autumn Social",
        price_cents=20000,
        member_price_cents=15000,
        capacity=10,
    )
    return current_domain.process(command, asynchronous=False)


@pytest.fixture
def make_tier(organizer_id):
    def _make(name="Annual", price_cents=50000, validation_required=False, mva_enabled=False, validity_months=12):
        command = CreateMembershipTier(
            actor_id=STAFF,
            organizer_id=organizer_id,
            name=name,
            price_cents=price_cents,
            validation_required=validation_required,
            mva_enabled=mva_enabled,
            validity_months=validity_months,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture
def checkout():
    """Check out a course cart of ``(track_id, role)`` pairs for a person."""

    def _checkout(person, *tracks, has_partner=False, as_of=None):
        items = [
            {"track_id": track, "role": role, "has_partner": has_partner}
            for track, role in (entry if isinstance(entry, tuple) else (entry, "LEADER") for entry in tracks)
        ]
        command = CheckoutCourseCart(person_id=person, items=json.dumps(items), as_of=as_of)
        return current_domain.process(command, asynchronous=False)

    return _checkout
