"""Application tests for waitlist offers and their deadlines."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain

from registrar.errors import AccessDenied, ConflictError
from registrar.order.order import Order, OrderStatus
from registrar.pricing.rules import as_utc
from registrar.registration.registration import Registration, RegistrationStatus
from registrar.waitlist.entry import WaitlistEntry, WaitlistStatus, entry_for_registration
from registrar.waitlist.offers import AcceptOffer, DeclineOffer, ExpireOffers, PromoteToOffered

STAFF = "staff-001"
OFFERED_AT = datetime(2026, 9, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def full_track(make_track):
    return make_track("Solo Jazz", capacity=1)


@pytest.fixture
def waitlisted(checkout, make_person, full_track):
    """A registration waiting behind the only seat of a full track."""
    checkout(make_person("Ola"), full_track)
    person = make_person("Kari")
    result = checkout(person, (full_track, "FOLLOWER"))
    assert result["order_id"] is None
    return {"person_id": person, "registration_id": result["waitlisted_registration_ids"][0]}


def _promote(organizer_id, registration_id, hours_valid=48, as_of=OFFERED_AT):
    command = PromoteToOffered(
        actor_id=STAFF,
        organizer_id=organizer_id,
        registration_id=registration_id,
        hours_valid=hours_valid,
        as_of=as_of,
    )
    return current_domain.process(command, asynchronous=False)


def _accept(waitlisted, as_of):
    command = AcceptOffer(registration_id=waitlisted["registration_id"], person_id=waitlisted["person_id"], as_of=as_of)
    return current_domain.process(command, asynchronous=False)


def _expire(as_of):
    return current_domain.process(ExpireOffers(as_of=as_of), asynchronous=False)


class TestPromote:
    def test_checkout_on_full_track_joins_waitlist(self, waitlisted):
        registration = current_domain.repository_for(Registration).get(waitlisted["registration_id"])
        assert registration.status == RegistrationStatus.WAITLIST.value
        entry = entry_for_registration(waitlisted["registration_id"])
        assert entry.status == WaitlistStatus.ON_WAITLIST.value

    def test_offer_sets_deadline_and_notifies(self, sender, organizer_id, waitlisted):
        entry_id = _promote(organizer_id, waitlisted["registration_id"])

        entry = current_domain.repository_for(WaitlistEntry).get(entry_id)
        assert entry.status == WaitlistStatus.OFFERED.value
        assert as_utc(entry.offered_until) == OFFERED_AT + timedelta(hours=48)
        assert entry.offer_count == 1

        (message,) = [m for m in sender.sent if m["template_slug"] == "waitlist-offer"]
        assert message["variables"]["trackName"] == "Solo Jazz"
        assert message["variables"]["hoursValid"] == 48

    def test_seated_registration_cannot_be_offered(self, organizer_id, checkout, person_id, track_id):
        registration_id = checkout(person_id, track_id)["registration_ids"][0]
        with pytest.raises(ConflictError):
            _promote(organizer_id, registration_id)

    def test_requires_organizer_access(self, organizer_id, waitlisted):
        command = PromoteToOffered(
            actor_id="stranger", organizer_id=organizer_id, registration_id=waitlisted["registration_id"]
        )
        with pytest.raises(AccessDenied):
            current_domain.process(command, asynchronous=False)


class TestAcceptAndDecline:
    def test_accept_within_deadline_drafts_order(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])

        decision = _accept(waitlisted, OFFERED_AT + timedelta(hours=47))

        assert decision.outcome == "accepted"
        order = current_domain.repository_for(Order).get(decision.order_id)
        assert order.status == OrderStatus.DRAFT.value
        assert order.subtotal_cents == 100000
        registration = current_domain.repository_for(Registration).get(waitlisted["registration_id"])
        assert registration.status == RegistrationStatus.DRAFT.value
        assert str(registration.order_id) == decision.order_id

    def test_accept_after_deadline_is_rejected(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])

        with pytest.raises(ConflictError) as exc:
            _accept(waitlisted, OFFERED_AT + timedelta(hours=48, seconds=1))

        assert "offered_until" in exc.value.messages
        assert entry_for_registration(waitlisted["registration_id"]).status == WaitlistStatus.OFFERED.value
        assert current_domain.repository_for(Order)._dao.query.filter(
            purchaser_id=str(waitlisted["person_id"])
        ).all().total == 0

    def test_accept_by_someone_else_is_denied(self, organizer_id, waitlisted, make_person):
        _promote(organizer_id, waitlisted["registration_id"])
        command = AcceptOffer(registration_id=waitlisted["registration_id"], person_id=make_person("Per"))
        with pytest.raises(AccessDenied):
            current_domain.process(command, asynchronous=False)

    def test_decline_leaves_waitlist(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])

        command = DeclineOffer(registration_id=waitlisted["registration_id"], person_id=waitlisted["person_id"])
        decision = current_domain.process(command, asynchronous=False)

        assert decision.outcome == "declined"
        assert entry_for_registration(waitlisted["registration_id"]).status == WaitlistStatus.REMOVED.value
        registration = current_domain.repository_for(Registration).get(waitlisted["registration_id"])
        assert registration.status == RegistrationStatus.CANCELLED.value


class TestExpirySweep:
    def test_sweep_expires_only_lapsed_offers(self, organizer_id, waitlisted, make_person, full_track, checkout):
        other = checkout(make_person("Per"), full_track)["waitlisted_registration_ids"][0]
        _promote(organizer_id, waitlisted["registration_id"], hours_valid=24)
        _promote(organizer_id, other, hours_valid=72)

        assert _expire(OFFERED_AT + timedelta(hours=25)) == 1
        assert entry_for_registration(waitlisted["registration_id"]).status == WaitlistStatus.EXPIRED.value
        assert entry_for_registration(other).status == WaitlistStatus.OFFERED.value

    def test_offer_at_exact_deadline_is_still_open(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])
        assert _expire(OFFERED_AT + timedelta(hours=48)) == 0

    def test_accept_after_sweep_is_rejected(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])
        _expire(OFFERED_AT + timedelta(hours=49))

        with pytest.raises(ConflictError):
            _accept(waitlisted, OFFERED_AT + timedelta(hours=50))

        assert entry_for_registration(waitlisted["registration_id"]).status == WaitlistStatus.EXPIRED.value

    def test_sweep_expires_offer_left_after_rejected_accept(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])
        with pytest.raises(ConflictError):
            _accept(waitlisted, OFFERED_AT + timedelta(hours=49))

        assert _expire(OFFERED_AT + timedelta(hours=49)) == 1
        assert entry_for_registration(waitlisted["registration_id"]).status == WaitlistStatus.EXPIRED.value

    def test_sweep_after_accept_changes_nothing(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])
        _accept(waitlisted, OFFERED_AT + timedelta(hours=1))

        assert _expire(OFFERED_AT + timedelta(hours=49)) == 0
        assert entry_for_registration(waitlisted["registration_id"]).status == WaitlistStatus.ACCEPTED.value

    def test_expired_offer_can_be_renewed(self, organizer_id, waitlisted):
        _promote(organizer_id, waitlisted["registration_id"])
        _expire(OFFERED_AT + timedelta(hours=49))

        renewed_at = OFFERED_AT + timedelta(days=3)
        _promote(organizer_id, waitlisted["registration_id"], hours_valid=24, as_of=renewed_at)

        entry = entry_for_registration(waitlisted["registration_id"])
        assert entry.status == WaitlistStatus.OFFERED.value
        assert entry.offer_count == 2
        assert _accept(waitlisted, renewed_at + timedelta(hours=2)).outcome == "accepted"
