"""Integration tests for the payment webhook and waitlist endpoints."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain

from registrar.api.errors import register_error_handlers
from registrar.api.routes import organizer_router, payment_router, waitlist_router
from registrar.order.order import Order, OrderStatus
from registrar.waitlist.entry import WaitlistEntry
from registrar.waitlist.offers import PromoteToOffered

ADMIN = "admin-001"
STAFF = "staff-001"


@pytest.fixture()
def client(gateway):
    app = FastAPI()
    app.include_router(organizer_router)
    app.include_router(payment_router)
    app.include_router(waitlist_router)
    register_error_handlers(app)
    return TestClient(app)


def _webhook(client, order_id, event_id="evt_100", signature="test-signature", status="succeeded"):
    return client.post(
        "/payments/webhook",
        json={"event_id": event_id, "order_id": order_id, "provider_ref": "pi_100", "status": status},
        headers={"X-Gateway-Signature": signature},
    )


class TestWebhookEndpoint:
    def test_success_marks_order_paid(self, client, checkout, person_id, track_id):
        order_id = checkout(person_id, track_id)["order_id"]

        response = _webhook(client, order_id)

        assert response.status_code == 200
        assert response.json() == {"status": "fulfilled"}
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PAID.value
        assert order.order_number == "OSS-O-00001"

    def test_redelivery_is_acknowledged(self, client, checkout, person_id, track_id):
        order_id = checkout(person_id, track_id)["order_id"]
        _webhook(client, order_id)

        response = _webhook(client, order_id)

        assert response.status_code == 200
        assert response.json() == {"status": "duplicate"}

    def test_bad_signature_is_rejected(self, client, checkout, person_id, track_id):
        order_id = checkout(person_id, track_id)["order_id"]

        response = _webhook(client, order_id, signature="forged")

        assert response.status_code == 401
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.DRAFT.value

    def test_unknown_status_is_rejected(self, client):
        assert _webhook(client, "order-1", status="pending").status_code == 422


@pytest.fixture
def waitlisted(checkout, make_person, make_track):
    track = make_track("Solo Jazz", capacity=1)
    checkout(make_person("Ola"), track)
    person = make_person("Kari")
    result = checkout(person, track)
    return {"person_id": person, "registration_id": result["waitlisted_registration_ids"][0]}


class TestWaitlistEndpoints:
    def test_offer_then_accept(self, client, organizer_id, waitlisted):
        offer = client.post(
            f"/organizers/{organizer_id}/waitlist/{waitlisted['registration_id']}/offer",
            json={"hours_valid": 24},
            headers={"X-Actor-Id": STAFF},
        )
        assert offer.status_code == 200

        response = client.post(
            f"/waitlist/{waitlisted['registration_id']}/accept", headers={"X-Person-Id": waitlisted["person_id"]}
        )

        body = response.json()
        assert body["outcome"] == "accepted"
        assert body["registration_id"] == waitlisted["registration_id"]
        assert current_domain.repository_for(Order).get(body["order_id"]).status == OrderStatus.DRAFT.value

    def test_decline(self, client, organizer_id, waitlisted):
        client.post(
            f"/organizers/{organizer_id}/waitlist/{waitlisted['registration_id']}/offer",
            json={},
            headers={"X-Actor-Id": STAFF},
        )

        response = client.post(
            f"/waitlist/{waitlisted['registration_id']}/decline", headers={"X-Person-Id": waitlisted["person_id"]}
        )

        assert response.json() == {
            "outcome": "declined",
            "registration_id": waitlisted["registration_id"],
            "order_id": None,
        }

    def test_expiry_sweep_is_admin_only(self, client, organizer_id, waitlisted):
        assert client.post("/waitlist/expire", headers={"X-Actor-Id": STAFF}).status_code == 403
        assert client.post("/waitlist/expire").status_code == 403

    def test_expiry_sweep(self, client, organizer_id, waitlisted):
        lapsed = datetime.now(UTC) - timedelta(hours=3)
        command = PromoteToOffered(
            actor_id=STAFF,
            organizer_id=organizer_id,
            registration_id=waitlisted["registration_id"],
            hours_valid=1,
            as_of=lapsed,
        )
        entry_id = current_domain.process(command, asynchronous=False)

        response = client.post("/waitlist/expire", headers={"X-Actor-Id": ADMIN})

        assert response.json() == {"expired_count": 1}
        assert current_domain.repository_for(WaitlistEntry).get(entry_id).status == "EXPIRED"

    def test_accept_of_lapsed_offer_conflicts(self, client, organizer_id, waitlisted):
        command = PromoteToOffered(
            actor_id=STAFF,
            organizer_id=organizer_id,
            registration_id=waitlisted["registration_id"],
            hours_valid=1,
            as_of=datetime.now(UTC) - timedelta(hours=3),
        )
        entry_id = current_domain.process(command, asynchronous=False)

        response = client.post(
            f"/waitlist/{waitlisted['registration_id']}/accept", headers={"X-Person-Id": waitlisted["person_id"]}
        )

        assert response.status_code == 409
        assert "offered_until" in response.json()["error"]
        assert current_domain.repository_for(WaitlistEntry).get(entry_id).status == "OFFERED"
