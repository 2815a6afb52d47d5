"""Integration tests for self-service checkout and order endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain

from registrar.api.errors import register_error_handlers
from registrar.api.routes import checkout_router, order_router, person_router
from registrar.order.order import Order, OrderStatus


@pytest.fixture()
def client(gateway):
    app = FastAPI()
    app.include_router(person_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    register_error_handlers(app)
    return TestClient(app)


class TestPersonEndpoint:
    def test_registers_person(self, client):
        response = client.post(
            "/persons", json={"email": "nora@example.org", "first_name": "Nora", "last_name": "Dahl"}
        )
        assert response.status_code == 201
        assert response.json()["id"]


class TestCourseCheckout:
    def test_preview_prices_without_reserving(self, client, track_id):
        response = client.post("/checkout/courses/preview", json={"items": [{"track_id": track_id, "role": "LEADER"}]})

        assert response.status_code == 200
        body = response.json()
        assert body["subtotalCents"] == 100000
        assert body["mvaCents"] == 25000
        assert body["totalCents"] == 125000
        assert body["isMember"] is False
        assert current_domain.repository_for(Order)._dao.query.all().total == 0

    def test_checkout_drafts_order(self, client, person_id, track_id):
        response = client.post(
            "/checkout/courses",
            json={"items": [{"track_id": track_id, "role": "FOLLOWER", "has_partner": True}]},
            headers={"X-Person-Id": person_id},
        )

        assert response.status_code == 201
        body = response.json()
        assert len(body["registration_ids"]) == 1
        assert body["waitlisted_registration_ids"] == []
        order = current_domain.repository_for(Order).get(body["order_id"])
        assert order.subtotal_cents == 180000

    def test_checkout_needs_a_person(self, client, track_id):
        response = client.post("/checkout/courses", json={"items": [{"track_id": track_id}]})
        assert response.status_code == 403

    def test_empty_cart_is_rejected(self, client, person_id):
        response = client.post("/checkout/courses", json={"items": []}, headers={"X-Person-Id": person_id})
        assert response.status_code == 422

    def test_unknown_track_is_not_found(self, client, person_id):
        response = client.post(
            "/checkout/courses", json={"items": [{"track_id": "missing"}]}, headers={"X-Person-Id": person_id}
        )
        assert response.status_code == 404


class TestEventAndMembershipCheckout:
    def test_event_seats(self, client, person_id, event_id):
        response = client.post(
            "/checkout/events", json={"event_id": event_id, "quantity": 2}, headers={"X-Person-Id": person_id}
        )
        assert response.status_code == 201
        order = current_domain.repository_for(Order).get(response.json()["order_id"])
        assert order.subtotal_cents == 40000

    def test_over_capacity_conflicts(self, client, person_id, event_id):
        response = client.post(
            "/checkout/events", json={"event_id": event_id, "quantity": 11}, headers={"X-Person-Id": person_id}
        )
        assert response.status_code == 409

    def test_membership(self, client, person_id, make_tier):
        response = client.post(
            "/checkout/memberships", json={"tier_id": make_tier()}, headers={"X-Person-Id": person_id}
        )
        assert response.status_code == 201
        assert set(response.json()) == {"order_id", "membership_id"}


class TestOrderEndpoints:
    def test_submit_returns_checkout_url(self, client, checkout, person_id, track_id):
        order_id = checkout(person_id, track_id)["order_id"]

        response = client.post(f"/orders/{order_id}/submit", headers={"X-Person-Id": person_id})

        assert response.status_code == 200
        assert response.json()["checkout_url"].startswith("https://checkout.invalid/pay/")
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.PENDING_PAYMENT.value

    def test_foreign_order_is_forbidden(self, client, checkout, make_person, track_id):
        order_id = checkout(make_person("Ola"), track_id)["order_id"]
        response = client.post(f"/orders/{order_id}/submit", headers={"X-Person-Id": make_person("Kari")})
        assert response.status_code == 403

    def test_abandon(self, client, checkout, person_id, track_id):
        order_id = checkout(person_id, track_id)["order_id"]

        response = client.post(f"/orders/{order_id}/abandon", headers={"X-Person-Id": person_id})

        assert response.json() == {"status": "cancelled"}
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.CANCELLED.value
