"""Tests for the admin HTTP routes.

Covers:
- identity header (401 without it)
- error kind → status mapping
- X-Audit-Status header on committed actions
- request origin captured into the audit record
- party routes (create, join, actions)
"""

from __future__ import annotations

import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.admin.api import party_router, router
from src.admin.error_handlers import register_error_handlers
from tests.fakes import make_transaction


def _as(actor_id: str, **extra: str) -> dict[str, str]:
    return {"X-Actor-Id": actor_id, **extra}


@pytest.fixture
def client(service):
    """App with the admin routers and an in-memory action service."""
    test_app = FastAPI()
    register_error_handlers(test_app)
    test_app.include_router(router)
    test_app.include_router(party_router)
    test_app.state.action_service = service
    return TestClient(test_app)


class TestIdentity:
    def test_401_without_actor(self, client):
        resp = client.get("/admin/permissions")
        assert resp.status_code == 401

    def test_permissions_for_moderator(self, client, accounts):
        resp = client.get("/admin/permissions", headers=_as(accounts.moderator))
        assert resp.status_code == 200
        assert "view_transactions" in resp.json()["permissions"]
        assert "delete_transactions" not in resp.json()["permissions"]

    def test_unknown_actor_has_no_permissions(self, client):
        resp = client.get("/admin/permissions", headers=_as(str(uuid.uuid4())))
        assert resp.json() == {"permissions": []}


class TestErrorMapping:
    def test_moderator_delete_is_403(self, client, store, audit, accounts):
        txn_id = make_transaction(store, buyer_id=accounts.buyer, seller_id=accounts.seller)

        resp = client.delete(f"/admin/data/escrow_transactions/{txn_id}", headers=_as(accounts.moderator))

        assert resp.status_code == 403
        assert resp.json()["error"] == "authorization_denied"
        assert audit.records == []

    def test_self_role_change_is_403(self, client, accounts):
        resp = client.put(f"/admin/users/{accounts.admin}", json={"role": "user"}, headers=_as(accounts.admin))
        assert resp.status_code == 403
        assert resp.json()["error"] == "self_action_forbidden"

    def test_cancel_completed_is_400(self, client, store, accounts):
        txn_id = make_transaction(store, status="completed", buyer_id=accounts.buyer, seller_id=accounts.seller)
        resp = client.delete(f"/admin/transactions/{txn_id}", headers=_as(accounts.admin))
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_transition"

    def test_missing_row_is_404(self, client, accounts):
        resp = client.get(f"/admin/data/profiles/{uuid.uuid4()}", headers=_as(accounts.admin))
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_table_outside_allow_list_is_400(self, client, accounts):
        resp = client.put(f"/admin/data/pg_shadow/{uuid.uuid4()}", json={"x": 1}, headers=_as(accounts.admin))
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_input"

    def test_non_object_body_is_400(self, client, store, accounts):
        txn_id = make_transaction(store)
        resp = client.put(f"/admin/transactions/{txn_id}", json=["status"], headers=_as(accounts.admin))
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_input"

    def test_persistence_failure_is_500(self, client, store, audit, accounts):
        txn_id = make_transaction(store, buyer_id=accounts.buyer, seller_id=accounts.seller)
        store.fail_writes = True
        resp = client.delete(f"/admin/transactions/{txn_id}", headers=_as(accounts.admin))
        assert resp.status_code == 500
        assert resp.json()["error"] == "persistence_failure"
        assert audit.records == []


class TestAuditHeader:
    def test_recorded(self, client, store, audit, accounts):
        txn_id = make_transaction(store, buyer_id=accounts.buyer, seller_id=accounts.seller)
        resp = client.put(
            f"/admin/transactions/{txn_id}",
            json={"title": "Updated", "id": str(uuid.uuid4())},
            headers=_as(accounts.admin, **{"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "admin-ui"}),
        )

        assert resp.status_code == 200
        assert resp.headers["X-Audit-Status"] == "recorded"
        assert resp.json()["id"] == txn_id
        assert resp.json()["title"] == "Updated"
        assert audit.records[0].ip_address == "203.0.113.9"
        assert audit.records[0].user_agent == "admin-ui"

    def test_degraded(self, client, store, audit, accounts):
        txn_id = make_transaction(store, buyer_id=accounts.buyer, seller_id=accounts.seller)
        audit.fail = True

        resp = client.delete(f"/admin/transactions/{txn_id}", headers=_as(accounts.admin))

        assert resp.status_code == 200
        assert resp.headers["X-Audit-Status"] == "degraded"
        assert resp.json()["transaction"]["status"] == "cancelled"


class TestAdminRoutes:
    def test_list_rows(self, client, store, accounts):
        make_transaction(store)
        resp = client.get("/admin/data/escrow_transactions?limit=5", headers=_as(accounts.admin))
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_hard_delete_message(self, client, store, accounts):
        txn_id = make_transaction(store)
        resp = client.delete(f"/admin/data/escrow_transactions/{txn_id}", headers=_as(accounts.admin))
        assert resp.json() == {"message": "Row deleted successfully"}

    def test_generic_profile_delete_is_soft(self, client, store, accounts):
        resp = client.delete(f"/admin/data/profiles/{accounts.user}", headers=_as(accounts.admin))
        assert resp.status_code == 200
        assert resp.json()["status"] == "inactive"

    def test_resolve(self, client, store, accounts):
        txn_id = make_transaction(store, status="disputed", buyer_id=accounts.buyer, seller_id=accounts.seller)
        resp = client.post(
            f"/admin/transactions/{txn_id}/resolve", json={"outcome": "cancelled"}, headers=_as(accounts.moderator)
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

    def test_verify_user(self, client, accounts):
        resp = client.post(
            f"/admin/users/{accounts.user}/verification", json={"decision": "verified"}, headers=_as(accounts.admin)
        )
        assert resp.status_code == 200
        assert resp.json()["verification_status"] == "verified"

    def test_deactivate_user(self, client, accounts):
        resp = client.delete(f"/admin/users/{accounts.user}", headers=_as(accounts.moderator))
        assert resp.status_code == 403


class TestPartyRoutes:
    def test_create_join_and_act(self, client, accounts):
        resp = client.post(
            "/transactions",
            json={"title": "Camera", "amount": "450.00", "currency": "USD", "role": "seller"},
            headers=_as(accounts.seller),
        )
        assert resp.status_code == 201
        txn_id = resp.json()["transaction"]["id"]
        assert resp.json()["success"] is True

        resp = client.post(f"/transactions/{txn_id}/join", headers=_as(accounts.buyer))
        assert resp.status_code == 200
        assert resp.json()["buyer_id"] == accounts.buyer

        resp = client.post(f"/transactions/{txn_id}/actions/accept", headers=_as(accounts.seller))
        assert resp.json()["status"] == "in_progress"

        resp = client.post(f"/transactions/{txn_id}/actions/confirm-receipt", headers=_as(accounts.buyer))
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_transition"

    def test_create_rejects_bad_amount(self, client, accounts):
        resp = client.post("/transactions", json={"amount": "-5", "role": "buyer"}, headers=_as(accounts.buyer))
        assert resp.status_code == 400

    def test_submit_verification(self, client, store, accounts):
        resp = client.post(
            "/verification/submit",
            json={"accountType": "individual", "personalDetails": {"firstName": "Ana", "lastName": "Lee"}},
            headers=_as(accounts.user),
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
