"""Shared fixtures for the admin action tests."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from src.admin.service import AdminActionService
from src.models.enums import Role
from src.security.guard import AuthorizationGuard
from src.security.permissions import default_catalog
from tests.fakes import FIXED_NOW, InMemoryStore, RecordingAuditTrail, StoreDirectory, make_profile


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def audit() -> RecordingAuditTrail:
    return RecordingAuditTrail()


@pytest.fixture()
def accounts(store: InMemoryStore) -> SimpleNamespace:
    """One account per role plus a buyer/seller pair."""
    return SimpleNamespace(
        admin=make_profile(store, Role.ADMIN.value),
        other_admin=make_profile(store, Role.ADMIN.value),
        moderator=make_profile(store, Role.MODERATOR.value),
        user=make_profile(store, Role.USER.value),
        buyer=make_profile(store, Role.USER.value),
        seller=make_profile(store, Role.USER.value),
    )


@pytest.fixture()
def guard(store: InMemoryStore) -> AuthorizationGuard:
    return AuthorizationGuard(default_catalog(), StoreDirectory(store), top_level_role=Role.ADMIN.value)


@pytest.fixture()
def service(guard: AuthorizationGuard, store: InMemoryStore, audit: RecordingAuditTrail) -> AdminActionService:
    return AdminActionService(guard=guard, store=store, audit=audit, list_limit=100, clock=lambda: FIXED_NOW)
