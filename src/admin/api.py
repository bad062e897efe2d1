"""Admin and party HTTP routes — thin adapters over AdminActionService.

Every route takes the actor id from the identity header and hands the
request to the service. Errors are mapped by error_handlers.py. A
committed action whose audit write failed still returns 2xx, flagged
with the `X-Audit-Status: degraded` header.
"""
# ruff: noqa: B008

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from src.admin.auth import get_action_service, request_origin, require_actor_id
from src.admin.service import ActionOutcome, AdminActionService
from src.models.enums import EntityKind
from src.schemas.actions import (
    CreateTransactionRequest,
    ResolveDisputeRequest,
    VerificationSubmission,
    VerifyUserRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])
party_router = APIRouter(tags=["transactions"])

AUDIT_STATUS_HEADER = "X-Audit-Status"


def _respond(outcome: ActionOutcome, content: Any = None, status_code: int = 200) -> JSONResponse:
    headers = {AUDIT_STATUS_HEADER: "degraded" if outcome.degraded else "recorded"}
    body = outcome.snapshot if content is None else content
    return JSONResponse(content=jsonable_encoder(body), status_code=status_code, headers=headers)


# ── Permissions ──────────────────────────────────────────────────────


@router.get("/permissions")
async def my_permissions(
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> dict[str, list[str]]:
    """Effective permissions of the calling actor."""
    return {"permissions": await service.permissions_of(actor_id)}


# ── Generic data browser ─────────────────────────────────────────────


@router.get("/data/{table}")
async def list_rows(
    table: str,
    limit: int | None = Query(None, ge=1),
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    rows = await service.list_entities(actor_id, table, limit)
    return JSONResponse(content=jsonable_encoder(rows))


@router.get("/data/{table}/{row_id}")
async def get_row(
    table: str,
    row_id: str,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    row = await service.get_entity(actor_id, table, row_id)
    return JSONResponse(content=jsonable_encoder(row))


@router.put("/data/{table}/{row_id}")
async def update_row(
    request: Request,
    table: str,
    row_id: str,
    changes: dict[str, Any] = Body(...),
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.update_entity(actor_id, table, row_id, changes, request_origin(request))
    return _respond(outcome)


@router.delete("/data/{table}/{row_id}")
async def delete_row(
    request: Request,
    table: str,
    row_id: str,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.delete_entity(actor_id, table, row_id, request_origin(request))
    if outcome.snapshot is None:
        return _respond(outcome, {"message": "Row deleted successfully"})
    return _respond(outcome)


# ── Transactions ─────────────────────────────────────────────────────


@router.get("/transactions/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    row = await service.get_entity(actor_id, EntityKind.ESCROW_TRANSACTIONS, transaction_id)
    return JSONResponse(content=jsonable_encoder(row))


@router.put("/transactions/{transaction_id}")
async def update_transaction(
    request: Request,
    transaction_id: str,
    changes: dict[str, Any] = Body(...),
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.update_transaction(actor_id, transaction_id, changes, request_origin(request))
    return _respond(outcome)


@router.delete("/transactions/{transaction_id}")
async def cancel_transaction(
    request: Request,
    transaction_id: str,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    """Cancel rather than delete. The row stays for the record."""
    outcome = await service.cancel_transaction(actor_id, transaction_id, request_origin(request))
    return _respond(outcome, {
        "message": "Transaction cancelled successfully",
        "transaction": outcome.snapshot,
    })


@router.post("/transactions/{transaction_id}/resolve")
async def resolve_dispute(
    request: Request,
    transaction_id: str,
    body: ResolveDisputeRequest,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.resolve_dispute(actor_id, transaction_id, body.outcome, request_origin(request))
    return _respond(outcome)


# ── Users ────────────────────────────────────────────────────────────


@router.put("/users/{user_id}")
async def update_user(
    request: Request,
    user_id: str,
    changes: dict[str, Any] = Body(...),
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.update_user(actor_id, user_id, changes, request_origin(request))
    return _respond(outcome)


@router.delete("/users/{user_id}")
async def deactivate_user(
    request: Request,
    user_id: str,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.deactivate_user(actor_id, user_id, request_origin(request))
    return _respond(outcome)


@router.post("/users/{user_id}/verification")
async def verify_user(
    request: Request,
    user_id: str,
    body: VerifyUserRequest,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.verify_user(actor_id, user_id, body.decision, request_origin(request))
    return _respond(outcome)


# ── Party routes ─────────────────────────────────────────────────────


@party_router.post("/transactions")
async def create_transaction(
    request: Request,
    body: CreateTransactionRequest,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.create_transaction(actor_id, body, request_origin(request))
    return _respond(outcome, {"success": True, "transaction": outcome.snapshot}, status_code=201)


@party_router.post("/transactions/{transaction_id}/join")
async def join_transaction(
    request: Request,
    transaction_id: str,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.join_transaction(actor_id, transaction_id, request_origin(request))
    return _respond(outcome)


@party_router.post("/transactions/{transaction_id}/actions/{action}")
async def transaction_action(
    request: Request,
    transaction_id: str,
    action: str,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    """accept, deliver, confirm-receipt, cancel, raise-dispute."""
    outcome = await service.apply_party_action(actor_id, transaction_id, action, request_origin(request))
    return _respond(outcome)


@party_router.post("/verification/submit")
async def submit_verification(
    request: Request,
    body: VerificationSubmission,
    actor_id: str = Depends(require_actor_id),
    service: AdminActionService = Depends(get_action_service),
) -> JSONResponse:
    outcome = await service.submit_verification(actor_id, body, request_origin(request))
    return _respond(outcome, {"success": True})
