"""Error kinds raised by admin actions.

Every error carries a stable machine-readable `kind` and the HTTP status
the API layer maps it to. AuditWriteError never reaches a caller: the
mutation it documents has already committed.
"""

from __future__ import annotations


class AdminActionError(Exception):
    """Base class for all admin action failures."""

    kind: str = "admin_action_error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class AuthorizationError(AdminActionError):
    """Actor lacks the permission. Nothing was read or written."""

    kind = "authorization_denied"
    status_code = 403


class NotFoundError(AdminActionError):
    kind = "not_found"
    status_code = 404


class InvalidTransitionError(AdminActionError):
    """Requested status change violates the transaction state machine."""

    kind = "invalid_transition"
    status_code = 400


class SelfActionForbiddenError(AdminActionError):
    """Actor tried to revoke their own privileged access."""

    kind = "self_action_forbidden"
    status_code = 403


class InvalidInputError(AdminActionError):
    kind = "invalid_input"
    status_code = 400


class PersistenceError(AdminActionError):
    """Storage write did not complete."""

    kind = "persistence_failure"
    status_code = 500


class AuditWriteError(PersistenceError):
    """The audit ledger append did not complete."""

    kind = "audit_write_failure"
    status_code = 500
