"""Transaction state machine — validates every status change.

Pure logic over a status value; it never touches storage. Direct status
overwrites from the admin editor are mapped back onto an action so that
there is exactly one path by which a status can change.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from src.admin.errors import InvalidTransitionError
from src.escrow.states import (
    ACTION_ALIASES,
    RESOLUTION_OUTCOMES,
    RESOLVE_ROLES,
    STATUS_ALIASES,
    TERMINAL_STATUSES,
    TRANSITIONS,
)
from src.models.enums import TransactionAction, TransactionStatus

logger = logging.getLogger(__name__)


def parse_status(value: Any) -> TransactionStatus:
    """Normalize a caller-supplied status. Unknown strings are rejected."""
    if isinstance(value, TransactionStatus):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text in STATUS_ALIASES:
        return STATUS_ALIASES[text]
    try:
        return TransactionStatus(text)
    except ValueError:
        msg = f"Unknown transaction status: {value!r}"
        raise InvalidTransitionError(msg) from None


def parse_action(value: Any) -> TransactionAction:
    if isinstance(value, TransactionAction):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text in ACTION_ALIASES:
        return ACTION_ALIASES[text]
    try:
        return TransactionAction(text.replace("-", "_"))
    except ValueError:
        msg = f"Unknown transaction action: {value!r}"
        raise InvalidTransitionError(msg) from None


class TransactionStateMachine:
    """Stateless validator for escrow transaction transitions."""

    def is_terminal(self, status: Any) -> bool:
        return parse_status(status) in TERMINAL_STATUSES

    def valid_actions(self, current: Any) -> list[TransactionAction]:
        """Actions available from a status (RESOLVE only from disputed)."""
        status = parse_status(current)
        actions = list(TRANSITIONS.get(status, {}).keys())
        if status == TransactionStatus.DISPUTED:
            actions.append(TransactionAction.RESOLVE)
        return actions

    def apply_transition(
        self,
        current: Any,
        action: Any,
        actor_role: str | None,
        outcome: Any = None,
    ) -> TransactionStatus:
        """Return the status reached by `action`, or raise InvalidTransitionError.

        Terminal states are final for every role, the top-level one included.
        """
        status = parse_status(current)
        act = parse_action(action)

        if status in TERMINAL_STATUSES:
            msg = f"Transaction is {status.value}; no further transitions are allowed"
            raise InvalidTransitionError(msg)

        if act == TransactionAction.RESOLVE:
            return self._resolve(status, actor_role, outcome)

        next_status = TRANSITIONS.get(status, {}).get(act)
        if next_status is None:
            valid = [a.value for a in self.valid_actions(status)]
            msg = f"Invalid transition: {status.value} --{act.value}--> ??? (valid: {valid})"
            raise InvalidTransitionError(msg)

        logger.debug("Transition: %s --%s--> %s", status.value, act.value, next_status.value)
        return next_status

    def _resolve(
        self,
        status: TransactionStatus,
        actor_role: str | None,
        outcome: Any,
    ) -> TransactionStatus:
        if status != TransactionStatus.DISPUTED:
            msg = f"Only disputed transactions can be resolved (status is {status.value})"
            raise InvalidTransitionError(msg)
        if actor_role not in RESOLVE_ROLES:
            msg = "Disputes are resolved by an administrator"
            raise InvalidTransitionError(msg)
        if outcome is None:
            msg = "Resolution requires an outcome: completed or cancelled"
            raise InvalidTransitionError(msg)
        target = parse_status(outcome)
        if target not in RESOLUTION_OUTCOMES:
            msg = f"Invalid resolution outcome: {target.value}"
            raise InvalidTransitionError(msg)
        return target

    def action_for_status(
        self,
        current: Any,
        target: Any,
        actor_role: str | None,
    ) -> tuple[TransactionAction, TransactionStatus]:
        """Map a direct status overwrite onto the action that produces it.

        Raises InvalidTransitionError when no single action leads from
        `current` to `target`.
        """
        status = parse_status(current)
        wanted = parse_status(target)

        if status == TransactionStatus.DISPUTED and wanted in RESOLUTION_OUTCOMES:
            return TransactionAction.RESOLVE, self.apply_transition(
                status, TransactionAction.RESOLVE, actor_role, outcome=wanted
            )

        if status in TERMINAL_STATUSES:
            msg = f"Transaction is {status.value}; no further transitions are allowed"
            raise InvalidTransitionError(msg)

        for act, next_status in TRANSITIONS.get(status, {}).items():
            if next_status == wanted:
                return act, self.apply_transition(status, act, actor_role)

        msg = f"Invalid transition: {status.value} -> {wanted.value}"
        raise InvalidTransitionError(msg)

    def require_parties(self, record: Mapping[str, Any], action: Any) -> None:
        """Reject progress on a transaction still waiting for its counterparty.

        A transaction with a null buyer or seller sits in `pending`; only
        `cancel` is allowed until both parties are assigned.
        """
        act = parse_action(action)
        if act == TransactionAction.CANCEL:
            return
        if record.get("buyer_id") is None or record.get("seller_id") is None:
            msg = f"Cannot {act.value}: transaction is awaiting a counterparty"
            raise InvalidTransitionError(msg)
