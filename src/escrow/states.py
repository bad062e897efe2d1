"""Escrow transaction states and transition map.

Party actions and admin edits are both validated against this table.
Terminal states have no outgoing transitions: they represent settled money.
"""

from __future__ import annotations

from src.models.enums import Role, TransactionAction, TransactionStatus

# Transition map: {current_state: {action: next_state}}
TRANSITIONS: dict[TransactionStatus, dict[TransactionAction, TransactionStatus]] = {
    TransactionStatus.PENDING: {
        TransactionAction.ACCEPT: TransactionStatus.IN_PROGRESS,
        TransactionAction.CANCEL: TransactionStatus.CANCELLED,
        TransactionAction.RAISE_DISPUTE: TransactionStatus.DISPUTED,
    },
    TransactionStatus.IN_PROGRESS: {
        TransactionAction.DELIVER: TransactionStatus.DELIVERED,
        TransactionAction.CANCEL: TransactionStatus.CANCELLED,
        TransactionAction.RAISE_DISPUTE: TransactionStatus.DISPUTED,
    },
    TransactionStatus.DELIVERED: {
        TransactionAction.CONFIRM_RECEIPT: TransactionStatus.COMPLETED,
        TransactionAction.CANCEL: TransactionStatus.CANCELLED,
        TransactionAction.RAISE_DISPUTE: TransactionStatus.DISPUTED,
    },
    # RESOLVE has two outcomes; the admin picks one of RESOLUTION_OUTCOMES
    TransactionStatus.DISPUTED: {},
    TransactionStatus.COMPLETED: {},
    TransactionStatus.CANCELLED: {},
}

RESOLUTION_OUTCOMES: frozenset[TransactionStatus] = frozenset({
    TransactionStatus.COMPLETED,
    TransactionStatus.CANCELLED,
})

TERMINAL_STATUSES: frozenset[TransactionStatus] = frozenset({
    TransactionStatus.COMPLETED,
    TransactionStatus.CANCELLED,
})

# Only staff may decide a dispute
RESOLVE_ROLES: frozenset[str] = frozenset({Role.ADMIN.value, Role.MODERATOR.value})

# Which side of the deal may trigger each party action
PARTY_ACTIONS: dict[TransactionAction, frozenset[str]] = {
    TransactionAction.ACCEPT: frozenset({"seller"}),
    TransactionAction.DELIVER: frozenset({"seller"}),
    TransactionAction.CONFIRM_RECEIPT: frozenset({"buyer"}),
    TransactionAction.CANCEL: frozenset({"buyer", "seller"}),
    TransactionAction.RAISE_DISPUTE: frozenset({"buyer", "seller"}),
}

# Spellings accepted from callers, mapped to canonical values
STATUS_ALIASES: dict[str, TransactionStatus] = {
    "accepted": TransactionStatus.IN_PROGRESS,
    "in-progress": TransactionStatus.IN_PROGRESS,
    "canceled": TransactionStatus.CANCELLED,
}

ACTION_ALIASES: dict[str, TransactionAction] = {
    "confirm-receipt": TransactionAction.CONFIRM_RECEIPT,
    "raise-dispute": TransactionAction.RAISE_DISPUTE,
    "dispute": TransactionAction.RAISE_DISPUTE,
}
