"""
directory_authz.access.reasons

Closed vocabulary of authorization denial reasons.

Responsibilities:
- Define the stable reason codes carried by `AccessCheckResult.reason`.
- Render a human-readable message for each code (safe to log or show to end users).
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class DenialReason(str, Enum):
    PRINCIPAL_NOT_FOUND = "principal-not-found"
    PRINCIPAL_DISABLED = "principal-disabled"
    NO_ROLE = "no-role"
    PERMISSION_NOT_GRANTED = "permission-not-granted"
    TARGET_REQUIRED = "target-required"
    PROTECTED_ENTITY = "protected-entity"
    GROUP_NOT_FOUND = "group-not-found"
    INVALID_ENTITY_TYPE = "invalid-entity-type"


# Message templates keyed by (reason, variant). The "default" variant always exists.
_MESSAGES: dict[tuple[DenialReason, str], str] = {
    (DenialReason.PRINCIPAL_NOT_FOUND, "default"): "User '{user_id}' not found or not authenticated",
    (DenialReason.PRINCIPAL_DISABLED, "default"): "User '{user_id}' is disabled",
    (DenialReason.NO_ROLE, "default"): "User '{user_id}' has no valid role for this application",
    (DenialReason.PERMISSION_NOT_GRANTED, "default"): (
        "Permission '{permission}' is not granted to role '{role}'"
    ),
    (DenialReason.TARGET_REQUIRED, "default"): "A target user id is required for this operation",
    (DenialReason.TARGET_REQUIRED, "password"): (
        "A target user id is required to change a password"
    ),
    (DenialReason.TARGET_REQUIRED, "group"): "A group id is required for this operation",
    (DenialReason.PROTECTED_ENTITY, "default"): "Cannot modify protected user '{user_id}'",
    (DenialReason.PROTECTED_ENTITY, "password"): (
        "Cannot change the password of protected user '{user_id}'"
    ),
    (DenialReason.PROTECTED_ENTITY, "add_to_group"): (
        "Cannot add users to protected group '{group_name}'"
    ),
    (DenialReason.PROTECTED_ENTITY, "remove_from_group"): (
        "Cannot remove users from protected group '{group_name}'"
    ),
    (DenialReason.GROUP_NOT_FOUND, "default"): "Group '{group_id}' not found",
    (DenialReason.INVALID_ENTITY_TYPE, "default"): (
        "Invalid entity type '{entity_type}' for membership operation"
    ),
}


def render_message(reason: DenialReason, variant: str = "default", **params: Any) -> str:
    template = _MESSAGES.get((reason, variant)) or _MESSAGES[(reason, "default")]
    return template.format(**params)


# --- Module Notes -----------------------------------------------------------
# Reason codes are a wire contract: downstream layers pattern-match on them, so values
# must not change. Messages may change freely and are for humans only.
