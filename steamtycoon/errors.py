"""Rejection reasons and fatal errors for Steam Tycoon commands."""

from enum import Enum
from typing import Any


class RejectionReason(Enum):
    """Why a command was refused. The state is unchanged in every case."""

    ILLEGAL_PHASE = "illegal_phase"
    NOT_ENTITLED = "not_entitled"
    INVALID_PLACEMENT = "invalid_placement"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    NO_ROUTE = "no_route"
    UNKNOWN_PLAYER = "unknown_player"
    UNKNOWN_ACTION = "unknown_action"
    INVALID_ARGUMENT = "invalid_argument"


class InvariantViolation(RuntimeError):
    """Internal consistency failure. Never expected in correct play."""


# (reason, message) pair returned by validators
Rejection = tuple[RejectionReason, str]


def rejected(reason: RejectionReason, error: str) -> dict[str, Any]:
    """Build a failed command result."""
    return {"success": False, "reason": reason, "error": error}


def succeeded(message: str, **extra: Any) -> dict[str, Any]:
    """Build a successful command result."""
    result: dict[str, Any] = {"success": True, "message": message}
    result.update(extra)
    return result
