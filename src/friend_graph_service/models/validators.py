"""Shared Pydantic types and input validation for friend operations.

Validation functions return typed values or raise ``InvalidInputError``;
they run before any graph session is opened.
"""

from __future__ import annotations

from typing import Annotated, Literal, get_args

from pydantic import Field, StringConstraints

from ..errors import InvalidInputError

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

UserId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
"""Non-empty node identifier for a user."""

RequestId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
"""Opaque friend request identifier."""

Timestamp = Annotated[float, Field(ge=0.0)]
"""Unix timestamp in seconds."""


# ---------------------------------------------------------------------------
# Literal enums
# ---------------------------------------------------------------------------

RequestStatus = Literal["pending", "accepted", "rejected", "cancelled"]
Decision = Literal["accepted", "rejected"]

_STATUSES: frozenset[str] = frozenset(get_args(RequestStatus))
_DECISIONS: frozenset[str] = frozenset(get_args(Decision))


# ---------------------------------------------------------------------------
# Validation functions
# ---------------------------------------------------------------------------


def validate_user_id(value: object, field: str = "user_id") -> str:
    """Return a stripped, non-empty user id."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field} must be a non-empty string")
    return value.strip()


def validate_request_id(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError("request_id must be a non-empty string")
    return value.strip()


def validate_user_pair(
    first: object,
    second: object,
    second_field: str = "receiver_id",
    self_message: str = "Cannot send a friend request to yourself",
) -> tuple[str, str]:
    """Validate two distinct user ids.

    A relationship edge never points from a user to itself; ``self_message``
    names the operation that was attempted.
    """
    a = validate_user_id(first)
    b = validate_user_id(second, second_field)
    if a == b:
        raise InvalidInputError(self_message)
    return a, b


def validate_decision(value: object) -> Decision:
    """Accept only ``accepted`` or ``rejected`` as a resolution."""
    if not isinstance(value, str) or value.strip().lower() not in _DECISIONS:
        raise InvalidInputError('Status must be either "accepted" or "rejected"')
    return value.strip().lower()  # type: ignore[return-value]


def validate_status(value: object | None, default: RequestStatus = "pending") -> RequestStatus:
    """Validate a request status filter, falling back to ``default``."""
    if value is None:
        return default
    if not isinstance(value, str) or value.strip().lower() not in _STATUSES:
        raise InvalidInputError(f"Invalid request status: {value!r}. Must be one of: {', '.join(sorted(_STATUSES))}")
    return value.strip().lower()  # type: ignore[return-value]
