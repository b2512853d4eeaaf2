"""Error kinds raised by the friend relationship engine and graph adapter.

Every error carries a stable ``kind`` and the HTTP status the boundary
layer maps it to, so callers can tell "not allowed" from "does not exist"
from "already happened".
"""


class FriendshipError(Exception):
    """Base class for all friend relationship failures."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "kind": self.kind}


class InvalidInputError(FriendshipError):
    """Malformed or self-referential input."""

    kind = "invalid_input"
    status_code = 400


class NotFoundError(FriendshipError):
    """A user or request does not exist."""

    kind = "not_found"
    status_code = 404


class UnauthorizedError(FriendshipError):
    """The acting user is not entitled to perform the transition."""

    kind = "unauthorized"
    status_code = 403


class ConflictError(FriendshipError):
    """The transition conflicts with the current relationship state."""

    kind = "conflict"
    status_code = 409


class InfrastructureError(FriendshipError):
    """The graph store is unreachable, timed out, or rejected a query."""

    kind = "infrastructure"
    status_code = 503
