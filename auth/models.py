"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, the limiter,
and the token classes do the work.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """A seeded account. Immutable for the process lifetime.

    password_hash is a bcrypt digest with the salt and cost factor embedded,
    so no separate salt column is needed.
    """

    username: str
    password_hash: str


@dataclass
class RateLimitEntry:
    """Login attempt counter for one identity.

    attempt_count is only meaningful while now < window_reset_at (epoch
    seconds). Once the window has passed, the limiter resets the entry on the
    next touch instead of reading the stale count.
    """

    attempt_count: int
    window_reset_at: float


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed bearer token plus the metadata returned to the client."""

    token: str
    token_id: str  # jti claim
    issued_at: int  # epoch seconds
    expires_at: int  # epoch seconds

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds, reported to the client for convenience."""
        return self.expires_at - self.issued_at


@dataclass(frozen=True)
class Principal:
    """The caller identity established by validating a bearer token."""

    username: str
    token_id: str
    issued_at: int
    expires_at: int
