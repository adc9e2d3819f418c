"""
auth/passwords.py -- Password hashing and timing-equalized credential checks.

Security design decisions:
  bcrypt, used directly (no passlib wrapper). The cost factor (default 12) makes
  each verification deliberately slow, which is what low-entropy secrets need
  against offline brute force. The salt and cost are embedded in the digest,
  so accounts carry a single string.

  bcrypt.checkpw compares in constant time. Nothing here compares digests with
  ==, and nothing returns early on a partial match.

  authenticate() always runs one bcrypt check, against a dummy digest when the
  username is unknown, so response time does not reveal whether an account
  exists. The route layer returns the same 401 for both cases.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt

if TYPE_CHECKING:
    from auth.models import Identity
    from auth.store import AccountStore

DEFAULT_ROUNDS = 12


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt digest of the given plaintext password.

    bcrypt only looks at the first 72 bytes of input. The login model caps
    passwords at 100 characters, so this matters only for multi-byte input.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt digest.

    A malformed digest (bad salt, wrong prefix) verifies as False.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=8)
def dummy_hash(rounds: int) -> str:
    """Return the cached timing-equalization digest for this cost factor.

    AccountStore.seeded() calls this at startup so the first unknown-user
    login does not pay for building it.
    """
    # Same cost factor as real digests so the unknown-user path costs the same.
    return hash_password("meshauth_timing_dummy", rounds=rounds)


def authenticate(
    store: AccountStore,
    username: str,
    password: str,
    rounds: int = DEFAULT_ROUNDS,
) -> Identity | None:
    """Check a username/password pair with timing equalization.

    - Unknown username: bcrypt runs against the dummy digest (same cost).
    - Wrong password:   bcrypt runs against the real digest (same cost).

    Returns the Identity on success, None on any failure.
    """
    identity = store.get(username)
    if identity is None:
        # Do NOT return before running bcrypt.
        verify_password(password, dummy_hash(rounds))
        return None
    if not verify_password(password, identity.password_hash):
        return None
    return identity
