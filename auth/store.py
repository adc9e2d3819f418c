"""
auth/store.py -- In-memory account repository.

Pattern: Repository. AccountStore is the only thing that holds Identity
records; the login route reaches it through app.state and never touches the
underlying dict.

Accounts are seeded once at startup from a fixed set. There is no
registration flow and nothing is persisted -- a restart reseeds the same
accounts with fresh salts.

Concurrency: a threading.Lock guards every access to the dict, because sync
FastAPI handlers run concurrently in the worker thread pool.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping

from auth.models import Identity
from auth.passwords import DEFAULT_ROUNDS, dummy_hash, hash_password

logger = logging.getLogger("meshauth.auth")

# Demo credentials shared by both services.
DEFAULT_ACCOUNTS: Mapping[str, str] = {
    "admin": "admin123",
    "user": "user123",
}


class AccountStore:
    """Thread-safe get/put/delete over Identity records keyed by username.

    Usage:
        store = AccountStore.seeded(DEFAULT_ACCOUNTS, rounds=12)
        identity = store.get("admin")
    """

    def __init__(self, identities: Iterable[Identity] = ()) -> None:
        self._lock = threading.Lock()
        self._identities: dict[str, Identity] = {i.username: i for i in identities}

    @classmethod
    def seeded(cls, accounts: Mapping[str, str], rounds: int = DEFAULT_ROUNDS) -> AccountStore:
        """Build a store from a username -> plaintext mapping, hashing each password.

        Also builds the unknown-user dummy digest for the same cost factor.
        """
        store = cls(Identity(username=u, password_hash=hash_password(p, rounds=rounds)) for u, p in accounts.items())
        dummy_hash(rounds)
        logger.info("Seeded %d accounts", len(store))
        return store

    def get(self, username: str) -> Identity | None:
        """Return the Identity for username (exact, case-sensitive match) or None."""
        with self._lock:
            return self._identities.get(username)

    def put(self, identity: Identity) -> None:
        """Insert or replace the identity keyed by its username."""
        with self._lock:
            self._identities[identity.username] = identity

    def delete(self, username: str) -> bool:
        """Remove an identity. Returns False if it did not exist."""
        with self._lock:
            return self._identities.pop(username, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._identities)
