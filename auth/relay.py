"""
auth/relay.py -- Bearer token propagation across a service boundary.

When the orders service needs the products service to answer on behalf of the
current caller, it does not log in again and it does not share a session
store. It reattaches the caller's own bearer token to the outbound request and
lets the peer validate it independently with the shared secret.

This module performs no validation. It only moves the credential:
  - bearer_token() extracts it (scheme name stripped, credential untouched).
  - forward() attaches it unchanged, and only when present and non-empty.
    With no token the peer call goes out unauthenticated and a protected peer
    route answers 401 on its own.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import requests

_SCHEME = "Bearer"


class _HasHeaders(Protocol):
    headers: Mapping[str, str]


def bearer_token(incoming: _HasHeaders) -> str | None:
    """Return the bearer credential from incoming's Authorization header, or None.

    The scheme name is matched case-insensitively (RFC 7235), so "bearer x"
    and "BEARER x" both yield "x". The credential itself is returned unchanged.
    """
    header = incoming.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != _SCHEME.lower():
        return None
    if not token.strip():
        return None
    return token


def forward(incoming: _HasHeaders, outgoing: requests.Request) -> requests.Request:
    """Copy the caller's bearer token from incoming onto the outgoing peer request.

    The header is always sent with the canonical "Bearer" scheme name.
    """
    token = bearer_token(incoming)
    if token:
        outgoing.headers["Authorization"] = f"{_SCHEME} {token}"
    return outgoing
