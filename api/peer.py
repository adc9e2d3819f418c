"""
api/peer.py -- Outbound calls from one service to its peer.

Used by the orders service to look up products in the products service. The
caller's bearer token is reattached through auth.relay.forward() so the peer
sees the same identity and validates it independently.

Failure semantics (no retries anywhere):
  - Connection error or timeout -> UpstreamUnavailable ("Cannot reach ...").
  - Peer answered with a non-2xx status -> UpstreamUnavailable ("... not found.").
    401 from the peer lands here too: the caller cannot tell "missing" from
    "not allowed to see it" without extra signal, and we do not add one.

Every request carries an explicit timeout (PEER_TIMEOUT_SECONDS). The base
design has none; a hung peer would otherwise pin a worker thread forever.

The health probe never raises. It only annotates the caller's own /health.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from auth.relay import forward
from core.errors import UpstreamUnavailable

logger = logging.getLogger("meshauth.peer")


class PeerClient:
    """Blocking HTTP client for one peer service.

    Args:
        name:     Human-readable peer name used in error messages ("products").
        base_url: Peer root URL without trailing slash, e.g. http://products:8080.
        timeout:  Seconds before a connect or read is treated as unreachable.
        session:  Optional requests.Session (tests mount transport adapters on it).
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        # Known internal peer: no reason to follow long redirect chains.
        self._session.max_redirects = 3

    def get_record(self, incoming, resource: str, record_id: int, label: str) -> dict[str, Any]:
        """GET <base>/api/<resource>/<id> on behalf of the caller of incoming.

        Args:
            incoming:  The inbound request whose bearer token is forwarded.
            resource:  Collection name on the peer, e.g. "products".
            record_id: Id to look up.
            label:     Singular display name for error messages, e.g. "Product".

        Returns the decoded JSON body. Raises UpstreamUnavailable on any failure.
        """
        url = f"{self.base_url}/api/{resource}/{record_id}"
        outgoing = forward(incoming, requests.Request("GET", url))
        try:
            resp = self._session.send(self._session.prepare_request(outgoing), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("%s service unreachable for %s: %s", self.name, url, e)
            raise UpstreamUnavailable(f"Cannot reach the {self.name} service.") from e
        if not resp.ok:
            logger.info("%s service answered %d for %s", self.name, resp.status_code, url)
            raise UpstreamUnavailable(f"{label} not found.")
        try:
            return resp.json()
        except ValueError as e:
            logger.warning("%s service returned a non-JSON body for %s", self.name, url)
            raise UpstreamUnavailable(f"{label} could not be verified.") from e

    def probe(self) -> bool:
        """Return True if GET <base>/health answers 2xx within the timeout."""
        try:
            resp = self._session.get(f"{self.base_url}/health", timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug("%s health probe failed: %s", self.name, e)
            return False
        return resp.ok

    def close(self) -> None:
        self._session.close()
