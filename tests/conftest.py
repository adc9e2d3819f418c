"""
tests/conftest.py -- Shared test fixtures for the products and orders services.

This module provides:
  - FakeClock / clock: a controllable epoch-seconds clock for limiter and token tests
  - settings_factory: explicit Settings (fast bcrypt, fixed secret, no .env)
  - peer_factory: PeerClient whose requests.Session is wired to a transport
    from transports.py
  - products_client: TestClient for the products app (module scope)
  - fresh_products_client: same, but a brand-new app per test (clean limiter)
  - orders_client: (TestClient, adapter) for the orders app, peer calls routed
    into products_client so the orders -> products hop runs end-to-end
  - admin_token: a valid bearer token for "admin"

Design: the peer hop uses a real requests.Session with a transport adapter
mounted on the peer URL (transports.ASGIAdapter). The adapter replays each
prepared request against the products TestClient, so the orders service
exercises its real PeerClient and auth.relay code and the products service
re-validates the forwarded token with its own TokenValidator.
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
import requests
from fastapi.testclient import TestClient
from requests.adapters import BaseAdapter

from api.main import create_orders_app, create_products_app
from api.peer import PeerClient
from core.config import Settings, load_settings
from transports import ASGIAdapter

TEST_SECRET = "test-signing-secret-0123456789abcdef"
PEER_URL = "http://products.test"

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable returning a fixed epoch time that tests advance by hand."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def _make_settings(**overrides) -> Settings:
    """Settings with a fixed secret and the minimum bcrypt cost.

    _env_file=None keeps a developer's local .env out of the test run.
    """
    values = {
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "peer_service_url": PEER_URL,
        "_env_file": None,
    }
    values.update(overrides)
    return load_settings(**values)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return _make_settings


# ---------------------------------------------------------------------------
# Peer
# ---------------------------------------------------------------------------


def _make_peer(adapter: BaseAdapter, timeout: float = 2.0) -> PeerClient:
    session = requests.Session()
    session.mount(PEER_URL, adapter)
    return PeerClient("products", PEER_URL, timeout=timeout, session=session)


@pytest.fixture
def peer_factory() -> Callable[..., PeerClient]:
    return _make_peer


# ---------------------------------------------------------------------------
# App clients
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def products_client() -> Generator[TestClient, None, None]:
    """TestClient for the products service, shared by one test module."""
    app = create_products_app(_make_settings())
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def fresh_products_client() -> Generator[TestClient, None, None]:
    """Products TestClient on a brand-new app -- empty login limiter, reseeded stores.

    Use for tests that depend on exact login attempt counts.
    """
    app = create_products_app(_make_settings())
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture(scope="module")
def orders_client(products_client: TestClient) -> Generator[tuple[TestClient, ASGIAdapter], None, None]:
    """Yield (orders_client, adapter) with peer calls routed into products_client."""
    adapter = ASGIAdapter(products_client)
    app = create_orders_app(_make_settings(), peer=_make_peer(adapter))
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, adapter


@pytest.fixture(scope="module")
def admin_token(products_client: TestClient) -> str:
    """A valid bearer token for "admin", minted by the products service's issuer.

    Both services share TEST_SECRET, issuer and audience, so the orders
    service accepts it too.
    """
    return products_client.app.state.token_issuer.issue("admin").token
