"""
tests/transports.py -- requests transport adapters for exercising PeerClient.

Mounted on a requests.Session for the peer URL, they let the orders service
run its real PeerClient and relay code without a network:

  ASGIAdapter     -- replays each request against a products TestClient
  FailingAdapter  -- raises a given requests exception (refused, timeout)
  StaticAdapter   -- answers with a fixed status and body

Each adapter records what it was sent in .sent.
"""

from __future__ import annotations

from urllib.parse import urlsplit

import requests
from fastapi.testclient import TestClient
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict


class ASGIAdapter(BaseAdapter):
    """requests transport that replays every request against a TestClient.

    Keeps the prepared requests in .sent so tests can assert on exactly what
    went over the wire (e.g. the forwarded Authorization header).
    """

    def __init__(self, client: TestClient) -> None:
        super().__init__()
        self.client = client
        self.sent: list[requests.PreparedRequest] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append(request)
        parts = urlsplit(request.url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        resp = self.client.request(request.method, path, headers=dict(request.headers), content=request.body)
        out = requests.Response()
        out.status_code = resp.status_code
        out._content = resp.content
        out.headers = CaseInsensitiveDict(resp.headers)
        out.encoding = "utf-8"
        out.url = request.url
        out.request = request
        return out

    def close(self) -> None:
        pass


class FailingAdapter(BaseAdapter):
    """requests transport that raises the given exception for every request."""

    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc
        self.sent: list[requests.PreparedRequest] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append(request)
        raise self.exc

    def close(self) -> None:
        pass


class StaticAdapter(BaseAdapter):
    """requests transport that answers every request with a fixed status and body."""

    def __init__(self, status_code: int, body: bytes = b"{}") -> None:
        super().__init__()
        self.status_code = status_code
        self.body = body
        self.sent: list[requests.PreparedRequest] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append(request)
        out = requests.Response()
        out.status_code = self.status_code
        out._content = self.body
        out.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
        out.encoding = "utf-8"
        out.url = request.url
        out.request = request
        return out

    def close(self) -> None:
        pass

