"""
core/errors.py -- Error taxonomy shared by both services.

Every error the services raise on purpose is a ServiceError subclass carrying
the HTTP status and a stable machine-readable code. api/main.py registers one
exception handler that renders any ServiceError into the ErrorResponse
envelope, so route and auth code raise these instead of building responses.

  ValidationError      400  malformed or out-of-range request data
  AuthenticationError  401  unknown identity, bad password, bad/expired token
  RateLimited          429  login throttled for this identity
  UpstreamUnavailable  400  peer lookup failed (missing record or unreachable)
  ConfigurationError   --   fatal at startup, never rendered to a client

UpstreamUnavailable maps to 400 rather than 5xx: the caller cannot tell "truly
missing" from "temporarily unreachable", so both surface as a rejected request.

Layer rule: core/ is the kernel and imports nothing from api/, auth/, or records/.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors that map to a client-facing HTTP response."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    code = "validation_error"
    message = "Request validation failed."


class AuthenticationError(ServiceError):
    """Any authentication failure. The message is deliberately generic."""

    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class RateLimited(ServiceError):
    status_code = 429
    code = "rate_limited"
    message = "Too many login attempts."


class UpstreamUnavailable(ServiceError):
    status_code = 400
    code = "upstream_unavailable"
    message = "Referenced resource could not be verified."


class ConfigurationError(RuntimeError):
    """Missing or unsafe configuration. Raised at startup, never handled."""
