"""
auth/dependencies.py -- FastAPI Depends() gate for protected routes.

get_current_principal() reads the Authorization: Bearer header, validates the
token with the app's TokenValidator, and returns the Principal. Any failure
(missing header, wrong scheme, bad signature, wrong iss/aud, expired) raises
the same AuthenticationError, which the app renders as a generic 401. The
specific reason is logged, never returned.

The gate is read-only: it does not touch the login limiter or any store.

Layer rule: no imports from api/ or records/.
  auth/dependencies.py may import from fastapi because it is part of the
  FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Principal
from auth.relay import bearer_token
from auth.tokens import TokenRejected, TokenValidator
from core.errors import AuthenticationError

logger = logging.getLogger("meshauth.auth")


def get_current_principal(request: Request) -> Principal:
    """Require a valid bearer token. Raises AuthenticationError (401) otherwise.

    Use as a router-level dependency:
        router = APIRouter(dependencies=[Depends(get_current_principal)])
    or per route:
        async def route(principal: Principal = Depends(get_current_principal)): ...
    """
    token = bearer_token(request)
    if token is None:
        logger.info("token rejected on %s: missing_bearer", request.url.path)
        raise AuthenticationError()

    validator: TokenValidator = request.app.state.token_validator
    try:
        return validator.validate(token)
    except TokenRejected as exc:
        logger.info("token rejected on %s: %s", request.url.path, exc.reason)
        raise
