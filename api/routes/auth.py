"""
api/routes/auth.py -- Login endpoint, mounted identically on both services.

Routes:
  POST /api/auth/login  -- password login; returns a bearer token

Flow (each step must pass before the next runs):
  1. Body validation (Pydantic)        -> 400 with field-level messages
  2. LoginRateLimiter.check()          -> 429, attempt not counted further
  3. authenticate() (timing-equalized) -> 401, same body for unknown user and bad password
  4. LoginRateLimiter.reset()          -> a good login always clears the counter
  5. TokenIssuer.issue()               -> 200 {token, expiresIn}

The limiter runs BEFORE the password check, so once an identity is throttled
even the correct password is refused until the window passes.

Security:
  Do NOT inline AccountStore.get() + verify_password() here -- that
  reintroduces the username-enumeration timing leak authenticate() closes.
  Cache-Control: no-store on the token response.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse
from auth.limiter import LimitDecision, LoginRateLimiter
from auth.passwords import authenticate
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.errors import AuthenticationError, RateLimited

logger = logging.getLogger("meshauth.auth")

# Auth policy: POST /api/auth/login is public -- it is how callers get a token.
router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password and return a signed bearer token.

    Sync handler on purpose: bcrypt is CPU-bound and FastAPI runs sync
    handlers in its thread pool instead of on the event loop.
    """
    limiter: LoginRateLimiter = request.app.state.login_limiter
    accounts: AccountStore = request.app.state.accounts
    issuer: TokenIssuer = request.app.state.token_issuer

    if limiter.check(body.username) is LimitDecision.THROTTLED:
        raise RateLimited()

    identity = authenticate(accounts, body.username, body.password, rounds=request.app.state.settings.bcrypt_rounds)
    if identity is None:
        logger.info("login failed for identity=%r", body.username)
        raise AuthenticationError("Invalid username or password.")

    limiter.reset(identity.username)
    issued = issuer.issue(identity.username)
    logger.info("login succeeded for identity=%r jti=%s", identity.username, issued.token_id)

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=issued.token, expires_in=issued.expires_in).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp
