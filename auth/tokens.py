"""
auth/tokens.py -- Bearer token issuance and validation.

Security design decisions:
  JWT: python-jose with HS256. Both services hold the same JWT_SECRET, so a
       token minted by either one is accepted by the other without a shared
       session store or a second login round trip.

  Injection: the secret, issuer, audience and lifetime are constructor
       arguments taken from Settings by the app factory. Nothing here reads
       configuration at call time, and both classes are stateless after
       construction, so concurrent requests need no locking.

  Validation order: signature, issuer, audience, then lifetime. The lifetime
       window is [iat, exp) with zero clock skew -- a token is expired at the
       exact second exp is reached. python-jose's own exp/nbf checks allow
       equality and use the wall clock, so they are turned off and the window
       is checked here against the injected clock.

  Failures: every failure raises TokenRejected carrying an internal reason for
       the logs. Its client-facing message is the same generic 401 text for
       all reasons so callers cannot probe which check failed.

  Revocation: there is none. A leaked token stays valid until exp; the short
       default lifetime (1 hour) is the only mitigation.

Layer rule: no imports from api/ or records/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.models import IssuedToken, Principal
from core.errors import AuthenticationError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("meshauth.auth")

_ALGORITHM = "HS256"

DEFAULT_LIFETIME_SECONDS = 3600

# Claim checks beyond the signature are done by TokenValidator in a fixed order.
_DECODE_OPTIONS = {
    "verify_aud": False,
    "verify_iss": False,
    "verify_iat": False,
    "verify_exp": False,
    "verify_nbf": False,
}


class TokenRejected(AuthenticationError):
    """A bearer token failed validation. reason is for logs only."""

    def __init__(self, reason: str) -> None:
        super().__init__()
        self.reason = reason


class TokenIssuer:
    """Mints signed bearer tokens for identities that already passed login checks."""

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self.issuer = issuer
        self.audience = audience
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            lifetime_seconds=settings.token_expire_seconds,
        )

    def issue(self, username: str) -> IssuedToken:
        """Sign a token for username with a fresh jti.

        Two calls for the same username never produce the same token, even
        within the same second, because jti is a random UUID.
        """
        issued_at = int(self._clock())
        expires_at = issued_at + self.lifetime_seconds
        token_id = str(uuid.uuid4())
        claims = {
            "sub": username,
            "jti": token_id,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self._secret, algorithm=_ALGORITHM)
        return IssuedToken(token=token, token_id=token_id, issued_at=issued_at, expires_at=expires_at)


class TokenValidator:
    """Verifies bearer tokens against the shared secret and configured iss/aud."""

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self.issuer = issuer
        self.audience = audience
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenValidator:
        return cls(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )

    def validate(self, token: str) -> Principal:
        """Return the Principal asserted by token, or raise TokenRejected."""
        try:
            claims = jwt.decode(token, self._secret, algorithms=[_ALGORITHM], options=_DECODE_OPTIONS)
        except JWTClaimsError as exc:
            # Signature was good; a registered claim (sub, jti) has the wrong type.
            raise TokenRejected("malformed_claims") from exc
        except JWTError as exc:
            raise TokenRejected("bad_signature") from exc

        if claims.get("iss") != self.issuer:
            raise TokenRejected("wrong_issuer")
        if not _audience_matches(claims.get("aud"), self.audience):
            raise TokenRejected("wrong_audience")

        issued_at = claims.get("iat")
        expires_at = claims.get("exp")
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            raise TokenRejected("malformed_lifetime")
        now = self._clock()
        if now < issued_at:
            raise TokenRejected("not_yet_valid")
        if now >= expires_at:
            raise TokenRejected("expired")

        subject = claims.get("sub")
        token_id = claims.get("jti")
        if not isinstance(subject, str) or not subject or not isinstance(token_id, str):
            raise TokenRejected("malformed_subject")
        return Principal(username=subject, token_id=token_id, issued_at=issued_at, expires_at=expires_at)


def _audience_matches(claim, audience: str) -> bool:
    # RFC 7519 allows aud to be a single string or a list of strings.
    if isinstance(claim, str):
        return claim == audience
    if isinstance(claim, list):
        return audience in claim
    return False
