"""
JWT Session Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet sessions.
After a wallet signature is verified, this module creates a JWT that the browser keeps
in an HttpOnly cookie and presents on subsequent requests.

Flow:
1. Wallet signature verified -> create_access_token() generates JWT
2. Client calls an authenticated route with the cookie (or Authorization header)
   -> verify_token() validates it
3. dependencies.get_current_user() turns the claims into a directory user

Sessions are stateless: the server keeps no record of issued tokens, validity is
decided by the signature and the embedded expiry only. Changing ENCODE_KEY
invalidates every outstanding token.

The JWT contains:
- sub: The authenticated account address (lowercase)
- iat: Issued at timestamp
- exp: Expiration timestamp (ACCESS_TOKEN_EXPIRE_SECONDS, default 7 days)
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt

from wallet_auth.core.config import settings

logger = logging.getLogger(__name__)


if not settings.ENCODE_KEY:
    raise RuntimeError("ENCODE_KEY is not configured")


@dataclass(frozen=True)
class SessionClaims:
    subject: str
    issued_at: int
    expires_at: int


def create_access_token(
    address: str,
    ttl_seconds: Optional[int] = None,
    now: Optional[float] = None,
) -> str:
    """
    Create a signed session token for an authenticated account address.

    Args:
        address: The account address that was verified
        ttl_seconds: Token lifetime, defaults to ACCESS_TOKEN_EXPIRE_SECONDS
        now: Issue time as a unix timestamp, defaults to the current time

    Returns:
        A JWT string

    Raises:
        ValueError: If address is empty
    """
    if not address:
        raise ValueError("address is required")
    if ttl_seconds is None:
        ttl_seconds = settings.ACCESS_TOKEN_EXPIRE_SECONDS

    issued_at = int(time.time() if now is None else now)
    payload: Dict[str, Any] = {
        "sub": address.lower(),
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
    }
    return jwt.encode(payload, settings.ENCODE_KEY, algorithm=settings.ENCODE_ALGORITHM)


def verify_token(token: Optional[str], now: Optional[float] = None) -> Optional[SessionClaims]:
    """
    Verify and decode a session token.

    Checks the signature and that the token has not yet expired. Every kind of
    failure (missing, malformed, forged, expired, no subject) yields None so the
    caller can only tell "authenticated" from "not authenticated".

    Args:
        token: The JWT string
        now: Current unix time, defaults to the system clock

    Returns:
        SessionClaims, or None when the token is not acceptable
    """
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.ENCODE_KEY,
            algorithms=[settings.ENCODE_ALGORITHM],
            # expiry is checked below against the caller's clock
            options={"require": ["sub", "iat", "exp"], "verify_exp": False, "verify_iat": False},
        )
    except jwt.InvalidTokenError as e:
        logger.debug("invalid session token: %s", e)
        return None

    subject = str(payload.get("sub") or "").lower()
    if not subject:
        return None

    try:
        issued_at = int(payload["iat"])
        expires_at = int(payload["exp"])
    except (TypeError, ValueError):
        return None

    current = time.time() if now is None else now
    if current >= expires_at:
        logger.debug("session token for %s expired", subject)
        return None

    return SessionClaims(subject=subject, issued_at=issued_at, expires_at=expires_at)
