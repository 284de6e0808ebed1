"""
FastAPI Authentication Dependencies

This module provides FastAPI dependency functions that can be injected into route handlers.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(user: WalletUser = Depends(get_current_user)):
        # user is the directory entry of the session's address
        return {"user": user.address}
Flow:
1. Client sends the session cookie (browsers) or an Authorization: Bearer <token> header
2. FastAPI calls get_current_user() dependency
3. _extract_token() picks the token, cookie first
4. WalletAuthService.current_user() validates it and looks the address up
5. Returns the WalletUser to the route handler, or answers 401
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Request

from wallet_auth.core.config import settings
from wallet_auth.core.users import WalletUser
from wallet_auth.services.auth_service import WalletAuthService


@lru_cache(maxsize=None)
def get_auth_service() -> WalletAuthService:
    """Process-wide login service; override in tests for a fresh store."""
    return WalletAuthService(
        nonce_ttl_seconds=settings.NONCE_EXPIRY_SECONDS,
        session_ttl_seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        generic_verify_errors=settings.GENERIC_VERIFY_ERRORS,
        sweep_threshold=settings.NONCE_SWEEP_THRESHOLD,
    )


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """
    Extract the session token from the auth cookie or the Authorization header.
    Supports both "Bearer <token>" and plain token formats in the header.
    Returns None when neither carries a token.
    """
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        return token

    if not authorization:
        return None
    authorization = authorization.strip()
    if authorization.lower().startswith("bearer "):
        authorization = authorization[7:].strip()
    return authorization or None


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    service: WalletAuthService = Depends(get_auth_service),
) -> WalletUser:
    """
    returning the logged in wallet user.
    """
    return service.current_user(_extract_token(request, authorization))
