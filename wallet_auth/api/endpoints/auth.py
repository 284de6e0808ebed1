from typing import List

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from wallet_auth.core.config import settings
from wallet_auth.core.dependencies import get_auth_service, get_current_user
from wallet_auth.core.users import WalletUser
from wallet_auth.schemas import auth as schemas
from wallet_auth.services.auth_service import WalletAuthService

router = APIRouter()
group_tags: List[str] = ["Auth"]

error_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": schemas.ErrorResponse},
}


def _challenge_domain(request: Request) -> str:
    if settings.AUTH_DOMAIN:
        return settings.AUTH_DOMAIN
    return request.url.netloc


def _set_session_cookie(response: Response, token: str, max_age: int) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )


def _to_millis(ts: float) -> int:
    return int(ts * 1000)


@router.get(
    "/challenge",
    tags=group_tags,
    response_model=schemas.ChallengeResponse,
    status_code=status.HTTP_200_OK,
    responses=error_responses,
)
@router.get("/api/auth/nonce", include_in_schema=False, response_model=schemas.ChallengeResponse)
def request_challenge(
    request: Request,
    address: str = Query(default="", description="Wallet address (0x + 40 hex)"),
    service: WalletAuthService = Depends(get_auth_service),
) -> schemas.ChallengeResponse:
    """
    Issue a login challenge for a wallet address.

    The returned message must be signed verbatim with personal_sign. Requesting a
    new challenge invalidates the previous one for the same address; challenges
    expire after NONCE_EXPIRY_SECONDS.
    """
    record = service.request_challenge(address, _challenge_domain(request))
    return schemas.ChallengeResponse(address=record.address, nonce=record.nonce, message=record.message)


@router.post(
    "/verify",
    tags=group_tags,
    response_model=schemas.VerifyResponse,
    status_code=status.HTTP_200_OK,
    responses=error_responses,
)
@router.post("/api/auth/verify", include_in_schema=False, response_model=schemas.VerifyResponse)
def verify_wallet(
    response: Response,
    body: schemas.VerifyRequest = Body(...),
    service: WalletAuthService = Depends(get_auth_service),
) -> schemas.VerifyResponse:
    """Verify a signed challenge and set the session cookie."""
    result = service.verify(body.address, body.signature, body.nonce)
    _set_session_cookie(response, result.token, result.expires_in)
    return schemas.VerifyResponse(ok=True, address=result.user.address)


@router.get(
    "/session",
    tags=group_tags,
    response_model=schemas.SessionResponse,
    status_code=status.HTTP_200_OK,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": schemas.ErrorResponse}},
)
@router.get("/api/me", include_in_schema=False, response_model=schemas.SessionResponse)
def get_session(user: WalletUser = Depends(get_current_user)) -> schemas.SessionResponse:
    """Return the wallet user behind the presented session token."""
    return schemas.SessionResponse(
        address=user.address,
        created_at=_to_millis(user.created_at),
        last_login_at=_to_millis(user.last_login_at),
    )


@router.post(
    "/logout",
    tags=group_tags,
    response_model=schemas.OkResponse,
    status_code=status.HTTP_200_OK,
)
@router.post("/api/auth/logout", include_in_schema=False, response_model=schemas.OkResponse)
def logout(response: Response) -> schemas.OkResponse:
    # the token itself stays valid until expiry, only the client copy is dropped
    _set_session_cookie(response, "", 0)
    return schemas.OkResponse(ok=True)
