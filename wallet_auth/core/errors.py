"""
Authentication failure classifications.

Every failure the login flow can report is an ``AuthError`` subclass carrying the
HTTP status and the client-safe message. The FastAPI exception handler in main.py
renders them as ``{"error": message}``; nothing else about the failure is exposed.
"""

from fastapi import status


class AuthError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "bad request"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidAddress(AuthError):
    message = "invalid address"


class BadRequest(AuthError):
    message = "bad request"


class MissingChallenge(AuthError):
    """No challenge was issued for the address, or it has expired."""

    message = "nonce not found or expired"


class NonceMismatch(AuthError):
    message = "nonce mismatch"


class SignatureInvalid(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "signature invalid"


class NonceAlreadyUsed(AuthError):
    """Lost the race to consume the nonce, or the nonce was replayed."""

    message = "nonce already used"


class AuthenticationFailed(AuthError):
    """Collapsed form of NonceMismatch / SignatureInvalid when GENERIC_VERIFY_ERRORS is on."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "authentication failed"


class Unauthorized(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "unauthorized"
