"""
Wallet login orchestration.

Sequences the three steps of the challenge-response login:

1. request_challenge(): NoChallenge -> ChallengeIssued (always replaces the previous challenge)
2. verify(): ChallengeIssued -> Verified, or Rejected with the first failing check
   - challenge present and unexpired    else MissingChallenge
   - submitted nonce equals stored one  else NonceMismatch
   - signature recovers to the address  else SignatureInvalid
   - nonce consumed by this call        else NonceAlreadyUsed
   A replay of a nonce that was already spent is reported as NonceAlreadyUsed.
   On success the user directory is updated and a session token issued.
3. current_user(): session token -> directory user, or Unauthorized

An expired challenge is indistinguishable from one that was never issued.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from wallet_auth.core import eth_auth
from wallet_auth.core.address import normalize_address
from wallet_auth.core.errors import (
    AuthError,
    AuthenticationFailed,
    BadRequest,
    InvalidAddress,
    MissingChallenge,
    NonceAlreadyUsed,
    NonceMismatch,
    SignatureInvalid,
    Unauthorized,
)
from wallet_auth.core.jwt_utils import create_access_token, verify_token
from wallet_auth.core.nonce_store import DEFAULT_SWEEP_THRESHOLD, DEFAULT_TTL_SECONDS, NonceRecord, NonceStore
from wallet_auth.core.users import UserDirectory, WalletUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: WalletUser
    token: str
    expires_in: int


class WalletAuthService:
    """Owns the nonce store and the user directory; nothing else mutates them."""

    def __init__(
        self,
        nonce_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        session_ttl_seconds: int = 7 * 24 * 60 * 60,
        generic_verify_errors: bool = False,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._nonces = NonceStore(ttl_seconds=nonce_ttl_seconds, clock=clock, sweep_threshold=sweep_threshold)
        self._users = UserDirectory(clock=clock)
        self.session_ttl_seconds = session_ttl_seconds
        self.generic_verify_errors = generic_verify_errors

    def request_challenge(self, raw_address: Optional[str], domain: str) -> NonceRecord:
        address = normalize_address(raw_address)
        record = self._nonces.issue_challenge(address, domain)
        logger.debug("issued challenge for %s", address)
        return record

    def _rejected(self, address: str, error: AuthError) -> AuthError:
        logger.info("login rejected for %s: %s", address, error)
        return error

    def verify(self, raw_address: Optional[str], signature: Optional[str], nonce: Optional[str]) -> LoginResult:
        """
        Check a signed challenge and open a session.

        Args:
            raw_address: Account address as submitted by the client
            signature: Hex personal_sign signature over the challenge message
            nonce: Nonce the client received with the challenge

        Returns:
            LoginResult with the updated user and a fresh session token

        Raises:
            BadRequest: If the address is invalid or signature/nonce are missing
            MissingChallenge, NonceMismatch, SignatureInvalid, NonceAlreadyUsed:
                The first failing check; NonceMismatch and SignatureInvalid become
                AuthenticationFailed when generic_verify_errors is set
        """
        try:
            address = normalize_address(raw_address)
        except InvalidAddress:
            raise BadRequest()
        if not signature or not nonce:
            raise BadRequest()

        record = self._nonces.peek(address)
        if record is None:
            if self._nonces.is_spent(address, nonce):
                raise self._rejected(address, NonceAlreadyUsed())
            raise self._rejected(address, MissingChallenge())
        if record.nonce != nonce:
            raise self._rejected(address, AuthenticationFailed() if self.generic_verify_errors else NonceMismatch())
        if not eth_auth.verify_signature(address, record.message, signature):
            raise self._rejected(address, AuthenticationFailed() if self.generic_verify_errors else SignatureInvalid())
        # another request may have spent the nonce since peek()
        if not self._nonces.consume(address, nonce):
            raise self._rejected(address, NonceAlreadyUsed())

        user = self._users.record_login(address)
        token = create_access_token(address, ttl_seconds=self.session_ttl_seconds, now=self._clock())
        logger.info("wallet %s logged in", address)
        return LoginResult(user=user, token=token, expires_in=self.session_ttl_seconds)

    def current_user(self, token: Optional[str]) -> WalletUser:
        claims = verify_token(token, now=self._clock())
        if claims is None:
            raise Unauthorized()
        user = self._users.lookup(claims.subject)
        if user is None:
            raise Unauthorized()
        return user
