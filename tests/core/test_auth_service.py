import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from tests.conftest import FakeClock, sign
from wallet_auth.core.errors import (
    AuthenticationFailed,
    BadRequest,
    InvalidAddress,
    MissingChallenge,
    NonceAlreadyUsed,
    NonceMismatch,
    SignatureInvalid,
    Unauthorized,
)
from wallet_auth.core.jwt_utils import create_access_token
from wallet_auth.services.auth_service import WalletAuthService

DOMAIN = "example.com"


class TestRequestChallenge:
    """Test cases for WalletAuthService.request_challenge"""

    def test_normalizes_address(self, service, alice):
        record = service.request_challenge(alice.address, DOMAIN)
        assert record.address == alice.address.lower()
        assert f"Address: {alice.address.lower()}" in record.message
        assert f"Domain: {DOMAIN}" in record.message
        assert f"Nonce: {record.nonce}" in record.message

    def test_invalid_address(self, service):
        with pytest.raises(InvalidAddress):
            service.request_challenge("0x1234", DOMAIN)


class TestVerify:
    """Test cases for the verify step of the login flow"""

    def test_success(self, service, alice, clock):
        record = service.request_challenge(alice.address, DOMAIN)
        result = service.verify(alice.address, sign(alice, record.message), record.nonce)
        assert result.user.address == alice.address.lower()
        assert result.user.created_at == clock.now
        assert result.expires_in == 604800
        assert service.current_user(result.token) == result.user

    @pytest.mark.parametrize(
        "address, signature, nonce",
        [
            ("", "0xsig", "n1"),
            ("0x1234", "0xsig", "n1"),
            ("0x" + "ab" * 20, "", "n1"),
            ("0x" + "ab" * 20, "0xsig", ""),
            (None, None, None),
        ],
    )
    def test_bad_request(self, service, address, signature, nonce):
        with pytest.raises(BadRequest):
            service.verify(address, signature, nonce)

    def test_without_challenge(self, service, alice):
        with pytest.raises(MissingChallenge):
            service.verify(alice.address, sign(alice, "anything"), "n1")

    def test_expired_challenge(self, service, alice, clock):
        record = service.request_challenge(alice.address, DOMAIN)
        clock.advance(301)
        with pytest.raises(MissingChallenge):
            service.verify(alice.address, sign(alice, record.message), record.nonce)

    def test_nonce_mismatch(self, service, alice):
        record = service.request_challenge(alice.address, DOMAIN)
        with pytest.raises(NonceMismatch):
            service.verify(alice.address, sign(alice, record.message), "wrong")

    def test_nonce_mismatch_checked_before_signature(self, service, alice):
        service.request_challenge(alice.address, DOMAIN)
        with pytest.raises(NonceMismatch):
            service.verify(alice.address, "0xgarbage", "wrong")

    def test_signature_from_other_key(self, service, alice, bob):
        record = service.request_challenge(alice.address, DOMAIN)
        with pytest.raises(SignatureInvalid):
            service.verify(alice.address, sign(bob, record.message), record.nonce)

    def test_rejected_signature_keeps_challenge(self, service, alice, bob):
        record = service.request_challenge(alice.address, DOMAIN)
        with pytest.raises(SignatureInvalid):
            service.verify(alice.address, sign(bob, record.message), record.nonce)
        assert service.verify(alice.address, sign(alice, record.message), record.nonce).user

    def test_replay_reports_already_used(self, service, alice):
        record = service.request_challenge(alice.address, DOMAIN)
        signature = sign(alice, record.message)
        service.verify(alice.address, signature, record.nonce)
        with pytest.raises(NonceAlreadyUsed):
            service.verify(alice.address, signature, record.nonce)

    def test_superseded_challenge(self, service, alice):
        first = service.request_challenge(alice.address, DOMAIN)
        service.request_challenge(alice.address, DOMAIN)
        with pytest.raises(NonceMismatch):
            service.verify(alice.address, sign(alice, first.message), first.nonce)

    def test_generic_errors(self, clock, alice, bob):
        service = WalletAuthService(generic_verify_errors=True, clock=clock)
        record = service.request_challenge(alice.address, DOMAIN)
        with pytest.raises(AuthenticationFailed):
            service.verify(alice.address, sign(alice, record.message), "wrong")
        with pytest.raises(AuthenticationFailed):
            service.verify(alice.address, sign(bob, record.message), record.nonce)

    def test_second_login_updates_last_login(self, service, alice, clock):
        record = service.request_challenge(alice.address, DOMAIN)
        first = service.verify(alice.address, sign(alice, record.message), record.nonce).user
        clock.advance(60)
        record = service.request_challenge(alice.address, DOMAIN)
        second = service.verify(alice.address, sign(alice, record.message), record.nonce).user
        assert second.created_at == first.created_at
        assert second.last_login_at == first.last_login_at + 60

    def test_concurrent_verify_single_session(self, service, alice):
        record = service.request_challenge(alice.address, DOMAIN)
        signature = sign(alice, record.message)
        workers = 8
        barrier = threading.Barrier(workers)

        def attempt(_):
            barrier.wait()
            try:
                service.verify(alice.address, signature, record.nonce)
            except NonceAlreadyUsed:
                return False
            return True

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(attempt, range(workers)))

        assert results.count(True) == 1


class TestCurrentUser:
    """Test cases for session validation"""

    def test_missing_token(self, service):
        with pytest.raises(Unauthorized):
            service.current_user(None)

    def test_expired_token(self, service, alice, clock: FakeClock):
        record = service.request_challenge(alice.address, DOMAIN)
        token = service.verify(alice.address, sign(alice, record.message), record.nonce).token
        clock.advance(604800)
        with pytest.raises(Unauthorized):
            service.current_user(token)

    def test_unknown_user(self, service, alice, clock: FakeClock):
        token = create_access_token(alice.address, now=clock.now)
        with pytest.raises(Unauthorized):
            service.current_user(token)
