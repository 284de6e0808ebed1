import os
import time

# settings are read at import time, configure them before importing the app
os.environ.setdefault("ENCODE_KEY", "test-encode-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("COOKIE_SECURE", "true")
os.environ.setdefault("AUTH_DOMAIN", "")

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi.testclient import TestClient
from typing import Generator

from main import app
from wallet_auth.core.dependencies import get_auth_service
from wallet_auth.services.auth_service import WalletAuthService


# Well known development keys, never hold funds with these
ALICE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
BOB_KEY = "0x8da4ef21b864d2cc526dbdb2a120bd2874c36c9d0a1fb7f8c63d7f7a8b41de8f"


class FakeClock:
    """Manually advanced clock, starts at the current whole second."""

    def __init__(self, start: float | None = None) -> None:
        self.now = float(int(time.time())) if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def sign(account: LocalAccount, message: str) -> str:
    """personal_sign ``message`` the way a browser wallet does, returning 0x-hex."""
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def alice() -> LocalAccount:
    return Account.from_key(ALICE_KEY)


@pytest.fixture
def bob() -> LocalAccount:
    return Account.from_key(BOB_KEY)


@pytest.fixture
def service(clock: FakeClock) -> WalletAuthService:
    return WalletAuthService(nonce_ttl_seconds=300, session_ttl_seconds=604800, clock=clock)


@pytest.fixture
def client(service: WalletAuthService) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application with a fresh login service"""
    app.dependency_overrides[get_auth_service] = lambda: service
    # https so the Secure session cookie is sent back
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()
