import time
from dataclasses import dataclass, replace
from threading import Lock
from typing import Callable, Dict, Optional


@dataclass(frozen=True)
class WalletUser:
    """Wallet user record.
    Example:
    {
        "address": "0xab5801a7d398351b8be11c439e05c5b3259aec9b",
        "created_at": 1704110400.0,
        "last_login_at": 1704196800.0
    }
    """

    address: str
    created_at: float
    last_login_at: float


class UserDirectory:
    """First-seen and last-login times per address, kept in process memory."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._users: Dict[str, WalletUser] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def record_login(self, address: str) -> WalletUser:
        """Create the user on first login, otherwise move last_login_at forward."""
        with self._lock:
            now = self._clock()
            user = self._users.get(address)
            if user is None:
                user = WalletUser(address=address, created_at=now, last_login_at=now)
            else:
                user = replace(user, last_login_at=now)
            self._users[address] = user
            return user

    def lookup(self, address: str) -> Optional[WalletUser]:
        with self._lock:
            return self._users.get(address)
