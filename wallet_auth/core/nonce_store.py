"""
Nonce Store

Holds at most one outstanding login challenge per account address.

Flow:
1. Client asks for a challenge -> issue_challenge() stores a fresh record,
   replacing any earlier one for the same address
2. Client signs the record's message with its wallet
3. Verification succeeds -> consume() removes the record so the nonce can never be used again;
   is_spent() still recognises it until the TTL runs out, so a replay is reported as such

Records older than the TTL are treated as absent and are dropped the next time the
address is looked at. There is no background sweeper; purge_expired() clears stale
records in bulk and is triggered by issue_challenge() once the store gets large.
"""

import logging
import secrets
import time
from dataclasses import dataclass, replace
from threading import Lock
from typing import Callable, Dict, Optional

from wallet_auth.core.challenge import build_message

logger = logging.getLogger(__name__)

NONCE_NUM_BYTES = 16  # 128 bits = 32 hex characters
DEFAULT_TTL_SECONDS = 300
DEFAULT_SWEEP_THRESHOLD = 10_000

Clock = Callable[[], float]


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    """
    Generate a cryptographically secure random nonce.

    Args:
        num_bytes: Number of random bytes to generate (default: 16 = 32 hex chars)

    Returns:
        Hex-encoded random string
    """
    if num_bytes <= 0:
        num_bytes = NONCE_NUM_BYTES
    return secrets.token_hex(num_bytes)


@dataclass(frozen=True)
class NonceRecord:
    address: str
    nonce: str
    message: str
    created_at: float
    used: bool = False


class NonceStore:
    """In-process store of outstanding challenges keyed by normalized address.

    All operations run under a single lock, so issue/peek/consume for the same
    address are linearizable and two concurrent consume() calls for one nonce
    cannot both succeed.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock = time.time,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._records: Dict[str, NonceRecord] = {}
        # consumed records, kept until their TTL runs out so replays can be told apart
        self._spent: Dict[str, NonceRecord] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _is_expired(self, record: NonceRecord, now: float) -> bool:
        return now - record.created_at > self.ttl_seconds

    def _live_record(self, address: str, now: float) -> Optional[NonceRecord]:
        # caller holds the lock
        record = self._records.get(address)
        if record is None:
            return None
        if self._is_expired(record, now):
            del self._records[address]
            return None
        return record

    def _purge_locked(self, now: float) -> int:
        stale = [a for a, r in self._records.items() if self._is_expired(r, now)]
        for address in stale:
            del self._records[address]
        for address in [a for a, r in self._spent.items() if self._is_expired(r, now)]:
            del self._spent[address]
        return len(stale)

    def issue_challenge(self, address: str, domain: str) -> NonceRecord:
        """
        Create the challenge for an address, replacing any outstanding one.

        Args:
            address: Normalized account address
            domain: Host the user is logging in to, embedded in the message

        Returns:
            The stored NonceRecord
        """
        nonce = generate_nonce()
        record = NonceRecord(
            address=address,
            nonce=nonce,
            message=build_message(domain, address, nonce),
            created_at=self._clock(),
        )
        with self._lock:
            if len(self._records) + len(self._spent) >= self._sweep_threshold:
                purged = self._purge_locked(record.created_at)
                if purged:
                    logger.debug("purged %d expired challenges", purged)
            self._records[address] = record
        return record

    def peek(self, address: str) -> Optional[NonceRecord]:
        with self._lock:
            return self._live_record(address, self._clock())

    def consume(self, address: str, nonce: str) -> bool:
        """
        Spend the outstanding nonce for an address.

        Returns True exactly once per issued challenge: the record must exist, be
        unexpired and unused, and carry the same nonce. Any failed check leaves the
        record untouched.
        """
        with self._lock:
            record = self._live_record(address, self._clock())
            if record is None or record.used:
                return False
            if not secrets.compare_digest(record.nonce.encode(), nonce.encode()):
                return False
            # a consumed record is never returned by peek() again
            del self._records[address]
            self._spent[address] = replace(record, used=True)
            return True

    def is_spent(self, address: str, nonce: str) -> bool:
        """Whether ``nonce`` was the last one consumed for ``address`` and is still within its TTL."""
        with self._lock:
            record = self._spent.get(address)
            if record is None:
                return False
            if self._is_expired(record, self._clock()):
                del self._spent[address]
                return False
            return secrets.compare_digest(record.nonce.encode(), nonce.encode())

    def purge_expired(self) -> int:
        """Drop every expired record, returning how many were removed."""
        with self._lock:
            return self._purge_locked(self._clock())
