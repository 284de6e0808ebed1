import re

from wallet_auth.core.errors import InvalidAddress

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(raw: str | None) -> str:
    """
    Return the canonical (lowercase) form of an account address.

    Raises:
        InvalidAddress: If the value is not ``0x`` followed by 40 hex characters
    """
    address = (raw or "").strip().lower()
    if not _ADDRESS_RE.match(address):
        raise InvalidAddress()
    return address
