"""
Ethereum Wallet Signature Utilities

This module checks that a challenge message was signed by the key behind an
Ethereum-style externally-owned account (EOA), using the EIP-191 "personal_sign" scheme
that browser wallets implement.

Verification Flow:
1. Frontend asks the wallet to personal_sign the challenge text
2. Frontend sends: address, nonce, signature (65 bytes, hex)
3. Backend verifies: verify_signature()
   - Hashes the message as keccak256("\\x19Ethereum Signed Message:\\n" + len + message)
   - Recovers the signing public key from the signature
   - Compares the derived address with the claimed one

The recovery uses the eth_account library.
"""

import binascii
import logging

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)

SIGNATURE_NUM_BYTES = 65  # r (32) + s (32) + v (1)


def _decode_signature(signature: str) -> bytes:
    """Helper: Decode a hex signature, with or without 0x prefix, to bytes."""
    value = signature.strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    raw = binascii.unhexlify(value.encode())
    if len(raw) != SIGNATURE_NUM_BYTES:
        raise ValueError(f"Signature must be {SIGNATURE_NUM_BYTES} bytes, got {len(raw)}")
    return raw


def recover_address(message: str, signature: str) -> str:
    """
    Recover the address that produced a personal_sign signature.

    Args:
        message: The exact text that was signed
        signature: Hex encoded 65-byte signature

    Returns:
        The recovered address in lowercase

    Raises:
        ValueError: If the signature is malformed or recovery fails
    """
    signature_bytes = _decode_signature(signature)
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature_bytes)
    except Exception as e:
        raise ValueError(f"Signature recovery failed: {e}") from e
    return recovered.lower()


def verify_signature(address: str, message: str, signature: str) -> bool:
    """
    Verify that ``signature`` over ``message`` was produced by ``address``'s key.

    Fails closed: a malformed signature, a wrong length, a recovery error or a
    different signer all return False rather than raising.

    Args:
        address: Claimed account address (any case)
        message: The challenge text the wallet signed
        signature: Hex encoded 65-byte signature

    Returns:
        True if the recovered signer equals the claimed address

    Example:
        if verify_signature("0xab5801a7...", challenge.message, body.signature):
            # issue a session for the address
    """
    if not address or not message or not signature:
        return False

    try:
        recovered = recover_address(message, signature)
    except (binascii.Error, ValueError) as e:
        logger.debug("rejecting signature for %s: %s", address, e)
        return False

    return recovered == address.strip().lower()
