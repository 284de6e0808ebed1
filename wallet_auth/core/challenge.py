"""Text of the challenge the wallet is asked to sign."""

CHALLENGE_HEADER = "Sign the message below to log in."


def build_message(domain: str, address: str, nonce: str) -> str:
    # Signatures are checked against this exact text, keep the wording and order fixed.
    return "\n".join(
        [
            CHALLENGE_HEADER,
            "",
            f"Domain: {domain}",
            f"Address: {address}",
            f"Nonce: {nonce}",
        ]
    )
