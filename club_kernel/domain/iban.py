"""IBAN pseudonymization for log output."""

import hashlib

_ITERATIONS = 1000
_KEY_LENGTH = 6


def hash_iban(iban: str, name: str) -> str:
    """
    Derive a short, stable hash for an IBAN and account holder.

    PBKDF2-HMAC-SHA256 with the name as password and the IBAN as salt,
    truncated to 6 bytes (12 hex characters).
    """
    key = hashlib.pbkdf2_hmac(
        "sha256",
        name.encode("utf-8"),
        iban.encode("utf-8"),
        _ITERATIONS,
        dklen=_KEY_LENGTH,
    )
    return key.hex()
