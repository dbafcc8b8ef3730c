"""Password and verification-code hashing.

Uses scrypt from the ``cryptography`` package. Hashes are stored as
``scrypt$<salt>$<digest>`` with URL-safe base64 parts.
"""

from __future__ import annotations

import base64
import os
import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

SCHEME = "scrypt"
SALT_BYTES = 16
KEY_LENGTH = 32

# Interactive-login cost parameters
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


def _kdf(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)


def hash_password(password: str) -> str:
    """Hash a secret with a fresh random salt."""
    salt = os.urandom(SALT_BYTES)
    digest = _kdf(salt).derive(password.encode())
    return "$".join(
        [
            SCHEME,
            base64.urlsafe_b64encode(salt).decode(),
            base64.urlsafe_b64encode(digest).decode(),
        ]
    )


def verify_password(password: str, stored_hash: str | None) -> bool:
    """Check a secret against a stored hash in constant time."""
    if not stored_hash:
        return False
    try:
        scheme, salt_b64, digest_b64 = stored_hash.split("$")
    except ValueError:
        return False
    if scheme != SCHEME:
        return False

    salt = base64.urlsafe_b64decode(salt_b64.encode())
    digest = base64.urlsafe_b64decode(digest_b64.encode())
    try:
        _kdf(salt).verify(password.encode(), digest)
    except InvalidKey:
        return False
    return True


def generate_verification_code() -> str:
    """Six-digit numeric code for account verification."""
    return f"{secrets.randbelow(1_000_000):06d}"
