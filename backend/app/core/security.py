# app/core/security.py

import hashlib
import secrets
import string
from typing import Optional

from cryptography.hazmat.primitives import constant_time, hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# ---------- CONSTANTS ----------

PBKDF2_ITERATIONS = 100_000
PBKDF2_LENGTH = 64
SALT_BYTES = 16

SESSION_TOKEN_BYTES = 32
DELETE_TOKEN_BYTES = 24

SHARE_ID_LENGTH = 10
SHARE_ID_ALPHABET = string.ascii_letters + string.digits + "_-"


# ---------- PASSWORDS ----------

def _derive(raw_password: str, salt: str) -> bytes:
    """
    PBKDF2-HMAC-SHA512 → 64-byte key. The hex salt string itself is the KDF salt.
    """
    return PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=PBKDF2_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=PBKDF2_ITERATIONS,
    ).derive(raw_password.encode("utf-8"))


def hash_password(raw_password: str) -> str:
    """Return ``salt:hash`` with both parts hex encoded."""
    salt = secrets.token_hex(SALT_BYTES)
    return f"{salt}:{_derive(str(raw_password), salt).hex()}"


def verify_password(stored: Optional[str], provided: Optional[str]) -> bool:
    """Check ``provided`` against a ``salt:hash`` value. Fails closed."""
    if not stored or not provided:
        return False

    parts = str(stored).split(":")
    if len(parts) != 2:
        return False
    salt, expected_hex = parts

    try:
        expected = bytes.fromhex(expected_hex)
    except ValueError:
        return False

    return constant_time.bytes_eq(expected, _derive(str(provided), salt))


# ---------- TOKENS ----------

def issue_opaque_token(byte_length: int = SESSION_TOKEN_BYTES) -> str:
    return secrets.token_urlsafe(byte_length)


def issue_delete_token() -> str:
    return issue_opaque_token(DELETE_TOKEN_BYTES)


def generate_share_id(length: int = SHARE_ID_LENGTH) -> str:
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(length))


def hash_token(token: str) -> str:
    """One-way digest so raw bearer tokens never reach the database."""
    return hashlib.sha256(str(token).encode("utf-8")).hexdigest()


def secrets_match(expected: Optional[str], provided: Optional[str]) -> bool:
    """Constant-time string comparison; False for missing values or length mismatch."""
    if expected is None or provided is None:
        return False
    return constant_time.bytes_eq(
        str(expected).encode("utf-8"),
        str(provided).encode("utf-8"),
    )
