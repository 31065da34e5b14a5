"""Secret hashing and verification.

Records are ``hex(salt):hex(sha256(salt || secret))``. Records written before
hashing existed hold the plaintext secret and contain no separator.

Usage:
    record = hash_secret("abc")
    verify_secret("abc", record)  # True
    is_legacy_plaintext("abc")  # True
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

ALGORITHM = "sha256"
SALT_LENGTH = 16
SEPARATOR = ":"
MAX_SECRET_LENGTH = 64


def _digest(salt: bytes, secret: str) -> str | None:
    try:
        digest = hashlib.new(ALGORITHM)
    except ValueError:
        return None
    digest.update(salt)
    digest.update(secret.encode("utf-8"))
    return digest.hexdigest()


def hash_secret(secret: str) -> str | None:
    """Hash a secret with a fresh random salt.

    Returns:
        ``salt:digest`` in lowercase hex, or None if the digest algorithm is unavailable.
    """
    salt = secrets.token_bytes(SALT_LENGTH)
    digest = _digest(salt, secret)
    if digest is None:
        return None
    return f"{salt.hex()}{SEPARATOR}{digest}"


def is_legacy_plaintext(record: str) -> bool:
    """A record without separator predates hashing and holds the secret itself."""
    return SEPARATOR not in record


def verify_secret(secret: str, record: str | None) -> bool:
    """Check a candidate secret against a stored record.

    Legacy plaintext records are compared directly. Upgrading such a record
    after a successful match is the caller's job.
    """
    if secret is None or record is None:
        return False

    if is_legacy_plaintext(record):
        return hmac.compare_digest(secret.encode("utf-8"), record.encode("utf-8"))

    salt_hex, _, expected = record.partition(SEPARATOR)
    try:
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    actual = _digest(salt, secret)
    if actual is None:
        return False
    return hmac.compare_digest(actual.encode("ascii"), expected.lower().encode("utf-8"))


def is_valid_secret(secret: str | None) -> bool:
    """Secrets are single tokens: non-empty, no whitespace, bounded length."""
    if not secret or len(secret) > MAX_SECRET_LENGTH:
        return False
    return not any(ch.isspace() for ch in secret)
