"""Secret codec: salted hashing, verification and legacy plaintext detection."""

from chestguard.core.secrets.operations import (
    MAX_SECRET_LENGTH,
    SALT_LENGTH,
    SEPARATOR,
    hash_secret,
    is_legacy_plaintext,
    is_valid_secret,
    verify_secret,
)

__all__ = [
    "MAX_SECRET_LENGTH",
    "SALT_LENGTH",
    "SEPARATOR",
    "hash_secret",
    "is_legacy_plaintext",
    "is_valid_secret",
    "verify_secret",
]
