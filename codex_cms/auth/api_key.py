"""
API key generation and hashing.

Keys look like `codex_<32 random chars>`. Only the SHA-256 hash is stored;
the first 8 characters are kept for identification in listings.
"""

import hashlib
import secrets

KEY_PREFIX = "codex_"
KEY_LENGTH = 32  # Random portion length
DISPLAY_PREFIX_LENGTH = 8


def generate_api_key() -> tuple[str, str, str]:
    """
    Generate a new API key.

    Returns:
        Tuple of (full_key, key_prefix, key_hash)
        - full_key: The complete key to give to the user (only shown once)
        - key_prefix: First 8 chars for identification
        - key_hash: SHA-256 hash for storage
    """
    random_part = secrets.token_urlsafe(KEY_LENGTH)[:KEY_LENGTH]
    full_key = f"{KEY_PREFIX}{random_part}"
    return full_key, full_key[:DISPLAY_PREFIX_LENGTH], hash_api_key(full_key)


def hash_api_key(api_key: str) -> str:
    """SHA-256 hex digest of the full key."""
    return hashlib.sha256(api_key.encode()).hexdigest()


def looks_like_api_key(value: str | None) -> bool:
    return bool(value) and value.startswith(KEY_PREFIX) and len(value) > len(KEY_PREFIX)
