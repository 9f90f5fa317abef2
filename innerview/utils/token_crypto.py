"""
Password hashing, secret generation, and payload signing utilities.

Responsibilities:
- Hash staff passwords using Argon2id
- Verify passwords without raising on mismatch
- Generate random hex secrets for webhooks and LTI state/nonce values
- Sign and verify webhook payloads with HMAC-SHA256
"""
from __future__ import annotations

import hashlib
import hmac
import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type

_argon2 = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return _argon2.hash(password)


def verify_password(password: str, encoded_hash: str) -> bool:
    if not password or not encoded_hash:
        return False
    try:
        return _argon2.verify(encoded_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def password_needs_rehash(encoded_hash: str) -> bool:
    return _argon2.check_needs_rehash(encoded_hash)


def generate_hex_secret(num_bytes: int = 32) -> str:
    """Return a random hex string encoding ``num_bytes`` bytes."""
    return secrets.token_hex(num_bytes)


def sign_payload(secret: str, body: bytes) -> str:
    """Return the hex HMAC-SHA256 digest of ``body`` keyed by ``secret``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    """Constant-time check of a webhook signature header."""
    if not secret or not signature:
        return False
    expected = sign_payload(secret, body)
    return hmac.compare_digest(expected, signature.strip().lower())
