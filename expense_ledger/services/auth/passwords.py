"""
Password hashing with bcrypt.

bcrypt only looks at the first 72 bytes of its input (and recent releases
refuse longer input outright). Passwords may be up to 100 characters, so
they are first reduced to a fixed-length SHA-256 digest, base64 encoded.
"""

import base64
import hashlib

import bcrypt


def _prehash(password: str) -> bytes:
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(digest)


def hash_password(password: str, rounds: int = 12) -> str:
    """One-way, salted, cost-factored hash. Safe to store, never reversible."""
    hashed = bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of `password` against a stored hash."""
    try:
        return bcrypt.checkpw(_prehash(password), password_hash.encode("ascii"))
    except ValueError:
        # Corrupt or foreign hash format
        return False
