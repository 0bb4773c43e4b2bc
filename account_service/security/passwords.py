"""Password hashing helpers backed by Argon2."""

from __future__ import annotations

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Return a salted Argon2id hash for ``password``."""
    return _ph.hash(password)


def verify_password(password: str | None, stored_hash: str | None) -> bool:
    """Constant-time comparison of ``password`` against a stored Argon2 hash."""
    if not password or not stored_hash:
        return False
    try:
        return _ph.verify(stored_hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def needs_rehash(stored_hash: str) -> bool:
    return _ph.check_needs_rehash(stored_hash)
