"""
auth/credentials.py -- Password hashing and constant-time login checks.

Passwords: bcrypt used directly (no passlib wrapper). bcrypt's cost factor
makes every guess expensive, so nothing here is cached or parallelized.

bcrypt only looks at the first 72 bytes of input and recent releases raise
ValueError past that. The API layer caps passwords at 72 UTF-8 bytes, so a
ValueError from hashpw() here means something is genuinely wrong and is
raised as CredentialHashError (HTTP 500).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from auth.errors import CredentialHashError

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("userhub.auth")


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    The caller guarantees plain is non-empty.
    """
    try:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
    except (ValueError, TypeError) as exc:
        logger.error("bcrypt hashing failed: %s", type(exc).__name__)
        raise CredentialHashError("failed to hash password") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A corrupt stored hash or an over-long password reads as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("userhub_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. Both failures look
    identical to the caller.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
