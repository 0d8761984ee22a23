"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container). Stores, the token service and
routes do the work. TokenClaims is the one exception with logic: it owns the
validation of a decoded JWT payload, so a claim set that makes it past
from_payload() is fully typed.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass
class User:
    """An identity in the user store.

    hashed_password is the bcrypt digest. It is read by the login path only
    and never copied into any API response model.
    """

    username: str
    email: str
    hashed_password: str
    role_id: int = 0
    client_id: int = 0
    id: int | None = None
    created_at: str | None = None


@dataclass
class RevokedToken:
    """One Revocation Ledger entry.

    expires_at mirrors the token's own exp claim. None means the expiry was
    unknown at revocation time; such entries are never pruned.
    """

    token: str
    revoked_at: str
    expires_at: str | None = None
    id: int | None = None


class ClaimsError(ValueError):
    """Raised by TokenClaims.from_payload when a payload does not fit the schema."""


@dataclass(frozen=True)
class TokenClaims:
    """Verified identity claims carried by an access token."""

    user_id: int
    username: str
    issuer: str
    issued_at: datetime | None
    expires_at: datetime

    @classmethod
    def from_payload(cls, payload: dict) -> "TokenClaims":
        """Build claims from a decoded JWT payload with explicit field checks.

        user_id must be an int (bool is rejected even though it subclasses
        int), username a non-empty str, iss a str, exp an int. iat is
        optional but must be an int when present.
        """
        user_id = payload.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise ClaimsError("user_id must be an integer")
        username = payload.get("username")
        if not isinstance(username, str) or not username:
            raise ClaimsError("username must be a non-empty string")
        issuer = payload.get("iss")
        if not isinstance(issuer, str):
            raise ClaimsError("iss must be a string")
        return cls(
            user_id=user_id,
            username=username,
            issuer=issuer,
            issued_at=_optional_timestamp(payload, "iat"),
            expires_at=_timestamp(payload, "exp"),
        )


def _timestamp(payload: dict, key: str) -> datetime:
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ClaimsError(f"{key} must be an integer timestamp")
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ClaimsError(f"{key} is out of range") from exc


def _optional_timestamp(payload: dict, key: str) -> datetime | None:
    if key not in payload:
        return None
    return _timestamp(payload, key)
