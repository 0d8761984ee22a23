"""
auth/gate.py -- Auth Gate: the admit/reject policy for protected requests.

The gate is framework-independent. It takes the raw Authorization header
value and returns a decision object; auth/dependencies.py adapts it to
FastAPI. Any other transport (a CLI, a worker, a different framework) can
run the same policy by calling intercept().

Decision sequence, first failure wins:
  1. Extract   -- no "Bearer <token>" credential  -> Reject(MISSING_CREDENTIAL)
  2. Revoked   -- token found in RevocationLedger  -> Reject(REVOKED)
  3. Verify    -- TokenService.verify() raises     -> Reject(INVALID_TOKEN)
  4. Admit     -- Admit(claims, token)

The ledger lookup runs before verification so no claim from a revoked token
is ever decoded into trusted form. A ledger outage raises
RevocationStoreError out of intercept() -- failing closed as a 500 rather
than admitting an unchecked token.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol, Union

from auth.errors import TokenError
from auth.models import TokenClaims
from auth.revocation import RevocationLedger
from auth.tokens import TokenService

_BEARER_SCHEME = "bearer"


class RejectReason(str, enum.Enum):
    MISSING_CREDENTIAL = "missing_credential"
    REVOKED = "revoked"
    INVALID_TOKEN = "invalid_token"


@dataclass(frozen=True)
class Admit:
    claims: TokenClaims
    token: str


@dataclass(frozen=True)
class Reject:
    reason: RejectReason
    # Server-side only: which verification check failed, e.g. "TokenExpired".
    detail: str = ""


Decision = Union[Admit, Reject]


class RequestFilter(Protocol):
    """Anything that can admit or reject a request from its Authorization header."""

    def intercept(self, authorization: str | None) -> Decision: ...


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token from an "Authorization: Bearer <token>" value, or None.

    The scheme is matched case-insensitively. Any other scheme, or a Bearer
    header with nothing after it, counts as no credential.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != _BEARER_SCHEME:
        return None
    token = token.strip()
    return token or None


class AuthGate:
    """RequestFilter combining the Revocation Ledger and the Token Service."""

    def __init__(self, tokens: TokenService, ledger: RevocationLedger) -> None:
        self.tokens = tokens
        self.ledger = ledger

    def intercept(self, authorization: str | None) -> Decision:
        token = extract_bearer(authorization)
        if token is None:
            return Reject(RejectReason.MISSING_CREDENTIAL)

        if self.ledger.is_revoked(token):
            return Reject(RejectReason.REVOKED)

        try:
            claims = self.tokens.verify(token)
        except TokenError as exc:
            return Reject(RejectReason.INVALID_TOKEN, detail=type(exc).__name__)

        return Admit(claims=claims, token=token)
