"""
auth/tokens.py -- JWT issuance and verification.

Security design decisions:
  JWT: python-jose, HMAC family only. Tokens carry user_id, username, issuer,
       issued-at and expiry. Nothing is persisted at issue time -- validity is
       recomputed from signature + exp on every presentation, and explicit
       revocation is the ledger's job (auth/revocation.py).

  Algorithm pinning: the unverified header is inspected before anything else
       and any alg outside HS256/HS384/HS512 is rejected, including "none" and
       asymmetric algorithms. jwt.decode() is then called with the same
       allow-list so the library enforces it a second time.

  Errors: verify() raises one of four TokenError subclasses so logs and tests
       can tell the checks apart. Route code must collapse all of them into a
       single 401 -- telling a client *why* its token failed helps an attacker.

  Secret: passed to the constructor. This module never reads configuration
       itself; api/main.py builds one TokenService at startup from Settings.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import InvalidSignature, MalformedToken, TokenExpired, UnsupportedAlgorithm
from auth.models import ClaimsError, TokenClaims

_HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


class TokenService:
    """Issues and verifies signed, time-bounded bearer tokens.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key)
        token = tokens.issue(user.id, user.username)
        claims = tokens.verify(token)   # raises TokenError on any failure

    Instances hold only read-only configuration and are safe to share across
    request threads.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str = "myapp",
        expire_seconds: int = 24 * 60 * 60,
        algorithm: str = "HS256",
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        if algorithm not in _HMAC_ALGORITHMS:
            raise ValueError(f"algorithm must be one of {sorted(_HMAC_ALGORITHMS)}")
        self._secret_key = secret_key
        self.issuer = issuer
        self.expire_seconds = expire_seconds
        self.algorithm = algorithm

    def issue(self, user_id: int, username: str) -> str:
        """Encode a signed JWT for the given identity, valid for expire_seconds."""
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "username": username,
            "iss": self.issuer,
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and verify a JWT. Returns typed claims or raises TokenError.

        Check order: header structure, algorithm family, signature, expiry,
        issuer, claim schema. Never raises anything other than a TokenError
        subclass, whatever string it is given.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedToken("token header cannot be decoded") from exc

        alg = header.get("alg")
        if not isinstance(alg, str) or alg not in _HMAC_ALGORITHMS:
            raise UnsupportedAlgorithm(f"unexpected signing method {alg!r}")

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=list(_HMAC_ALGORITHMS),
                issuer=self.issuer,
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired("token has expired") from exc
        except JWTClaimsError as exc:
            raise MalformedToken(f"invalid claims: {exc}") from exc
        except JWTError as exc:
            raise InvalidSignature("signature verification failed") from exc
        except (ValueError, TypeError) as exc:
            raise MalformedToken("token cannot be decoded") from exc

        try:
            return TokenClaims.from_payload(payload)
        except ClaimsError as exc:
            raise MalformedToken(str(exc)) from exc

    def expires_at(self, token: str) -> datetime | None:
        """Return the token's exp claim without verifying it, or None if unreadable.

        Used only to give a revocation entry its prune horizon -- never to
        make an authorization decision.
        """
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return None
        exp = claims.get("exp")
        if not isinstance(exp, int) or isinstance(exp, bool):
            return None
        try:
            return datetime.fromtimestamp(exp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
