"""Unit tests for auth/tokens.py -- JWT issue and verify.

Covers:
- issue() -> verify() returns the same identity and issuer
- expired tokens raise TokenExpired
- tokens signed with another secret raise InvalidSignature
- "none", RS256 and other non-HMAC headers raise UnsupportedAlgorithm
- malformed strings raise MalformedToken and never anything else
- foreign issuer and missing/mistyped claims raise MalformedToken
"""

from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import InvalidSignature, MalformedToken, TokenError, TokenExpired, UnsupportedAlgorithm
from auth.tokens import TokenService
from tests.conftest import TEST_SECRET

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _unsigned_token(alg: str, payload: dict | None = None, signature: str = "") -> str:
    """Build a JWT-shaped string with an arbitrary header alg and no real signature."""
    payload = payload or {"user_id": 1, "username": "mallory", "iss": "myapp", "exp": 4102444800}
    return f"{_b64({'alg': alg, 'typ': 'JWT'})}.{_b64(payload)}.{signature}"


def _signed(payload: dict, secret: str = TEST_SECRET, algorithm: str = "HS256") -> str:
    return jwt.encode(payload, secret, algorithm=algorithm)


def _future_exp() -> int:
    return int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestIssueVerify:
    @pytest.mark.parametrize("user_id,username", [(1, "alice"), (42, "bob_the_builder"), (987654, "ñandú")])
    def test_round_trip(self, token_service: TokenService, user_id: int, username: str) -> None:
        claims = token_service.verify(token_service.issue(user_id, username))
        assert claims.user_id == user_id
        assert claims.username == username
        assert claims.issuer == "myapp"

    def test_expiry_is_24h_by_default(self, token_service: TokenService) -> None:
        before = datetime.now(timezone.utc)
        claims = token_service.verify(token_service.issue(1, "alice"))
        expected = before + timedelta(hours=24)
        assert abs((claims.expires_at - expected).total_seconds()) < 5
        assert claims.issued_at is not None

    def test_custom_issuer_round_trip(self) -> None:
        service = TokenService(secret_key=TEST_SECRET, issuer="other-app")
        assert service.verify(service.issue(3, "carol")).issuer == "other-app"

    def test_other_hmac_algorithm_accepted(self, token_service: TokenService) -> None:
        token = _signed({"user_id": 5, "username": "dave", "iss": "myapp", "exp": _future_exp()}, algorithm="HS512")
        assert token_service.verify(token).user_id == 5

    def test_expires_at_reads_exp(self, token_service: TokenService) -> None:
        token = token_service.issue(1, "alice")
        assert token_service.expires_at(token) == token_service.verify(token).expires_at

    def test_expires_at_on_garbage_is_none(self, token_service: TokenService) -> None:
        assert token_service.expires_at("garbage") is None

    def test_constructor_rejects_non_hmac_algorithm(self) -> None:
        with pytest.raises(ValueError):
            TokenService(secret_key=TEST_SECRET, algorithm="RS256")

    def test_constructor_rejects_empty_secret(self) -> None:
        with pytest.raises(ValueError):
            TokenService(secret_key="")


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


class TestVerifyRejects:
    def test_expired_token(self) -> None:
        service = TokenService(secret_key=TEST_SECRET, expire_seconds=-60)
        token = service.issue(1, "alice")
        with pytest.raises(TokenExpired):
            service.verify(token)

    def test_wrong_secret(self, token_service: TokenService) -> None:
        other = TokenService(secret_key="a-completely-different-secret-key-000")
        with pytest.raises(InvalidSignature):
            token_service.verify(other.issue(1, "alice"))

    def test_tampered_payload(self, token_service: TokenService) -> None:
        header, _payload, signature = token_service.issue(1, "alice").split(".")
        forged = _b64({"user_id": 2, "username": "admin", "iss": "myapp", "exp": _future_exp()})
        with pytest.raises(InvalidSignature):
            token_service.verify(f"{header}.{forged}.{signature}")

    @pytest.mark.parametrize("alg", ["none", "None", "RS256", "ES256", "PS256", "HS1"])
    def test_non_hmac_algorithm(self, token_service: TokenService, alg: str) -> None:
        with pytest.raises(UnsupportedAlgorithm):
            token_service.verify(_unsigned_token(alg, signature="c2ln"))

    def test_alg_none_with_empty_signature(self, token_service: TokenService) -> None:
        with pytest.raises(UnsupportedAlgorithm):
            token_service.verify(_unsigned_token("none"))

    def test_missing_alg(self, token_service: TokenService) -> None:
        token = f"{_b64({'typ': 'JWT'})}.{_b64({'user_id': 1})}.c2ln"
        with pytest.raises(UnsupportedAlgorithm):
            token_service.verify(token)

    @pytest.mark.parametrize(
        "garbage",
        ["", "not-a-token", "a.b", "a.b.c", "....", "eyJhbGciOiJIUzI1NiJ9", "\x00\x01\x02", "ü.ü.ü"],
    )
    def test_malformed_strings(self, token_service: TokenService, garbage: str) -> None:
        with pytest.raises(TokenError):
            token_service.verify(garbage)

    def test_undecodable_header_is_malformed(self, token_service: TokenService) -> None:
        with pytest.raises(MalformedToken):
            token_service.verify("not-a-token")

    def test_foreign_issuer(self, token_service: TokenService) -> None:
        token = _signed({"user_id": 1, "username": "alice", "iss": "someone-else", "exp": _future_exp()})
        with pytest.raises(MalformedToken):
            token_service.verify(token)

    @pytest.mark.parametrize(
        "payload",
        [
            {"username": "alice", "iss": "myapp"},
            {"user_id": "1", "username": "alice", "iss": "myapp"},
            {"user_id": True, "username": "alice", "iss": "myapp"},
            {"user_id": 1, "username": "", "iss": "myapp"},
            {"user_id": 1, "iss": "myapp"},
            {"user_id": 1, "username": "alice"},
        ],
    )
    def test_bad_claim_schema(self, token_service: TokenService, payload: dict) -> None:
        with pytest.raises(MalformedToken):
            token_service.verify(_signed({**payload, "exp": _future_exp()}))

    def test_missing_exp(self, token_service: TokenService) -> None:
        with pytest.raises(MalformedToken):
            token_service.verify(_signed({"user_id": 1, "username": "alice", "iss": "myapp"}))
