"""Unit tests for auth/revocation.py -- the Revocation Ledger.

Covers:
- revoke() then is_revoked() round trip, exact-string matching
- revoking twice is not an error and leaves the token revoked
- purge_expired() removes only entries past their token expiry
- entries without a known expiry are never pruned
- database failures surface as RevocationStoreError
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from auth.errors import RevocationStoreError, StoreError
from auth.revocation import RevocationLedger


class TestRevokeAndCheck:
    def test_unknown_token_is_not_revoked(self, ledger: RevocationLedger) -> None:
        assert ledger.is_revoked("never-seen") is False

    def test_revoked_token_is_revoked(self, ledger: RevocationLedger) -> None:
        assert ledger.revoke("tok-1") is True
        assert ledger.is_revoked("tok-1") is True

    def test_lookup_is_exact_string(self, ledger: RevocationLedger) -> None:
        ledger.revoke("tok-abc")
        assert ledger.is_revoked("tok-ab") is False
        assert ledger.is_revoked("tok-abcd") is False
        assert ledger.is_revoked("Bearer tok-abc") is False

    def test_revoke_twice_is_idempotent(self, ledger: RevocationLedger) -> None:
        assert ledger.revoke("tok-dup") is True
        assert ledger.revoke("tok-dup") is False
        assert ledger.is_revoked("tok-dup") is True
        assert ledger.count() == 1

    def test_second_revoke_keeps_first_entry(self, ledger: RevocationLedger) -> None:
        expiry = datetime.now(timezone.utc) + timedelta(hours=1)
        ledger.revoke("tok-keep", expires_at=expiry)
        ledger.revoke("tok-keep", expires_at=None)
        entry = ledger.get("tok-keep")
        assert entry is not None
        assert entry.expires_at == expiry.isoformat(timespec="seconds")

    def test_get_missing_returns_none(self, ledger: RevocationLedger) -> None:
        assert ledger.get("nope") is None

    def test_naive_expiry_treated_as_utc(self, ledger: RevocationLedger) -> None:
        ledger.revoke("tok-naive", expires_at=datetime(2030, 1, 1, 12, 0, 0))
        assert ledger.get("tok-naive").expires_at == "2030-01-01T12:00:00+00:00"


class TestPurge:
    def test_purge_removes_only_expired(self, ledger: RevocationLedger) -> None:
        now = datetime.now(timezone.utc)
        ledger.revoke("expired-1", expires_at=now - timedelta(hours=2))
        ledger.revoke("expired-2", expires_at=now - timedelta(seconds=5))
        ledger.revoke("live", expires_at=now + timedelta(hours=2))

        removed = ledger.purge_expired(now=now)

        assert removed == 2
        assert ledger.is_revoked("expired-1") is False
        assert ledger.is_revoked("expired-2") is False
        assert ledger.is_revoked("live") is True

    def test_unknown_expiry_never_pruned(self, ledger: RevocationLedger) -> None:
        ledger.revoke("forever")
        far_future = datetime.now(timezone.utc) + timedelta(days=365 * 50)
        assert ledger.purge_expired(now=far_future) == 0
        assert ledger.is_revoked("forever") is True

    def test_purge_on_empty_ledger(self, ledger: RevocationLedger) -> None:
        assert ledger.purge_expired() == 0


class TestStoreFailure:
    def test_lookup_failure_raises_store_error(self, engine, ledger: RevocationLedger) -> None:
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE revoked_tokens"))
        with pytest.raises(RevocationStoreError) as exc_info:
            ledger.is_revoked("tok")
        assert isinstance(exc_info.value, StoreError)
        assert "revocation lookup" in str(exc_info.value)

    def test_revoke_failure_raises_store_error(self, engine, ledger: RevocationLedger) -> None:
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE revoked_tokens"))
        with pytest.raises(RevocationStoreError):
            ledger.revoke("tok")
