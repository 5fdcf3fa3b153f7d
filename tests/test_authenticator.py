"""Tests for compssa.services.auth.authenticate: password login and the lockout policy."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import SQLAlchemyError

from compssa.core.config import Settings, get_settings
from compssa.core.security import decode_access_token, decode_refresh_token, hash_password
from compssa.models import Account
from compssa.models.account import as_utc
from compssa.services.auth import (
    _DUMMY_HASH,
    AccountDeactivated,
    AccountLocked,
    InvalidCredentials,
    authenticate,
    reset_lockout,
)
from support import ADMIN_PASSWORD, CLERK_PASSWORD, make_sessionmaker, seed_admin, seed_clerk

NOW = datetime(2025, 10, 19, 12, 0, 0, tzinfo=UTC)


class AuthenticatorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = get_settings()
        self.db = make_sessionmaker()()
        self.admin = seed_admin(self.db)
        self.clerk = seed_clerk(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def _login(self, username: str, password: str, now: datetime = NOW):
        return authenticate(self.db, username, password, self.settings, now=now)

    def _reload(self, account: Account) -> Account:
        self.db.expire_all()
        return self.db.get(Account, account.id)


class TestSuccessfulLogin(AuthenticatorTestCase):
    def test_returns_tokens_and_account(self) -> None:
        result = self._login("admin", ADMIN_PASSWORD)
        self.assertEqual(result.account.id, self.admin.id)
        self.assertEqual(result.expires_in, self.settings.JWT_EXPIRE_MINUTES * 60)
        payload = decode_access_token(result.access_token)
        self.assertEqual(payload["sub"], str(self.admin.id))
        self.assertEqual(payload["username"], "admin")
        self.assertEqual(payload["role"], "admin")
        self.assertTrue(result.refresh_token)

    def test_token_lifetime_follows_given_settings(self) -> None:
        custom = Settings(JWT_EXPIRE_MINUTES=5, JWT_REFRESH_EXPIRE_MINUTES=60)
        result = authenticate(self.db, "admin", ADMIN_PASSWORD, custom, now=NOW)
        self.assertEqual(result.expires_in, 300)
        access = decode_access_token(result.access_token)
        self.assertEqual(access["exp"] - access["iat"], 300)
        refresh = decode_refresh_token(result.refresh_token)
        self.assertEqual(refresh["exp"] - refresh["iat"], 3600)

    def test_username_is_case_insensitive(self) -> None:
        result = self._login("  ADMIN ", ADMIN_PASSWORD)
        self.assertEqual(result.account.username, "admin")

    def test_clears_prior_failures_and_records_last_login(self) -> None:
        for _ in range(3):
            with self.assertRaises(InvalidCredentials):
                self._login("admin", "wrong")
        self._login("admin", ADMIN_PASSWORD)
        admin = self._reload(self.admin)
        self.assertEqual(admin.failed_login_count, 0)
        self.assertIsNone(admin.locked_until)
        self.assertEqual(as_utc(admin.last_login), NOW)


class TestRejectedLogin(AuthenticatorTestCase):
    def test_unknown_username_is_invalid_credentials(self) -> None:
        with self.assertRaises(InvalidCredentials) as ctx:
            self._login("nobody", "whatever")
        self.assertEqual(ctx.exception.code, "INVALID_CREDENTIALS")

    def test_unknown_username_still_runs_bcrypt(self) -> None:
        with patch("compssa.services.auth.verify_password", return_value=False) as check:
            with self.assertRaises(InvalidCredentials):
                self._login("nobody", "whatever")
        check.assert_called_once_with("whatever", _DUMMY_HASH)

    def test_dummy_hash_uses_configured_work_factor(self) -> None:
        self.assertEqual(_DUMMY_HASH.split("$")[2], f"{self.settings.BCRYPT_ROUNDS:02d}")

    def test_wrong_password_increments_counter(self) -> None:
        with self.assertRaises(InvalidCredentials):
            self._login("admin", "wrong")
        self.assertEqual(self._reload(self.admin).failed_login_count, 1)

    def test_unknown_and_wrong_password_look_the_same(self) -> None:
        with self.assertRaises(InvalidCredentials) as unknown:
            self._login("nobody", "wrong")
        with self.assertRaises(InvalidCredentials) as wrong:
            self._login("admin", "wrong")
        self.assertEqual(unknown.exception.message, wrong.exception.message)

    def test_deactivated_account_rejected_with_correct_password(self) -> None:
        self.admin.is_active = False
        self.db.commit()
        with self.assertRaises(AccountDeactivated):
            self._login("admin", ADMIN_PASSWORD)
        self.assertEqual(self._reload(self.admin).failed_login_count, 0)


class TestLockoutScenarios(AuthenticatorTestCase):
    def test_four_failures_never_lock(self) -> None:
        for _ in range(4):
            with self.assertRaises(InvalidCredentials):
                self._login("admin", "wrong")
        admin = self._reload(self.admin)
        self.assertEqual(admin.failed_login_count, 4)
        self.assertIsNone(admin.locked_until)
        self._login("admin", ADMIN_PASSWORD)

    def test_fifth_failure_locks_and_correct_password_is_refused(self) -> None:
        for _ in range(4):
            with self.assertRaises(InvalidCredentials):
                self._login("admin", "wrong")
        with self.assertRaises(AccountLocked) as ctx:
            self._login("admin", "wrong")
        self.assertEqual(ctx.exception.retry_after, 7200)
        admin = self._reload(self.admin)
        self.assertEqual(as_utc(admin.locked_until), NOW + timedelta(hours=2))

        with self.assertRaises(AccountLocked) as ctx:
            self._login("admin", ADMIN_PASSWORD, now=NOW + timedelta(seconds=1))
        self.assertEqual(ctx.exception.retry_after, 7199)
        self.assertEqual(ctx.exception.code, "ACCOUNT_LOCKED")

    def test_wrong_password_after_expiry_restarts_at_one(self) -> None:
        self.clerk.failed_login_count = 5
        self.clerk.locked_until = NOW - timedelta(seconds=1)
        self.db.commit()
        with self.assertRaises(InvalidCredentials):
            self._login("clerk", "wrong")
        clerk = self._reload(self.clerk)
        self.assertEqual(clerk.failed_login_count, 1)
        self.assertIsNone(clerk.locked_until)

    def test_correct_password_after_expiry_succeeds(self) -> None:
        self.clerk.failed_login_count = 5
        self.clerk.locked_until = NOW - timedelta(seconds=1)
        self.db.commit()
        self._login("clerk", CLERK_PASSWORD)
        clerk = self._reload(self.clerk)
        self.assertEqual(clerk.failed_login_count, 0)
        self.assertIsNone(clerk.locked_until)

    def test_lock_is_per_account(self) -> None:
        for _ in range(4):
            with self.assertRaises(InvalidCredentials):
                self._login("admin", "wrong")
        with self.assertRaises(AccountLocked):
            self._login("admin", "wrong")
        self._login("clerk", CLERK_PASSWORD)

    def test_reset_lockout_unlocks_named_account(self) -> None:
        for _ in range(4):
            with self.assertRaises(InvalidCredentials):
                self._login("admin", "wrong")
        with self.assertRaises(AccountLocked):
            self._login("admin", "wrong")
        self.assertEqual(reset_lockout(self.db, ["admin"]), 1)
        self._login("admin", ADMIN_PASSWORD, now=NOW + timedelta(seconds=1))


class TestPersistenceFailure(unittest.TestCase):
    """A failed write of lockout state aborts the login instead of succeeding."""

    def _session_returning(self, account: Account) -> MagicMock:
        db = MagicMock()
        query = db.query.return_value.filter.return_value
        query.with_for_update.return_value.populate_existing.return_value.first.return_value = account
        db.commit.side_effect = SQLAlchemyError("write failed")
        return db

    def _account(self) -> Account:
        return Account(
            id=1,
            username="admin",
            password_hash=hash_password(ADMIN_PASSWORD),
            full_name="Admin",
            role="admin",
            is_active=True,
            failed_login_count=0,
            locked_until=None,
        )

    def test_commit_error_on_success_path_propagates(self) -> None:
        db = self._session_returning(self._account())
        with self.assertRaises(SQLAlchemyError):
            authenticate(db, "admin", ADMIN_PASSWORD, get_settings(), now=NOW)
        db.rollback.assert_called()

    def test_commit_error_on_failure_path_propagates(self) -> None:
        db = self._session_returning(self._account())
        with self.assertRaises(SQLAlchemyError):
            authenticate(db, "admin", "wrong", get_settings(), now=NOW)
        db.rollback.assert_called()


if __name__ == "__main__":
    unittest.main()
