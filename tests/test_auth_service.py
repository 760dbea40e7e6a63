"""Tests for formula_access.services.auth: login, register, refresh, logout and admin actions."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from formula_access.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from formula_access.core.security import (
    hash_refresh_token,
    issue_refresh_token,
    verify_access_token,
)
from formula_access.schemas.auth import RegisterRequest
from formula_access.services import auth, users
from formula_access.services.sessions import count_sessions_for_user, create_session
from tests.helpers import TEST_PASSWORD, make_session_factory, make_settings, make_user


def _registration(**kwargs: object) -> RegisterRequest:
    values: dict[str, object] = {
        "email": "alice@example.com",
        "password": TEST_PASSWORD,
        "first_name": "Alice",
        "last_name": "Doe",
    }
    values.update(kwargs)
    return RegisterRequest(**values)


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.settings = make_settings()

    def tearDown(self) -> None:
        self.db.close()


class TestFullSessionLifecycle(AuthServiceTestCase):
    def test_register_login_refresh_logout(self) -> None:
        registered = auth.register(self.db, _registration(), self.settings)
        self.assertEqual(registered.user.role, "craftsman")
        self.assertEqual(registered.user.status, "active")
        self.assertFalse(registered.user.email_verified)
        self.assertEqual(registered.expires_in, 7 * 24 * 3600)

        tokens = auth.login(self.db, "alice@example.com", TEST_PASSWORD, self.settings)
        self.assertIsNotNone(tokens.user.last_login_at)
        self.assertEqual(count_sessions_for_user(self.db, tokens.user.id), 2)

        access_token, expires_in = auth.refresh(self.db, tokens.refresh_token, self.settings)
        self.assertNotEqual(access_token, tokens.access_token)
        self.assertEqual(expires_in, 7 * 24 * 3600)
        verified = verify_access_token(access_token, self.settings)
        self.assertEqual(verified.user_id, tokens.user.id)
        self.assertEqual(verified.claims["email"], "alice@example.com")

        auth.logout(self.db, tokens.user.id)
        self.assertEqual(count_sessions_for_user(self.db, tokens.user.id), 0)
        with self.assertRaises(AuthenticationError) as ctx:
            auth.refresh(self.db, tokens.refresh_token, self.settings)
        self.assertEqual(ctx.exception.message, "Invalid or expired refresh token")

    def test_login_email_is_case_insensitive(self) -> None:
        auth.register(self.db, _registration(), self.settings)
        tokens = auth.login(self.db, "  Alice@Example.COM ", TEST_PASSWORD, self.settings)
        self.assertEqual(tokens.user.email, "alice@example.com")


class TestLogin(AuthServiceTestCase):
    def test_unknown_email_and_wrong_password_look_the_same(self) -> None:
        make_user(self.db, "bob@example.com")
        with self.assertRaises(AuthenticationError) as unknown:
            auth.login(self.db, "nobody@example.com", TEST_PASSWORD, self.settings)
        with self.assertRaises(AuthenticationError) as wrong:
            auth.login(self.db, "bob@example.com", "Wr0ng!Pass", self.settings)
        self.assertEqual(unknown.exception.message, "Invalid email or password")
        self.assertEqual(wrong.exception.message, unknown.exception.message)
        self.assertEqual(wrong.exception.code, unknown.exception.code)

    def test_unknown_email_still_runs_password_check(self) -> None:
        make_user(self.db, "bob@example.com")
        with patch.object(auth, "verify_password", wraps=auth.verify_password) as verify:
            with self.assertRaises(AuthenticationError):
                auth.login(self.db, "nobody@example.com", TEST_PASSWORD, self.settings)
            verify.assert_called_once()
            password, hashed = verify.call_args.args
            self.assertEqual(password, TEST_PASSWORD)
            self.assertIn("$04$", hashed)

            verify.reset_mock()
            with self.assertRaises(AuthenticationError):
                auth.login(self.db, "bob@example.com", "Wr0ng!Pass", self.settings)
            verify.assert_called_once()

    def test_inactive_user_cannot_login(self) -> None:
        make_user(self.db, "gone@example.com", status="suspended")
        with self.assertRaises(AuthenticationError) as ctx:
            auth.login(self.db, "gone@example.com", TEST_PASSWORD, self.settings)
        self.assertEqual(ctx.exception.code, "ACCOUNT_INACTIVE")
        self.assertEqual(ctx.exception.message, "Account is not active")

    def test_inactive_user_with_wrong_password_gets_generic_message(self) -> None:
        make_user(self.db, "gone@example.com", status="inactive")
        with self.assertRaises(AuthenticationError) as ctx:
            auth.login(self.db, "gone@example.com", "Wr0ng!Pass", self.settings)
        self.assertEqual(ctx.exception.message, "Invalid email or password")

    def test_failed_login_creates_no_session(self) -> None:
        user = make_user(self.db, "bob@example.com")
        with self.assertRaises(AuthenticationError):
            auth.login(self.db, "bob@example.com", "Wr0ng!Pass", self.settings)
        self.assertEqual(count_sessions_for_user(self.db, user.id), 0)


class TestRegister(AuthServiceTestCase):
    def test_duplicate_email_conflicts(self) -> None:
        auth.register(self.db, _registration(), self.settings)
        with self.assertRaises(ConflictError) as ctx:
            auth.register(self.db, _registration(email="ALICE@example.com"), self.settings)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.message, "User with this email already exists")

    def test_profile_fields_are_trimmed(self) -> None:
        tokens = auth.register(
            self.db,
            _registration(first_name="  Alice ", position=" Site lead ", skills=["tiling"]),
            self.settings,
        )
        self.assertEqual(tokens.user.first_name, "Alice")
        self.assertEqual(tokens.user.position, "Site lead")
        self.assertEqual(tokens.user.skills, ["tiling"])

    def test_admin_self_registration_refused_by_default(self) -> None:
        with self.assertRaises(AuthorizationError) as ctx:
            auth.register(self.db, _registration(role="admin"), self.settings)
        self.assertEqual(ctx.exception.code, "INSUFFICIENT_PERMISSIONS")
        self.assertIsNone(users.get_user_by_email(self.db, "alice@example.com"))

    def test_admin_self_registration_when_enabled(self) -> None:
        settings = make_settings(ALLOW_ADMIN_SELF_REGISTRATION=True)
        tokens = auth.register(self.db, _registration(role="admin"), settings)
        self.assertEqual(tokens.user.role, "admin")


class TestRefresh(AuthServiceTestCase):
    def test_access_token_is_not_a_refresh_token(self) -> None:
        tokens = auth.register(self.db, _registration(), self.settings)
        with self.assertRaises(AuthenticationError) as ctx:
            auth.refresh(self.db, tokens.access_token, self.settings)
        self.assertEqual(ctx.exception.message, "Invalid or expired refresh token")

    def test_valid_token_without_session_fails(self) -> None:
        user = make_user(self.db)
        token = issue_refresh_token(user, self.settings)
        with self.assertRaises(AuthenticationError):
            auth.refresh(self.db, token, self.settings)

    def test_expired_session_fails(self) -> None:
        user = make_user(self.db)
        token = issue_refresh_token(user, self.settings)
        create_session(
            self.db,
            user.id,
            hash_refresh_token(token),
            datetime.now(UTC) - timedelta(minutes=1),
        )
        with self.assertRaises(AuthenticationError) as ctx:
            auth.refresh(self.db, token, self.settings)
        self.assertEqual(ctx.exception.message, "Invalid or expired refresh token")

    def test_inactive_owner_fails(self) -> None:
        user = make_user(self.db)
        token = issue_refresh_token(user, self.settings)
        create_session(
            self.db,
            user.id,
            hash_refresh_token(token),
            datetime.now(UTC) + timedelta(days=1),
        )
        users.update_status(self.db, user.id, "suspended")
        with self.assertRaises(AuthenticationError) as ctx:
            auth.refresh(self.db, token, self.settings)
        self.assertEqual(ctx.exception.code, "ACCOUNT_INACTIVE")


class TestLogout(AuthServiceTestCase):
    def test_logout_is_idempotent(self) -> None:
        user = make_user(self.db)
        auth.logout(self.db, user.id)
        auth.logout(self.db, user.id)
        self.assertEqual(count_sessions_for_user(self.db, user.id), 0)

    def test_logout_ends_every_device(self) -> None:
        make_user(self.db, "bob@example.com")
        first = auth.login(self.db, "bob@example.com", TEST_PASSWORD, self.settings)
        second = auth.login(self.db, "bob@example.com", TEST_PASSWORD, self.settings)
        auth.logout(self.db, first.user.id)
        for tokens in (first, second):
            with self.assertRaises(AuthenticationError):
                auth.refresh(self.db, tokens.refresh_token, self.settings)

    def test_storage_failure_is_swallowed(self) -> None:
        with patch.object(
            auth.sessions,
            "delete_sessions_for_user",
            side_effect=DatabaseError("Failed to delete sessions"),
        ):
            auth.logout(self.db, "some-user-id")


class TestChangePassword(AuthServiceTestCase):
    def test_change_wipes_sessions_and_swaps_password(self) -> None:
        make_user(self.db, "bob@example.com")
        tokens = auth.login(self.db, "bob@example.com", TEST_PASSWORD, self.settings)

        auth.change_password(self.db, tokens.user.id, TEST_PASSWORD, "N3w!Passw0rd", self.settings)

        self.assertEqual(count_sessions_for_user(self.db, tokens.user.id), 0)
        with self.assertRaises(AuthenticationError):
            auth.refresh(self.db, tokens.refresh_token, self.settings)
        with self.assertRaises(AuthenticationError):
            auth.login(self.db, "bob@example.com", TEST_PASSWORD, self.settings)
        auth.login(self.db, "bob@example.com", "N3w!Passw0rd", self.settings)

    def test_wrong_current_password(self) -> None:
        user = make_user(self.db)
        with self.assertRaises(AuthenticationError) as ctx:
            auth.change_password(self.db, user.id, "Wr0ng!Pass", "N3w!Passw0rd", self.settings)
        self.assertEqual(ctx.exception.message, "Current password is incorrect")

    def test_short_new_password(self) -> None:
        user = make_user(self.db)
        with self.assertRaises(ValidationError):
            auth.change_password(self.db, user.id, TEST_PASSWORD, "short", self.settings)

    def test_missing_passwords(self) -> None:
        user = make_user(self.db)
        with self.assertRaises(ValidationError):
            auth.change_password(self.db, user.id, "", "N3w!Passw0rd", self.settings)

    def test_unknown_user(self) -> None:
        with self.assertRaises(NotFoundError):
            auth.change_password(self.db, "missing", TEST_PASSWORD, "N3w!Passw0rd", self.settings)


class TestAdminActions(AuthServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = make_user(self.db, "admin@example.com", role="admin")
        make_user(self.db, "bob@example.com")
        self.tokens = auth.login(self.db, "bob@example.com", TEST_PASSWORD, self.settings)

    def test_suspending_forces_logout(self) -> None:
        user = auth.set_user_status(self.db, self.tokens.user.id, "suspended", self.admin.id)
        self.assertEqual(user.status, "suspended")
        self.assertIsNone(user.deleted_at)
        self.assertEqual(count_sessions_for_user(self.db, user.id), 0)

    def test_deactivating_stamps_deleted_at(self) -> None:
        user = auth.set_user_status(self.db, self.tokens.user.id, "inactive", self.admin.id)
        self.assertIsNotNone(user.deleted_at)

    def test_reactivating_keeps_sessions(self) -> None:
        auth.set_user_status(self.db, self.tokens.user.id, "active", self.admin.id)
        self.assertEqual(count_sessions_for_user(self.db, self.tokens.user.id), 1)

    def test_invalid_status(self) -> None:
        with self.assertRaises(ValidationError):
            auth.set_user_status(self.db, self.tokens.user.id, "banned", self.admin.id)

    def test_force_logout_reports_count(self) -> None:
        auth.login(self.db, "bob@example.com", TEST_PASSWORD, self.settings)
        self.assertEqual(auth.force_logout(self.db, self.tokens.user.id, self.admin.id), 2)
        with self.assertRaises(NotFoundError):
            auth.force_logout(self.db, "missing", self.admin.id)


class TestProfileUpdate(AuthServiceTestCase):
    def test_only_whitelisted_fields_change(self) -> None:
        user = make_user(self.db, role="craftsman")
        updated = users.update_profile(
            self.db,
            user.id,
            {"first_name": "  Robert ", "role": "admin", "email": "x@example.com"},
        )
        self.assertEqual(updated.first_name, "Robert")
        self.assertEqual(updated.role, "craftsman")
        self.assertEqual(updated.email, "user@example.com")

    def test_profile_of_missing_user(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            users.require_user(self.db, "missing")
        self.assertEqual(ctx.exception.code, "USER_NOT_FOUND")
        self.assertEqual(ctx.exception.message, "User not found")

    def test_no_valid_fields(self) -> None:
        user = make_user(self.db)
        with self.assertRaises(ValidationError) as ctx:
            users.update_profile(self.db, user.id, {"role": "admin"})
        self.assertEqual(ctx.exception.message, "No valid updates provided")


if __name__ == "__main__":
    unittest.main()
