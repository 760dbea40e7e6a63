"""Tests for Settings validation."""

import unittest

from pydantic import ValidationError

from formula_access.core.config import DEV_SECRET_PLACEHOLDER, Settings
from tests.helpers import make_settings


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.ACCESS_TOKEN_TTL_MINUTES, 7 * 24 * 60)
        self.assertEqual(settings.REFRESH_TOKEN_TTL_DAYS, 30)
        self.assertEqual(settings.JWT_ISSUER, "formula-pm-api")
        self.assertEqual(settings.JWT_AUDIENCE, "formula-pm-app")
        self.assertFalse(settings.ALLOW_ADMIN_SELF_REGISTRATION)

    def test_rejects_unknown_database_scheme(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="mysql://localhost/db")

    def test_rejects_blank_secret(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(ACCESS_TOKEN_SECRET="   ")

    def test_rejects_out_of_range_values(self) -> None:
        for field, value in (
            ("BCRYPT_ROUNDS", 3),
            ("BCRYPT_ROUNDS", 32),
            ("ACCESS_TOKEN_TTL_MINUTES", -1),
            ("REFRESH_TOKEN_TTL_DAYS", 366),
            ("LOGIN_RATE_LIMIT", 0),
        ):
            with self.subTest(field=field, value=value):
                with self.assertRaises(ValidationError):
                    make_settings(**{field: value})

    def test_prod_refuses_placeholder_secrets(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(
                APP_ENV="prod",
                DATABASE_URL="sqlite://",
                ACCESS_TOKEN_SECRET=DEV_SECRET_PLACEHOLDER,
                REFRESH_TOKEN_SECRET="a-real-refresh-secret",
            )

    def test_prod_refuses_shared_secret(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(
                APP_ENV="prod",
                ACCESS_TOKEN_SECRET="same-secret",
                REFRESH_TOKEN_SECRET="same-secret",
            )

    def test_prod_accepts_distinct_secrets(self) -> None:
        settings = make_settings(APP_ENV="prod")
        self.assertEqual(settings.ACCESS_TOKEN_SECRET.get_secret_value(), "test-access-secret")


if __name__ == "__main__":
    unittest.main()
