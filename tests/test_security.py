"""Unit tests for app.core.security: token issuance, kind separation and expiry boundaries."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.security import (
    access_token_lifetime,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    refresh_token_lifetime,
    token_expiry,
    verify_password,
)


class TestPasswordHashing(unittest.TestCase):
    def test_verify_roundtrip(self) -> None:
        hashed = hash_password("correct horse")
        self.assertNotEqual(hashed, "correct horse")
        self.assertTrue(verify_password("correct horse", hashed))
        self.assertFalse(verify_password("wrong horse", hashed))

    def test_garbage_hash_is_rejected_not_raised(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))


class TestTokenLifetimes(unittest.TestCase):
    def test_defaults(self) -> None:
        self.assertEqual(access_token_lifetime(), timedelta(minutes=15))
        self.assertEqual(refresh_token_lifetime(), timedelta(days=7))

    def test_refresh_token_expires_after_seven_days(self) -> None:
        issued = datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
        token = create_refresh_token(5, issued_at=issued)
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
        self.assertEqual(token_expiry(payload), issued + timedelta(days=7))
        self.assertEqual(payload["sub"], "5")


class TestAccessTokenExpiryBoundary(unittest.TestCase):
    """Rejected at or after exp, accepted strictly before it."""

    def test_accepted_before_expiry(self) -> None:
        issued = datetime.now(UTC) - timedelta(minutes=15) + timedelta(seconds=5)
        payload = decode_access_token(create_access_token(1, issued_at=issued))
        self.assertEqual(payload["sub"], "1")

    def test_rejected_at_expiry(self) -> None:
        issued = datetime.now(UTC) - timedelta(minutes=15)
        token = create_access_token(1, issued_at=issued)
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_rejected_after_expiry(self) -> None:
        issued = datetime.now(UTC) - timedelta(minutes=16)
        token = create_access_token(1, issued_at=issued)
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(token)


class TestTokenKindSeparation(unittest.TestCase):
    """Each kind is signed with its own secret and carries its own type claim."""

    def test_refresh_token_is_not_an_access_token(self) -> None:
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(create_refresh_token(1))

    def test_access_token_is_not_a_refresh_token(self) -> None:
        with self.assertRaises(jwt.PyJWTError):
            decode_refresh_token(create_access_token(1))

    def test_access_secret_cannot_forge_refresh_token(self) -> None:
        now = datetime.now(UTC)
        forged = jwt.encode(
            {"sub": "1", "type": "refresh", "iat": now, "exp": now + timedelta(days=1)},
            "test-access-secret-0123456789abcdef",
            algorithm="HS256",
        )
        with self.assertRaises(jwt.InvalidSignatureError):
            decode_refresh_token(forged)

    def test_refresh_tokens_issued_together_are_distinct(self) -> None:
        issued = datetime.now(UTC)
        self.assertNotEqual(
            create_refresh_token(1, issued_at=issued),
            create_refresh_token(1, issued_at=issued),
        )

    def test_malformed_token(self) -> None:
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token("not.a.jwt")


if __name__ == "__main__":
    unittest.main()
