"""Tests for the create_user bootstrap script."""

import contextlib
import io
import unittest

from app.core.security import verify_password
from app.models import User
from app.scripts.create_user import main
from tests.support import DatabaseTestCase


class TestCreateUser(DatabaseTestCase):
    def _run(self, *argv: str) -> int:
        with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(io.StringIO()):
            return main(list(argv))

    def test_creates_active_admin_by_default(self) -> None:
        code = self._run("Front Desk", "Admin@StMarys-Clinic.org", "long-enough")
        self.assertEqual(code, 0)
        user = self.db.query(User).filter(User.email == "admin@stmarys-clinic.org").one()
        self.assertEqual(user.role, "admin")
        self.assertEqual(user.status, "active")
        self.assertTrue(verify_password("long-enough", user.password_hash))

    def test_explicit_role(self) -> None:
        self.assertEqual(self._run("Nurse", "nurse@stmarys-clinic.org", "long-enough", "nurse"), 0)
        user = self.db.query(User).filter(User.email == "nurse@stmarys-clinic.org").one()
        self.assertEqual(user.role, "nurse")

    def test_rejects_duplicate_and_bad_input(self) -> None:
        self.make_user(email="doc@stmarys-clinic.org")
        self.assertEqual(self._run("Dup", "doc@stmarys-clinic.org", "long-enough"), 1)
        self.assertEqual(self._run("Bad", "not-an-email", "long-enough"), 1)
        self.assertEqual(self._run("Short", "short@stmarys-clinic.org", "abc"), 1)
        self.assertEqual(self.db.query(User).count(), 1)


if __name__ == "__main__":
    unittest.main()
