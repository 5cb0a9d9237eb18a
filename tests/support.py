"""Shared test cases: fresh in-memory schema per test, seeded users, API client."""

import unittest

from fastapi.testclient import TestClient

from app.core.database import SessionLocal, engine
from app.core.security import hash_password
from app.main import app
from app.models import Base, User

DEFAULT_PASSWORD = "secret-pass"


class DatabaseTestCase(unittest.TestCase):
    """Creates all tables before each test and drops them afterwards."""

    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(engine)

    def make_user(
        self,
        email: str = "doc@stmarys-clinic.org",
        role: str = "doctor",
        status: str = "active",
        password: str = DEFAULT_PASSWORD,
        name: str = "Dr Test",
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            status=status,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient for the real application."""

    def setUp(self) -> None:
        super().setUp()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    def login(self, email: str, password: str = DEFAULT_PASSWORD) -> dict:
        response = self.client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def auth_headers(self, access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}
