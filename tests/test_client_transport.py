"""Tests for app.client.transport: silent refresh, single-flight, forced logout, best-effort logout."""

import asyncio
import unittest
from datetime import UTC, datetime, timedelta

import httpx

from app.client import ApiClient, ClientSession, MemoryStorage, SessionExpiredError
from app.core.security import create_access_token
from app.main import app
from tests.support import DEFAULT_PASSWORD, DatabaseTestCase

USER = {"id": 1, "name": "Dr Rao", "email": "rao@stmarys-clinic.org", "role": "doctor"}


class FakeServer:
    """MockTransport handler: accepts one access token, 401s any other."""

    def __init__(self, refresh_ok: bool = True, issued_token: str = "new-access") -> None:
        self.valid_access = "new-access"
        self.issued_token = issued_token
        self.refresh_ok = refresh_ok
        self.logout_error: Exception | None = None
        self.calls: list[tuple[str, str | None]] = []

    def count(self, path: str) -> int:
        return sum(1 for p, _ in self.calls if p == path)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((path, request.headers.get("authorization")))
        # Yield so concurrent requests are all in flight before any answer.
        await asyncio.sleep(0)

        if path == "/api/auth/refresh":
            await asyncio.sleep(0.01)
            if not self.refresh_ok:
                return httpx.Response(403, json={"detail": "Invalid refresh token"})
            return httpx.Response(200, json={"accessToken": self.issued_token})
        if path == "/api/auth/login":
            return httpx.Response(401, json={"detail": "Invalid email or password"})
        if path == "/api/auth/logout" and self.logout_error is not None:
            raise self.logout_error
        if path == "/api/boom":
            return httpx.Response(500, json={"detail": "boom"})
        if request.headers.get("authorization") != f"Bearer {self.valid_access}":
            return httpx.Response(401, json={"detail": "Token expired"})
        return httpx.Response(200, json={"path": path})


def _run(server: FakeServer, session: ClientSession, scenario):
    async def main():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(server), base_url="http://clinic.local"
        ) as http:
            return await scenario(ApiClient(session, http))

    return asyncio.run(main())


def _logged_in_session(storage: MemoryStorage | None = None) -> ClientSession:
    session = ClientSession(storage if storage is not None else MemoryStorage())
    session.login(USER, "old-access", "refresh-1")
    return session


class TestSilentRefresh(unittest.TestCase):
    def test_single_request_is_replayed_after_refresh(self) -> None:
        server = FakeServer()
        session = _logged_in_session()
        response = _run(server, session, lambda c: c.get("/api/patients"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(session.access_token, "new-access")
        self.assertEqual(
            server.calls,
            [
                ("/api/patients", "Bearer old-access"),
                ("/api/auth/refresh", None),
                ("/api/patients", "Bearer new-access"),
            ],
        )

    def test_concurrent_failures_share_one_refresh(self) -> None:
        server = FakeServer()
        session = _logged_in_session()

        async def scenario(client: ApiClient):
            return await asyncio.gather(*(client.get(f"/api/patients/{i}") for i in range(5)))

        responses = _run(server, session, scenario)
        self.assertEqual(server.count("/api/auth/refresh"), 1)
        self.assertEqual([r.status_code for r in responses], [200] * 5)
        replays = [auth for path, auth in server.calls if path.startswith("/api/patients/")]
        self.assertEqual(replays.count("Bearer old-access"), 5)
        self.assertEqual(replays.count("Bearer new-access"), 5)

    def test_refresh_failure_rejects_all_and_logs_out(self) -> None:
        server = FakeServer(refresh_ok=False)
        storage = MemoryStorage()
        session = _logged_in_session(storage)

        async def scenario(client: ApiClient):
            return await asyncio.gather(
                *(client.get(f"/api/patients/{i}") for i in range(4)),
                return_exceptions=True,
            )

        results = _run(server, session, scenario)
        self.assertEqual(server.count("/api/auth/refresh"), 1)
        triggering = [r for r in results if isinstance(r, httpx.HTTPStatusError)]
        queued = [r for r in results if isinstance(r, SessionExpiredError)]
        self.assertEqual(len(triggering), 1)
        self.assertEqual(len(queued), 3)
        self.assertEqual(triggering[0].response.status_code, 401)
        self.assertIsInstance(triggering[0].__cause__, SessionExpiredError)
        self.assertEqual(queued[0].message, "Invalid refresh token")
        self.assertFalse(session.is_authenticated)
        self.assertIsNone(session.user)
        self.assertEqual(storage.data, {})

    def test_missing_refresh_token_logs_out_without_calling_server(self) -> None:
        server = FakeServer()
        session = ClientSession(MemoryStorage())
        session.set_access_token("old-access")
        with self.assertRaises(httpx.HTTPStatusError) as ctx:
            _run(server, session, lambda c: c.get("/api/patients"))
        self.assertEqual(ctx.exception.response.status_code, 401)
        self.assertEqual(server.count("/api/auth/refresh"), 0)
        self.assertIsNone(session.access_token)

    def test_replayed_request_is_not_retried_twice(self) -> None:
        server = FakeServer(issued_token="still-wrong")
        session = _logged_in_session()
        with self.assertRaises(httpx.HTTPStatusError) as ctx:
            _run(server, session, lambda c: c.get("/api/patients"))
        self.assertEqual(ctx.exception.response.status_code, 401)
        self.assertEqual(server.count("/api/auth/refresh"), 1)
        self.assertEqual(server.count("/api/patients"), 2)

    def test_other_errors_are_not_refreshed(self) -> None:
        server = FakeServer()
        session = _logged_in_session()
        with self.assertRaises(httpx.HTTPStatusError) as ctx:
            _run(server, session, lambda c: c.get("/api/boom"))
        self.assertEqual(ctx.exception.response.status_code, 500)
        self.assertEqual(server.count("/api/auth/refresh"), 0)
        self.assertTrue(session.is_authenticated)

    def test_login_401_is_not_refreshed(self) -> None:
        server = FakeServer()
        session = _logged_in_session()
        with self.assertRaises(httpx.HTTPStatusError):
            _run(server, session, lambda c: c.login("rao@stmarys-clinic.org", "wrong"))
        self.assertEqual(server.count("/api/auth/refresh"), 0)

    def test_refresh_state_returns_to_idle(self) -> None:
        server = FakeServer()
        session = _logged_in_session()

        async def scenario(client: ApiClient):
            await client.get("/api/patients")
            return client.is_refreshing

        self.assertFalse(_run(server, session, scenario))

    def test_absolute_auth_url_is_not_refreshed(self) -> None:
        server = FakeServer()
        session = _logged_in_session()
        with self.assertRaises(httpx.HTTPStatusError):
            _run(
                server,
                session,
                lambda c: c.post(
                    "http://clinic.local/api/auth/login?next=%2Fpatients",
                    json={"email": "rao@stmarys-clinic.org", "password": "wrong"},
                ),
            )
        self.assertEqual(server.count("/api/auth/refresh"), 0)
        self.assertEqual(session.access_token, "old-access")


class TestRefreshOutlivesCallers(unittest.TestCase):
    """Cancelling the request that started a refresh must not abort it for the others."""

    def _cancel_initiator(self, server: FakeServer, session: ClientSession):
        async def scenario(client: ApiClient):
            first = asyncio.create_task(client.get("/api/patients/1"))
            while not client.is_refreshing:
                await asyncio.sleep(0)
            second = asyncio.create_task(client.get("/api/patients/2"))
            while server.count("/api/patients/2") == 0:
                await asyncio.sleep(0)
            first.cancel()
            results = await asyncio.gather(first, second, return_exceptions=True)
            return results, client.is_refreshing

        return _run(server, session, scenario)

    def test_waiter_gets_the_new_token(self) -> None:
        server = FakeServer()
        session = _logged_in_session()
        (first, second), refreshing = self._cancel_initiator(server, session)

        self.assertIsInstance(first, asyncio.CancelledError)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(session.access_token, "new-access")
        self.assertEqual(server.count("/api/auth/refresh"), 1)
        self.assertFalse(refreshing)

    def test_waiter_gets_the_failure_and_session_is_cleared(self) -> None:
        server = FakeServer(refresh_ok=False)
        storage = MemoryStorage()
        session = _logged_in_session(storage)
        (first, second), _ = self._cancel_initiator(server, session)

        self.assertIsInstance(first, asyncio.CancelledError)
        self.assertIsInstance(second, SessionExpiredError)
        self.assertFalse(session.is_authenticated)
        self.assertEqual(storage.data, {})


class TestClientLogout(unittest.TestCase):
    def test_logout_clears_session_even_when_server_is_down(self) -> None:
        server = FakeServer()
        server.logout_error = httpx.ConnectError("connection refused")
        storage = MemoryStorage()
        session = _logged_in_session(storage)
        session.set_access_token("new-access")

        _run(server, session, lambda c: c.logout())
        self.assertFalse(session.is_authenticated)
        self.assertEqual(storage.data, {})
        self.assertEqual(server.count("/api/auth/logout"), 1)

    def test_logout_without_access_token_refreshes_first(self) -> None:
        server = FakeServer()
        session = _logged_in_session()
        session.access_token = None

        _run(server, session, lambda c: c.logout())
        self.assertEqual(
            server.calls,
            [("/api/auth/refresh", None), ("/api/auth/logout", "Bearer new-access")],
        )
        self.assertFalse(session.is_authenticated)

    def test_logout_when_not_logged_in_is_local_only(self) -> None:
        server = FakeServer()
        session = ClientSession(MemoryStorage())
        _run(server, session, lambda c: c.logout())
        self.assertEqual(server.calls, [])

    def test_logout_with_expired_access_token_renews_and_retries(self) -> None:
        server = FakeServer()
        session = _logged_in_session()

        _run(server, session, lambda c: c.logout())
        self.assertEqual(
            server.calls,
            [
                ("/api/auth/logout", "Bearer old-access"),
                ("/api/auth/refresh", None),
                ("/api/auth/logout", "Bearer new-access"),
            ],
        )
        self.assertFalse(session.is_authenticated)

    def test_logout_gives_up_quietly_when_renewal_fails(self) -> None:
        server = FakeServer(refresh_ok=False)
        storage = MemoryStorage()
        session = _logged_in_session(storage)

        _run(server, session, lambda c: c.logout())
        self.assertEqual(server.count("/api/auth/logout"), 1)
        self.assertEqual(server.count("/api/auth/refresh"), 1)
        self.assertEqual(storage.data, {})


class TestClientAgainstApp(DatabaseTestCase):
    """The client driving the real application through httpx.ASGITransport."""

    def test_expired_access_token_is_renewed_once_then_logout_revokes(self) -> None:
        user = self.make_user(email="rao@stmarys-clinic.org")
        transport = CountingASGITransport(app=app)
        session = ClientSession(MemoryStorage())

        async def scenario():
            async with httpx.AsyncClient(transport=transport, base_url="http://clinic.local") as http:
                client = ApiClient(session, http)
                profile = await client.login(user.email, DEFAULT_PASSWORD)
                refresh_token = session.refresh_token
                session.set_access_token(
                    create_access_token(user.id, issued_at=datetime.now(UTC) - timedelta(minutes=20))
                )
                mes = await asyncio.gather(*(client.me() for _ in range(3)))
                await client.logout()
                after = await http.post("/api/auth/refresh", json={"refreshToken": refresh_token})
                return profile, mes, after

        profile, mes, after = asyncio.run(scenario())
        self.assertEqual(profile["id"], user.id)
        self.assertNotIn("accessToken", profile)
        self.assertEqual([m["id"] for m in mes], [user.id] * 3)
        self.assertEqual(transport.paths.count("/api/auth/refresh"), 2)
        self.assertEqual(after.status_code, 403)
        self.assertFalse(session.is_authenticated)

    def test_logout_with_expired_access_token_still_revokes(self) -> None:
        user = self.make_user(email="rao@stmarys-clinic.org")
        session = ClientSession(MemoryStorage())

        async def scenario():
            async with httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app), base_url="http://clinic.local"
            ) as http:
                client = ApiClient(session, http)
                await client.login(user.email, DEFAULT_PASSWORD)
                refresh_token = session.refresh_token
                session.set_access_token(
                    create_access_token(user.id, issued_at=datetime.now(UTC) - timedelta(minutes=20))
                )
                await client.logout()
                return await http.post("/api/auth/refresh", json={"refreshToken": refresh_token})

        after = asyncio.run(scenario())
        self.assertEqual(after.status_code, 403)
        self.assertEqual(after.json()["detail"], "Invalid refresh token")
        self.assertFalse(session.is_authenticated)


class CountingASGITransport(httpx.ASGITransport):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.paths: list[str] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        return await super().handle_async_request(request)


if __name__ == "__main__":
    unittest.main()
