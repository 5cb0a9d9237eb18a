"""
Async API client with silent access-token refresh.

Every request carries the session's access token. A 401 answer triggers one
refresh through /auth/refresh and a single replay of the request. Concurrent
401s share the same in-flight refresh: the first failure starts a refresh task
and the rest await it, so at most one refresh call is ever outstanding.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from app.client.errors import SessionExpiredError
from app.client.session import ClientSession

logger = logging.getLogger(__name__)

TOKEN_FIELDS = ("accessToken", "refreshToken", "tokenType")


class ApiClient:
    """
    Wraps an httpx.AsyncClient (whose base_url points at the server) and a ClientSession.

    Non-2xx responses raise httpx.HTTPStatusError. If a refresh fails, or there is no
    refresh token, the session is logged out, requests waiting on that refresh raise
    SessionExpiredError, and the request that triggered it raises its own 401 error.
    """

    def __init__(
        self,
        session: ClientSession,
        http: httpx.AsyncClient,
        api_prefix: str = "/api",
    ) -> None:
        self.session = session
        self._http = http
        self._auth_prefix = f"{api_prefix}/auth"
        self._refresh_task: asyncio.Future[str] | None = None

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None

    async def aclose(self) -> None:
        await self._http.aclose()

    # Requests

    async def _send(
        self, method: str, url: str, access_token: str | None, **kwargs: Any
    ) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return await self._http.request(method, url, headers=headers, **kwargs)

    def _skips_refresh(self, url: str) -> bool:
        # Credentials are wrong rather than expired on these; never refresh for them.
        path = httpx.URL(url).path
        return path.endswith(
            (
                f"{self._auth_prefix}/login",
                f"{self._auth_prefix}/signup",
                f"{self._auth_prefix}/refresh",
            )
        )

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, transparently refreshing an expired access token once."""
        sent_token = self.session.access_token
        response = await self._send(method, url, sent_token, **kwargs)
        if response.status_code != 401 or self._skips_refresh(url):
            response.raise_for_status()
            return response

        access_token = await self._fresh_access_token(sent_token, response)
        response = await self._send(method, url, access_token, **kwargs)
        response.raise_for_status()
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    # Silent refresh

    async def _fresh_access_token(
        self, sent_token: str | None, unauthorized: httpx.Response
    ) -> str:
        """
        Return an access token newer than sent_token, refreshing at most once at a time.

        The refresh runs in its own task, so cancelling any caller (including the one
        that started it) never aborts it for the others. Waiters raise
        SessionExpiredError if it fails; the request that started it raises its own
        401 as HTTPStatusError.
        """
        current = self.session.access_token
        if current and current != sent_token:
            # Another request already refreshed after this one was sent.
            return current

        task = self._refresh_task
        started = task is None
        if task is None:
            task = asyncio.ensure_future(self._run_refresh())
            task.add_done_callback(_retrieve_exception)
            self._refresh_task = task
        try:
            return await asyncio.shield(task)
        except SessionExpiredError as e:
            if not started:
                raise
            raise httpx.HTTPStatusError(
                f"Unauthorized: {unauthorized.request.method} {unauthorized.request.url}",
                request=unauthorized.request,
                response=unauthorized,
            ) from e

    async def _run_refresh(self) -> str:
        """Refresh and update the session; logs the session out if the refresh fails."""
        try:
            access_token = await self._refresh()
        except SessionExpiredError as e:
            logger.warning("Session refresh failed; logging out: %s", e.message)
            self.session.logout()
            raise
        else:
            self.session.set_access_token(access_token)
            logger.info("Access token refreshed")
            return access_token
        finally:
            self._refresh_task = None

    async def _post_refresh(self, refresh_token: str) -> str:
        try:
            response = await self._http.post(
                f"{self._auth_prefix}/refresh", json={"refreshToken": refresh_token}
            )
            response.raise_for_status()
            return response.json()["accessToken"]
        except httpx.HTTPStatusError as e:
            raise SessionExpiredError(_detail(e.response) or "Refresh token rejected") from e
        except httpx.HTTPError as e:
            raise SessionExpiredError(f"Refresh request failed: {e}") from e
        except (ValueError, KeyError) as e:
            raise SessionExpiredError("Malformed refresh response") from e

    async def _refresh(self) -> str:
        refresh_token = self.session.refresh_token
        if not refresh_token:
            raise SessionExpiredError("No refresh token available")
        return await self._post_refresh(refresh_token)

    # Auth flows

    def _store_session(self, body: dict[str, Any]) -> dict[str, Any]:
        user = {k: v for k, v in body.items() if k not in TOKEN_FIELDS}
        self.session.login(user, body["accessToken"], body["refreshToken"])
        return user

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and populate the session; returns the user profile."""
        response = await self.post(
            f"{self._auth_prefix}/login", json={"email": email, "password": password}
        )
        return self._store_session(response.json())

    async def signup(self, **fields: Any) -> dict[str, Any]:
        """
        Register; the session is populated unless the account awaits approval,
        in which case the {"pending": true, ...} body is returned as is.
        """
        response = await self.post(f"{self._auth_prefix}/signup", json=fields)
        body = response.json()
        if body.get("pending"):
            return body
        return self._store_session(body)

    async def me(self) -> dict[str, Any]:
        response = await self.get(f"{self._auth_prefix}/me")
        return response.json()

    async def _post_logout(self, access_token: str, refresh_token: str) -> httpx.Response:
        return await self._send(
            "POST",
            f"{self._auth_prefix}/logout",
            access_token,
            json={"refreshToken": refresh_token},
        )

    async def logout(self) -> None:
        """
        Clear the local session, then ask the server to revoke the refresh token.

        An absent or expired access token is renewed once with the refresh token so
        the revocation still goes through. The local logout always happens; server
        errors are logged and dropped.
        """
        refresh_token = self.session.refresh_token
        access_token = self.session.access_token
        self.session.logout()
        if not refresh_token:
            return
        try:
            refreshed = False
            if not access_token:
                access_token = await self._post_refresh(refresh_token)
                refreshed = True
            response = await self._post_logout(access_token, refresh_token)
            if response.status_code == 401 and not refreshed:
                access_token = await self._post_refresh(refresh_token)
                response = await self._post_logout(access_token, refresh_token)
            response.raise_for_status()
        except (httpx.HTTPError, SessionExpiredError) as e:
            logger.warning("Server logout failed; local session already cleared: %s", e)


def _detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("detail") if isinstance(body, dict) else None


def _retrieve_exception(task: asyncio.Future) -> None:
    # A failed refresh nobody is left awaiting must not be reported as unretrieved.
    if not task.cancelled():
        task.exception()
