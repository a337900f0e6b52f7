"""Proxy for the hosted auth provider (Supabase GoTrue REST API)."""

import logging

import httpx

from app.core.config import settings
from app.core.exceptions import AuthProviderError

logger = logging.getLogger(__name__)


class AuthProviderClient:
    def __init__(
        self,
        base_url: str | None = None,
        anon_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    async def _post(self, path: str, body: dict, params: dict | None = None) -> dict:
        url = f"{self.base_url}/auth/v1{path}"
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=body, params=params, headers=headers)
                resp.raise_for_status()
                return resp.json() if resp.content else {}
        except httpx.HTTPStatusError as exc:
            upstream = exc.response.status_code
            logger.warning("Auth provider %s returned %s", path, upstream)
            raise AuthProviderError(_error_message(exc.response), upstream_status=upstream)
        except httpx.RequestError as exc:
            logger.error("Auth provider connection error: %s", exc)
            raise AuthProviderError("Cannot reach auth provider")

    async def sign_in(self, email: str, password: str) -> dict:
        return await self._post(
            "/token", {"email": email, "password": password}, params={"grant_type": "password"}
        )

    async def sign_up(self, email: str, password: str, redirect_to: str | None = None) -> dict:
        params = {"redirect_to": redirect_to} if redirect_to else None
        return await self._post("/signup", {"email": email, "password": password}, params=params)

    async def recover(self, email: str, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._post("/recover", {"email": email}, params=params)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return "Auth provider error"
    return (
        data.get("error_description")
        or data.get("msg")
        or data.get("message")
        or "Auth provider error"
    )


def get_auth_provider() -> AuthProviderClient:
    return AuthProviderClient()
