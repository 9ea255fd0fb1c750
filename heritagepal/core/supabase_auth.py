"""Thin async client for the Supabase Auth (GoTrue) REST API."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from heritagepal.core.config import settings
from heritagepal.core.exceptions import UpstreamAuthError
from heritagepal.core.logging import get_logger


logger = get_logger(__name__)


@dataclass
class AuthUser:
    id: uuid.UUID
    email: str
    name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AuthUser":
        meta = payload.get("user_metadata") or {}
        return cls(
            id=uuid.UUID(str(payload["id"])),
            email=str(payload.get("email") or ""),
            name=meta.get("name"),
        )


@dataclass
class AuthSession:
    access_token: str
    user: AuthUser


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


class SupabaseAuthClient:
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_key: str = "",
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.anon_key = anon_key
        self.service_key = service_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), transport=transport, timeout=timeout
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _admin_headers(self) -> dict[str, str]:
        if not self.service_key:
            raise UpstreamAuthError("SUPABASE_SERVICE_KEY is not configured", 500)
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Supabase Auth request %s %s failed: %s", method, url, e)
            raise UpstreamAuthError("Authentication service unavailable", 502) from e

    async def sign_in(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers={"apikey": self.anon_key},
        )
        if response.status_code >= 500:
            raise UpstreamAuthError("Authentication service unavailable", 502)
        if response.status_code != 200:
            raise UpstreamAuthError(
                f"Authentication failed: {_error_message(response)}", 401
            )
        body = response.json()
        return AuthSession(
            access_token=body["access_token"], user=AuthUser.from_payload(body["user"])
        )

    async def create_user(self, email: str, password: str, name: str) -> Optional[AuthUser]:
        """Create a confirmed account; ``None`` when the email is already registered."""
        response = await self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"name": name},
            },
            headers=self._admin_headers(),
        )
        if response.status_code == 422:
            logger.info("Auth account for %s already exists", email)
            return None
        if response.status_code >= 400:
            raise UpstreamAuthError(f"Error creating user: {_error_message(response)}", 400)
        return AuthUser.from_payload(response.json())

    async def delete_user(self, user_id: uuid.UUID) -> None:
        response = await self._request(
            "DELETE", f"/admin/users/{user_id}", headers=self._admin_headers()
        )
        if response.status_code >= 400:
            logger.error(
                "Failed to delete auth user %s: %s", user_id, _error_message(response)
            )


def build_auth_client() -> SupabaseAuthClient:
    return SupabaseAuthClient(
        base_url=settings.supabase.auth_url,
        anon_key=settings.supabase.anon_key,
        service_key=settings.supabase.service_key,
    )
