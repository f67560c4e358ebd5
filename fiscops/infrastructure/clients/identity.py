"""Identity provider client: email/password sessions"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from fiscops.config import settings
from fiscops.domain.exceptions import AuthError


@dataclass
class AuthSession:
    access_token: str
    email: str = ""
    refresh_token: Optional[str] = None


def _error_message(response: httpx.Response) -> str:
    """Human readable message from the provider's error payload"""
    try:
        body = response.json()
    except ValueError:
        return f"Erreur d'authentification ({response.status_code})"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"Erreur d'authentification ({response.status_code})"


class IdentityClient:
    """Client for the external identity provider"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.data_service_url).rstrip("/")
        self.api_key = api_key or settings.data_service_key
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.transport = transport

    def _headers(self, access_token: str | None = None) -> Dict[str, str]:
        return {"apikey": self.api_key, "Authorization": f"Bearer {access_token or self.api_key}"}

    async def _post(self, path: str, payload: Dict[str, Any] | None = None, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                return await client.post(f"{self.base_url}/auth/v1/{path}", json=payload, **kwargs)
            except httpx.RequestError as e:
                raise AuthError(f"Service d'authentification injoignable : {e}") from e

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Exchange credentials for a session.

        Raises:
            AuthError: wrong credentials or provider unavailable
        """
        response = await self._post(
            "token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
            headers=self._headers(),
        )
        if response.is_error:
            raise AuthError(_error_message(response))
        body = response.json()
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            email=(body.get("user") or {}).get("email", email),
        )

    async def sign_up(self, email: str, password: str) -> None:
        response = await self._post("signup", {"email": email, "password": password}, headers=self._headers())
        if response.is_error:
            raise AuthError(_error_message(response))

    async def sign_out(self, session: AuthSession) -> None:
        response = await self._post("logout", headers=self._headers(session.access_token))
        if response.is_error:
            raise AuthError(_error_message(response))

    async def check_session(self, session: AuthSession) -> bool:
        """True while the provider still accepts the access token"""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers=self._headers(session.access_token),
                )
            except httpx.RequestError as e:
                raise AuthError(f"Service d'authentification injoignable : {e}") from e
        return response.status_code == 200
