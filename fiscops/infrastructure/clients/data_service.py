"""HTTP client for the remote relational data service (PostgREST-style API)"""

from typing import Any, Dict, List, Optional

import httpx

from fiscops.config import settings
from fiscops.domain.exceptions import RemoteStoreError


class DataServiceClient:
    """Thin select/upsert client, every call scoped by the caller's filters"""

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
        # Set after sign-in so row level security applies to the operator
        self.access_token: Optional[str] = None

    def _headers(self, prefer: str | None = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def select(
        self,
        table: str,
        filters: Dict[str, str],
        order: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """
        Read rows matching equality filters.

        Raises:
            RemoteStoreError: On network failure, HTTP errors, or invalid response
        """
        params: Dict[str, str] = {"select": "*"}
        params.update({column: f"eq.{value}" for column, value in filters.items()})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)

        async with self._client() as client:
            try:
                response = await client.get(
                    f"{self.base_url}/rest/v1/{table}",
                    params=params,
                    headers=self._headers(),
                )
                response.raise_for_status()
                rows = response.json()
            except httpx.HTTPStatusError as e:
                raise RemoteStoreError(f"Select on {table} failed: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise RemoteStoreError(f"Data service unreachable: {e}") from e
            except ValueError as e:
                raise RemoteStoreError(f"Invalid response for {table}: {e}") from e

        if not isinstance(rows, list):
            raise RemoteStoreError(f"Invalid response for {table}: expected a list")
        return rows

    async def upsert(self, table: str, rows: List[Dict[str, Any]] | Dict[str, Any], on_conflict: str) -> None:
        """
        Insert or update rows, conflicts resolved on the given columns.

        Raises:
            RemoteStoreError: On network failure or HTTP errors
        """
        async with self._client() as client:
            try:
                response = await client.post(
                    f"{self.base_url}/rest/v1/{table}",
                    params={"on_conflict": on_conflict},
                    json=rows,
                    headers=self._headers(prefer="resolution=merge-duplicates,return=minimal"),
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise RemoteStoreError(f"Upsert on {table} failed: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise RemoteStoreError(f"Data service unreachable: {e}") from e
