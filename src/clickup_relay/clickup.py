"""
ClickUp API v2 client used by the gateway.

Each operation performs exactly one HTTP request. There is no retry, no
caching, and no timeout unless ``upstream_timeout`` is configured.

ClickUp expects the personal token verbatim in the Authorization header,
so a stored "Bearer <token>" value is stripped before use.
"""

import logging
import re
from typing import Any

import httpx

from .config import Settings
from .errors import ClickUpAPIError, ConfigurationError, NetworkError

logger = logging.getLogger(__name__)

_BEARER_PREFIX = re.compile(r"^\s*Bearer(\s+|$)", re.IGNORECASE)


def normalize_token(value: str | None) -> str:
    """Strip a leading "Bearer " (any case) and surrounding whitespace."""
    if not value:
        return ""
    return _BEARER_PREFIX.sub("", str(value), count=1).strip()


class ClickUpClient:
    """Thin async wrapper over the ClickUp REST endpoints the gateway needs."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.clickup_api_base_url.rstrip("/")
        self._token = normalize_token(settings.clickup_api_token)
        self._timeout = settings.upstream_timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._token)

    async def get_user(self) -> dict[str, Any]:
        return await self._request("GET", "/user")

    async def create_task(self, list_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"/list/{list_id}/task", json=payload)

    async def list_tasks(
        self,
        list_id: str,
        params: list[tuple[str, str]],
    ) -> dict[str, Any]:
        return await self._request("GET", f"/list/{list_id}/task", params=params)

    async def update_task(self, task_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/task/{task_id}", json=payload)

    async def delete_task(self, task_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/task/{task_id}")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self._token:
            raise ConfigurationError("CLICKUP_API_TOKEN not set")

        headers = {"Authorization": self._token, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.warning("ClickUp %s %s failed: %s", method, path, e)
            raise NetworkError(f"Failed to reach ClickUp: {e}") from e

        logger.info("ClickUp %s %s -> %s", method, path, response.status_code)

        if not response.is_success:
            try:
                details: Any = response.json()
            except ValueError:
                details = response.text
            raise ClickUpAPIError(
                f"ClickUp API returned {response.status_code}",
                status_code=response.status_code,
                details=details,
            )

        if not response.content.strip():
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError("ClickUp returned a non-JSON response") from e
        if not isinstance(data, dict):
            raise NetworkError("ClickUp returned an unexpected response shape")
        return data
