"""HTTP client the MCP tool server uses to reach the gateway."""

import logging
from typing import Any

import httpx

from .config import SECRET_HEADER, Settings

logger = logging.getLogger(__name__)


class GatewayCallError(Exception):
    """The gateway call failed; the message is meant for the assistant."""


class GatewayClient:
    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.clickup_worker_url.rstrip("/")
        self._secret = settings.worker_secret
        self._timeout = settings.upstream_timeout
        self._transport = transport

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call one gateway route and return its JSON object.

        Raises:
            GatewayCallError: on network failure, non-JSON, or non-2xx answers
        """
        headers = {SECRET_HEADER: self._secret, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, params=params, json=json)
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GatewayCallError(f"Failed to call worker: {e}") from e

        logger.info("Gateway %s %s -> %s", method, path, response.status_code)

        if not response.is_success:
            reason = response.reason_phrase
            if isinstance(result, dict):
                reason = result.get("message") or result.get("error") or reason
            raise GatewayCallError(f"Worker API error: {reason}")
        if not isinstance(result, dict):
            raise GatewayCallError("Failed to call worker: unexpected response shape")
        return result
