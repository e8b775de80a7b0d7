"""Shared httpx plumbing for calls to sibling services."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from src.shared.exceptions import DependencyError, UnauthenticatedError
from src.shared.logging import get_logger

logger = get_logger(__name__)


class ServiceClient:
    """
    Thin JSON GET client with the status mapping every sibling service shares:
      404 → None, 401 → UnauthenticatedError, anything else non-2xx or a
      transport failure/timeout → DependencyError (upstream message preserved).
    """

    service_name = "remote"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    @staticmethod
    def _upstream_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason_phrase
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or response.reason_phrase)
        return response.reason_phrase

    async def get_json(self, path: str, token: str) -> Optional[Dict[str, Any]]:
        try:
            response = await self.client.get(path, headers={"Authorization": f"Bearer {token}"})
        except httpx.TimeoutException:
            logger.error("remote.timeout", service=self.service_name, path=path)
            raise DependencyError(
                f"{self.service_name} service timed out",
                service=self.service_name,
                upstream="timeout",
            )
        except httpx.HTTPError as e:
            logger.error("remote.transport_error", service=self.service_name, path=path, error=str(e))
            raise DependencyError(
                f"Could not reach the {self.service_name} service",
                service=self.service_name,
                upstream=str(e),
            )

        if response.status_code == 404:
            return None
        if response.status_code == 401:
            raise UnauthenticatedError("Unauthorized: invalid or expired token")
        if response.is_error:
            upstream = self._upstream_message(response)
            logger.error("remote.error_status", service=self.service_name, path=path, status=response.status_code)
            raise DependencyError(
                f"{self.service_name} service answered {response.status_code}",
                service=self.service_name,
                upstream=upstream,
            )

        try:
            body = response.json()
        except ValueError:
            raise DependencyError(
                f"{self.service_name} service returned a non-JSON body",
                service=self.service_name,
            )
        if not isinstance(body, dict) or body.get("success") is False:
            return None
        return body
