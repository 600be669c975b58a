"""Shared transport for OpenAI-style HTTP backends."""

from dataclasses import dataclass
from typing import Any, ClassVar

import httpx
from pydantic import SecretStr

from ragent.exceptions import ErrorCode, RagentError
from ragent.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FailureCodes:
    """Error codes a backend reports for transport failures."""

    timeout: ErrorCode
    rate_limit: ErrorCode
    unavailable: ErrorCode


class JSONBackend:
    """POSTs JSON to an OpenAI-style service and maps transport failures.

    Every request is a single attempt bounded by ``timeout``. Subclasses name
    the service, the exception type they raise and its error codes.
    """

    service: ClassVar[str]
    error_type: ClassVar[type[RagentError]]
    failure_codes: ClassVar[FailureCodes]

    def __init__(
        self,
        base_url: str,
        api_key: SecretStr,
        timeout: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this backend created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict[str, str]:
        key = self._api_key.get_secret_value()
        if not key or key == "not-required":
            return {}
        return {"Authorization": f"Bearer {key}"}

    async def _post_json(self, path: str, payload: dict[str, Any]) -> Any:
        """Send one request and return the decoded body.

        Raises:
            RagentError: Of the backend's ``error_type``, for timeouts,
                non-2xx statuses, connection failures and bodies that are not
                JSON.
        """
        client = await self._get_client()
        url = f"{self._base_url}{path}"
        codes = self.failure_codes

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"{self.service} request timed out", extra={"url": url})
            raise self.error_type(
                f"{self.service} request timed out",
                code=codes.timeout,
                details={"timeout": self._timeout},
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                f"{self.service} request failed: {status}",
                extra={"url": url, "status": status},
            )
            raise self.error_type(
                f"{self.service} service returned {status}",
                code=codes.rate_limit if status == 429 else codes.unavailable,
                details={"status_code": status},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"{self.service} connection error: {e}", extra={"url": url})
            raise self.error_type(
                f"Failed to connect to {self.service} service: {e}",
                code=codes.unavailable,
                details={"url": url},
            ) from e
        except ValueError as e:
            raise self.error_type(
                f"{self.service} service returned a non-JSON body",
                code=codes.unavailable,
                details={"url": url, "error": str(e)},
            ) from e
