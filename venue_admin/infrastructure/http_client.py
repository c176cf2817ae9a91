"""
HTTP client for the remote authority.
Separated from business logic for clean architecture.

Every call returns the decoded JSON body untouched; unwrapping envelopes is
the normalizer's job. Failures are mapped onto the error taxonomy here so no
caller ever sees an httpx exception.
"""

from typing import Any, Mapping, Optional

import httpx

from venue_admin.core.config import Settings
from venue_admin.core.errors import ApiError, NetworkError, NotFound, ServerError, Unauthorized
from venue_admin.core.logging import get_logger
from venue_admin.infrastructure.credentials import CredentialStore

logger = get_logger(__name__)


def prepare_query_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop parameters that carry no filter (None, empty string, empty list)."""
    if not params:
        return {}
    return {
        key: value
        for key, value in params.items()
        if value is not None and value != "" and value != []
    }


def _error_message(body: Any) -> Optional[str]:
    if isinstance(body, Mapping):
        return body.get("error") or body.get("message")
    return None


class ApiClient:
    """Async client with bearer auth and response-envelope error handling."""

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self._client = httpx.AsyncClient(
            base_url=settings.API_URL.rstrip("/"),
            timeout=settings.REQUEST_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                path,
                params=prepare_query_params(params),
                json=json,
                headers=self.credentials.auth_headers(),
            )
        except httpx.TimeoutException as e:
            logger.error("api_timeout", method=method, path=path, error=str(e))
            raise NetworkError("The request timed out. Please try again.") from e
        except httpx.TransportError as e:
            logger.error("api_connection_failed", method=method, path=path, error=str(e))
            raise NetworkError() from e

        body = self._decode(response)

        if response.is_success:
            # Some backends report failures inside a 200 envelope
            if isinstance(body, Mapping) and body.get("success") is False:
                raise ApiError(_error_message(body), status_code=response.status_code)
            return body

        status_code = response.status_code
        logger.error(
            "api_error",
            method=method,
            path=path,
            status_code=status_code,
            response=body,
        )

        if status_code == 401:
            self.credentials.clear()
            raise Unauthorized(status_code=status_code)
        if status_code == 404:
            raise NotFound(status_code=status_code)
        if status_code >= 500:
            raise ServerError(status_code=status_code)
        raise ApiError(
            _error_message(body) or response.reason_phrase or "Something went wrong",
            status_code=status_code,
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
