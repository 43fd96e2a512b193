"""Authenticated REST client for the ChronoStudy backend.

Thin wrapper over a single ``httpx.AsyncClient``. The bearer token is
resolved from a provider callable on every request, so logging in or out
takes effect without rebuilding the client.
"""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from chronostudy.api.base import ApiError, ApiTimeoutError, AuthRequiredError
from chronostudy.config import ChronoConfig, get_config

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Prefer the backend's ``message`` field, fall back to the raw body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text or response.reason_phrase


class ApiClient:
    """Async JSON client that attaches ``Authorization: Bearer <token>``."""

    def __init__(
        self,
        token_provider: Callable[[], str | None] | None = None,
        config: ChronoConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token_provider: Callable returning the current token, or None.
            config: ChronoConfig instance (uses singleton if None).
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self._config = config or get_config()
        self._token_provider = token_provider or (lambda: None)
        self._timeout = self._config.request_timeout
        self._client = httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    @property
    def has_token(self) -> bool:
        return bool(self._token_provider())

    async def get(self, path: str, params: dict | None = None) -> Any:
        """GET ``path`` and return the decoded JSON body."""
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        """POST ``json`` to ``path`` and return the decoded JSON body."""
        return await self._request("POST", path, json=json)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise ApiTimeoutError(path, self._timeout) from e
        except httpx.HTTPError as e:
            raise ApiError(path, f"Request failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthRequiredError(
                path, _error_message(response), status_code=response.status_code,
            )

        if response.status_code >= 400:
            raise ApiError(path, _error_message(response), status_code=response.status_code)

        logger.debug("%s %s -> %d", method, path, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(path, "Response was not valid JSON", response.status_code) from e
