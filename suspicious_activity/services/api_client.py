"""HTTP client for the suspicious-activity analysis backend.

All endpoints answer with a ``success`` envelope. The client maps each
response onto a tagged result (see ``suspicious_activity.schemas.results``)
so callers can tell transport failures from API-level rejections.
"""

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from suspicious_activity.exceptions import AuthMissing, MalformedResponse
from suspicious_activity.schemas.results import ApiError, ApiResult, Ok, TransportError
from suspicious_activity.services.auth import Authenticator

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_MESSAGE = "Request rejected by server"

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiClient:
    """Authenticated client for the analysis REST API."""

    def __init__(
        self,
        base_url: str,
        authenticator: Authenticator,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize API client.

        Args:
            base_url: API root including the mount point
                (e.g., http://127.0.0.1:8000/ai-security/api)
            authenticator: Source of the bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (mock transports in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._authenticator = authenticator
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> ApiResult:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Optional[dict[str, Any]] = None) -> ApiResult:
        return await self._request("POST", path, json=json)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> ApiResult:
        """Send one request and classify the outcome.

        Raises:
            AuthMissing: No token is available; nothing is sent.
        """
        token = self._authenticator.get_token()
        if not token:
            raise AuthMissing()

        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            logger.debug(f"{method} {path} params={params}")
            response = await client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            return TransportError(f"Request timed out: {e}")
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            return TransportError(f"Error connecting to server: {e}")

        if not response.is_success:
            logger.warning(f"{method} {path} returned HTTP {response.status_code}")
            return TransportError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            return TransportError(
                "Response body is not valid JSON", status_code=response.status_code
            )
        if not isinstance(data, dict):
            return TransportError(
                "Response body is not a JSON object", status_code=response.status_code
            )

        if not data.get("success"):
            message = data.get("error") or DEFAULT_REJECTION_MESSAGE
            logger.debug(f"{method} {path} rejected: {message}")
            return ApiError(str(message))

        return Ok(data)


def decode_entity(model: type[ModelT], payload: dict[str, Any], key: str) -> ModelT:
    """Decode ``payload[key]`` into ``model``.

    Raises:
        MalformedResponse: Key missing or the value does not validate.
    """
    if key not in payload:
        raise MalformedResponse(f"Response is missing '{key}'")
    try:
        return model.model_validate(payload[key])
    except ValidationError as e:
        raise MalformedResponse(f"Invalid '{key}' in response: {e}") from e


def decode_entities(
    model: type[ModelT], payload: dict[str, Any], key: str
) -> list[ModelT]:
    """Decode the list ``payload[key]`` into ``model`` instances."""
    items = payload.get(key)
    if not isinstance(items, list):
        raise MalformedResponse(f"Response is missing list '{key}'")
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as e:
        raise MalformedResponse(f"Invalid '{key}' in response: {e}") from e
