import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

import aiohttp

import config
from exceptions import (
    ApiException,
    ApiNotFoundException,
    ApiUnavailableException,
    ApiValidationException,
)
from models.session import SessionContext

logger = logging.getLogger(__name__)


def extract_error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return default


def unwrap_envelope(payload: Any) -> Any:
    """
    Unwrap {"status": "success", "data": ...} responses.

    A bare {"data": ...} is unwrapped too. Payloads without an envelope are
    returned unchanged.
    """
    if isinstance(payload, dict) and "data" in payload:
        if payload.get("status", "success") != "success":
            raise ApiValidationException(extract_error_message(payload, "Request was not successful"))
        return payload["data"]
    return payload


class ApiClient:
    """
    Thin JSON client over one aiohttp session.

    Any non-2xx status is a failure regardless of the body. There are no
    retries: a failed call surfaces immediately and is retried by the user.
    """

    def __init__(self, session_context: SessionContext | None = None,
                 base_url: str | None = None, timeout: float | None = None):
        self.session_context = session_context
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT_SECONDS
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            if self.timeout is not None:
                self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            else:
                self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    def _headers(self) -> dict[str, str]:
        if self.session_context is None:
            return {}
        return self.session_context.auth_headers()

    async def request(self, method: str, path: str, params: dict | None = None,
                      json: dict | None = None) -> Any:
        """
        Send one request and return the decoded JSON body ({} when empty).

        Raises:
            ApiNotFoundException: 404
            ApiValidationException: any other 4xx (server message verbatim)
            ApiUnavailableException: 5xx, timeouts and transport errors
        """
        url = f"{self.base_url}{path}"
        session = await self._get_session()
        logger.debug(f"{method} {path}")
        try:
            async with session.request(method, url, params=params, json=json,
                                       headers=self._headers()) as response:
                payload = await self._read_payload(response)
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__} {e}")
            raise ApiUnavailableException(f"Could not reach server: {type(e).__name__}", path=path) from e

        if 200 <= status < 300:
            return payload

        message = extract_error_message(payload, f"Request failed with status {status}")
        logger.warning(f"{method} {path} -> {status}: {message}")
        if status == 404:
            raise ApiNotFoundException(message, status=status, path=path)
        if 400 <= status < 500:
            raise ApiValidationException(message, status=status, path=path)
        if status >= 500:
            raise ApiUnavailableException(message, status=status, path=path)
        raise ApiException(message, status=status, path=path)

    @staticmethod
    async def _read_payload(response: aiohttp.ClientResponse) -> Any:
        text = await response.text()
        if not text:
            return {}
        try:
            return await response.json(content_type=None)
        except ValueError:
            return {"message": text}

    async def get(self, path: str, params: dict | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: dict | None = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: dict | None = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: dict | None = None) -> Any:
        return await self.request("PATCH", path, json=json)


@asynccontextmanager
async def get_api_client(session_context: SessionContext | None = None, **kwargs) -> ApiClient:
    client = ApiClient(session_context, **kwargs)
    try:
        yield client
    finally:
        await client.close()
