"""httpx-based implementation of the Transport interface.

Handles the OAuth client-credentials token, request execution and the mapping
of network and HTTP failures to ``TransportError``.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from mktocli.domain.exceptions import ConfigurationError, TransportError
from mktocli.domain.interfaces.transport import Query, Transport
from mktocli.domain.models.common import ApiResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
# Error codes reported in the JSON body when the access token is invalid or expired
TOKEN_ERROR_CODES = {"601", "602"}
# Refresh slightly before the server-side expiry
TOKEN_EXPIRY_MARGIN_SECONDS = 60


class HttpTransport(Transport):
    """Issues authenticated REST calls against ``{endpoint}/rest``."""

    def __init__(
        self,
        endpoint: str,
        client_id: str,
        client_secret: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initializes the transport.

        Args:
            endpoint: REST API domain without ``/rest``, e.g. ``https://abc-123-xyz.mktorest.com``.
            client_id: Client ID of the web service.
            client_secret: Client secret of the web service.
            http_client: Optional externally managed client. When omitted, the
                transport creates and owns one.
            timeout: Request timeout in seconds for an owned client.

        Raises:
            ConfigurationError: If any credential is missing.
        """
        if not endpoint:
            raise ConfigurationError("API endpoint is not configured (MKTO_ENDPOINT).")
        if not client_id or not client_secret:
            raise ConfigurationError("Client credentials are not configured (MKTO_CLIENT_ID / MKTO_CLIENT_SECRET).")

        self.endpoint = endpoint.rstrip("/")
        self.base_url = f"{self.endpoint}/rest"
        self.identity_url = f"{self.endpoint}/identity/oauth/token"
        self.client_id = client_id
        self.client_secret = client_secret

        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0
        # Created on first use so it binds to the running loop
        self._token_lock: Optional[asyncio.Lock] = None
        logger.debug(f"HttpTransport initialized for {self.base_url}. Owns client: {self._owns_client}")

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --- Authentication ---

    def _token_valid(self) -> bool:
        return self._access_token is not None and time.monotonic() < self._token_expires_at

    def invalidate_token(self) -> None:
        self._access_token = None
        self._token_expires_at = 0.0

    async def _ensure_token(self) -> str:
        if self._token_valid():
            return self._access_token
        if self._token_lock is None:
            self._token_lock = asyncio.Lock()
        async with self._token_lock:
            if self._token_valid():
                return self._access_token
            return await self._request_token()

    async def _request_token(self) -> str:
        logger.debug(f"Requesting access token from {self.identity_url}")
        params = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        response = await self._send("GET", self.identity_url, params=params)
        payload = self._parse_json(response, self.identity_url)

        token = payload.get("access_token")
        if not token:
            message = payload.get("error_description") or payload.get("error") or "no access_token in response"
            raise TransportError(f"Authentication failed: {message}", status_code=response.status_code, url=self.identity_url)

        expires_in = int(payload.get("expires_in") or 0)
        self._access_token = token
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        logger.info(f"Obtained access token (expires in {expires_in}s).")
        return token

    # --- Request execution ---

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug(f"Executing remote call: {method} {url}, Params: {kwargs.get('params')}, Data: {kwargs.get('json')}")
        try:
            response = await self._http_client.request(method, url, **kwargs)
            if response.status_code >= 300:
                logger.warning(f"Remote call to {url} returned unexpected status: {response.status_code}. Response text: {response.text[:500]}")
                response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout error: {e!s}", url=url) from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e!s}", url=url) from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Service responded with error: {e.response.text[:500]}",
                status_code=e.response.status_code,
                url=url,
            ) from e

    @staticmethod
    def _parse_json(response: httpx.Response, url: str) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON in response: {e!s}", status_code=response.status_code, url=url) from e
        if not isinstance(payload, dict):
            raise TransportError("Expected a JSON object in response.", status_code=response.status_code, url=url)
        return payload

    @staticmethod
    def _has_token_error(payload: Dict[str, Any]) -> bool:
        errors: List[Dict[str, Any]] = payload.get("errors") or []
        return any(str(error.get("code")) in TOKEN_ERROR_CODES for error in errors)

    async def _request(self, method: str, path: str, query: Query = None, body: Optional[Dict[str, Any]] = None) -> ApiResponse:
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {}
        if query:
            kwargs["params"] = dict(query)
        if body is not None:
            kwargs["json"] = body

        payload: Dict[str, Any] = {}
        for attempt in range(2):
            token = await self._ensure_token()
            response = await self._send(method, url, headers={"Authorization": f"Bearer {token}"}, **kwargs)
            payload = self._parse_json(response, url)
            if attempt == 0 and self._has_token_error(payload):
                logger.info(f"Access token rejected for {method} {path}; refreshing and retrying once.")
                self.invalidate_token()
                continue
            break
        return payload

    async def get(self, path: str, query: Query = None) -> ApiResponse:
        return await self._request("GET", path, query)

    async def post(self, path: str, query: Query = None) -> ApiResponse:
        return await self._request("POST", path, query)

    async def post_json(self, path: str, body: Dict[str, Any], query: Query = None) -> ApiResponse:
        return await self._request("POST", path, query, body)

    async def delete(self, path: str, query: Query = None) -> ApiResponse:
        return await self._request("DELETE", path, query)

    async def aclose(self) -> None:
        if self._owns_client and self._http_client:
            logger.info(f"Closing owned HTTP client for {self.base_url}")
            await self._http_client.aclose()
        else:
            logger.debug(f"HTTP client for {self.base_url} is managed externally, not closing.")
