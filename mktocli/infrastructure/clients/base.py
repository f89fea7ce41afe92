"""Shared plumbing for the resource clients.

Every resource client holds the same transport and the same rate limiter.
All outbound calls go through ``_get``/``_post``/``_post_json``/``_delete``,
which throttle before handing the request to the transport.
"""

import logging
from typing import Any, Dict, Optional

from mktocli.domain.events.api_events import ApiCallInitiated, dispatch_event
from mktocli.domain.interfaces.transport import Query, Transport
from mktocli.domain.models.common import ApiResponse
from mktocli.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class ResourceClient:
    """Base class for a client owning one API resource family."""

    def __init__(self, transport: Transport, rate_limiter: Optional[RateLimiter] = None):
        self.transport = transport
        self.rate_limiter = rate_limiter or RateLimiter()

    async def _before_call(self, method: str, path: str) -> None:
        await self.rate_limiter.throttle()
        dispatch_event(ApiCallInitiated(method=method, path=path))

    async def _get(self, path: str, query: Query = None) -> ApiResponse:
        await self._before_call("GET", path)
        return await self.transport.get(path, query)

    async def _post(self, path: str, query: Query = None) -> ApiResponse:
        await self._before_call("POST", path)
        return await self.transport.post(path, query)

    async def _post_json(self, path: str, body: Dict[str, Any], query: Query = None) -> ApiResponse:
        await self._before_call("POST", path)
        return await self.transport.post_json(path, body, query)

    async def _delete(self, path: str, query: Query = None) -> ApiResponse:
        await self._before_call("DELETE", path)
        return await self.transport.delete(path, query)
