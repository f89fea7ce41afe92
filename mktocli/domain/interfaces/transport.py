"""Interface for the low-level REST transport.

Resource clients only talk to the API through this contract. Authentication,
request signing and HTTP details stay behind it.
"""

import abc
from typing import Any, Dict, Mapping, Optional

from ..models.common import ApiResponse

Query = Optional[Mapping[str, Any]]


class Transport(abc.ABC):
    """Abstract Base Class for issuing REST calls against the API.

    Every method is a suspension point and returns the parsed JSON body.
    Query values that are lists are sent as repeated keys (``id=1&id=2``).
    """

    @abc.abstractmethod
    async def get(self, path: str, query: Query = None) -> ApiResponse:
        """Issues a GET request.

        Raises:
            TransportError: On network failure or a non-2xx status.
        """
        pass

    @abc.abstractmethod
    async def post(self, path: str, query: Query = None) -> ApiResponse:
        """Issues a POST request without a body."""
        pass

    @abc.abstractmethod
    async def post_json(self, path: str, body: Dict[str, Any], query: Query = None) -> ApiResponse:
        """Issues a POST request with a JSON body."""
        pass

    @abc.abstractmethod
    async def delete(self, path: str, query: Query = None) -> ApiResponse:
        """Issues a DELETE request."""
        pass
