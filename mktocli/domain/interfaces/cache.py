"""Interface for the resource description cache.

Defines the contract for reading a resource's schema once and serving later
lookups from memory.
"""

import abc
from typing import Awaitable, Callable, Optional

from ..models.common import ResourceDescription, ResourceName

DescriptionFetcher = Callable[[], Awaitable[ResourceDescription]]


class DescriptionStore(abc.ABC):
    """Abstract Base Class for caching resource descriptions."""

    @abc.abstractmethod
    async def get_or_fetch(self, name: ResourceName, fetch: DescriptionFetcher) -> ResourceDescription:
        """Returns the cached description for ``name`` or fetches and stores it.

        Args:
            name: The resource name used as cache key.
            fetch: Coroutine factory performing the describe call on a miss.

        Returns:
            The description, from cache or freshly fetched.
        """
        pass

    @abc.abstractmethod
    def invalidate(self, name: ResourceName) -> None:
        """Drops a single cached entry, if present."""
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Drops every cached entry."""
        pass

    @abc.abstractmethod
    def peek(self, name: ResourceName) -> Optional[ResourceDescription]:
        """Returns the cached entry without fetching."""
        pass
