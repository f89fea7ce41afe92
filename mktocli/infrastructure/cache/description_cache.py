"""In-memory cache for resource descriptions (custom object and lead schemas).

Entries never expire and are never refreshed on their own: correctness relies
on schemas not changing during the lifetime of the owning client. Long-lived
processes that need fresh schemas call ``invalidate`` or ``clear``.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

from mktocli.domain.events.api_events import DescriptionCacheHit, dispatch_event
from mktocli.domain.interfaces.cache import DescriptionFetcher, DescriptionStore
from mktocli.domain.models.common import ResourceDescription, ResourceName

logger = logging.getLogger(__name__)


def cache_successful(description: ResourceDescription) -> bool:
    """Default storage rule: only successful describes with a result are kept."""
    return bool(description) and bool(description.get("success", True)) and bool(description.get("result"))


class DescriptionCache(DescriptionStore):
    """Unexpiring name -> description map with in-flight fetch deduplication.

    Concurrent misses for the same name share a single describe call: the
    first caller registers a future, later callers await it. A failed fetch
    propagates to every waiter and leaves the key uncached.
    If the first caller is cancelled, its waiters start a fresh fetch instead.
    """

    def __init__(self, should_cache: Callable[[ResourceDescription], bool] = cache_successful):
        self._entries: Dict[ResourceName, ResourceDescription] = {}
        self._in_flight: Dict[ResourceName, asyncio.Future] = {}
        self.should_cache = should_cache
        logger.info("DescriptionCache initialized (no TTL, no eviction).")

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, name: ResourceName) -> Optional[ResourceDescription]:
        return self._entries.get(name)

    async def get_or_fetch(self, name: ResourceName, fetch: DescriptionFetcher) -> ResourceDescription:
        while True:
            if name in self._entries:
                dispatch_event(DescriptionCacheHit(resource_name=name))
                logger.debug(f"Description cache hit for: {name}")
                return self._entries[name]

            pending = self._in_flight.get(name)
            if pending is None:
                break
            logger.debug(f"Awaiting in-flight describe for: {name}")
            # Raises only if this caller is cancelled, not if the owner is
            await asyncio.wait({pending})
            if not pending.cancelled():
                return pending.result()
            logger.debug(f"In-flight describe for {name} was cancelled. Retrying.")

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._in_flight[name] = future
        try:
            logger.debug(f"Description cache miss for: {name}. Fetching.")
            description = await fetch()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an exception with no other waiter is not reported as unhandled
            future.exception()
            raise
        else:
            if self.should_cache(description):
                self._entries[name] = description
            else:
                logger.debug(f"Description for {name} not cached (unsuccessful or empty).")
            future.set_result(description)
            return description
        finally:
            self._in_flight.pop(name, None)

    def invalidate(self, name: ResourceName) -> None:
        if self._entries.pop(name, None) is not None:
            logger.info(f"Invalidated cached description: {name}")

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Cleared description cache.")
