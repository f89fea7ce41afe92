"""Client for custom objects, backed by a per-client description cache."""

import logging
from typing import Any, Dict, Optional, Sequence

from mktocli.domain.interfaces.cache import DescriptionStore
from mktocli.domain.interfaces.transport import Transport
from mktocli.domain.models.common import ApiResponse, ResourceDescription, ResourceName, join_values
from mktocli.infrastructure.cache.description_cache import DescriptionCache
from mktocli.infrastructure.resilience.rate_limiter import RateLimiter

from .base import ResourceClient

logger = logging.getLogger(__name__)

DEFAULT_ID_FIELD = "marketoGUID"


def is_structured_filter(search_fields: Any) -> bool:
    """True when the search values are filter objects rather than plain values."""
    if isinstance(search_fields, dict):
        return True
    if isinstance(search_fields, (list, tuple)) and search_fields:
        return isinstance(search_fields[0], dict)
    return False


def id_field_of(description: Optional[ResourceDescription]) -> str:
    """Reads the idField of a describe response, falling back to marketoGUID."""
    results = (description or {}).get("result") or []
    if results and results[0].get("idField"):
        return results[0]["idField"]
    return DEFAULT_ID_FIELD


class CustomObjectClient(ResourceClient):
    """Describe, query, upsert and delete custom object records."""

    def __init__(
        self,
        transport: Transport,
        rate_limiter: Optional[RateLimiter] = None,
        cache: Optional[DescriptionStore] = None,
    ):
        super().__init__(transport, rate_limiter)
        self.cache = cache if cache is not None else DescriptionCache()

    async def _describe(self, name: str) -> ResourceDescription:
        return await self._get(f"/v1/customobjects/{name}/describe.json")

    async def get_custom_object(self, name: str) -> ResourceDescription:
        """Returns the description of a custom object, describing it at most once.

        Only a successful describe with a non-empty result is cached; a failure
        propagates and the next call tries again.
        """
        return await self.cache.get_or_fetch(ResourceName(name), lambda: self._describe(name))

    async def create_or_update_custom_object(self, name: str, obj: Dict[str, Any]) -> ApiResponse:
        body = {
            "action": "createOrUpdate",
            "dedupeBy": "dedupeFields",
            "input": [obj],
        }
        return await self._post_json(f"/v1/customobjects/{name}.json", body, {"_method": "POST"})

    async def query_custom_object(
        self,
        name: str,
        filter_type: str,
        search_fields: Any,
        request_fields: Sequence[str] = (),
    ) -> ApiResponse:
        """Queries records of a custom object.

        Args:
            name: API name of the custom object.
            filter_type: Field to filter on (or ``dedupeFields``/``idField``).
            search_fields: Either plain values for ``filter_type`` or filter
                objects (dicts) used for compound keys.
            request_fields: Fields to return; the server default when empty.

        Returns:
            The raw query response.
        """
        await self.get_custom_object(name)
        path = f"/v1/customobjects/{name}.json"

        if is_structured_filter(search_fields):
            entries = [search_fields] if isinstance(search_fields, dict) else list(search_fields)
            body: Dict[str, Any] = {"filterType": filter_type}
            if request_fields:
                body["fields"] = list(request_fields)
            body["input"] = entries
            return await self._post_json(path, body, {"_method": "GET"})

        query = {"filterType": filter_type, "filterValues": join_values(search_fields)}
        if request_fields:
            query["fields"] = join_values(request_fields)
        return await self._get(path, query)

    async def delete_custom_object_by_id(self, name: str, id_value: Any) -> ApiResponse:
        """Deletes one record by its id field, as named by the cached description."""
        id_field = id_field_of(self.cache.peek(ResourceName(name)))
        body = {
            "deleteBy": "idField",
            "input": [{id_field: id_value}],
        }
        return await self._post_json(f"/v1/customobjects/{name}/delete.json", body)

    def invalidate_description(self, name: Optional[str] = None) -> None:
        """Forgets one cached description, or all of them when ``name`` is None."""
        if name is None:
            self.cache.clear()
        else:
            self.cache.invalidate(ResourceName(name))
