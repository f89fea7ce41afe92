"""Client for leads and lead partitions."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from mktocli.domain.interfaces.cache import DescriptionStore
from mktocli.domain.interfaces.transport import Transport
from mktocli.domain.models.common import LEAD_DESCRIPTION_KEY, ApiResponse, LeadId, ResourceDescription
from mktocli.infrastructure.cache.description_cache import DescriptionCache
from mktocli.infrastructure.resilience.rate_limiter import RateLimiter

from .base import ResourceClient

logger = logging.getLogger(__name__)

DEFAULT_LEAD_FIELDS: List[str] = [
    "email",
    "updatedAt",
    "createdAt",
    "lastName",
    "firstName",
    "id",
    "leadPartitionId",
]
DEFAULT_PARTITION_ID = 1


def merge_fields(fields: Optional[Sequence[str]]) -> List[str]:
    """Requested fields plus the default ones, without duplicates, order kept."""
    merged: List[str] = []
    for name in list(fields or []) + DEFAULT_LEAD_FIELDS:
        if name and name not in merged:
            merged.append(name)
    return merged


class LeadClient(ResourceClient):
    """Lead creation, lookup, deletion and field description."""

    def __init__(
        self,
        transport: Transport,
        rate_limiter: Optional[RateLimiter] = None,
        cache: Optional[DescriptionStore] = None,
    ):
        super().__init__(transport, rate_limiter)
        self.cache = cache if cache is not None else DescriptionCache()

    async def get_partitions(self) -> ApiResponse:
        return await self._get("/v1/leads/partitions.json")

    async def _partition_name(self, partition_id: int) -> Optional[str]:
        response = await self.get_partitions()
        for partition in (response or {}).get("result") or []:
            if str(partition.get("id")) == str(partition_id):
                return partition.get("name")
        return None

    async def _push_lead(
        self,
        action: str,
        lead: Dict[str, Any],
        partition_id: int,
        lookup_field: str = "email",
    ) -> ApiResponse:
        partition_name = await self._partition_name(partition_id)
        if partition_name is None:
            logger.warning(f"No lead partition with id {partition_id}; skipping {action}.")
            return {"success": False, "error": {"partition": False}}

        body = {
            "action": action,
            "lookupField": lookup_field,
            "partitionName": partition_name,
            "input": [lead],
        }
        return await self._post_json("/v1/leads.json", body)

    async def create_lead(self, lead: Dict[str, Any], partition_id: int = DEFAULT_PARTITION_ID) -> ApiResponse:
        """Creates a lead in the given partition.

        Args:
            lead: Field name to value map; must include ``email``.
            partition_id: Id of the target partition.

        Returns:
            The raw response, or ``{"success": False, "error": {"partition": False}}``
            when no partition has that id (no create call is made then).
        """
        return await self._push_lead("createOnly", lead, partition_id)

    async def create_or_update_lead(self, lead: Dict[str, Any], partition_id: int = DEFAULT_PARTITION_ID) -> ApiResponse:
        return await self._push_lead("createOrUpdate", lead, partition_id)

    async def update_lead(
        self,
        lead: Dict[str, Any],
        lookup_field: str,
        lookup_value: Any,
        partition_id: int = DEFAULT_PARTITION_ID,
    ) -> ApiResponse:
        """Updates an existing lead, never creating one.

        Args:
            lead: Field name to value map with the new values.
            lookup_field: Field identifying the lead, ``email`` or ``id``.
            lookup_value: Value of ``lookup_field`` for the lead to update.
            partition_id: Id of the partition holding the lead.

        Returns:
            The raw response; a missing partition is reported as in ``create_lead``.
        """
        return await self._push_lead("updateOnly", {**lead, lookup_field: lookup_value}, partition_id, lookup_field)

    async def find_lead_by_field(
        self,
        field: str,
        value: Any,
        fields: Optional[Sequence[str]] = None,
        partition_id: Optional[int] = None,
    ) -> ApiResponse:
        """Looks leads up by any searchable field.

        When ``partition_id`` is given, leads from other partitions are dropped
        from ``result``.
        """
        query = {
            "filterType": field,
            "filterValues": str(value),
            "fields": ",".join(merge_fields(fields)),
        }
        response = await self._get("/v1/leads.json", query)
        if partition_id is not None and response and response.get("result"):
            response = dict(response)
            response["result"] = [
                lead for lead in response["result"]
                if str(lead.get("leadPartitionId")) == str(partition_id)
            ]
        return response

    async def find_lead_by_email(
        self,
        email: str,
        fields: Optional[Sequence[str]] = None,
        partition_id: Optional[int] = None,
    ) -> ApiResponse:
        return await self.find_lead_by_field("email", email, fields, partition_id)

    async def delete_lead_by_id(self, lead_id: LeadId) -> ApiResponse:
        return await self._post_json("/v1/leads.json", {"input": [{"id": lead_id}]}, {"_method": "DELETE"})

    async def describe_lead_fields(self) -> ResourceDescription:
        """Returns the lead field description, describing at most once per client."""
        return await self.cache.get_or_fetch(
            LEAD_DESCRIPTION_KEY,
            lambda: self._get("/v1/leads/describe.json"),
        )
