"""Client for static lists and their memberships."""

import logging
from typing import Sequence

from mktocli.domain.exceptions import ApiValidationError
from mktocli.domain.models.common import ApiResponse, LeadId, ListId

from .base import ResourceClient

logger = logging.getLogger(__name__)

MEMBERSHIP_BATCH_SIZE = 300
# Membership changes accept at most this many ids per request
MAX_MEMBERSHIP_IDS = 300


def check_membership_ids(lead_ids: Sequence[LeadId]) -> None:
    if len(lead_ids) > MAX_MEMBERSHIP_IDS:
        raise ApiValidationError(
            f"At most {MAX_MEMBERSHIP_IDS} lead ids can be changed per request, got {len(lead_ids)}.",
            code="1003",
        )


class StaticListClient(ResourceClient):
    """Static list lookups and membership changes."""

    async def find_static_lists_by_name(self, name: str) -> ApiResponse:
        # Transport percent-encodes query values
        return await self._get("/asset/v1/staticList/byName.json", {"name": name})

    async def find_static_lists(self) -> ApiResponse:
        return await self._get("/asset/v1/staticLists.json")

    async def find_static_list_by_id(self, list_id: ListId) -> ApiResponse:
        return await self._get(f"/asset/v1/staticList/{list_id}.json")

    async def find_static_list_membership(self, list_id: ListId) -> ApiResponse:
        return await self._get(f"/v1/lists/{list_id}/leads.json", {"batchSize": MEMBERSHIP_BATCH_SIZE})

    async def add_leads_to_static_list(self, list_id: ListId, lead_ids: Sequence[LeadId]) -> ApiResponse:
        """Adds leads to a list. Ids are sent as repeated ``id`` query keys."""
        check_membership_ids(lead_ids)
        logger.debug(f"Adding {len(lead_ids)} lead(s) to static list {list_id}.")
        return await self._post(f"/v1/lists/{list_id}/leads.json", {"id": list(lead_ids)})

    async def remove_leads_from_static_list(self, list_id: ListId, lead_ids: Sequence[LeadId]) -> ApiResponse:
        """Removes leads from a list. Ids are sent as repeated ``id`` query keys."""
        check_membership_ids(lead_ids)
        logger.debug(f"Removing {len(lead_ids)} lead(s) from static list {list_id}.")
        return await self._delete(f"/v1/lists/{list_id}/leads.json", {"id": list(lead_ids)})
