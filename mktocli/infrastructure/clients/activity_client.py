"""Client for the lead activity endpoints."""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

from mktocli.domain.models.common import ActivityTypeId, ApiResponse, IdSet, join_values
from mktocli.domain.models.results import AggregatedResult

from .base import ResourceClient
from .paging import collect_paginated

logger = logging.getLogger(__name__)

ActivityTypeFilter = Optional[Union[ActivityTypeId, Sequence[ActivityTypeId]]]


def format_since_datetime(since: Union[datetime, str]) -> str:
    """Formats a datetime as ISO-8601 UTC (``2024-01-31T12:00:00Z``).

    Naive datetimes are taken to be UTC already. Strings are passed through.
    """
    if isinstance(since, str):
        return since
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ActivityClient(ResourceClient):
    """Reads activity types and the activity feed of one or many leads."""

    async def get_activity_types(self) -> ApiResponse:
        return await self._get("/v1/activities/types.json")

    async def get_activity_paging_token(self, since_datetime: Union[datetime, str]) -> ApiResponse:
        """Requests a paging token pointing at ``since_datetime`` in the activity feed.

        Args:
            since_datetime: Start of the window. Datetimes are sent as UTC.

        Returns:
            The raw response; the token is under ``nextPageToken``.
        """
        return await self._get(
            "/v1/activities/pagingtoken.json",
            {"sinceDatetime": format_since_datetime(since_datetime)},
        )

    async def get_activities(
        self,
        next_page_token: Optional[str],
        lead_ids: IdSet,
        activity_type_ids: ActivityTypeFilter = None,
    ) -> ApiResponse:
        """Fetches one page of activities. Sequences of ids are comma-joined."""
        query = {
            "nextPageToken": next_page_token,
            "leadIds": join_values(lead_ids),
            "activityTypeIds": join_values(activity_type_ids),
        }
        return await self._get(
            "/v1/activities.json",
            {key: value for key, value in query.items() if value is not None},
        )

    async def get_activities_by_lead_id(
        self,
        next_page_token: Optional[str],
        lead_ids: IdSet,
        activity_type_ids: ActivityTypeFilter = None,
    ) -> AggregatedResult:
        """Fetches every activity page for any number of leads.

        Lead ids are split into batches of 30 and each batch is paged up to the
        follow-up ceiling. Errors do not propagate: the returned result is
        marked unsuccessful and keeps whatever was gathered before the failure.

        Args:
            next_page_token: Token for the first page of each batch, usually from
                ``get_activity_paging_token``.
            lead_ids: A single lead id or a sequence of lead ids.
            activity_type_ids: Optional activity type filter.

        Returns:
            An AggregatedResult with every collected activity.
        """
        result = await collect_paginated(
            self.get_activities,
            lead_ids,
            activity_type_ids,
            first_token=next_page_token,
        )
        logger.debug(f"Collected {len(result)} activities (success={result.success}).")
        return result
