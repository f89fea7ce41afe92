"""Client for email assets, including the concurrent listing of all emails."""

import asyncio
import logging
from typing import Any, Dict, List

from mktocli.domain.events.api_events import FanOutBranchFailed, dispatch_event
from mktocli.domain.models.common import ApiResponse, EmailId
from mktocli.domain.models.results import AggregatedResult

from .base import ResourceClient

logger = logging.getLogger(__name__)

EMAILS_PATH = "/asset/v1/emails.json"
EMAIL_PAGE_SIZE = 200
EMAIL_FAN_OUT = 5
EMAIL_OFFSETS = tuple(i * EMAIL_PAGE_SIZE for i in range(EMAIL_FAN_OUT))


def email_sort_key(record: Dict[str, Any]) -> str:
    return str(record.get("name") or "").casefold()


class EmailClient(ResourceClient):
    """Email asset lookups and sample sends."""

    async def send_sample_email(self, email_id: EmailId, email_address: str) -> ApiResponse:
        return await self._post(
            f"/asset/v1/email/{email_id}/sendSample.json",
            {"emailAddress": email_address},
        )

    async def get_email_by_name(self, name: str) -> ApiResponse:
        return await self._get("/asset/v1/email/byName.json", {"name": name})

    async def get_email_by_id(self, email_id: EmailId) -> ApiResponse:
        return await self._get(f"/asset/v1/email/{email_id}.json")

    async def _fetch_email_page(self, offset: int) -> List[Dict[str, Any]]:
        response = await self._get(EMAILS_PATH, {"maxReturn": EMAIL_PAGE_SIZE, "offset": offset})
        return list((response or {}).get("result") or [])

    async def get_emails(self) -> AggregatedResult:
        """Lists up to 1000 emails with five concurrent requests.

        Offsets 0, 200, 400, 600 and 800 are requested at the same time, each
        branch throttling on its own. A failed branch contributes no records and
        is reported in ``errors``; the others are still returned. Records are
        sorted by name, case-insensitively.

        Returns:
            An AggregatedResult with the merged, sorted records.
        """
        outcomes = await asyncio.gather(
            *(self._fetch_email_page(offset) for offset in EMAIL_OFFSETS),
            return_exceptions=True,
        )

        aggregate = AggregatedResult()
        for offset, outcome in zip(EMAIL_OFFSETS, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                dispatch_event(FanOutBranchFailed(path=EMAILS_PATH, offset=offset, error_message=str(outcome)))
                logger.warning(f"Email listing at offset {offset} failed: {outcome}")
                aggregate.success = False
                aggregate.errors.append(f"offset {offset}: {outcome}")
                continue
            aggregate.result.extend(outcome)

        aggregate.result.sort(key=email_sort_key)
        logger.debug(f"Fetched {len(aggregate)} emails across {len(EMAIL_OFFSETS)} offsets.")
        return aggregate
