"""Batching-and-pagination engine for id-filtered, token-paged reads.

The API caps the number of ids per request and pages results through an
opaque ``nextPageToken``. This module splits an id set into bounded batches,
walks each batch's pages up to a fixed ceiling and merges every record into a
single ``AggregatedResult``.

Batches and pages run strictly one after another. Combined with the
throttle applied inside ``fetch_page``, this keeps calls evenly spaced.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from mktocli.domain.events.api_events import BatchFetchFailed, PageCeilingReached, dispatch_event
from mktocli.domain.models.common import ActivityTypeId, ApiResponse, IdSet, LeadId, is_scalar_id
from mktocli.domain.models.results import AggregatedResult, Page

logger = logging.getLogger(__name__)

MAX_IDS_PER_REQUEST = 30
# Follow-up pages after the first one, per batch: 11 requests, ~3000 records at 300/page.
MAX_FOLLOW_UP_PAGES = 10

PageFetcher = Callable[[Optional[str], Any, Any], Awaitable[ApiResponse]]


def split_into_batches(ids: Sequence[LeadId], size: int = MAX_IDS_PER_REQUEST) -> List[Tuple[LeadId, ...]]:
    """Splits ``ids`` into consecutive batches of at most ``size`` ids.

    The input is copied to a tuple first and never modified. Order is kept
    within and across batches. An empty input yields one empty batch.
    """
    if size <= 0:
        raise ValueError("Batch size must be positive.")
    frozen = tuple(ids)
    if not frozen:
        return [()]
    return [frozen[start:start + size] for start in range(0, len(frozen), size)]


async def collect_paginated(
    fetch_page: PageFetcher,
    ids: IdSet,
    activity_type_ids: Optional[Union[ActivityTypeId, Sequence[ActivityTypeId]]] = None,
    *,
    first_token: Optional[str] = None,
    batch_size: int = MAX_IDS_PER_REQUEST,
    max_follow_up_pages: int = MAX_FOLLOW_UP_PAGES,
) -> AggregatedResult:
    """Fetches every page for every batch of ``ids`` and merges the records.

    Args:
        fetch_page: Coroutine function ``(token, id_batch, activity_type_ids)``
            returning one raw page.
        ids: A single id (sent as-is, no batching) or a sequence of ids.
        activity_type_ids: Filter passed unchanged to every page request.
        first_token: Continuation token for the first page of each batch
            (usually the since-date paging token).
        batch_size: Maximum ids per request.
        max_follow_up_pages: Ceiling on extra pages per batch; resets per batch.

    Returns:
        An AggregatedResult. On the first exception iteration stops,
        ``success`` is False and the records already gathered are kept.
    """
    aggregate = AggregatedResult()
    try:
        batches: List[Any] = [ids] if is_scalar_id(ids) else split_into_batches(ids, batch_size)
    except (TypeError, ValueError) as e:
        logger.warning(f"Cannot batch ids of type {type(ids).__name__}: {e}")
        aggregate.success = False
        aggregate.errors.append(str(e))
        return aggregate

    logger.debug(f"Collecting paginated results over {len(batches)} batch(es).")

    for batch_index, batch in enumerate(batches):
        try:
            page = Page.from_response(await fetch_page(first_token, batch, activity_type_ids))
            aggregate.result.extend(page.records)

            follow_ups = 0
            while page.more_result and follow_ups < max_follow_up_pages:
                page = Page.from_response(await fetch_page(page.next_page_token, batch, activity_type_ids))
                aggregate.result.extend(page.records)
                follow_ups += 1

            if page.more_result:
                dispatch_event(PageCeilingReached(batch_index=batch_index, pages_fetched=follow_ups + 1))
                logger.info(
                    f"Batch {batch_index} still reports more results after {follow_ups + 1} pages; "
                    f"remaining records are not fetched."
                )
        except Exception as e:
            size = 1 if is_scalar_id(batch) else len(batch)
            dispatch_event(BatchFetchFailed(
                batch_index=batch_index,
                batch_size=size,
                records_kept=len(aggregate.result),
                error_message=str(e),
            ))
            logger.warning(
                f"Batch {batch_index} of {len(batches)} failed: {type(e).__name__}: {e}. "
                f"Returning {len(aggregate.result)} record(s) collected so far."
            )
            aggregate.success = False
            aggregate.errors.append(str(e))
            break

    return aggregate
