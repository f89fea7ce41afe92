"""Domain Events related to API calls, throttling and aggregation.

Events are plain dataclasses. ``dispatch_event`` logs them; there is no
subscriber mechanism.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an API call is about to be made."""
    method: str
    path: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when a call is delayed by the rate limiter."""
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class BatchFetchFailed(DomainEvent):
    """A batch of the activity fetch raised; aggregation stopped early."""
    batch_index: int
    batch_size: int
    records_kept: int
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class PageCeilingReached(DomainEvent):
    """The per-batch follow-up page limit cut off a result set that had more data."""
    batch_index: int
    pages_fetched: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class FanOutBranchFailed(DomainEvent):
    """One offset of a concurrent fan-out fetch raised and contributed no records."""
    path: str
    offset: int
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class DescriptionCacheHit(DomainEvent):
    """A describe call was served from the in-memory cache."""
    resource_name: str
    timestamp: float = field(default_factory=time.time)


def dispatch_event(event: Any) -> None:
    """Publishes an event. Currently this is a DEBUG log line."""
    logger.debug(f"EVENT: {event}")
