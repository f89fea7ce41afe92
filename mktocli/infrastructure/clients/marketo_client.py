"""Composed client exposing every resource facade over one transport."""

import logging
from typing import Optional

from mktocli.domain.interfaces.cache import DescriptionStore
from mktocli.domain.interfaces.transport import Transport
from mktocli.infrastructure.cache.description_cache import DescriptionCache
from mktocli.infrastructure.resilience.rate_limiter import DEFAULT_DELAY_SECONDS, RateLimiter

from .activity_client import ActivityClient
from .custom_object_client import CustomObjectClient
from .email_client import EmailClient
from .lead_client import LeadClient
from .static_list_client import StaticListClient

logger = logging.getLogger(__name__)


class MarketoClient:
    """Entry point to the REST API.

    The facades share a single rate limiter and a single description cache,
    so the configured delay and cached schemas apply across all of them.

    Attributes:
        activities: ActivityClient
        emails: EmailClient
        static_lists: StaticListClient
        custom_objects: CustomObjectClient
        leads: LeadClient
    """

    def __init__(
        self,
        transport: Transport,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        cache: Optional[DescriptionStore] = None,
    ):
        self.transport = transport
        self.rate_limiter = RateLimiter(delay_seconds)
        self.cache = cache if cache is not None else DescriptionCache()

        self.activities = ActivityClient(transport, self.rate_limiter)
        self.emails = EmailClient(transport, self.rate_limiter)
        self.static_lists = StaticListClient(transport, self.rate_limiter)
        self.custom_objects = CustomObjectClient(transport, self.rate_limiter, self.cache)
        self.leads = LeadClient(transport, self.rate_limiter, self.cache)
        logger.info("MarketoClient initialized.")
