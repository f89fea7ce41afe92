"""Resource clients for the marketing-automation REST API.

Each client owns one resource family and throttles before every call.
``MarketoClient`` composes them over a single transport.
Bounded Context: API Access
"""

from .activity_client import ActivityClient
from .custom_object_client import CustomObjectClient
from .email_client import EmailClient
from .lead_client import LeadClient
from .marketo_client import MarketoClient
from .static_list_client import StaticListClient

__all__ = [
    "ActivityClient",
    "CustomObjectClient",
    "EmailClient",
    "LeadClient",
    "MarketoClient",
    "StaticListClient",
]
