"""Defines common Value Objects used across the client and step layers.

These objects represent simple values like lead ids and resource names,
plus the loose shape of a raw API response.
"""

import numbers
from typing import Any, Dict, List, NewType, Optional, Sequence, TypedDict, Union

# === Identifiers ===
LeadId = Union[str, int]                        # Marketo lead id (any number or string is accepted)
IdSet = Union[LeadId, Sequence[LeadId]]         # A single id or an ordered sequence of ids
ActivityTypeId = Union[str, int]
ListId = NewType("ListId", str)                 # Static list id
EmailId = Union[str, int]                       # Email asset id

# === Custom Objects / Describe ===
ResourceName = NewType("ResourceName", str)     # API name of a custom object (or "__lead__")
ResourceDescription = Dict[str, Any]            # Raw describe response, cached per client

LEAD_DESCRIPTION_KEY = ResourceName("__lead__")


class ApiError(TypedDict, total=False):
    """One entry of the ``errors`` / ``reasons`` arrays returned by the API."""
    code: str
    message: str


class ApiResponse(TypedDict, total=False):
    """Parsed JSON body returned by every transport call.

    Every key is optional: asset endpoints omit ``moreResult``, failed calls
    carry ``errors`` instead of ``result``.
    """
    requestId: str
    success: bool
    result: List[Dict[str, Any]]
    nextPageToken: Optional[str]
    moreResult: bool
    errors: List[ApiError]
    warnings: List[str]
    error: Dict[str, Any]


def is_scalar_id(value: Any) -> bool:
    """True for a single identifier (a string or any number), False for a sequence of ids."""
    return isinstance(value, (str, numbers.Number)) and not isinstance(value, bool)


def join_values(values: Any) -> Any:
    """Comma-joins a sequence of values for a query string; scalars pass through."""
    if values is None or is_scalar_id(values):
        return values
    return ",".join(str(v) for v in values)
