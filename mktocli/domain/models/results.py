"""Result structures produced by the paging engine and the fan-out fetch."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .common import ApiResponse


@dataclass
class Page:
    """One server response to a single paged call."""
    records: List[Dict[str, Any]] = field(default_factory=list)
    next_page_token: Optional[str] = None
    more_result: bool = False

    @classmethod
    def from_response(cls, response: ApiResponse) -> "Page":
        """Builds a Page from a raw response. A missing ``result`` is an empty page."""
        response = response or {}
        return cls(
            records=list(response.get("result") or []),
            next_page_token=response.get("nextPageToken"),
            more_result=bool(response.get("moreResult", False)),
        )


@dataclass
class AggregatedResult:
    """Outcome of a multi-call read.

    ``result`` always holds every record gathered before a failure.
    ``success`` is False if and only if some sub-request raised; the messages
    of those failures are kept in ``errors``.
    """
    success: bool = True
    result: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        """A failed aggregation that still carries data."""
        return not self.success and bool(self.result)

    def __len__(self) -> int:
        return len(self.result)
