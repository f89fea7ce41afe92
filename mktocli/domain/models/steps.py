"""Domain models for step outcomes.

A step turns one high-level intent (create a lead, check an activity) into
client calls and reports a pass/fail/error outcome with optional records.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


class StepOutcome(str, enum.Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


@dataclass
class StepRecord:
    """Structured data attached to a step result (a key/value map or a table)."""
    id: str
    name: str
    data: Union[Dict[str, Any], List[Dict[str, Any]]]
    headers: Optional[Dict[str, str]] = None  # Only set for tables

    @property
    def is_table(self) -> bool:
        return isinstance(self.data, list)


@dataclass
class StepResult:
    """Outcome of a single step execution."""
    outcome: StepOutcome
    message: str
    records: List[StepRecord] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.outcome is StepOutcome.PASSED

    @property
    def exit_code(self) -> int:
        # 0 passed, 1 failed, 2 error
        return {StepOutcome.PASSED: 0, StepOutcome.FAILED: 1, StepOutcome.ERROR: 2}[self.outcome]
