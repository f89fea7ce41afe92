"""Base class for step adapters.

A step maps one high-level intent onto client calls and reports the outcome
as a ``StepResult``. Subclasses implement ``execute`` and build their results
with the helpers below; messages use ``%s`` placeholders filled from ``args``.
"""

import abc
import logging
from typing import Any, Dict, List, Optional, Sequence

from mktocli.domain.models.steps import StepOutcome, StepRecord, StepResult
from mktocli.infrastructure.clients.marketo_client import MarketoClient

logger = logging.getLogger(__name__)


def format_message(message: str, args: Sequence[Any] = ()) -> str:
    if not args:
        return message
    try:
        return message % tuple(args)
    except (TypeError, ValueError):
        logger.debug(f"Could not format step message {message!r} with {args!r}.")
        return f"{message} {' '.join(str(a) for a in args)}"


class UnknownOperatorError(ValueError):
    pass


FIELD_OPERATORS = ("be", "not be", "contain", "not contain", "be greater than", "be less than")

OPERATOR_SUCCESS_MESSAGES = {
    "be": "The %s field was %s, as expected.",
    "not be": "The %s field was not %s, as expected.",
    "contain": "The %s field contains %s, as expected.",
    "not contain": "The %s field does not contain %s, as expected.",
    "be greater than": "The %s field was greater than %s, as expected.",
    "be less than": "The %s field was less than %s, as expected.",
}

OPERATOR_FAILURE_MESSAGES = {
    "be": "Expected %s field to be %s, but it was actually %s.",
    "not be": "Expected %s field not to be %s, but it was also %s.",
    "contain": "Expected %s field to contain %s, but it was actually %s.",
    "not contain": "Expected %s field not to contain %s, but it was actually %s.",
    "be greater than": "Expected %s field to be greater than %s, but it was actually %s.",
    "be less than": "Expected %s field to be less than %s, but it was actually %s.",
}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    # JSON booleans compare as "true" / "false"
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def compare_values(operator: str, actual: Any, expected: Any) -> bool:
    """Evaluates ``actual <operator> expected`` for a field value.

    Equality is numeric when both sides parse as numbers, textual otherwise.

    Raises:
        UnknownOperatorError: If the operator is not one of FIELD_OPERATORS.
        ValueError: If an ordering operator gets a non-numeric side.
    """
    if operator not in FIELD_OPERATORS:
        raise UnknownOperatorError(f"Unknown operator '{operator}'.")

    actual_text, expected_text = _as_text(actual), _as_text(expected)
    if operator in ("contain", "not contain"):
        return (expected_text in actual_text) == (operator == "contain")

    actual_number, expected_number = _as_number(actual), _as_number(expected)
    if operator in ("be", "not be"):
        if actual_number is not None and expected_number is not None:
            equal = actual_number == expected_number
        else:
            equal = actual_text == expected_text
        return equal == (operator == "be")

    if actual_number is None or expected_number is None:
        raise ValueError(f"Cannot compare '{actual_text}' and '{expected_text}' as numbers.")
    if operator == "be greater than":
        return actual_number > expected_number
    return actual_number < expected_number



class BaseStep(abc.ABC):
    """Abstract Base Class for step adapters."""

    name: str = ""

    def __init__(self, client: MarketoClient):
        self.client = client

    @abc.abstractmethod
    async def execute(self, data: Dict[str, Any]) -> StepResult:
        """Runs the step.

        Args:
            data: Step inputs keyed by field name.

        Returns:
            The step outcome. Exceptions raised by clients are reported as
            ERROR results rather than propagated.
        """
        pass

    # --- Result helpers ---

    def passed(self, message: str, args: Sequence[Any] = (), records: Optional[List[StepRecord]] = None) -> StepResult:
        return self._result(StepOutcome.PASSED, message, args, records)

    def failed(self, message: str, args: Sequence[Any] = (), records: Optional[List[StepRecord]] = None) -> StepResult:
        return self._result(StepOutcome.FAILED, message, args, records)

    def error(self, message: str, args: Sequence[Any] = (), records: Optional[List[StepRecord]] = None) -> StepResult:
        return self._result(StepOutcome.ERROR, message, args, records)

    def _result(self, outcome: StepOutcome, message: str, args: Sequence[Any], records: Optional[List[StepRecord]]) -> StepResult:
        text = format_message(message, args)
        logger.info(f"{self.name or type(self).__name__}: {outcome.value}: {text}")
        return StepResult(outcome=outcome, message=text, records=list(records or []))

    @staticmethod
    def key_value(record_id: str, name: str, data: Dict[str, Any]) -> StepRecord:
        return StepRecord(id=record_id, name=name, data=dict(data or {}))

    @staticmethod
    def table(record_id: str, name: str, headers: Dict[str, str], rows: List[Dict[str, Any]]) -> StepRecord:
        return StepRecord(id=record_id, name=name, data=list(rows), headers=dict(headers))
