"""Steps managing static list membership."""

import json
import logging
from typing import Any, Dict, List, Optional

from mktocli.domain.models.steps import StepRecord, StepResult

from .activity_steps import parse_id_list
from .base_step import BaseStep, UnknownOperatorError

logger = logging.getLogger(__name__)

MEMBERSHIP_HEADERS = {"id": "Id", "status": "Status", "reasons": "Reasons"}

OPERATORS = ("be", "not be", "be greater than", "be less than", "be set", "not be set")
UNARY_OPERATORS = ("be set", "not be set")


def compare_count(operator: str, actual: int, expected: Any) -> bool:
    """Evaluates ``actual <operator> expected`` for a member count.

    Raises:
        UnknownOperatorError: If the operator is not supported.
        ValueError: If ``expected`` is not a number for a comparing operator.
    """
    if operator == "be set":
        return actual is not None
    if operator == "not be set":
        return actual is None
    if operator not in OPERATORS:
        raise UnknownOperatorError(f"Unknown operator '{operator}'.")

    try:
        target = int(str(expected).strip())
    except (TypeError, ValueError):
        raise ValueError(f"Expected value '{expected}' is not a whole number.")

    if operator == "be":
        return actual == target
    if operator == "not be":
        return actual != target
    if operator == "be greater than":
        return actual > target
    return actual < target


def membership_table(record_id: str, name: str, rows: List[Dict[str, Any]]) -> StepRecord:
    formatted = [
        {**row, "reasons": json.dumps(row["reasons"]) if row.get("reasons") else "-"}
        for row in rows
    ]
    return BaseStep.table(record_id, name, MEMBERSHIP_HEADERS, formatted)


class _StaticListLookupMixin:

    async def _find_list(self, list_name: str) -> Optional[Dict[str, Any]]:
        response = await self.client.static_lists.find_static_lists_by_name(list_name)
        results = response.get("result") or []
        return results[0] if results else None


class _StaticListMembershipStep(_StaticListLookupMixin, BaseStep):
    """Adds or removes leads; ``expected_status`` is the per-lead success status."""

    expected_status = ""
    verb = ""
    record_name = ""

    async def _change_membership(self, list_id: Any, lead_ids: List[str]) -> Dict[str, Any]:
        raise NotImplementedError

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        list_name = data.get("staticListName")
        lead_ids = parse_id_list(data.get("leadIds"))
        preposition = "to" if self.verb == "add" else "from"

        try:
            static_list = await self._find_list(list_name)
            if not static_list:
                return self.error("Static List with name %s does not exist", [list_name])

            response = await self._change_membership(static_list["id"], lead_ids)
            results = response.get("result") or []
            record_id = f"staticList{self.verb.capitalize()}"

            if response.get("success") and any(r.get("status") != self.expected_status for r in results):
                return self.failed(
                    f"Failed to {self.verb} all leads {preposition} static list %s",
                    [list_name],
                    [membership_table(record_id, self.record_name, results)],
                )
            if response.get("success") and results:
                return self.passed(
                    f"Successfully {self.expected_status} leads {preposition} static list %s",
                    [list_name],
                    [membership_table(record_id, self.record_name, results)],
                )
            return self.error(f"Failed to {self.verb} leads {preposition} static list %s", [list_name])
        except Exception as e:
            logger.error(f"Static list {self.verb} failed: {e}", exc_info=True)
            return self.error("There was an error changing static list %s: %s", [list_name, str(e)])


class AddLeadsToStaticListStep(_StaticListMembershipStep):
    name = "Add Marketo Leads to Static List"
    expected_status = "added"
    verb = "add"
    record_name = "Static List Members Added"

    async def _change_membership(self, list_id: Any, lead_ids: List[str]) -> Dict[str, Any]:
        return await self.client.static_lists.add_leads_to_static_list(list_id, lead_ids)


class RemoveLeadsFromStaticListStep(_StaticListMembershipStep):
    name = "Remove Marketo Leads from Static List"
    expected_status = "removed"
    verb = "remove"
    record_name = "Static List Members Removed"

    async def _change_membership(self, list_id: Any, lead_ids: List[str]) -> Dict[str, Any]:
        return await self.client.static_lists.remove_leads_from_static_list(list_id, lead_ids)


class StaticListMemberCountStep(_StaticListLookupMixin, BaseStep):
    """Compares the member count of a static list against an expectation."""

    name = "Check the number of Marketo Static List Members"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        list_name = data.get("staticListName")
        operator = (data.get("operator") or "be set").strip().lower()
        expected = data.get("expectation")

        if expected is None and operator not in UNARY_OPERATORS:
            return self.error("The operator '%s' requires an expected value. Please provide one.", [operator])

        try:
            static_list = await self._find_list(list_name)
            if not static_list:
                return self.error("Static List with name %s does not exist", [list_name])

            response = await self.client.static_lists.find_static_list_membership(static_list["id"])
            if not response.get("success"):
                errors = response.get("errors") or [{}]
                return self.error("Unable to read members of static list %s: %s", [list_name, errors[0].get("message", "unknown error")])

            members = response.get("result") or []
            count = len(members)
            records = [
                self.key_value("staticListMember", "Checked Static List Member Count", {
                    "staticListId": static_list["id"],
                    "staticListMemberCount": count,
                }),
                self.table("staticListMemberList", "Checked Static List Member", {k: k for k in (members[0] if members else {})}, members),
            ]

            valid = compare_count(operator, count, expected)
            expectation = "" if operator in UNARY_OPERATORS else f" {expected}"
            if valid:
                return self.passed(f"Member count of static list %s is %s, which satisfies: {operator}{expectation}", [list_name, count], records)
            return self.failed(f"Expected member count of static list %s to {operator}{expectation}, but it was %s", [list_name, count], records)
        except UnknownOperatorError as e:
            return self.error("%s Please provide one of: %s", [str(e), ", ".join(OPERATORS)])
        except ValueError as e:
            return self.error(str(e))
        except Exception as e:
            logger.error(f"Static list count failed: {e}", exc_info=True)
            return self.error("There was an error during validation of static list member count: %s", [str(e)])
