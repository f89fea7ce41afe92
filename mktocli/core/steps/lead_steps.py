"""Steps creating, updating, checking and deleting leads."""

import logging
import re
from typing import Any, Dict, List

from mktocli.domain.models.steps import StepResult
from mktocli.infrastructure.clients.lead_client import DEFAULT_PARTITION_ID

from .base_step import OPERATOR_FAILURE_MESSAGES, OPERATOR_SUCCESS_MESSAGES, BaseStep, compare_values

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def lookup_field_for(reference: Any) -> str:
    """``email`` for an email address, ``id`` for anything else."""
    return "email" if EMAIL_PATTERN.match(str(reference).strip()) else "id"


def push_succeeded(response: Dict[str, Any]) -> bool:
    results = response.get("result") or []
    return bool(response.get("success") and results and results[0].get("status") != "skipped")


def push_failure_reason(response: Dict[str, Any]) -> str:
    """First reason, status or error explaining why a lead write did not apply."""
    results: List[Dict[str, Any]] = response.get("result") or []
    reasons = results[0].get("reasons") if results else None
    if reasons:
        return reasons[0].get("message")
    if results:
        return f"status was {results[0].get('status')}"
    errors = response.get("errors") or [{}]
    return errors[0].get("message", "unknown error")


def is_missing_partition(response: Dict[str, Any]) -> bool:
    return bool(response.get("error")) and not response["error"].get("partition", True)


class CreateLeadStep(BaseStep):
    """Creates a lead, then reads it back as a record."""

    name = "Create a Marketo Lead"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        lead = dict(data.get("lead") or {})
        partition_id = data.get("partitionId") or DEFAULT_PARTITION_ID

        if not lead.get("email"):
            return self.error("A lead email is required to create a lead.")

        try:
            response = await self.client.leads.create_lead(lead, partition_id)

            if push_succeeded(response):
                created = await self.client.leads.find_lead_by_email(lead["email"], partition_id=partition_id)
                created_lead = (created.get("result") or [{}])[0]
                return self.passed(
                    "Successfully created lead %s",
                    [lead["email"]],
                    [self.key_value("lead", "Created Lead", created_lead)],
                )

            if is_missing_partition(response):
                return self.failed("There is no Partition with id %s", [partition_id])
            return self.failed("Unable to create lead: %s", [push_failure_reason(response)])
        except Exception as e:
            logger.error(f"Lead creation failed: {e}", exc_info=True)
            return self.error("There was an error creating leads in Marketo: %s", [str(e)])


class CreateOrUpdateLeadStep(BaseStep):
    """Creates the lead or updates the existing one with the same email."""

    name = "Create or Update a Marketo Lead"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        lead = dict(data.get("lead") or {})
        partition_id = data.get("partitionId") or DEFAULT_PARTITION_ID

        if not lead.get("email"):
            return self.error("A lead email is required to create or update a lead.")

        try:
            response = await self.client.leads.create_or_update_lead(lead, partition_id)
            results = response.get("result") or []

            if push_succeeded(response):
                return self.passed(
                    "Successfully created or updated lead %s with status %s",
                    [lead["email"], results[0].get("status")],
                    [self.key_value("lead", "Created or Updated Lead", {**lead, **results[0]})],
                )

            if is_missing_partition(response):
                return self.failed("There is no Partition with id %s", [partition_id])
            return self.failed("Unable to create or update lead: %s", [push_failure_reason(response)])
        except Exception as e:
            logger.error(f"Lead upsert failed: {e}", exc_info=True)
            return self.error("There was an error creating or updating leads in Marketo: %s", [str(e)])


class UpdateLeadStep(BaseStep):
    """Updates an existing lead found by email or id, then reads it back."""

    name = "Update a Marketo Lead"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        reference = data.get("reference")
        lead = dict(data.get("lead") or {})
        partition_id = data.get("partitionId") or DEFAULT_PARTITION_ID

        if not reference:
            return self.error("A lead email or id is required to update a lead.")
        if not lead:
            return self.error("At least one field is required to update lead %s.", [reference])

        lookup_field = lookup_field_for(reference)
        try:
            response = await self.client.leads.update_lead(lead, lookup_field, reference, partition_id)
            results = response.get("result") or []

            if push_succeeded(response):
                updated = await self.client.leads.find_lead_by_field(lookup_field, reference, partition_id=partition_id)
                updated_lead = (updated.get("result") or [{}])[0]
                return self.passed(
                    "Successfully updated lead %s with status %s",
                    [reference, results[0].get("status")],
                    [self.key_value("lead", "Updated Lead", updated_lead)],
                )

            if is_missing_partition(response):
                return self.failed("There is no Partition with id %s", [partition_id])
            return self.failed("Unable to update lead: %s", [push_failure_reason(response)])
        except Exception as e:
            logger.error(f"Lead update failed: {e}", exc_info=True)
            return self.error("There was an error updating leads in Marketo: %s", [str(e)])


class LeadFieldEqualsStep(BaseStep):
    """Checks one field of the lead with the given email against an expected value."""

    name = "Check a field on a Marketo Lead"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        email = data.get("email")
        field = data.get("field")
        operator = (data.get("operator") or "be").strip().lower()
        expectation = data.get("expectation")
        partition_id = data.get("partitionId")

        if operator not in OPERATOR_SUCCESS_MESSAGES:
            return self.error("Unknown operator '%s'. Use one of: %s", [operator, ", ".join(OPERATOR_SUCCESS_MESSAGES)])

        try:
            found = await self.client.leads.find_lead_by_email(email, fields=[field], partition_id=partition_id)
            leads = found.get("result") or []
            if not (found.get("success") and leads):
                return self.error("Couldn't find a lead associated with %s", [email])

            lead = leads[0]
            if field not in lead:
                return self.error("Found the %s lead, but there was no %s field.", [email, field])

            records = [self.key_value("lead", "Checked Lead", lead)]
            if compare_values(operator, lead[field], expectation):
                return self.passed(OPERATOR_SUCCESS_MESSAGES[operator], [field, expectation], records)
            return self.failed(OPERATOR_FAILURE_MESSAGES[operator], [field, expectation, lead[field]], records)
        except Exception as e:
            logger.error(f"Lead field check failed: {e}", exc_info=True)
            return self.error("There was an error loading leads from Marketo: %s", [str(e)])


class DeleteLeadStep(BaseStep):
    """Finds a lead by email and deletes it by id."""

    name = "Delete a Marketo Lead"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        email = data.get("email")

        try:
            found = await self.client.leads.find_lead_by_email(email)
            leads = found.get("result") or []
            if not (found.get("success") and leads and leads[0].get("id")):
                return self.error("Unable to delete lead %s: %s", [email, "a lead with that email address does not exist."])

            deleted = await self.client.leads.delete_lead_by_id(leads[0]["id"])
            deleted_results = deleted.get("result") or []
            if deleted.get("success") and deleted_results and deleted_results[0].get("status") == "deleted":
                return self.passed("Successfully deleted lead %s", [email])
            return self.error("Unable to delete lead %s: %s", [email, deleted])
        except Exception as e:
            logger.error(f"Lead deletion failed: {e}", exc_info=True)
            return self.error("There was an error deleting %s from Marketo: %s", [email, str(e)])
