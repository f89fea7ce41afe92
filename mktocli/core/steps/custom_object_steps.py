"""Steps writing, checking and deleting custom object records linked to leads."""

import logging
from typing import Any, Dict, List, Optional

from mktocli.domain.models.steps import StepResult

from .base_step import OPERATOR_FAILURE_MESSAGES, OPERATOR_SUCCESS_MESSAGES, BaseStep, compare_values

logger = logging.getLogger(__name__)


def describe_entry(description: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    results = (description or {}).get("result") or []
    return results[0] if results else None


def lead_relationship(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """The first relationship of a custom object pointing at the Lead object."""
    for relationship in entry.get("relationships") or []:
        if (relationship.get("relatedTo") or {}).get("name") == "Lead":
            return relationship
    return None


def missing_dedupe_fields(entry: Dict[str, Any], obj: Dict[str, Any]) -> List[str]:
    """Labels of dedupe fields absent from ``obj``, as ``Display Name(apiName)``."""
    labels = {field.get("name"): field.get("displayName") for field in entry.get("fields") or []}
    return [
        f"{labels.get(name) or name}({name})"
        for name in entry.get("dedupeFields") or []
        if name not in obj
    ]


def first_error_message(response: Dict[str, Any]) -> str:
    errors = response.get("errors") or []
    if errors:
        return errors[0].get("message", "unknown error")
    for result in response.get("result") or []:
        for reason in result.get("reasons") or []:
            return reason.get("message", "unknown error")
    return "unknown error"


class CreateOrUpdateCustomObjectStep(BaseStep):
    """Upserts a custom object record linked to the lead with the given email."""

    name = "Create or update a Marketo Custom Object"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        object_name = data.get("name")
        link_value = data.get("linkValue")
        obj = dict(data.get("object") or {})

        try:
            entry = describe_entry(await self.client.custom_objects.get_custom_object(object_name))
            if not entry:
                return self.error("Error creating or updating %s: no such marketo custom object", [object_name])

            relationship = lead_relationship(entry)
            if not relationship:
                return self.error(
                    "Error creating or updating %s linked to %s: this custom object isn't linked to leads",
                    [object_name, link_value],
                )

            missing = missing_dedupe_fields(entry, obj)
            if missing:
                return self.error(
                    "Error creating or updating %s: you must provide values for the following fields: %s",
                    [object_name, ", ".join(missing)],
                )

            lead_field = relationship["relatedTo"].get("field")
            found = await self.client.leads.find_lead_by_email(link_value, fields=["email", lead_field])
            leads = found.get("result") or []
            if not leads:
                return self.error("Error creating or updating %s: the %s lead does not exist.", [object_name, link_value])

            obj[relationship.get("field")] = leads[0].get(lead_field)
            response = await self.client.custom_objects.create_or_update_custom_object(object_name, obj)
            results = response.get("result") or []
            if response.get("success") and results and results[0].get("status") != "skipped":
                return self.passed(
                    "Successfully created or updated %s.",
                    [object_name],
                    [self.key_value("customObject", f"{object_name} Record", {**obj, **results[0]})],
                )
            return self.failed("Failed to create or update %s: %s", [object_name, first_error_message(response)])
        except Exception as e:
            logger.error(f"Custom object upsert failed: {e}", exc_info=True)
            return self.error("Error creating or updating %s: %s", [object_name, str(e)])


class _LeadLinkMixin:

    async def _lead_link_field(self, display_or_api_name: str) -> str:
        """Maps a relationship's lead field to its REST API name.

        Relationships sometimes carry the lead field's display name; the lead
        description resolves it to the API name.
        """
        description = await self.client.leads.describe_lead_fields()
        for field in (description or {}).get("result") or []:
            if field.get("displayName") == display_or_api_name:
                return (field.get("rest") or {}).get("name") or display_or_api_name
        return display_or_api_name


class DeleteCustomObjectStep(_LeadLinkMixin, BaseStep):
    """Deletes the single custom object record linked to the lead with the given email."""

    name = "Delete a Marketo Custom Object"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        object_name = data.get("name")
        link_value = data.get("linkValue")

        try:
            entry = describe_entry(await self.client.custom_objects.get_custom_object(object_name))
            if not entry:
                return self.error("Error deleting %s: no such marketo custom object", [object_name])

            relationship = lead_relationship(entry)
            if not relationship:
                return self.error("Error deleting %s linked to %s: this custom object isn't linked to leads", [object_name, link_value])

            lead_field = await self._lead_link_field(relationship["relatedTo"].get("field"))
            found = await self.client.leads.find_lead_by_email(link_value, fields=["email", lead_field])
            leads = found.get("result") or []
            if not leads:
                return self.error("Error deleting %s: the %s lead does not exist.", [object_name, link_value])

            link_field = relationship.get("field")
            id_field = entry.get("idField") or "marketoGUID"
            query = await self.client.custom_objects.query_custom_object(
                object_name,
                link_field,
                [{link_field: leads[0].get(lead_field)}],
                [id_field],
            )
            matches = query.get("result") or []
            if not matches:
                return self.error("Error deleting %s linked to %s: no matching custom object was found.", [object_name, link_value])
            if len(matches) > 1:
                return self.error(
                    "Error deleting %s linked to %s: more than one matching custom object was found.",
                    [object_name, link_value],
                    [self.table("customObjects", f"Matching {object_name} Records", {id_field: id_field}, matches)],
                )

            response = await self.client.custom_objects.delete_custom_object_by_id(object_name, matches[0].get(id_field))
            if response.get("success") and response.get("result"):
                return self.passed("Successfully deleted %s linked to %s.", [object_name, link_value])
            return self.failed("Failed to delete %s: %s", [object_name, first_error_message(response)])
        except Exception as e:
            logger.error(f"Custom object delete failed: {e}", exc_info=True)
            return self.error("Error deleting %s: %s", [object_name, str(e)])


class CustomObjectFieldEqualsStep(_LeadLinkMixin, BaseStep):
    """Checks a field of the custom object record linked to the lead with the given email.

    ``dedupeFields`` narrows the linked records down to one when a lead has several.
    """

    name = "Check a field on a Marketo Custom Object"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        object_name = data.get("name")
        link_value = data.get("linkValue")
        field = data.get("field")
        operator = (data.get("operator") or "be").strip().lower()
        expected_value = data.get("expectedValue")
        dedupe_fields = dict(data.get("dedupeFields") or {})

        if operator not in OPERATOR_SUCCESS_MESSAGES:
            return self.error("Unknown operator '%s'. Use one of: %s", [operator, ", ".join(OPERATOR_SUCCESS_MESSAGES)])

        try:
            entry = describe_entry(await self.client.custom_objects.get_custom_object(object_name))
            if not entry:
                return self.error("Error finding %s: no such marketo custom object", [object_name])

            relationship = lead_relationship(entry)
            if not relationship:
                return self.error("Error finding %s linked to %s: this custom object isn't linked to leads", [object_name, link_value])

            lead_field = await self._lead_link_field(relationship["relatedTo"].get("field"))
            found = await self.client.leads.find_lead_by_email(link_value, fields=["email", lead_field])
            leads = found.get("result") or []
            if not leads:
                return self.error("Error finding %s: the %s lead does not exist.", [object_name, link_value])

            link_field = relationship.get("field")
            query = await self.client.custom_objects.query_custom_object(
                object_name,
                link_field,
                [{link_field: leads[0].get(lead_field)}],
                [field, link_field, *dedupe_fields],
            )
            matches = query.get("result") or []
            if not query.get("success") or (matches and matches[0].get("reasons")):
                return self.failed("Failed to query %s linked to %s: %s", [object_name, link_value, first_error_message(query)])

            matches = [
                match for match in matches
                if all(str(match.get(key)) == str(value) for key, value in dedupe_fields.items())
            ]
            if not matches:
                return self.error("%s lead is not linked to %s", [link_value, object_name])
            if len(matches) > 1:
                headers = {key: key for key in matches[0]}
                return self.error(
                    "Error finding %s linked to %s: more than one matching custom object was found. "
                    "Please provide dedupe field values to specify which object",
                    [object_name, link_value],
                    [self.table("matchedObjects", f"Checked {object_name}", headers, matches)],
                )

            record = matches[0]
            records = [self.key_value("customObject", f"Checked {object_name}", record)]
            if compare_values(operator, record.get(field), expected_value):
                return self.passed(OPERATOR_SUCCESS_MESSAGES[operator], [field, expected_value], records)
            return self.failed(OPERATOR_FAILURE_MESSAGES[operator], [field, expected_value, record.get(field)], records)
        except Exception as e:
            logger.error(f"Custom object field check failed: {e}", exc_info=True)
            return self.error("There was an error checking the %s Marketo Custom Object: %s", [object_name, str(e)])
