"""Steps validating the activity feed of one or many leads."""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from mktocli.domain.models.steps import StepRecord, StepResult

from .base_step import BaseStep

logger = logging.getLogger(__name__)

ACTIVITY_HEADERS = {
    "id": "Id",
    "leadId": "Lead Id",
    "activityDate": "Date",
    "activityTypeId": "Type",
    "primaryAttributeValue": "Primary Attribute",
}


def parse_id_list(value: Any) -> List[str]:
    """Accepts a list of ids or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def find_activity_type(activity_types: List[Dict[str, Any]], id_or_name: Any) -> Optional[Dict[str, Any]]:
    """Numeric input matches on id, anything else on name (case-insensitive)."""
    key = str(id_or_name).strip()
    if key.isdigit():
        return next((t for t in activity_types if str(t.get("id")) == key), None)
    return next((t for t in activity_types if str(t.get("name", "")).casefold() == key.casefold()), None)


def activity_attributes(activity: Dict[str, Any], types_by_id: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Secondary attributes of one activity plus its named primary attribute."""
    attributes = list(activity.get("attributes") or [])
    primary = (types_by_id.get(str(activity.get("activityTypeId"))) or {}).get("primaryAttribute")
    if primary:
        attributes.append({"name": primary.get("name"), "value": activity.get("primaryAttributeValue")})
    return attributes


def collect_attributes(activities: List[Dict[str, Any]], activity_types: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flattens secondary attributes and named primary attributes of every activity."""
    types_by_id = {str(t.get("id")): t for t in activity_types}
    attributes: List[Dict[str, Any]] = []
    for activity in activities:
        attributes.extend(activity_attributes(activity, types_by_id))
    return attributes


def has_at_least_one_match(actual: List[Dict[str, Any]], expected: Dict[str, Any]) -> bool:
    return any(
        attribute.get("name") in expected and str(attribute.get("value")) == str(expected[attribute.get("name")])
        for attribute in actual
    )


def find_matching_activity(
    activities: List[Dict[str, Any]],
    activity_types: List[Dict[str, Any]],
    expected: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """First activity whose attributes or top-level fields carry every expected value."""
    types_by_id = {str(t.get("id")): t for t in activity_types}
    for activity in activities:
        actual = {key: value for key, value in activity.items() if key != "attributes"}
        for attribute in activity_attributes(activity, types_by_id):
            actual[attribute.get("name")] = attribute.get("value")
        if all(name in actual and str(actual[name]) == str(value) for name, value in expected.items()):
            return activity
    return None


def flatten_activity(activity: Dict[str, Any]) -> Dict[str, Any]:
    """Activity fields with its attributes lifted to the top level."""
    flat = {key: value for key, value in activity.items() if key != "attributes"}
    for attribute in activity.get("attributes") or []:
        flat[attribute.get("name")] = attribute.get("value")
    return flat


class _ActivityLookupMixin:
    """Shared activity-type resolution and window token lookup."""

    async def _resolve_activity_type(self, id_or_name: Any) -> Optional[Dict[str, Any]]:
        response = await self.client.activities.get_activity_types()
        return find_activity_type(response.get("result") or [], id_or_name)

    async def _window_token(self, minutes: Any) -> Optional[str]:
        since = datetime.now(timezone.utc) - timedelta(minutes=float(minutes))
        response = await self.client.activities.get_activity_paging_token(since)
        return response.get("nextPageToken")

    @staticmethod
    def _activity_table(activities: List[Dict[str, Any]]) -> StepRecord:
        return BaseStep.table("activities", "Lead Activities", ACTIVITY_HEADERS, activities)


class CheckLeadActivityStep(_ActivityLookupMixin, BaseStep):
    """Checks that a lead has an activity of a given type in the last N minutes."""

    name = "Check a Marketo Lead's Activity"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        email = data.get("email")
        id_or_name = data.get("activityTypeIdOrName")
        minutes = data.get("minutes")
        with_attributes = dict(data.get("withAttributes") or {})
        partition_id = data.get("partitionId")

        try:
            token = await self._window_token(minutes)

            found = await self.client.leads.find_lead_by_email(email, partition_id=partition_id)
            leads = found.get("result") or []
            if not leads:
                return self.error("Lead %s was not found", [email])
            lead = leads[0]

            types_response = await self.client.activities.get_activity_types()
            activity_types = types_response.get("result") or []
            activity_type = find_activity_type(activity_types, id_or_name)
            if not activity_type:
                return self.error("Activity with ID or Name %s was not found.", [id_or_name])

            fetched = await self.client.activities.get_activities_by_lead_id(token, lead["id"], activity_type["id"])
            activities = fetched.result
            records = [self._activity_table(activities)] if activities else []

            if not activities:
                if not fetched.success:
                    return self.error("There was an error checking activities for lead %s: %s", [email, "; ".join(fetched.errors)])
                return self.failed("Activity %s was not found for lead %s for the last %s minute(s)", [id_or_name, email, minutes])

            if not with_attributes:
                return self.passed("Activity %s was found for lead %s for the last %s minute(s)", [id_or_name, email, minutes], records)

            actual = collect_attributes(activities, activity_types)
            if has_at_least_one_match(actual, with_attributes):
                return self.passed(
                    "Activity %s was found for lead %s for the last %s minute(s). With expected attributes: %s",
                    [id_or_name, email, minutes, json.dumps(with_attributes, default=str)],
                    records,
                )
            if not fetched.success:
                return self.error(
                    "No matching activity %s for lead %s in the partial results; some activities could not be fetched: %s",
                    [id_or_name, email, "; ".join(fetched.errors)],
                    records,
                )
            return self.failed(
                "Expected attributes of activity %s for lead %s for the last %s minute(s) did not match the actual activity attributes. Actual attributes are: %s",
                [id_or_name, email, minutes, json.dumps(actual, default=str)],
                records,
            )
        except Exception as e:
            logger.error(f"Activity check failed: {e}", exc_info=True)
            return self.error("There was an error checking activities for Marketo lead: %s", [str(e)])


class CheckLeadActivityByIdStep(_ActivityLookupMixin, BaseStep):
    """Checks whether the lead with a given id has (or lacks) an activity in the last N minutes.

    With ``withAttributes``, a single activity must carry every expected value.
    """

    name = "Check a Marketo Lead's Activity by Id"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        lead_id = data.get("leadId")
        id_or_name = data.get("activityTypeIdOrName")
        minutes = data.get("minutes")
        with_attributes = dict(data.get("withAttributes") or {})
        partition_id = data.get("partitionId")
        includes = (data.get("includes") or "be").strip().lower() != "not be"

        try:
            token = await self._window_token(minutes)

            found = await self.client.leads.find_lead_by_field("id", lead_id, partition_id=partition_id)
            leads = found.get("result") or []
            if not leads:
                where = f" in partition {partition_id}" if partition_id else ""
                return self.failed("Lead %s was not found%s", [lead_id, where])

            types_response = await self.client.activities.get_activity_types()
            activity_types = types_response.get("result") or []
            activity_type = find_activity_type(activity_types, id_or_name)
            if not activity_type:
                return self.error("%s is not a known activity type.", [id_or_name])

            fetched = await self.client.activities.get_activities_by_lead_id(token, leads[0]["id"], activity_type["id"])
            activities = fetched.result
            if not fetched.success:
                return self.error(
                    "There was an error checking activities for lead %s: %s",
                    [lead_id, "; ".join(fetched.errors)],
                    [self._activity_table(activities)] if activities else [],
                )

            outcome = self.passed if includes else self.failed
            if not activities:
                negated = self.failed if includes else self.passed
                return negated("No %s activity found for lead %s within the last %s minute(s)", [id_or_name, lead_id, minutes])

            if not with_attributes:
                return outcome(
                    "%s activity found for lead %s within the last %s minute(s)",
                    [id_or_name, lead_id, minutes],
                    [self.key_value("activity", "Checked Activity", flatten_activity(activities[0]))],
                )

            matched = find_matching_activity(activities, activity_types, with_attributes)
            if matched:
                return outcome(
                    "Found %s activity for lead %s within the last %s minute(s), including attributes: %s",
                    [id_or_name, lead_id, minutes, json.dumps(with_attributes, default=str)],
                    [self.key_value("activity", "Checked Activity", flatten_activity(matched))],
                )
            expected = ", ".join(f"{name} = {value}" for name, value in with_attributes.items())
            return self.failed(
                "Found %s activity for lead %s within the last %s minute(s), but none matched the expected attributes (%s).",
                [id_or_name, lead_id, minutes, expected],
                [self._activity_table(activities)],
            )
        except Exception as e:
            logger.error(f"Activity check by id failed: {e}", exc_info=True)
            return self.error("There was an error checking activities for Marketo lead: %s", [str(e)])



class CheckLeadsActivityStep(_ActivityLookupMixin, BaseStep):
    """Checks that any of the given leads has an activity of a type in the last N minutes."""

    name = "Check Marketo Leads' Activity"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        lead_ids = parse_id_list(data.get("leadIds"))
        id_or_name = data.get("activityTypeIdOrName")
        minutes = data.get("minutes")

        if not lead_ids:
            return self.error("At least one lead id is required.")

        try:
            activity_type = await self._resolve_activity_type(id_or_name)
            if not activity_type:
                return self.error("Activity with ID or Name %s was not found.", [id_or_name])

            token = await self._window_token(minutes)
            fetched = await self.client.activities.get_activities_by_lead_id(token, lead_ids, activity_type["id"])
            records = [self._activity_table(fetched.result)]

            if not fetched.success:
                return self.error(
                    "Only %s activities could be fetched for %s leads: %s",
                    [len(fetched), len(lead_ids), "; ".join(fetched.errors)],
                    records,
                )
            if not fetched.result:
                return self.failed("Activity %s was not found for any of %s leads for the last %s minute(s)", [id_or_name, len(lead_ids), minutes])
            return self.passed(
                "Found %s %s activities for %s leads for the last %s minute(s)",
                [len(fetched), id_or_name, len(lead_ids), minutes],
                records,
            )
        except Exception as e:
            logger.error(f"Bulk activity check failed: {e}", exc_info=True)
            return self.error("There was an error checking activities for Marketo leads: %s", [str(e)])
