"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), runs the matching
step adapter or client call, and renders the outcome through the
UserInterface. Every handler returns the process exit code.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from mktocli.core.steps import (
    AddLeadsToStaticListStep,
    BaseStep,
    CheckLeadActivityByIdStep,
    CheckLeadActivityStep,
    CheckLeadsActivityStep,
    CreateLeadStep,
    CreateOrUpdateCustomObjectStep,
    CreateOrUpdateLeadStep,
    CustomObjectFieldEqualsStep,
    DeleteCustomObjectStep,
    DeleteLeadStep,
    LeadFieldEqualsStep,
    RemoveLeadsFromStaticListStep,
    SendSampleEmailStep,
    StaticListMemberCountStep,
    UpdateLeadStep,
)
from mktocli.domain.interfaces.user_interface import UserInterface
from mktocli.domain.models.steps import StepResult
from mktocli.infrastructure.clients.marketo_client import MarketoClient

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


class CommandHandler:
    """Handles incoming commands and delegates to the step adapters."""

    def __init__(self, client: MarketoClient, ui: UserInterface, default_partition_id: int = 1):
        """Initializes the CommandHandler with the API client and the UI."""
        self.client = client
        self.ui = ui
        self.default_partition_id = default_partition_id

    async def run_step(self, step_cls: Type[BaseStep], data: Dict[str, Any]) -> int:
        """Executes one step, displays its result and returns the exit code."""
        step = step_cls(self.client)
        logger.info(f"Running step: {step.name or step_cls.__name__}")
        try:
            result: StepResult = await step.execute(data)
        except Exception as e:
            logger.error(f"Step {step_cls.__name__} raised: {e}", exc_info=True)
            self.ui.display_error(f"{step.name or step_cls.__name__} failed: {e}")
            return EXIT_ERROR

        self.ui.display_step_result(result)
        return result.exit_code

    # --- Leads ---

    async def handle_create_lead(self, email: str, fields: Dict[str, Any], partition_id: Optional[int] = None) -> int:
        lead = {**fields, "email": email}
        return await self.run_step(CreateLeadStep, {
            "lead": lead,
            "partitionId": partition_id or self.default_partition_id,
        })

    async def handle_create_or_update_lead(self, email: str, fields: Dict[str, Any], partition_id: Optional[int] = None) -> int:
        return await self.run_step(CreateOrUpdateLeadStep, {
            "lead": {**fields, "email": email},
            "partitionId": partition_id or self.default_partition_id,
        })

    async def handle_update_lead(self, reference: str, fields: Dict[str, Any], partition_id: Optional[int] = None) -> int:
        return await self.run_step(UpdateLeadStep, {
            "reference": reference,
            "lead": fields,
            "partitionId": partition_id or self.default_partition_id,
        })

    async def handle_lead_field(
        self,
        email: str,
        field: str,
        expected: str,
        operator: str = "be",
        partition_id: Optional[int] = None,
    ) -> int:
        return await self.run_step(LeadFieldEqualsStep, {
            "email": email,
            "field": field,
            "operator": operator,
            "expectation": expected,
            "partitionId": partition_id,
        })

    async def handle_delete_lead(self, email: str) -> int:

        return await self.run_step(DeleteLeadStep, {"email": email})

    # --- Activities ---

    async def handle_check_activity(
        self,
        email: str,
        activity: str,
        minutes: int,
        attributes: Optional[Dict[str, Any]] = None,
        partition_id: Optional[int] = None,
    ) -> int:
        return await self.run_step(CheckLeadActivityStep, {
            "email": email,
            "activityTypeIdOrName": activity,
            "minutes": minutes,
            "withAttributes": attributes or {},
            "partitionId": partition_id,
        })

    async def handle_check_activity_by_id(
        self,
        lead_id: str,
        activity: str,
        minutes: int,
        attributes: Optional[Dict[str, Any]] = None,
        absent: bool = False,
        partition_id: Optional[int] = None,
    ) -> int:
        return await self.run_step(CheckLeadActivityByIdStep, {
            "leadId": lead_id,
            "activityTypeIdOrName": activity,
            "minutes": minutes,
            "withAttributes": attributes or {},
            "includes": "not be" if absent else "be",
            "partitionId": partition_id,
        })

    async def handle_lead_activities(self, lead_ids: str, activity: str, minutes: int) -> int:
        return await self.run_step(CheckLeadsActivityStep, {
            "leadIds": lead_ids,
            "activityTypeIdOrName": activity,
            "minutes": minutes,
        })

    # --- Emails ---

    async def handle_send_sample_email(
        self,
        asset: str,
        address: str,
        workspace: Optional[str] = None,
        program: Optional[str] = None,
    ) -> int:
        return await self.run_step(SendSampleEmailStep, {
            "emailAsset": asset,
            "emailAddress": address,
            "workspace": workspace,
            "program": program,
        })

    async def handle_list_emails(self) -> int:
        """Lists every email asset; an incomplete listing is shown with a warning."""
        logger.info("Handling 'list-emails' command.")
        try:
            listing = await self.client.emails.get_emails()
        except Exception as e:
            logger.error(f"Email listing failed: {e}", exc_info=True)
            self.ui.display_error(f"Failed to list emails: {e}")
            return EXIT_ERROR

        if not listing.success:
            self.ui.display_warning(f"Some email pages could not be fetched: {'; '.join(listing.errors)}")
        self.ui.display_records(
            listing.result,
            title="Emails",
            headers={"id": "Id", "name": "Name", "workspace": "Workspace", "status": "Status"},
        )
        return EXIT_OK if listing.success else EXIT_FAILED

    # --- Static lists ---

    async def handle_static_list_add(self, list_name: str, lead_ids: str) -> int:
        return await self.run_step(AddLeadsToStaticListStep, {"staticListName": list_name, "leadIds": lead_ids})

    async def handle_static_list_remove(self, list_name: str, lead_ids: str) -> int:
        return await self.run_step(RemoveLeadsFromStaticListStep, {"staticListName": list_name, "leadIds": lead_ids})

    async def handle_static_list_count(self, list_name: str, operator: str, expected: Optional[str] = None) -> int:
        return await self.run_step(StaticListMemberCountStep, {
            "staticListName": list_name,
            "operator": operator,
            "expectation": expected,
        })

    # --- Custom objects ---

    async def handle_custom_object_upsert(self, name: str, link_email: str, fields: Dict[str, Any]) -> int:
        return await self.run_step(CreateOrUpdateCustomObjectStep, {
            "name": name,
            "linkValue": link_email,
            "object": fields,
        })

    async def handle_custom_object_delete(self, name: str, link_email: str) -> int:
        return await self.run_step(DeleteCustomObjectStep, {"name": name, "linkValue": link_email})

    async def handle_custom_object_field(
        self,
        name: str,
        link_email: str,
        field: str,
        expected: str,
        operator: str = "be",
        dedupe_fields: Optional[Dict[str, Any]] = None,
    ) -> int:
        return await self.run_step(CustomObjectFieldEqualsStep, {
            "name": name,
            "linkValue": link_email,
            "field": field,
            "operator": operator,
            "expectedValue": expected,
            "dedupeFields": dedupe_fields or {},
        })

    async def handle_describe_object(self, name: str) -> int:
        """Shows the fields of a custom object."""
        logger.info(f"Handling 'describe-object' command for: {name}")
        try:
            description = await self.client.custom_objects.get_custom_object(name)
        except Exception as e:
            logger.error(f"Describe failed: {e}", exc_info=True)
            self.ui.display_error(f"Failed to describe {name}: {e}")
            return EXIT_ERROR

        entries: List[Dict[str, Any]] = (description or {}).get("result") or []
        if not entries:
            self.ui.display_error(f"No such custom object: {name}")
            return EXIT_FAILED

        entry = entries[0]
        self.ui.display_info(
            f"{entry.get('displayName') or name}: idField={entry.get('idField')}, "
            f"dedupeFields={', '.join(entry.get('dedupeFields') or []) or '-'}"
        )
        self.ui.display_records(
            entry.get("fields") or [],
            title=f"{name} Fields",
            headers={"name": "Name", "displayName": "Display Name", "dataType": "Type", "updateable": "Updateable"},
        )
        return EXIT_OK
