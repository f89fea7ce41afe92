"""Step sending a sample of an email asset."""

import logging
from typing import Any, Dict, List, Optional

from mktocli.domain.models.steps import StepResult

from .base_step import BaseStep

logger = logging.getLogger(__name__)


def filter_emails(
    emails: List[Dict[str, Any]],
    name: str,
    workspace: Optional[str] = None,
    program: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Keeps emails matching the name and, when given, workspace and program folder."""
    matches = emails
    if workspace:
        matches = [e for e in matches if (e.get("workspace") or "").casefold() == workspace.casefold()]
    if program:
        matches = [
            e for e in matches
            if ((e.get("folder") or {}).get("folderName") or "").casefold() == program.casefold()
        ]
    return [e for e in matches if (e.get("name") or "").casefold() == name.casefold()]


def sent_ok(response: Dict[str, Any]) -> bool:
    return bool(response and response.get("success") and response.get("result"))


class SendSampleEmailStep(BaseStep):
    """Sends a sample email, addressing the asset by id or by name."""

    name = "Send a Marketo Sample Email"

    async def execute(self, data: Dict[str, Any]) -> StepResult:
        asset = str(data.get("emailAsset", "")).strip()
        address = data.get("emailAddress")
        workspace = data.get("workspace")
        program = data.get("program")

        try:
            if asset.isdigit():
                response = await self.client.emails.send_sample_email(asset, address)
                if sent_ok(response):
                    return self.passed("Successfully sent Marketo email with id %s to %s", [asset, address])
                return self.error("There was an error sending the Marketo email with id %s", [asset])

            listing = await self.client.emails.get_emails()
            if not listing.success:
                logger.warning(f"Email listing incomplete: {listing.errors}")
            matches = filter_emails(listing.result, asset, workspace, program)

            if len(matches) == 1:
                email = matches[0]
                record = self.key_value("email", "Email Record", email)
                response = await self.client.emails.send_sample_email(email.get("id"), address)
                if sent_ok(response):
                    return self.passed("Successfully sent Marketo email %s to %s", [asset, address], [record])
                return self.error("There was an error sending the Marketo email", records=[record])

            if not matches:
                if not listing.success:
                    return self.error(
                        "No Marketo emails match your criteria, but the email listing was incomplete: %s",
                        ["; ".join(listing.errors)],
                    )
                return self.error("No Marketo emails match your criteria: found %s matching emails", [0])

            records = [self.key_value(f"email {index}", "Email Record", email) for index, email in enumerate(matches)]
            return self.error("Multiple Marketo emails match your criteria: found %s matching emails", [len(matches)], records)
        except Exception as e:
            logger.error(f"Sample email failed: {e}", exc_info=True)
            return self.error("There was an error sending the Marketo email: %s", [str(e)])
