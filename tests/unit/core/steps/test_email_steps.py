import pytest

from mktocli.core.steps import SendSampleEmailStep
from mktocli.core.steps.email_steps import filter_emails
from mktocli.domain.models.results import AggregatedResult
from mktocli.domain.models.steps import StepOutcome

pytestmark = pytest.mark.asyncio

EMAILS = [
    {"id": 11, "name": "Welcome", "workspace": "Default", "folder": {"folderName": "Onboarding"}},
    {"id": 12, "name": "Welcome", "workspace": "EMEA", "folder": {"folderName": "Onboarding"}},
    {"id": 13, "name": "Newsletter", "workspace": "Default", "folder": {"folderName": "Monthly"}},
]
SENT = {"success": True, "result": [{"service": "sendSample", "result": True}]}


async def test_send_by_id_skips_listing(mock_client):
    mock_client.emails.send_sample_email.return_value = SENT

    result = await SendSampleEmailStep(mock_client).execute({"emailAsset": "1234", "emailAddress": "qa@example.com"})

    assert result.passed
    mock_client.emails.send_sample_email.assert_awaited_once_with("1234", "qa@example.com")
    mock_client.emails.get_emails.assert_not_awaited()


async def test_send_by_unique_name(mock_client):
    mock_client.emails.get_emails.return_value = AggregatedResult(result=EMAILS)
    mock_client.emails.send_sample_email.return_value = SENT

    result = await SendSampleEmailStep(mock_client).execute(
        {"emailAsset": "welcome", "emailAddress": "qa@example.com", "workspace": "emea"}
    )

    assert result.passed
    assert result.message == "Successfully sent Marketo email welcome to qa@example.com"
    mock_client.emails.send_sample_email.assert_awaited_once_with(12, "qa@example.com")


async def test_ambiguous_name_is_an_error(mock_client):
    mock_client.emails.get_emails.return_value = AggregatedResult(result=EMAILS)

    result = await SendSampleEmailStep(mock_client).execute({"emailAsset": "Welcome", "emailAddress": "qa@example.com"})

    assert result.outcome is StepOutcome.ERROR
    assert result.message == "Multiple Marketo emails match your criteria: found 2 matching emails"
    assert len(result.records) == 2
    mock_client.emails.send_sample_email.assert_not_awaited()


async def test_no_match_in_incomplete_listing(mock_client):
    mock_client.emails.get_emails.return_value = AggregatedResult(success=False, result=EMAILS[2:], errors=["offset 200: refused"])

    result = await SendSampleEmailStep(mock_client).execute({"emailAsset": "Welcome", "emailAddress": "qa@example.com"})

    assert result.outcome is StepOutcome.ERROR
    assert "listing was incomplete" in result.message
    assert "offset 200: refused" in result.message


async def test_failed_send(mock_client):
    mock_client.emails.send_sample_email.return_value = {"success": False, "errors": [{"code": "709"}]}
    result = await SendSampleEmailStep(mock_client).execute({"emailAsset": "1234", "emailAddress": "qa@example.com"})
    assert result.outcome is StepOutcome.ERROR


async def test_filter_emails_by_program():
    assert [e["id"] for e in filter_emails(EMAILS, "WELCOME", program="onboarding")] == [11, 12]
    assert [e["id"] for e in filter_emails(EMAILS, "Welcome", workspace="Default", program="Onboarding")] == [11]
    assert filter_emails(EMAILS, "Newsletter", program="Onboarding") == []
