import pytest

from mktocli.core.steps import (
    CreateLeadStep,
    CreateOrUpdateLeadStep,
    DeleteLeadStep,
    LeadFieldEqualsStep,
    UpdateLeadStep,
)
from mktocli.domain.models.steps import StepOutcome
from mktocli.domain.exceptions import TransportError

pytestmark = pytest.mark.asyncio

LEAD = {"email": "a@example.com", "firstName": "Ada"}


async def test_create_lead_passes_with_created_record(mock_client):
    mock_client.leads.create_lead.return_value = {"success": True, "result": [{"id": 9, "status": "created"}]}
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": [{"id": 9, "email": "a@example.com"}]}

    result = await CreateLeadStep(mock_client).execute({"lead": LEAD, "partitionId": 2})

    assert result.outcome is StepOutcome.PASSED
    assert result.message == "Successfully created lead a@example.com"
    assert result.records[0].data == {"id": 9, "email": "a@example.com"}
    mock_client.leads.create_lead.assert_awaited_once_with(LEAD, 2)
    mock_client.leads.find_lead_by_email.assert_awaited_once_with("a@example.com", partition_id=2)


async def test_create_lead_missing_partition(mock_client):
    mock_client.leads.create_lead.return_value = {"success": False, "error": {"partition": False}}

    result = await CreateLeadStep(mock_client).execute({"lead": LEAD, "partitionId": 5})

    assert result.outcome is StepOutcome.FAILED
    assert result.message == "There is no Partition with id 5"


async def test_create_lead_skipped_with_reason(mock_client):
    mock_client.leads.create_lead.return_value = {
        "success": True,
        "result": [{"status": "skipped", "reasons": [{"code": "1005", "message": "Lead already exists"}]}],
    }

    result = await CreateLeadStep(mock_client).execute({"lead": LEAD})

    assert result.outcome is StepOutcome.FAILED
    assert result.message == "Unable to create lead: Lead already exists"
    mock_client.leads.create_lead.assert_awaited_once_with(LEAD, 1)


async def test_create_lead_requires_email(mock_client):
    result = await CreateLeadStep(mock_client).execute({"lead": {"firstName": "Ada"}})
    assert result.outcome is StepOutcome.ERROR
    mock_client.leads.create_lead.assert_not_awaited()


async def test_create_lead_transport_failure(mock_client):
    mock_client.leads.create_lead.side_effect = TransportError("refused")

    result = await CreateLeadStep(mock_client).execute({"lead": LEAD})

    assert result.outcome is StepOutcome.ERROR
    assert result.message.startswith("There was an error creating leads in Marketo")
    assert result.exit_code == 2


async def test_delete_lead(mock_client):
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": [{"id": 42}]}
    mock_client.leads.delete_lead_by_id.return_value = {"success": True, "result": [{"id": 42, "status": "deleted"}]}

    result = await DeleteLeadStep(mock_client).execute({"email": "a@example.com"})

    assert result.passed
    mock_client.leads.delete_lead_by_id.assert_awaited_once_with(42)


async def test_delete_unknown_lead(mock_client):
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": []}

    result = await DeleteLeadStep(mock_client).execute({"email": "nobody@example.com"})

    assert result.outcome is StepOutcome.ERROR
    assert "does not exist" in result.message
    mock_client.leads.delete_lead_by_id.assert_not_awaited()


async def test_create_or_update_lead_reports_status(mock_client):
    mock_client.leads.create_or_update_lead.return_value = {"success": True, "result": [{"id": 9, "status": "updated"}]}

    result = await CreateOrUpdateLeadStep(mock_client).execute({"lead": LEAD})

    assert result.outcome is StepOutcome.PASSED
    assert result.message == "Successfully created or updated lead a@example.com with status updated"
    assert result.records[0].data["id"] == 9
    mock_client.leads.create_or_update_lead.assert_awaited_once_with(LEAD, 1)


async def test_create_or_update_lead_skipped(mock_client):
    mock_client.leads.create_or_update_lead.return_value = {"success": True, "result": [{"status": "skipped"}]}

    result = await CreateOrUpdateLeadStep(mock_client).execute({"lead": LEAD, "partitionId": 3})

    assert result.outcome is StepOutcome.FAILED
    assert result.message == "Unable to create or update lead: status was skipped"
    mock_client.leads.create_or_update_lead.assert_awaited_once_with(LEAD, 3)


@pytest.mark.parametrize("reference, lookup_field", [
    ("a@example.com", "email"),
    ("42", "id"),
])
async def test_update_lead_picks_lookup_field(mock_client, reference, lookup_field):
    mock_client.leads.update_lead.return_value = {"success": True, "result": [{"id": 42, "status": "updated"}]}
    mock_client.leads.find_lead_by_field.return_value = {"success": True, "result": [{"id": 42, "firstName": "Grace"}]}

    result = await UpdateLeadStep(mock_client).execute({"reference": reference, "lead": {"firstName": "Grace"}})

    assert result.outcome is StepOutcome.PASSED
    assert result.message == f"Successfully updated lead {reference} with status updated"
    assert result.records[0].data == {"id": 42, "firstName": "Grace"}
    mock_client.leads.update_lead.assert_awaited_once_with({"firstName": "Grace"}, lookup_field, reference, 1)
    mock_client.leads.find_lead_by_field.assert_awaited_once_with(lookup_field, reference, partition_id=1)


async def test_update_lead_not_found_reason(mock_client):
    mock_client.leads.update_lead.return_value = {
        "success": True,
        "result": [{"status": "skipped", "reasons": [{"code": "1004", "message": "Lead not found"}]}],
    }

    result = await UpdateLeadStep(mock_client).execute({"reference": "42", "lead": {"firstName": "Grace"}})

    assert result.outcome is StepOutcome.FAILED
    assert result.message == "Unable to update lead: Lead not found"
    mock_client.leads.find_lead_by_field.assert_not_awaited()


async def test_update_lead_missing_partition(mock_client):
    mock_client.leads.update_lead.return_value = {"success": False, "error": {"partition": False}}

    result = await UpdateLeadStep(mock_client).execute({"reference": "42", "lead": {"firstName": "Grace"}, "partitionId": 7})

    assert result.outcome is StepOutcome.FAILED
    assert result.message == "There is no Partition with id 7"


async def test_update_lead_requires_fields(mock_client):
    result = await UpdateLeadStep(mock_client).execute({"reference": "42", "lead": {}})
    assert result.outcome is StepOutcome.ERROR
    mock_client.leads.update_lead.assert_not_awaited()


async def test_lead_field_equals_passes(mock_client):
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": [{"id": 1, "email": "a@example.com", "score": 10}]}

    result = await LeadFieldEqualsStep(mock_client).execute({"email": "a@example.com", "field": "score", "expectation": "10"})

    assert result.outcome is StepOutcome.PASSED
    assert result.message == "The score field was 10, as expected."
    mock_client.leads.find_lead_by_email.assert_awaited_once_with("a@example.com", fields=["score"], partition_id=None)


async def test_lead_field_equals_fails_with_actual_value(mock_client):
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": [{"id": 1, "firstName": "Ada"}]}

    result = await LeadFieldEqualsStep(mock_client).execute({"email": "a@example.com", "field": "firstName", "expectation": "Grace"})

    assert result.outcome is StepOutcome.FAILED
    assert result.message == "Expected firstName field to be Grace, but it was actually Ada."
    assert result.records[0].id == "lead"


async def test_lead_field_contains(mock_client):
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": [{"id": 1, "company": "ACME Corp"}]}

    result = await LeadFieldEqualsStep(mock_client).execute(
        {"email": "a@example.com", "field": "company", "operator": "contain", "expectation": "ACME"}
    )

    assert result.outcome is StepOutcome.PASSED


async def test_lead_field_missing_field_is_an_error(mock_client):
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": [{"id": 1}]}

    result = await LeadFieldEqualsStep(mock_client).execute({"email": "a@example.com", "field": "score", "expectation": "1"})

    assert result.outcome is StepOutcome.ERROR
    assert result.message == "Found the a@example.com lead, but there was no score field."


async def test_lead_field_unknown_lead(mock_client):
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": []}

    result = await LeadFieldEqualsStep(mock_client).execute({"email": "x@example.com", "field": "score", "expectation": "1"})

    assert result.outcome is StepOutcome.ERROR
    assert result.message == "Couldn't find a lead associated with x@example.com"
