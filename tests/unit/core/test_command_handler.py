import pytest
from unittest.mock import MagicMock

from mktocli.core.command_handler import EXIT_ERROR, EXIT_FAILED, EXIT_OK, CommandHandler
from mktocli.core.steps import (
    BaseStep,
    CheckLeadActivityByIdStep,
    CreateLeadStep,
    CustomObjectFieldEqualsStep,
    LeadFieldEqualsStep,
    UpdateLeadStep,
)
from mktocli.domain.interfaces.user_interface import UserInterface
from mktocli.domain.models.results import AggregatedResult
from mktocli.domain.models.steps import StepOutcome

pytestmark = pytest.mark.asyncio

@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)

@pytest.fixture
def command_handler(mock_client, mock_ui):
    """Fixture to create CommandHandler with a mocked client and UI."""
    return CommandHandler(client=mock_client, ui=mock_ui, default_partition_id=3)

class ExplodingStep(BaseStep):
    name = "Exploding"

    async def execute(self, data):
        raise RuntimeError("kaboom")

async def test_create_lead_uses_default_partition(command_handler: CommandHandler, mock_client, mock_ui: MagicMock):
    """The step result is displayed and its exit code returned."""
    mock_client.leads.create_lead.return_value = {"success": True, "result": [{"id": 1, "status": "created"}]}
    mock_client.leads.find_lead_by_email.return_value = {"success": True, "result": [{"id": 1}]}

    code = await command_handler.handle_create_lead("a@example.com", {"firstName": "Ada"})

    assert code == EXIT_OK
    mock_client.leads.create_lead.assert_awaited_once_with({"firstName": "Ada", "email": "a@example.com"}, 3)
    shown = mock_ui.display_step_result.call_args.args[0]
    assert shown.outcome is StepOutcome.PASSED

async def test_failed_step_exit_code(command_handler: CommandHandler, mock_client):
    mock_client.leads.create_lead.return_value = {"success": False, "error": {"partition": False}}
    assert await command_handler.handle_create_lead("a@example.com", {}, partition_id=8) == EXIT_FAILED

async def test_step_exception_is_displayed(command_handler: CommandHandler, mock_ui: MagicMock):
    """Errors raised by a step are displayed rather than propagated."""
    code = await command_handler.run_step(ExplodingStep, {})

    assert code == EXIT_ERROR
    mock_ui.display_error.assert_called_once_with("Exploding failed: kaboom")
    mock_ui.display_step_result.assert_not_called()

async def test_check_activity_passes_inputs(command_handler: CommandHandler, mocker):
    run_step = mocker.patch.object(command_handler, "run_step", return_value=EXIT_OK)

    await command_handler.handle_check_activity("a@example.com", "6", 10, {"Mailing ID": "1"})

    run_step.assert_awaited_once()
    step_cls, data = run_step.await_args.args
    assert data == {
        "email": "a@example.com",
        "activityTypeIdOrName": "6",
        "minutes": 10,
        "withAttributes": {"Mailing ID": "1"},
        "partitionId": None,
    }


async def test_check_activity_by_id_absent(command_handler: CommandHandler, mocker):
    run_step = mocker.patch.object(command_handler, "run_step", return_value=EXIT_OK)

    await command_handler.handle_check_activity_by_id("42", "Visit Webpage", 15, absent=True)

    step_cls, data = run_step.await_args.args
    assert step_cls is CheckLeadActivityByIdStep
    assert data["leadId"] == "42"
    assert data["includes"] == "not be"
    assert data["withAttributes"] == {}

async def test_update_lead_uses_default_partition(command_handler: CommandHandler, mocker):
    run_step = mocker.patch.object(command_handler, "run_step", return_value=EXIT_OK)

    await command_handler.handle_update_lead("42", {"firstName": "Grace"})

    run_step.assert_awaited_once_with(UpdateLeadStep, {"reference": "42", "lead": {"firstName": "Grace"}, "partitionId": 3})

async def test_create_or_update_lead_runs_step(command_handler: CommandHandler, mock_client):
    mock_client.leads.create_or_update_lead.return_value = {"success": True, "result": [{"id": 1, "status": "created"}]}

    code = await command_handler.handle_create_or_update_lead("a@example.com", {"firstName": "Ada"})

    assert code == EXIT_OK
    mock_client.leads.create_or_update_lead.assert_awaited_once_with({"firstName": "Ada", "email": "a@example.com"}, 3)

async def test_field_checks_pass_operator(command_handler: CommandHandler, mocker):
    run_step = mocker.patch.object(command_handler, "run_step", return_value=EXIT_FAILED)

    assert await command_handler.handle_lead_field("a@example.com", "score", "5", "be greater than") == EXIT_FAILED
    assert run_step.await_args.args == (LeadFieldEqualsStep, {
        "email": "a@example.com",
        "field": "score",
        "operator": "be greater than",
        "expectation": "5",
        "partitionId": None,
    })

    await command_handler.handle_custom_object_field("car_c", "a@example.com", "color", "red", dedupe_fields={"vin": "V1"})
    step_cls, data = run_step.await_args.args
    assert step_cls is CustomObjectFieldEqualsStep
    assert data["operator"] == "be"
    assert data["dedupeFields"] == {"vin": "V1"}

async def test_list_emails(command_handler: CommandHandler, mock_client, mock_ui: MagicMock):
    mock_client.emails.get_emails.return_value = AggregatedResult(result=[{"id": 1, "name": "Welcome"}])

    assert await command_handler.handle_list_emails() == EXIT_OK

    mock_ui.display_warning.assert_not_called()
    records = mock_ui.display_records.call_args.args[0]
    assert records == [{"id": 1, "name": "Welcome"}]

async def test_list_emails_partial(command_handler: CommandHandler, mock_client, mock_ui: MagicMock):
    mock_client.emails.get_emails.return_value = AggregatedResult(
        success=False, result=[{"id": 1}], errors=["offset 400: refused"]
    )

    assert await command_handler.handle_list_emails() == EXIT_FAILED

    mock_ui.display_warning.assert_called_once_with("Some email pages could not be fetched: offset 400: refused")
    mock_ui.display_records.assert_called_once()

async def test_describe_object(command_handler: CommandHandler, mock_client, mock_ui: MagicMock):
    mock_client.custom_objects.get_custom_object.return_value = {
        "success": True,
        "result": [{"displayName": "Car", "idField": "marketoGUID", "dedupeFields": ["vin"], "fields": [{"name": "vin"}]}],
    }

    assert await command_handler.handle_describe_object("car_c") == EXIT_OK

    mock_ui.display_info.assert_called_once_with("Car: idField=marketoGUID, dedupeFields=vin")
    assert mock_ui.display_records.call_args.args[0] == [{"name": "vin"}]

async def test_describe_unknown_object(command_handler: CommandHandler, mock_client, mock_ui: MagicMock):
    mock_client.custom_objects.get_custom_object.return_value = {"success": True, "result": []}
    assert await command_handler.handle_describe_object("boat_c") == EXIT_FAILED
    mock_ui.display_error.assert_called_once_with("No such custom object: boat_c")

async def test_describe_transport_error(command_handler: CommandHandler, mock_client, mock_ui: MagicMock):
    mock_client.custom_objects.get_custom_object.side_effect = RuntimeError("refused")
    assert await command_handler.handle_describe_object("car_c") == EXIT_ERROR
    mock_ui.display_error.assert_called_once()

async def test_run_step_accepts_concrete_steps(command_handler: CommandHandler, mock_ui: MagicMock):
    code = await command_handler.run_step(CreateLeadStep, {"lead": {}})
    assert code == EXIT_ERROR
    assert mock_ui.display_step_result.call_args.args[0].outcome is StepOutcome.ERROR
