import pytest

from mktocli.infrastructure.clients.lead_client import DEFAULT_LEAD_FIELDS, LeadClient, merge_fields
from mktocli.infrastructure.resilience.rate_limiter import RateLimiter

pytestmark = pytest.mark.asyncio

PARTITIONS = {"success": True, "result": [{"id": 1, "name": "Default"}, {"id": 2, "name": "EMEA"}]}


@pytest.fixture
def lead_client(mock_transport):
    return LeadClient(mock_transport, RateLimiter(0))


async def test_create_lead_resolves_partition_name(lead_client, mock_transport):
    mock_transport.get.return_value = PARTITIONS

    await lead_client.create_lead({"email": "a@example.com"}, partition_id=2)

    mock_transport.get.assert_awaited_once_with("/v1/leads/partitions.json", None)
    mock_transport.post_json.assert_awaited_once_with(
        "/v1/leads.json",
        {
            "action": "createOnly",
            "lookupField": "email",
            "partitionName": "EMEA",
            "input": [{"email": "a@example.com"}],
        },
        None,
    )


async def test_create_lead_unknown_partition_skips_create(lead_client, mock_transport):
    mock_transport.get.return_value = PARTITIONS

    response = await lead_client.create_lead({"email": "a@example.com"}, partition_id=9)

    assert response == {"success": False, "error": {"partition": False}}
    mock_transport.post_json.assert_not_awaited()


async def test_create_or_update_lead_action(lead_client, mock_transport):
    mock_transport.get.return_value = PARTITIONS
    await lead_client.create_or_update_lead({"email": "a@example.com"})
    assert mock_transport.post_json.await_args.args[1]["action"] == "createOrUpdate"
    assert mock_transport.post_json.await_args.args[1]["partitionName"] == "Default"


async def test_update_lead_by_id(lead_client, mock_transport):
    mock_transport.get.return_value = PARTITIONS

    await lead_client.update_lead({"firstName": "Ada"}, "id", 42, partition_id=2)

    body = mock_transport.post_json.await_args.args[1]
    assert body == {
        "action": "updateOnly",
        "lookupField": "id",
        "partitionName": "EMEA",
        "input": [{"firstName": "Ada", "id": 42}],
    }


async def test_find_lead_by_email_query(lead_client, mock_transport):
    await lead_client.find_lead_by_email("a@example.com", fields=["company"])
    mock_transport.get.assert_awaited_once_with(
        "/v1/leads.json",
        {
            "filterType": "email",
            "filterValues": "a@example.com",
            "fields": ",".join(["company"] + DEFAULT_LEAD_FIELDS),
        },
    )


async def test_find_lead_filters_by_partition(lead_client, mock_transport):
    mock_transport.get.return_value = {
        "success": True,
        "result": [{"id": 1, "leadPartitionId": 1}, {"id": 2, "leadPartitionId": 2}],
    }

    response = await lead_client.find_lead_by_field("id", 1, partition_id=2)

    assert response["result"] == [{"id": 2, "leadPartitionId": 2}]


async def test_delete_lead_by_id(lead_client, mock_transport):
    await lead_client.delete_lead_by_id(42)
    mock_transport.post_json.assert_awaited_once_with(
        "/v1/leads.json",
        {"input": [{"id": 42}]},
        {"_method": "DELETE"},
    )


async def test_describe_lead_fields_is_cached(lead_client, mock_transport):
    mock_transport.get.return_value = {"success": True, "result": [{"displayName": "Email"}]}

    await lead_client.describe_lead_fields()
    await lead_client.describe_lead_fields()

    mock_transport.get.assert_awaited_once_with("/v1/leads/describe.json", None)


async def test_merge_fields_deduplicates():
    assert merge_fields(["email", "company"]) == ["email", "company"] + [f for f in DEFAULT_LEAD_FIELDS if f != "email"]
