from mktocli.infrastructure.clients import (
    ActivityClient,
    CustomObjectClient,
    EmailClient,
    LeadClient,
    MarketoClient,
    StaticListClient,
)


def test_facades_share_transport_limiter_and_cache(mock_transport):
    client = MarketoClient(mock_transport, delay_seconds=1.5)

    assert isinstance(client.activities, ActivityClient)
    assert isinstance(client.emails, EmailClient)
    assert isinstance(client.static_lists, StaticListClient)
    assert isinstance(client.custom_objects, CustomObjectClient)
    assert isinstance(client.leads, LeadClient)

    facades = [client.activities, client.emails, client.static_lists, client.custom_objects, client.leads]
    assert all(f.transport is mock_transport for f in facades)
    assert all(f.rate_limiter is client.rate_limiter for f in facades)
    assert client.rate_limiter.delay_seconds == 1.5
    assert client.custom_objects.cache is client.leads.cache is client.cache


def test_default_delay_disables_throttling(mock_transport):
    client = MarketoClient(mock_transport)
    assert client.rate_limiter.enabled is False
