import pytest
from typer.testing import CliRunner
from unittest.mock import AsyncMock, MagicMock

from mktocli.domain.interfaces.transport import Transport
from mktocli.infrastructure.clients.marketo_client import MarketoClient
from mktocli.infrastructure.config import settings


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def mock_transport():
    """A Transport whose calls all succeed with an empty result unless configured."""
    transport = MagicMock(spec=Transport)
    transport.get = AsyncMock(return_value={"success": True, "result": []})
    transport.post = AsyncMock(return_value={"success": True, "result": []})
    transport.post_json = AsyncMock(return_value={"success": True, "result": []})
    transport.delete = AsyncMock(return_value={"success": True, "result": []})
    return transport


@pytest.fixture
def marketo_client(mock_transport):
    """A MarketoClient over the mocked transport, without throttling."""
    return MarketoClient(mock_transport, delay_seconds=0)


@pytest.fixture
def mock_client():
    """A MarketoClient stand-in whose facades are all AsyncMock-backed."""
    client = MagicMock(spec=MarketoClient)
    client.activities = AsyncMock()
    client.emails = AsyncMock()
    client.static_lists = AsyncMock()
    client.custom_objects = AsyncMock()
    client.leads = AsyncMock()
    return client


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keeps real MKTO_* variables and earlier test overrides out of each test."""
    for key in ("MKTO_ENDPOINT", "MKTO_CLIENT_ID", "MKTO_CLIENT_SECRET", "MKTO_DELAY_SECONDS",
                "MKTO_PARTITION_ID", "MKTO_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    settings.clear_test_config()
    yield
    settings.clear_test_config()
