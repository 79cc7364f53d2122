"""Tests for baton_datadog.connector — registry, metadata and credential check."""

from __future__ import annotations

import pytest

from baton_datadog.config import ConnectorConfig
from baton_datadog.connector import DatadogConnector
from baton_datadog.context import CallContext
from baton_datadog.errors import UpstreamError


@pytest.fixture
def connector(client) -> DatadogConnector:
    return DatadogConnector(client, "datadoghq.com", "api", "app")


def test_resource_syncers_cover_user_team_role(connector):
    assert [s.resource_type().id for s in connector.resource_syncers()] == ["user", "team", "role"]


def test_metadata(connector):
    meta = connector.metadata()
    assert meta.display_name == "Baton Datadog Connector"
    assert "teams" in meta.description


def test_validate_passes_credentials(connector, client):
    client.validate.return_value = True

    connector.validate(CallContext.background())

    ctx = client.validate.call_args.args[0]
    assert (ctx.api_key, ctx.app_key, ctx.site) == ("api", "app", "datadoghq.com")


def test_validate_rejects_invalid_key(connector, client):
    client.validate.return_value = False
    with pytest.raises(UpstreamError, match="API key not valid"):
        connector.validate(CallContext.background())


def test_validate_wraps_transport_failure(connector, client):
    client.validate.side_effect = UpstreamError("GET /api/v1/validate returned 403: Forbidden", status_code=403)

    with pytest.raises(UpstreamError, match="failed to validate API key") as excinfo:
        connector.validate(CallContext.background())
    assert excinfo.value.status_code == 403


def test_new_builds_client_from_config():
    config = ConnectorConfig(site="us5.datadoghq.com", api_key="a", app_key="b", page_size=25)
    connector = DatadogConnector.new(config)
    try:
        assert connector.site == "us5.datadoghq.com"
        assert connector.client._page_size == 25
    finally:
        connector.close()
