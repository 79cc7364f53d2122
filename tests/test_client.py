"""Tests for baton_datadog.client — URLs, headers, error mapping, cancellation."""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest
import requests

from baton_datadog.client import DatadogClient
from baton_datadog.context import CallContext
from baton_datadog.errors import Cancelled, UpstreamError, ValidationError


def make_response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    if payload is None:
        resp.content = text.encode()
        resp.json.side_effect = ValueError("no json")
    else:
        resp.content = b"{...}"
        resp.json.return_value = payload
    resp.text = text
    return resp


@pytest.fixture
def session() -> MagicMock:
    s = MagicMock(spec=requests.Session)
    s.headers = {}
    return s


@pytest.fixture
def client(session) -> DatadogClient:
    return DatadogClient(session=session, page_size=50, request_timeout=10.0)


@pytest.fixture
def auth_ctx() -> CallContext:
    return CallContext.background().with_auth("api", "app", "datadoghq.eu")


def test_list_users_sends_page_params_and_auth_headers(client, session, auth_ctx):
    session.request.return_value = make_response(payload={"data": [{"id": "u1"}]})

    users = client.list_users(auth_ctx, 3)

    assert users == [{"id": "u1"}]
    args, kwargs = session.request.call_args
    assert args == ("GET", "https://api.datadoghq.eu/api/v2/users")
    assert kwargs["params"] == {"page[number]": 3, "page[size]": 50}
    assert kwargs["headers"] == {"DD-API-KEY": "api", "DD-APPLICATION-KEY": "app"}
    assert kwargs["timeout"] == 10.0


def test_missing_data_is_empty_page(client, session, auth_ctx):
    session.request.return_value = make_response(payload={"meta": {}})
    assert client.list_roles(auth_ctx, 0) == []


def test_base_url_override(session, auth_ctx):
    client = DatadogClient(session=session, api_base_url="http://localhost:8126/")
    session.request.return_value = make_response(payload={"data": []})

    client.list_teams(auth_ctx, 0)
    assert session.request.call_args.args[1] == "http://localhost:8126/api/v2/team"


def test_create_team_membership_body(client, session, auth_ctx):
    session.request.return_value = make_response(payload={"data": {"id": "tm1"}})

    client.create_team_membership(auth_ctx, "t1", "u1", role="admin")

    args, kwargs = session.request.call_args
    assert args == ("POST", "https://api.datadoghq.eu/api/v2/team/t1/memberships")
    assert kwargs["json"] == {
        "data": {
            "type": "team_memberships",
            "attributes": {"role": "admin"},
            "relationships": {"user": {"data": {"id": "u1", "type": "users"}}},
        }
    }


def test_delete_team_membership_accepts_no_content(client, session, auth_ctx):
    session.request.return_value = make_response(status_code=204)

    client.delete_team_membership(auth_ctx, "t1", "u1")
    assert session.request.call_args.args == (
        "DELETE",
        "https://api.datadoghq.eu/api/v2/team/t1/memberships/u1",
    )


def test_remove_user_from_role_sends_relationship_body(client, session, auth_ctx):
    session.request.return_value = make_response(payload={"data": []})

    client.remove_user_from_role(auth_ctx, "r1", "u1")

    args, kwargs = session.request.call_args
    assert args == ("DELETE", "https://api.datadoghq.eu/api/v2/roles/r1/users")
    assert kwargs["json"] == {"data": {"id": "u1", "type": "users"}}


@pytest.mark.parametrize("status", [400, 422])
def test_validation_statuses_raise_validation_error(client, session, auth_ctx, status):
    session.request.return_value = make_response(
        status_code=status, payload={"errors": ["Invalid role"]}, text='{"errors": ["Invalid role"]}'
    )

    with pytest.raises(ValidationError) as excinfo:
        client.add_user_to_role(auth_ctx, "r1", "u1")
    assert excinfo.value.status_code == status
    assert "Invalid role" in str(excinfo.value)


def test_server_error_raises_upstream_error(client, session, auth_ctx):
    session.request.return_value = make_response(status_code=503, text="unavailable")

    with pytest.raises(UpstreamError) as excinfo:
        client.get_user(auth_ctx, "u1")
    assert not isinstance(excinfo.value, ValidationError)
    assert excinfo.value.status_code == 503
    assert "unavailable" in str(excinfo.value)
    session.request.assert_called_once()


def test_transport_error_raises_upstream_error(client, session, auth_ctx):
    session.request.side_effect = requests.ConnectionError("connection reset")

    with pytest.raises(UpstreamError, match="connection reset"):
        client.list_users(auth_ctx, 0)


def test_expired_context_makes_no_request(client, session):
    ctx = CallContext(deadline=time.monotonic() - 1).with_auth("api", "app", "datadoghq.eu")

    with pytest.raises(Cancelled):
        client.list_users(ctx, 0)
    session.request.assert_not_called()


def test_cancelled_context_makes_no_request(client, session, auth_ctx):
    auth_ctx.cancel()
    with pytest.raises(Cancelled):
        client.list_users(auth_ctx, 0)
    session.request.assert_not_called()


def test_timeout_after_cancellation_is_cancelled_not_upstream(client, session, auth_ctx):
    def _cancel_then_time_out(*args, **kwargs):
        auth_ctx.cancel()
        raise requests.Timeout("read timed out")

    session.request.side_effect = _cancel_then_time_out

    with pytest.raises(Cancelled):
        client.list_users(auth_ctx, 0)
    session.request.assert_called_once()


def test_timeout_without_cancellation_is_upstream_error(client, session, auth_ctx):
    session.request.side_effect = requests.Timeout("read timed out")

    with pytest.raises(UpstreamError, match="timed out"):
        client.list_users(auth_ctx, 0)


def test_request_timeout_bounded_by_deadline(client, session):
    ctx = CallContext.with_timeout(2.0).with_auth("api", "app", "datadoghq.eu")
    session.request.return_value = make_response(payload={"data": []})

    client.list_users(ctx, 0)
    assert session.request.call_args.kwargs["timeout"] <= 2.0


def test_validate_reads_valid_flag(client, session, auth_ctx):
    session.request.return_value = make_response(payload={"valid": True})
    assert client.validate(auth_ctx) is True
    assert session.request.call_args.args[1] == "https://api.datadoghq.eu/api/v1/validate"


def test_missing_site_is_upstream_error(client, session):
    with pytest.raises(UpstreamError, match="site"):
        client.list_users(CallContext.background(), 0)
    session.request.assert_not_called()
