"""Tests for baton_datadog.sync — full passes across kinds and pages."""

from __future__ import annotations

import pytest

from conftest import membership_record, pages, role_record, team_record, user_record

from baton_datadog.connector import DatadogConnector
from baton_datadog.context import CallContext
from baton_datadog.errors import Cancelled, UpstreamError
from baton_datadog.models import Entitlement, Grant, Resource, ResourceKind
from baton_datadog.sync import SyncRunner


@pytest.fixture
def connector(client) -> DatadogConnector:
    return DatadogConnector(client, "datadoghq.com", "api", "app")


@pytest.fixture
def populated(client):
    client.list_users.side_effect = pages(
        [user_record("alice", "Alice"), user_record("bob", "Bob")],
        [user_record("carol", "Carol")],
    )
    client.list_teams.side_effect = pages([team_record("t1", "Eng")])
    client.get_team_memberships.side_effect = pages(
        [membership_record("alice", role="admin"), membership_record("bob")]
    )
    client.get_user.side_effect = lambda c, user_id: user_record(user_id, user_id.title())
    client.list_roles.side_effect = pages([role_record("r1", "SRE")])
    client.list_role_users.side_effect = pages([user_record("carol", "Carol")])
    return client


def test_full_pass_counts_every_record(connector, populated):
    records = []
    runner = SyncRunner(connector.resource_syncers(), max_workers=3)

    results = runner.sync(CallContext.background(), records.append)

    assert results == {
        "user/resources": 3,
        "user/entitlements": 0,
        "user/grants": 0,
        "team/resources": 1,
        "team/entitlements": 2,
        "team/grants": 3,
        "role/resources": 1,
        "role/entitlements": 1,
        "role/grants": 1,
    }
    assert sum(isinstance(r, Resource) for r in records) == 5
    assert sum(isinstance(r, Entitlement) for r in records) == 3
    grants = {g.id for g in records if isinstance(g, Grant)}
    assert grants == {
        "team:t1:member:user:alice",
        "team:t1:admin:user:alice",
        "team:t1:member:user:bob",
        "role:r1:member:user:carol",
    }


def test_each_list_ends_with_one_empty_page(connector, populated):
    SyncRunner(connector.resource_syncers()).sync(CallContext.background(), lambda r: None)

    assert [c.args[1] for c in populated.list_users.call_args_list] == [0, 1, 2]
    assert [c.args[1] for c in populated.list_teams.call_args_list] == [0, 1]
    assert [c.args[1] for c in populated.list_roles.call_args_list] == [0, 1]


def test_user_kind_skips_entitlements_and_grants_phase(connector, populated):
    (users,) = [s for s in connector.resource_syncers() if s.resource_type().kind is ResourceKind.USER]
    runner = SyncRunner([users])

    results = runner.sync(CallContext.background(), lambda r: None, kinds=[ResourceKind.USER])

    assert results == {"user/resources": 3, "user/entitlements": 0, "user/grants": 0}
    populated.get_user.assert_not_called()


def test_failure_in_one_kind_is_raised(connector, populated):
    populated.list_roles.side_effect = UpstreamError("GET /api/v2/roles returned 500", status_code=500)

    with pytest.raises(UpstreamError) as excinfo:
        SyncRunner(connector.resource_syncers()).sync(CallContext.background(), lambda r: None)
    assert excinfo.value.resource_type == "role"


def test_cancelled_context_stops_before_first_page(connector, populated):
    ctx = CallContext.background()
    ctx.cancel()

    with pytest.raises(Cancelled):
        SyncRunner(connector.resource_syncers()).sync(ctx, lambda r: None)
    assert populated.method_calls == []
