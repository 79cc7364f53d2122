"""Shared fixtures: a mocked Datadog client and JSON:API record builders."""

from __future__ import annotations

from typing import Optional
from unittest.mock import MagicMock

import pytest

from baton_datadog.client import DatadogClient
from baton_datadog.context import CallContext
from baton_datadog.syncers import RoleSyncer, TeamSyncer, UserSyncer

SITE = "datadoghq.eu"
API_KEY = "api-key"
APP_KEY = "app-key"


def user_record(
    user_id: str,
    name: str,
    email: Optional[str] = None,
    status: str = "Active",
    service_account: bool = False,
) -> dict:
    return {
        "id": user_id,
        "type": "users",
        "attributes": {
            "name": name,
            "email": email or f"{name.split(' ')[0].lower()}@example.com",
            "status": status,
            "service_account": service_account,
        },
    }


def team_record(team_id: str, name: str, description: str = "") -> dict:
    return {
        "id": team_id,
        "type": "team",
        "attributes": {"name": name, "handle": name.lower(), "description": description},
    }


def role_record(role_id: str, name: str) -> dict:
    return {"id": role_id, "type": "roles", "attributes": {"name": name}}


def membership_record(user_id: str, role: Optional[str] = None, with_attributes: bool = True) -> dict:
    record = {
        "id": f"tm-{user_id}",
        "type": "team_memberships",
        "relationships": {"user": {"data": {"id": user_id, "type": "users"}}},
    }
    if with_attributes:
        record["attributes"] = {"role": role}
    return record


def pages(*batches: list) -> callable:
    """side_effect returning ``batches[page]`` and an empty list past the end."""
    def _side_effect(*args):
        page = args[-1]
        return list(batches[page]) if page < len(batches) else []
    return _side_effect


@pytest.fixture
def client() -> MagicMock:
    return MagicMock(spec=DatadogClient)


@pytest.fixture
def ctx() -> CallContext:
    return CallContext.background()


@pytest.fixture
def user_syncer(client) -> UserSyncer:
    return UserSyncer(client, SITE, API_KEY, APP_KEY)


@pytest.fixture
def team_syncer(client) -> TeamSyncer:
    return TeamSyncer(client, SITE, API_KEY, APP_KEY)


@pytest.fixture
def role_syncer(client) -> RoleSyncer:
    return RoleSyncer(client, SITE, API_KEY, APP_KEY)
