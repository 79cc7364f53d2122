"""Per-resource-kind syncers."""

from baton_datadog.syncers.base import ResourceSyncer
from baton_datadog.syncers.roles import RoleSyncer
from baton_datadog.syncers.teams import TeamSyncer
from baton_datadog.syncers.users import UserSyncer

__all__ = ["ResourceSyncer", "RoleSyncer", "TeamSyncer", "UserSyncer"]
