"""User syncer: principals. Users hold no entitlements of their own."""

from __future__ import annotations

from typing import Optional

from baton_datadog.context import CallContext
from baton_datadog.models import (
    USER_RESOURCE_TYPE,
    Annotations,
    Entitlement,
    Grant,
    Resource,
    ResourceId,
    SyncPage,
)
from baton_datadog.projection import user_resource
from baton_datadog.syncers.base import ResourceSyncer


class UserSyncer(ResourceSyncer):
    RESOURCE_TYPE = USER_RESOURCE_TYPE
    PRINCIPAL_KIND = None

    def list(
        self, ctx: CallContext, parent_id: Optional[ResourceId], token: str
    ) -> SyncPage[Resource]:
        records, bag, page = self._fetch_page(
            ctx, token, self.client.list_users, "list", self.RESOURCE_TYPE.id
        )
        resources = [user_resource(u) for u in records]
        return SyncPage(items=resources, next_token=self._next_token(bag, page, records))

    def entitlements(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Entitlement]:
        return SyncPage()

    def grants(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Grant]:
        return SyncPage()

    def grant(self, ctx: CallContext, principal: Resource, entitlement: Entitlement) -> Annotations:
        self._require_principal(principal.id, "granting user entitlements")
        return {}

    def revoke(self, ctx: CallContext, grant: Grant) -> Annotations:
        self._require_principal(grant.principal, "revoking user entitlements")
        return {}
