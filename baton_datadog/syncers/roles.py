"""Role syncer: roles with a single ``member`` entitlement."""

from __future__ import annotations

import logging
from typing import Optional

from baton_datadog.context import CallContext
from baton_datadog.models import (
    ROLE_RESOURCE_TYPE,
    USER_RESOURCE_TYPE,
    Annotations,
    Entitlement,
    Grant,
    Resource,
    ResourceId,
    SyncPage,
)
from baton_datadog.projection import (
    MEMBER,
    role_entitlements,
    role_member_grant,
    role_resource,
    user_resource,
)
from baton_datadog.syncers.base import ResourceSyncer

logger = logging.getLogger("connector.roles")


class RoleSyncer(ResourceSyncer):
    RESOURCE_TYPE = ROLE_RESOURCE_TYPE
    ENTITLEMENT_SLUGS = (MEMBER,)

    def list(
        self, ctx: CallContext, parent_id: Optional[ResourceId], token: str
    ) -> SyncPage[Resource]:
        records, bag, page = self._fetch_page(
            ctx, token, self.client.list_roles, "list", self.RESOURCE_TYPE.id
        )
        resources = [role_resource(r) for r in records]
        return SyncPage(items=resources, next_token=self._next_token(bag, page, records))

    def entitlements(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Entitlement]:
        return SyncPage(items=role_entitlements(resource))

    def grants(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Grant]:
        role_id = resource.id.resource
        users, bag, page = self._fetch_page(
            ctx,
            token,
            lambda c, p: self.client.list_role_users(c, role_id, p),
            "grants",
            USER_RESOURCE_TYPE.id,
            role_id,
        )
        grants = [role_member_grant(resource, user_resource(u)) for u in users]
        return SyncPage(items=grants, next_token=self._next_token(bag, page, users))

    def grant(self, ctx: CallContext, principal: Resource, entitlement: Entitlement) -> Annotations:
        self._require_principal(principal.id, "be granted role membership")
        self._require_slug(entitlement.slug)

        role_id = entitlement.resource_id.resource
        with self._upstream("grant", role_id):
            self.client.add_user_to_role(self._auth(ctx), role_id, principal.id.resource)
        logger.debug("Added %s to role %s", principal.id.resource, role_id)
        return {}

    def revoke(self, ctx: CallContext, grant: Grant) -> Annotations:
        self._require_principal(grant.principal, "have role membership revoked")
        self._require_slug(grant.slug)

        role_id = grant.entitlement_resource.resource
        with self._upstream("revoke", role_id):
            self.client.remove_user_from_role(self._auth(ctx), role_id, grant.principal.resource)
        logger.debug("Removed %s from role %s", grant.principal.resource, role_id)
        return {}
