"""Team syncer: groups with ``member`` and ``admin`` entitlements."""

from __future__ import annotations

import logging
from typing import Optional

from baton_datadog.context import CallContext
from baton_datadog.errors import UpstreamError
from baton_datadog.models import (
    TEAM_RESOURCE_TYPE,
    Annotations,
    Entitlement,
    Grant,
    Resource,
    ResourceId,
    SyncPage,
)
from baton_datadog.projection import (
    ADMIN,
    MEMBER,
    membership_role,
    membership_user_id,
    team_entitlements,
    team_membership_grants,
    team_resource,
    user_resource,
)
from baton_datadog.syncers.base import ResourceSyncer

logger = logging.getLogger("connector.teams")


class TeamSyncer(ResourceSyncer):
    RESOURCE_TYPE = TEAM_RESOURCE_TYPE
    ENTITLEMENT_SLUGS = (MEMBER, ADMIN)

    def list(
        self, ctx: CallContext, parent_id: Optional[ResourceId], token: str
    ) -> SyncPage[Resource]:
        records, bag, page = self._fetch_page(
            ctx, token, self.client.list_teams, "list", self.RESOURCE_TYPE.id
        )
        resources = [team_resource(t) for t in records]
        return SyncPage(items=resources, next_token=self._next_token(bag, page, records))

    def entitlements(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Entitlement]:
        return SyncPage(items=team_entitlements(resource))

    def grants(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Grant]:
        team_id = resource.id.resource
        memberships, bag, page = self._fetch_page(
            ctx,
            token,
            lambda c, p: self.client.get_team_memberships(c, team_id, p),
            "grants",
            self.RESOURCE_TYPE.id,
            team_id,
        )

        grants: list[Grant] = []
        auth_ctx = self._auth(ctx)
        for membership in memberships:
            try:
                user_id = membership_user_id(membership)
            except ValueError as exc:
                raise UpstreamError(str(exc)).add_context(
                    "grants", self.RESOURCE_TYPE.id, team_id
                ) from exc
            # Memberships only reference the user; resolve the full identity.
            with self._upstream("grants", team_id):
                user = self.client.get_user(auth_ctx, user_id)
            if not user:
                raise UpstreamError(
                    f"error getting user {user_id} from team membership: empty response"
                ).add_context("grants", self.RESOURCE_TYPE.id, team_id)
            grants.extend(
                team_membership_grants(resource, user_resource(user), membership_role(membership))
            )

        return SyncPage(items=grants, next_token=self._next_token(bag, page, memberships))

    def grant(self, ctx: CallContext, principal: Resource, entitlement: Entitlement) -> Annotations:
        self._require_principal(principal.id, "be granted team membership")
        self._require_slug(entitlement.slug)

        role = ADMIN if entitlement.slug == ADMIN else None
        team_id = entitlement.resource_id.resource
        with self._upstream("grant", team_id):
            self.client.create_team_membership(
                self._auth(ctx), team_id, principal.id.resource, role=role
            )
        logger.debug("Added %s to team %s (role=%s)", principal.id.resource, team_id, role)
        return {}

    def revoke(self, ctx: CallContext, grant: Grant) -> Annotations:
        self._require_principal(grant.principal, "have team membership revoked")
        self._require_slug(grant.slug)

        team_id = grant.entitlement_resource.resource
        user_id = grant.principal.resource
        with self._upstream("revoke", team_id):
            if grant.slug == MEMBER:
                self.client.delete_team_membership(self._auth(ctx), team_id, user_id)
            else:
                # Dropping admin keeps the plain membership.
                self.client.update_team_membership(self._auth(ctx), team_id, user_id, role=None)
        return {}
