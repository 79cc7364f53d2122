"""Mutation gateway: principal-type enforcement and grant/revoke dispatch."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Iterable, Optional

from baton_datadog.context import CallContext
from baton_datadog.errors import PolicyViolation
from baton_datadog.models import Annotations, Entitlement, Grant, Resource, ResourceId, ResourceKind

if TYPE_CHECKING:
    from baton_datadog.syncers.base import ResourceSyncer

logger = logging.getLogger("connector.gateway")


def require_principal_kind(
    principal: ResourceId,
    required: Optional[ResourceKind],
    action: str,
) -> None:
    """Raise PolicyViolation unless ``principal`` is of the ``required`` kind.

    ``required`` is None for resource kinds that expose no entitlements, in
    which case every mutation is refused. Nothing is sent upstream either way.
    """
    if required is not None and principal.resource_type == required.value:
        return
    if required is None:
        message = f"baton-datadog: {action} is not supported for this resource type"
    else:
        message = f"baton-datadog: only {required.value}s can {action}"
    logger.warning(
        message,
        extra={
            "principal_type": principal.resource_type,
            "principal_id": principal.resource,
        },
    )
    raise PolicyViolation(message)


def require_entitlement_slug(resource_type_id: str, slug: str, allowed: Iterable[str]) -> None:
    """Raise PolicyViolation unless ``slug`` names an entitlement the resource type exposes."""
    allowed = tuple(allowed)
    if slug in allowed:
        return
    message = (
        f"baton-datadog: {resource_type_id} has no {slug!r} entitlement"
        f" (expected one of {', '.join(allowed) or 'none'})"
    )
    logger.warning(message, extra={"resource_type": resource_type_id})
    raise PolicyViolation(message)


class MutationGateway:
    """Route grant/revoke requests to the syncer owning the entitlement's resource."""

    def __init__(self, syncers: Iterable["ResourceSyncer"]) -> None:
        self._syncers: dict[ResourceKind, "ResourceSyncer"] = {
            s.resource_type().kind: s for s in syncers
        }
        missing = set(ResourceKind) - set(self._syncers)
        if missing:
            raise ValueError(f"no syncer registered for {sorted(k.value for k in missing)}")

    def _syncer_for(self, resource_id: ResourceId) -> "ResourceSyncer":
        try:
            kind = ResourceKind(resource_id.resource_type)
        except ValueError:
            raise PolicyViolation(
                f"baton-datadog: unknown resource type {resource_id.resource_type!r}"
            ) from None
        return self._syncers[kind]

    def grant(self, ctx: CallContext, principal: Resource, entitlement: Entitlement) -> Annotations:
        syncer = self._syncer_for(entitlement.resource_id)
        start = time.monotonic()
        annotations = syncer.grant(ctx, principal, entitlement)
        logger.info(
            "Granted %s to %s",
            entitlement.id,
            principal.id,
            extra={
                "operation": "grant",
                "principal_type": principal.id.resource_type,
                "principal_id": principal.id.resource,
                "duration_s": round(time.monotonic() - start, 3),
            },
        )
        return annotations

    def revoke(self, ctx: CallContext, grant: Grant) -> Annotations:
        syncer = self._syncer_for(grant.entitlement_resource)
        start = time.monotonic()
        annotations = syncer.revoke(ctx, grant)
        logger.info(
            "Revoked %s",
            grant.id,
            extra={
                "operation": "revoke",
                "principal_type": grant.principal.resource_type,
                "principal_id": grant.principal.resource,
                "duration_s": round(time.monotonic() - start, 3),
            },
        )
        return annotations
