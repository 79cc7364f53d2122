"""Abstract base class for the per-resource-kind syncers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional

from baton_datadog.client import DatadogClient
from baton_datadog.context import CallContext
from baton_datadog.errors import UpstreamError
from baton_datadog.gateway import require_entitlement_slug, require_principal_kind
from baton_datadog.models import (
    Annotations,
    Entitlement,
    Grant,
    Resource,
    ResourceId,
    ResourceKind,
    ResourceType,
    SyncPage,
)
from baton_datadog.pagination import Bag, next_page_token, parse_page_token

logger = logging.getLogger("connector.syncer")

Fetch = Callable[[CallContext, int], list[dict[str, Any]]]


class ResourceSyncer(ABC):
    """Each syncer declares RESOURCE_TYPE and the principal kind its entitlements accept."""

    RESOURCE_TYPE: ResourceType
    PRINCIPAL_KIND: Optional[ResourceKind] = ResourceKind.USER
    ENTITLEMENT_SLUGS: tuple[str, ...] = ()

    def __init__(self, client: DatadogClient, site: str, api_key: str, app_key: str) -> None:
        self.client = client
        self.site = site
        self._api_key = api_key
        self._app_key = app_key

    def resource_type(self) -> ResourceType:
        return self.RESOURCE_TYPE

    @abstractmethod
    def list(
        self, ctx: CallContext, parent_id: Optional[ResourceId], token: str
    ) -> SyncPage[Resource]:
        """One page of resources of this kind."""

    @abstractmethod
    def entitlements(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Entitlement]:
        """Entitlements exposed by ``resource``."""

    @abstractmethod
    def grants(self, ctx: CallContext, resource: Resource, token: str) -> SyncPage[Grant]:
        """One page of grants on ``resource``'s entitlements."""

    @abstractmethod
    def grant(self, ctx: CallContext, principal: Resource, entitlement: Entitlement) -> Annotations:
        """Give ``principal`` the entitlement upstream. Local state is not touched."""

    @abstractmethod
    def revoke(self, ctx: CallContext, grant: Grant) -> Annotations:
        """Remove the grant upstream. Local state is not touched."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _auth(self, ctx: CallContext) -> CallContext:
        return ctx.with_auth(self._api_key, self._app_key, self.site)

    def _require_principal(self, principal: ResourceId, action: str) -> None:
        require_principal_kind(principal, self.PRINCIPAL_KIND, action)

    def _require_slug(self, slug: str) -> None:
        require_entitlement_slug(self.RESOURCE_TYPE.id, slug, self.ENTITLEMENT_SLUGS)

    @contextmanager
    def _upstream(self, operation: str, resource_id: Optional[str] = None) -> Generator[None, None, None]:
        """Attach operation context to upstream failures raised inside the block."""
        try:
            yield
        except UpstreamError as exc:
            exc.add_context(operation, self.RESOURCE_TYPE.id, resource_id)
            logger.error(
                "Upstream call failed: %s",
                exc,
                extra={
                    "operation": operation,
                    "resource_type": self.RESOURCE_TYPE.id,
                    "resource_id": resource_id,
                },
            )
            raise

    def _fetch_page(
        self,
        ctx: CallContext,
        token: str,
        fetch: Fetch,
        operation: str,
        resource_type_id: str,
        resource_id: str = "",
    ) -> tuple[list[dict[str, Any]], Bag, int]:
        """Decode ``token`` and fetch the page it points at."""
        bag, page = parse_page_token(token, resource_type_id, resource_id)
        with self._upstream(operation, resource_id or None):
            records = fetch(self._auth(ctx), page)
        logger.debug(
            "Fetched page",
            extra={
                "operation": operation,
                "resource_type": self.RESOURCE_TYPE.id,
                "resource_id": resource_id or None,
                "page": page,
                "records": len(records),
            },
        )
        return records, bag, page

    @staticmethod
    def _next_token(bag: Bag, page: int, records: list[Any]) -> str:
        # No has-more signal upstream: always ask for one more page and stop on an empty one.
        if not records:
            return ""
        return next_page_token(bag, page + 1)
