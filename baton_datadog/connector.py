"""Connector entry object: syncer registry, metadata and credential validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from baton_datadog.client import DatadogClient
from baton_datadog.config import ConnectorConfig
from baton_datadog.context import CallContext
from baton_datadog.errors import UpstreamError
from baton_datadog.gateway import MutationGateway
from baton_datadog.syncers import ResourceSyncer, RoleSyncer, TeamSyncer, UserSyncer

logger = logging.getLogger("connector")


@dataclass(frozen=True)
class ConnectorMetadata:
    display_name: str
    description: str


class DatadogConnector:
    def __init__(self, client: DatadogClient, site: str, api_key: str, app_key: str) -> None:
        self.client = client
        self.site = site
        self._api_key = api_key
        self._app_key = app_key

    @classmethod
    def new(cls, config: ConnectorConfig, client: Optional[DatadogClient] = None) -> "DatadogConnector":
        client = client or DatadogClient(
            page_size=config.page_size,
            request_timeout=config.request_timeout,
            api_base_url=config.api_base_url,
        )
        logger.info("Connector targeting %s", config.base_url)
        return cls(client, config.site, config.api_key, config.app_key)

    def resource_syncers(self) -> list[ResourceSyncer]:
        return [
            UserSyncer(self.client, self.site, self._api_key, self._app_key),
            TeamSyncer(self.client, self.site, self._api_key, self._app_key),
            RoleSyncer(self.client, self.site, self._api_key, self._app_key),
        ]

    def mutation_gateway(self) -> MutationGateway:
        return MutationGateway(self.resource_syncers())

    def metadata(self) -> ConnectorMetadata:
        return ConnectorMetadata(
            display_name="Baton Datadog Connector",
            description="Connector syncing users, teams, and roles from Datadog.",
        )

    def validate(self, ctx: CallContext) -> None:
        """Exercise the API/application keys once; raise if Datadog rejects them."""
        auth_ctx = ctx.with_auth(self._api_key, self._app_key, self.site)
        try:
            valid = self.client.validate(auth_ctx)
        except UpstreamError as exc:
            raise UpstreamError(
                f"datadog-connector: failed to validate API key: {exc}",
                status_code=exc.status_code,
                operation="validate",
            ) from exc
        if not valid:
            raise UpstreamError("datadog-connector: API key not valid", operation="validate")
        logger.info("Datadog credentials validated", extra={"operation": "validate"})

    def close(self) -> None:
        self.client.close()
