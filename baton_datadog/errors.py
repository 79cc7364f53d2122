"""Connector error taxonomy."""

from __future__ import annotations

from typing import Optional


class ConnectorError(Exception):
    """Base class for every error raised by the connector."""


class InvalidToken(ConnectorError):
    """Pagination token could not be decoded. Restart the enumeration."""


class PolicyViolation(ConnectorError):
    """A mutation was requested for a principal type the entitlement does not accept."""


class Cancelled(ConnectorError):
    """The caller's deadline expired or the call was cancelled."""


class UpstreamError(ConnectorError):
    """Datadog API or transport failure.

    ``operation``, ``resource_type`` and ``resource_id`` are filled in by the
    syncer that made the call so the orchestrator can tell which resource
    and which phase failed.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        operation: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.operation = operation
        self.resource_type = resource_type
        self.resource_id = resource_id

    def add_context(
        self,
        operation: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> "UpstreamError":
        # Innermost context wins; a nested lookup already knows what it was doing.
        if self.operation is None:
            self.operation = operation
            self.resource_type = resource_type
            self.resource_id = resource_id
        return self

    def __str__(self) -> str:
        if not self.operation:
            return self.message
        where = self.operation
        if self.resource_type:
            where += f" {self.resource_type}"
        if self.resource_id:
            where += f" {self.resource_id}"
        return f"{where}: {self.message}"


class ValidationError(UpstreamError):
    """Datadog rejected a well-formed request body (HTTP 400/422)."""
