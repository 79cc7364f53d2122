"""Datadog REST client: users, teams, roles and their memberships.

Every method takes a ``CallContext`` carrying the API/application keys and
the site. The client performs exactly one HTTP request per call and never
retries; retry policy belongs to whoever drives the sync.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from baton_datadog.context import CallContext
from baton_datadog.errors import Cancelled, UpstreamError, ValidationError

logger = logging.getLogger("connector.client")

_VALIDATION_STATUSES = (400, 422)


class DatadogClient:
    """Thin wrapper around a ``requests.Session`` for the Datadog v1/v2 APIs."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        page_size: int = 100,
        request_timeout: float = 30.0,
        api_base_url: Optional[str] = None,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        self._page_size = page_size
        self._timeout = request_timeout
        self._base_override = api_base_url.rstrip("/") if api_base_url else None

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _base_url(self, ctx: CallContext) -> str:
        if self._base_override:
            return self._base_override
        if not ctx.site:
            raise UpstreamError("no Datadog site in call context")
        return f"https://api.{ctx.site}"

    def _timeout_for(self, ctx: CallContext) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self._timeout
        return min(self._timeout, remaining)

    def _request(
        self,
        ctx: CallContext,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        ctx.check()
        url = f"{self._base_url(ctx)}{path}"
        headers = {
            "DD-API-KEY": ctx.api_key,
            "DD-APPLICATION-KEY": ctx.app_key,
        }
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=body,
                headers=headers,
                timeout=self._timeout_for(ctx),
            )
        except requests.Timeout as exc:
            if ctx.expired():
                raise Cancelled(f"{method} {path}: deadline exceeded") from exc
            raise UpstreamError(f"{method} {path}: request timed out") from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"{method} {path}: {exc}") from exc

        if resp.status_code >= 400:
            message = f"{method} {path} returned {resp.status_code}: {_error_detail(resp)}"
            if resp.status_code in _VALIDATION_STATUSES:
                raise ValidationError(message, status_code=resp.status_code)
            raise UpstreamError(message, status_code=resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(
                f"{method} {path}: response is not JSON", status_code=resp.status_code
            ) from exc

    def _page_params(self, page: int) -> dict[str, Any]:
        return {"page[number]": page, "page[size]": self._page_size}

    def _list(self, ctx: CallContext, path: str, page: int) -> list[dict[str, Any]]:
        data = self._request(ctx, "GET", path, params=self._page_params(page))
        records = data.get("data") or []
        logger.debug("GET %s page %d -> %d records", path, page, len(records))
        return records

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def validate(self, ctx: CallContext) -> bool:
        data = self._request(ctx, "GET", "/api/v1/validate")
        return bool(data.get("valid"))

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self, ctx: CallContext, page: int) -> list[dict[str, Any]]:
        return self._list(ctx, "/api/v2/users", page)

    def get_user(self, ctx: CallContext, user_id: str) -> dict[str, Any]:
        data = self._request(ctx, "GET", f"/api/v2/users/{user_id}")
        return data.get("data") or {}

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    def list_teams(self, ctx: CallContext, page: int) -> list[dict[str, Any]]:
        return self._list(ctx, "/api/v2/team", page)

    def get_team_memberships(self, ctx: CallContext, team_id: str, page: int) -> list[dict[str, Any]]:
        return self._list(ctx, f"/api/v2/team/{team_id}/memberships", page)

    def create_team_membership(
        self, ctx: CallContext, team_id: str, user_id: str, role: Optional[str] = None
    ) -> dict[str, Any]:
        body = {
            "data": {
                "type": "team_memberships",
                "attributes": {"role": role},
                "relationships": {
                    "user": {"data": {"id": user_id, "type": "users"}},
                },
            }
        }
        return self._request(ctx, "POST", f"/api/v2/team/{team_id}/memberships", body=body)

    def update_team_membership(
        self, ctx: CallContext, team_id: str, user_id: str, role: Optional[str] = None
    ) -> dict[str, Any]:
        body = {
            "data": {
                "type": "team_memberships",
                "attributes": {"role": role},
            }
        }
        return self._request(
            ctx, "PATCH", f"/api/v2/team/{team_id}/memberships/{user_id}", body=body
        )

    def delete_team_membership(self, ctx: CallContext, team_id: str, user_id: str) -> None:
        self._request(ctx, "DELETE", f"/api/v2/team/{team_id}/memberships/{user_id}")

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def list_roles(self, ctx: CallContext, page: int) -> list[dict[str, Any]]:
        return self._list(ctx, "/api/v2/roles", page)

    def list_role_users(self, ctx: CallContext, role_id: str, page: int) -> list[dict[str, Any]]:
        return self._list(ctx, f"/api/v2/roles/{role_id}/users", page)

    def add_user_to_role(self, ctx: CallContext, role_id: str, user_id: str) -> dict[str, Any]:
        body = {"data": {"id": user_id, "type": "users"}}
        return self._request(ctx, "POST", f"/api/v2/roles/{role_id}/users", body=body)

    def remove_user_from_role(self, ctx: CallContext, role_id: str, user_id: str) -> dict[str, Any]:
        body = {"data": {"id": user_id, "type": "users"}}
        return self._request(ctx, "DELETE", f"/api/v2/roles/{role_id}/users", body=body)


def _error_detail(resp: requests.Response) -> str:
    """Datadog reports ``{"errors": [...]}``; fall back to the raw body."""
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:500]
    if isinstance(payload, dict) and payload.get("errors"):
        return "; ".join(str(e) for e in payload["errors"])
    return resp.text[:500]
