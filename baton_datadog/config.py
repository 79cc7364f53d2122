"""Configuration via environment variables with cloud-native secret support.

Supports:
  - Environment variables (local dev, BATON_* names)
  - .env files
  - AWS Secrets Manager / GCP Secret Manager references for the API and
    application keys (aws-secret://name#key, gcp-secret://name)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from baton_datadog.secrets import resolve_secret


@dataclass(frozen=True)
class SchedulerConfig:
    sync_interval_min: int = 60
    misfire_grace_time: int = 300
    max_retries: int = 3


@dataclass(frozen=True)
class ConnectorConfig:
    site: str
    api_key: str
    app_key: str
    api_base_url: Optional[str] = None  # None = https://api.<site>
    page_size: int = 100
    request_timeout: float = 30.0
    max_workers: int = 3
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    @property
    def base_url(self) -> str:
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        return f"https://api.{self.site}"


def validate_config(config: ConnectorConfig) -> None:
    """Raise ValueError when a required setting is missing or out of range."""
    if not config.site:
        raise ValueError(
            "site is required, please provide it via --site flag or BATON_SITE environment variable"
        )
    if not config.api_key:
        raise ValueError(
            "API key is required, please provide it via --api-key flag or BATON_API_KEY environment variable"
        )
    if not config.app_key:
        raise ValueError(
            "app key is required, please provide it via --app-key flag or BATON_APP_KEY environment variable"
        )
    if config.page_size <= 0:
        raise ValueError("BATON_PAGE_SIZE must be a positive integer")
    if config.max_workers <= 0:
        raise ValueError("BATON_MAX_WORKERS must be a positive integer")


def load_config(
    site: Optional[str] = None,
    api_key: Optional[str] = None,
    app_key: Optional[str] = None,
) -> ConnectorConfig:
    """Load configuration from explicit overrides, then environment variables.

    Secret references in the keys are resolved here, once, so syncers only
    ever see plaintext credentials.
    """
    load_dotenv()

    site = site or os.environ.get("BATON_SITE", "")
    api_key = resolve_secret(api_key or os.environ.get("BATON_API_KEY", ""))
    app_key = resolve_secret(app_key or os.environ.get("BATON_APP_KEY", ""))

    scheduler = SchedulerConfig(
        sync_interval_min=int(os.environ.get("BATON_SYNC_INTERVAL_MIN", "60")),
        misfire_grace_time=int(os.environ.get("BATON_MISFIRE_GRACE_TIME", "300")),
        max_retries=int(os.environ.get("BATON_MAX_RETRIES", "3")),
    )

    config = ConnectorConfig(
        site=site,
        api_key=api_key,
        app_key=app_key,
        api_base_url=os.environ.get("BATON_API_BASE_URL") or None,
        page_size=int(os.environ.get("BATON_PAGE_SIZE", "100")),
        request_timeout=float(os.environ.get("BATON_REQUEST_TIMEOUT", "30")),
        max_workers=int(os.environ.get("BATON_MAX_WORKERS", "3")),
        scheduler=scheduler,
    )
    validate_config(config)
    return config
