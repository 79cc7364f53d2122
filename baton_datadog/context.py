"""Per-call context: credentials, site selector, deadline and cancellation."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Optional

from baton_datadog.errors import Cancelled


@dataclass(frozen=True)
class CallContext:
    """Carried into every upstream call.

    The syncers inject ``api_key``, ``app_key`` and ``site`` via
    ``with_auth``; the caller owns ``deadline`` (a ``time.monotonic()``
    value) and ``cancel_event``.
    """

    api_key: str = ""
    app_key: str = ""
    site: str = ""
    deadline: Optional[float] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def background(cls) -> "CallContext":
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "CallContext":
        return cls(deadline=time.monotonic() + seconds)

    def with_auth(self, api_key: str, app_key: str, site: str) -> "CallContext":
        return replace(self, api_key=api_key, app_key=app_key, site=site)

    def cancel(self) -> None:
        self.cancel_event.set()

    def expired(self) -> bool:
        if self.cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def check(self) -> None:
        if self.cancel_event.is_set():
            raise Cancelled("call cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise Cancelled("deadline exceeded")
