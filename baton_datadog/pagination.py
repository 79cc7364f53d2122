"""Resumable pagination state for nested, page-number based enumeration.

A token is the JSON encoding of a stack of ``PageState`` frames. The top
frame is the enumeration currently in progress; each frame's ``token`` is
the decimal page number to request next. Callers treat the string as
opaque and hand it back on the following call.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from baton_datadog.errors import InvalidToken


@dataclass
class PageState:
    resource_type_id: str = ""
    resource_id: str = ""
    token: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.resource_type_id,
            "id": self.resource_id,
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PageState":
        if not isinstance(data, dict):
            raise InvalidToken("page state must be an object")
        values = {}
        for key in ("type", "id", "token"):
            value = data.get(key, "")
            if not isinstance(value, str):
                raise InvalidToken(f"page state field {key!r} must be a string")
            values[key] = value
        _parse_page(values["token"])
        return cls(
            resource_type_id=values["type"],
            resource_id=values["id"],
            token=values["token"],
        )


_MAX_PAGE_DIGITS = 18


def _parse_page(token: str) -> int:
    if token == "":
        return 0
    if not token.isascii() or not token.isdigit():
        raise InvalidToken(f"page token must be a non-negative integer, got {token!r}")
    if len(token) > _MAX_PAGE_DIGITS:
        raise InvalidToken(f"page token exceeds {_MAX_PAGE_DIGITS} digits")
    return int(token)


class Bag:
    """Stack of ``PageState`` frames; ``current()`` is the top."""

    def __init__(self) -> None:
        self._states: list[PageState] = []
        self._current: Optional[PageState] = None

    def current(self) -> Optional[PageState]:
        return self._current

    def depth(self) -> int:
        return len(self._states) + (1 if self._current else 0)

    def push(self, state: PageState) -> None:
        if self._current is not None:
            self._states.append(self._current)
        self._current = state

    def pop(self) -> Optional[PageState]:
        popped = self._current
        self._current = self._states.pop() if self._states else None
        return popped

    def page_token(self) -> str:
        if self._current is None or self._current.token == "":
            return "0"
        return self._current.token

    def next_token(self, next_page: str) -> str:
        """Record ``next_page`` on the top frame and marshal the bag.

        An empty ``next_page`` finishes the top frame instead, resuming the
        enclosing one.
        """
        if self._current is None:
            raise InvalidToken("no active page state")
        if next_page == "":
            self.pop()
        else:
            _parse_page(next_page)
            self._current.token = next_page
        return self.marshal()

    def marshal(self) -> str:
        if self._current is None:
            return ""
        return json.dumps(
            {
                "states": [s.to_dict() for s in self._states],
                "current_state": self._current.to_dict(),
            },
            separators=(",", ":"),
            sort_keys=True,
        )

    @classmethod
    def unmarshal(cls, token: str) -> "Bag":
        bag = cls()
        if not token:
            return bag
        try:
            data = json.loads(token)
        except (TypeError, ValueError, RecursionError) as exc:
            raise InvalidToken(f"malformed pagination token: {exc}") from exc
        if not isinstance(data, dict):
            raise InvalidToken("pagination token must encode an object")

        states = data.get("states")
        if states is None:
            states = []
        if not isinstance(states, list):
            raise InvalidToken("pagination token 'states' must be a list")
        bag._states = [PageState.from_dict(s) for s in states]

        current = data.get("current_state")
        if current is not None:
            bag._current = PageState.from_dict(current)
        elif bag._states:
            bag._current = bag._states.pop()
        return bag

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bag):
            return NotImplemented
        return self._states == other._states and self._current == other._current

    def __repr__(self) -> str:
        return f"Bag(states={self._states!r}, current={self._current!r})"


def parse_page_token(token: str, resource_type_id: str, resource_id: str = "") -> tuple[Bag, int]:
    """Decode ``token`` and return the bag plus the page number to fetch.

    An empty bag is seeded with a root frame for the given resource, which
    is how a fresh enumeration starts.
    """
    bag = Bag.unmarshal(token)
    if bag.current() is None:
        bag.push(PageState(resource_type_id=resource_type_id, resource_id=resource_id))
    return bag, _parse_page(bag.page_token())


def next_page_token(bag: Bag, page: int) -> str:
    if page < 0:
        raise InvalidToken(f"page must be non-negative, got {page}")
    return bag.next_token(str(page))
