# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Tuple, Union
from urllib.parse import urlencode


ROOT_PATH = "/"


@dataclass(frozen=True)
class RouteLocation:
    name: Optional[str]
    full_path: str = ROOT_PATH

    @property
    def is_root(self) -> bool:
        return self.full_path in ("", ROOT_PATH)


class Navigator(Protocol):
    """
    Navigation service used to send the user to the login view.

    ``navigate_to`` may return an awaitable; callers schedule it without
    waiting on it.
    """

    def navigate_to(
        self, route_name: str, query: Optional[Dict[str, str]] = None
    ) -> Union[None, Awaitable[Any]]: ...

    def current_location(self) -> RouteLocation: ...


@dataclass
class HistoryNavigator:
    """In-memory navigator that records every push."""

    location: RouteLocation = field(default_factory=lambda: RouteLocation(None))
    history: List[Tuple[str, Optional[Dict[str, str]]]] = field(default_factory=list)

    def navigate_to(
        self, route_name: str, query: Optional[Dict[str, str]] = None
    ) -> None:
        self.history.append((route_name, dict(query) if query else None))
        self.location = RouteLocation(route_name, _route_path(route_name, query))

    def current_location(self) -> RouteLocation:
        return self.location


def _route_path(route_name: str, query: Optional[Dict[str, str]]) -> str:
    path = f"/{route_name.lower()}"
    if query:
        path += "?" + urlencode(query)
    return path
