# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
User-visible notifications for failed requests.

Notifications are a side effect only; the failing call still raises.
"""

from typing import Any, Optional, Protocol

from rich.console import Console
from rich.markup import escape as rich_escape


NETWORK_ERROR_MESSAGE = "Network error, please check your connection"
SESSION_EXPIRED_MESSAGE = "Session expired, please log in again"
DEFAULT_FAILURE_MESSAGE = "Request failed"

STATUS_MESSAGES = {
    403: "You do not have permission to access this resource",
    404: "The requested resource does not exist",
    500: "Server error",
}


class Notifier(Protocol):
    def error(self, message: str) -> None: ...


class ConsoleNotifier:
    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console(stderr=True)

    def error(self, message: str) -> None:
        self._console.print(f"[bold red]✗[/bold red] {rich_escape(message)}")


def status_message(status_code: int, body: Any = None) -> str:
    """Message shown for a non-success transport status."""
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"{DEFAULT_FAILURE_MESSAGE}: {status_code}"
