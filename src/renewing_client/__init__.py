# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from .credentials import CredentialPair, CredentialStore, InMemoryCredentialStore
from .dispatcher import RequestDispatcher
from .errors import (
    ApplicationError,
    AuthExhaustedError,
    AuthExpiredError,
    HttpStatusError,
    RequestError,
    TransportError,
)
from .navigation import HistoryNavigator, Navigator, RouteLocation
from .notify import ConsoleNotifier, Notifier
from .redirect import RedirectDebouncer
from .renewal import RenewalCoordinator
from .request import PendingRequest, serialize_query
from .settings import ClientSettings, SettingsValidationError, load_settings

__all__ = [
    "RequestDispatcher",
    "RenewalCoordinator",
    "RedirectDebouncer",
    "PendingRequest",
    "serialize_query",
    # Collaborators
    "CredentialPair",
    "CredentialStore",
    "InMemoryCredentialStore",
    "Navigator",
    "HistoryNavigator",
    "RouteLocation",
    "Notifier",
    "ConsoleNotifier",
    # Configuration
    "ClientSettings",
    "SettingsValidationError",
    "load_settings",
    # Errors
    "RequestError",
    "TransportError",
    "AuthExpiredError",
    "AuthExhaustedError",
    "ApplicationError",
    "HttpStatusError",
]
