# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import asyncio
import inspect
import logging
from typing import Optional

from .credentials import CredentialStore
from .navigation import Navigator
from .notify import SESSION_EXPIRED_MESSAGE, Notifier
from .settings import DEFAULT_LOGIN_ROUTE, DEFAULT_REDIRECT_SUPPRESSION_SECONDS

lib_logger = logging.getLogger("renewing_client")


class RedirectDebouncer:
    """
    Sends the user to the login view at most once per failure episode.

    After the first trigger, further triggers are ignored until
    ``suppression_seconds`` after the navigation settles.
    """

    def __init__(
        self,
        store: CredentialStore,
        navigator: Navigator,
        *,
        notifier: Optional[Notifier] = None,
        login_route: str = DEFAULT_LOGIN_ROUTE,
        suppression_seconds: float = DEFAULT_REDIRECT_SUPPRESSION_SECONDS,
    ) -> None:
        self._store = store
        self._navigator = navigator
        self._notifier = notifier
        self._login_route = login_route
        self._suppression_seconds = suppression_seconds
        self._suppressed = False
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        self._navigation_task: Optional[asyncio.Future] = None

    @property
    def suppressed(self) -> bool:
        return self._suppressed

    def trigger_expired_session_redirect(self) -> None:
        if self._suppressed:
            lib_logger.debug("Login redirect already in progress; suppressed.")
            return

        self._suppressed = True
        navigation: Optional[asyncio.Future] = None
        try:
            self._store.logout()
            if self._notifier is not None:
                self._notifier.error(SESSION_EXPIRED_MESSAGE)

            location = self._navigator.current_location()
            if location.name != self._login_route:
                query = None if location.is_root else {"redirect": location.full_path}
                lib_logger.info(f"Session expired; redirecting to '{self._login_route}'.")
                outcome = self._navigator.navigate_to(self._login_route, query)
                if inspect.isawaitable(outcome):
                    navigation = asyncio.ensure_future(outcome)
        except Exception as e:
            lib_logger.error(f"Redirect to login failed: {type(e).__name__}: {e}")
        finally:
            # The flag must always get a reset scheduled, whatever failed above
            if navigation is not None:
                self._navigation_task = navigation
                navigation.add_done_callback(self._on_navigation_settled)
            else:
                self._schedule_reset()

    def _on_navigation_settled(self, task: asyncio.Future) -> None:
        self._navigation_task = None
        if not task.cancelled() and task.exception() is not None:
            lib_logger.error(f"Navigation to login failed: {task.exception()}")
        self._schedule_reset()

    def _schedule_reset(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to time the window with
            self._reset()
            return
        if self._reset_handle is not None:
            self._reset_handle.cancel()
        self._reset_handle = loop.call_later(self._suppression_seconds, self._reset)

    def _reset(self) -> None:
        self._reset_handle = None
        self._suppressed = False

    def close(self) -> None:
        """Cancel the pending reset and clear the flag."""
        if self._reset_handle is not None:
            self._reset_handle.cancel()
        if self._navigation_task is not None and not self._navigation_task.done():
            self._navigation_task.cancel()
        self._reset()
