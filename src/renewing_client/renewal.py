# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Single-flight credential renewal.

However many requests hit an expired access token at once, only one call is
made to the renewal endpoint and every caller receives the same outcome.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .credentials import CredentialPair, CredentialStore
from .settings import DEFAULT_RENEWAL_SETTLE_SECONDS

lib_logger = logging.getLogger("renewing_client")

RenewCall = Callable[[str], Awaitable[CredentialPair]]


class RenewalCoordinator:
    """
    Owns the in-flight renewal slot.

    The slot holds one shared task. It is claimed synchronously, before the
    first suspension point, so callers from the same loop tick always join
    the same task. Once the task settles the slot is kept for
    ``settle_seconds`` so stragglers observe the settled result instead of
    starting a fresh renewal, then released.

    The coordinator only ever writes the new pair to the store. Clearing
    credentials and navigating on failure belong to the caller.
    """

    def __init__(
        self,
        store: CredentialStore,
        renew_call: RenewCall,
        *,
        settle_seconds: float = DEFAULT_RENEWAL_SETTLE_SECONDS,
    ) -> None:
        self._store = store
        self._renew_call = renew_call
        self._settle_seconds = settle_seconds
        self._inflight: Optional[asyncio.Task[Optional[str]]] = None
        self._release_handle: Optional[asyncio.TimerHandle] = None
        self.renewal_count = 0

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    async def renew(self) -> Optional[str]:
        """
        Renew the access credential, joining any renewal already in flight.

        Returns:
            The new access token, or None when there is no refresh token or
            the renewal failed for any reason.
        """
        refresh_token = self._store.get_refresh_token()
        if not refresh_token:
            lib_logger.info("No refresh token available; skipping renewal.")
            return None

        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._run(refresh_token))
            task.add_done_callback(self._schedule_release)
            self._inflight = task
            self.renewal_count += 1
        else:
            lib_logger.debug("Joining in-flight credential renewal.")

        # A cancelled waiter must not cancel the renewal shared with others
        return await asyncio.shield(task)

    async def _run(self, refresh_token: str) -> Optional[str]:
        lib_logger.info("Access credential rejected; renewing.")
        try:
            pair = await self._renew_call(refresh_token)
            self._store.set_tokens(pair.access, pair.refresh)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            lib_logger.warning(f"Credential renewal failed: {type(e).__name__}: {e}")
            return None

        lib_logger.info("Credential renewal succeeded.")
        return pair.access

    def _schedule_release(self, task: "asyncio.Task[Optional[str]]") -> None:
        loop = asyncio.get_running_loop()
        self._release_handle = loop.call_later(
            self._settle_seconds, self._release, task
        )

    def _release(self, task: "asyncio.Task[Optional[str]]") -> None:
        self._release_handle = None
        if self._inflight is task:
            self._inflight = None

    def close(self) -> None:
        """Drop the slot immediately and cancel any pending release."""
        if self._release_handle is not None:
            self._release_handle.cancel()
            self._release_handle = None
        if self._inflight is not None and self._inflight.done():
            self._inflight = None
