# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging
from dataclasses import dataclass
from typing import Optional, Protocol


lib_logger = logging.getLogger("renewing_client")


@dataclass(frozen=True)
class CredentialPair:
    access: str
    refresh: Optional[str] = None

    def __repr__(self) -> str:
        # Never leak tokens into logs or tracebacks
        return f"CredentialPair(access=<{len(self.access)} chars>, refresh={'set' if self.refresh else None})"


class CredentialStore(Protocol):
    """
    Holder of the current credential pair.

    The dispatcher only reads from it; the renewal coordinator replaces the
    pair after a successful renewal and the redirect debouncer clears it.
    """

    def get_access_token(self) -> Optional[str]: ...

    def get_refresh_token(self) -> Optional[str]: ...

    def set_tokens(self, access: str, refresh: Optional[str]) -> None: ...

    def logout(self) -> None: ...


class InMemoryCredentialStore:
    def __init__(
        self, access: Optional[str] = None, refresh: Optional[str] = None
    ) -> None:
        self._pair: Optional[CredentialPair] = (
            CredentialPair(access, refresh) if access else None
        )
        # A refresh token can outlive a cleared access token
        self._refresh = refresh

    def get_access_token(self) -> Optional[str]:
        return self._pair.access if self._pair else None

    def get_refresh_token(self) -> Optional[str]:
        return self._refresh

    def set_tokens(self, access: str, refresh: Optional[str]) -> None:
        self._pair = CredentialPair(access, refresh)
        self._refresh = refresh

    def logout(self) -> None:
        if self._pair or self._refresh:
            lib_logger.info("Clearing stored credentials.")
        self._pair = None
        self._refresh = None
