# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Authenticated request dispatch with transparent credential renewal.

Responses are classified in a single step. An expired credential may be
reported either as HTTP 401 or as ``{"code": 401}`` inside a 2xx envelope;
both take the same renewal path.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from .credentials import CredentialPair, CredentialStore
from .errors import (
    ApplicationError,
    AuthExhaustedError,
    AuthExpiredError,
    HttpStatusError,
    RequestError,
    TransportError,
)
from .failure_logger import log_failure, setup_failure_logger
from .navigation import Navigator
from .notify import (
    DEFAULT_FAILURE_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    ConsoleNotifier,
    Notifier,
    status_message,
)
from .redirect import RedirectDebouncer
from .renewal import RenewalCoordinator
from .request import PendingRequest
from .settings import ClientSettings, load_settings

lib_logger = logging.getLogger("renewing_client")

SUCCESS_CODE = 200
UNAUTHORIZED_CODE = 401

DEFAULT_HEADERS = {"Content-Type": "application/json"}


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _has_envelope(body: Any) -> bool:
    return isinstance(body, dict) and "code" in body


def _is_auth_failure(response: httpx.Response, body: Any) -> bool:
    if response.status_code == UNAUTHORIZED_CODE:
        return True
    return _has_envelope(body) and body["code"] == UNAUTHORIZED_CODE


class RequestDispatcher:
    """
    Drop-in async HTTP client that renews expired credentials.

    Args:
        store: Credential store the bearer token is read from.
        navigator: Used to send the user to the login view once renewal fails.
        settings: Client configuration; loaded from the environment if omitted.
        notifier: Receives user-visible error messages.
        shared_client: Externally owned ``httpx.AsyncClient``. It is used as
            is and never closed here.
        transport: Optional transport for the owned client.
    """

    def __init__(
        self,
        store: CredentialStore,
        navigator: Navigator,
        *,
        settings: Optional[ClientSettings] = None,
        notifier: Optional[Notifier] = None,
        shared_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.store = store
        self.notifier = notifier or ConsoleNotifier()
        self._shared_client = shared_client
        self._owns_client = shared_client is None
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = shared_client

        self.coordinator = RenewalCoordinator(
            store,
            self._request_renewal,
            settle_seconds=self.settings.renewal_settle_seconds,
        )
        self.debouncer = RedirectDebouncer(
            store,
            navigator,
            notifier=self.notifier,
            login_route=self.settings.login_route,
            suppression_seconds=self.settings.redirect_suppression_seconds,
        )
        self._failure_logger = (
            setup_failure_logger(self.settings.failure_log_dir)
            if self.settings.failure_log_dir
            else None
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._shared_client is not None:
            return self._shared_client

        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=httpx.Timeout(timeout=self.settings.timeout_seconds),
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
                transport=self._transport,
            )
        return self.client

    async def close(self) -> None:
        self.coordinator.close()
        self.debouncer.close()
        if not self._owns_client:
            return
        if self.client and not self.client.is_closed:
            try:
                await self.client.aclose()
            except Exception as exc:
                lib_logger.warning(f"Error closing HTTP client: {exc}")

    async def __aenter__(self) -> "RequestDispatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # PUBLIC REQUEST SURFACE
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        pending = PendingRequest.build(
            method, path, body, params=params, headers=headers
        )
        try:
            return await self._dispatch(pending)
        except RequestError as e:
            log_failure(self._failure_logger, pending, e)
            raise

    async def get(self, path: str, *, params=None, headers=None) -> Any:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(self, path: str, body: Any = None, *, params=None, headers=None) -> Any:
        return await self.request("POST", path, body, params=params, headers=headers)

    async def put(self, path: str, body: Any = None, *, params=None, headers=None) -> Any:
        return await self.request("PUT", path, body, params=params, headers=headers)

    async def patch(self, path: str, body: Any = None, *, params=None, headers=None) -> Any:
        return await self.request("PATCH", path, body, params=params, headers=headers)

    async def delete(self, path: str, body: Any = None, *, params=None, headers=None) -> Any:
        return await self.request("DELETE", path, body, params=params, headers=headers)

    # =========================================================================
    # DISPATCH PIPELINE
    # =========================================================================

    async def _send(self, pending: PendingRequest) -> httpx.Response:
        client = self._get_client()
        headers = dict(pending.headers)
        token = self.store.get_access_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs: dict = {}
        if pending.body is not None:
            kwargs["json"] = pending.body
        if pending.query:
            kwargs["params"] = list(pending.query)

        try:
            return await client.request(
                pending.method, pending.path, headers=headers, **kwargs
            )
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"{pending.method} {pending.path} timed out"
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"{pending.method} {pending.path} failed: {exc}"
            ) from exc

    async def _dispatch(self, pending: PendingRequest) -> Any:
        try:
            response = await self._send(pending)
        except TransportError:
            self.notifier.error(NETWORK_ERROR_MESSAGE)
            raise

        body = _decode_body(response)
        if _is_auth_failure(response, body):
            return await self._handle_auth_failure(pending)
        return self._unwrap(response, body)

    def _unwrap(self, response: httpx.Response, body: Any) -> Any:
        if response.is_success:
            if not _has_envelope(body):
                return body
            if body["code"] == SUCCESS_CODE:
                return body.get("data")
            message = body.get("message") or DEFAULT_FAILURE_MESSAGE
            self.notifier.error(message)
            raise ApplicationError(body["code"], message)

        message = status_message(response.status_code, body)
        self.notifier.error(message)
        raise HttpStatusError(response.status_code, message, body)

    async def _handle_auth_failure(self, pending: PendingRequest) -> Any:
        if pending.targets(self.settings.renewal_path):
            self.debouncer.trigger_expired_session_redirect()
            raise AuthExpiredError("Refresh credential was rejected")

        if pending.retried:
            lib_logger.warning(
                f"{pending.method} {pending.path} rejected again after renewal."
            )
            self.debouncer.trigger_expired_session_redirect()
            raise AuthExhaustedError("Credential rejected after renewal")

        new_token = await self.coordinator.renew()
        if new_token is None:
            self.debouncer.trigger_expired_session_redirect()
            raise AuthExhaustedError("Credential renewal failed")

        return await self._dispatch(pending.mark_retried())

    async def _request_renewal(self, refresh_token: str) -> CredentialPair:
        """
        Exchange the refresh token through the regular pipeline.

        A 401 here takes the renewal-call branch of ``_handle_auth_failure``,
        so the redirect fires from inside the coordinator's task; the
        coordinator itself still never clears credentials or navigates.
        """
        data = await self.post(
            self.settings.renewal_path, {"refresh_token": refresh_token}
        )
        if not isinstance(data, dict) or not data.get("token"):
            raise ValueError("Renewal response is missing 'token'")
        return CredentialPair(
            access=data["token"],
            refresh=data.get("refresh_token") or refresh_token,
        )
