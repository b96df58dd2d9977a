# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit


lib_logger = logging.getLogger("renewing_client")


DEFAULT_BASE_URL = "http://localhost:8080/api"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RENEWAL_PATH = "/auth/refresh"
DEFAULT_LOGIN_ROUTE = "Login"

# Grace period between a renewal settling and its slot being released
DEFAULT_RENEWAL_SETTLE_SECONDS = 0.1
# Must outlast the login navigation plus stragglers from the same failure burst
DEFAULT_REDIRECT_SUPPRESSION_SECONDS = 1.0


class SettingsValidationError(RuntimeError):
    pass


def parse_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        lib_logger.warning(
            "Ignoring invalid value for %s=%r; using default %s", name, raw, default
        )
        return default


def parse_str_env(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


@dataclass(frozen=True)
class ClientSettings:
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    renewal_path: str = DEFAULT_RENEWAL_PATH
    login_route: str = DEFAULT_LOGIN_ROUTE
    renewal_settle_seconds: float = DEFAULT_RENEWAL_SETTLE_SECONDS
    redirect_suppression_seconds: float = DEFAULT_REDIRECT_SUPPRESSION_SECONDS
    failure_log_dir: Optional[str] = None

    def __post_init__(self) -> None:
        parts = urlsplit(self.base_url)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise SettingsValidationError(
                f"Invalid API_BASE_URL {self.base_url!r}: an absolute http(s) URL is required."
            )
        if self.timeout_seconds <= 0:
            raise SettingsValidationError("API_TIMEOUT_SECONDS must be positive.")
        if self.renewal_settle_seconds < 0:
            raise SettingsValidationError("RENEWAL_SETTLE_SECONDS cannot be negative.")
        if self.redirect_suppression_seconds < 0:
            raise SettingsValidationError(
                "REDIRECT_SUPPRESSION_SECONDS cannot be negative."
            )


def load_settings() -> ClientSettings:
    """Build settings from the environment, falling back to defaults."""
    return ClientSettings(
        base_url=parse_str_env("API_BASE_URL", DEFAULT_BASE_URL),
        timeout_seconds=parse_float_env("API_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        renewal_path=parse_str_env("API_RENEWAL_PATH", DEFAULT_RENEWAL_PATH),
        login_route=parse_str_env("LOGIN_ROUTE_NAME", DEFAULT_LOGIN_ROUTE),
        renewal_settle_seconds=parse_float_env(
            "RENEWAL_SETTLE_SECONDS", DEFAULT_RENEWAL_SETTLE_SECONDS
        ),
        redirect_suppression_seconds=parse_float_env(
            "REDIRECT_SUPPRESSION_SECONDS", DEFAULT_REDIRECT_SUPPRESSION_SECONDS
        ),
        failure_log_dir=(os.getenv("FAILURE_LOG_DIR") or "").strip() or None,
    )
