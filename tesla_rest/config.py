"""Client configuration loading.

Settings come from an optional YAML file; the ``TESLA_*`` environment
variables override file values. Recovery policy constants (wake interval and
attempt cap) default to the owner API behaviour of polling every 10 seconds
for at most 10 wake commands.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import TeslaConfigError
from .protocol import API_BASE_URL, AUTH_URL, CLIENT_ID, SCOPE

DEFAULT_WAKE_INTERVAL = 10.0
DEFAULT_WAKE_MAX_ATTEMPTS = 10
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_WAKE_PATH = "wake_up"

ENV_VEHICLE_ID = "TESLA_VEHICLE_ID"
ENV_REFRESH_TOKEN = "TESLA_REFRESH_TOKEN"
ENV_ACCESS_TOKEN = "TESLA_ACCESS_TOKEN"


@dataclass(frozen=True)
class TeslaClientConfig:
    """Endpoint and recovery policy settings.

    Attributes:
        api_base_url: Owner API origin.
        auth_url: Identity provider token endpoint.
        client_id: OAuth client identifier sent on refresh.
        scope: OAuth scope sent on refresh.
        wake_path: Vehicle path of the wake command.
        wake_interval: Seconds between wake polls.
        wake_max_attempts: Wake commands sent before giving up.
        request_timeout: Total timeout for a single HTTP call (seconds).
    """

    api_base_url: str = API_BASE_URL
    auth_url: str = AUTH_URL
    client_id: str = CLIENT_ID
    scope: str = SCOPE
    wake_path: str = DEFAULT_WAKE_PATH
    wake_interval: float = DEFAULT_WAKE_INTERVAL
    wake_max_attempts: int = DEFAULT_WAKE_MAX_ATTEMPTS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        if self.wake_interval < 0:
            raise TeslaConfigError(
                f"wake_interval must not be negative: {self.wake_interval}"
            )
        if self.wake_max_attempts < 1:
            raise TeslaConfigError(
                f"wake_max_attempts must be at least 1: {self.wake_max_attempts}"
            )
        if self.request_timeout <= 0:
            raise TeslaConfigError(
                f"request_timeout must be positive: {self.request_timeout}"
            )


@dataclass(frozen=True)
class TeslaSettings:
    """Everything needed to build a TeslaVehicle."""

    vehicle_id: str
    refresh_token: str = field(repr=False)
    access_token: str = field(default="", repr=False)
    client: TeslaClientConfig = field(default_factory=TeslaClientConfig)


_CLIENT_KEYS: tuple[str, ...] = (
    "api_base_url",
    "auth_url",
    "client_id",
    "scope",
    "wake_path",
    "wake_interval",
    "wake_max_attempts",
    "request_timeout",
)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise TeslaConfigError(f"File not found: {path}")
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as err:
        raise TeslaConfigError(f"Invalid YAML in {path}: {err}") from err
    if not isinstance(data, dict):
        raise TeslaConfigError(f"Expected a mapping at the top of {path}")
    return data


def _env(name: str) -> str | None:
    value = os.environ.get(name)
    return value if value not in (None, "") else None


def build_client_config(data: dict[str, Any]) -> TeslaClientConfig:
    """Build a TeslaClientConfig from a mapping, ignoring unknown keys."""
    values = {key: data[key] for key in _CLIENT_KEYS if data.get(key) is not None}
    try:
        if "wake_interval" in values:
            values["wake_interval"] = float(values["wake_interval"])
        if "request_timeout" in values:
            values["request_timeout"] = float(values["request_timeout"])
        if "wake_max_attempts" in values:
            values["wake_max_attempts"] = int(values["wake_max_attempts"])
    except (TypeError, ValueError) as err:
        raise TeslaConfigError(f"Invalid numeric setting: {err}") from err
    return TeslaClientConfig(**values)


def load_config(path: Path | str | None = None) -> TeslaSettings:
    """Load client settings.

    Args:
        path: Optional YAML file. Missing keys fall back to defaults.

    Returns:
        Resolved settings.

    Raises:
        TeslaConfigError: If the file is unreadable, a value is invalid, or
            the vehicle id or refresh token is missing.
    """
    data = _load_yaml(Path(path)) if path is not None else {}

    vehicle_id = _env(ENV_VEHICLE_ID) or data.get("vehicle_id")
    refresh_token = _env(ENV_REFRESH_TOKEN) or data.get("refresh_token")
    access_token = _env(ENV_ACCESS_TOKEN) or data.get("access_token") or ""

    if not vehicle_id:
        raise TeslaConfigError(f"vehicle_id missing (set {ENV_VEHICLE_ID})")
    if not refresh_token:
        raise TeslaConfigError(f"refresh_token missing (set {ENV_REFRESH_TOKEN})")

    return TeslaSettings(
        vehicle_id=str(vehicle_id),
        refresh_token=str(refresh_token),
        access_token=str(access_token),
        client=build_client_config(data),
    )
