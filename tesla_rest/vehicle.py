"""High-level vehicle API.

This module provides the public entry point for talking to one vehicle
through the Tesla owner API. Every operation is a logical request that
transparently refreshes an expired access token and wakes a sleeping
vehicle before retrying.

Usage:
    async with TeslaVehicle(vehicle_id="1234", refresh_token="...") as car:
        charge_state = await car.get_charge_state()
        await car.set_charging_amps(16)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any

import aiohttp

from .auth import TeslaCredentialManager
from .config import TeslaClientConfig, TeslaSettings
from .executor import TeslaRequestExecutor
from .http import TeslaHttpClient
from .protocol import RequestDescriptor, unwrap_response
from .trace import RequestTrace

_LOGGER = logging.getLogger(__name__)

CHARGE_STATE_PATH = "data_request/charge_state"
VEHICLE_DATA_PATH = "vehicle_data"
CHARGE_START_PATH = "command/charge_start"
CHARGE_STOP_PATH = "command/charge_stop"
SET_CHARGING_AMPS_PATH = "command/set_charging_amps"


class TeslaVehicle:
    """Telemetry reads and commands for a single vehicle."""

    def __init__(
        self,
        vehicle_id: str,
        refresh_token: str,
        *,
        session: aiohttp.ClientSession | None = None,
        config: TeslaClientConfig | None = None,
        access_token: str = "",
    ) -> None:
        """Initialize vehicle client.

        Args:
            vehicle_id: Owner API vehicle id.
            refresh_token: Long-lived refresh token.
            session: Shared aiohttp session. When omitted, the client creates
                one on first use and closes it in close().
            config: Endpoint and recovery policy settings.
            access_token: Initial access token, if one is already known.
        """
        self.vehicle_id = vehicle_id
        self._refresh_token = refresh_token
        self._initial_access_token = access_token
        self._config = config or TeslaClientConfig()
        self._session = session
        self._owns_session = session is None
        self._credentials: TeslaCredentialManager | None = None
        self._executor: TeslaRequestExecutor | None = None
        self._request_complete_callback: Callable[[RequestTrace], None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: TeslaSettings,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> TeslaVehicle:
        """Create a client from loaded settings."""
        return cls(
            settings.vehicle_id,
            settings.refresh_token,
            session=session,
            config=settings.client,
            access_token=settings.access_token,
        )

    async def __aenter__(self) -> TeslaVehicle:
        self._ensure_executor()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            if self._credentials is not None:
                self._initial_access_token = self._credentials.access_token
            self._credentials = None
            self._executor = None

    @property
    def access_token(self) -> str:
        """Current access token (empty until the first refresh)."""
        if self._credentials is None:
            return self._initial_access_token
        return self._credentials.access_token

    def on_request_complete(self, callback: Callable[[RequestTrace], None]) -> None:
        """Register callback receiving the trace of every finished logical request."""
        self._request_complete_callback = callback
        if self._executor is not None:
            self._executor.on_request_complete(callback)

    # -------------------------------------------------------------------------
    # Public API: Telemetry
    # -------------------------------------------------------------------------

    async def get_charge_state(self) -> Any:
        """Return the charge state."""
        return await self._get(CHARGE_STATE_PATH)

    async def get_vehicle_data(self) -> Any:
        """Return all vehicle data."""
        return await self._get(VEHICLE_DATA_PATH)

    # -------------------------------------------------------------------------
    # Public API: Commands
    # -------------------------------------------------------------------------

    async def start_charging(self) -> Any:
        """Start charging."""
        return await self._command(CHARGE_START_PATH)

    async def stop_charging(self) -> Any:
        """Stop charging."""
        return await self._command(CHARGE_STOP_PATH)

    async def set_charging_amps(self, amps: int) -> Any:
        """Set the charging current in amps."""
        if amps < 0:
            raise ValueError(f"charging amps must not be negative: {amps}")
        return await self._command(SET_CHARGING_AMPS_PATH, {"charging_amps": amps})

    async def wake_up(self) -> Any:
        """Send a single wake command without waiting for the vehicle.

        Returns the vehicle summary, whose ``state`` tells whether the
        vehicle is already online.
        """
        executor = self._ensure_executor()
        body = await executor.request(
            RequestDescriptor.post(self._config.wake_path), wake_recovery=False
        )
        return unwrap_response(body)

    async def ensure_online(self) -> Any:
        """Run a full wake cycle and return the vehicle summary once online."""
        executor = self._ensure_executor()
        return await executor.wake_controller.wake_and_wait()

    async def refresh_access_token(self) -> str:
        """Exchange the refresh token for a new access token."""
        return await self._ensure_executor().credentials.refresh()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    async def _get(self, path: str) -> Any:
        body = await self._ensure_executor().request(RequestDescriptor.get(path))
        return unwrap_response(body)

    async def _command(self, path: str, body: dict[str, Any] | None = None) -> Any:
        result = await self._ensure_executor().request(
            RequestDescriptor.post(path, body)
        )
        return unwrap_response(result)

    def _ensure_executor(self) -> TeslaRequestExecutor:
        if self._executor is not None:
            return self._executor

        if self._session is None:
            _LOGGER.debug("[%s] Creating HTTP session", self.vehicle_id)
            self._session = aiohttp.ClientSession()

        self._credentials = TeslaCredentialManager(
            self._session,
            self._refresh_token,
            access_token=self._initial_access_token,
            config=self._config,
        )
        transport = TeslaHttpClient(self._session, self.vehicle_id, config=self._config)
        self._executor = TeslaRequestExecutor(
            transport, self._credentials, config=self._config
        )
        if self._request_complete_callback is not None:
            self._executor.on_request_complete(self._request_complete_callback)
        return self._executor
