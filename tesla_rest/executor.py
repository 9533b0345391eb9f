"""Resilient request execution for the Tesla owner API.

A logical request is executed as a small state machine::

    INITIAL -> ATTEMPTED -> SUCCEEDED
                         -> RECOVERING_AUTH -> RETRIED -> ...
                         -> RECOVERING_WAKE -> RETRIED -> ...
                         -> FAILED

An expired access token (401) is recovered by one credential refresh, an
asleep vehicle (408) by one wake cycle. Each recovery is applied at most once
per logical request, so the two compose in either order and a request never
issues more than three data calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from .auth import TeslaCredentialManager
from .config import TeslaClientConfig
from .errors import (
    AuthRefreshError,
    OtherApiError,
    TeslaClientError,
    VehicleUnreachableError,
    WakeTimeoutError,
)
from .http import TeslaHttpClient
from .protocol import (
    STATUS_UNAUTHORIZED,
    STATUS_VEHICLE_UNAVAILABLE,
    RequestDescriptor,
    ResponseClassification,
    ResponseKind,
)
from .trace import RequestOutcome, RequestTrace
from .wake import TeslaWakeController

_LOGGER = logging.getLogger(__name__)


class RequestState(Enum):
    """States of one logical request."""

    INITIAL = "initial"
    ATTEMPTED = "attempted"
    RECOVERING_AUTH = "recovering_auth"
    RECOVERING_WAKE = "recovering_wake"
    RETRIED = "retried"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TeslaRequestExecutor:
    """Runs logical requests with bounded auth and wake recovery."""

    def __init__(
        self,
        transport: TeslaHttpClient,
        credentials: TeslaCredentialManager,
        *,
        config: TeslaClientConfig | None = None,
        wake_controller: TeslaWakeController | None = None,
    ) -> None:
        self._transport = transport
        self._credentials = credentials
        self._config = config or TeslaClientConfig()
        self._wake_controller = wake_controller or TeslaWakeController(
            self, config=self._config
        )
        self._request_complete_callback: Callable[[RequestTrace], None] | None = None

    @property
    def vehicle_id(self) -> str:
        return self._transport.vehicle_id

    @property
    def credentials(self) -> TeslaCredentialManager:
        return self._credentials

    @property
    def wake_controller(self) -> TeslaWakeController:
        return self._wake_controller

    def on_request_complete(self, callback: Callable[[RequestTrace], None]) -> None:
        """Register callback receiving the trace of every finished logical request."""
        self._request_complete_callback = callback

    async def request(
        self, descriptor: RequestDescriptor, *, wake_recovery: bool = True
    ) -> dict[str, Any]:
        """Execute one logical request.

        Args:
            descriptor: Request to execute.
            wake_recovery: Whether a 408 may trigger a wake cycle. Wake
                commands themselves run with this disabled.

        Returns:
            The decoded JSON body of the successful response.

        Raises:
            AuthRefreshError: Token refresh failed, or the token was rejected
                again after a refresh.
            WakeTimeoutError: The vehicle did not come online, or was
                unreachable again after a wake cycle.
            VehicleUnreachableError: 408 with wake recovery disabled.
            OtherApiError: Any other failure.
        """
        trace = RequestTrace(method=descriptor.method, path=descriptor.path)
        try:
            payload = await self._run(descriptor, trace, wake_recovery=wake_recovery)
        except TeslaClientError as err:
            trace.finish(RequestOutcome.FAILED, err)
            # A 408 on a wake poll is an expected retry, not a failure
            expected = not wake_recovery and isinstance(err, VehicleUnreachableError)
            _LOGGER.log(
                logging.DEBUG if expected else logging.WARNING,
                "[%s] %s %s failed (request %s): %s",
                self.vehicle_id,
                descriptor.method,
                descriptor.path,
                trace.request_id,
                err,
            )
            self._notify(trace)
            raise
        trace.finish(RequestOutcome.SUCCEEDED)
        self._notify(trace)
        return payload

    async def _run(
        self,
        descriptor: RequestDescriptor,
        trace: RequestTrace,
        *,
        wake_recovery: bool,
    ) -> dict[str, Any]:
        state = RequestState.INITIAL
        auth_recovered = False
        wake_recovered = False

        while True:
            token = self._credentials.access_token
            result = await self._transport.execute(descriptor, token)
            trace.record_attempt(result.kind, result.status)
            state = self._advance(
                trace,
                state,
                RequestState.ATTEMPTED
                if state is RequestState.INITIAL
                else RequestState.RETRIED,
            )

            if result.kind is ResponseKind.SUCCESS:
                self._advance(trace, state, RequestState.SUCCEEDED)
                return result.payload or {}

            if result.kind is ResponseKind.AUTH_EXPIRED:
                if auth_recovered:
                    self._advance(trace, state, RequestState.FAILED)
                    raise AuthRefreshError(
                        "Access token rejected after refresh", STATUS_UNAUTHORIZED
                    )
                auth_recovered = True
                state = self._advance(trace, state, RequestState.RECOVERING_AUTH)
                await self._credentials.refresh(stale_token=token)
                trace.refreshes += 1
                continue

            if result.kind is ResponseKind.DEVICE_UNREACHABLE:
                if not wake_recovery:
                    self._advance(trace, state, RequestState.FAILED)
                    raise VehicleUnreachableError(
                        "Vehicle is asleep or offline", STATUS_VEHICLE_UNAVAILABLE
                    )
                if wake_recovered:
                    self._advance(trace, state, RequestState.FAILED)
                    raise WakeTimeoutError(
                        "Vehicle unreachable again after wake cycle",
                        status=STATUS_VEHICLE_UNAVAILABLE,
                    )
                wake_recovered = True
                state = self._advance(trace, state, RequestState.RECOVERING_WAKE)
                await self._wake_controller.wake_and_wait()
                trace.wake_cycles += 1
                continue

            self._advance(trace, state, RequestState.FAILED)
            raise self._other_error(result) from result.error

    @staticmethod
    def _other_error(result: ResponseClassification) -> OtherApiError:
        if result.status is None:
            message = f"Request failed: {result.error or 'transport error'}"
        else:
            message = f"Request failed with status {result.status}"
        return OtherApiError(message, result.status)

    def _advance(
        self, trace: RequestTrace, current: RequestState, new: RequestState
    ) -> RequestState:
        if current is not new:
            _LOGGER.debug(
                "[%s] Request %s: %s → %s",
                self.vehicle_id,
                trace.request_id,
                current.value,
                new.value,
            )
        return new

    def _notify(self, trace: RequestTrace) -> None:
        if self._request_complete_callback:
            self._request_complete_callback(trace)
