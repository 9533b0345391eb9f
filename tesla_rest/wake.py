"""Wake cycle for a sleeping vehicle.

A vehicle that has not been used for a while falls asleep and the owner API
answers 408 for it. The wake controller sends wake commands until the
vehicle reports itself online, waiting a fixed interval between polls so a
vehicle that is still booting is not hammered.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .config import TeslaClientConfig
from .errors import VehicleUnreachableError, WakeTimeoutError
from .protocol import ONLINE_STATE, RequestDescriptor, unwrap_response

if TYPE_CHECKING:
    from .executor import TeslaRequestExecutor

_LOGGER = logging.getLogger(__name__)


class TeslaWakeController:
    """Sends wake commands and polls until the vehicle is online."""

    def __init__(
        self,
        executor: TeslaRequestExecutor,
        *,
        config: TeslaClientConfig | None = None,
    ) -> None:
        self._executor = executor
        self._config = config or TeslaClientConfig()

    async def wake_and_wait(self) -> dict[str, Any]:
        """Wake the vehicle and wait until it is online.

        Wake commands go through the executor with wake recovery disabled,
        so an expired token is still refreshed but a 408 just counts as a
        failed poll.

        Returns:
            The ``response`` payload of the wake command that saw the
            vehicle online.

        Raises:
            WakeTimeoutError: The vehicle was not online after
                ``wake_max_attempts`` wake commands.
        """
        vehicle_id = self._executor.vehicle_id
        max_attempts = self._config.wake_max_attempts
        descriptor = RequestDescriptor.post(self._config.wake_path)
        last_status: int | None = None

        for attempt in range(1, max_attempts + 1):
            _LOGGER.debug("[%s] WakeUp (%d/%d)", vehicle_id, attempt, max_attempts)
            state: Any = None
            try:
                body = await self._executor.request(descriptor, wake_recovery=False)
            except VehicleUnreachableError as err:
                state = "unavailable"
                last_status = err.status
            else:
                last_status = None
                response = unwrap_response(body)
                if isinstance(response, dict):
                    state = response.get("state")
                    if state == ONLINE_STATE:
                        _LOGGER.info(
                            "[%s] Vehicle online after %d wake attempt(s)",
                            vehicle_id,
                            attempt,
                        )
                        return response

            _LOGGER.info(
                "[%s] Vehicle not online yet (state: %s, attempt %d/%d)",
                vehicle_id,
                state,
                attempt,
                max_attempts,
            )
            if attempt < max_attempts:
                await asyncio.sleep(self._config.wake_interval)

        _LOGGER.warning(
            "[%s] Vehicle did not wake after %d attempts", vehicle_id, max_attempts
        )
        raise WakeTimeoutError(
            f"Vehicle did not come online after {max_attempts} wake attempts",
            attempts=max_attempts,
            status=last_status,
        )
