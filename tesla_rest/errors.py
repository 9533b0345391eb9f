"""Client error types for Tesla owner API interactions."""

from __future__ import annotations


class TeslaClientError(Exception):
    """Base error for Tesla client failures."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthRefreshError(TeslaClientError):
    """Access token could not be refreshed or was rejected after a refresh."""


class WakeTimeoutError(TeslaClientError):
    """Vehicle did not come online within the wake attempt budget."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message, status)
        self.attempts = attempts


class OtherApiError(TeslaClientError):
    """API response with no recovery path (status is None for transport errors)."""


class VehicleUnreachableError(OtherApiError):
    """Vehicle reported asleep on a request that may not wake it."""


class TeslaConfigError(TeslaClientError):
    """Invalid or missing client configuration."""
