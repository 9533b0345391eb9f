"""Asyncio client for the Tesla owner API with token refresh and vehicle wake recovery."""

__version__ = "0.1.0"

from .auth import TeslaCredentialManager
from .config import TeslaClientConfig, TeslaSettings, load_config
from .errors import (
    AuthRefreshError,
    OtherApiError,
    TeslaClientError,
    TeslaConfigError,
    VehicleUnreachableError,
    WakeTimeoutError,
)
from .executor import RequestState, TeslaRequestExecutor
from .http import TeslaHttpClient
from .protocol import RequestDescriptor, ResponseClassification, ResponseKind
from .trace import AttemptRecord, RequestOutcome, RequestTrace
from .vehicle import TeslaVehicle
from .wake import TeslaWakeController

__all__ = [
    "AttemptRecord",
    "AuthRefreshError",
    "OtherApiError",
    "RequestDescriptor",
    "RequestOutcome",
    "RequestState",
    "RequestTrace",
    "ResponseClassification",
    "ResponseKind",
    "TeslaClientConfig",
    "TeslaClientError",
    "TeslaConfigError",
    "TeslaCredentialManager",
    "TeslaHttpClient",
    "TeslaRequestExecutor",
    "TeslaSettings",
    "TeslaVehicle",
    "TeslaWakeController",
    "VehicleUnreachableError",
    "WakeTimeoutError",
    "__version__",
    "load_config",
]
