"""Protocol helpers for Tesla owner API requests and responses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

API_BASE_URL: Final = "https://owner-api.teslamotors.com"
AUTH_URL: Final = "https://auth.tesla.com/oauth2/v3/token"
CLIENT_ID: Final = "ownerapi"
SCOPE: Final = "openid email offline_access"

STATUS_OK: Final = 200
STATUS_UNAUTHORIZED: Final = 401
# Owner API answers 408 while the vehicle is asleep or offline
STATUS_VEHICLE_UNAVAILABLE: Final = 408

ONLINE_STATE: Final = "online"

# Characters of a token that may appear in logs
TOKEN_LOG_PREFIX: Final = 10


class ResponseKind(Enum):
    """Outcome classes for a single API call."""

    SUCCESS = "success"
    AUTH_EXPIRED = "auth_expired"
    DEVICE_UNREACHABLE = "device_unreachable"
    OTHER_ERROR = "other_error"


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical vehicle request.

    Attributes:
        path: Path below /api/1/vehicles/{vehicle_id}/.
        method: "GET" for data reads, "POST" for commands.
        body: Optional JSON body for commands.
    """

    path: str
    method: str = "GET"
    body: dict[str, Any] | None = None

    @classmethod
    def get(cls, path: str) -> RequestDescriptor:
        return cls(path=path, method="GET")

    @classmethod
    def post(cls, path: str, body: dict[str, Any] | None = None) -> RequestDescriptor:
        return cls(path=path, method="POST", body=body)


@dataclass(frozen=True)
class ResponseClassification:
    """Classified result of exactly one HTTP call."""

    kind: ResponseKind
    status: int | None = None
    payload: dict[str, Any] | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, payload: dict[str, Any]) -> ResponseClassification:
        return cls(kind=ResponseKind.SUCCESS, status=STATUS_OK, payload=payload)

    @classmethod
    def auth_expired(cls) -> ResponseClassification:
        return cls(kind=ResponseKind.AUTH_EXPIRED, status=STATUS_UNAUTHORIZED)

    @classmethod
    def device_unreachable(cls) -> ResponseClassification:
        return cls(
            kind=ResponseKind.DEVICE_UNREACHABLE, status=STATUS_VEHICLE_UNAVAILABLE
        )

    @classmethod
    def other_error(
        cls, status: int | None, error: BaseException | None = None
    ) -> ResponseClassification:
        return cls(kind=ResponseKind.OTHER_ERROR, status=status, error=error)


def classify_status(status: int) -> ResponseKind:
    """Map an HTTP status code to a response kind."""
    if status == STATUS_OK:
        return ResponseKind.SUCCESS
    if status == STATUS_UNAUTHORIZED:
        return ResponseKind.AUTH_EXPIRED
    if status == STATUS_VEHICLE_UNAVAILABLE:
        return ResponseKind.DEVICE_UNREACHABLE
    return ResponseKind.OTHER_ERROR


def build_vehicle_url(base_url: str, vehicle_id: str, path: str) -> str:
    """Build the owner API URL for a vehicle endpoint."""
    return f"{base_url.rstrip('/')}/api/1/vehicles/{vehicle_id}/{path.lstrip('/')}"


def build_refresh_body(
    refresh_token: str,
    *,
    client_id: str = CLIENT_ID,
    scope: str = SCOPE,
) -> dict[str, str]:
    """Build the identity provider body for a refresh_token grant."""
    return {
        "grant_type": "refresh_token",
        "client_id": client_id,
        "refresh_token": refresh_token,
        "scope": scope,
    }


def parse_access_token(data: Any) -> str | None:
    """Extract the access token from a token endpoint response.

    Returns None when the body carries no usable token.
    """
    if not isinstance(data, dict):
        return None
    token = data.get("access_token")
    if not isinstance(token, str) or not token:
        return None
    return token


def unwrap_response(body: dict[str, Any] | None) -> Any:
    """Return the ``response`` field the owner API wraps every payload in."""
    if not body:
        return None
    return body.get("response")


def truncate_token(token: str) -> str:
    """Shorten a token for log output."""
    return f"{token[:TOKEN_LOG_PREFIX]}..."
