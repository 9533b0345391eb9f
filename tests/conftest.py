"""Pytest configuration and fixtures for tesla_rest tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from tesla_rest.config import TeslaClientConfig

VEHICLE_ID = "1492931337154"
BASE_URL = "https://owner-api.teslamotors.com/api/1/vehicles/1492931337154"


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


@pytest.fixture
def config() -> TeslaClientConfig:
    """Client config with default recovery policy."""
    return TeslaClientConfig()


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    json_error: Exception | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Data to return from json() call
        json_error: Exception raised by json() call

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status

    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def vehicle_body(**response: Any) -> dict[str, Any]:
    """Wrap a payload the way the owner API does."""
    return {"response": response}


def token_body(access_token: str = "new-access-token-0123456789") -> dict[str, Any]:
    """Token endpoint response."""
    return {
        "access_token": access_token,
        "refresh_token": "rotated-refresh-token",
        "expires_in": 28800,
        "token_type": "Bearer",
    }
