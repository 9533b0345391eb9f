"""HTTP transport for Tesla owner API vehicle endpoints."""

from __future__ import annotations

import logging

import aiohttp

from .config import TeslaClientConfig
from .protocol import (
    RequestDescriptor,
    ResponseClassification,
    ResponseKind,
    build_vehicle_url,
    classify_status,
)

_LOGGER = logging.getLogger(__name__)


class TeslaHttpClient:
    """Issues single owner API calls and classifies their outcome.

    One call in, one ResponseClassification out. This layer never retries
    and never raises for HTTP or network failures.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        vehicle_id: str,
        *,
        config: TeslaClientConfig | None = None,
    ) -> None:
        self._session = session
        self._vehicle_id = vehicle_id
        self._config = config or TeslaClientConfig()

    @property
    def vehicle_id(self) -> str:
        return self._vehicle_id

    def _url(self, path: str) -> str:
        return build_vehicle_url(self._config.api_base_url, self._vehicle_id, path)

    @staticmethod
    def _headers(access_token: str) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def execute(
        self, descriptor: RequestDescriptor, access_token: str
    ) -> ResponseClassification:
        """Execute one request and classify the response.

        Args:
            descriptor: Path, method and optional body of the request.
            access_token: Bearer token to send (may be empty).

        Returns:
            SUCCESS with the decoded JSON body on 200, AUTH_EXPIRED on 401,
            DEVICE_UNREACHABLE on 408, OTHER_ERROR otherwise.
        """
        url = self._url(descriptor.path)
        kwargs: dict[str, object] = {
            "headers": self._headers(access_token),
            "timeout": aiohttp.ClientTimeout(total=self._config.request_timeout),
        }
        if descriptor.method == "GET":
            request = self._session.get
        elif descriptor.method == "POST":
            request = self._session.post
            if descriptor.body is not None:
                kwargs["json"] = descriptor.body
        else:
            raise ValueError(f"Unsupported method: {descriptor.method}")

        _LOGGER.debug(
            "[%s] %s %s", self._vehicle_id, descriptor.method, descriptor.path
        )
        try:
            async with request(url, **kwargs) as resp:
                kind = classify_status(resp.status)
                if kind is ResponseKind.AUTH_EXPIRED:
                    return ResponseClassification.auth_expired()
                if kind is ResponseKind.DEVICE_UNREACHABLE:
                    return ResponseClassification.device_unreachable()
                if kind is ResponseKind.OTHER_ERROR:
                    return ResponseClassification.other_error(resp.status)
                try:
                    data = await resp.json(content_type=None)
                except ValueError as err:
                    _LOGGER.warning(
                        "[%s] %s returned a non-JSON body",
                        self._vehicle_id,
                        descriptor.path,
                    )
                    return ResponseClassification.other_error(resp.status, err)
                if not isinstance(data, dict):
                    return ResponseClassification.other_error(resp.status)
                return ResponseClassification.success(data)
        except TimeoutError as err:
            _LOGGER.warning(
                "[%s] %s timed out", self._vehicle_id, descriptor.path
            )
            return ResponseClassification.other_error(None, err)
        except aiohttp.ClientError as err:
            _LOGGER.warning(
                "[%s] %s failed: %s", self._vehicle_id, descriptor.path, err
            )
            return ResponseClassification.other_error(None, err)
