"""Access token management for the Tesla owner API."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from .config import TeslaClientConfig
from .errors import AuthRefreshError
from .protocol import build_refresh_body, parse_access_token, truncate_token

_LOGGER = logging.getLogger(__name__)


class TeslaCredentialManager:
    """Holds the current access token and exchanges the refresh token for new ones.

    The access token is replaced wholesale and only after a successful
    refresh. Refreshes are serialized; a caller that lost the race gets the
    token the winner already fetched instead of triggering a second exchange.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        refresh_token: str,
        *,
        access_token: str = "",
        config: TeslaClientConfig | None = None,
    ) -> None:
        self._session = session
        self._refresh_token = refresh_token
        self._access_token = access_token
        self._config = config or TeslaClientConfig()
        self._refresh_lock = asyncio.Lock()
        self._refresh_count = 0

    @property
    def access_token(self) -> str:
        """Current access token (empty until the first refresh)."""
        return self._access_token

    @property
    def refresh_count(self) -> int:
        """Number of successful exchanges with the identity provider."""
        return self._refresh_count

    async def refresh(self, stale_token: str | None = None) -> str:
        """Obtain a new access token.

        Args:
            stale_token: Token the caller saw rejected. If the stored token
                has already moved on from it, no new exchange is made.

        Returns:
            The current access token after the refresh.

        Raises:
            AuthRefreshError: If the identity provider call fails or returns
                no usable token. The previous token is kept.
        """
        async with self._refresh_lock:
            if stale_token is not None and self._access_token != stale_token:
                _LOGGER.debug("Access token already refreshed by a concurrent request")
                return self._access_token

            _LOGGER.debug("Try to get new access token")
            token = await self._request_token()
            self._access_token = token
            self._refresh_count += 1
            _LOGGER.info("New access token generated: %s", truncate_token(token))
            return token

    async def _request_token(self) -> str:
        body = build_refresh_body(
            self._refresh_token,
            client_id=self._config.client_id,
            scope=self._config.scope,
        )
        try:
            async with self._session.post(
                self._config.auth_url,
                json=body,
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            ) as resp:
                if not 200 <= resp.status < 300:
                    _LOGGER.error(
                        "Token refresh rejected with status %s", resp.status
                    )
                    raise AuthRefreshError(
                        f"Token refresh failed with status {resp.status}",
                        resp.status,
                    )
                try:
                    data = await resp.json(content_type=None)
                except ValueError as err:
                    raise AuthRefreshError(
                        "Token endpoint returned a non-JSON body", resp.status
                    ) from err
        except TimeoutError as err:
            _LOGGER.error("Token refresh timed out")
            raise AuthRefreshError("Token refresh timed out") from err
        except aiohttp.ClientError as err:
            _LOGGER.error("Token refresh failed: %s", err)
            raise AuthRefreshError("Token refresh request failed") from err

        token = parse_access_token(data)
        if token is None:
            _LOGGER.error("Token endpoint response carried no access_token")
            raise AuthRefreshError(
                "Token endpoint response carried no access_token", resp.status
            )
        return token
