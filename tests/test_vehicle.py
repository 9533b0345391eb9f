"""End-to-end tests for TeslaVehicle over a mocked aiohttp session."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tesla_rest import (
    AuthRefreshError,
    OtherApiError,
    RequestOutcome,
    RequestTrace,
    TeslaClientConfig,
    TeslaSettings,
    TeslaVehicle,
    WakeTimeoutError,
)

from .conftest import BASE_URL, VEHICLE_ID, create_mock_response, token_body, vehicle_body

AUTH_URL = "https://auth.tesla.com/oauth2/v3/token"
CHARGE_STATE = {"battery_level": 72, "charging_state": "Charging", "charge_amps": 16}


@pytest.fixture
def vehicle(mock_session: MagicMock) -> TeslaVehicle:
    return TeslaVehicle(VEHICLE_ID, "refresh-secret", session=mock_session)


@pytest.fixture
def mock_sleep():
    with patch("tesla_rest.wake.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


class TestReads:
    """Test telemetry operations."""

    async def test_get_charge_state_returns_response_field(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        mock_session.get.return_value = create_mock_response(
            200, json_data=vehicle_body(**CHARGE_STATE)
        )

        result = await vehicle.get_charge_state()

        assert result == CHARGE_STATE
        assert (
            mock_session.get.call_args.args[0] == f"{BASE_URL}/data_request/charge_state"
        )
        mock_session.post.assert_not_called()

    async def test_get_vehicle_data(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        mock_session.get.return_value = create_mock_response(
            200, json_data=vehicle_body(state="online", charge_state=CHARGE_STATE)
        )

        result = await vehicle.get_vehicle_data()

        assert result["charge_state"] == CHARGE_STATE
        assert mock_session.get.call_args.args[0] == f"{BASE_URL}/vehicle_data"

    async def test_first_read_without_token_refreshes(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        mock_session.get.side_effect = [
            create_mock_response(401),
            create_mock_response(200, json_data=vehicle_body(**CHARGE_STATE)),
        ]
        mock_session.post.return_value = create_mock_response(
            200, json_data=token_body("fresh-access-token")
        )

        result = await vehicle.get_charge_state()

        assert result == CHARGE_STATE
        assert mock_session.post.call_args.args[0] == AUTH_URL
        retry_headers = mock_session.get.call_args_list[1].kwargs["headers"]
        assert retry_headers["Authorization"] == "Bearer fresh-access-token"
        assert vehicle.access_token == "fresh-access-token"

    async def test_two_reads_share_refreshed_token(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        mock_session.get.side_effect = [
            create_mock_response(401),
            create_mock_response(200, json_data=vehicle_body(**CHARGE_STATE)),
            create_mock_response(200, json_data=vehicle_body(**CHARGE_STATE)),
        ]
        mock_session.post.return_value = create_mock_response(
            200, json_data=token_body("fresh-access-token")
        )

        await vehicle.get_charge_state()
        await vehicle.get_charge_state()

        assert mock_session.post.call_count == 1
        third_headers = mock_session.get.call_args_list[2].kwargs["headers"]
        assert third_headers["Authorization"] == "Bearer fresh-access-token"

    async def test_rejected_refresh_token_fails(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        mock_session.get.return_value = create_mock_response(401)
        mock_session.post.return_value = create_mock_response(
            401, json_data={"error": "login_required"}
        )

        with pytest.raises(AuthRefreshError):
            await vehicle.get_charge_state()

        assert mock_session.get.call_count == 1


class TestCommands:
    """Test command operations."""

    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("start_charging", "command/charge_start"),
            ("stop_charging", "command/charge_stop"),
        ],
    )
    async def test_charge_commands(
        self,
        mock_session: MagicMock,
        method: str,
        path: str,
    ) -> None:
        vehicle = TeslaVehicle(
            VEHICLE_ID, "refresh-secret", session=mock_session, access_token="valid"
        )
        mock_session.post.return_value = create_mock_response(
            200, json_data=vehicle_body(result=True, reason="")
        )

        result = await getattr(vehicle, method)()

        assert result == {"result": True, "reason": ""}
        assert mock_session.post.call_args.args[0] == f"{BASE_URL}/{path}"

    async def test_set_charging_amps_body(self, mock_session: MagicMock) -> None:
        vehicle = TeslaVehicle(
            VEHICLE_ID, "refresh-secret", session=mock_session, access_token="valid"
        )
        mock_session.post.return_value = create_mock_response(
            200, json_data=vehicle_body(result=True, reason="")
        )

        await vehicle.set_charging_amps(12)

        call = mock_session.post.call_args
        assert call.args[0] == f"{BASE_URL}/command/set_charging_amps"
        assert call.kwargs["json"] == {"charging_amps": 12}

    async def test_set_charging_amps_rejects_negative(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        with pytest.raises(ValueError):
            await vehicle.set_charging_amps(-1)

        mock_session.post.assert_not_called()

    async def test_command_on_asleep_vehicle_wakes_first(
        self, mock_session: MagicMock, mock_sleep: AsyncMock
    ) -> None:
        vehicle = TeslaVehicle(
            VEHICLE_ID, "refresh-secret", session=mock_session, access_token="valid"
        )
        mock_session.post.side_effect = [
            create_mock_response(408),
            create_mock_response(200, json_data=vehicle_body(state="asleep")),
            create_mock_response(200, json_data=vehicle_body(state="online")),
            create_mock_response(200, json_data=vehicle_body(result=True, reason="")),
        ]

        result = await vehicle.start_charging()

        assert result == {"result": True, "reason": ""}
        urls = [c.args[0] for c in mock_session.post.call_args_list]
        assert urls == [
            f"{BASE_URL}/command/charge_start",
            f"{BASE_URL}/wake_up",
            f"{BASE_URL}/wake_up",
            f"{BASE_URL}/command/charge_start",
        ]
        mock_sleep.assert_awaited_once_with(10.0)

    async def test_expired_token_and_asleep_vehicle(
        self, vehicle: TeslaVehicle, mock_session: MagicMock, mock_sleep: AsyncMock
    ) -> None:
        mock_session.get.side_effect = [
            create_mock_response(401),
            create_mock_response(408),
            create_mock_response(200, json_data=vehicle_body(**CHARGE_STATE)),
        ]
        mock_session.post.side_effect = [
            create_mock_response(200, json_data=token_body("fresh-access-token")),
            create_mock_response(200, json_data=vehicle_body(state="online")),
        ]

        result = await vehicle.get_charge_state()

        assert result == CHARGE_STATE
        urls = [c.args[0] for c in mock_session.post.call_args_list]
        assert urls == [AUTH_URL, f"{BASE_URL}/wake_up"]
        mock_sleep.assert_not_called()

    async def test_server_error_is_reported(
        self, mock_session: MagicMock
    ) -> None:
        vehicle = TeslaVehicle(
            VEHICLE_ID, "refresh-secret", session=mock_session, access_token="valid"
        )
        mock_session.post.return_value = create_mock_response(500)

        with pytest.raises(OtherApiError) as exc_info:
            await vehicle.stop_charging()

        assert exc_info.value.status == 500
        assert mock_session.post.call_count == 1


class TestWake:
    """Test explicit wake operations."""

    async def test_wake_up_sends_single_command(
        self, mock_session: MagicMock, mock_sleep: AsyncMock
    ) -> None:
        vehicle = TeslaVehicle(
            VEHICLE_ID, "refresh-secret", session=mock_session, access_token="valid"
        )
        mock_session.post.return_value = create_mock_response(
            200, json_data=vehicle_body(state="asleep")
        )

        result = await vehicle.wake_up()

        assert result == {"state": "asleep"}
        assert mock_session.post.call_count == 1
        mock_sleep.assert_not_called()

    async def test_ensure_online_times_out(
        self, mock_session: MagicMock, mock_sleep: AsyncMock
    ) -> None:
        config = TeslaClientConfig(wake_max_attempts=4, wake_interval=1.0)
        vehicle = TeslaVehicle(
            VEHICLE_ID,
            "refresh-secret",
            session=mock_session,
            config=config,
            access_token="valid",
        )
        mock_session.post.return_value = create_mock_response(
            200, json_data=vehicle_body(state="offline")
        )

        with pytest.raises(WakeTimeoutError):
            await vehicle.ensure_online()

        assert mock_session.post.call_count == 4
        assert mock_sleep.await_count == 3


class TestLifecycle:
    """Test construction, callbacks and session ownership."""

    async def test_injected_session_is_not_closed(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        async with vehicle:
            pass

        mock_session.close.assert_not_called()

    async def test_owned_session_is_closed(self) -> None:
        session = MagicMock()
        session.close = AsyncMock()
        with patch("tesla_rest.vehicle.aiohttp.ClientSession", return_value=session):
            async with TeslaVehicle(VEHICLE_ID, "refresh-secret"):
                pass

        session.close.assert_awaited_once()

    async def test_from_settings(self, mock_session: MagicMock) -> None:
        settings = TeslaSettings(
            vehicle_id=VEHICLE_ID,
            refresh_token="refresh-secret",
            access_token="known-token",
            client=TeslaClientConfig(wake_max_attempts=3),
        )

        vehicle = TeslaVehicle.from_settings(settings, session=mock_session)

        assert vehicle.vehicle_id == VEHICLE_ID
        assert vehicle.access_token == "known-token"

    async def test_refresh_access_token(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        mock_session.post.return_value = create_mock_response(
            200, json_data=token_body("manual-refresh-token")
        )

        token = await vehicle.refresh_access_token()

        assert token == "manual-refresh-token"
        assert vehicle.access_token == "manual-refresh-token"

    async def test_request_complete_callback(
        self, vehicle: TeslaVehicle, mock_session: MagicMock
    ) -> None:
        traces: list[RequestTrace] = []
        vehicle.on_request_complete(traces.append)
        mock_session.get.return_value = create_mock_response(
            200, json_data=vehicle_body(**CHARGE_STATE)
        )

        await vehicle.get_charge_state()

        assert len(traces) == 1
        assert traces[0].outcome is RequestOutcome.SUCCEEDED
        assert traces[0].path == "data_request/charge_state"
