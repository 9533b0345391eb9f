"""Command-line entry point.

Examples:
    TESLA_VEHICLE_ID=... TESLA_REFRESH_TOKEN=... python -m tesla_rest charge-state
    python -m tesla_rest --config tesla.yaml set-amps 16
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from .config import load_config
from .errors import TeslaClientError
from .vehicle import TeslaVehicle

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


async def _dispatch(car: TeslaVehicle, args: argparse.Namespace) -> Any:
    if args.command == "charge-state":
        return await car.get_charge_state()
    if args.command == "vehicle-data":
        return await car.get_vehicle_data()
    if args.command == "charge-start":
        return await car.start_charging()
    if args.command == "charge-stop":
        return await car.stop_charging()
    if args.command == "set-amps":
        return await car.set_charging_amps(args.amps)
    if args.command == "wake":
        if args.wait:
            return await car.ensure_online()
        return await car.wake_up()
    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tesla-rest",
        description="Read telemetry from and send commands to a Tesla vehicle.",
    )
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("charge-state", help="Show the charge state")
    sub.add_parser("vehicle-data", help="Show all vehicle data")
    sub.add_parser("charge-start", help="Start charging")
    sub.add_parser("charge-stop", help="Stop charging")

    set_amps = sub.add_parser("set-amps", help="Set the charging current")
    set_amps.add_argument("amps", type=int, help="Charging current in amps")

    wake = sub.add_parser("wake", help="Wake the vehicle")
    wake.add_argument(
        "--wait", action="store_true", help="Poll until the vehicle is online"
    )
    return parser


async def run(args: argparse.Namespace) -> Any:
    """Execute the selected command and return its response payload."""
    settings = load_config(args.config)
    async with TeslaVehicle.from_settings(settings) as car:
        return await _dispatch(car, args)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        result = asyncio.run(run(args))
    except (TeslaClientError, ValueError) as err:
        print(f"error: {err}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
