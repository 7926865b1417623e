"""Command-line interface for fuelsim-can.

Usage:
    # Emulate two sensors on vcan0 until Ctrl-C
    fuelsim-can run --channel vcan0 --sensor 0:0.25:-10 --sensor 3:0.8:20

    # Load bus and sensor settings from a YAML file, stop after a minute
    fuelsim-can run --config bench.yaml --duration 60

    # Control the emulator over REST
    fuelsim-can serve --config bench.yaml --port 8080
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

from fuelsim_can.can_interface import CanInterface
from fuelsim_can.config import FuelsimConfig, SensorConfig, load_config
from fuelsim_can.emulator import FuelSensorEmulator
from fuelsim_can.encoding import frame_id
from fuelsim_can.errors import ConfigError

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_sensor(value: str) -> SensorConfig:
    """Parse an ``INDEX:LEVEL:TEMPERATURE`` sensor argument."""
    parts = value.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(
            f"sensor must be INDEX:LEVEL:TEMPERATURE, got '{value}'"
        )
    try:
        return SensorConfig(
            index=int(parts[0]),
            level=float(parts[1]),
            temperature=int(parts[2]),
        )
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid sensor '{value}': {exc}") from exc


def build_config(args: argparse.Namespace) -> FuelsimConfig:
    """Merge the optional YAML file with command-line overrides.

    Raises:
        FileNotFoundError: If --config names a missing file.
        ConfigError: If the merged configuration is invalid.
    """
    config = load_config(args.config) if args.config else FuelsimConfig()

    can_overrides = {
        key: value
        for key, value in (
            ("interface", args.interface),
            ("channel", args.channel),
            ("bitrate", args.bitrate),
        )
        if value is not None
    }
    emulator_overrides = {
        key: value
        for key, value in (
            ("interval_s", args.interval),
            ("simultaneous", args.simultaneous or None),
        )
        if value is not None
    }

    sensors = {sensor.index: sensor for sensor in config.sensors}
    for sensor in args.sensors or []:
        sensors[sensor.index] = sensor

    emulator = dataclasses.replace(config.emulator, **emulator_overrides)
    for index in sensors:
        if not 0 <= index < emulator.num_channels:
            raise ConfigError(f"sensor index {index} out of range (0-{emulator.num_channels - 1})")

    return dataclasses.replace(
        config,
        can=dataclasses.replace(config.can, **can_overrides),
        emulator=emulator,
        sensors=tuple(sensors[i] for i in sorted(sensors)),
    )


def cmd_run(args: argparse.Namespace) -> int:
    """Run the emulator on a CAN bus until interrupted."""
    try:
        config = build_config(args)
    except (FileNotFoundError, ConfigError) as exc:
        print(f"Error: {exc}")
        return 1

    emulator = FuelSensorEmulator(config.emulator, store=config.create_store())
    enabled = emulator.channels.enabled_indices()
    if not enabled:
        print("Warning: no sensors enabled, nothing will be sent")

    print(f"Emulating {len(enabled)} sensor(s) on {config.can.interface}/{config.can.channel}:")
    for index in enabled:
        params = emulator.channels.get(index)
        assert params is not None
        print(
            f"  #{index} ID=0x{frame_id(index, config.emulator.base_id):08X} "
            f"level={params.level:.3f} temperature={params.temperature}"
        )

    bus = CanInterface(config.can)
    try:
        bus.open()
    except RuntimeError as exc:
        print(f"Error: {exc}")
        return 1

    try:
        emulator.start(bus)
        deadline = None if args.duration is None else time.monotonic() + args.duration
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.1)
    except KeyboardInterrupt:
        print()
    finally:
        emulator.stop()
        emulator.wait(timeout=config.emulator.interval_s * 2)
        bus.close()

    print(f"Sent {emulator.frames_sent} frame(s)")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the REST API server."""
    from fuelsim_can import server  # pylint: disable=import-outside-toplevel

    argv: list[str] = ["--host", args.host, "--port", str(args.port)]
    if args.config:
        argv += ["--config", str(args.config)]
    if args.autostart:
        argv.append("--autostart")
    if args.debug:
        argv.append("--debug")
    server.main(argv)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fuelsim-can",
        description="Fuel-level sensor emulator for CAN",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # run command
    run_parser = subparsers.add_parser("run", help="Emulate sensors on a CAN bus")
    run_parser.add_argument("--config", "-c", type=Path, help="Path to YAML configuration")
    run_parser.add_argument(
        "--interface",
        help="python-can interface type (default: socketcan)",
    )
    run_parser.add_argument("--channel", help="CAN channel (default: can0)")
    run_parser.add_argument("--bitrate", type=int, help="CAN bitrate (default: 250000)")
    run_parser.add_argument(
        "--sensor",
        "-s",
        dest="sensors",
        action="append",
        type=parse_sensor,
        metavar="INDEX:LEVEL:TEMP",
        help="Enable a sensor channel with the given level and temperature (repeatable)",
    )
    run_parser.add_argument(
        "--interval", type=float, help="Seconds between frames (default: 1.0)"
    )
    run_parser.add_argument(
        "--simultaneous",
        action="store_true",
        help="Send all sensors together once per interval",
    )
    run_parser.add_argument(
        "--duration", type=float, help="Stop after this many seconds (default: run until Ctrl-C)"
    )

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API server")
    serve_parser.add_argument("--config", "-c", type=Path, help="Path to YAML configuration")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to listen on")
    serve_parser.add_argument(
        "--autostart", action="store_true", help="Start emission when the server starts"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "run":
        setup_logging(args.debug)
        return cmd_run(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
