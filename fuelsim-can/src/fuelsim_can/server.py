"""FastAPI REST API server for the fuel sensor emulator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException

from fuelsim_can import __version__
from fuelsim_can.can_interface import CanInterface
from fuelsim_can.config import FuelsimConfig, load_config
from fuelsim_can.emulator import FuelSensorEmulator
from fuelsim_can.encoding import frame_id
from fuelsim_can.errors import BusUnavailableError
from fuelsim_can.models import (
    ChannelModel,
    ChannelUpdate,
    ErrorResponse,
    FrameModel,
    HealthResponse,
    StatusResponse,
)
from fuelsim_can.protocols import FrameSender

logger = logging.getLogger(__name__)

# Global state (set during lifespan)
_emulator: FuelSensorEmulator | None = None
_bus: FrameSender | None = None
_config: FuelsimConfig = FuelsimConfig()
_start_time = time.time()


def _get_emulator() -> FuelSensorEmulator:
    """Get the global emulator instance."""
    if _emulator is None:
        raise RuntimeError("Emulator not initialized")
    return _emulator


def create_app(
    config: FuelsimConfig | None = None,
    sender: FrameSender | None = None,
    autostart: bool = False,
) -> FastAPI:
    """Create a FastAPI application.

    Args:
        config: Emulator configuration. Defaults are used if None.
        sender: Bus to emit on. If None, a ``CanInterface`` is opened from
            ``config.can`` at startup.
        autostart: Start emission as soon as the application starts.

    Returns:
        Configured FastAPI application.
    """
    app_state: dict[str, Any] = {"config": config or FuelsimConfig(), "sender": sender}

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        global _emulator, _bus, _config, _start_time  # pylint: disable=global-statement

        _config = app_state["config"]
        _start_time = time.time()
        _emulator = FuelSensorEmulator(_config.emulator, store=_config.create_store())

        owned_bus: CanInterface | None = None
        _bus = app_state["sender"]
        if _bus is None:
            owned_bus = CanInterface(_config.can)
            try:
                owned_bus.open()
                _bus = owned_bus
            except RuntimeError as exc:
                logger.warning("CAN bus unavailable, emission disabled: %s", exc)
                owned_bus = None

        if autostart and _bus is not None:
            _emulator.start(_bus)

        logger.info("Fuel sensor emulator server started")
        yield

        _emulator.stop()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _emulator.wait, _config.emulator.interval_s * 2)
        if owned_bus is not None:
            owned_bus.close()
        _emulator = None
        _bus = None
        logger.info("Fuel sensor emulator server stopped")

    app = FastAPI(
        title="Fuel Sensor Emulator",
        description="Multi-channel fuel-level sensor emulator on CAN",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_api_route("/health", _health, methods=["GET"], response_model=HealthResponse)
    app.add_api_route("/status", _status, methods=["GET"], response_model=StatusResponse)
    app.add_api_route(
        "/channels", _list_channels, methods=["GET"], response_model=list[ChannelModel]
    )
    app.add_api_route(
        "/channels/{index}", _get_channel, methods=["GET"], response_model=ChannelModel
    )
    app.add_api_route(
        "/channels/{index}", _update_channel, methods=["PUT"], response_model=ChannelModel
    )
    app.add_api_route("/frames", _frames, methods=["GET"], response_model=list[FrameModel])
    app.add_api_route(
        "/emulation/start",
        _start,
        methods=["POST"],
        response_model=StatusResponse,
        responses={503: {"model": ErrorResponse}},
    )
    app.add_api_route(
        "/emulation/stop", _stop, methods=["POST"], response_model=StatusResponse
    )

    return app


def _build_status(emulator: FuelSensorEmulator) -> StatusResponse:
    cfg = emulator.config
    return StatusResponse(
        state=emulator.state.value,
        frames_sent=emulator.frames_sent,
        base_id=cfg.base_id,
        num_channels=cfg.num_channels,
        interval_s=cfg.interval_s,
        simultaneous=cfg.simultaneous,
        can_channel=_config.can.channel,
        bus_available=_bus is not None,
    )


def _build_channel(emulator: FuelSensorEmulator, index: int) -> ChannelModel:
    params = emulator.channels.get(index)
    if params is None:
        raise HTTPException(status_code=404, detail=f"Channel {index} not found")
    return ChannelModel(
        index=index,
        enabled=params.enabled,
        level=params.level,
        temperature=params.temperature,
        frame_id=frame_id(index, emulator.config.base_id),
    )


async def _health() -> HealthResponse:
    """Health check endpoint."""
    if _emulator is None:
        status = "unhealthy"
    elif _bus is None:
        status = "degraded"
    else:
        status = "healthy"
    return HealthResponse(
        status=status,
        version=__version__,
        uptime_seconds=time.time() - _start_time,
    )


async def _status() -> StatusResponse:
    """Get emulator status."""
    return _build_status(_get_emulator())


async def _list_channels() -> list[ChannelModel]:
    """List all sensor channels."""
    emulator = _get_emulator()
    return [_build_channel(emulator, i) for i in range(emulator.channels.num_channels)]


async def _get_channel(index: int) -> ChannelModel:
    """Get one sensor channel."""
    return _build_channel(_get_emulator(), index)


async def _update_channel(index: int, update: ChannelUpdate) -> ChannelModel:
    """Update level, temperature and/or enabled flag of a channel."""
    emulator = _get_emulator()
    if emulator.channels.get(index) is None:
        raise HTTPException(status_code=404, detail=f"Channel {index} not found")

    if update.level is not None:
        emulator.set_level(index, update.level)
    if update.temperature is not None:
        emulator.set_temperature(index, update.temperature)
    if update.enabled is True:
        emulator.enable(index)
    elif update.enabled is False:
        emulator.disable(index)

    return _build_channel(emulator, index)


async def _frames() -> list[FrameModel]:
    """Preview the frames the next sweep would send."""
    return [
        FrameModel(
            arbitration_id=msg.arbitration_id,
            data=list(msg.data),
            is_extended_id=msg.is_extended_id,
        )
        for msg in _get_emulator().build_frames()
    ]


async def _start() -> StatusResponse:
    """Start periodic emission."""
    emulator = _get_emulator()
    loop = asyncio.get_running_loop()
    try:
        # start joins a stopping run, which can take up to one interval
        await loop.run_in_executor(None, emulator.start, _bus)
    except BusUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _build_status(emulator)


async def _stop() -> StatusResponse:
    """Request emission to stop."""
    emulator = _get_emulator()
    emulator.stop()
    return _build_status(emulator)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Start the fuel sensor emulator server")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to emulator configuration YAML file",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)",
    )
    parser.add_argument(
        "--autostart",
        action="store_true",
        help="Start emission as soon as the server is up",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = FuelsimConfig()
    if args.config is not None:
        if not args.config.exists():
            logger.error("Config file not found: %s", args.config)
            sys.exit(1)
        config = load_config(args.config)

    import uvicorn  # pylint: disable=import-outside-toplevel

    app = create_app(config, autostart=args.autostart)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
