"""fuelsim-can: Fuel-level sensor emulator for CAN bus testing.

Emulates a family of fuel-level sensors (8 channels by default) that report
level and temperature once per interval on a CAN bus:

- Channel store holding per-sensor level, temperature and enabled flag
- Frame encoder for the sensor family's identifier scheme and byte layout
- Background emitter with a start/stop lifecycle
- python-can bus interface, YAML configuration, CLI and REST API
"""

__version__ = "0.1.0"

from fuelsim_can.can_interface import CanConfig, CanInterface, CanMessage
from fuelsim_can.channels import ChannelParams, ChannelStore
from fuelsim_can.config import FuelsimConfig, SensorConfig, load_config
from fuelsim_can.emulator import EmulatorConfig, EmulatorState, FuelSensorEmulator
from fuelsim_can.encoding import (
    DEFAULT_BASE_ID,
    decode_payload,
    encode_frame,
    encode_level,
    encode_payload,
    encode_temperature,
    frame_id,
)
from fuelsim_can.errors import BusUnavailableError, ConfigError, FuelsimError
from fuelsim_can.protocols import FrameSender

__all__ = [
    # CAN
    "CanConfig",
    "CanInterface",
    "CanMessage",
    "FrameSender",
    # Channels
    "ChannelParams",
    "ChannelStore",
    # Encoding
    "DEFAULT_BASE_ID",
    "decode_payload",
    "encode_frame",
    "encode_level",
    "encode_payload",
    "encode_temperature",
    "frame_id",
    # Emulator
    "EmulatorConfig",
    "EmulatorState",
    "FuelSensorEmulator",
    # Configuration
    "FuelsimConfig",
    "SensorConfig",
    "load_config",
    # Errors
    "BusUnavailableError",
    "ConfigError",
    "FuelsimError",
]
