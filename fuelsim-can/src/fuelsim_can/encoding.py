"""Frame layout for the fuel-level sensor family.

Each sensor channel ``i`` (0-based) reports on identifier ``base_id + i + 1``
with an 8-byte payload:

    bytes 0-1  level in 0.1 mm units on a 1 m sensor, uint16 little-endian
    byte  6    temperature + 40, uint8 (0 means -40 degC)
    others     zero

Out-of-range inputs are clamped here, not in the channel store.
"""

from __future__ import annotations

import math
import struct

from fuelsim_can.can_interface import CanMessage
from fuelsim_can.channels import ChannelParams

DEFAULT_BASE_ID = 0x0CF60664
FRAME_LENGTH = 8

LEVEL_SCALE = 10000
LEVEL_MIN = 0.0
LEVEL_MAX = 1.0

TEMPERATURE_OFFSET = 40
TEMPERATURE_BYTE_MIN = 0
TEMPERATURE_BYTE_MAX = 255

_LEVEL_STRUCT = struct.Struct("<H")
_LEVEL_OFFSET = 0
_TEMPERATURE_INDEX = 6


def encode_level(level: float) -> int:
    """Convert a fill fraction to the 16-bit wire value.

    Args:
        level: Fill fraction; clamped to 0.0-1.0. NaN encodes as empty.

    Returns:
        Level in 0.1 mm units (0-10000).
    """
    if math.isnan(level):
        return 0
    clamped = min(max(level, LEVEL_MIN), LEVEL_MAX)
    return int(round(LEVEL_SCALE * clamped))


def encode_temperature(temperature: int) -> int:
    """Convert a temperature in degC to the 8-bit wire value.

    Args:
        temperature: Temperature in degrees Celsius.

    Returns:
        ``temperature + 40`` clamped to 0-255.
    """
    value = int(temperature) + TEMPERATURE_OFFSET
    return min(max(value, TEMPERATURE_BYTE_MIN), TEMPERATURE_BYTE_MAX)


def frame_id(index: int, base_id: int = DEFAULT_BASE_ID) -> int:
    """Return the frame identifier for a channel.

    Args:
        index: Channel index (0-based).
        base_id: Identifier base; channel 0 reports on ``base_id + 1``.
    """
    return base_id + index + 1


def encode_payload(params: ChannelParams) -> bytes:
    """Build the 8-byte payload for one channel."""
    payload = bytearray(FRAME_LENGTH)
    _LEVEL_STRUCT.pack_into(payload, _LEVEL_OFFSET, encode_level(params.level))
    payload[_TEMPERATURE_INDEX] = encode_temperature(params.temperature)
    return bytes(payload)


def encode_frame(
    index: int,
    params: ChannelParams,
    base_id: int = DEFAULT_BASE_ID,
    is_extended_id: bool = True,
) -> CanMessage:
    """Build the complete frame for one channel.

    Args:
        index: Channel index (0-based).
        params: Channel parameters to encode.
        base_id: Identifier base.
        is_extended_id: True to mark the frame as 29-bit.

    Returns:
        The encoded message.
    """
    return CanMessage(
        arbitration_id=frame_id(index, base_id),
        data=encode_payload(params),
        is_extended_id=is_extended_id,
    )


def decode_payload(data: bytes) -> tuple[float, int]:
    """Recover the level and temperature carried by a payload.

    Args:
        data: An 8-byte payload produced by ``encode_payload``.

    Returns:
        Tuple of (level fraction, temperature in degC) after clamping.

    Raises:
        ValueError: If the payload is not 8 bytes long.
    """
    if len(data) != FRAME_LENGTH:
        raise ValueError(f"payload must be {FRAME_LENGTH} bytes, got {len(data)}")
    (raw_level,) = _LEVEL_STRUCT.unpack_from(data, _LEVEL_OFFSET)
    return raw_level / LEVEL_SCALE, data[_TEMPERATURE_INDEX] - TEMPERATURE_OFFSET
