"""CAN bus interface for the fuel sensor emulator.

Wraps a python-can bus and exposes the ``send_frame`` method the emulator
expects from its bus. Transmit only: frames received on the bus are never read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

import can

logger = logging.getLogger(__name__)

MAX_STANDARD_ID = 0x7FF
MAX_EXTENDED_ID = 0x1FFFFFFF


@dataclass
class CanMessage:
    """A classic CAN message.

    Args:
        arbitration_id: CAN arbitration ID (11-bit standard or 29-bit extended).
        data: Message data (0-8 bytes).
        is_extended_id: True for 29-bit extended ID, False for 11-bit standard.
    """

    arbitration_id: int
    data: bytes = field(default_factory=bytes)
    is_extended_id: bool = True

    def __post_init__(self) -> None:
        """Validate message ID and data."""
        if isinstance(self.data, (list, tuple, bytearray)):
            self.data = bytes(self.data)
        if len(self.data) > 8:
            raise ValueError(f"data length must be <= 8, got {len(self.data)}")
        max_id = MAX_EXTENDED_ID if self.is_extended_id else MAX_STANDARD_ID
        if not 0 <= self.arbitration_id <= max_id:
            raise ValueError(f"arbitration_id must be 0-0x{max_id:X}, got 0x{self.arbitration_id:X}")

    @property
    def dlc(self) -> int:
        """Return the data length code."""
        return len(self.data)

    def to_can(self) -> can.Message:
        """Convert to a python-can message."""
        return can.Message(
            arbitration_id=self.arbitration_id,
            data=self.data,
            dlc=self.dlc,
            is_extended_id=self.is_extended_id,
        )


@dataclass(frozen=True)
class CanConfig:
    """Configuration for the CAN interface.

    Args:
        interface: python-can interface type (e.g., "socketcan", "virtual").
        channel: Bus channel name (e.g., "can0", "vcan0").
        bitrate: CAN bitrate in bits/second.
    """

    interface: str = "socketcan"
    channel: str = "can0"
    bitrate: int = 250000


class CanInterface:
    """CAN bus interface using python-can.

    Implements the ``FrameSender`` protocol so it can be handed directly to
    ``FuelSensorEmulator.start``.

    Args:
        config: CAN interface configuration.
        bus: Optional CAN bus object (for testing).
    """

    def __init__(
        self,
        config: CanConfig | None = None,
        bus: Any | None = None,
    ) -> None:
        self._config = config or CanConfig()
        self._bus = bus
        self._owns_bus = bus is None
        self._opened = False

    @property
    def config(self) -> CanConfig:
        """Return the interface configuration."""
        return self._config

    @property
    def is_open(self) -> bool:
        """Return True if the interface is open."""
        return self._opened

    def open(self) -> None:
        """Open the CAN interface.

        Raises:
            RuntimeError: If the interface is already open or cannot be opened.
        """
        if self._opened:
            raise RuntimeError("Interface already open")

        if self._bus is None:
            try:
                self._bus = can.Bus(
                    interface=self._config.interface,
                    channel=self._config.channel,
                    bitrate=self._config.bitrate,
                )
            except (can.CanError, OSError, ValueError) as exc:
                raise RuntimeError(f"Failed to open CAN interface: {exc}") from exc

        self._opened = True
        logger.info(
            "CAN interface opened: %s/%s @ %d bps",
            self._config.interface,
            self._config.channel,
            self._config.bitrate,
        )

    def close(self) -> None:
        """Close the CAN interface."""
        if not self._opened:
            return

        if self._bus is not None:
            try:
                self._bus.shutdown()
            except can.CanError:
                logger.warning("Error shutting down CAN bus", exc_info=True)
            if self._owns_bus:
                self._bus = None

        self._opened = False
        logger.info("CAN interface closed: %s", self._config.channel)

    def __enter__(self) -> CanInterface:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def send(self, message: CanMessage) -> None:
        """Send a CAN message.

        Args:
            message: The message to send.

        Raises:
            RuntimeError: If the interface is not open.
            can.CanError: If the bus rejects the message.
        """
        if not self._opened:
            raise RuntimeError("Interface not open")

        assert self._bus is not None
        try:
            self._bus.send(message.to_can())
        except can.CanError as exc:
            logger.error("Failed to send CAN message 0x%08X: %s", message.arbitration_id, exc)
            raise

    def send_frame(self, arbitration_id: int, dlc: int, data: bytes) -> None:
        """Send a frame given as identifier, length and payload.

        Args:
            arbitration_id: CAN arbitration ID. IDs above 0x7FF are sent extended.
            dlc: Number of payload bytes to send (0-8).
            data: Payload buffer; only the first ``dlc`` bytes are used.

        Raises:
            RuntimeError: If the interface is not open.
            ValueError: If dlc is out of range.
        """
        if not 0 <= dlc <= 8:
            raise ValueError(f"dlc must be 0-8, got {dlc}")
        message = CanMessage(
            arbitration_id=arbitration_id,
            data=bytes(data[:dlc]),
            is_extended_id=arbitration_id > MAX_STANDARD_ID,
        )
        self.send(message)
