"""Protocol definitions for the bus the emulator transmits on.

The emulator never touches a CAN device directly. It is handed an object with a
``send_frame`` method when emulation starts, which keeps device discovery and
bus error handling outside the emulator.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class FrameSender(Protocol):
    """Protocol for a bus capable of transmitting one frame at a time.

    The emulator treats every call as fire-and-forget: the return value is
    ignored and there are no retries.

    Example:
        with CanInterface(CanConfig(channel="vcan0")) as bus:
            emulator.start(bus)
    """

    def send_frame(self, arbitration_id: int, dlc: int, data: bytes) -> None:
        """Transmit a single frame.

        Args:
            arbitration_id: 29-bit (or 11-bit) frame identifier.
            dlc: Payload length in bytes.
            data: Payload buffer of at least ``dlc`` bytes.
        """
        ...
