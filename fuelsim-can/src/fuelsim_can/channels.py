"""Per-channel state for the emulated fuel-level sensors.

Each channel holds an enabled flag, a fill level and a temperature. The store
accepts any value: range enforcement belongs to the frame encoder, so setting
a level of 1.5 or a temperature of 300 is stored as-is and clamped only when
a frame is built.

Mutators addressed at an index outside ``0..num_channels-1`` are silently
ignored.

Example:
    >>> store = ChannelStore()
    >>> store.set(0, level=0.25, temperature=-10)
    >>> store.enable(0)
    >>> store.enabled_indices()
    [0]
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

DEFAULT_NUM_CHANNELS = 8


@dataclass
class ChannelParams:
    """Emulation parameters for one sensor channel.

    Attributes:
        enabled: True if the channel participates in emission.
        level: Fill fraction, nominally 0.0 (empty) to 1.0 (full).
        temperature: Temperature in degrees Celsius, nominally -40 to 215.
    """

    enabled: bool = False
    level: float = 0.0
    temperature: int = 0


class ChannelStore:
    """Fixed-capacity array of channel records indexed from 0.

    Thread-safe: each call takes a lock so a record is never read half-written.
    Separate calls are not atomic as a group.

    Args:
        num_channels: Number of channels (>= 1).

    Raises:
        ValueError: If num_channels is less than 1.
    """

    def __init__(self, num_channels: int = DEFAULT_NUM_CHANNELS) -> None:
        if num_channels < 1:
            raise ValueError(f"num_channels must be >= 1, got {num_channels}")
        self._lock = threading.Lock()
        self._channels: list[ChannelParams] = [ChannelParams() for _ in range(num_channels)]

    @property
    def num_channels(self) -> int:
        """Return the channel capacity."""
        return len(self._channels)

    def __len__(self) -> int:
        return len(self._channels)

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._channels)

    def enable(self, index: int) -> None:
        """Enable emission for a channel.

        Args:
            index: Channel index (0-based). Ignored if out of range.
        """
        if not self._in_range(index):
            return
        with self._lock:
            self._channels[index].enabled = True
        logger.debug("Channel %d enabled", index)

    def disable(self, index: int) -> None:
        """Disable emission for a channel.

        Args:
            index: Channel index (0-based). Ignored if out of range.
        """
        if not self._in_range(index):
            return
        with self._lock:
            self._channels[index].enabled = False
        logger.debug("Channel %d disabled", index)

    def set_level(self, index: int, level: float) -> None:
        """Set the fill level of a channel.

        Args:
            index: Channel index (0-based). Ignored if out of range.
            level: Fill fraction. Not clamped here.
        """
        if not self._in_range(index):
            return
        with self._lock:
            self._channels[index].level = level

    def set_temperature(self, index: int, temperature: int) -> None:
        """Set the temperature of a channel.

        Args:
            index: Channel index (0-based). Ignored if out of range.
            temperature: Temperature in degrees Celsius. Not clamped here.
        """
        if not self._in_range(index):
            return
        with self._lock:
            self._channels[index].temperature = temperature

    def set(self, index: int, level: float, temperature: int) -> None:
        """Set both the level and the temperature of a channel.

        Args:
            index: Channel index (0-based). Ignored if out of range.
            level: Fill fraction.
            temperature: Temperature in degrees Celsius.
        """
        self.set_level(index, level)
        self.set_temperature(index, temperature)

    def get(self, index: int) -> ChannelParams | None:
        """Return a copy of one channel record.

        Args:
            index: Channel index (0-based).

        Returns:
            Copy of the record, or None if the index is out of range.
        """
        if not self._in_range(index):
            return None
        with self._lock:
            return replace(self._channels[index])

    def snapshot(self) -> list[ChannelParams]:
        """Return copies of all channel records, in index order."""
        with self._lock:
            return [replace(channel) for channel in self._channels]

    def enabled_indices(self) -> list[int]:
        """Return the indices of all enabled channels."""
        with self._lock:
            return [i for i, channel in enumerate(self._channels) if channel.enabled]
