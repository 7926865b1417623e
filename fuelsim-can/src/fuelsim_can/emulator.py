"""Periodic frame emitter for the fuel-level sensor family.

The emulator owns a ``ChannelStore`` and, once started, runs one background
thread that sweeps the channels in index order. Every enabled channel is
encoded into a frame and handed to the bus, followed by one interval wait
before the next channel is processed. A sweep over N enabled channels
therefore takes N intervals.

Lifecycle:
    DISABLED -> STARTING -> RUNNING -> STOPPING -> DISABLED

``start`` is idempotent while a run is active, ``stop`` only requests
cessation, and ``wait`` blocks until the background thread has exited.

Example:
    emulator = FuelSensorEmulator()
    emulator.set(0, level=0.5, temperature=20)
    emulator.enable(0)
    with CanInterface(CanConfig(channel="vcan0")) as bus:
        emulator.start(bus)
        time.sleep(10)
        emulator.stop()
        emulator.wait()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from fuelsim_can.can_interface import MAX_EXTENDED_ID, MAX_STANDARD_ID, CanInterface, CanMessage
from fuelsim_can.channels import DEFAULT_NUM_CHANNELS, ChannelParams, ChannelStore
from fuelsim_can.encoding import DEFAULT_BASE_ID, encode_frame, frame_id
from fuelsim_can.errors import BusUnavailableError, ConfigError
from fuelsim_can.protocols import FrameSender

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 1.0


class EmulatorState(Enum):
    """Lifecycle state of an emulation session."""

    DISABLED = "disabled"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass(frozen=True)
class EmulatorConfig:
    """Configuration for a fuel sensor emulator.

    Args:
        base_id: Identifier base; channel ``i`` reports on ``base_id + i + 1``.
        num_channels: Number of emulated sensor channels (>= 1).
        interval_s: Wait after each emitted frame, in seconds (> 0).
        is_extended_id: Send frames with 29-bit identifiers.
        simultaneous: Emit all enabled channels back to back and wait once per
            sweep instead of once per channel.
    """

    base_id: int = DEFAULT_BASE_ID
    num_channels: int = DEFAULT_NUM_CHANNELS
    interval_s: float = DEFAULT_INTERVAL_S
    is_extended_id: bool = True
    simultaneous: bool = False

    def __post_init__(self) -> None:
        if self.num_channels < 1:
            raise ConfigError(f"num_channels must be >= 1, got {self.num_channels}")
        if self.interval_s <= 0:
            raise ConfigError(f"interval_s must be > 0, got {self.interval_s}")
        if self.base_id < 0:
            raise ConfigError(f"base_id must be >= 0, got {self.base_id}")
        max_id = MAX_EXTENDED_ID if self.is_extended_id else MAX_STANDARD_ID
        last_id = frame_id(self.num_channels - 1, self.base_id)
        if last_id > max_id:
            raise ConfigError(
                f"identifier 0x{last_id:X} for channel {self.num_channels - 1} "
                f"exceeds maximum 0x{max_id:X}"
            )


class FuelSensorEmulator:
    """Multi-channel fuel-level sensor emulator.

    Args:
        config: Emulator configuration.
        store: Optional pre-populated channel store. Must match
            ``config.num_channels``.

    Raises:
        ConfigError: If the store size does not match the configuration.
    """

    def __init__(
        self,
        config: EmulatorConfig | None = None,
        store: ChannelStore | None = None,
    ) -> None:
        self._config = config or EmulatorConfig()
        if store is None:
            store = ChannelStore(self._config.num_channels)
        elif store.num_channels != self._config.num_channels:
            raise ConfigError(
                f"store has {store.num_channels} channels, "
                f"config expects {self._config.num_channels}"
            )
        self._store = store
        self._lock = threading.Lock()
        self._state = EmulatorState.DISABLED
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._frames_sent = 0

    @property
    def config(self) -> EmulatorConfig:
        """Return the emulator configuration."""
        return self._config

    @property
    def channels(self) -> ChannelStore:
        """Return the channel store."""
        return self._store

    @property
    def state(self) -> EmulatorState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Return True while a background sweep is active or starting."""
        return self._state in (EmulatorState.STARTING, EmulatorState.RUNNING)

    @property
    def frames_sent(self) -> int:
        """Return the number of frames handed to the bus since creation."""
        return self._frames_sent

    # -------------------------------------------------------------------------
    # Channel configuration
    # -------------------------------------------------------------------------

    def enable(self, index: int) -> None:
        """Enable a channel. Out-of-range indices are ignored."""
        self._store.enable(index)

    def disable(self, index: int) -> None:
        """Disable a channel. Out-of-range indices are ignored."""
        self._store.disable(index)

    def set_level(self, index: int, level: float) -> None:
        """Set a channel's fill level. Out-of-range indices are ignored."""
        self._store.set_level(index, level)

    def set_temperature(self, index: int, temperature: int) -> None:
        """Set a channel's temperature. Out-of-range indices are ignored."""
        self._store.set_temperature(index, temperature)

    def set(self, index: int, level: float, temperature: int) -> None:
        """Set a channel's level and temperature. Out-of-range indices are ignored."""
        self._store.set(index, level, temperature)

    def build_frames(self) -> list[CanMessage]:
        """Encode the current state of every enabled channel.

        Returns:
            One message per enabled channel, in index order.
        """
        return [
            self._encode(index, params)
            for index, params in enumerate(self._store.snapshot())
            if params.enabled
        ]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, sender: FrameSender) -> None:
        """Start periodic emission on the given bus.

        Does nothing if emission is already starting or running. If a previous
        run is still stopping, waits for it to exit before starting again.

        Args:
            sender: Bus to transmit frames on.

        Raises:
            BusUnavailableError: If sender is None or has no ``send_frame``.
        """
        if sender is None or not callable(getattr(sender, "send_frame", None)):
            raise BusUnavailableError("Cannot start fuel sensor emulation without a frame sender")

        with self._lock:
            if self._state in (EmulatorState.STARTING, EmulatorState.RUNNING):
                logger.debug("Fuel sensor emulation already running")
                return
            previous = self._thread if self._state is EmulatorState.STOPPING else None

        if previous is not None:
            logger.debug("Waiting for previous emulation run to exit")
            previous.join()

        with self._lock:
            if self._state is not EmulatorState.DISABLED:
                return
            self._state = EmulatorState.STARTING
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(sender, self._stop_event),
                name="fuelsim-emitter",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        """Request emission to stop.

        Returns immediately. The background thread notices within one interval
        and may emit at most one more frame; use ``wait`` to block until it
        has exited.
        """
        with self._lock:
            if self._state not in (EmulatorState.STARTING, EmulatorState.RUNNING):
                return
            self._state = EmulatorState.STOPPING
            self._stop_event.set()
        logger.info("Stopping fuel sensor emulation")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the background thread has exited.

        Args:
            timeout: Maximum time to wait in seconds, or None to wait forever.

        Returns:
            True if no emission thread is alive, False on timeout.
        """
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # -------------------------------------------------------------------------
    # Background sweep
    # -------------------------------------------------------------------------

    def _run(self, sender: FrameSender, stop_event: threading.Event) -> None:
        """Background thread body."""
        logger.info(
            "Starting fuel sensor emulation (%d channels, base ID 0x%08X, interval %.3fs)",
            self._config.num_channels,
            self._config.base_id,
            self._config.interval_s,
        )
        with self._lock:
            if not stop_event.is_set():
                self._state = EmulatorState.RUNNING

        try:
            while not stop_event.is_set():
                if self._config.simultaneous:
                    self._sweep_simultaneous(sender, stop_event)
                else:
                    self._sweep(sender, stop_event)
        finally:
            with self._lock:
                if self._thread is threading.current_thread():
                    self._state = EmulatorState.DISABLED
            logger.info("Fuel sensor emulation stopped (%d frames sent)", self._frames_sent)

    def _sweep(self, sender: FrameSender, stop_event: threading.Event) -> None:
        """Emit each enabled channel in turn, waiting one interval after each."""
        emitted = False
        for index in range(self._store.num_channels):
            if stop_event.is_set():
                return
            params = self._store.get(index)
            if params is None or not params.enabled:
                continue
            self._emit(sender, index, params)
            emitted = True
            if stop_event.wait(self._config.interval_s):
                return

        # Nothing enabled: idle one interval instead of spinning
        if not emitted:
            stop_event.wait(self._config.interval_s)

    def _sweep_simultaneous(self, sender: FrameSender, stop_event: threading.Event) -> None:
        """Emit all enabled channels back to back, then wait one interval."""
        for index, params in enumerate(self._store.snapshot()):
            if stop_event.is_set():
                return
            if params.enabled:
                self._emit(sender, index, params)
        stop_event.wait(self._config.interval_s)

    def _encode(self, index: int, params: ChannelParams) -> CanMessage:
        return encode_frame(
            index,
            params,
            base_id=self._config.base_id,
            is_extended_id=self._config.is_extended_id,
        )

    def _emit(self, sender: FrameSender, index: int, params: ChannelParams) -> None:
        """Encode one channel and hand the frame to the bus."""
        try:
            message = self._encode(index, params)
            if isinstance(sender, CanInterface):
                # Keeps the configured identifier width on the wire
                sender.send(message)
            else:
                sender.send_frame(message.arbitration_id, message.dlc, message.data)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Failed to emit frame for channel %d", index)
            return

        self._frames_sent += 1
        logger.debug(
            "Channel %d: ID=0x%08X data=%s",
            index,
            message.arbitration_id,
            message.data.hex(),
        )
