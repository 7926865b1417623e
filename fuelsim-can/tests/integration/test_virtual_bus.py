"""Integration tests for the emulator on a python-can virtual bus.

These tests run the emulator through ``CanInterface`` on an in-process
virtual bus and read the frames back with a second bus on the same channel.
No hardware is needed.

Run with:
    pytest fuelsim-can/tests/integration/ -v
"""

from __future__ import annotations

import uuid
from typing import Iterator

import can
import pytest

from fuelsim_can.can_interface import CanConfig, CanInterface
from fuelsim_can.emulator import EmulatorConfig, FuelSensorEmulator
from fuelsim_can.encoding import DEFAULT_BASE_ID, decode_payload

# Mark all tests in this module as integration tests
pytestmark = pytest.mark.integration

INTERVAL = 0.05


@pytest.fixture
def channel_name() -> str:
    """Unique virtual channel per test so buses never cross-talk."""
    return f"fuelsim-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def listener(channel_name: str) -> Iterator[can.BusABC]:
    """A second bus on the same virtual channel."""
    bus = can.Bus(interface="virtual", channel=channel_name)
    yield bus
    bus.shutdown()


@pytest.fixture
def emulator_bus(channel_name: str) -> Iterator[CanInterface]:
    """The emulator's side of the virtual channel."""
    with CanInterface(CanConfig(interface="virtual", channel=channel_name)) as iface:
        yield iface


def _receive(bus: can.BusABC, count: int, timeout: float = 2.0) -> list[can.Message]:
    messages: list[can.Message] = []
    while len(messages) < count:
        msg = bus.recv(timeout=timeout)
        if msg is None:
            break
        messages.append(msg)
    return messages


class TestVirtualBus:
    """Frames sent by the emulator arrive on the bus with the expected layout."""

    def test_scenario_frames_on_bus(
        self,
        emulator_bus: CanInterface,
        listener: can.BusABC,
    ) -> None:
        """Two enabled sensors appear on the bus as two extended frames."""
        emulator = FuelSensorEmulator(EmulatorConfig(interval_s=INTERVAL))
        emulator.set(0, 0.25, -10)
        emulator.enable(0)
        emulator.set(3, 1.2, 220)
        emulator.enable(3)

        emulator.start(emulator_bus)
        try:
            messages = _receive(listener, 2)
        finally:
            emulator.stop()
            assert emulator.wait(timeout=2.0)

        assert len(messages) == 2
        first, second = messages
        assert first.arbitration_id == DEFAULT_BASE_ID + 1
        assert first.is_extended_id
        assert first.dlc == 8
        assert decode_payload(bytes(first.data)) == (0.25, -10)
        assert second.arbitration_id == DEFAULT_BASE_ID + 4
        assert decode_payload(bytes(second.data)) == (1.0, 215)

    def test_nothing_on_bus_after_stop(
        self,
        emulator_bus: CanInterface,
        listener: can.BusABC,
    ) -> None:
        """Once the emulator has stopped the bus stays quiet."""
        emulator = FuelSensorEmulator(EmulatorConfig(interval_s=INTERVAL))
        emulator.enable(0)
        emulator.start(emulator_bus)
        assert len(_receive(listener, 1)) == 1

        emulator.stop()
        assert emulator.wait(timeout=2.0)
        while listener.recv(timeout=0) is not None:
            pass

        assert listener.recv(timeout=INTERVAL * 4) is None

    def test_low_base_id_sent_extended(
        self,
        emulator_bus: CanInterface,
        listener: can.BusABC,
    ) -> None:
        """An extended configuration keeps 29-bit frames below 0x800."""
        emulator = FuelSensorEmulator(
            EmulatorConfig(base_id=0x100, is_extended_id=True, interval_s=INTERVAL)
        )
        emulator.enable(0)
        emulator.start(emulator_bus)
        try:
            messages = _receive(listener, 1)
        finally:
            emulator.stop()
            assert emulator.wait(timeout=2.0)

        assert len(messages) == 1
        assert messages[0].arbitration_id == 0x101
        assert messages[0].is_extended_id
