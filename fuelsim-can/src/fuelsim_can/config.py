"""YAML configuration loading for the fuel sensor emulator.

Example YAML configuration:
    can:
      interface: socketcan
      channel: vcan0
      bitrate: 250000

    emulator:
      base_id: 0x0CF60664
      num_channels: 8
      interval_s: 1.0

    sensors:
      - index: 0
        level: 0.25
        temperature: -10
      - index: 3
        level: 1.2
        temperature: 220
        enabled: false
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from fuelsim_can.can_interface import CanConfig
from fuelsim_can.channels import ChannelStore
from fuelsim_can.emulator import EmulatorConfig
from fuelsim_can.errors import ConfigError


@dataclass(frozen=True)
class SensorConfig:
    """Initial state of one emulated sensor channel.

    Attributes:
        index: Channel index (0-based).
        level: Fill fraction.
        temperature: Temperature in degrees Celsius.
        enabled: Enable the channel at startup.
    """

    index: int
    level: float = 0.0
    temperature: int = 0
    enabled: bool = True


@dataclass(frozen=True)
class FuelsimConfig:
    """Top-level configuration combining bus, emulator and sensor settings.

    Attributes:
        can: CAN interface configuration.
        emulator: Emulator configuration.
        sensors: Initial channel settings.
        source_path: File the configuration was loaded from, if any.
    """

    can: CanConfig = field(default_factory=CanConfig)
    emulator: EmulatorConfig = field(default_factory=EmulatorConfig)
    sensors: tuple[SensorConfig, ...] = field(default_factory=tuple)
    source_path: Path | None = None

    def create_store(self) -> ChannelStore:
        """Create a channel store populated from the sensors section."""
        store = ChannelStore(self.emulator.num_channels)
        self.apply(store)
        return store

    def apply(self, store: ChannelStore) -> None:
        """Copy the sensors section into an existing channel store.

        Args:
            store: Store to update. Sensors outside its range are ignored.
        """
        for sensor in self.sensors:
            store.set(sensor.index, sensor.level, sensor.temperature)
            if sensor.enabled:
                store.enable(sensor.index)
            else:
                store.disable(sensor.index)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{name} must be a mapping")
    return section


def _flag(section: dict[str, Any], name: str, default: bool) -> bool:
    value = section.get(name, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false, got {value!r}")
    return value


def _parse_can(data: dict[str, Any]) -> CanConfig:
    section = _section(data, "can")
    defaults = CanConfig()
    try:
        return CanConfig(
            interface=str(section.get("interface", defaults.interface)),
            channel=str(section.get("channel", defaults.channel)),
            bitrate=int(section.get("bitrate", defaults.bitrate)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid can section: {exc}") from exc


def _parse_emulator(data: dict[str, Any]) -> EmulatorConfig:
    section = _section(data, "emulator")
    defaults = EmulatorConfig()
    try:
        return EmulatorConfig(
            base_id=int(section.get("base_id", defaults.base_id)),
            num_channels=int(section.get("num_channels", defaults.num_channels)),
            interval_s=float(section.get("interval_s", defaults.interval_s)),
            is_extended_id=_flag(section, "is_extended_id", defaults.is_extended_id),
            simultaneous=_flag(section, "simultaneous", defaults.simultaneous),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid emulator section: {exc}") from exc


def _parse_sensors(data: dict[str, Any], num_channels: int) -> tuple[SensorConfig, ...]:
    sensors_data = data.get("sensors") or []
    if not isinstance(sensors_data, list):
        raise ConfigError("sensors must be a list")

    sensors: list[SensorConfig] = []
    seen: set[int] = set()
    for i, entry in enumerate(sensors_data):
        if not isinstance(entry, dict):
            raise ConfigError(f"sensors[{i}] must be a mapping")
        if "index" not in entry:
            raise ConfigError(f"sensors[{i}] missing required field: index")
        try:
            sensor = SensorConfig(
                index=int(entry["index"]),
                level=float(entry.get("level", 0.0)),
                temperature=int(entry.get("temperature", 0)),
                enabled=_flag(entry, "enabled", True),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"sensors[{i}] is invalid: {exc}") from exc

        if not 0 <= sensor.index < num_channels:
            raise ConfigError(
                f"sensors[{i}] index {sensor.index} out of range (0-{num_channels - 1})"
            )
        if sensor.index in seen:
            raise ConfigError(f"sensors[{i}] duplicates index {sensor.index}")
        seen.add(sensor.index)
        sensors.append(sensor)

    return tuple(sensors)


def parse_config(data: dict[str, Any], source_path: Path | None = None) -> FuelsimConfig:
    """Build a configuration from an already-parsed mapping.

    Args:
        data: Mapping with optional ``can``, ``emulator`` and ``sensors`` keys.
        source_path: File the mapping came from, if any.

    Returns:
        Parsed configuration.

    Raises:
        ConfigError: If any section is malformed.
    """
    if not isinstance(data, dict):
        raise ConfigError("Config must be a YAML mapping")

    emulator = _parse_emulator(data)
    return FuelsimConfig(
        can=_parse_can(data),
        emulator=emulator,
        sensors=_parse_sensors(data, emulator.num_channels),
        source_path=source_path,
    )


def load_config(path: str | Path) -> FuelsimConfig:
    """Load emulator configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigError: If the config is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        data = {}
    return parse_config(data, source_path=path)
