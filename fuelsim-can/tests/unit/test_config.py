"""Unit tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from fuelsim_can.can_interface import CanConfig
from fuelsim_can.channels import ChannelStore
from fuelsim_can.config import FuelsimConfig, SensorConfig, load_config, parse_config
from fuelsim_can.emulator import EmulatorConfig
from fuelsim_can.errors import ConfigError

FULL_CONFIG = """
can:
  interface: virtual
  channel: vcan0
  bitrate: 250000

emulator:
  base_id: 0x0CF60664
  num_channels: 8
  interval_s: 0.5

sensors:
  - index: 0
    level: 0.25
    temperature: -10
  - index: 3
    level: 1.2
    temperature: 220
    enabled: false
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "fuelsim.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestSensorConfig:
    def test_defaults(self) -> None:
        sensor = SensorConfig(index=2)
        assert sensor.level == 0.0
        assert sensor.temperature == 0
        assert sensor.enabled is True

    def test_frozen(self) -> None:
        sensor = SensorConfig(index=2)
        with pytest.raises(AttributeError):
            sensor.index = 3  # type: ignore[misc]


class TestFuelsimConfig:
    def test_defaults(self) -> None:
        config = FuelsimConfig()
        assert config.can == CanConfig()
        assert config.emulator == EmulatorConfig()
        assert config.sensors == ()
        assert config.source_path is None

    def test_create_store(self) -> None:
        config = FuelsimConfig(
            sensors=(
                SensorConfig(index=1, level=0.5, temperature=30),
                SensorConfig(index=2, level=0.1, temperature=5, enabled=False),
            )
        )
        store = config.create_store()

        assert store.num_channels == 8
        assert store.enabled_indices() == [1]
        assert store.get(2).level == 0.1  # type: ignore[union-attr]

    def test_apply_disables_channel(self) -> None:
        store = ChannelStore()
        store.enable(4)
        FuelsimConfig(sensors=(SensorConfig(index=4, enabled=False),)).apply(store)
        assert store.enabled_indices() == []


class TestLoadConfig:
    def test_load_full_config(self, tmp_path: Path) -> None:
        path = _write(tmp_path, FULL_CONFIG)
        config = load_config(path)

        assert config.can == CanConfig(interface="virtual", channel="vcan0", bitrate=250000)
        assert config.emulator.base_id == 0x0CF60664
        assert config.emulator.interval_s == 0.5
        assert config.sensors == (
            SensorConfig(index=0, level=0.25, temperature=-10, enabled=True),
            SensorConfig(index=3, level=1.2, temperature=220, enabled=False),
        )
        assert config.source_path == path

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, ""))
        assert config.can == CanConfig()
        assert config.emulator == EmulatorConfig()
        assert config.sensors == ()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(_write(tmp_path, "can: [unclosed"))

    def test_not_a_mapping_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="must be a YAML mapping"):
            load_config(_write(tmp_path, "- 1\n- 2\n"))

    def test_invalid_emulator_values_raise(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="interval_s"):
            load_config(_write(tmp_path, "emulator:\n  interval_s: 0\n"))

    def test_non_numeric_bitrate_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid can section"):
            load_config(_write(tmp_path, "can:\n  bitrate: fast\n"))


class TestParseConfig:
    def test_sensor_missing_index_raises(self) -> None:
        with pytest.raises(ConfigError, match="missing required field: index"):
            parse_config({"sensors": [{"level": 0.5}]})

    def test_sensor_index_out_of_range_raises(self) -> None:
        with pytest.raises(ConfigError, match="out of range"):
            parse_config({"sensors": [{"index": 8}]})

    def test_sensor_index_respects_channel_count(self) -> None:
        config = parse_config({"emulator": {"num_channels": 12}, "sensors": [{"index": 11}]})
        assert config.sensors[0].index == 11

    def test_duplicate_sensor_raises(self) -> None:
        with pytest.raises(ConfigError, match="duplicates index 1"):
            parse_config({"sensors": [{"index": 1}, {"index": 1}]})

    def test_sensors_not_a_list_raises(self) -> None:
        with pytest.raises(ConfigError, match="sensors must be a list"):
            parse_config({"sensors": {"index": 1}})

    def test_section_not_a_mapping_raises(self) -> None:
        with pytest.raises(ConfigError, match="can must be a mapping"):
            parse_config({"can": "vcan0"})

    @pytest.mark.parametrize(
        "data",
        [
            {"emulator": {"simultaneous": "false"}},
            {"emulator": {"is_extended_id": 1}},
            {"sensors": [{"index": 0, "enabled": "no"}]},
        ],
    )
    def test_non_boolean_flags_raise(self, data: dict) -> None:
        with pytest.raises(ConfigError, match="must be true or false"):
            parse_config(data)

    def test_boolean_flags(self) -> None:
        config = parse_config(
            {"emulator": {"simultaneous": True}, "sensors": [{"index": 0, "enabled": False}]}
        )
        assert config.emulator.simultaneous is True
        assert config.sensors[0].enabled is False

    def test_out_of_range_values_are_kept(self) -> None:
        """Level and temperature are not clamped at load time."""
        config = parse_config({"sensors": [{"index": 0, "level": 1.5, "temperature": 300}]})
        assert config.sensors[0].level == 1.5
        assert config.sensors[0].temperature == 300
