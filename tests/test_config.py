from __future__ import annotations

from pathlib import Path

import pytest

from opcic.ic.chance import RandomChance
from opcic.ic.config import ICConfig, load_config
from opcic.ic.engine import ICEngine
from opcic.ic.errors import NotPowered

SAMPLE_CONFIG = Path(__file__).resolve().parents[1] / "config" / "ic.json"


def test_sample_config_matches_defaults() -> None:
    cfg = load_config(SAMPLE_CONFIG)
    assert isinstance(cfg, ICConfig)
    assert cfg.system_powered is True
    assert cfg.driver.attempts == 5
    assert [spec.addr for spec in cfg.registers] == [0, 1, 2, 3, 4, 5]
    assert cfg.registers[3].writable_mask == 0xFFFF
    assert cfg.registers == ICConfig().registers


def test_load_config_overrides(tmp_path: Path) -> None:
    cfg_path = tmp_path / "ic.json"
    cfg_path.write_text(
        """
        {
          "seed": 3,
          "chance": {"power_up": 0.25},
          "registers": [
            {"addr": "0x10", "value": "0xFF00", "writable_mask": "0x00FF", "name": "MIXED"},
            {"addr": 17, "value": 0, "writable_mask": 0}
          ]
        }
        """,
        encoding="utf-8",
    )
    cfg = load_config(cfg_path, overrides=["chance.jtag=0.9", "driver.attempts=12", "system_powered=false"])
    assert cfg.seed == 3
    assert cfg.chance.power_up == 0.25
    assert cfg.chance.jtag == 0.9
    assert cfg.chance.test_mode == 0.5
    assert cfg.driver.attempts == 12
    assert cfg.system_powered is False
    assert [(spec.addr, spec.value, spec.writable_mask) for spec in cfg.registers] == [
        (0x10, 0xFF00, 0x00FF),
        (0x11, 0, 0),
    ]


def test_load_config_without_file_uses_defaults() -> None:
    cfg = load_config(overrides=["seed=0x2A"])
    assert cfg.seed == 42
    assert cfg.chance.as_mapping() == {"power_up": 0.5, "test_mode": 0.5, "jtag": 0.5, "scan_test": 0.5}


@pytest.mark.parametrize(
    "override",
    [
        "chance.power_up=1.5",
        "driver.attempts=0",
        "driver.reads=-1",
        "nonsense",
        "chance=0.9",
        "driver=3",
        "registers=5",
        "registers=[1]",
    ],
)
def test_load_config_rejects_bad_values(override: str) -> None:
    with pytest.raises(ValueError):
        load_config(overrides=[override])


def test_scalar_override_conflicting_with_nested_key_rejected() -> None:
    with pytest.raises(ValueError):
        load_config(overrides=["chance=0.9", "chance.jtag=1.0"])


def test_non_mapping_section_in_file_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "ic.json"
    cfg_path.write_text('{"driver": [5, 1]}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(cfg_path)


def test_duplicate_register_addresses_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "dup.json"
    cfg_path.write_text(
        '{"registers": [{"addr": 1, "value": 0, "writable_mask": 0}, {"addr": "0x1", "value": 0, "writable_mask": 0}]}',
        encoding="utf-8",
    )
    with pytest.raises(ValueError):
        load_config(cfg_path)


def test_engine_from_config_wires_power_and_registers() -> None:
    cfg = load_config(overrides=["system_powered=false"])
    engine = ICEngine.from_config(cfg)
    with pytest.raises(NotPowered):
        engine.registers.read_register(0x3)


def test_engine_constructor_defaults_power_to_config() -> None:
    engine = ICEngine(config=ICConfig(system_powered=False))
    assert engine.power.powered is False
    with pytest.raises(NotPowered):
        engine.registers.read_register(0x3)
    with pytest.raises(NotPowered):
        engine.debug.enter_test_mode()


def test_engine_constructor_power_argument_overrides_config() -> None:
    engine = ICEngine(powered=True, config=ICConfig(system_powered=False))
    assert engine.power.powered is True
    assert engine.registers.read_register(0x3) == 0


def test_seeded_engines_repeat_outcomes() -> None:
    cfg = load_config(overrides=["seed=11"])
    first = ICEngine.from_config(cfg)
    second = ICEngine.from_config(cfg)
    assert isinstance(first.chance, RandomChance)
    rolls_a = [first.chance.roll("power_up") for _ in range(20)]
    rolls_b = [second.chance.roll("power_up") for _ in range(20)]
    assert rolls_a == rolls_b


def test_certain_and_impossible_probabilities() -> None:
    always = RandomChance({"jtag": 1.0, "scan_test": 0.0}, seed=1)
    assert all(always.roll("jtag") for _ in range(50))
    assert not any(always.roll("scan_test") for _ in range(50))
    with pytest.raises(ValueError):
        RandomChance({"jtag": -0.1})
