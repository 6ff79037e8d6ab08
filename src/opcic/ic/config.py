from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .chance import OPERATIONS
from .registers import Register, default_registers


@dataclass
class ChanceConfig:
    power_up: float = 0.5
    test_mode: float = 0.5
    jtag: float = 0.5
    scan_test: float = 0.5

    def as_mapping(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in OPERATIONS}

    def validate(self) -> None:
        for name, value in self.as_mapping().items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"chance.{name} must be within [0, 1], got {value}")


@dataclass
class DriverConfig:
    attempts: int = 5
    reads: int = 1

    def validate(self) -> None:
        if self.attempts < 1:
            raise ValueError("driver.attempts must be at least 1")
        if self.reads < 0:
            raise ValueError("driver.reads may not be negative")


@dataclass
class RegisterSpec:
    addr: int
    value: int
    writable_mask: int
    name: str = ""

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "RegisterSpec":
        if not isinstance(data, dict):
            raise ValueError(f"register entry must be a mapping, got {data!r}")
        missing = [key for key in ("addr", "value", "writable_mask") if key not in data]
        if missing:
            raise ValueError(f"register entry requires fields {missing}")
        return RegisterSpec(
            addr=_as_int(data["addr"]),
            value=_as_int(data["value"]),
            writable_mask=_as_int(data["writable_mask"]),
            name=str(data.get("name", "")),
        )

    def build(self) -> Register:
        return Register(self.addr, self.value, self.writable_mask, self.name)


def _default_register_specs() -> List[RegisterSpec]:
    return [RegisterSpec(r.addr, r.value, r.writable_mask, r.name) for r in default_registers()]


@dataclass
class ICConfig:
    system_powered: bool = True
    seed: Optional[int] = None
    chance: ChanceConfig = field(default_factory=ChanceConfig)
    registers: List[RegisterSpec] = field(default_factory=_default_register_specs)
    driver: DriverConfig = field(default_factory=DriverConfig)

    def validate(self) -> "ICConfig":
        self.chance.validate()
        self.driver.validate()
        seen: set[int] = set()
        for spec in self.registers:
            if spec.addr in seen:
                raise ValueError(f"Duplicate register address 0x{spec.addr:X}")
            seen.add(spec.addr)
        return self


def default_config() -> ICConfig:
    return ICConfig()


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {**base}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)  # type: ignore[index]
        else:
            merged[key] = value
    return merged


def load_config(path: Path | str | None = None, overrides: Sequence[str] | None = None) -> ICConfig:
    """
    Load an IC configuration from JSON and apply CLI-style overrides.

    Overrides are expressed as dotted `key=value` pairs, e.g.:
        ["chance.power_up=0.9", "driver.attempts=10", "seed=7"]
    With no path the built-in defaults are used as the base.
    """
    data: Dict[str, Any] = _load_json(Path(path)) if path is not None else {}
    override_data: Dict[str, Any] = {}
    for override in overrides or []:
        key, raw_value = _parse_override(override)
        _assign_nested(override_data, key, raw_value)
    merged = _merge(data, override_data)
    defaults = ChanceConfig()
    chance_data = _section(merged, "chance")
    driver_data = _section(merged, "driver")
    seed = merged.get("seed")
    register_data = merged.get("registers")
    if register_data is not None and not isinstance(register_data, list):
        raise ValueError("registers must be a list of register entries")
    config = ICConfig(
        system_powered=_as_bool(merged.get("system_powered", True)),
        seed=None if seed is None else int(seed),
        chance=ChanceConfig(
            **{name: float(chance_data.get(name, getattr(defaults, name))) for name in OPERATIONS}
        ),
        registers=(
            [RegisterSpec.from_mapping(item) for item in register_data]
            if register_data is not None
            else _default_register_specs()
        ),
        driver=DriverConfig(
            attempts=int(driver_data.get("attempts", 5)),
            reads=int(driver_data.get("reads", 1)),
        ),
    )
    return config.validate()


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a mapping, got {value!r}")
    return value


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip(), 0)
    raise ValueError(f"Expected an integer, got {value!r}")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _parse_override(item: str) -> tuple[str, Any]:
    if "=" not in item:
        raise ValueError(f"Override '{item}' must use key=value syntax")
    key, raw_value = item.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError("Override key may not be empty")
    value = _coerce_value(raw_value.strip())
    return key, value


def _coerce_value(raw: str) -> Any:
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    if raw.lower() in {"null", "none"}:
        return None
    try:
        if raw.lower().startswith("0x"):
            return int(raw, 16)
        if "." in raw or "e" in raw.lower():
            return float(raw)
        return int(raw)
    except ValueError:
        pass
    if raw.startswith("[") and raw.endswith("]"):
        return json.loads(raw)
    if raw.startswith("{") and raw.endswith("}"):
        return json.loads(raw)
    return raw


def _assign_nested(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    cursor = target
    parts = dotted_key.split(".")
    for part in parts[:-1]:
        cursor = cursor.setdefault(part, {})
        if not isinstance(cursor, dict):
            raise ValueError(f"Override '{dotted_key}' conflicts with a scalar value for '{part}'")
    cursor[parts[-1]] = value
