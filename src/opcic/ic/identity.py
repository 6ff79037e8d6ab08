from __future__ import annotations

import enum
from dataclasses import dataclass


class SensorKind(str, enum.Enum):
    LIDAR = "lidar"
    RADAR = "radar"
    ULTRASONIC = "ultrasonic"
    PRESSURE = "pressure"

    @classmethod
    def parse(cls, text: str) -> "SensorKind":
        key = text.strip().lower()
        for kind in cls:
            if kind.value == key:
                return kind
        raise ValueError(f"Unknown sensor kind '{text}'. Expected one of {[k.value for k in cls]}")


@dataclass(frozen=True)
class SensorIdentity:
    kind: SensorKind
    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, SensorKind):
            object.__setattr__(self, "kind", SensorKind.parse(str(self.kind)))
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Sensor name must be non-empty text")

    @staticmethod
    def parse(text: str) -> "SensorIdentity":
        """Build an identity from `kind:name` text, e.g. ``lidar:XY37``."""
        if ":" not in text:
            raise ValueError(f"Sensor '{text}' must use kind:name syntax")
        kind, name = text.split(":", 1)
        return SensorIdentity(SensorKind.parse(kind), name)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.name}"
