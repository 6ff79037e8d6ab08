from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .errors import AlreadyConsumed, InvalidCalibration
from .identity import SensorIdentity, SensorKind

logger = logging.getLogger(__name__)

CALIBRATION_KEYS: Dict[SensorKind, Tuple[str, ...]] = {
    SensorKind.LIDAR: ("yaw", "pitch", "roll"),
    SensorKind.RADAR: ("yaw", "pitch", "roll", "sensitivity"),
    SensorKind.ULTRASONIC: ("range", "sensitivity"),
    SensorKind.PRESSURE: ("sensitivity",),
}

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)", re.ASCII)

# (low, high, decimals) used when generating a fresh calibration value.
_VALUE_RANGES: Dict[str, Tuple[float, float, int]] = {
    "yaw": (0.0, 1.5, 2),
    "pitch": (0.0, 1.5, 2),
    "roll": (0.0, 1.5, 2),
    "sensitivity": (1.0, 9.0, 0),
    "range": (1.0, 10.0, 0),
}


@dataclass(frozen=True)
class CalibrationRecord:
    identity: SensorIdentity
    keys: Tuple[str, ...]
    values: Tuple[str, ...]

    @property
    def keys_csv(self) -> str:
        return ",".join(self.keys)

    @property
    def values_csv(self) -> str:
        return ",".join(self.values)

    def as_mapping(self) -> Dict[str, str]:
        return dict(zip(self.keys, self.values))

    def as_text(self) -> str:
        return format_calibration(self.keys, self.values)


def format_calibration(keys: Sequence[str], values: Sequence[object]) -> str:
    if len(keys) != len(values):
        raise ValueError(f"Got {len(keys)} keys but {len(values)} values")
    return ",".join(f"{key}={value}" for key, value in zip(keys, values))


def parse_calibration(identity: SensorIdentity, text: str) -> List[float]:
    """
    Validate calibration text for the identity's kind and return its values.

    The accepted form is comma-separated ``key=value`` pairs listing exactly
    the kind's keys in order, e.g. ``yaw=0.3,pitch=1,roll=0.45``. Values must
    be plain decimals such as ``1`` or ``-0.25``.
    """
    expected = CALIBRATION_KEYS[identity.kind]
    if not isinstance(text, str) or not text.strip():
        raise InvalidCalibration(identity, "calibration text is empty")
    pairs = [item.strip() for item in text.strip().split(",")]
    keys: List[str] = []
    values: List[float] = []
    for pair in pairs:
        if "=" not in pair:
            raise InvalidCalibration(identity, f"entry '{pair}' must use key=value syntax")
        key, raw_value = pair.split("=", 1)
        keys.append(key.strip().lower())
        raw_value = raw_value.strip()
        if not _DECIMAL.fullmatch(raw_value):
            raise InvalidCalibration(identity, f"value '{raw_value}' for '{key.strip()}' is not a plain decimal number")
        values.append(float(raw_value))
    if tuple(keys) != expected:
        raise InvalidCalibration(
            identity, f"expected keys {','.join(expected)}, got {','.join(keys)}"
        )
    return values


class CalibrationStore:
    """Write-once, read-once calibration records keyed by sensor identity."""

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()
        self._records: Dict[SensorIdentity, CalibrationRecord] = {}

    def fetch_calibration(self, identity: SensorIdentity) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        if identity in self._records:
            raise AlreadyConsumed(identity)
        record = self._generate(identity)
        self._records[identity] = record
        logger.info("Issued calibration for %s (%s)", identity, record.keys_csv)
        return record.keys, record.values

    def is_consumed(self, identity: SensorIdentity) -> bool:
        return identity in self._records

    def record(self, identity: SensorIdentity) -> Optional[CalibrationRecord]:
        return self._records.get(identity)

    def __len__(self) -> int:
        return len(self._records)

    def _generate(self, identity: SensorIdentity) -> CalibrationRecord:
        keys = CALIBRATION_KEYS[identity.kind]
        values: List[str] = []
        for key in keys:
            low, high, decimals = _VALUE_RANGES[key]
            raw = float(np.round(self._rng.uniform(low, high), decimals))
            values.append(f"{raw:g}")
        return CalibrationRecord(identity=identity, keys=keys, values=tuple(values))
