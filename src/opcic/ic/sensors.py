"""
Per-sensor power and calibration lifecycle.

Each sensor identity walks ``unpowered -> powered -> calibrated -> unpowered``.
Records live in a `SensorRegistry` and are created the first time an
operation mentions the identity.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

import numpy as np

from .calibration import CalibrationStore, parse_calibration
from .chance import POWER_UP, ChanceSource, Status
from .errors import NotEnabled, NotPoweredSensor
from .identity import SensorIdentity, SensorKind
from .power import PowerFlag

logger = logging.getLogger(__name__)

NOMINAL_READING: Dict[SensorKind, float] = {
    SensorKind.LIDAR: 12.5,
    SensorKind.RADAR: 48.0,
    SensorKind.ULTRASONIC: 2.4,
    SensorKind.PRESSURE: 101.325,
}


class PowerState(str, enum.Enum):
    UNPOWERED = "unpowered"
    POWERED = "powered"


class SensorState(str, enum.Enum):
    UNPOWERED = "unpowered"
    POWERED = "powered"
    CALIBRATED = "calibrated"


@dataclass
class SensorRecord:
    identity: SensorIdentity
    power_state: PowerState = PowerState.UNPOWERED
    calib_applied: bool = False
    calib_consumed: bool = False
    calibration: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def state(self) -> SensorState:
        if self.power_state is PowerState.UNPOWERED:
            return SensorState.UNPOWERED
        if self.calib_applied:
            return SensorState.CALIBRATED
        return SensorState.POWERED


class SensorRegistry:
    """One record per identity, created lazily and never removed."""

    def __init__(self) -> None:
        self._records: Dict[SensorIdentity, SensorRecord] = {}

    def get(self, identity: SensorIdentity) -> SensorRecord:
        record = self._records.get(identity)
        if record is None:
            record = SensorRecord(identity=identity)
            self._records[identity] = record
        return record

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def __iter__(self) -> Iterator[SensorRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)


class SensorController:
    def __init__(
        self,
        power: PowerFlag,
        chance: ChanceSource,
        calibrations: CalibrationStore,
        registry: SensorRegistry | None = None,
    ) -> None:
        self._power = power
        self._chance = chance
        self._calibrations = calibrations
        self._registry = registry if registry is not None else SensorRegistry()

    def power_up(self, identity: SensorIdentity) -> Status:
        self._power.require("power_up")
        record = self._registry.get(identity)
        if record.power_state is PowerState.POWERED:
            logger.debug("%s already powered (state=%s)", identity, record.state.value)
            return Status.SUCCESS
        if not self._chance.roll(POWER_UP):
            logger.debug("%s power-up attempt failed", identity)
            return Status.FAILURE
        record.power_state = PowerState.POWERED
        record.calib_applied = False
        logger.debug("%s powered", identity)
        return Status.SUCCESS

    def apply_calibration(self, identity: SensorIdentity, calibration: str) -> None:
        self._power.require("apply_calibration")
        record = self._registry.get(identity)
        if record.state is not SensorState.POWERED:
            raise NotPoweredSensor(identity, record.state.value)
        values = parse_calibration(identity, calibration)
        record.calibration = tuple(values)
        record.calib_applied = True
        logger.debug("%s calibrated with %s", identity, calibration)

    def power_down(self, identity: SensorIdentity) -> None:
        self._power.require("power_down")
        record = self._require_enabled(identity)
        record.power_state = PowerState.UNPOWERED
        record.calib_applied = False
        record.calibration = ()
        logger.debug("%s powered down", identity)

    def read(self, identity: SensorIdentity) -> float:
        self._power.require("read")
        record = self._require_enabled(identity)
        gain = 1.0 + 0.01 * float(np.mean(record.calibration))
        return float(NOMINAL_READING[identity.kind] * gain)

    def state(self, identity: SensorIdentity) -> SensorState:
        return self.record(identity).state

    def status(self, identity: SensorIdentity) -> Status:
        if self.state(identity) is SensorState.CALIBRATED:
            return Status.ENABLED
        return Status.DISABLED

    def record(self, identity: SensorIdentity) -> SensorRecord:
        record = self._registry.get(identity)
        record.calib_consumed = self._calibrations.is_consumed(identity)
        return record

    def records(self) -> List[SensorRecord]:
        return [self.record(item.identity) for item in self._registry]

    def _require_enabled(self, identity: SensorIdentity) -> SensorRecord:
        record = self._registry.get(identity)
        if record.state is not SensorState.CALIBRATED:
            raise NotEnabled(identity, record.state.value)
        return record
