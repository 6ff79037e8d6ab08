from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .calibration import CalibrationStore
from .chance import ChanceSource, RandomChance
from .config import ICConfig, default_config
from .debug import DebugSessionController
from .power import PowerFlag
from .registers import RegisterBank
from .sensors import SensorController

logger = logging.getLogger(__name__)


class ICEngine:
    """
    Owns one simulated IC: the power line, the calibration store, the sensor
    and debug state machines and the register bank.

    Instances share nothing, so tests and callers may build as many as they
    like. Pass `chance` to replace the seeded random outcome source; `powered`
    defaults to the config's `system_powered`.
    """

    def __init__(
        self,
        *,
        powered: Optional[bool] = None,
        chance: Optional[ChanceSource] = None,
        config: Optional[ICConfig] = None,
    ) -> None:
        self.config = config or default_config()
        seed_seq = np.random.SeedSequence(self.config.seed)
        chance_seed, calibration_seed = seed_seq.spawn(2)
        self.power = PowerFlag(self.config.system_powered if powered is None else powered)
        self.chance: ChanceSource = chance or RandomChance(
            self.config.chance.as_mapping(), seed=chance_seed
        )
        self.calibrations = CalibrationStore(np.random.default_rng(calibration_seed))
        self.sensors = SensorController(self.power, self.chance, self.calibrations)
        self.debug = DebugSessionController(self.power, self.chance)
        self.registers = RegisterBank(self.power, [spec.build() for spec in self.config.registers])
        logger.debug(
            "IC engine ready (powered=%s registers=%d seed=%s)",
            self.power.powered,
            len(self.registers.addresses()),
            self.config.seed,
        )

    @classmethod
    def from_config(cls, config: ICConfig, *, chance: Optional[ChanceSource] = None) -> "ICEngine":
        return cls(powered=config.system_powered, chance=chance, config=config)
