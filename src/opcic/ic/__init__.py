"""
Simulation of the fantasy IC control surface.

The subpackage exposes the sensor lifecycle, debug-session and register-bank
state machines together with the `ICEngine` context that wires them to a
shared power line and outcome source.
"""

from .calibration import CalibrationRecord, CalibrationStore, format_calibration, parse_calibration
from .chance import RandomChance, ScriptedChance, Status
from .config import ChanceConfig, DriverConfig, ICConfig, RegisterSpec, default_config, load_config
from .debug import DebugMode, DebugSessionController
from .engine import ICEngine
from .errors import (
    AlreadyConsumed,
    ICError,
    InvalidAddress,
    InvalidCalibration,
    NotEnabled,
    NotInJtagMode,
    NotInTestMode,
    NotPowered,
    NotPoweredSensor,
    ReadOnlyAddress,
)
from .identity import SensorIdentity, SensorKind
from .power import PowerFlag
from .registers import Register, RegisterBank
from .sensors import SensorController, SensorRecord, SensorState

__all__ = [
    "CalibrationRecord",
    "CalibrationStore",
    "format_calibration",
    "parse_calibration",
    "RandomChance",
    "ScriptedChance",
    "Status",
    "ChanceConfig",
    "DriverConfig",
    "ICConfig",
    "RegisterSpec",
    "default_config",
    "load_config",
    "DebugMode",
    "DebugSessionController",
    "ICEngine",
    "ICError",
    "AlreadyConsumed",
    "InvalidAddress",
    "InvalidCalibration",
    "NotEnabled",
    "NotInJtagMode",
    "NotInTestMode",
    "NotPowered",
    "NotPoweredSensor",
    "ReadOnlyAddress",
    "SensorIdentity",
    "SensorKind",
    "PowerFlag",
    "Register",
    "RegisterBank",
    "SensorController",
    "SensorRecord",
    "SensorState",
]
