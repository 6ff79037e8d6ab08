"""Caller-side sequencing: bounded retries around the IC's probabilistic operations."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .ic.calibration import format_calibration
from .ic.chance import Status
from .ic.debug import DebugMode
from .ic.engine import ICEngine
from .ic.identity import SensorIdentity

logger = logging.getLogger(__name__)


@dataclass
class AttemptResult:
    label: str
    status: Status
    attempts: int

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS


@dataclass
class SensorCycleResult:
    identity: SensorIdentity
    calibration: str = ""
    power_up: Optional[AttemptResult] = None
    readings: List[float] = field(default_factory=list)
    completed: bool = False


@dataclass
class DebugCycleResult:
    test_mode: Optional[AttemptResult] = None
    jtag: Optional[AttemptResult] = None
    scan_test: Optional[AttemptResult] = None
    final_mode: DebugMode = DebugMode.IDLE

    @property
    def completed(self) -> bool:
        return self.scan_test is not None and self.scan_test.ok


@dataclass
class RegisterWrite:
    addr: int
    requested: int
    before: int
    after: int
    skipped: bool = False


@dataclass
class SessionReport:
    sensors: List[SensorCycleResult] = field(default_factory=list)
    debug: Optional[DebugCycleResult] = None
    registers: List[RegisterWrite] = field(default_factory=list)


def retry(operation: Callable[[], Status], attempts: int, label: str = "operation") -> AttemptResult:
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    status = Status.FAILURE
    used = 0
    for used in range(1, attempts + 1):
        status = operation()
        if status is Status.SUCCESS:
            logger.info("%s succeeded after %d attempt(s)", label, used)
            break
        logger.info("%s failed (attempt %d/%d)", label, used, attempts)
    else:
        logger.warning("%s did not succeed within %d attempts", label, attempts)
    return AttemptResult(label=label, status=status, attempts=used)


def run_sensor_cycle(
    engine: ICEngine,
    identity: SensorIdentity,
    *,
    attempts: int,
    reads: int = 1,
) -> SensorCycleResult:
    result = SensorCycleResult(identity=identity)
    keys, values = engine.calibrations.fetch_calibration(identity)
    result.calibration = format_calibration(keys, values)
    logger.info("Fetched calibration for %s: %s", identity, result.calibration)

    result.power_up = retry(lambda: engine.sensors.power_up(identity), attempts, f"power_up {identity}")
    if not result.power_up.ok:
        return result

    engine.sensors.apply_calibration(identity, result.calibration)
    for _ in range(reads):
        result.readings.append(engine.sensors.read(identity))
    engine.sensors.power_down(identity)
    result.completed = True
    logger.info("Sensor %s cycle complete (%d reading(s))", identity, len(result.readings))
    return result


def run_debug_cycle(engine: ICEngine, *, attempts: int) -> DebugCycleResult:
    """
    Enter test mode and JTAG, run the scan test, then back out again.

    Whatever modes were reached are exited even when a later step runs out
    of attempts, so the session always ends idle.
    """
    debug = engine.debug
    result = DebugCycleResult()
    result.test_mode = retry(debug.enter_test_mode, attempts, "enter_test_mode")
    if result.test_mode.ok:
        result.jtag = retry(debug.enter_jtag, attempts, "enter_jtag")
        if result.jtag.ok:
            result.scan_test = retry(debug.run_scan_test, attempts, "run_scan_test")
            debug.exit_jtag()
        debug.exit_test_mode()
    result.final_mode = debug.mode
    return result


def probe_registers(engine: ICEngine, writes: Sequence[Tuple[int, int]]) -> List[RegisterWrite]:
    bank = engine.registers
    read_only = {reg.addr for reg in bank.snapshot() if reg.read_only}
    results: List[RegisterWrite] = []
    for addr, data in writes:
        before = bank.read_register(addr)
        if addr in read_only:
            logger.warning("Skipping write to read-only register 0x%X", addr)
            results.append(RegisterWrite(addr, data, before, before, skipped=True))
            continue
        bank.write_register(addr, data)
        after = bank.read_register(addr)
        logger.info("reg 0x%X: wrote 0x%04X, read back 0x%04X", addr, data, after)
        results.append(RegisterWrite(addr, data, before, after))
    return results


def run_session(
    engine: ICEngine,
    identities: Sequence[SensorIdentity],
    *,
    attempts: int,
    reads: int = 1,
    writes: Sequence[Tuple[int, int]] = (),
    debug: bool = True,
) -> SessionReport:
    report = SessionReport()
    for identity in identities:
        report.sensors.append(run_sensor_cycle(engine, identity, attempts=attempts, reads=reads))
    if debug:
        report.debug = run_debug_cycle(engine, attempts=attempts)
    report.registers = probe_registers(engine, writes)
    return report
