from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from .chance import JTAG, SCAN_TEST, TEST_MODE, ChanceSource, Status
from .errors import NotInJtagMode, NotInTestMode
from .power import PowerFlag

logger = logging.getLogger(__name__)


class DebugMode(str, enum.Enum):
    IDLE = "idle"
    TEST_MODE = "test_mode"
    JTAG_MODE = "jtag_mode"


@dataclass
class DebugSession:
    mode: DebugMode = DebugMode.IDLE


class DebugSessionController:
    """
    Drives the nested debug modes: idle -> test mode -> JTAG.

    Entering a mode may fail by chance and the caller retries. A failed
    test-mode entry always drops the session back to idle, whatever it was
    before. Scan tests only have a chance of passing while in JTAG mode.
    """

    def __init__(self, power: PowerFlag, chance: ChanceSource, session: DebugSession | None = None) -> None:
        self._power = power
        self._chance = chance
        self._session = session if session is not None else DebugSession()

    @property
    def mode(self) -> DebugMode:
        return self._session.mode

    def enter_test_mode(self) -> Status:
        self._power.require("enter_test_mode")
        if not self._chance.roll(TEST_MODE):
            if self._session.mode is not DebugMode.IDLE:
                logger.warning("Test mode entry failed, leaving %s", self._session.mode.value)
            self._set(DebugMode.IDLE)
            return Status.FAILURE
        if self._session.mode is DebugMode.IDLE:
            self._set(DebugMode.TEST_MODE)
        return Status.SUCCESS

    def enter_jtag(self) -> Status:
        self._power.require("enter_jtag")
        if self._session.mode is not DebugMode.TEST_MODE:
            raise NotInTestMode(self._session.mode.value)
        if not self._chance.roll(JTAG):
            return Status.FAILURE
        self._set(DebugMode.JTAG_MODE)
        return Status.SUCCESS

    def run_scan_test(self) -> Status:
        if not self._power.powered or self._session.mode is not DebugMode.JTAG_MODE:
            logger.debug("Scan test outside JTAG mode (mode=%s)", self._session.mode.value)
            return Status.FAILURE
        return Status.from_bool(self._chance.roll(SCAN_TEST))

    def exit_jtag(self) -> None:
        self._power.require("exit_jtag")
        if self._session.mode is not DebugMode.JTAG_MODE:
            raise NotInJtagMode(self._session.mode.value)
        self._set(DebugMode.TEST_MODE)

    def exit_test_mode(self) -> None:
        self._power.require("exit_test_mode")
        if self._session.mode is not DebugMode.TEST_MODE:
            raise NotInTestMode(self._session.mode.value)
        self._set(DebugMode.IDLE)

    def _set(self, mode: DebugMode) -> None:
        if mode is not self._session.mode:
            logger.debug("Debug session %s -> %s", self._session.mode.value, mode.value)
        self._session.mode = mode
