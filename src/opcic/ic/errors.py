from __future__ import annotations


class ICError(RuntimeError):
    """Base class for contract violations reported by the IC engine."""


class NotPowered(ICError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"System is not powered up (operation '{operation}')")
        self.operation = operation


class NotPoweredSensor(ICError):
    def __init__(self, identity: object, state: str) -> None:
        super().__init__(f"Sensor {identity} must be powered before calibration (state={state})")
        self.identity = identity
        self.state = state


class InvalidCalibration(ICError):
    def __init__(self, identity: object, reason: str) -> None:
        super().__init__(f"Invalid calibration for {identity}: {reason}")
        self.identity = identity
        self.reason = reason


class NotEnabled(ICError):
    def __init__(self, identity: object, state: str) -> None:
        super().__init__(f"Sensor {identity} is not enabled (state={state})")
        self.identity = identity
        self.state = state


class AlreadyConsumed(ICError):
    def __init__(self, identity: object) -> None:
        super().__init__(f"Calibration for {identity} was already fetched")
        self.identity = identity


class NotInTestMode(ICError):
    def __init__(self, mode: str) -> None:
        super().__init__(f"Operation requires test mode (current mode={mode})")
        self.mode = mode


class NotInJtagMode(ICError):
    def __init__(self, mode: str) -> None:
        super().__init__(f"Operation requires JTAG mode (current mode={mode})")
        self.mode = mode


class InvalidAddress(ICError):
    def __init__(self, addr: int) -> None:
        super().__init__(f"Invalid register address {_fmt_addr(addr)}")
        self.addr = addr


class ReadOnlyAddress(ICError):
    def __init__(self, addr: int) -> None:
        super().__init__(f"Register {_fmt_addr(addr)} is read-only")
        self.addr = addr


def _fmt_addr(addr: object) -> str:
    if isinstance(addr, int) and addr >= 0:
        return f"0x{addr:X}"
    return repr(addr)
