from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List

from .errors import InvalidAddress, ReadOnlyAddress
from .power import PowerFlag

logger = logging.getLogger(__name__)

WORD_MASK = 0xFFFF


@dataclass
class Register:
    addr: int
    value: int
    writable_mask: int
    name: str = ""
    reset_value: int | None = None

    def __post_init__(self) -> None:
        for label, raw in (("addr", self.addr), ("value", self.value), ("writable_mask", self.writable_mask)):
            _check_word(label, raw)
        if self.reset_value is None:
            self.reset_value = self.value

    @property
    def read_only(self) -> bool:
        return self.writable_mask == 0

    def merge(self, data: int) -> int:
        return (self.value & ~self.writable_mask & WORD_MASK) | (data & self.writable_mask)


def default_registers() -> List[Register]:
    return [
        Register(0x0, 0x1C37, 0x0000, "CHIP_ID"),
        Register(0x1, 0x8001, 0x00F0, "STATUS"),
        Register(0x2, 0x0000, 0x0FFF, "CONTROL"),
        Register(0x3, 0x0000, 0xFFFF, "SCRATCH"),
        Register(0x4, 0x0A00, 0xFF00, "SENSOR_CFG"),
        Register(0x5, 0x0000, 0x000F, "DEBUG_CTRL"),
    ]


class RegisterBank:
    """Fixed set of 16-bit registers. Bits outside a register's writable mask survive every write."""

    def __init__(self, power: PowerFlag, registers: Iterable[Register] | None = None) -> None:
        self._power = power
        self._registers: Dict[int, Register] = {}
        for register in registers if registers is not None else default_registers():
            if register.addr in self._registers:
                raise ValueError(f"Duplicate register address 0x{register.addr:X}")
            self._registers[register.addr] = register

    def read_register(self, addr: int) -> int:
        self._power.require("read_register")
        return self._lookup(addr).value

    def write_register(self, addr: int, data: int) -> None:
        self._power.require("write_register")
        register = self._lookup(addr)
        if register.read_only:
            raise ReadOnlyAddress(addr)
        _check_word("data", data)
        old = register.value
        register.value = register.merge(data)
        logger.debug("reg 0x%X: 0x%04X -> 0x%04X (data=0x%04X mask=0x%04X)", addr, old, register.value, data, register.writable_mask)

    def addresses(self) -> List[int]:
        return sorted(self._registers)

    def snapshot(self) -> List[Register]:
        return [replace(self._registers[addr]) for addr in self.addresses()]

    def reset(self) -> None:
        for register in self._registers.values():
            register.value = register.reset_value  # type: ignore[assignment]

    def _lookup(self, addr: int) -> Register:
        valid_type = isinstance(addr, int) and not isinstance(addr, bool)
        register = self._registers.get(addr) if valid_type else None
        if register is None:
            raise InvalidAddress(addr)
        return register


def _check_word(label: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= WORD_MASK:
        raise ValueError(f"{label} must be a 16-bit unsigned integer, got {value!r}")
