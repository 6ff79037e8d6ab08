from __future__ import annotations

from .errors import NotPowered


class PowerFlag:
    """System power line. Set once when the engine is built, never toggled by operations."""

    def __init__(self, powered: bool = True) -> None:
        self._powered = bool(powered)

    @property
    def powered(self) -> bool:
        return self._powered

    def require(self, operation: str) -> None:
        if not self._powered:
            raise NotPowered(operation)

    def __bool__(self) -> bool:
        return self._powered

    def __repr__(self) -> str:
        return f"PowerFlag(powered={self._powered})"
