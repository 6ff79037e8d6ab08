"""
Outcome sources for the probabilistic IC operations.

Every operation that may "just fail" asks a chance source for a verdict.
`RandomChance` draws from a seeded numpy generator with a per-operation
success probability; `ScriptedChance` replays a fixed sequence so tests can
pin down each outcome.
"""
from __future__ import annotations

import enum
import logging
from collections import deque
from typing import Dict, Iterable, Mapping, Optional, Protocol, Union

import numpy as np

logger = logging.getLogger(__name__)

POWER_UP = "power_up"
TEST_MODE = "test_mode"
JTAG = "jtag"
SCAN_TEST = "scan_test"
OPERATIONS = (POWER_UP, TEST_MODE, JTAG, SCAN_TEST)


class Status(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def from_bool(cls, ok: bool) -> "Status":
        return cls.SUCCESS if ok else cls.FAILURE


class ChanceSource(Protocol):
    def roll(self, operation: str) -> bool:
        ...


class RandomChance:
    def __init__(
        self,
        probabilities: Optional[Mapping[str, float]] = None,
        *,
        seed: Optional[int] = None,
        default: float = 0.5,
    ) -> None:
        self._default = _check_probability("default", default)
        self._probabilities: Dict[str, float] = {}
        for operation, value in (probabilities or {}).items():
            self._probabilities[operation] = _check_probability(operation, value)
        self._rng = np.random.default_rng(seed)

    def probability(self, operation: str) -> float:
        return self._probabilities.get(operation, self._default)

    def roll(self, operation: str) -> bool:
        p = self.probability(operation)
        ok = bool(self._rng.random() < p)
        logger.debug("roll %s (p=%.3f) -> %s", operation, p, ok)
        return ok


class ScriptedChance:
    """
    Replays queued outcomes. Outcomes may be queued globally or per operation;
    per-operation queues win. When nothing is queued `fallback` is returned,
    or `LookupError` raised if no fallback was given.
    """

    def __init__(
        self,
        outcomes: Iterable[Union[bool, Status]] = (),
        *,
        fallback: Optional[bool] = None,
    ) -> None:
        self._shared: deque[bool] = deque(_as_bool(item) for item in outcomes)
        self._per_operation: Dict[str, deque[bool]] = {}
        self._fallback = fallback
        self.calls: list[str] = []

    def queue(self, operation: str, *outcomes: Union[bool, Status]) -> "ScriptedChance":
        self._per_operation.setdefault(operation, deque()).extend(_as_bool(item) for item in outcomes)
        return self

    def roll(self, operation: str) -> bool:
        self.calls.append(operation)
        pending = self._per_operation.get(operation)
        if pending:
            return pending.popleft()
        if self._shared:
            return self._shared.popleft()
        if self._fallback is None:
            raise LookupError(f"No scripted outcome left for '{operation}'")
        return self._fallback


def _as_bool(item: Union[bool, Status]) -> bool:
    if isinstance(item, Status):
        if item not in (Status.SUCCESS, Status.FAILURE):
            raise ValueError(f"Scripted outcome must be success or failure, got {item.value}")
        return item is Status.SUCCESS
    return bool(item)


def _check_probability(name: str, value: float) -> float:
    p = float(value)
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Probability for '{name}' must be within [0, 1], got {value}")
    return p
