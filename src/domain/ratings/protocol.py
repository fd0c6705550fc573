"""Shared protocols and enums for rating systems."""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable


class Algorithm(str, Enum):
    """Which rating model produced a result table."""

    EPA = "epa"
    OPR = "opr"


class Alliance(str, Enum):
    RED = "red"
    BLUE = "blue"


E = TypeVar("E")


@runtime_checkable
class RatingCalculator(Protocol):
    """Base contract all rating calculators satisfy."""

    def tracked_entity_count(self) -> int: ...

    def ratings(self) -> dict[int, float]: ...


@runtime_checkable
class MatchLevelCalculator(RatingCalculator, Protocol[E]):
    """Online calculators updated one match at a time, in order."""

    def process_match(self, result: Any) -> tuple[E, ...]: ...


@runtime_checkable
class BatchCalculator(RatingCalculator, Protocol[E]):
    """Calculators fitted against a whole batch of matches at once."""

    def fit(self) -> dict[int, E]: ...


__all__ = [
    "Algorithm",
    "Alliance",
    "BatchCalculator",
    "MatchLevelCalculator",
    "RatingCalculator",
]
