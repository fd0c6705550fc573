"""Registry of available rating algorithm implementations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from domain.ratings.common import AllianceMatchResult
from domain.ratings.epa.calculator import TeamEpaResult, calculate_epa
from domain.ratings.opr.calculator import TeamOprResult, calculate_opr
from domain.ratings.protocol import Algorithm
from domain.ratings.season_config import SeasonConfig

ROOT_DIR = Path(__file__).resolve().parents[3]
DEFAULT_SEASON_CONFIG_DIR = ROOT_DIR / "configs" / "seasons"

ComputeFn = Callable[[Sequence[AllianceMatchResult], SeasonConfig], dict[int, Any]]
RatingKeyFn = Callable[[Any], float]


@dataclass(frozen=True)
class RatingAlgorithmDescriptor:
    """Everything required to compute and rank one rating algorithm."""

    algorithm: Algorithm
    description: str
    compute: ComputeFn
    rating_key: RatingKeyFn
    order_dependent: bool


_REGISTRY: dict[Algorithm, RatingAlgorithmDescriptor] = {}


def register(descriptor: RatingAlgorithmDescriptor) -> None:
    """Register one rating-algorithm descriptor."""
    if descriptor.algorithm in _REGISTRY:
        raise ValueError(f"Duplicate rating descriptor registration for {descriptor.algorithm.value}")
    _REGISTRY[descriptor.algorithm] = descriptor


def get_all() -> list[RatingAlgorithmDescriptor]:
    """Return all registered descriptors in deterministic order."""
    return [_REGISTRY[key] for key in sorted(_REGISTRY, key=lambda item: item.value)]


def get(algorithm: Algorithm | str) -> RatingAlgorithmDescriptor:
    """Get one registered descriptor by algorithm key."""
    key = algorithm.value if isinstance(algorithm, Algorithm) else str(algorithm).lower()
    for registered, descriptor in _REGISTRY.items():
        if registered.value == key:
            return descriptor
    available = ", ".join(item.value for item in sorted(_REGISTRY, key=lambda item: item.value))
    raise KeyError(f"No rating descriptor registered for {key}. Available: {available}")


def _compute_epa(
    matches: Sequence[AllianceMatchResult], season: SeasonConfig
) -> dict[int, TeamEpaResult]:
    return calculate_epa(matches, params=season.epa_parameters, season=season.baseline)


def _compute_opr(
    matches: Sequence[AllianceMatchResult], season: SeasonConfig
) -> dict[int, TeamOprResult]:
    return calculate_opr(matches, phase_names=season.phase_names)


def _register_defaults() -> None:
    if _REGISTRY:
        return
    register(
        RatingAlgorithmDescriptor(
            algorithm=Algorithm.EPA,
            description="Expected Points Added, updated match by match",
            compute=_compute_epa,
            rating_key=lambda result: result.epa,
            order_dependent=True,
        )
    )
    register(
        RatingAlgorithmDescriptor(
            algorithm=Algorithm.OPR,
            description="Offensive Power Rating fitted over the whole event",
            compute=_compute_opr,
            rating_key=lambda result: result.opr,
            order_dependent=False,
        )
    )


_register_defaults()

__all__ = [
    "DEFAULT_SEASON_CONFIG_DIR",
    "RatingAlgorithmDescriptor",
    "get",
    "get_all",
    "register",
]
