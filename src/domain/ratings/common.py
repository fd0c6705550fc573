"""Shared types and helpers for alliance-based rating systems."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from math import floor, isfinite
from typing import Final, TypeVar

ALLIANCE_SIZE: Final[int] = 2
DEFAULT_PHASE_NAMES: Final[tuple[str, ...]] = ("auto", "teleop", "endgame")


@dataclass(frozen=True)
class AllianceMatchResult:
    """Canonical 2-vs-2 alliance match payload used by rating calculators."""

    match_number: int
    red_team1: int
    red_team2: int
    blue_team1: int
    blue_team2: int
    red_score: float
    blue_score: float
    red_phase_scores: Mapping[str, float] | None = None
    blue_phase_scores: Mapping[str, float] | None = None

    @property
    def red_teams(self) -> tuple[int, int]:
        return (self.red_team1, self.red_team2)

    @property
    def blue_teams(self) -> tuple[int, int]:
        return (self.blue_team1, self.blue_team2)

    @property
    def teams(self) -> tuple[int, int, int, int]:
        return (self.red_team1, self.red_team2, self.blue_team1, self.blue_team2)

    def has_phase_scores(self, phase_names: Sequence[str]) -> bool:
        """True only when both alliances carry a score for every phase."""
        if not phase_names:
            return False
        if self.red_phase_scores is None or self.blue_phase_scores is None:
            return False
        return all(
            name in self.red_phase_scores and name in self.blue_phase_scores
            for name in phase_names
        )


def validate_alliance_match(match_result: AllianceMatchResult) -> None:
    """Reject matches the engines cannot rate (duplicate competitors)."""
    teams = match_result.teams
    if len(set(teams)) != len(teams):
        raise ValueError(
            f"match_number={match_result.match_number} has duplicate competitors {teams}"
        )


def round_half_up(value: float, digits: int = 2) -> float:
    """Round like a scoreboard does: halves go up, non-finite values pass through."""
    if not isfinite(value):
        return value
    scale = 10.0**digits
    return floor(value * scale + 0.5) / scale


R = TypeVar("R")


def rank_results(
    results: Mapping[int, R],
    key: Callable[[R], float],
) -> list[R]:
    """Sort a result table by rating descending, ties broken by team number ascending."""
    ordered = sorted(results.items(), key=lambda item: (-key(item[1]), item[0]))
    return [result for _, result in ordered]


def distinct_teams(matches: Iterable[AllianceMatchResult]) -> list[int]:
    """Return every competitor seen across the matches, sorted ascending."""
    teams: set[int] = set()
    for match_result in matches:
        teams.update(match_result.teams)
    return sorted(teams)


__all__ = [
    "ALLIANCE_SIZE",
    "AllianceMatchResult",
    "DEFAULT_PHASE_NAMES",
    "distinct_teams",
    "rank_results",
    "round_half_up",
    "validate_alliance_match",
]
