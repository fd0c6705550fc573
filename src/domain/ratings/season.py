"""Season scoring baselines used as the no-information prior."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Final

from domain.ratings.common import ALLIANCE_SIZE, AllianceMatchResult

# DECODE 2025-2026 alliance averages, estimated from early-season events.
DECODE_PHASE_BASELINE: Final[dict[str, float]] = {
    "auto": 8.0,
    "teleop": 25.0,
    "endgame": 5.0,
}
DECODE_TOTAL_BASELINE: Final[float] = 38.0


@dataclass(frozen=True)
class SeasonBaseline:
    """Average alliance scores, overall and per phase."""

    total_score: float = DECODE_TOTAL_BASELINE
    phase_scores: Mapping[str, float] = field(
        default_factory=lambda: dict(DECODE_PHASE_BASELINE)
    )

    @classmethod
    def from_phase_averages(cls, phase_scores: Mapping[str, float]) -> SeasonBaseline:
        """Build a baseline whose total is the sum of the phase averages."""
        phases = {name: float(score) for name, score in phase_scores.items()}
        return cls(total_score=sum(phases.values()), phase_scores=phases)

    @property
    def phase_names(self) -> tuple[str, ...]:
        return tuple(self.phase_scores)

    def per_robot_total(self) -> float:
        return self.total_score / ALLIANCE_SIZE

    def per_robot_phase(self, phase_name: str) -> float:
        return self.phase_scores.get(phase_name, 0.0) / ALLIANCE_SIZE

    def restricted_to(self, phase_names: Sequence[str]) -> SeasonBaseline:
        """Return a copy that only carries the given phases (missing ones default to 0)."""
        return SeasonBaseline(
            total_score=self.total_score,
            phase_scores={name: self.phase_scores.get(name, 0.0) for name in phase_names},
        )


DEFAULT_SEASON_BASELINE: Final[SeasonBaseline] = SeasonBaseline()


def calculate_baseline(
    matches: Sequence[AllianceMatchResult],
    *,
    phase_names: Sequence[str] | None = None,
    season: SeasonBaseline = DEFAULT_SEASON_BASELINE,
) -> SeasonBaseline:
    """Derive alliance-average baselines from the matches themselves.

    The overall average uses every match. Phase averages only use matches that
    carry a complete phase breakdown for both alliances; when none do, the
    season defaults are kept.
    """
    names = tuple(season.phase_names if phase_names is None else phase_names)
    if not matches:
        return season.restricted_to(names)

    total_sum = 0.0
    for match_result in matches:
        total_sum += match_result.red_score + match_result.blue_score
    total_score = total_sum / (len(matches) * 2)

    phased = [match_result for match_result in matches if match_result.has_phase_scores(names)]
    if not phased:
        return SeasonBaseline(
            total_score=total_score,
            phase_scores=season.restricted_to(names).phase_scores,
        )

    phase_scores: dict[str, float] = {}
    for name in names:
        phase_sum = 0.0
        for match_result in phased:
            red_phases = match_result.red_phase_scores or {}
            blue_phases = match_result.blue_phase_scores or {}
            phase_sum += red_phases[name] + blue_phases[name]
        phase_scores[name] = phase_sum / (len(phased) * 2)

    return SeasonBaseline(total_score=total_score, phase_scores=phase_scores)


def get_calculated_baseline(
    matches: Sequence[AllianceMatchResult],
    *,
    season: SeasonBaseline = DEFAULT_SEASON_BASELINE,
) -> float:
    """Alliance-total baseline to hand to the match predictor."""
    return calculate_baseline(matches, season=season).total_score


__all__ = [
    "DECODE_PHASE_BASELINE",
    "DECODE_TOTAL_BASELINE",
    "DEFAULT_SEASON_BASELINE",
    "SeasonBaseline",
    "calculate_baseline",
    "get_calculated_baseline",
]
