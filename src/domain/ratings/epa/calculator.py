"""Team-level EPA (Expected Points Added) logic.

EPA estimates how many points a competitor adds to its alliance above the
season baseline. Ratings start at zero and are corrected after every match in
match-number order, with large corrections for competitors that have played
few matches and small ones for established competitors. Replaying the same
matches in a different order gives different ratings.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from math import exp
from typing import Final

from domain.ratings.common import (
    ALLIANCE_SIZE,
    AllianceMatchResult,
    rank_results,
    round_half_up,
)
from domain.ratings.protocol import Alliance
from domain.ratings.season import DEFAULT_SEASON_BASELINE, SeasonBaseline, calculate_baseline

RECENT_WINDOW: Final[int] = 5
TREND_SAMPLES: Final[int] = 3
TREND_THRESHOLD: Final[float] = 0.5


class Trend(str, Enum):
    """Direction of a competitor's recent ratings."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class EpaParameters:
    min_learning_rate: float = 0.1
    max_learning_rate: float = 0.4
    learning_rate_decay: float = 0.1


@dataclass(frozen=True)
class TeamEpaEvent:
    team_id: int
    partner_team_id: int
    match_number: int
    alliance: Alliance
    alliance_score: float
    expected_score: float
    learning_rate: float
    pre_epa: float
    epa_delta: float
    post_epa: float
    matches_played: int


@dataclass(frozen=True)
class TeamEpaResult:
    team_number: int
    epa: float
    phase_epas: Mapping[str, float]
    match_count: int
    recent_epa: float | None
    trend: Trend


@dataclass
class _TeamEpaState:
    epa: float = 0.0
    phase_epas: dict[str, float] = field(default_factory=dict)
    match_count: int = 0
    recent_epas: deque[float] = field(default_factory=lambda: deque(maxlen=RECENT_WINDOW))


def adaptive_learning_rate(match_count: int, params: EpaParameters = EpaParameters()) -> float:
    """Step size for a competitor that has already played ``match_count`` matches."""
    return max(
        params.min_learning_rate,
        params.max_learning_rate * exp(-params.learning_rate_decay * match_count),
    )


def classify_trend(samples: Sequence[float]) -> Trend:
    """Compare the mean of the last three ratings against the oldest of them."""
    if len(samples) < TREND_SAMPLES:
        return Trend.STABLE

    recent = list(samples)[-TREND_SAMPLES:]
    average = sum(recent) / len(recent)
    first = recent[0]
    if average > first + TREND_THRESHOLD:
        return Trend.UP
    if average < first - TREND_THRESHOLD:
        return Trend.DOWN
    return Trend.STABLE


def expected_alliance_score(
    *,
    baseline_total: float,
    alliance_epa: float,
    opponent_epa: float,
) -> float:
    """Baseline plus own contribution, minus half of the opponents' contribution."""
    return baseline_total + alliance_epa - (opponent_epa / 2.0)


class TeamEpaCalculator:
    """Stateful match-by-match EPA calculator for 2-vs-2 alliances."""

    def __init__(
        self,
        params: EpaParameters,
        *,
        baseline: SeasonBaseline = DEFAULT_SEASON_BASELINE,
    ) -> None:
        self.params = params
        self.baseline = baseline
        self._states: dict[int, _TeamEpaState] = {}

    def get_rating(self, team_id: int) -> float:
        state = self._states.get(team_id)
        return 0.0 if state is None else state.epa

    def tracked_team_count(self) -> int:
        return len(self._states)

    def tracked_entity_count(self) -> int:
        """Subject-agnostic alias for protocol compatibility."""
        return self.tracked_team_count()

    def ratings(self) -> dict[int, float]:
        """Return a snapshot of current (unrounded) team EPAs."""
        return {team_id: state.epa for team_id, state in self._states.items()}

    def _state(self, team_id: int) -> _TeamEpaState:
        state = self._states.get(team_id)
        if state is None:
            state = _TeamEpaState()
            self._states[team_id] = state
        return state

    def _update_team(
        self,
        *,
        team_id: int,
        partner_team_id: int,
        match_number: int,
        alliance: Alliance,
        alliance_score: float,
        expected_score: float,
        phase_scores: Mapping[str, float] | None,
    ) -> TeamEpaEvent:
        state = self._state(team_id)
        learning_rate = adaptive_learning_rate(state.match_count, self.params)

        pre_epa = state.epa
        team_delta = (alliance_score - expected_score) / ALLIANCE_SIZE
        state.epa = pre_epa + (learning_rate * team_delta)

        if phase_scores is not None:
            for phase_name in self.baseline.phase_names:
                phase_epa = state.phase_epas.get(phase_name, 0.0)
                expected_phase = self.baseline.per_robot_phase(phase_name) + phase_epa
                phase_delta = (phase_scores[phase_name] / ALLIANCE_SIZE) - expected_phase
                state.phase_epas[phase_name] = phase_epa + (learning_rate * phase_delta)

        state.match_count += 1
        state.recent_epas.append(state.epa)

        return TeamEpaEvent(
            team_id=team_id,
            partner_team_id=partner_team_id,
            match_number=match_number,
            alliance=alliance,
            alliance_score=alliance_score,
            expected_score=expected_score,
            learning_rate=learning_rate,
            pre_epa=pre_epa,
            epa_delta=state.epa - pre_epa,
            post_epa=state.epa,
            matches_played=state.match_count,
        )

    def process_match(
        self, match_result: AllianceMatchResult
    ) -> tuple[TeamEpaEvent, TeamEpaEvent, TeamEpaEvent, TeamEpaEvent]:
        for team_id in match_result.teams:
            self._state(team_id)

        red_epa = self.get_rating(match_result.red_team1) + self.get_rating(match_result.red_team2)
        blue_epa = self.get_rating(match_result.blue_team1) + self.get_rating(match_result.blue_team2)

        red_expected = expected_alliance_score(
            baseline_total=self.baseline.total_score,
            alliance_epa=red_epa,
            opponent_epa=blue_epa,
        )
        blue_expected = expected_alliance_score(
            baseline_total=self.baseline.total_score,
            alliance_epa=blue_epa,
            opponent_epa=red_epa,
        )

        has_phases = match_result.has_phase_scores(self.baseline.phase_names)
        red_phases = match_result.red_phase_scores if has_phases else None
        blue_phases = match_result.blue_phase_scores if has_phases else None

        red1_event = self._update_team(
            team_id=match_result.red_team1,
            partner_team_id=match_result.red_team2,
            match_number=match_result.match_number,
            alliance=Alliance.RED,
            alliance_score=match_result.red_score,
            expected_score=red_expected,
            phase_scores=red_phases,
        )
        red2_event = self._update_team(
            team_id=match_result.red_team2,
            partner_team_id=match_result.red_team1,
            match_number=match_result.match_number,
            alliance=Alliance.RED,
            alliance_score=match_result.red_score,
            expected_score=red_expected,
            phase_scores=red_phases,
        )
        blue1_event = self._update_team(
            team_id=match_result.blue_team1,
            partner_team_id=match_result.blue_team2,
            match_number=match_result.match_number,
            alliance=Alliance.BLUE,
            alliance_score=match_result.blue_score,
            expected_score=blue_expected,
            phase_scores=blue_phases,
        )
        blue2_event = self._update_team(
            team_id=match_result.blue_team2,
            partner_team_id=match_result.blue_team1,
            match_number=match_result.match_number,
            alliance=Alliance.BLUE,
            alliance_score=match_result.blue_score,
            expected_score=blue_expected,
            phase_scores=blue_phases,
        )
        return red1_event, red2_event, blue1_event, blue2_event

    def results(self) -> dict[int, TeamEpaResult]:
        """Rounded per-team results, in first-seen order."""
        results: dict[int, TeamEpaResult] = {}
        for team_id, state in self._states.items():
            recent_epa = (
                round_half_up(sum(state.recent_epas) / len(state.recent_epas))
                if state.recent_epas
                else None
            )
            results[team_id] = TeamEpaResult(
                team_number=team_id,
                epa=round_half_up(state.epa),
                phase_epas={
                    phase_name: round_half_up(value)
                    for phase_name, value in state.phase_epas.items()
                },
                match_count=state.match_count,
                recent_epa=recent_epa,
                trend=classify_trend(state.recent_epas),
            )
        return results


def calculate_epa(
    matches: Sequence[AllianceMatchResult],
    *,
    params: EpaParameters = EpaParameters(),
    season: SeasonBaseline = DEFAULT_SEASON_BASELINE,
    baseline_override: SeasonBaseline | None = None,
) -> dict[int, TeamEpaResult]:
    """Replay matches in match-number order and return each team's EPA."""
    if not matches:
        return {}

    ordered = sorted(matches, key=lambda match_result: match_result.match_number)
    baseline = baseline_override or calculate_baseline(ordered, season=season)

    calculator = TeamEpaCalculator(params, baseline=baseline)
    for match_result in ordered:
        calculator.process_match(match_result)
    return calculator.results()


def get_team_epa(
    matches: Sequence[AllianceMatchResult],
    team_number: int,
    *,
    params: EpaParameters = EpaParameters(),
    season: SeasonBaseline = DEFAULT_SEASON_BASELINE,
    baseline_override: SeasonBaseline | None = None,
) -> TeamEpaResult | None:
    results = calculate_epa(
        matches,
        params=params,
        season=season,
        baseline_override=baseline_override,
    )
    return results.get(team_number)


def get_epa_rankings(
    matches: Sequence[AllianceMatchResult],
    *,
    params: EpaParameters = EpaParameters(),
    season: SeasonBaseline = DEFAULT_SEASON_BASELINE,
    baseline_override: SeasonBaseline | None = None,
) -> list[TeamEpaResult]:
    """EPA results sorted best first; equal EPAs are ordered by team number."""
    results = calculate_epa(
        matches,
        params=params,
        season=season,
        baseline_override=baseline_override,
    )
    return rank_results(results, key=lambda result: result.epa)
