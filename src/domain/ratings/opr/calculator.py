"""Team-level OPR (Offensive Power Rating) logic.

OPR is the per-team contribution that best explains observed alliance scores
in a least-squares sense. Instead of solving the normal equations, every
estimate is refined over a fixed number of damped rounds: each round collects
every match's residual first and then moves each team by the mean of its
residuals, so the result does not depend on match order.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from math import fsum
from typing import Final

from domain.ratings.common import (
    ALLIANCE_SIZE,
    DEFAULT_PHASE_NAMES,
    AllianceMatchResult,
    distinct_teams,
    rank_results,
    round_half_up,
)

OPR_ROUNDS: Final[int] = 100
OPR_LEARNING_RATE: Final[float] = 0.15
TEAMS_PER_MATCH: Final[int] = 2 * ALLIANCE_SIZE


@dataclass(frozen=True)
class TeamOprResult:
    team_number: int
    opr: float
    phase_oprs: Mapping[str, float] | None
    dpr: float
    ccwm: float


@dataclass
class _TeamOprState:
    opr: float
    ccwm: float = 0.0
    phase_oprs: dict[str, float] = field(default_factory=dict)


def opr_learning_rate(round_index: int) -> float:
    """Linearly damped step: 0.15 on the first round, tending to 0.075 on the last."""
    return OPR_LEARNING_RATE * (1.0 - round_index / OPR_ROUNDS / 2.0)


def _mean_update(estimate: float, residuals: list[float], learning_rate: float) -> float:
    if not residuals:
        return estimate
    return estimate + learning_rate * (fsum(residuals) / len(residuals))


class TeamOprCalculator:
    """Batch OPR/DPR/CCWM estimator over one set of alliance matches."""

    def __init__(
        self,
        matches: Sequence[AllianceMatchResult],
        *,
        phase_names: Sequence[str] = DEFAULT_PHASE_NAMES,
    ) -> None:
        self._matches = list(matches)
        self.phase_names = tuple(phase_names)
        self._phased_matches = [
            match_result
            for match_result in self._matches
            if match_result.has_phase_scores(self.phase_names)
        ]
        self.has_phase_scores = bool(self._phased_matches)
        self.rounds_completed = 0
        self._states: dict[int, _TeamOprState] = {}

        if not self._matches:
            return

        average_score = fsum(
            match_result.red_score + match_result.blue_score for match_result in self._matches
        ) / (len(self._matches) * TEAMS_PER_MATCH)

        phase_averages: dict[str, float] = {}
        if self.has_phase_scores:
            for phase_name in self.phase_names:
                phase_averages[phase_name] = fsum(
                    (match_result.red_phase_scores or {})[phase_name]
                    + (match_result.blue_phase_scores or {})[phase_name]
                    for match_result in self._phased_matches
                ) / (len(self._phased_matches) * TEAMS_PER_MATCH)

        for team_id in distinct_teams(self._matches):
            self._states[team_id] = _TeamOprState(
                opr=average_score,
                phase_oprs=dict(phase_averages),
            )

    def tracked_team_count(self) -> int:
        return len(self._states)

    def tracked_entity_count(self) -> int:
        """Subject-agnostic alias for protocol compatibility."""
        return self.tracked_team_count()

    def ratings(self) -> dict[int, float]:
        """Return a snapshot of current (unrounded) offensive estimates."""
        return {team_id: state.opr for team_id, state in self._states.items()}

    def _alliance_opr(self, teams: tuple[int, int]) -> float:
        return self._states[teams[0]].opr + self._states[teams[1]].opr

    def _alliance_ccwm(self, teams: tuple[int, int]) -> float:
        return self._states[teams[0]].ccwm + self._states[teams[1]].ccwm

    def _alliance_phase_opr(self, teams: tuple[int, int], phase_name: str) -> float:
        return (
            self._states[teams[0]].phase_oprs[phase_name]
            + self._states[teams[1]].phase_oprs[phase_name]
        )

    def offense_squared_error(self) -> float:
        """Sum of squared alliance-score residuals under the current estimates."""
        return fsum(
            (match_result.red_score - self._alliance_opr(match_result.red_teams)) ** 2
            + (match_result.blue_score - self._alliance_opr(match_result.blue_teams)) ** 2
            for match_result in self._matches
        )

    def refine_round(self, round_index: int | None = None) -> None:
        """Queue every match's residuals, then apply them all at once."""
        if round_index is None:
            round_index = self.rounds_completed

        opr_residuals: dict[int, list[float]] = defaultdict(list)
        ccwm_residuals: dict[int, list[float]] = defaultdict(list)
        phase_residuals: dict[str, dict[int, list[float]]] = {
            phase_name: defaultdict(list) for phase_name in self.phase_names
        }

        for match_result in self._matches:
            red_teams = match_result.red_teams
            blue_teams = match_result.blue_teams

            red_error = match_result.red_score - self._alliance_opr(red_teams)
            blue_error = match_result.blue_score - self._alliance_opr(blue_teams)
            for team_id in red_teams:
                opr_residuals[team_id].append(red_error / ALLIANCE_SIZE)
            for team_id in blue_teams:
                opr_residuals[team_id].append(blue_error / ALLIANCE_SIZE)

            red_margin = match_result.red_score - match_result.blue_score
            expected_margin = self._alliance_ccwm(red_teams) - self._alliance_ccwm(blue_teams)
            margin_error = red_margin - expected_margin
            for team_id in red_teams:
                ccwm_residuals[team_id].append(margin_error / TEAMS_PER_MATCH)
            for team_id in blue_teams:
                ccwm_residuals[team_id].append(-margin_error / TEAMS_PER_MATCH)

        for match_result in self._phased_matches:
            red_phases = match_result.red_phase_scores or {}
            blue_phases = match_result.blue_phase_scores or {}
            for phase_name in self.phase_names:
                queue = phase_residuals[phase_name]
                red_error = red_phases[phase_name] - self._alliance_phase_opr(
                    match_result.red_teams, phase_name
                )
                blue_error = blue_phases[phase_name] - self._alliance_phase_opr(
                    match_result.blue_teams, phase_name
                )
                for team_id in match_result.red_teams:
                    queue[team_id].append(red_error / ALLIANCE_SIZE)
                for team_id in match_result.blue_teams:
                    queue[team_id].append(blue_error / ALLIANCE_SIZE)

        learning_rate = opr_learning_rate(round_index)
        for team_id, state in self._states.items():
            state.opr = _mean_update(state.opr, opr_residuals.get(team_id, []), learning_rate)
            state.ccwm = _mean_update(state.ccwm, ccwm_residuals.get(team_id, []), learning_rate)
            if self.has_phase_scores:
                for phase_name in self.phase_names:
                    state.phase_oprs[phase_name] = _mean_update(
                        state.phase_oprs[phase_name],
                        phase_residuals[phase_name].get(team_id, []),
                        learning_rate,
                    )

        self.rounds_completed = round_index + 1

    def fit(self) -> dict[int, TeamOprResult]:
        """Run the remaining refinement rounds and return rounded results."""
        if self._states:
            for round_index in range(self.rounds_completed, OPR_ROUNDS):
                self.refine_round(round_index)
        return self.results()

    def results(self) -> dict[int, TeamOprResult]:
        results: dict[int, TeamOprResult] = {}
        for team_id, state in self._states.items():
            phase_oprs = (
                {
                    phase_name: round_half_up(state.phase_oprs[phase_name])
                    for phase_name in self.phase_names
                }
                if self.has_phase_scores
                else None
            )
            results[team_id] = TeamOprResult(
                team_number=team_id,
                opr=round_half_up(state.opr),
                phase_oprs=phase_oprs,
                dpr=round_half_up(state.opr - state.ccwm),
                ccwm=round_half_up(state.ccwm),
            )
        return results


def calculate_opr(
    matches: Sequence[AllianceMatchResult],
    *,
    phase_names: Sequence[str] = DEFAULT_PHASE_NAMES,
) -> dict[int, TeamOprResult]:
    """Estimate OPR, DPR and CCWM for every team in the batch."""
    if not matches:
        return {}
    return TeamOprCalculator(matches, phase_names=phase_names).fit()


def get_team_opr(
    matches: Sequence[AllianceMatchResult],
    team_number: int,
    *,
    phase_names: Sequence[str] = DEFAULT_PHASE_NAMES,
) -> TeamOprResult | None:
    return calculate_opr(matches, phase_names=phase_names).get(team_number)


def get_opr_rankings(
    matches: Sequence[AllianceMatchResult],
    *,
    phase_names: Sequence[str] = DEFAULT_PHASE_NAMES,
) -> list[TeamOprResult]:
    """OPR results sorted best first; equal OPRs are ordered by team number."""
    results = calculate_opr(matches, phase_names=phase_names)
    return rank_results(results, key=lambda result: result.opr)
