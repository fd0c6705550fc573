"""EPA-based match outcome forecast."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from math import exp
from typing import Final

from domain.ratings.common import round_half_up
from domain.ratings.epa.calculator import TeamEpaResult
from domain.ratings.protocol import Alliance
from domain.ratings.season import DEFAULT_SEASON_BASELINE, SeasonBaseline

WIN_PROBABILITY_SCALE: Final[float] = 10.0

EpaLookup = Mapping[int, TeamEpaResult | float]


@dataclass(frozen=True)
class MatchPrediction:
    red_team1: int
    red_team2: int
    blue_team1: int
    blue_team2: int
    baseline_score: float
    predicted_red_score: float
    predicted_blue_score: float
    red_win_probability: float
    blue_win_probability: float
    predicted_winner: Alliance
    margin: float


def win_probability(score_difference: float) -> float:
    """Logistic win probability for a predicted score difference."""
    scaled = score_difference / WIN_PROBABILITY_SCALE
    if scaled >= 0.0:
        return 1.0 / (1.0 + exp(-scaled))
    exp_term = exp(scaled)
    return exp_term / (1.0 + exp_term)


def _team_epa(ratings: EpaLookup, team_id: int) -> float:
    rating = ratings.get(team_id)
    if rating is None:
        return 0.0
    if isinstance(rating, TeamEpaResult):
        return rating.epa
    return float(rating)


def predict_match(
    ratings: EpaLookup,
    red_team1: int,
    red_team2: int,
    blue_team1: int,
    blue_team2: int,
    *,
    baseline_score: float | None = None,
    blue_ratings: EpaLookup | None = None,
    season: SeasonBaseline = DEFAULT_SEASON_BASELINE,
) -> MatchPrediction:
    """Forecast both alliance scores and the red alliance's win probability.

    Teams missing from the lookup contribute an EPA of 0. ``blue_ratings``
    defaults to ``ratings``.
    """
    blue_lookup = ratings if blue_ratings is None else blue_ratings
    baseline = season.total_score if baseline_score is None else baseline_score

    red_expected = baseline + _team_epa(ratings, red_team1) + _team_epa(ratings, red_team2)
    blue_expected = baseline + _team_epa(blue_lookup, blue_team1) + _team_epa(blue_lookup, blue_team2)

    red_probability = round_half_up(win_probability(red_expected - blue_expected))
    predicted_red_score = round_half_up(red_expected, 0)
    predicted_blue_score = round_half_up(blue_expected, 0)

    return MatchPrediction(
        red_team1=red_team1,
        red_team2=red_team2,
        blue_team1=blue_team1,
        blue_team2=blue_team2,
        baseline_score=baseline,
        predicted_red_score=predicted_red_score,
        predicted_blue_score=predicted_blue_score,
        red_win_probability=red_probability,
        blue_win_probability=round_half_up(1.0 - red_probability),
        predicted_winner=Alliance.RED if red_probability > 0.5 else Alliance.BLUE,
        margin=predicted_red_score - predicted_blue_score,
    )


__all__ = ["EpaLookup", "MatchPrediction", "predict_match", "win_probability"]
