"""Event-level analytics on top of the registered rating algorithms."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from domain.ratings.common import AllianceMatchResult, rank_results, validate_alliance_match
from domain.ratings.epa.calculator import TeamEpaResult
from domain.ratings.opr.calculator import TeamOprResult
from domain.ratings.prediction import MatchPrediction, predict_match
from domain.ratings.protocol import Algorithm
from domain.ratings.registry import RatingAlgorithmDescriptor, get
from domain.ratings.season import get_calculated_baseline
from domain.ratings.season_config import SeasonConfig
from repositories.matches import fetch_alliance_matches


class InsufficientMatchDataError(ValueError):
    """Raised when an event has no rateable matches to predict from."""


@dataclass(frozen=True)
class EventRankingSummary:
    """Outcome for one ranked event."""

    algorithm: str
    event_code: str
    season_name: str
    processed_matches: int
    tracked_teams: int
    rankings: list[Any]


@dataclass(frozen=True)
class TeamEventAnalytics:
    team_number: int
    event_code: str
    epa: TeamEpaResult | None
    opr: TeamOprResult | None


def load_event_matches(
    *,
    session_factory,
    season: SeasonConfig,
    event_code: str,
    tournament_level: str = "qual",
) -> list[AllianceMatchResult]:
    """Load and validate one event's matches for rating."""
    with session_factory() as session:
        matches = fetch_alliance_matches(
            session,
            event_code,
            tournament_level=tournament_level,
            phase_names=season.phase_names,
        )
    for match_result in matches:
        validate_alliance_match(match_result)
    return matches


def rank_event(
    *,
    session_factory,
    descriptor: RatingAlgorithmDescriptor,
    season: SeasonConfig,
    event_code: str,
    tournament_level: str = "qual",
    top_n: int | None = None,
    echo: Callable[[str], None] | None = None,
) -> EventRankingSummary:
    """Compute and rank one algorithm's ratings for an event."""
    if top_n is not None and top_n <= 0:
        raise ValueError("top_n must be greater than 0")

    matches = load_event_matches(
        session_factory=session_factory,
        season=season,
        event_code=event_code,
        tournament_level=tournament_level,
    )
    results = descriptor.compute(matches, season)
    rankings = rank_results(results, key=descriptor.rating_key)
    if top_n is not None:
        rankings = rankings[:top_n]

    if echo is not None:
        echo(
            "completed "
            f"algorithm={descriptor.algorithm.value} "
            f"event={event_code} "
            f"season={season.name} "
            f"processed_matches={len(matches)} "
            f"tracked_teams={len(results)}"
        )

    return EventRankingSummary(
        algorithm=descriptor.algorithm.value,
        event_code=event_code,
        season_name=season.name,
        processed_matches=len(matches),
        tracked_teams=len(results),
        rankings=rankings,
    )


def _event_results(
    matches: Sequence[AllianceMatchResult], season: SeasonConfig
) -> tuple[dict[int, TeamEpaResult], dict[int, TeamOprResult]]:
    epa_results = get(Algorithm.EPA).compute(matches, season)
    opr_results = get(Algorithm.OPR).compute(matches, season)
    return epa_results, opr_results


def compare_teams(
    *,
    session_factory,
    season: SeasonConfig,
    event_code: str,
    team_numbers: Sequence[int],
    tournament_level: str = "qual",
    echo: Callable[[str], None] | None = None,
) -> list[TeamEventAnalytics]:
    """EPA and OPR side by side for the requested teams at one event."""
    if not team_numbers:
        raise ValueError("team_numbers must not be empty")

    matches = load_event_matches(
        session_factory=session_factory,
        season=season,
        event_code=event_code,
        tournament_level=tournament_level,
    )
    epa_results, opr_results = _event_results(matches, season)

    if echo is not None:
        echo(
            f"event={event_code} season={season.name} "
            f"processed_matches={len(matches)} compared_teams={len(team_numbers)}"
        )

    return [
        TeamEventAnalytics(
            team_number=team_number,
            event_code=event_code,
            epa=epa_results.get(team_number),
            opr=opr_results.get(team_number),
        )
        for team_number in team_numbers
    ]


def team_event_analytics(
    *,
    session_factory,
    season: SeasonConfig,
    event_code: str,
    team_number: int,
    tournament_level: str = "qual",
) -> TeamEventAnalytics:
    """EPA and OPR for one team at one event; missing ratings are None."""
    (analytics,) = compare_teams(
        session_factory=session_factory,
        season=season,
        event_code=event_code,
        team_numbers=[team_number],
        tournament_level=tournament_level,
    )
    return analytics


def predict_event_match(
    *,
    session_factory,
    season: SeasonConfig,
    event_code: str,
    red_teams: tuple[int, int],
    blue_teams: tuple[int, int],
    tournament_level: str = "qual",
    baseline_score: float | None = None,
    use_event_baseline: bool = False,
    echo: Callable[[str], None] | None = None,
) -> MatchPrediction:
    """Forecast a match from the EPAs earned at one event."""
    matches = load_event_matches(
        session_factory=session_factory,
        season=season,
        event_code=event_code,
        tournament_level=tournament_level,
    )
    if not matches:
        raise InsufficientMatchDataError(
            f"event={event_code} has no played {tournament_level} matches to predict from"
        )

    epa_results = get(Algorithm.EPA).compute(matches, season)
    if baseline_score is None and use_event_baseline:
        baseline_score = get_calculated_baseline(matches, season=season.baseline)

    prediction = predict_match(
        epa_results,
        red_teams[0],
        red_teams[1],
        blue_teams[0],
        blue_teams[1],
        baseline_score=baseline_score,
        season=season.baseline,
    )
    if echo is not None:
        echo(
            f"event={event_code} season={season.name} "
            f"processed_matches={len(matches)} baseline={prediction.baseline_score:.2f}"
        )
    return prediction


__all__ = [
    "EventRankingSummary",
    "InsufficientMatchDataError",
    "TeamEventAnalytics",
    "compare_teams",
    "load_event_matches",
    "predict_event_match",
    "rank_event",
    "team_event_analytics",
]
