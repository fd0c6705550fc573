"""Tests for event-level ranking, comparison and prediction."""

from __future__ import annotations

import pytest

from domain.pipeline import (
    InsufficientMatchDataError,
    compare_teams,
    predict_event_match,
    rank_event,
    team_event_analytics,
)
from domain.ratings.protocol import Algorithm, Alliance
from domain.ratings.registry import DEFAULT_SEASON_CONFIG_DIR, get
from domain.ratings.season_config import SeasonConfig, load_season_config


@pytest.fixture
def season() -> SeasonConfig:
    return load_season_config(DEFAULT_SEASON_CONFIG_DIR, "decode_2025")


@pytest.fixture
def single_match_event(insert_match) -> None:
    insert_match(1, (1001, 1002), (2001, 2002), 60, 40)


def test_rank_event_by_epa(session_factory, season, single_match_event) -> None:
    messages: list[str] = []

    summary = rank_event(
        session_factory=session_factory,
        descriptor=get(Algorithm.EPA),
        season=season,
        event_code="USCAFFL",
        echo=messages.append,
    )

    assert summary.algorithm == "epa"
    assert summary.season_name == "decode_2025"
    assert summary.processed_matches == 1
    assert summary.tracked_teams == 4
    assert [result.team_number for result in summary.rankings] == [1001, 1002, 2001, 2002]
    assert summary.rankings[0].epa == pytest.approx(2.0)
    assert messages == [
        "completed algorithm=epa event=USCAFFL season=decode_2025 "
        "processed_matches=1 tracked_teams=4"
    ]


def test_rank_event_by_opr_with_top_n(session_factory, season, single_match_event) -> None:
    summary = rank_event(
        session_factory=session_factory,
        descriptor=get("opr"),
        season=season,
        event_code="USCAFFL",
        top_n=2,
    )

    assert summary.tracked_teams == 4
    assert [result.team_number for result in summary.rankings] == [1001, 1002]
    assert summary.rankings[0].opr == pytest.approx(30.0, abs=0.01)


def test_rank_event_rejects_non_positive_top_n(session_factory, season) -> None:
    with pytest.raises(ValueError, match="top_n must be greater than 0"):
        rank_event(
            session_factory=session_factory,
            descriptor=get(Algorithm.EPA),
            season=season,
            event_code="USCAFFL",
            top_n=0,
        )


def test_rank_event_without_matches_is_empty(session_factory, season) -> None:
    summary = rank_event(
        session_factory=session_factory,
        descriptor=get(Algorithm.OPR),
        season=season,
        event_code="USCAFFL",
    )

    assert summary.processed_matches == 0
    assert summary.rankings == []


def test_duplicate_competitors_are_rejected(session_factory, season, insert_match) -> None:
    insert_match(1, (1001, 1001), (2001, 2002), 60, 40)

    with pytest.raises(ValueError, match="duplicate competitors"):
        rank_event(
            session_factory=session_factory,
            descriptor=get(Algorithm.EPA),
            season=season,
            event_code="USCAFFL",
        )


def test_compare_teams_reports_both_ratings(session_factory, season, single_match_event) -> None:
    messages: list[str] = []

    comparison = compare_teams(
        session_factory=session_factory,
        season=season,
        event_code="USCAFFL",
        team_numbers=[2001, 1001, 9999],
        echo=messages.append,
    )

    assert [analytics.team_number for analytics in comparison] == [2001, 1001, 9999]
    assert comparison[0].epa is not None and comparison[0].epa.epa == pytest.approx(-2.0)
    assert comparison[1].opr is not None and comparison[1].opr.opr == pytest.approx(30.0, abs=0.01)
    assert comparison[2].epa is None
    assert comparison[2].opr is None
    assert messages == ["event=USCAFFL season=decode_2025 processed_matches=1 compared_teams=3"]


def test_compare_teams_requires_teams(session_factory, season) -> None:
    with pytest.raises(ValueError, match="team_numbers must not be empty"):
        compare_teams(
            session_factory=session_factory,
            season=season,
            event_code="USCAFFL",
            team_numbers=[],
        )


def test_team_event_analytics(session_factory, season, single_match_event) -> None:
    analytics = team_event_analytics(
        session_factory=session_factory,
        season=season,
        event_code="USCAFFL",
        team_number=1002,
    )

    assert analytics.event_code == "USCAFFL"
    assert analytics.epa is not None and analytics.epa.match_count == 1
    assert analytics.opr is not None and analytics.opr.ccwm == pytest.approx(5.0, abs=0.01)


def test_predict_event_match(session_factory, season, single_match_event) -> None:
    messages: list[str] = []

    prediction = predict_event_match(
        session_factory=session_factory,
        season=season,
        event_code="USCAFFL",
        red_teams=(1001, 1002),
        blue_teams=(2001, 2002),
        echo=messages.append,
    )

    # Season baseline 38 with EPAs of +2/-2 from the event.
    assert prediction.predicted_red_score == 42
    assert prediction.predicted_blue_score == 34
    assert prediction.predicted_winner == Alliance.RED
    assert messages == ["event=USCAFFL season=decode_2025 processed_matches=1 baseline=38.00"]


def test_predict_event_match_with_event_baseline(session_factory, season, single_match_event) -> None:
    prediction = predict_event_match(
        session_factory=session_factory,
        season=season,
        event_code="USCAFFL",
        red_teams=(1001, 1002),
        blue_teams=(2001, 2002),
        use_event_baseline=True,
    )

    assert prediction.baseline_score == pytest.approx(50.0)
    assert prediction.predicted_red_score == 54
    assert prediction.predicted_blue_score == 46


def test_explicit_baseline_wins_over_event_baseline(session_factory, season, single_match_event) -> None:
    prediction = predict_event_match(
        session_factory=session_factory,
        season=season,
        event_code="USCAFFL",
        red_teams=(1001, 1002),
        blue_teams=(2001, 2002),
        baseline_score=20.0,
        use_event_baseline=True,
    )

    assert prediction.baseline_score == pytest.approx(20.0)


def test_predict_event_match_without_matches(session_factory, season) -> None:
    with pytest.raises(InsufficientMatchDataError, match="no played qual matches"):
        predict_event_match(
            session_factory=session_factory,
            season=season,
            event_code="USCAFFL",
            red_teams=(1001, 1002),
            blue_teams=(2001, 2002),
        )
