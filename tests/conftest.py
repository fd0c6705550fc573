from __future__ import annotations

from collections.abc import Callable

import pytest
from sqlalchemy import insert

from db import create_db_engine, create_session_factory
from repositories.matches import ensure_schema, match_phase_scores_table, matches_table

InsertMatch = Callable[..., int]


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def insert_match(engine) -> InsertMatch:
    next_id = iter(range(1, 10_000))

    def _insert(
        match_number: int,
        red: tuple[int | None, int | None],
        blue: tuple[int | None, int | None],
        red_score: float | None,
        blue_score: float | None,
        *,
        event_code: str = "USCAFFL",
        tournament_level: str = "qual",
        red_phases: dict[str, float] | None = None,
        blue_phases: dict[str, float] | None = None,
    ) -> int:
        match_id = next(next_id)
        with engine.begin() as connection:
            connection.execute(
                insert(matches_table).values(
                    id=match_id,
                    event_code=event_code,
                    tournament_level=tournament_level,
                    match_number=match_number,
                    red_team1=red[0],
                    red_team2=red[1],
                    blue_team1=blue[0],
                    blue_team2=blue[1],
                    red_score=red_score,
                    blue_score=blue_score,
                )
            )
            phase_rows = [
                {"match_id": match_id, "alliance": alliance, "phase": phase, "points": points}
                for alliance, phases in (("red", red_phases), ("blue", blue_phases))
                for phase, points in (phases or {}).items()
            ]
            if phase_rows:
                connection.execute(insert(match_phase_scores_table), phase_rows)
        return match_id

    return _insert
