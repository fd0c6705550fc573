"""Read-only access to stored alliance match results."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from domain.ratings.common import DEFAULT_PHASE_NAMES, AllianceMatchResult

_metadata = MetaData()

_matches = Table(
    "matches",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_code", String(32), nullable=False, index=True),
    Column("tournament_level", String(16), nullable=False, server_default="qual"),
    Column("match_number", Integer, nullable=False),
    Column("red_team1", Integer),
    Column("red_team2", Integer),
    Column("blue_team1", Integer),
    Column("blue_team2", Integer),
    Column("red_score", Float),
    Column("blue_score", Float),
)

_match_phase_scores = Table(
    "match_phase_scores",
    _metadata,
    Column("match_id", Integer, ForeignKey("matches.id"), nullable=False),
    Column("alliance", String(8), nullable=False),
    Column("phase", String(32), nullable=False),
    Column("points", Float, nullable=False),
)

matches_table = _matches
match_phase_scores_table = _match_phase_scores


def ensure_schema(engine: Engine) -> None:
    """Create the match tables when missing."""
    with engine.begin() as connection:
        _metadata.create_all(bind=connection, checkfirst=True)


def _match_conditions(event_code: str, tournament_level: str) -> list[object]:
    return [
        _matches.c.event_code == event_code,
        _matches.c.tournament_level == tournament_level,
    ]


def _is_complete(row) -> bool:
    # Unplayed matches and alliances short of two teams cannot be rated.
    required = (
        "red_team1",
        "red_team2",
        "blue_team1",
        "blue_team2",
        "red_score",
        "blue_score",
    )
    return all(row[column] is not None for column in required)


def _fetch_phase_scores(
    session: Session,
    *,
    event_code: str,
    tournament_level: str,
    phase_names: Sequence[str],
) -> dict[tuple[int, str], dict[str, float]]:
    if not phase_names:
        return {}

    statement = (
        select(
            _match_phase_scores.c.match_id,
            _match_phase_scores.c.alliance,
            _match_phase_scores.c.phase,
            _match_phase_scores.c.points,
        )
        .select_from(
            _match_phase_scores.join(_matches, _match_phase_scores.c.match_id == _matches.c.id)
        )
        .where(
            *_match_conditions(event_code, tournament_level),
            _match_phase_scores.c.phase.in_(list(phase_names)),
        )
    )

    phase_scores: dict[tuple[int, str], dict[str, float]] = {}
    for row in session.execute(statement).mappings():
        key = (int(row["match_id"]), str(row["alliance"]).lower())
        phase_scores.setdefault(key, {})[str(row["phase"])] = float(row["points"])
    return phase_scores


def fetch_alliance_matches(
    session: Session,
    event_code: str,
    *,
    tournament_level: str = "qual",
    phase_names: Sequence[str] = DEFAULT_PHASE_NAMES,
) -> list[AllianceMatchResult]:
    """Fetch one event's played matches ordered by match number."""
    statement = (
        select(_matches)
        .where(*_match_conditions(event_code, tournament_level))
        .order_by(_matches.c.match_number, _matches.c.id)
    )
    rows = session.execute(statement).mappings().all()
    phase_scores = _fetch_phase_scores(
        session,
        event_code=event_code,
        tournament_level=tournament_level,
        phase_names=phase_names,
    )

    match_results: list[AllianceMatchResult] = []
    for row in rows:
        if not _is_complete(row):
            continue

        match_id = int(row["id"])
        match_results.append(
            AllianceMatchResult(
                match_number=int(row["match_number"]),
                red_team1=int(row["red_team1"]),
                red_team2=int(row["red_team2"]),
                blue_team1=int(row["blue_team1"]),
                blue_team2=int(row["blue_team2"]),
                red_score=float(row["red_score"]),
                blue_score=float(row["blue_score"]),
                red_phase_scores=phase_scores.get((match_id, "red")),
                blue_phase_scores=phase_scores.get((match_id, "blue")),
            )
        )

    return match_results


__all__ = [
    "ensure_schema",
    "fetch_alliance_matches",
    "match_phase_scores_table",
    "matches_table",
]
