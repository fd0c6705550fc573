"""EPA rating modules."""

from domain.ratings.epa.calculator import (
    EpaParameters,
    TeamEpaCalculator,
    TeamEpaEvent,
    TeamEpaResult,
    Trend,
    adaptive_learning_rate,
    calculate_epa,
    classify_trend,
    expected_alliance_score,
    get_epa_rankings,
    get_team_epa,
)

__all__ = [
    "EpaParameters",
    "TeamEpaCalculator",
    "TeamEpaEvent",
    "TeamEpaResult",
    "Trend",
    "adaptive_learning_rate",
    "calculate_epa",
    "classify_trend",
    "expected_alliance_score",
    "get_epa_rankings",
    "get_team_epa",
]
