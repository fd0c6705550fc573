"""Rating-system domain modules."""

from domain.ratings.common import AllianceMatchResult, validate_alliance_match
from domain.ratings.protocol import Algorithm, Alliance
from domain.ratings.season import DEFAULT_SEASON_BASELINE, SeasonBaseline

__all__ = [
    "Algorithm",
    "Alliance",
    "AllianceMatchResult",
    "DEFAULT_SEASON_BASELINE",
    "SeasonBaseline",
    "validate_alliance_match",
]
