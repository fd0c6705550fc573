"""OPR rating modules."""

from domain.ratings.opr.calculator import (
    OPR_LEARNING_RATE,
    OPR_ROUNDS,
    TeamOprCalculator,
    TeamOprResult,
    calculate_opr,
    get_opr_rankings,
    get_team_opr,
    opr_learning_rate,
)

__all__ = [
    "OPR_LEARNING_RATE",
    "OPR_ROUNDS",
    "TeamOprCalculator",
    "TeamOprResult",
    "calculate_opr",
    "get_opr_rankings",
    "get_team_opr",
    "opr_learning_rate",
]
