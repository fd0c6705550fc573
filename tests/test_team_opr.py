"""Unit tests for team OPR/DPR/CCWM calculations."""

from __future__ import annotations

import pytest

from domain.ratings.common import AllianceMatchResult
from domain.ratings.opr.calculator import (
    OPR_ROUNDS,
    TeamOprCalculator,
    calculate_opr,
    get_opr_rankings,
    get_team_opr,
    opr_learning_rate,
)


def _match(
    match_number: int,
    red: tuple[int, int],
    blue: tuple[int, int],
    red_score: float,
    blue_score: float,
    red_phases: dict[str, float] | None = None,
    blue_phases: dict[str, float] | None = None,
) -> AllianceMatchResult:
    return AllianceMatchResult(
        match_number=match_number,
        red_team1=red[0],
        red_team2=red[1],
        blue_team1=blue[0],
        blue_team2=blue[1],
        red_score=red_score,
        blue_score=blue_score,
        red_phase_scores=red_phases,
        blue_phase_scores=blue_phases,
    )


QUALIFICATION_FIXTURE = [
    _match(1, (1, 2), (3, 4), 62, 35),
    _match(2, (5, 6), (1, 3), 41, 55),
    _match(3, (2, 4), (5, 6), 48, 44),
    _match(4, (1, 5), (4, 6), 70, 30),
    _match(5, (3, 6), (2, 5), 39, 51),
    _match(6, (4, 1), (2, 6), 58, 47),
]


def test_learning_rate_schedule() -> None:
    assert opr_learning_rate(0) == pytest.approx(0.15)
    assert opr_learning_rate(50) == pytest.approx(0.1125)
    assert opr_learning_rate(OPR_ROUNDS - 1) == pytest.approx(0.15 * (1 - 99 / 200))
    assert OPR_ROUNDS == 100


def test_empty_input_returns_empty_table() -> None:
    assert calculate_opr([]) == {}
    assert get_opr_rankings([]) == []
    assert get_team_opr([], 1001) is None


def test_empty_calculator_does_not_iterate() -> None:
    calculator = TeamOprCalculator([])
    assert calculator.fit() == {}
    assert calculator.rounds_completed == 0
    assert calculator.tracked_entity_count() == 0


def test_single_match_red_outrates_blue() -> None:
    results = calculate_opr([_match(1, (1001, 1002), (2001, 2002), 60, 40)])

    assert results[1001].opr > results[2001].opr
    assert results[1002].opr > results[2002].opr


def test_single_match_converges_to_even_split() -> None:
    results = calculate_opr([_match(1, (1001, 1002), (2001, 2002), 60, 40)])

    assert results[1001].opr == pytest.approx(30.0, abs=0.01)
    assert results[2001].opr == pytest.approx(20.0, abs=0.01)
    assert results[1001].ccwm == pytest.approx(5.0, abs=0.01)
    assert results[2001].ccwm == pytest.approx(-5.0, abs=0.01)
    assert results[1001].dpr == pytest.approx(25.0, abs=0.02)
    assert results[2001].dpr == pytest.approx(25.0, abs=0.02)
    assert results[1001].phase_oprs is None


def test_dpr_is_opr_minus_ccwm() -> None:
    for result in calculate_opr(QUALIFICATION_FIXTURE).values():
        assert result.dpr == pytest.approx(result.opr - result.ccwm, abs=0.011)


def test_opr_is_order_independent() -> None:
    forward = TeamOprCalculator(QUALIFICATION_FIXTURE)
    backward = TeamOprCalculator(list(reversed(QUALIFICATION_FIXTURE)))
    shuffled = TeamOprCalculator(
        [QUALIFICATION_FIXTURE[index] for index in (3, 0, 5, 1, 4, 2)]
    )

    forward_results = forward.fit()
    backward.fit()
    shuffled.fit()

    for team_id, rating in forward.ratings().items():
        assert backward.ratings()[team_id] == pytest.approx(rating, abs=1e-6)
        assert shuffled.ratings()[team_id] == pytest.approx(rating, abs=1e-6)
    assert calculate_opr(list(reversed(QUALIFICATION_FIXTURE))) == forward_results


def test_offense_squared_error_never_increases() -> None:
    calculator = TeamOprCalculator(QUALIFICATION_FIXTURE)
    errors = [calculator.offense_squared_error()]
    for round_index in range(OPR_ROUNDS):
        calculator.refine_round(round_index)
        errors.append(calculator.offense_squared_error())

    assert calculator.rounds_completed == OPR_ROUNDS
    for previous, current in zip(errors, errors[1:]):
        assert current <= previous + 1e-9
    assert errors[-1] < errors[0]


def test_refine_round_defaults_to_next_round() -> None:
    calculator = TeamOprCalculator(QUALIFICATION_FIXTURE)
    calculator.refine_round()
    calculator.refine_round()
    assert calculator.rounds_completed == 2

    results = calculator.fit()
    assert calculator.rounds_completed == OPR_ROUNDS
    assert results == calculate_opr(QUALIFICATION_FIXTURE)


def test_estimates_are_seeded_with_average_score_per_team() -> None:
    calculator = TeamOprCalculator([_match(1, (1001, 1002), (2001, 2002), 60, 40)])
    assert calculator.ratings() == pytest.approx({1001: 25.0, 1002: 25.0, 2001: 25.0, 2002: 25.0})


def test_phase_oprs_converge_per_phase() -> None:
    results = calculate_opr(
        [
            _match(
                1,
                (1001, 1002),
                (2001, 2002),
                46,
                30,
                red_phases={"auto": 10, "teleop": 30, "endgame": 6},
                blue_phases={"auto": 6, "teleop": 20, "endgame": 4},
            )
        ]
    )

    assert results[1001].phase_oprs == pytest.approx(
        {"auto": 5.0, "teleop": 15.0, "endgame": 3.0}, abs=0.01
    )
    assert results[2001].phase_oprs == pytest.approx(
        {"auto": 3.0, "teleop": 10.0, "endgame": 2.0}, abs=0.01
    )


def test_phase_oprs_are_all_or_nothing_per_batch() -> None:
    results = calculate_opr(
        [
            _match(
                1,
                (1, 2),
                (3, 4),
                46,
                30,
                red_phases={"auto": 10, "teleop": 30, "endgame": 6},
                blue_phases={"auto": 6, "teleop": 20, "endgame": 4},
            ),
            _match(2, (5, 6), (7, 8), 50, 50),
        ]
    )

    assert all(result.phase_oprs is not None for result in results.values())
    # Teams that never played a phased match keep the batch-wide seed.
    assert results[5].phase_oprs == pytest.approx(
        {"auto": 4.0, "teleop": 12.5, "endgame": 2.5}
    )


def test_custom_phase_names() -> None:
    results = calculate_opr(
        [
            _match(
                1,
                (1, 2),
                (3, 4),
                40,
                20,
                red_phases={"auto": 12, "driver": 28},
                blue_phases={"auto": 4, "driver": 16},
            )
        ],
        phase_names=("auto", "driver"),
    )

    assert set(results[1].phase_oprs or {}) == {"auto", "driver"}


def test_rankings_sort_descending_with_team_number_tie_break() -> None:
    rankings = get_opr_rankings([_match(1, (1002, 1001), (2002, 2001), 60, 40)])
    assert [result.team_number for result in rankings] == [1001, 1002, 2001, 2002]


def test_get_team_opr() -> None:
    matches = [_match(1, (1001, 1002), (2001, 2002), 60, 40)]
    assert get_team_opr(matches, 9999) is None
    found = get_team_opr(matches, 1001)
    assert found is not None
    assert found.team_number == 1001
