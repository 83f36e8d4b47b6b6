"""Tests for jeopareddy.ladder (Joker ladder engine)."""

from __future__ import annotations

import random

import pytest

from jeopareddy.ladder import (
    COMPLETED,
    PLAYING,
    STEP_COUNT,
    TOTAL_SPOTS,
    LadderRound,
    LadderStep,
    Spot,
    apply_choice,
    assign_spots,
    clamp_spot_counts,
    create_round,
    evaluate_number_outcome,
    ladder_point_value,
    ladder_values,
)


def _step(base_digit: int = 5, up: Spot | None = None, down: Spot | None = None) -> LadderStep:
    return LadderStep(
        base_digit=base_digit,
        up_spot=up or Spot.number(base_digit),
        down_spot=down or Spot.number(base_digit),
    )


def _round(base_points: int, steps: list[LadderStep]) -> LadderRound:
    return LadderRound(base_points=base_points, steps=tuple(steps))


def _play(round_: LadderRound, choices: list[str]) -> LadderRound:
    for choice in choices:
        round_ = apply_choice(round_, choice)
    return round_


def _count_spots(round_: LadderRound, kind: str) -> int:
    return sum(
        1 for step in round_.steps
        for spot in (step.up_spot, step.down_spot)
        if spot.kind == kind
    )


# ── Ladder values ───────────────────────────────────────────────────

def test_ladder_point_value():
    assert ladder_point_value(300, 0) == 300
    assert ladder_point_value(300, 4) == 400
    assert ladder_point_value(200, 5) == 325


def test_ladder_values_top_rung_first():
    assert ladder_values(100) == [225, 200, 175, 150, 125, 100]


# ── Spot assignment ─────────────────────────────────────────────────

@pytest.mark.parametrize("jokers,thieves,expected", [
    (1, 1, (1, 1)),
    (0, 0, (0, 0)),
    (-3, -1, (0, 0)),
    (12, 4, (10, 0)),
    (4, 9, (4, 6)),
    (2.7, 1.2, (2, 1)),
    (float("nan"), 1, (0, 1)),
    (float("inf"), 0, (10, 0)),
    (1, float("-inf"), (1, 0)),
    (3, float("inf"), (3, 7)),
])
def test_clamp_spot_counts(jokers, thieves, expected):
    assert clamp_spot_counts(jokers, thieves) == expected


def test_assign_spots_disjoint_and_exact():
    for seed in range(50):
        rng = random.Random(seed)
        jokers, thieves = assign_spots(3, 4, rng)
        assert len(jokers) == 3
        assert len(thieves) == 4
        assert not jokers & thieves
        assert all(0 <= p < TOTAL_SPOTS for p in jokers | thieves)


def test_generated_rounds_have_exact_special_counts():
    """After clamping, exactly that many Joker and Thief spots exist."""
    for seed in range(50):
        for jokers, thieves in [(1, 1), (0, 3), (5, 5), (7, 8), (-2, 20)]:
            round_ = create_round(200, jokers, thieves, random.Random(seed))
            want_jokers, want_thieves = clamp_spot_counts(jokers, thieves)
            assert _count_spots(round_, "joker") == want_jokers
            assert _count_spots(round_, "thief") == want_thieves
            assert _count_spots(round_, "number") == TOTAL_SPOTS - want_jokers - want_thieves


def test_create_round_initial_state():
    round_ = create_round(300, rng=random.Random(1))
    assert round_.status == PLAYING
    assert round_.current_step_index == 0
    assert round_.current_rung == 0
    assert round_.final_points is None
    assert len(round_.steps) == STEP_COUNT
    for step in round_.steps:
        assert 0 <= step.base_digit <= 9
        assert step.choice is None
        for spot in (step.up_spot, step.down_spot):
            if spot.kind == "number":
                assert 0 <= spot.value <= 9


def test_non_finite_counts_still_build_a_round():
    round_ = create_round(100, float("nan"), 1, random.Random(1))
    assert _count_spots(round_, "joker") == 0
    assert _count_spots(round_, "thief") == 1

    round_ = create_round(100, float("inf"), 0, random.Random(1))
    assert _count_spots(round_, "joker") == TOTAL_SPOTS


def test_same_seed_same_round():
    a = create_round(100, 2, 2, random.Random(42))
    b = create_round(100, 2, 2, random.Random(42))
    assert a == b


# ── Step resolution ─────────────────────────────────────────────────

def test_equal_digit_always_stays():
    for base in range(10):
        assert evaluate_number_outcome(base, base, "up") == "stay"
        assert evaluate_number_outcome(base, base, "down") == "stay"


def test_number_outcome_rules():
    for base in range(10):
        for revealed in range(10):
            if revealed == base:
                continue
            up = evaluate_number_outcome(base, revealed, "up")
            down = evaluate_number_outcome(base, revealed, "down")
            assert up == ("climb" if revealed > base else "down")
            assert down == ("climb" if revealed < base else "down")


def test_worked_example_climb_three_stay_climb():
    """300 points: climb, climb, climb, stay, climb -> rung 4 -> 400."""
    steps = [
        _step(5, up=Spot.number(9)),
        _step(2, down=Spot.number(0)),
        _step(7, up=Spot.number(8)),
        _step(4, up=Spot.number(4)),
        _step(6, down=Spot.number(1)),
    ]
    round_ = _play(_round(300, steps), ["up", "down", "up", "up", "down"])
    assert round_.status == COMPLETED
    assert round_.current_rung == 4
    assert round_.final_points == 400
    assert [s.outcome for s in round_.steps] == ["climb", "climb", "climb", "stay", "climb"]
    assert not round_.joker_hit
    assert not round_.thief_hit


def test_thief_on_step_two():
    """200 points, Thief on step 2 -> 10, later steps untouched."""
    steps = [
        _step(3, up=Spot.number(8)),
        _step(5, down=Spot.thief()),
        _step(), _step(), _step(),
    ]
    round_ = _play(_round(200, steps), ["up", "down"])
    assert round_.status == COMPLETED
    assert round_.thief_hit
    assert round_.final_points == 10
    assert round_.current_rung == 0
    assert round_.current_step_index == 1
    assert all(step.choice is None for step in round_.steps[2:])


@pytest.mark.parametrize("step_index", range(STEP_COUNT))
def test_joker_at_any_step_ends_round(step_index):
    steps = [_step() for _ in range(STEP_COUNT)]
    steps[step_index] = _step(up=Spot.joker())
    round_ = _play(_round(100, steps), ["up"] * (step_index + 1))
    assert round_.status == COMPLETED
    assert round_.joker_hit
    assert round_.current_rung == STEP_COUNT
    assert round_.final_points == 100 + 125
    assert round_.current_step_index == step_index


@pytest.mark.parametrize("step_index", range(STEP_COUNT))
def test_thief_ignores_current_rung(step_index):
    steps = [_step(0, up=Spot.number(9)) for _ in range(STEP_COUNT)]
    steps[step_index] = _step(up=Spot.thief())
    round_ = _play(_round(500, steps), ["up"] * (step_index + 1))
    assert round_.thief_hit
    assert round_.final_points == 10
    assert round_.current_points == 10


def test_no_special_spots_never_complete_early():
    for seed in range(100):
        rng = random.Random(seed)
        round_ = create_round(100, 0, 0, rng)
        for index in range(STEP_COUNT):
            assert round_.status == PLAYING
            assert round_.current_step_index == index
            round_ = apply_choice(round_, rng.choice(["up", "down"]))
        assert round_.status == COMPLETED
        assert 0 <= round_.current_rung <= STEP_COUNT
        assert round_.final_points == 100 + round_.current_rung * 25
        assert all(step.outcome in ("climb", "down", "stay") for step in round_.steps)


def test_rung_never_below_zero():
    steps = [_step(5, up=Spot.number(1)) for _ in range(STEP_COUNT)]
    round_ = _play(_round(100, steps), ["up"] * STEP_COUNT)
    assert [s.outcome for s in round_.steps] == ["down"] * STEP_COUNT
    assert round_.current_rung == 0
    assert round_.final_points == 100


def test_rung_never_above_top():
    steps = [_step(0, up=Spot.number(9)) for _ in range(STEP_COUNT)]
    round_ = _play(_round(100, steps), ["up"] * STEP_COUNT)
    assert round_.current_rung == STEP_COUNT
    assert round_.final_points == 225


# ── Invalid actions are no-ops ──────────────────────────────────────

def test_choice_on_completed_round_is_noop():
    steps = [_step(up=Spot.joker())] + [_step() for _ in range(STEP_COUNT - 1)]
    done = apply_choice(_round(100, steps), "up")
    assert apply_choice(done, "down") is done
    assert apply_choice(done, "up") is done


def test_rechoosing_resolved_step_is_noop():
    steps = [_step() for _ in range(STEP_COUNT)]
    steps[0] = LadderStep(5, Spot.number(9), Spot.number(1), choice="up", outcome="climb")
    round_ = LadderRound(base_points=100, steps=tuple(steps), current_rung=1)
    after = apply_choice(round_, "down")
    assert after is round_
    assert after.current_rung == 1
    assert after.status == PLAYING
    assert after.final_points is None


def test_unknown_direction_is_noop():
    round_ = create_round(100, rng=random.Random(3))
    assert apply_choice(round_, "sideways") is round_


def test_out_of_range_step_is_noop():
    round_ = LadderRound(
        base_points=100,
        steps=tuple(_step() for _ in range(STEP_COUNT)),
        current_step_index=STEP_COUNT,
    )
    assert apply_choice(round_, "up") is round_


def test_transitions_do_not_mutate_previous_round():
    steps = [_step(0, up=Spot.number(9)) for _ in range(STEP_COUNT)]
    before = _round(100, steps)
    after = apply_choice(before, "up")
    assert before.current_rung == 0
    assert before.steps[0].choice is None
    assert after.steps[0].choice == "up"
    assert after.steps[0].revealed_spot == Spot.number(9)
