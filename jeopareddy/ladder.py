"""Joker ladder mini-game: spot placement, step resolution and ladder values."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

STEP_COUNT = 5
TOTAL_SPOTS = STEP_COUNT * 2
LADDER_STEP_POINTS = 25
THIEF_POINTS = 10

DIRECTIONS = ("up", "down")

PLAYING = "playing"
COMPLETED = "completed"


# ── Spots and steps ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Spot:
    """A hidden spot behind an UP or DOWN button."""

    kind: str  # "number" | "joker" | "thief"
    value: int | None = None

    @classmethod
    def number(cls, value: int) -> Spot:
        return cls(kind="number", value=value)

    @classmethod
    def joker(cls) -> Spot:
        return cls(kind="joker")

    @classmethod
    def thief(cls) -> Spot:
        return cls(kind="thief")

    def label(self) -> str:
        if self.kind == "number":
            return str(self.value)
        return self.kind.upper()


@dataclass(frozen=True)
class LadderStep:
    base_digit: int
    up_spot: Spot
    down_spot: Spot
    choice: str | None = None
    outcome: str | None = None  # climb | down | stay | joker | thief

    def spot_for(self, direction: str) -> Spot:
        return self.up_spot if direction == "up" else self.down_spot

    @property
    def revealed_spot(self) -> Spot | None:
        if self.choice is None:
            return None
        return self.spot_for(self.choice)


@dataclass(frozen=True)
class LadderRound:
    """One playthrough of the ladder for a single clue.

    Treated as an immutable value: every transition returns a new round.
    """

    base_points: int
    steps: tuple[LadderStep, ...]
    current_step_index: int = 0
    current_rung: int = 0
    status: str = PLAYING
    final_points: int | None = None
    joker_hit: bool = False
    thief_hit: bool = False
    message: str = ""

    @property
    def is_playing(self) -> bool:
        return self.status == PLAYING

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def current_points(self) -> int:
        """Value shown next to the active rung."""
        if self.thief_hit:
            return THIEF_POINTS
        return ladder_point_value(self.base_points, self.current_rung)


# ── Ladder values ───────────────────────────────────────────────────

def ladder_point_value(base_points: int, rung: int) -> int:
    return base_points + rung * LADDER_STEP_POINTS


def ladder_values(base_points: int) -> list[int]:
    """Point values for every rung, top rung first."""
    return [ladder_point_value(base_points, rung) for rung in range(STEP_COUNT, -1, -1)]


# ── Round initialization ────────────────────────────────────────────

def clamp_spot_counts(
    joker_spot_count: float,
    thief_spot_count: float,
    total_spots: int = TOTAL_SPOTS,
) -> tuple[int, int]:
    """Floor and clamp the configured counts so they fit in *total_spots*."""
    jokers = floor_count(joker_spot_count, total_spots)
    thieves = floor_count(thief_spot_count, total_spots - jokers)
    return jokers, thieves


def floor_count(value: float, ceiling: int) -> int:
    """Floor *value* into ``[0, ceiling]``. NaN counts as 0, infinity as *ceiling*."""
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return ceiling if value > 0 else 0
    return max(0, min(ceiling, math.floor(value)))


def assign_spots(
    joker_spot_count: float,
    thief_spot_count: float,
    rng: random.Random,
    total_spots: int = TOTAL_SPOTS,
) -> tuple[frozenset[int], frozenset[int]]:
    """Pick the slot positions holding a Joker and those holding a Thief.

    Slot ``2*i`` is the UP spot of step *i*, slot ``2*i + 1`` its DOWN spot.
    The two returned sets never overlap.
    """
    jokers, thieves = clamp_spot_counts(joker_spot_count, thief_spot_count, total_spots)
    positions = list(range(total_spots))
    rng.shuffle(positions)
    return (
        frozenset(positions[:jokers]),
        frozenset(positions[jokers:jokers + thieves]),
    )


def _make_spot(
    position: int,
    joker_positions: frozenset[int],
    thief_positions: frozenset[int],
    rng: random.Random,
) -> Spot:
    if position in joker_positions:
        return Spot.joker()
    if position in thief_positions:
        return Spot.thief()
    return Spot.number(rng.randint(0, 9))


def create_round(
    base_points: int,
    joker_spot_count: float = 1,
    thief_spot_count: float = 1,
    rng: random.Random | None = None,
) -> LadderRound:
    """Generate a fresh round; every hidden spot is decided here."""
    rng = rng or random.Random()
    joker_positions, thief_positions = assign_spots(joker_spot_count, thief_spot_count, rng)

    steps = []
    for index in range(STEP_COUNT):
        base_digit = rng.randint(0, 9)
        up_spot = _make_spot(index * 2, joker_positions, thief_positions, rng)
        down_spot = _make_spot(index * 2 + 1, joker_positions, thief_positions, rng)
        steps.append(LadderStep(base_digit=base_digit, up_spot=up_spot, down_spot=down_spot))

    logger.debug(
        "Ladder round created: base=%d jokers=%s thieves=%s",
        base_points, sorted(joker_positions), sorted(thief_positions),
    )
    return LadderRound(
        base_points=base_points,
        steps=tuple(steps),
        message=f"Choose UP or DOWN for step 1. Base clue value: {base_points} points.",
    )


# ── Step resolution ─────────────────────────────────────────────────

def evaluate_number_outcome(base_digit: int, revealed_digit: int, choice: str) -> str:
    if revealed_digit == base_digit:
        return "stay"
    if choice == "up":
        return "climb" if revealed_digit > base_digit else "down"
    return "climb" if revealed_digit < base_digit else "down"


def describe_outcome(outcome: str | None) -> str:
    return {
        "climb": "Correct - climb",
        "down": "Wrong - down one",
        "stay": "Tie - stay",
        "joker": "Joker",
        "thief": "Thief",
    }.get(outcome or "", "")


def apply_choice(current: LadderRound, choice: str) -> LadderRound:
    """Resolve the current step with *choice* ("up" or "down").

    Returns *current* unchanged when the action is not allowed: the round
    is over, the step was already chosen, or the direction is unknown.
    """
    if not current.is_playing:
        return current
    if choice not in DIRECTIONS:
        logger.debug("Ignoring unknown ladder direction %r", choice)
        return current

    step_index = current.current_step_index
    if not 0 <= step_index < len(current.steps):
        return current
    step = current.steps[step_index]
    if step.choice is not None:
        return current

    revealed = step.spot_for(choice)
    steps = list(current.steps)

    if revealed.kind == "joker":
        steps[step_index] = replace(step, choice=choice, outcome="joker")
        return replace(
            current,
            steps=tuple(steps),
            status=COMPLETED,
            current_rung=STEP_COUNT,
            final_points=ladder_point_value(current.base_points, STEP_COUNT),
            joker_hit=True,
            thief_hit=False,
            message="JOKER! Instant top prize. The question will now be revealed.",
        )

    if revealed.kind == "thief":
        steps[step_index] = replace(step, choice=choice, outcome="thief")
        return replace(
            current,
            steps=tuple(steps),
            status=COMPLETED,
            current_rung=0,
            final_points=THIEF_POINTS,
            joker_hit=False,
            thief_hit=True,
            message=f"THIEF! The clue is reduced to {THIEF_POINTS} points if answered correctly.",
        )

    outcome = evaluate_number_outcome(step.base_digit, revealed.value, choice)
    rung = current.current_rung
    if outcome == "climb":
        rung = min(STEP_COUNT, rung + 1)
    elif outcome == "down":
        rung = max(0, rung - 1)

    steps[step_index] = replace(step, choice=choice, outcome=outcome)

    if step_index == len(steps) - 1:
        final_points = ladder_point_value(current.base_points, rung)
        return replace(
            current,
            steps=tuple(steps),
            status=COMPLETED,
            current_rung=rung,
            final_points=final_points,
            message=f"Joker complete. Final clue value: {final_points} points.",
        )

    return replace(
        current,
        steps=tuple(steps),
        current_step_index=step_index + 1,
        current_rung=rung,
        message=(
            f"{describe_outcome(outcome)}. Next: step {step_index + 2}. "
            f"Current value {ladder_point_value(current.base_points, rung)}."
        ),
    )
