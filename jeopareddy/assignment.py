"""Decide which clues trigger which mini-game.

Assignments are sticky: clues already answered under a mini-game keep it,
pending ones stay assigned, and only the shortfall is topped up at random
from the clues nobody has answered yet.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from jeopareddy.config import MiniGameConfig
from jeopareddy.ladder import floor_count
from jeopareddy.models import Clue


@dataclass
class AssignmentStats:
    total_assigned: int
    completed: int
    remaining: int


@dataclass
class MiniGameAssignment:
    joker_clue_ids: list[str] = field(default_factory=list)
    reveal_clue_ids: list[str] = field(default_factory=list)

    def minigame_for(self, clue_id: str) -> str | None:
        # Reveal wins if a stale assignment ever lists a clue twice.
        if clue_id in self.reveal_clue_ids:
            return "reveal"
        if clue_id in self.joker_clue_ids:
            return "joker"
        return None


def assign_clues(
    clues: list[Clue],
    current: list[str],
    appearances: float,
    rng: random.Random,
    excluded: frozenset[str] | set[str] = frozenset(),
) -> list[str]:
    """Return the clue ids that should carry one mini-game."""
    eligible = [clue for clue in clues if clue.id not in excluded]
    target = floor_count(appearances or 0, len(eligible))
    if target == 0:
        return []

    eligible_ids = {clue.id for clue in eligible}
    answered_ids = {clue.id for clue in eligible if clue.is_answered}
    existing = [clue_id for clue_id in current if clue_id in eligible_ids]
    completed = [clue_id for clue_id in existing if clue_id in answered_ids]
    pending = [clue_id for clue_id in existing if clue_id not in answered_ids]

    chosen = completed[:target]
    if len(chosen) < target:
        chosen.extend(pending[:target - len(chosen)])

    if len(chosen) < target:
        chosen_set = set(chosen)
        available = [
            clue.id for clue in eligible
            if not clue.is_answered and clue.id not in chosen_set
        ]
        rng.shuffle(available)
        chosen.extend(available[:target - len(chosen)])

    return chosen


def assign_minigames(
    clues: list[Clue],
    config: MiniGameConfig,
    current: MiniGameAssignment,
    rng: random.Random,
) -> MiniGameAssignment:
    """Refresh both assignments; the reveal set never overlaps the ladder set."""
    joker_ids: list[str] = []
    if config.joker_enabled:
        joker_ids = assign_clues(clues, current.joker_clue_ids, config.joker_appearances, rng)

    reveal_ids: list[str] = []
    if config.reveal_enabled:
        reveal_ids = assign_clues(
            clues, current.reveal_clue_ids, config.reveal_appearances, rng,
            excluded=set(joker_ids),
        )
    return MiniGameAssignment(joker_clue_ids=joker_ids, reveal_clue_ids=reveal_ids)


def assignment_stats(assigned: list[str], clues: list[Clue]) -> AssignmentStats:
    answered_ids = {clue.id for clue in clues if clue.is_answered}
    completed = sum(1 for clue_id in assigned if clue_id in answered_ids)
    return AssignmentStats(
        total_assigned=len(assigned),
        completed=completed,
        remaining=max(0, len(assigned) - completed),
    )
