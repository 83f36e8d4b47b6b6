"""Gender Reveal bonus mini-game.

The team guesses "boy" or "girl" before the reveal drops. A correct guess
adds a fixed bonus to the clue's value; a wrong one costs nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

REVEAL_RESULT = "boy"
REVEAL_BONUS_POINTS = 50

GUESSES = ("boy", "girl")


@dataclass(frozen=True)
class RevealRound:
    status: str = "guessing"  # guessing | animating | revealed
    guessed: str | None = None
    actual: str = REVEAL_RESULT
    is_correct: bool | None = None
    bonus_status: str = "idle"  # idle | awarded | missed
    message: str = ""

    @property
    def bonus_points(self) -> int:
        return REVEAL_BONUS_POINTS if self.bonus_status == "awarded" else 0


def create_reveal_round(actual: str = REVEAL_RESULT) -> RevealRound:
    return RevealRound(actual=actual)


def apply_guess(current: RevealRound, guess: str) -> RevealRound:
    """Lock in a guess. Only a round that is still guessing accepts one."""
    if current.status != "guessing" or guess not in GUESSES:
        return current
    return replace(current, status="animating", guessed=guess)


def finish_reveal(current: RevealRound) -> RevealRound:
    """Drop the reveal and settle the bonus."""
    if current.status != "animating":
        return current
    is_correct = current.guessed == current.actual
    if is_correct:
        message = f"Correct guess! +{REVEAL_BONUS_POINTS} points added to this clue's value."
    else:
        message = "No points lost for a wrong guess."
    return replace(
        current,
        status="revealed",
        is_correct=is_correct,
        bonus_status="awarded" if is_correct else "missed",
        message=message,
    )
