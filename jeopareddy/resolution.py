"""Answer judging and the point value a clue finally resolves to."""

from __future__ import annotations

import re
import unicodedata

from jeopareddy.errors import MiniGameConflictError
from jeopareddy.ladder import LadderRound

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_ARTICLES = re.compile(r"\b(a|an|the)\b")
_WHITESPACE = re.compile(r"\s+")


def normalize_answer(value: str) -> str:
    """Fold accents, case, punctuation and articles out of an answer."""
    decomposed = unicodedata.normalize("NFD", value)
    text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    text = _NON_ALNUM.sub(" ", text.lower())
    text = _ARTICLES.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def is_correct_answer(given: str, expected: str) -> bool:
    return normalize_answer(given) == normalize_answer(expected)


def resolve_point_value(
    clue_points: int,
    ladder: LadderRound | None = None,
    reveal_bonus: int = 0,
) -> int:
    """Value at stake for a clue once its mini-game (if any) has run.

    A completed ladder replaces the stored value outright, Thief and Joker
    included. The reveal bonus adds on top of the stored value. The two
    mini-games never apply to the same clue.
    """
    if ladder is not None and reveal_bonus:
        raise MiniGameConflictError(
            "Ladder and reveal mini-games cannot both apply to one clue."
        )
    if ladder is not None and ladder.final_points is not None:
        return ladder.final_points
    return clue_points + reveal_bonus


def score_delta(resolved_point_value: int, is_correct: bool) -> int:
    return resolved_point_value if is_correct else -resolved_point_value
