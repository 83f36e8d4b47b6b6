"""Play session: one host running questions against a stored game."""

from __future__ import annotations

import logging
import random
import sqlite3
from dataclasses import dataclass, field
from typing import Protocol

from jeopareddy.assignment import (
    AssignmentStats,
    MiniGameAssignment,
    assign_minigames,
    assignment_stats,
)
from jeopareddy.config import MiniGameConfig
from jeopareddy.errors import ConflictError, JeopareddyError, NotFoundError, ValidationError
from jeopareddy.ladder import LadderRound, apply_choice, create_round
from jeopareddy.models import Clue, Game, ScoreEvent, Team
from jeopareddy.persistence import BoardDB
from jeopareddy.resolution import is_correct_answer, resolve_point_value, score_delta
from jeopareddy.reveal import RevealRound, apply_guess, create_reveal_round, finish_reveal

logger = logging.getLogger(__name__)

CORRECT_REASON = "Correct answer"
INCORRECT_REASON = "Incorrect answer"


# ── Structured types ────────────────────────────────────────────────

@dataclass
class AnswerResult:
    """Outcome of one submitted answer, kept until the ledger accepts it."""

    clue_id: str
    team_id: str
    answer: str
    is_correct: bool
    resolved_point_value: int
    delta_points: int
    committed: bool = False
    error: str | None = None
    event: ScoreEvent | None = None


@dataclass
class ActiveQuestion:
    """The clue currently open, with its mini-game round if it has one."""

    clue: Clue
    ladder: LadderRound | None = None
    reveal: RevealRound | None = None
    result: AnswerResult | None = None

    @property
    def minigame_in_progress(self) -> bool:
        if self.ladder is not None and self.ladder.is_playing:
            return True
        return self.reveal is not None and self.reveal.status != "revealed"

    @property
    def reveal_bonus(self) -> int:
        return self.reveal.bonus_points if self.reveal is not None else 0

    @property
    def resolved_point_value(self) -> int:
        return resolve_point_value(self.clue.point_value, self.ladder, self.reveal_bonus)


@dataclass
class PlayEvent:
    """Record of a single host action during play."""

    kind: str
    clue_id: str | None = None
    team_id: str | None = None
    detail: dict = field(default_factory=dict)


# ── Observer ────────────────────────────────────────────────────────

class PlayObserver(Protocol):
    """Receives structured events as questions are played."""

    def on_event(self, event: PlayEvent) -> None: ...


@dataclass
class ListObserver:
    """Default observer: collects events into a list."""

    events: list[PlayEvent] = field(default_factory=list)

    def on_event(self, event: PlayEvent) -> None:
        self.events.append(event)


# ── Session ─────────────────────────────────────────────────────────

class PlaySession:
    """Drive play mode for one game: turns, questions, mini-games, scoring."""

    def __init__(
        self,
        db: BoardDB,
        game_id: str,
        config: MiniGameConfig | None = None,
        rng: random.Random | None = None,
        observer: PlayObserver | None = None,
    ):
        self.db = db
        self.game_id = game_id
        self.config = config or MiniGameConfig()
        self.rng = rng or random.Random()
        self.observer = observer or ListObserver()
        self.assignment = MiniGameAssignment()
        self.current_team_id: str | None = None
        self.active: ActiveQuestion | None = None
        self.game: Game = db.get_game(game_id)
        self.refresh()

    # ── Board and turns ──

    def refresh(self) -> Game:
        """Reload the board and bring assignments and turn up to date."""
        self.game = self.db.get_game(self.game_id)
        self.assignment = assign_minigames(
            self.game.clues, self.config, self.assignment, self.rng,
        )
        teams = self.turn_order
        if not teams:
            self.current_team_id = None
        elif self.current_team_id not in {t.id for t in teams}:
            self.current_team_id = teams[0].id
        return self.game

    @property
    def turn_order(self) -> list[Team]:
        return sorted(self.game.teams, key=lambda t: t.display_order)

    @property
    def current_team(self) -> Team | None:
        return next((t for t in self.game.teams if t.id == self.current_team_id), None)

    def set_current_team(self, team_id: str) -> None:
        if team_id not in {t.id for t in self.game.teams}:
            raise NotFoundError(f"Team {team_id} not found.")
        self.current_team_id = team_id

    def advance_turn(self, after_team_id: str | None = None) -> Team | None:
        teams = self.turn_order
        if not teams:
            return None
        ids = [t.id for t in teams]
        anchor = after_team_id or self.current_team_id
        if anchor in ids:
            self.current_team_id = ids[(ids.index(anchor) + 1) % len(ids)]
        else:
            self.current_team_id = ids[0]
        return self.current_team

    def minigame_stats(self) -> dict[str, AssignmentStats]:
        clues = self.game.clues
        return {
            "joker": assignment_stats(self.assignment.joker_clue_ids, clues),
            "reveal": assignment_stats(self.assignment.reveal_clue_ids, clues),
        }

    # ── Question flow ──

    def open_clue(self, clue_id: str) -> ActiveQuestion:
        """Reveal a board cell, starting its mini-game if one is assigned."""
        if self.active is not None and self.active.result is not None and not self.active.result.committed:
            raise ConflictError("The previous answer has not been saved yet; retry or close it first.")

        clue = self.game.find_clue(clue_id)
        if clue is None:
            raise NotFoundError(f"Clue {clue_id} not found.")
        if clue.is_answered:
            raise ConflictError("This clue has already been answered.")

        question = ActiveQuestion(clue=clue)
        minigame = self.assignment.minigame_for(clue.id)
        if minigame == "joker":
            question.ladder = create_round(
                clue.point_value,
                self.config.joker_spot_count,
                self.config.thief_spot_count,
                self.rng,
            )
        elif minigame == "reveal":
            question.reveal = create_reveal_round()

        self.active = question
        self._emit("clue_opened", clue.id, {"minigame": minigame, "point_value": clue.point_value})
        return question

    def _require_active(self) -> ActiveQuestion:
        if self.active is None:
            raise ConflictError("No question is open.")
        return self.active

    def choose(self, direction: str) -> LadderRound:
        question = self._require_active()
        if question.ladder is None:
            raise ConflictError("This clue has no Joker mini-game.")
        before = question.ladder
        question.ladder = apply_choice(before, direction)
        if question.ladder is not before:
            step = question.ladder.steps[before.current_step_index]
            self._emit("ladder_choice", question.clue.id, {
                "step": before.current_step_index + 1,
                "direction": direction,
                "outcome": step.outcome,
                "rung": question.ladder.current_rung,
                "status": question.ladder.status,
            })
        return question.ladder

    def guess(self, gender: str) -> RevealRound:
        question = self._require_active()
        if question.reveal is None:
            raise ConflictError("This clue has no reveal mini-game.")
        question.reveal = apply_guess(question.reveal, gender)
        return question.reveal

    def finish_reveal(self) -> RevealRound:
        question = self._require_active()
        if question.reveal is None:
            raise ConflictError("This clue has no reveal mini-game.")
        before = question.reveal
        question.reveal = finish_reveal(before)
        if question.reveal is not before:
            self._emit("reveal_finished", question.clue.id, {
                "guess": question.reveal.guessed,
                "bonus": question.reveal.bonus_points,
            })
        return question.reveal

    def submit_answer(self, answer: str) -> AnswerResult:
        """Judge the answer for the current team and write it to the ledger.

        A failed write leaves the result on the question for retry_commit.
        """
        question = self._require_active()
        if question.minigame_in_progress:
            raise ConflictError("Finish the mini-game before answering.")
        if question.result is not None:
            raise ConflictError("An answer was already submitted for this question.")
        if self.current_team_id is None:
            raise ConflictError("Add a team before playing.")
        if not answer or not answer.strip():
            raise ValidationError.single("answer", "Answer is required.")

        is_correct = is_correct_answer(answer, question.clue.answer)
        resolved = question.resolved_point_value
        question.result = AnswerResult(
            clue_id=question.clue.id,
            team_id=self.current_team_id,
            answer=answer,
            is_correct=is_correct,
            resolved_point_value=resolved,
            delta_points=score_delta(resolved, is_correct),
        )
        self._emit("answer_submitted", question.clue.id, {
            "is_correct": is_correct,
            "resolved_point_value": resolved,
        })
        self._commit(question.result)
        return question.result

    def retry_commit(self) -> AnswerResult:
        """Write a previously failed answer again, with the same value."""
        question = self._require_active()
        result = question.result
        if result is None:
            raise ConflictError("No answer has been submitted for this question.")
        if not result.committed:
            self._commit(result)
        return result

    def _commit(self, result: AnswerResult) -> None:
        try:
            result.event = self.db.resolve_clue(
                self.game_id,
                result.team_id,
                result.clue_id,
                result.delta_points,
                reason=CORRECT_REASON if result.is_correct else INCORRECT_REASON,
            )
        except (JeopareddyError, sqlite3.Error) as exc:
            result.error = str(exc)
            logger.warning("Could not save answer for clue %s: %s", result.clue_id, exc)
            self._emit("commit_failed", result.clue_id, {"error": result.error}, result.team_id)
            return

        result.committed = True
        result.error = None
        self.refresh()
        self.advance_turn(after_team_id=result.team_id)
        self._emit("committed", result.clue_id, {"delta_points": result.event.delta_points}, result.team_id)

    def close_question(self) -> None:
        """Discard the open question and its mini-game round. Idempotent."""
        if self.active is None:
            return
        question = self.active
        if question.result is not None and not question.result.committed:
            logger.warning("Discarding unsaved answer for clue %s", question.clue.id)
        self.active = None
        self._emit("question_closed", question.clue.id)

    def _emit(self, kind: str, clue_id: str | None, detail: dict | None = None, team_id: str | None = None) -> None:
        self.observer.on_event(PlayEvent(
            kind=kind,
            clue_id=clue_id,
            team_id=team_id or self.current_team_id,
            detail=detail or {},
        ))
