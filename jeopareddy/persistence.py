"""SQLite persistence for game boards, teams and the score ledger.

The ledger is append-only: a team's score is the sum of its score events,
and no single event may take that sum below zero.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from jeopareddy.errors import ConflictError, NotFoundError, ValidationError
from jeopareddy.models import (
    DRAFT,
    IN_PROGRESS,
    Category,
    Clue,
    Game,
    GameSummary,
    NewClue,
    ScoreEvent,
    Team,
    clean_optional,
    clue_image_error,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def _require(value: str | None, name: str, label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError.single(name, f"{label} is required.")
    return value.strip()


def _require_positive(value: int, name: str, label: str) -> None:
    if value <= 0:
        raise ValidationError.single(name, f"{label} must be greater than zero.")


class BoardDB:
    """Thin wrapper around a SQLite database for boards and scores."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS games (
                id          TEXT PRIMARY KEY,
                title       TEXT NOT NULL,
                status      TEXT NOT NULL DEFAULT 'Draft',
                created_at  TEXT NOT NULL,
                updated_at  TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS categories (
                id              TEXT PRIMARY KEY,
                game_id         TEXT NOT NULL REFERENCES games(id) ON DELETE CASCADE,
                name            TEXT NOT NULL,
                display_order   INTEGER NOT NULL,
                UNIQUE(game_id, display_order)
            );
            CREATE TABLE IF NOT EXISTS clues (
                id              TEXT PRIMARY KEY,
                game_id         TEXT NOT NULL REFERENCES games(id) ON DELETE CASCADE,
                category_id     TEXT NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
                prompt          TEXT NOT NULL,
                answer          TEXT NOT NULL,
                point_value     INTEGER NOT NULL CHECK (point_value > 0),
                row_order       INTEGER NOT NULL,
                is_revealed     INTEGER NOT NULL DEFAULT 0,
                is_answered     INTEGER NOT NULL DEFAULT 0,
                image_mime_type TEXT,
                image_base64    TEXT,
                UNIQUE(game_id, category_id, row_order)
            );
            CREATE TABLE IF NOT EXISTS teams (
                id              TEXT PRIMARY KEY,
                game_id         TEXT NOT NULL REFERENCES games(id) ON DELETE CASCADE,
                name            TEXT NOT NULL,
                display_order   INTEGER NOT NULL,
                UNIQUE(game_id, display_order)
            );
            CREATE TABLE IF NOT EXISTS score_events (
                id              TEXT PRIMARY KEY,
                game_id         TEXT NOT NULL REFERENCES games(id) ON DELETE CASCADE,
                team_id         TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
                clue_id         TEXT REFERENCES clues(id) ON DELETE SET NULL,
                delta_points    INTEGER NOT NULL,
                reason          TEXT,
                created_at      TEXT NOT NULL
            );
        """)
        self._conn.commit()

    # ── Helpers ─────────────────────────────────────────────────────

    def _game_status(self, game_id: str) -> str:
        row = self._conn.execute(
            "SELECT status FROM games WHERE id = ?", (game_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Game {game_id} not found.")
        return row[0]

    def _require_draft(self, game_id: str, message: str) -> None:
        if self._game_status(game_id) != DRAFT:
            raise ConflictError(message)

    def _touch(self, game_id: str) -> str:
        now = _now()
        self._conn.execute("UPDATE games SET updated_at = ? WHERE id = ?", (now, game_id))
        return now

    def _exists(self, table: str, row_id: str, game_id: str) -> bool:
        row = self._conn.execute(
            f"SELECT 1 FROM {table} WHERE id = ? AND game_id = ?", (row_id, game_id)
        ).fetchone()
        return row is not None

    # ── Games ───────────────────────────────────────────────────────

    def list_games(self) -> list[GameSummary]:
        rows = self._conn.execute(
            "SELECT id, title, status, created_at, updated_at FROM games "
            "ORDER BY updated_at DESC"
        ).fetchall()
        return [GameSummary(*r) for r in rows]

    def create_game(self, title: str) -> GameSummary:
        title = _require(title, "title", "Title")
        now = _now()
        game = GameSummary(id=_new_id(), title=title, status=DRAFT, created_at=now, updated_at=now)
        self._conn.execute(
            "INSERT INTO games (id, title, status, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
            (game.id, game.title, game.status, game.created_at, game.updated_at),
        )
        self._conn.commit()
        logger.info("Created game %s (%s)", game.id, game.title)
        return game

    def get_game(self, game_id: str) -> Game:
        """Return the full board for *game_id*, team scores included."""
        row = self._conn.execute(
            "SELECT id, title, status, created_at, updated_at FROM games WHERE id = ?",
            (game_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Game {game_id} not found.")
        game = Game(*row)

        categories: dict[str, Category] = {}
        for r in self._conn.execute(
            "SELECT id, name, display_order FROM categories WHERE game_id = ? "
            "ORDER BY display_order",
            (game_id,),
        ):
            categories[r[0]] = Category(id=r[0], name=r[1], display_order=r[2])

        for r in self._conn.execute(
            "SELECT id, category_id, prompt, answer, point_value, row_order, "
            "is_revealed, is_answered, image_mime_type, image_base64 "
            "FROM clues WHERE game_id = ? ORDER BY row_order",
            (game_id,),
        ):
            categories[r[1]].clues.append(Clue(
                id=r[0], category_id=r[1], prompt=r[2], answer=r[3],
                point_value=r[4], row_order=r[5],
                is_revealed=bool(r[6]), is_answered=bool(r[7]),
                image_mime_type=r[8], image_base64=r[9],
            ))
        game.categories = list(categories.values())

        scores = self.team_scores(game_id)
        game.teams = [
            Team(id=r[0], name=r[1], display_order=r[2], score=scores.get(r[0], 0))
            for r in self._conn.execute(
                "SELECT id, name, display_order FROM teams WHERE game_id = ? "
                "ORDER BY display_order",
                (game_id,),
            )
        ]
        return game

    def start_game(self, game_id: str) -> GameSummary:
        self._game_status(game_id)
        self._conn.execute("UPDATE games SET status = ? WHERE id = ?", (IN_PROGRESS, game_id))
        self._touch(game_id)
        self._conn.commit()
        logger.info("Game %s started", game_id)
        return self._summary(game_id)

    def reset_game(self, game_id: str) -> GameSummary:
        """Put the board back to Draft: flags cleared, ledger emptied."""
        self._game_status(game_id)
        self._conn.execute(
            "UPDATE clues SET is_revealed = 0, is_answered = 0 WHERE game_id = ?", (game_id,)
        )
        self._conn.execute("DELETE FROM score_events WHERE game_id = ?", (game_id,))
        self._conn.execute("UPDATE games SET status = ? WHERE id = ?", (DRAFT, game_id))
        self._touch(game_id)
        self._conn.commit()
        logger.info("Game %s reset", game_id)
        return self._summary(game_id)

    def _summary(self, game_id: str) -> GameSummary:
        row = self._conn.execute(
            "SELECT id, title, status, created_at, updated_at FROM games WHERE id = ?",
            (game_id,),
        ).fetchone()
        return GameSummary(*row)

    # ── Categories ──────────────────────────────────────────────────

    def create_category(
        self,
        game_id: str,
        name: str,
        display_order: int,
        clues: list[NewClue],
    ) -> Category:
        name = _require(name, "name", "Name")
        _require_positive(display_order, "displayOrder", "DisplayOrder")
        if not clues:
            raise ValidationError.single("clues", "At least one clue is required.")
        for i, clue in enumerate(clues):
            error = clue_image_error(clue.image_mime_type, clue.image_base64)
            if error is not None:
                raise ValidationError.single(f"clues[{i}]", error)
            self._validate_clue_content(clue, prefix=f"clues[{i}].")
        self._game_status(game_id)

        category = Category(id=_new_id(), name=name, display_order=display_order)
        try:
            self._conn.execute(
                "INSERT INTO categories (id, game_id, name, display_order) VALUES (?, ?, ?, ?)",
                (category.id, game_id, category.name, category.display_order),
            )
            for new in clues:
                clue = Clue(
                    id=_new_id(),
                    category_id=category.id,
                    prompt=new.prompt.strip(),
                    answer=new.answer.strip(),
                    point_value=new.point_value,
                    row_order=new.row_order,
                    image_mime_type=clean_optional(new.image_mime_type, lower=True),
                    image_base64=clean_optional(new.image_base64),
                )
                self._insert_clue(game_id, clue)
                category.clues.append(clue)
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise ConflictError(
                "Category or clue ordering conflicts with existing board slots."
            ) from exc
        self._touch(game_id)
        self._conn.commit()
        return category

    def _insert_clue(self, game_id: str, clue: Clue) -> None:
        self._conn.execute(
            "INSERT INTO clues (id, game_id, category_id, prompt, answer, point_value, "
            "row_order, is_revealed, is_answered, image_mime_type, image_base64) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?)",
            (clue.id, game_id, clue.category_id, clue.prompt, clue.answer,
             clue.point_value, clue.row_order, clue.image_mime_type, clue.image_base64),
        )

    def update_category(self, game_id: str, category_id: str, name: str, display_order: int) -> None:
        name = _require(name, "name", "Name")
        _require_positive(display_order, "displayOrder", "DisplayOrder")
        self._require_draft(
            game_id, "Categories can only be edited while the game is in Draft status."
        )
        if not self._exists("categories", category_id, game_id):
            raise NotFoundError(f"Category {category_id} not found.")
        try:
            self._conn.execute(
                "UPDATE categories SET name = ?, display_order = ? WHERE id = ?",
                (name, display_order, category_id),
            )
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise ConflictError("Category ordering conflicts with an existing category.") from exc
        self._touch(game_id)
        self._conn.commit()

    def delete_category(self, game_id: str, category_id: str) -> None:
        self._require_draft(
            game_id, "Categories can only be deleted while the game is in Draft status."
        )
        if not self._exists("categories", category_id, game_id):
            raise NotFoundError(f"Category {category_id} not found.")
        self._conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        self._touch(game_id)
        self._conn.commit()

    # ── Clues ───────────────────────────────────────────────────────

    @staticmethod
    def _validate_clue_content(clue: NewClue, prefix: str = "") -> None:
        _require(clue.prompt, f"{prefix}prompt", "Prompt")
        _require(clue.answer, f"{prefix}answer", "Answer")
        _require_positive(clue.point_value, f"{prefix}pointValue", "PointValue")
        _require_positive(clue.row_order, f"{prefix}rowOrder", "RowOrder")

    def update_clue_flags(
        self,
        game_id: str,
        clue_id: str,
        is_revealed: bool | None = None,
        is_answered: bool | None = None,
    ) -> None:
        if is_revealed is None and is_answered is None:
            raise ValidationError.single(
                "request", "At least one field must be provided: isRevealed or isAnswered."
            )
        self._game_status(game_id)
        if not self._exists("clues", clue_id, game_id):
            raise NotFoundError(f"Clue {clue_id} not found.")
        self._set_clue_flags(clue_id, is_revealed, is_answered)
        self._touch(game_id)
        self._conn.commit()

    def _set_clue_flags(self, clue_id: str, is_revealed: bool | None, is_answered: bool | None) -> None:
        if is_revealed is not None:
            self._conn.execute(
                "UPDATE clues SET is_revealed = ? WHERE id = ?", (int(is_revealed), clue_id)
            )
        if is_answered is not None:
            self._conn.execute(
                "UPDATE clues SET is_answered = ? WHERE id = ?", (int(is_answered), clue_id)
            )

    def update_clue_content(self, game_id: str, clue_id: str, content: NewClue) -> None:
        self._validate_clue_content(content)
        error = clue_image_error(content.image_mime_type, content.image_base64)
        if error is not None:
            raise ValidationError.single("image", error)
        self._require_draft(
            game_id, "Questions can only be edited while the game is in Draft status."
        )
        if not self._exists("clues", clue_id, game_id):
            raise NotFoundError(f"Clue {clue_id} not found.")
        try:
            self._conn.execute(
                "UPDATE clues SET prompt = ?, answer = ?, point_value = ?, row_order = ?, "
                "image_mime_type = ?, image_base64 = ? WHERE id = ?",
                (content.prompt.strip(), content.answer.strip(), content.point_value,
                 content.row_order, clean_optional(content.image_mime_type, lower=True),
                 clean_optional(content.image_base64), clue_id),
            )
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise ConflictError(
                "Question value/order conflicts with another question in this category."
            ) from exc
        self._touch(game_id)
        self._conn.commit()

    def delete_clue(self, game_id: str, clue_id: str) -> None:
        self._require_draft(
            game_id, "Questions can only be deleted while the game is in Draft status."
        )
        if not self._exists("clues", clue_id, game_id):
            raise NotFoundError(f"Clue {clue_id} not found.")
        self._conn.execute("DELETE FROM clues WHERE id = ?", (clue_id,))
        self._touch(game_id)
        self._conn.commit()

    # ── Teams ───────────────────────────────────────────────────────

    def create_team(self, game_id: str, name: str, display_order: int | None = None) -> Team:
        name = _require(name, "name", "Name")
        if display_order is not None:
            _require_positive(display_order, "displayOrder", "DisplayOrder")
        self._game_status(game_id)

        if display_order is None:
            row = self._conn.execute(
                "SELECT MAX(display_order) FROM teams WHERE game_id = ?", (game_id,)
            ).fetchone()
            display_order = (row[0] or 0) + 1

        team = Team(id=_new_id(), name=name, display_order=display_order)
        try:
            self._conn.execute(
                "INSERT INTO teams (id, game_id, name, display_order) VALUES (?, ?, ?, ?)",
                (team.id, game_id, team.name, team.display_order),
            )
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise ConflictError(
                "Team ordering conflicts with an existing team in this game."
            ) from exc
        self._touch(game_id)
        self._conn.commit()
        return team

    def delete_team(self, game_id: str, team_id: str) -> None:
        self._require_draft(
            game_id, "Teams can only be removed while the game is in Draft status."
        )
        if not self._exists("teams", team_id, game_id):
            raise NotFoundError(f"Team {team_id} not found.")
        self._conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))
        self._touch(game_id)
        self._conn.commit()

    # ── Score ledger ────────────────────────────────────────────────

    def team_scores(self, game_id: str) -> dict[str, int]:
        rows = self._conn.execute(
            "SELECT team_id, SUM(delta_points) FROM score_events WHERE game_id = ? "
            "GROUP BY team_id",
            (game_id,),
        ).fetchall()
        return {r[0]: r[1] for r in rows}

    def list_score_events(self, game_id: str) -> list[ScoreEvent]:
        rows = self._conn.execute(
            "SELECT id, game_id, team_id, clue_id, delta_points, reason, created_at "
            "FROM score_events WHERE game_id = ? ORDER BY created_at, rowid",
            (game_id,),
        ).fetchall()
        return [ScoreEvent(*r) for r in rows]

    def _insert_score_event(
        self,
        game_id: str,
        team_id: str,
        delta_points: int,
        clue_id: str | None,
        reason: str | None,
    ) -> ScoreEvent:
        if delta_points == 0:
            raise ValidationError.single("deltaPoints", "DeltaPoints cannot be zero.")
        self._game_status(game_id)
        if not self._exists("teams", team_id, game_id):
            raise NotFoundError(f"Team {team_id} not found.")
        if clue_id is not None and not self._exists("clues", clue_id, game_id):
            raise NotFoundError(f"Clue {clue_id} not found.")

        row = self._conn.execute(
            "SELECT COALESCE(SUM(delta_points), 0) FROM score_events "
            "WHERE game_id = ? AND team_id = ?",
            (game_id, team_id),
        ).fetchone()
        current = row[0]
        effective = delta_points
        if current + effective < 0:
            effective = -current

        event = ScoreEvent(
            id=_new_id(),
            game_id=game_id,
            team_id=team_id,
            clue_id=clue_id,
            delta_points=effective,
            reason=clean_optional(reason),
            created_at=_now(),
        )
        self._conn.execute(
            "INSERT INTO score_events (id, game_id, team_id, clue_id, delta_points, reason, "
            "created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (event.id, event.game_id, event.team_id, event.clue_id,
             event.delta_points, event.reason, event.created_at),
        )
        self._touch(game_id)
        return event

    def record_score_event(
        self,
        game_id: str,
        team_id: str,
        delta_points: int,
        clue_id: str | None = None,
        reason: str | None = None,
    ) -> ScoreEvent:
        """Append a score adjustment. A team's total never drops below zero."""
        event = self._insert_score_event(game_id, team_id, delta_points, clue_id, reason)
        self._conn.commit()
        return event

    def resolve_clue(
        self,
        game_id: str,
        team_id: str,
        clue_id: str,
        delta_points: int,
        reason: str | None = None,
    ) -> ScoreEvent:
        """Record the answer's score and mark the clue answered, atomically."""
        try:
            event = self._insert_score_event(game_id, team_id, delta_points, clue_id, reason)
            self._set_clue_flags(clue_id, is_revealed=True, is_answered=True)
        except Exception:
            self._conn.rollback()
            raise
        self._conn.commit()
        logger.info(
            "Clue %s resolved for team %s: %+d", clue_id, team_id, event.delta_points
        )
        return event

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> BoardDB:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
