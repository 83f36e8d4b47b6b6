"""Tests for the SQLite board store and score ledger."""

from __future__ import annotations

import base64
import sqlite3
from pathlib import Path

import pytest

from jeopareddy.errors import ConflictError, NotFoundError, ValidationError
from jeopareddy.models import DRAFT, IN_PROGRESS, MAX_CLUE_IMAGE_BYTES, NewClue
from jeopareddy.persistence import BoardDB

PNG_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\n fake image").decode()


def _clues(*values: int) -> list[NewClue]:
    return [
        NewClue(prompt=f"Prompt {v}", answer=f"Answer {v}", point_value=v, row_order=i)
        for i, v in enumerate(values, start=1)
    ]


@pytest.fixture
def db(tmp_path: Path) -> BoardDB:
    board = BoardDB(tmp_path / "test.db")
    yield board
    board.close()


@pytest.fixture
def game_id(db: BoardDB) -> str:
    return db.create_game("Friday Trivia").id


def _count(db: BoardDB, table: str) -> int:
    conn = sqlite3.connect(db.path)
    n = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    conn.close()
    return n


# ── Schema and games ────────────────────────────────────────────────

def test_create_db(tmp_path: Path):
    """Creating a DB initializes the schema."""
    db_path = tmp_path / "nested" / "test.db"
    BoardDB(db_path).close()
    conn = sqlite3.connect(db_path)
    tables = {r[0] for r in conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table'"
    ).fetchall()}
    conn.close()
    assert {"games", "categories", "clues", "teams", "score_events"} <= tables


def test_context_manager_closes_connection(tmp_path: Path):
    with BoardDB(tmp_path / "test.db") as db:
        db.create_game("Quiz")
    with pytest.raises(sqlite3.ProgrammingError):
        db.list_games()


def test_deleting_game_row_cascades(db: BoardDB, game_id: str):
    clue = db.create_category(game_id, "Misc", 1, _clues(100)).clues[0]
    team = db.create_team(game_id, "Owls")
    db.record_score_event(game_id, team.id, 100, clue_id=clue.id)

    conn = sqlite3.connect(db.path)
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("DELETE FROM games WHERE id = ?", (game_id,))
    conn.commit()
    conn.close()
    for table in ("categories", "clues", "teams", "score_events"):
        assert _count(db, table) == 0


def test_create_and_list_games(db: BoardDB):
    first = db.create_game("  First  ")
    second = db.create_game("Second")
    assert first.title == "First"
    assert first.status == DRAFT
    ids = {g.id for g in db.list_games()}
    assert ids == {first.id, second.id}


def test_blank_title_rejected(db: BoardDB):
    with pytest.raises(ValidationError) as exc_info:
        db.create_game("   ")
    assert "title" in exc_info.value.errors


def test_unknown_game(db: BoardDB):
    with pytest.raises(NotFoundError):
        db.get_game("missing")
    with pytest.raises(NotFoundError):
        db.start_game("missing")


def test_start_game(db: BoardDB, game_id: str):
    assert db.start_game(game_id).status == IN_PROGRESS
    assert db.get_game(game_id).status == IN_PROGRESS


# ── Categories and clues ────────────────────────────────────────────

def test_create_category_with_clues(db: BoardDB, game_id: str):
    category = db.create_category(game_id, "Science", 1, _clues(100, 200, 300))
    assert len(category.clues) == 3

    game = db.get_game(game_id)
    assert [c.name for c in game.categories] == ["Science"]
    assert [c.point_value for c in game.categories[0].clues] == [100, 200, 300]
    assert game.row_values() == [100, 200, 300]
    assert all(not c.is_answered and not c.is_revealed for c in game.clues)


def test_categories_ordered_by_display_order(db: BoardDB, game_id: str):
    db.create_category(game_id, "Second", 2, _clues(100))
    db.create_category(game_id, "First", 1, _clues(100))
    assert [c.name for c in db.get_game(game_id).categories] == ["First", "Second"]


def test_category_requires_clues(db: BoardDB, game_id: str):
    with pytest.raises(ValidationError) as exc_info:
        db.create_category(game_id, "Empty", 1, [])
    assert "clues" in exc_info.value.errors


def test_clue_field_errors_carry_index(db: BoardDB, game_id: str):
    clues = _clues(100, 200)
    clues[1].point_value = 0
    with pytest.raises(ValidationError) as exc_info:
        db.create_category(game_id, "Bad", 1, clues)
    assert "clues[1].pointValue" in exc_info.value.errors
    assert _count(db, "categories") == 0


def test_duplicate_category_order_conflicts(db: BoardDB, game_id: str):
    db.create_category(game_id, "One", 1, _clues(100))
    with pytest.raises(ConflictError):
        db.create_category(game_id, "Also one", 1, _clues(100))
    assert _count(db, "categories") == 1
    assert _count(db, "clues") == 1


def test_duplicate_row_order_rolls_back_category(db: BoardDB, game_id: str):
    clues = _clues(100, 200)
    clues[1].row_order = 1
    with pytest.raises(ConflictError):
        db.create_category(game_id, "Clash", 1, clues)
    assert _count(db, "categories") == 0
    assert _count(db, "clues") == 0


def test_clue_image_validation(db: BoardDB, game_id: str):
    ok = NewClue("Who?", "Me", 100, 1, image_mime_type=" IMAGE/PNG ", image_base64=PNG_B64)
    category = db.create_category(game_id, "Pictures", 1, [ok])
    clue = category.clues[0]
    assert clue.image_mime_type == "image/png"
    assert clue.image_data_uri == f"data:image/png;base64,{PNG_B64}"

    cases = [
        NewClue("Q", "A", 100, 1, image_mime_type="image/png"),
        NewClue("Q", "A", 100, 1, image_mime_type="image/bmp", image_base64=PNG_B64),
        NewClue("Q", "A", 100, 1, image_mime_type="image/png", image_base64="not base64!"),
        NewClue(
            "Q", "A", 100, 1, image_mime_type="image/gif",
            image_base64=base64.b64encode(b"x" * (MAX_CLUE_IMAGE_BYTES + 1)).decode(),
        ),
    ]
    for order, bad in enumerate(cases, start=2):
        with pytest.raises(ValidationError) as exc_info:
            db.create_category(game_id, "Bad", order, [bad])
        assert "clues[0]" in exc_info.value.errors


def test_category_edits_only_in_draft(db: BoardDB, game_id: str):
    category = db.create_category(game_id, "Music", 1, _clues(100))
    db.update_category(game_id, category.id, "Pop Music", 3)
    assert db.get_game(game_id).categories[0].name == "Pop Music"

    db.start_game(game_id)
    with pytest.raises(ConflictError):
        db.update_category(game_id, category.id, "Rock", 1)
    with pytest.raises(ConflictError):
        db.delete_category(game_id, category.id)


def test_delete_category_cascades_clues(db: BoardDB, game_id: str):
    category = db.create_category(game_id, "History", 1, _clues(100, 200))
    db.delete_category(game_id, category.id)
    assert db.get_game(game_id).categories == []
    assert _count(db, "clues") == 0


def test_delete_unknown_category(db: BoardDB, game_id: str):
    with pytest.raises(NotFoundError):
        db.delete_category(game_id, "missing")


def test_update_clue_flags(db: BoardDB, game_id: str):
    clue = db.create_category(game_id, "Geo", 1, _clues(100)).clues[0]
    with pytest.raises(ValidationError):
        db.update_clue_flags(game_id, clue.id)

    db.update_clue_flags(game_id, clue.id, is_revealed=True)
    stored = db.get_game(game_id).find_clue(clue.id)
    assert stored.is_revealed
    assert not stored.is_answered


def test_update_clue_content(db: BoardDB, game_id: str):
    first, second = db.create_category(game_id, "Art", 1, _clues(100, 200)).clues
    db.update_clue_content(game_id, first.id, NewClue(" New prompt ", "New answer", 150, 1))
    stored = db.get_game(game_id).find_clue(first.id)
    assert stored.prompt == "New prompt"
    assert stored.point_value == 150

    with pytest.raises(ConflictError):
        db.update_clue_content(game_id, first.id, NewClue("P", "A", 150, second.row_order))


def test_delete_clue_keeps_ledger(db: BoardDB, game_id: str):
    clue = db.create_category(game_id, "Film", 1, _clues(100)).clues[0]
    team = db.create_team(game_id, "Owls")
    db.record_score_event(game_id, team.id, 100, clue_id=clue.id)

    db.delete_clue(game_id, clue.id)
    events = db.list_score_events(game_id)
    assert len(events) == 1
    assert events[0].clue_id is None
    assert db.get_game(game_id).teams[0].score == 100


# ── Teams ───────────────────────────────────────────────────────────

def test_team_display_order_defaults_to_last(db: BoardDB, game_id: str):
    a = db.create_team(game_id, "Owls")
    b = db.create_team(game_id, "Foxes")
    assert (a.display_order, b.display_order) == (1, 2)


def test_team_order_conflict(db: BoardDB, game_id: str):
    db.create_team(game_id, "Owls", 1)
    with pytest.raises(ConflictError):
        db.create_team(game_id, "Foxes", 1)


def test_remove_team_only_in_draft(db: BoardDB, game_id: str):
    team = db.create_team(game_id, "Owls")
    db.start_game(game_id)
    with pytest.raises(ConflictError):
        db.delete_team(game_id, team.id)


def test_remove_team_drops_its_events(db: BoardDB, game_id: str):
    team = db.create_team(game_id, "Owls")
    db.record_score_event(game_id, team.id, 200)
    db.delete_team(game_id, team.id)
    assert db.list_score_events(game_id) == []


# ── Score ledger ────────────────────────────────────────────────────

def test_zero_delta_rejected(db: BoardDB, game_id: str):
    team = db.create_team(game_id, "Owls")
    with pytest.raises(ValidationError) as exc_info:
        db.record_score_event(game_id, team.id, 0)
    assert "deltaPoints" in exc_info.value.errors


def test_score_never_below_zero(db: BoardDB, game_id: str):
    team = db.create_team(game_id, "Owls")
    db.record_score_event(game_id, team.id, 50)
    event = db.record_score_event(game_id, team.id, -100, reason="  Incorrect answer ")
    assert event.delta_points == -50
    assert event.reason == "Incorrect answer"
    assert db.team_scores(game_id)[team.id] == 0

    event = db.record_score_event(game_id, team.id, -300)
    assert event.delta_points == 0
    assert db.get_game(game_id).teams[0].score == 0


def test_score_event_unknown_team_or_clue(db: BoardDB, game_id: str):
    team = db.create_team(game_id, "Owls")
    with pytest.raises(NotFoundError):
        db.record_score_event(game_id, "missing", 100)
    with pytest.raises(NotFoundError):
        db.record_score_event(game_id, team.id, 100, clue_id="missing")


def test_resolve_clue_marks_answered(db: BoardDB, game_id: str):
    clue = db.create_category(game_id, "Sport", 1, _clues(300)).clues[0]
    team = db.create_team(game_id, "Owls")

    event = db.resolve_clue(game_id, team.id, clue.id, 300, reason="Correct answer")
    assert event.delta_points == 300
    assert event.clue_id == clue.id

    stored = db.get_game(game_id).find_clue(clue.id)
    assert stored.is_answered
    assert stored.is_revealed


def test_resolve_clue_failure_leaves_clue_open(db: BoardDB, game_id: str):
    clue = db.create_category(game_id, "Sport", 1, _clues(300)).clues[0]
    with pytest.raises(NotFoundError):
        db.resolve_clue(game_id, "missing", clue.id, 300)
    assert not db.get_game(game_id).find_clue(clue.id).is_answered
    assert db.list_score_events(game_id) == []


def test_reset_game(db: BoardDB, game_id: str):
    clue = db.create_category(game_id, "Food", 1, _clues(100)).clues[0]
    team = db.create_team(game_id, "Owls")
    db.start_game(game_id)
    db.resolve_clue(game_id, team.id, clue.id, 100)

    summary = db.reset_game(game_id)
    assert summary.status == DRAFT
    game = db.get_game(game_id)
    assert not game.find_clue(clue.id).is_answered
    assert game.teams[0].score == 0
    assert db.list_score_events(game_id) == []
