"""Export boards and score ledgers to JSON."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path


def export_games_list(db_path: Path | str) -> list[dict]:
    """Read all games from the DB and return as a list of dicts."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    rows = conn.execute(
        "SELECT id, title, status, created_at, updated_at "
        "FROM games ORDER BY updated_at DESC"
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def export_game(db_path: Path | str, game_id: str) -> dict | None:
    """Export one game's board, teams and ledger as a structured dict.

    Returns ``None`` if the game does not exist.
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row

    game_row = conn.execute(
        "SELECT id, title, status, created_at, updated_at FROM games WHERE id = ?",
        (game_id,),
    ).fetchone()
    if game_row is None:
        conn.close()
        return None

    game = dict(game_row)

    category_rows = conn.execute(
        "SELECT id, name, display_order FROM categories WHERE game_id = ? "
        "ORDER BY display_order",
        (game_id,),
    ).fetchall()

    clue_rows = conn.execute(
        "SELECT id, category_id, prompt, answer, point_value, row_order, "
        "is_revealed, is_answered, image_mime_type, image_base64 "
        "FROM clues WHERE game_id = ? ORDER BY row_order",
        (game_id,),
    ).fetchall()

    team_rows = conn.execute(
        "SELECT t.id, t.name, t.display_order, COALESCE(SUM(se.delta_points), 0) AS score "
        "FROM teams t LEFT JOIN score_events se ON se.team_id = t.id "
        "WHERE t.game_id = ? GROUP BY t.id ORDER BY t.display_order",
        (game_id,),
    ).fetchall()

    event_rows = conn.execute(
        "SELECT id, team_id, clue_id, delta_points, reason, created_at "
        "FROM score_events WHERE game_id = ? ORDER BY created_at, rowid",
        (game_id,),
    ).fetchall()
    conn.close()

    # Group clues under their category
    clues_by_category: dict[str, list[dict]] = {}
    for row in clue_rows:
        clue = dict(row)
        category_id = clue.pop("category_id")
        for key in ("is_revealed", "is_answered"):
            clue[key] = bool(clue[key])
        clues_by_category.setdefault(category_id, []).append(clue)

    game["categories"] = [
        {**dict(row), "clues": clues_by_category.get(row["id"], [])}
        for row in category_rows
    ]
    game["teams"] = [dict(r) for r in team_rows]
    game["score_events"] = [dict(r) for r in event_rows]
    return game


def generate_all(db_path: Path | str, output_dir: Path) -> list[Path]:
    """Generate games.json and one JSON file per game.

    Returns a list of all generated file paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    games_dir = output_dir / "games"
    games_dir.mkdir(exist_ok=True)

    generated: list[Path] = []

    games = export_games_list(db_path)
    games_path = output_dir / "games.json"
    games_path.write_text(json.dumps(games, indent=2))
    generated.append(games_path)

    for game in games:
        data = export_game(db_path, game["id"])
        if data is None:
            continue
        game_path = games_dir / f"{game['id']}.json"
        game_path.write_text(json.dumps(data, indent=2))
        generated.append(game_path)

    return generated
