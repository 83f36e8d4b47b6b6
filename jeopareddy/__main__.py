"""CLI entry point: python -m jeopareddy {games,new-game,show,play,...}."""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from jeopareddy.chart import make_score_chart
from jeopareddy.config import Settings
from jeopareddy.console import run_console
from jeopareddy.errors import JeopareddyError, ValidationError
from jeopareddy.export import generate_all
from jeopareddy.game import PlaySession
from jeopareddy.models import NewClue, int_field
from jeopareddy.persistence import BoardDB
from jeopareddy.scoreboard import compute_standings


def _open_db(args: argparse.Namespace) -> BoardDB:
    return BoardDB(args.db)


# ── board building ───────────────────────────────────────────────────

def cmd_games(args: argparse.Namespace) -> None:
    """List games, most recently updated first."""
    with _open_db(args) as db:
        games = db.list_games()
    if not games:
        print("No games yet. Create one with new-game.")
        return
    for g in games:
        print(f"{g.id}  {g.status:10s}  {g.title}")


def cmd_new_game(args: argparse.Namespace) -> None:
    with _open_db(args) as db:
        game = db.create_game(args.title)
    print(f"Created game {game.id}")


def cmd_show(args: argparse.Namespace) -> None:
    """Print the board, clue flags and team scores."""
    with _open_db(args) as db:
        game = db.get_game(args.game_id)

    print(f"{game.title} [{game.status}]")
    for category in game.categories:
        print(f"\n{category.display_order}. {category.name} ({category.id})")
        for clue in category.clues:
            flags = "answered" if clue.is_answered else ("revealed" if clue.is_revealed else "open")
            print(f"   {clue.point_value:5d}  {flags:8s}  {clue.prompt}  ({clue.id})")
    if game.teams:
        print("\nTeams")
        for team in game.teams:
            print(f"  {team.display_order}. {team.name:20s} {team.score:6d} pts  ({team.id})")


def cmd_add_team(args: argparse.Namespace) -> None:
    with _open_db(args) as db:
        team = db.create_team(args.game_id, args.name, args.order)
    print(f"Added team {team.name} ({team.id}) at position {team.display_order}")


def cmd_remove_team(args: argparse.Namespace) -> None:
    with _open_db(args) as db:
        db.delete_team(args.game_id, args.team_id)
    print("Team removed.")


def _read_category_file(path: str) -> tuple[str, int, list[NewClue]]:
    """Parse {"name", "display_order", "clues": [...]} from a JSON file."""
    try:
        data = json.loads(Path(path).read_text())
    except OSError as exc:
        raise ValidationError.single("file", f"Cannot read {path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise ValidationError.single("file", f"{path} is not UTF-8 text.") from exc
    except json.JSONDecodeError as exc:
        raise ValidationError.single(
            "file", f"{path} is not valid JSON: {exc.msg} (line {exc.lineno})"
        ) from exc
    if not isinstance(data, dict):
        raise ValidationError.single("file", f"{path} must hold a JSON object.")

    clues = data.get("clues") or []
    if not isinstance(clues, list):
        raise ValidationError.single("clues", "Clues must be a list.")
    return (
        str(data.get("name") or ""),
        int_field(data, "display_order", "displayOrder", "DisplayOrder"),
        [NewClue.from_dict(c, prefix=f"clues[{i}].") for i, c in enumerate(clues)],
    )


def cmd_add_category(args: argparse.Namespace) -> None:
    name, display_order, clues = _read_category_file(args.file)
    with _open_db(args) as db:
        category = db.create_category(args.game_id, name, display_order, clues)
    print(f"Added category {category.name} ({category.id}) with {len(category.clues)} clues")


def cmd_remove_category(args: argparse.Namespace) -> None:
    with _open_db(args) as db:
        db.delete_category(args.game_id, args.category_id)
    print("Category removed.")


def cmd_start(args: argparse.Namespace) -> None:
    with _open_db(args) as db:
        game = db.start_game(args.game_id)
    print(f"Game {game.id} is now {game.status}")


def cmd_reset(args: argparse.Namespace) -> None:
    with _open_db(args) as db:
        game = db.reset_game(args.game_id)
    print(f"Game {game.id} reset to {game.status}")


def cmd_score(args: argparse.Namespace) -> None:
    """Manual score adjustment."""
    with _open_db(args) as db:
        event = db.record_score_event(args.game_id, args.team_id, args.delta, reason=args.reason)
    print(f"Recorded {event.delta_points:+d} points")


# ── play ─────────────────────────────────────────────────────────────

def cmd_play(args: argparse.Namespace, settings: Settings) -> None:
    """Host the game interactively in the terminal."""
    config = settings.minigames
    config.joker_enabled = args.joker
    config.reveal_enabled = args.reveal
    if args.joker_appearances is not None:
        config.joker_appearances = args.joker_appearances
    if args.joker_spots is not None:
        config.joker_spot_count = args.joker_spots
    if args.thief_spots is not None:
        config.thief_spot_count = args.thief_spots
    if args.reveal_appearances is not None:
        config.reveal_appearances = args.reveal_appearances

    seed = args.seed if args.seed is not None else settings.seed
    with _open_db(args) as db:
        session = PlaySession(db, args.game_id, config=config, rng=random.Random(seed))
        run_console(session)
        standings = compute_standings(session.game.teams, db.list_score_events(args.game_id))

    print("\nFinal scores")
    print("=" * 40)
    for s in standings:
        print(f"  {s.rank}. {s.name:26s} {s.score:6d}")


# ── chart / export ───────────────────────────────────────────────────

def cmd_chart(args: argparse.Namespace) -> None:
    """Generate a scoreboard chart for one game."""
    with _open_db(args) as db:
        game = db.get_game(args.game_id)
        events = db.list_score_events(args.game_id)

    if not game.teams:
        print("No teams in this game yet.", file=sys.stderr)
        sys.exit(1)

    out = args.output or "scoreboard.png"
    make_score_chart(compute_standings(game.teams, events), output_path=out, title=game.title)
    print(f"Chart saved to {out}")


def cmd_export(args: argparse.Namespace) -> None:
    if not Path(args.db).exists():
        print(f"No database found at {args.db}. Create a game first.", file=sys.stderr)
        sys.exit(1)
    generated = generate_all(args.db, Path(args.output))
    print(f"Generated {len(generated)} JSON files in {args.output}")


# ── main ─────────────────────────────────────────────────────────────

def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jeopareddy",
        description="Host party trivia games with Joker and reveal mini-games",
    )
    parser.add_argument("--db", default=str(settings.db_path), help="SQLite database path")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("games", help="List games")

    p = sub.add_parser("new-game", help="Create a game")
    p.add_argument("title")

    p = sub.add_parser("show", help="Show a game's board and scores")
    p.add_argument("game_id")

    p = sub.add_parser("add-team", help="Add a team")
    p.add_argument("game_id")
    p.add_argument("name")
    p.add_argument("--order", type=int, help="Display order (default: last)")

    p = sub.add_parser("remove-team", help="Remove a team (Draft only)")
    p.add_argument("game_id")
    p.add_argument("team_id")

    p = sub.add_parser("add-category", help="Add a category and its clues from JSON")
    p.add_argument("game_id")
    p.add_argument("file")

    p = sub.add_parser("remove-category", help="Remove a category (Draft only)")
    p.add_argument("game_id")
    p.add_argument("category_id")

    p = sub.add_parser("start", help="Move a game to InProgress")
    p.add_argument("game_id")

    p = sub.add_parser("reset", help="Clear scores and clue flags, back to Draft")
    p.add_argument("game_id")

    p = sub.add_parser("score", help="Record a manual score adjustment")
    p.add_argument("game_id")
    p.add_argument("team_id")
    p.add_argument("delta", type=int)
    p.add_argument("--reason")

    p = sub.add_parser("play", help="Host a game in the terminal")
    p.add_argument("game_id")
    p.add_argument("--joker", action="store_true", help="Enable the Joker ladder mini-game")
    p.add_argument("--joker-appearances", type=int, help="Joker clues per game")
    p.add_argument("--joker-spots", type=int, help="Joker spots per ladder (0-10)")
    p.add_argument("--thief-spots", type=int, help="Thief spots per ladder (0-10)")
    p.add_argument("--reveal", action="store_true", help="Enable the Gender Reveal mini-game")
    p.add_argument("--reveal-appearances", type=int, help="Reveal clues per game")
    p.add_argument("--seed", type=int, help="Seed for mini-game randomness")

    p = sub.add_parser("chart", help="Generate scoreboard chart")
    p.add_argument("game_id")
    p.add_argument("--output", "-o", help="Output PNG path")

    p = sub.add_parser("export", help="Export games to JSON")
    p.add_argument("--output", "-o", default="export", help="Output directory")

    return parser


COMMANDS = {
    "games": cmd_games,
    "new-game": cmd_new_game,
    "show": cmd_show,
    "add-team": cmd_add_team,
    "remove-team": cmd_remove_team,
    "add-category": cmd_add_category,
    "remove-category": cmd_remove_category,
    "start": cmd_start,
    "reset": cmd_reset,
    "score": cmd_score,
    "chart": cmd_chart,
    "export": cmd_export,
}


def main(argv: list[str] | None = None) -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    try:
        if args.command == "play":
            cmd_play(args, settings)
        elif args.command in COMMANDS:
            COMMANDS[args.command](args)
        else:
            parser.print_help()
    except JeopareddyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
