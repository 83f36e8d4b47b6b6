"""Interactive host console for play mode."""

from __future__ import annotations

from typing import Callable

from jeopareddy.errors import JeopareddyError
from jeopareddy.game import ActiveQuestion, PlaySession
from jeopareddy.ladder import STEP_COUNT, THIEF_POINTS, LadderRound, ladder_values
from jeopareddy.models import Clue, Game

Reader = Callable[[str], str]
Writer = Callable[[str], None]

HELP = "Commands: <cell number> open a clue, s scores, n next team, q quit"


def render_board(game: Game) -> tuple[str, list[Clue]]:
    """Text grid of the board plus the open clues in cell-number order."""
    categories = sorted(game.categories, key=lambda c: c.display_order)
    width = max([12] + [len(c.name) for c in categories])
    lines = ["  ".join(c.name.ljust(width) for c in categories)]

    open_clues: list[Clue] = []
    for value in game.row_values():
        cells = []
        for category in categories:
            clue = next((c for c in category.clues if c.point_value == value), None)
            if clue is None or clue.is_answered:
                cells.append("--".ljust(width))
                continue
            open_clues.append(clue)
            cells.append(f"[{len(open_clues)}] {value}".ljust(width))
        lines.append("  ".join(cells))
    return "\n".join(lines), open_clues


def render_ladder(round_: LadderRound) -> str:
    lines = []
    for index, points in enumerate(ladder_values(round_.base_points)):
        rung = STEP_COUNT - index
        marker = ">" if not round_.thief_hit and rung == round_.current_rung else " "
        lines.append(f" {marker} {points} pts")
    steps = []
    for index, step in enumerate(round_.steps, start=1):
        shown = step.revealed_spot.label() if step.revealed_spot is not None else "?"
        pick = step.choice.upper() if step.choice else "--"
        steps.append(f"step {index}: base {step.base_digit} {pick} -> {shown}")
    return "\n".join(lines + steps + [round_.message])


def _play_ladder(question: ActiveQuestion, session: PlaySession, read: Reader, write: Writer) -> bool:
    while question.ladder is not None and question.ladder.is_playing:
        write(render_ladder(question.ladder))
        step = question.ladder.steps[question.ladder.current_step_index]
        choice = read(f"Base digit {step.base_digit}: [u]p, [d]own or [c]ancel? ").strip().lower()
        if choice in ("c", "cancel"):
            session.close_question()
            return False
        direction = {"u": "up", "d": "down"}.get(choice, choice)
        session.choose(direction)
    write(render_ladder(question.ladder))
    return True


def _play_reveal(question: ActiveQuestion, session: PlaySession, read: Reader, write: Writer) -> bool:
    while question.reveal is not None and question.reveal.status == "guessing":
        guess = read("Boy or girl? ([c]ancel) ").strip().lower()
        if guess in ("c", "cancel"):
            session.close_question()
            return False
        session.guess(guess)
    session.finish_reveal()
    write(f"It's a {question.reveal.actual}! {question.reveal.message}")
    return True


def _ask_question(question: ActiveQuestion, session: PlaySession, read: Reader, write: Writer) -> None:
    write(f"Question for {question.resolved_point_value} points")
    if question.ladder is not None and question.ladder.is_completed:
        if question.ladder.thief_hit:
            write(f"Thief hit: this question is now worth {THIEF_POINTS} points.")
        elif question.ladder.joker_hit:
            write("Joker hit: top prize reached!")
    write(question.clue.prompt)
    team = session.current_team
    write(f"Current team: {team.name if team else 'None'}")

    answer = ""
    while not answer.strip():
        answer = read("Answer: ")
    result = session.submit_answer(answer)
    if result.is_correct:
        write(f"Correct answer! +{result.resolved_point_value} points.")
    else:
        write(f"Wrong. Correct answer: {question.clue.answer}")

    while not result.committed:
        write(f"Could not save the score: {result.error}")
        if read("Retry? [y/n] ").strip().lower() != "y":
            break
        session.retry_commit()
    session.close_question()


def run_console(session: PlaySession, read: Reader = input, write: Writer = print) -> None:
    """Loop until the host quits or every clue has been answered."""
    write(HELP)
    while True:
        board, open_clues = render_board(session.game)
        if not open_clues:
            write("All clues have been played.")
            break
        write(board)
        team = session.current_team
        write(f"Turn: {team.name if team else 'no teams yet'}")

        command = read("> ").strip().lower()
        if command in ("q", "quit"):
            break
        if command in ("s", "scores"):
            for t in sorted(session.game.teams, key=lambda t: (-t.score, t.display_order)):
                write(f"  {t.name:20s} {t.score:6d} pts")
            for name, stats in session.minigame_stats().items():
                if stats.total_assigned:
                    write(f"  {name}: {stats.completed}/{stats.total_assigned} played")
            continue
        if command in ("n", "next"):
            session.advance_turn()
            continue
        if not command.isdigit() or not 1 <= int(command) <= len(open_clues):
            write(HELP)
            continue

        try:
            question = session.open_clue(open_clues[int(command) - 1].id)
            if question.ladder is not None and not _play_ladder(question, session, read, write):
                continue
            if question.reveal is not None and not _play_reveal(question, session, read, write):
                continue
            _ask_question(question, session, read, write)
        except JeopareddyError as exc:
            write(f"Error: {exc}")
            session.close_question()
