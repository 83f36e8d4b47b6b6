"""Team standings computed from the score ledger."""

from __future__ import annotations

from dataclasses import dataclass

from jeopareddy.models import ScoreEvent, Team


@dataclass
class Standing:
    rank: int
    team_id: str
    name: str
    score: int
    display_order: int


def compute_standings(teams: list[Team], events: list[ScoreEvent]) -> list[Standing]:
    """Rank teams by summed score, ties broken by display order.

    Teams with equal scores share a rank.
    """
    totals: dict[str, int] = {team.id: 0 for team in teams}
    for event in events:
        if event.team_id in totals:
            totals[event.team_id] += event.delta_points

    ordered = sorted(teams, key=lambda t: (-totals[t.id], t.display_order))
    standings: list[Standing] = []
    for position, team in enumerate(ordered, start=1):
        score = totals[team.id]
        if standings and standings[-1].score == score:
            rank = standings[-1].rank
        else:
            rank = position
        standings.append(Standing(
            rank=rank, team_id=team.id, name=team.name,
            score=score, display_order=team.display_order,
        ))
    return standings
