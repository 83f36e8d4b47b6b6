"""Render team standings as a PNG bar chart."""

from __future__ import annotations

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt

from jeopareddy.scoreboard import Standing

BAR_COLOR = "#4A90D9"


def make_score_chart(
    standings: list[Standing],
    output_path: str = "scoreboard.png",
    title: str = "Jeopareddy Scoreboard",
) -> str:
    """Save one bar per team to *output_path*, ranked first at the top."""
    labels = [f"{s.rank}. {s.name}" for s in standings]
    scores = [s.score for s in standings]
    top = max(scores, default=0)

    fig, ax = plt.subplots(figsize=(10, max(3, len(labels) * 0.7)))
    bars = ax.barh(labels, scores, color=BAR_COLOR, edgecolor="white")
    ax.bar_label(bars, labels=[f"{score} pts" for score in scores], padding=4, fontweight="bold")

    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_xlabel("Points")
    ax.set_xlim(0, top * 1.15 + 50)
    # barh draws the first row at the bottom
    ax.invert_yaxis()

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
