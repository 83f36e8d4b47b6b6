"""Board records: games, categories, clues, teams and score events."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field

from jeopareddy.errors import ValidationError

DRAFT = "Draft"
IN_PROGRESS = "InProgress"

MAX_CLUE_IMAGE_BYTES = 1_048_576  # 1 MiB
ALLOWED_CLUE_IMAGE_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/gif"})


@dataclass
class GameSummary:
    id: str
    title: str
    status: str
    created_at: str
    updated_at: str


@dataclass
class Clue:
    id: str
    category_id: str
    prompt: str
    answer: str
    point_value: int
    row_order: int
    is_revealed: bool = False
    is_answered: bool = False
    image_mime_type: str | None = None
    image_base64: str | None = None

    @property
    def image_data_uri(self) -> str | None:
        if not self.image_mime_type or not self.image_base64:
            return None
        return f"data:{self.image_mime_type};base64,{self.image_base64}"


@dataclass
class Category:
    id: str
    name: str
    display_order: int
    clues: list[Clue] = field(default_factory=list)


@dataclass
class Team:
    id: str
    name: str
    display_order: int
    score: int = 0


@dataclass
class ScoreEvent:
    id: str
    game_id: str
    team_id: str
    clue_id: str | None
    delta_points: int
    reason: str | None
    created_at: str


@dataclass
class Game:
    """Full board view of one game, scores included."""

    id: str
    title: str
    status: str
    created_at: str
    updated_at: str
    categories: list[Category] = field(default_factory=list)
    teams: list[Team] = field(default_factory=list)

    @property
    def clues(self) -> list[Clue]:
        return [clue for category in self.categories for clue in category.clues]

    def find_clue(self, clue_id: str) -> Clue | None:
        return next((c for c in self.clues if c.id == clue_id), None)

    def row_values(self) -> list[int]:
        """Distinct point values across the board, lowest first."""
        return sorted({clue.point_value for clue in self.clues})


@dataclass
class NewClue:
    """Clue content supplied when creating or editing a category."""

    prompt: str
    answer: str
    point_value: int
    row_order: int
    image_mime_type: str | None = None
    image_base64: str | None = None

    @classmethod
    def from_dict(cls, data: dict, prefix: str = "") -> NewClue:
        """Build from a JSON object; *prefix* names the clue in error fields."""
        if not isinstance(data, dict):
            raise ValidationError.single(prefix.rstrip(".") or "clue", "Clue must be an object.")
        return cls(
            prompt=str(data.get("prompt") or ""),
            answer=str(data.get("answer") or ""),
            point_value=int_field(data, "point_value", f"{prefix}pointValue", "PointValue"),
            row_order=int_field(data, "row_order", f"{prefix}rowOrder", "RowOrder"),
            image_mime_type=_optional_text(data.get("image_mime_type")),
            image_base64=_optional_text(data.get("image_base64")),
        )


def int_field(data: dict, key: str, name: str, label: str) -> int:
    """Read an integer from *data*; a missing key counts as 0."""
    value = data.get(key, 0)
    if isinstance(value, bool):
        raise ValidationError.single(name, f"{label} must be a whole number.")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError.single(name, f"{label} must be a whole number.") from exc


def _optional_text(value) -> str | None:
    return None if value is None else str(value)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def clue_image_error(image_mime_type: str | None, image_base64: str | None) -> str | None:
    """Return why an attached image is unacceptable, or None if it is fine."""
    has_mime = not _blank(image_mime_type)
    has_data = not _blank(image_base64)
    if not has_mime and not has_data:
        return None
    if not has_mime or not has_data:
        return "ImageMimeType and ImageBase64 must both be provided when attaching an image."
    if image_mime_type.strip().lower() not in ALLOWED_CLUE_IMAGE_MIME_TYPES:
        return "Only PNG, JPG/JPEG, and GIF images are allowed."
    try:
        image_bytes = base64.b64decode(image_base64.strip(), validate=True)
    except (binascii.Error, ValueError):
        return "ImageBase64 must be valid base64 data."
    if not image_bytes:
        return "Uploaded image is empty."
    if len(image_bytes) > MAX_CLUE_IMAGE_BYTES:
        return f"Uploaded image exceeds the {MAX_CLUE_IMAGE_BYTES} byte limit."
    return None


def clean_optional(value: str | None, lower: bool = False) -> str | None:
    if _blank(value):
        return None
    value = value.strip()
    return value.lower() if lower else value
