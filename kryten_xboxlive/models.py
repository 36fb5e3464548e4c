"""Domain records returned by the profile client and identity store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    """Stored mapping from a chat nick to an Xbox Live profile."""

    nick: str
    display_name: str
    numeric_id: str


@dataclass
class TitleRecord:
    """A game title the profile has activity on."""

    id: str
    name: str
    last_played_at: datetime | None = None


@dataclass
class AchievementRecord:
    """A single achievement within a title."""

    id: str
    name: str
    description: str = ""
    unlocked_at: datetime | None = None
    parent_title_names: list[str] = field(default_factory=list)


@dataclass
class PlayerSummary:
    """Headline profile status."""

    display_name: str
    score: str
    presence_state: str
    presence_text: str = ""
