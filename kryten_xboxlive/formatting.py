"""Reply text rendering.

Pure functions only. Colour markers use the chat relay's ``{colour}...{clear}``
tag syntax; the palette order is fixed and part of the reply contract.
"""

from __future__ import annotations

from typing import Sequence

from .models import AchievementRecord, PlayerSummary, TitleRecord

PALETTE: tuple[str, ...] = ("green", "red", "blue", "orange", "magenta", "cyan", "yellow")

DEFAULT_SERVICE_NAME = "xbox live"

USAGE = "one of [s]et, [r]ecent, [l]ast, [a]chievement or [p]layer must be passed as a command"


def colour_tag(text: str, index: int) -> str:
    """Wrap text in the palette colour at ``index`` (wrapping)."""
    return f"{{{PALETTE[index % len(PALETTE)]}}}{text}{{clear}}"


def _tag(text: str, colour: str) -> str:
    return f"{{{colour}}}{text}{{clear}}"


def colour_list(items: Sequence[str]) -> list[str]:
    """Colour each item by its position in the sequence."""
    return [colour_tag(item, n) for n, item in enumerate(items)]


# ══════════════════════════════════════════════════════════
#  Results
# ══════════════════════════════════════════════════════════

def format_recent_titles(
    display_name: str,
    titles: Sequence[TitleRecord],
    service: str = DEFAULT_SERVICE_NAME,
) -> str:
    if not titles:
        return f"{display_name} has no recently played {service} games"
    names = colour_list([t.name for t in titles])
    return f"{display_name}'s recently played {service} games: {', '.join(names)}"


def format_latest_achievement(
    display_name: str,
    achievement: AchievementRecord,
    service: str = DEFAULT_SERVICE_NAME,
) -> str:
    """Render the last unlocked achievement.

    The achievement must have at least one parent title; the first one is
    shown as the game name.
    """
    if not achievement.parent_title_names:
        raise ValueError(f"achievement {achievement.id} has no parent titles")
    game = achievement.parent_title_names[0]
    description = achievement.description
    if description.endswith("."):
        description = description[:-1]
    return (
        f"{display_name}'s last {service} achievement: "
        f"{game} - {achievement.name} ({description})"
    )


def format_player_summary(summary: PlayerSummary) -> str:
    online = summary.presence_state == "Online"
    parts = [
        _tag(summary.display_name, "cyan"),
        _tag(summary.score, "yellow"),
        _tag(summary.presence_state, "green" if online else "red"),
    ]
    if online:
        parts.append(summary.presence_text)
    return " | ".join(parts)


# ══════════════════════════════════════════════════════════
#  Soft messages
# ══════════════════════════════════════════════════════════

def username_needed() -> str:
    return "Error: username needed"


def no_user_found(username: str) -> str:
    return f"Error: no user found for {username}"


def no_games_played(display_name: str) -> str:
    return f"{display_name} has not played any games"


def no_achievements(display_name: str) -> str:
    return f"{display_name} has no achievements"


def identity_set(nick: str, display_name: str, numeric_id: str) -> str:
    return f"set {nick}'s user to {display_name} ({numeric_id})"
