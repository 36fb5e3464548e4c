"""OpenXBL API client — async HTTP wrapper for Xbox Live profile lookups.

Each public coroutine is one (or, for achievements, two sequential) GET
round trips against https://xbl.io/api/v2. Responses are parsed into the
dataclasses in ``models``. Nothing is cached and nothing is retried; any
transport or schema failure surfaces as RemoteError.
All tests mock the HTTP layer; never call the real OpenXBL service.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import aiohttp

from .errors import NoAchievements, NoTitles, RemoteError, UserNotFound
from .models import AchievementRecord, PlayerSummary, TitleRecord
from .utils import parse_timestamp

if TYPE_CHECKING:
    from .config import OpenXBLConfig


class OpenXBLClient:
    """Async client for the OpenXBL profile API."""

    def __init__(self, config: OpenXBLConfig, logger: logging.Logger) -> None:
        self._config = config
        self._logger = logger
        self._session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        """Create the HTTP session."""
        headers = {
            "x-authorization": self._config.api_key,
            "accept": "*/*",
        }
        self._session = aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds),
        )

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    # ══════════════════════════════════════════════════════════
    #  Lookups
    # ══════════════════════════════════════════════════════════

    async def lookup_identity(self, username: str) -> tuple[str, str]:
        """Resolve a gamertag to ``(xuid, gamertag)``.

        Raises UserNotFound when the search returns no people.
        """
        data = await self._get("lookup_identity", username, f"/search/{quote(username, safe='')}")
        people = self._require_list(data, "people", "lookup_identity", username)
        if not people:
            raise UserNotFound(
                f"No user found for {username}",
                operation="lookup_identity",
                target=username,
            )
        person = people[0]
        return (
            self._require_str(person, "xuid", "lookup_identity", username),
            self._require_str(person, "gamertag", "lookup_identity", username),
        )

    async def recent_titles(self, numeric_id: str) -> list[TitleRecord]:
        """Return the full title history for a profile, in service order.

        Recency filtering is left to the caller.
        """
        data = await self._get(
            "recent_titles", numeric_id, f"/player/titleHistory/{numeric_id}",
        )
        titles = self._require_list(data, "titles", "recent_titles", numeric_id)
        return [self._parse_title(t, "recent_titles", numeric_id) for t in titles]

    async def latest_achievement(self, numeric_id: str) -> AchievementRecord:
        """Return the most recently unlocked achievement of the first listed title.

        The first title in the achievement-history response is treated as the
        most recently interacted title. Raises NoTitles if there is no such
        title and NoAchievements if it has no unlocked achievements.
        """
        data = await self._get(
            "latest_achievement", numeric_id, f"/achievements/player/{numeric_id}",
        )
        titles = self._require_list(data, "titles", "latest_achievement", numeric_id)
        if not titles:
            raise NoTitles(
                "Profile has no titles",
                operation="latest_achievement",
                target=numeric_id,
            )
        first = titles[0]
        # An empty id on the first entry means nothing has been played yet
        if isinstance(first, dict) and first.get("titleId") == "":
            raise NoTitles(
                "Profile has no played titles",
                operation="latest_achievement",
                target=numeric_id,
            )
        title_id = self._parse_title(first, "latest_achievement", numeric_id).id

        data = await self._get(
            "latest_achievement",
            numeric_id,
            f"/achievements/player/{numeric_id}/{title_id}",
        )
        raw = self._require_list(data, "achievements", "latest_achievement", numeric_id)
        achievements = [self._parse_achievement(a, numeric_id) for a in raw]
        newest = newest_achievement(achievements)
        if newest is None:
            raise NoAchievements(
                "Title has no unlocked achievements",
                operation="latest_achievement",
                target=numeric_id,
                title_id=title_id,
            )
        if not newest.parent_title_names:
            raise RemoteError(
                "Achievement has no title associations",
                operation="latest_achievement",
                target=numeric_id,
                achievement_id=newest.id,
            )
        return newest

    async def player_summary(self, numeric_id: str) -> PlayerSummary:
        """Return gamertag, gamerscore and presence for a profile."""
        data = await self._get(
            "player_summary", numeric_id, f"/player/summary/{numeric_id}",
        )
        people = self._require_list(data, "people", "player_summary", numeric_id)
        if not people:
            raise RemoteError(
                "No profile summary returned",
                operation="player_summary",
                target=numeric_id,
            )
        person = people[0]
        try:
            return PlayerSummary(
                display_name=self._require_str(person, "gamertag", "player_summary", numeric_id),
                score=str(person["gamerScore"]),
                presence_state=str(person["presenceState"]),
                presence_text=str(person.get("presenceText") or ""),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise RemoteError(
                f"Malformed player summary: {e!r}",
                operation="player_summary",
                target=numeric_id,
            ) from e

    # ══════════════════════════════════════════════════════════
    #  Internal Helpers
    # ══════════════════════════════════════════════════════════

    async def _get(self, operation: str, target: str, path: str) -> dict:
        """GET a path under the base URL and return the decoded JSON object."""
        if not self._session:
            raise RemoteError("HTTP session not started", operation=operation, target=target)

        url = self._config.base_url.rstrip("/") + path
        self._logger.debug("OpenXBL %s: GET %s", operation, path)
        try:
            async with self._session.get(url) as resp:
                resp.raise_for_status()
                data = await resp.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            raise RemoteError(
                f"HTTP {e.status}: {e.message}",
                operation=operation,
                target=target,
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise RemoteError(
                f"Request failed: {e!r}",
                operation=operation,
                target=target,
            ) from e

        if not isinstance(data, dict):
            raise RemoteError(
                f"Expected JSON object, got {type(data).__name__}",
                operation=operation,
                target=target,
            )
        return data

    @staticmethod
    def _require_list(data: dict, key: str, operation: str, target: str) -> list:
        """Return ``data[key]`` as a list; a missing key or null counts as empty."""
        value = data.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise RemoteError(
                f"Expected list for '{key}'",
                operation=operation,
                target=target,
            )
        return value

    @staticmethod
    def _require_str(obj: Any, key: str, operation: str, target: str) -> str:
        """Return ``obj[key]`` as a string; missing, null or empty is a RemoteError."""
        value = obj.get(key) if isinstance(obj, dict) else None
        if value is None or value == "":
            raise RemoteError(
                f"Missing '{key}' in response",
                operation=operation,
                target=target,
            )
        return str(value)

    @staticmethod
    def _parse_title(item: Any, operation: str, target: str) -> TitleRecord:
        """Parse a title entry from titleHistory or achievement history."""
        try:
            history = item.get("titleHistory") or {}
            return TitleRecord(
                id=OpenXBLClient._require_str(item, "titleId", operation, target),
                name=str(item.get("name", "")),
                last_played_at=parse_timestamp(history.get("lastTimePlayed")),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise RemoteError(
                f"Malformed title entry: {e!r}",
                operation=operation,
                target=target,
            ) from e

    @staticmethod
    def _parse_achievement(item: Any, target: str) -> AchievementRecord:
        """Parse an achievement entry from the per-title achievement list."""
        try:
            progression = item.get("progression") or {}
            return AchievementRecord(
                id=OpenXBLClient._require_str(item, "id", "latest_achievement", target),
                name=OpenXBLClient._require_str(item, "name", "latest_achievement", target),
                description=str(item.get("description") or ""),
                unlocked_at=parse_timestamp(progression.get("timeUnlocked")),
                parent_title_names=[
                    str(t["name"]) for t in item.get("titleAssociations") or []
                ],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise RemoteError(
                f"Malformed achievement entry: {e!r}",
                operation="latest_achievement",
                target=target,
            ) from e


def newest_achievement(achievements: list[AchievementRecord]) -> AchievementRecord | None:
    """Return the achievement with the latest unlock time, or None.

    Locked achievements carry OpenXBL's year-1 sentinel (or no timestamp)
    and never win.
    """
    unlocked = [
        a for a in achievements
        if a.unlocked_at is not None and a.unlocked_at.year > 1
    ]
    if not unlocked:
        return None
    return max(unlocked, key=lambda a: a.unlocked_at)
