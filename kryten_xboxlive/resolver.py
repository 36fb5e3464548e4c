"""Command resolver — picks the profile a command targets and runs it.

A command either names a gamertag (looked up live, never stored) or falls
back to the caller's stored identity. Soft outcomes (unknown gamertag, no
stored identity, no games) become reply text; everything else propagates.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence

from . import formatting
from .errors import NoAchievements, NoTitles, UserNotFound
from .models import Identity, TitleRecord
from .utils import now_utc

if TYPE_CHECKING:
    from .identity_store import IdentityStore
    from .openxbl_client import OpenXBLClient


RECENCY_WINDOW = timedelta(days=30)

Operation = Callable[[Identity], Awaitable[str]]


def filter_recent(
    titles: Sequence[TitleRecord],
    now: datetime | None = None,
    window: timedelta = RECENCY_WINDOW,
) -> list[TitleRecord]:
    """Keep titles last played strictly less than ``window`` before ``now``."""
    if now is None:
        now = now_utc()
    return [
        t for t in titles
        if t.last_played_at is not None and now - t.last_played_at < window
    ]


class CommandResolver:
    """Resolves the target identity for each command invocation."""

    def __init__(
        self,
        client: OpenXBLClient,
        store: IdentityStore,
        logger: logging.Logger | None = None,
        service_name: str = formatting.DEFAULT_SERVICE_NAME,
    ) -> None:
        self._client = client
        self._store = store
        self._logger = logger or logging.getLogger("xboxlive.resolver")
        self._service = service_name

    async def set_identity(self, nick: str, username: str) -> str:
        """Look up ``username`` and store it as ``nick``'s identity."""
        if not username:
            return formatting.username_needed()

        try:
            numeric_id, display_name = await self._client.lookup_identity(username)
        except UserNotFound:
            return formatting.no_user_found(username)

        await self._store.set(nick, display_name, numeric_id)
        return formatting.identity_set(nick, display_name, numeric_id)

    async def run(self, nick: str, username: str, operation: Operation) -> str:
        """Run ``operation`` against ``username`` or, if empty, ``nick``'s stored identity."""
        if username:
            try:
                numeric_id, display_name = await self._client.lookup_identity(username)
            except UserNotFound:
                return formatting.no_user_found(username)
            identity = Identity(nick=nick, display_name=display_name, numeric_id=numeric_id)
        else:
            identity = await self._store.get(nick)
            if identity is None:
                return formatting.username_needed()

        return await operation(identity)

    # ══════════════════════════════════════════════════════════
    #  Operations
    # ══════════════════════════════════════════════════════════

    async def recent(self, identity: Identity) -> str:
        titles = await self._client.recent_titles(identity.numeric_id)
        return formatting.format_recent_titles(
            identity.display_name, filter_recent(titles), self._service,
        )

    async def achievement(self, identity: Identity) -> str:
        """Latest achievement of the most recently interacted title.

        NoAchievements is re-raised with a reply attached: the user is told,
        and the caller still sees the error.
        """
        try:
            achievement = await self._client.latest_achievement(identity.numeric_id)
        except NoTitles:
            return formatting.no_games_played(identity.display_name)
        except NoAchievements as e:
            e.reply = formatting.no_achievements(identity.display_name)
            raise

        return formatting.format_latest_achievement(
            identity.display_name, achievement, self._service,
        )

    async def player(self, identity: Identity) -> str:
        summary = await self._client.player_summary(identity.numeric_id)
        return formatting.format_player_summary(summary)
