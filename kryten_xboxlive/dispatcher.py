"""Command dispatcher: the single entry point the transport calls.

``handle(nick, text)`` splits the text into keyword and operand, routes the
keyword through a table built once at construction, and never raises for a
lookup failure: the error is returned next to whatever reply text exists.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, NamedTuple

from . import formatting
from .errors import XboxLiveError

if TYPE_CHECKING:
    from .resolver import CommandResolver, Operation


class CommandReply(NamedTuple):
    """Outcome of one command.

    ``text`` is sent to the user when non-empty, even if ``error`` is set.
    """

    text: str
    error: XboxLiveError | None = None


def parse_args(text: str) -> tuple[str, str]:
    """Split into (keyword, operand); extra tokens are ignored."""
    fields = text.split()
    command = fields[0] if fields else ""
    user = fields[1] if len(fields) > 1 else ""
    return command, user


class CommandDispatcher:
    """Maps command keywords (and their one-letter aliases) to handlers."""

    def __init__(
        self,
        resolver: CommandResolver,
        logger: logging.Logger | None = None,
    ) -> None:
        self._resolver = resolver
        self._logger = logger or logging.getLogger("xboxlive.dispatcher")

        # Command dispatch map: (nick, operand) -> reply
        recent = self._via(resolver.recent)
        achievement = self._via(resolver.achievement)
        player = self._via(resolver.player)
        self._command_map: dict[str, Callable[[str, str], Awaitable[str]]] = {
            "s": resolver.set_identity,
            "set": resolver.set_identity,
            "r": recent,
            "recent": recent,
            "l": recent,
            "last": recent,
            "a": achievement,
            "achievement": achievement,
            "p": player,
            "player": player,
        }

    @property
    def keywords(self) -> list[str]:
        return list(self._command_map)

    def _via(self, operation: Operation) -> Callable[[str, str], Awaitable[str]]:
        async def handler(nick: str, user: str) -> str:
            return await self._resolver.run(nick, user, operation)
        return handler

    async def handle(self, nick: str, text: str) -> CommandReply:
        """Run one command for ``nick``."""
        command, user = parse_args(text)
        handler = self._command_map.get(command)
        if handler is None:
            return CommandReply(formatting.USAGE)

        try:
            return CommandReply(await handler(nick, user))
        except XboxLiveError as e:
            self._logger.debug("Command %r for %s failed: %s", command, nick, e)
            return CommandReply(e.reply or "", e)
