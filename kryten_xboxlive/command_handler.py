"""Request-reply command handler on kryten.xboxlive.command.

Provides a NATS request-reply API for inter-service communication
and admin tooling.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from . import __version__

if TYPE_CHECKING:
    from kryten import KrytenClient

    from .main import XboxLiveApp


class CommandHandler:
    """Handles request-reply commands on kryten.xboxlive.command."""

    SUBJECT = "kryten.xboxlive.command"

    def __init__(
        self,
        app: XboxLiveApp,
        client: KrytenClient,
        logger: logging.Logger | None = None,
    ) -> None:
        self._app = app
        self._client = client
        self._logger = logger or logging.getLogger("xboxlive.command")

    async def connect(self) -> None:
        """Subscribe to request-reply on kryten.xboxlive.command."""
        await self._client.subscribe_request_reply(
            self.SUBJECT,
            self._handle_command,
        )

    async def _handle_command(self, request: dict[str, Any]) -> dict[str, Any]:
        """Route a command request to the appropriate handler."""
        command = request.get("command", "")
        handler = self._HANDLER_MAP.get(command)

        if not handler:
            return {
                "service": "xboxlive",
                "command": command,
                "success": False,
                "error": f"Unknown command: {command}",
            }

        try:
            result = await handler(self, request)
            return {
                "service": "xboxlive",
                "command": command,
                "success": True,
                "data": result,
            }
        except Exception as e:
            self._logger.exception("Command handler error for %s", command)
            return {
                "service": "xboxlive",
                "command": command,
                "success": False,
                "error": str(e),
            }

    # ══════════════════════════════════════════════════════════
    #  System
    # ══════════════════════════════════════════════════════════

    async def _handle_ping(self, request: dict[str, Any]) -> dict[str, Any]:
        return {"pong": True, "version": __version__}

    async def _handle_health(self, request: dict[str, Any]) -> dict[str, Any]:
        return {
            "status": "healthy",
            "database": "connected" if self._app.store else "disconnected",
            "identities": await self._app.store.count() if self._app.store else 0,
            "uptime_seconds": self._app.uptime_seconds,
        }

    # ══════════════════════════════════════════════════════════
    #  Identities & Queries
    # ══════════════════════════════════════════════════════════

    async def _handle_identity_get(self, request: dict[str, Any]) -> dict[str, Any]:
        nick = request.get("nick")
        if not nick:
            raise ValueError("nick is required")

        identity = await self._app.store.get(nick)
        if identity is None:
            return {"found": False}

        return {
            "found": True,
            "nick": identity.nick,
            "gamertag": identity.display_name,
            "xuid": identity.numeric_id,
        }

    async def _handle_identity_set(self, request: dict[str, Any]) -> dict[str, Any]:
        nick = request.get("nick")
        username = request.get("username")
        if not nick or not username:
            raise ValueError("nick and username are required")

        reply = await self._app.resolver.set_identity(nick, username)
        return {"reply": reply}

    async def _handle_query(self, request: dict[str, Any]) -> dict[str, Any]:
        """Run a chat command (e.g. ``"p"`` or ``"recent someone"``) for a nick."""
        nick = request.get("nick")
        text = request.get("text", "")
        if not nick:
            raise ValueError("nick is required")

        reply = await self._app.run_command(nick, text)
        return {
            "reply": reply.text,
            "error": reply.error.kind.value if reply.error else None,
        }

    _HANDLER_MAP: dict[str, Any] = {
        "system.ping": _handle_ping,
        "system.health": _handle_health,
        "identity.get": _handle_identity_get,
        "identity.set": _handle_identity_set,
        "query": _handle_query,
    }
