"""Service orchestrator — XboxLiveApp.

Follows the canonical kryten-py microservice pattern:
config → DB init → HTTP client → register handlers → connect → subscribe → metrics → run.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from kryten import KrytenClient

from . import __version__
from .command_handler import CommandHandler
from .config import XboxLiveConfig, load_config
from .dispatcher import CommandDispatcher, CommandReply
from .identity_store import IdentityStore
from .metrics_server import XboxLiveMetricsServer
from .openxbl_client import OpenXBLClient
from .resolver import CommandResolver


class XboxLiveApp:
    """Top-level application orchestrator."""

    def __init__(
        self,
        config_path: str,
        overrides: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.config_path = Path(config_path)
        self._overrides = overrides
        self.logger = logging.getLogger("xboxlive")

        # Components (initialized in start())
        self.config: XboxLiveConfig | None = None
        self.client: KrytenClient | None = None
        self.store: IdentityStore | None = None
        self.openxbl: OpenXBLClient | None = None
        self.resolver: CommandResolver | None = None
        self.dispatcher: CommandDispatcher | None = None
        self.command_handler: CommandHandler | None = None
        self.metrics_server: XboxLiveMetricsServer | None = None

        # State
        self._running = False
        self._start_time: float | None = None

        # Counters (for metrics)
        self.events_processed: int = 0
        self.commands_processed: int = 0
        self.command_errors: int = 0
        self.errors_by_kind: dict[str, int] = {}

    @property
    def uptime_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return time.time() - self._start_time

    async def start(self) -> None:
        """Start the service in the canonical kryten-py order."""
        self.logger.info("Starting kryten-xboxlive...")
        self._start_time = time.time()

        # 1. Load and validate config
        self.config = load_config(str(self.config_path), self._overrides)
        self.logger.info("Config loaded: %d channel(s)", len(self.config.channels))

        # 2. Initialize identity store
        self.store = IdentityStore(self.config.database.path, self.logger)
        await self.store.initialize()
        self.logger.info("Identity store initialized: %s", self.config.database.path)

        # 3. Start OpenXBL HTTP client
        self.openxbl = OpenXBLClient(self.config.openxbl, self.logger)
        await self.openxbl.start()
        self.logger.info("OpenXBL client started: %s", self.config.openxbl.base_url)

        # 4. Wire the command core
        self.resolver = CommandResolver(
            client=self.openxbl,
            store=self.store,
            logger=self.logger,
            service_name=self.config.commands.service_name,
        )
        self.dispatcher = CommandDispatcher(self.resolver, self.logger)

        # 5. Create KrytenClient and register handlers BEFORE connect
        self.client = KrytenClient(self.config)

        @self.client.on("chatmsg")
        async def handle_chatmsg(event):
            await self.handle_chat(event)

        # 6. Connect to NATS
        await self.client.connect()
        self.logger.info("Connected to NATS")

        # 7. Start metrics server
        metrics_port = self.config.metrics.port if self.config.metrics else 28290
        self.metrics_server = XboxLiveMetricsServer(self, port=metrics_port)
        await self.metrics_server.start()
        self.logger.info("Metrics server started on port %d", metrics_port)

        # 8. Start command handler
        self.command_handler = CommandHandler(self, self.client, self.logger)
        await self.command_handler.connect()
        self.logger.info("Command handler ready on %s", CommandHandler.SUBJECT)

        # 9. Mark running
        self._running = True
        self.logger.info("kryten-xboxlive started successfully (v%s)", __version__)

        # 10. Block on client event loop
        await self.client.run()

    async def stop(self) -> None:
        """Gracefully shut down all components in reverse order."""
        if not self._running:
            return
        self.logger.info("Shutting down kryten-xboxlive...")
        self._running = False

        if self.metrics_server:
            await self.metrics_server.stop()
        if self.openxbl:
            await self.openxbl.stop()
        if self.client:
            await self.client.stop()

        self.logger.info("kryten-xboxlive stopped.")

    # ══════════════════════════════════════════════════════════
    #  Chat
    # ══════════════════════════════════════════════════════════

    def _command_args(self, message: str) -> str | None:
        """Return the text after ``<prefix><trigger>``, or None if not addressed to us."""
        word = f"{self.config.commands.prefix}{self.config.commands.trigger}"
        parts = message.strip().split(None, 1)
        if not parts or parts[0] != word:
            return None
        return parts[1] if len(parts) > 1 else ""

    async def handle_chat(self, event: Any) -> None:
        """Answer ``!xbl ...`` chat messages in the channel they came from."""
        try:
            self.events_processed += 1
            username = event.username
            channel = event.channel

            ignored = {u.lower() for u in self.config.ignored_users}
            if username.lower() in ignored:
                return
            if username.lower() == self.config.bot.username.lower():
                return

            args = self._command_args(event.message)
            if args is None:
                return

            reply = await self.run_command(username, args)
            if reply.text:
                await self.client.send_chat(channel, reply.text)
        except Exception:
            self.logger.exception("chatmsg handler error for %s", getattr(event, "username", "?"))

    async def run_command(self, nick: str, text: str) -> CommandReply:
        """Dispatch one command and record its outcome."""
        self.commands_processed += 1
        reply = await self.dispatcher.handle(nick, text)
        if reply.error is not None:
            self.command_errors += 1
            kind = reply.error.kind.value
            self.errors_by_kind[kind] = self.errors_by_kind.get(kind, 0) + 1
            self.logger.error("Command %r from %s failed: %s", text, nick, reply.error)
        return reply
