"""Prometheus metrics server for kryten-xboxlive.

Subclasses BaseMetricsServer from kryten-py to expose
lookup-specific metrics and health details.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kryten import BaseMetricsServer

if TYPE_CHECKING:
    from .main import XboxLiveApp


class XboxLiveMetricsServer(BaseMetricsServer):
    """Xbox Live lookup Prometheus metrics endpoint."""

    def __init__(self, app: XboxLiveApp, port: int = 28290) -> None:
        super().__init__(
            service_name="xboxlive",
            port=port,
            client=app.client,
            logger=app.logger,
        )
        self._app = app

    async def _collect_custom_metrics(self) -> list[str]:
        lines: list[str] = []

        # ── Counters ─────────────────────────────────────────
        lines.append(f"xboxlive_events_processed_total {self._app.events_processed}")
        lines.append(f"xboxlive_commands_processed_total {self._app.commands_processed}")
        lines.append(f"xboxlive_command_errors_total {self._app.command_errors}")
        for kind, count in sorted(self._app.errors_by_kind.items()):
            lines.append(f'xboxlive_errors_total{{kind="{kind}"}} {count}')

        # ── Gauges ───────────────────────────────────────────
        identities = await self._app.store.count()
        lines.append(f"xboxlive_stored_identities {identities}")

        return lines

    async def _get_health_details(self) -> dict:
        """Return health details for the /health endpoint."""
        return {
            "database": "connected" if self._app.store else "disconnected",
            "channels_configured": len(self._app.config.channels),
        }
