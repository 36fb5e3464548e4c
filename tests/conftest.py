"""Shared test fixtures for kryten-xboxlive."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
import pytest_asyncio

from kryten_xboxlive.config import OpenXBLConfig, XboxLiveConfig
from kryten_xboxlive.dispatcher import CommandDispatcher
from kryten_xboxlive.identity_store import IdentityStore
from kryten_xboxlive.openxbl_client import OpenXBLClient
from kryten_xboxlive.resolver import CommandResolver

BASE_URL = "https://xbl.io/api/v2"


# ── Minimal config dict matching XboxLiveConfig schema ───────

def make_config_dict(**overrides) -> dict:
    """Build a valid config dict with sensible test defaults."""
    base = {
        "nats": {"servers": ["nats://localhost:4222"]},
        "channels": [{"domain": "cytu.be", "channel": "testchannel"}],
        "service": {"name": "xboxlive"},
        "database": {"path": ":memory:"},
        "openxbl": {"base_url": BASE_URL, "api_key": "test-key", "timeout_seconds": 5},
        "commands": {"prefix": "!", "trigger": "xbl", "service_name": "xbox live"},
        "bot": {"username": "TestBot"},
        "ignored_users": ["IgnoredBot"],
    }
    base.update(overrides)
    return base


# ── OpenXBL payload builders ─────────────────────────────────

def xbl_timestamp(dt: datetime) -> str:
    """Format like OpenXBL: 7 fractional digits and a Z suffix."""
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f") + "0Z"


def ago(**delta) -> str:
    return xbl_timestamp(datetime.now(timezone.utc) - timedelta(**delta))


LOCKED = "0001-01-01T00:00:00.0000000Z"


def search_payload(*people: tuple[str, str]) -> dict:
    return {"people": [{"xuid": xuid, "gamertag": tag} for xuid, tag in people]}


def title_payload(title_id: str, name: str, last_played: str) -> dict:
    return {
        "titleId": title_id,
        "name": name,
        "type": "Game",
        "titleHistory": {"lastTimePlayed": last_played},
    }


def titles_payload(*titles: dict) -> dict:
    return {"xuid": "2533274798129181", "titles": list(titles)}


def achievement_payload(
    ach_id: str,
    name: str,
    description: str = "",
    unlocked: str = LOCKED,
    titles: tuple[str, ...] = ("Persona 3 Reload",),
) -> dict:
    return {
        "id": ach_id,
        "name": name,
        "description": description,
        "progressState": "Achieved" if unlocked != LOCKED else "NotStarted",
        "progression": {"requirements": [], "timeUnlocked": unlocked},
        "titleAssociations": [{"name": t, "id": 1670311038} for t in titles],
    }


def summary_payload(gamertag: str, score: str, state: str, text: str = "") -> dict:
    return {
        "people": [{
            "xuid": "2533274798129181",
            "gamertag": gamertag,
            "gamerScore": score,
            "presenceState": state,
            "presenceText": text,
        }],
    }


# ── aiohttp session mocks ────────────────────────────────────

def make_response(payload: Any, status: int = 200) -> AsyncMock:
    """Mock an aiohttp response usable as an async context manager."""
    resp = AsyncMock()
    resp.status = status
    resp.raise_for_status = MagicMock()
    if status >= 400:
        resp.raise_for_status.side_effect = aiohttp.ClientResponseError(
            request_info=MagicMock(), history=(), status=status, message="Error",
        )
    resp.json = AsyncMock(return_value=payload)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


def make_session(routes: dict[str, Any]) -> MagicMock:
    """Mock session whose get() answers by path (relative to BASE_URL).

    A route value may be a payload, a ready-made response mock, or an
    exception to raise.
    """
    session = MagicMock()

    def _get(url: str, **kwargs):
        path = url[len(BASE_URL):]
        route = routes[path]
        if isinstance(route, BaseException):
            raise route
        if isinstance(route, AsyncMock):
            return route
        return make_response(route)

    session.get = MagicMock(side_effect=_get)
    session.close = AsyncMock()
    return session


# ── Fixtures ─────────────────────────────────────────────────

@pytest.fixture
def sample_config_dict() -> dict:
    return make_config_dict()


@pytest.fixture
def sample_config(sample_config_dict: dict) -> XboxLiveConfig:
    return XboxLiveConfig(**sample_config_dict)


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> str:
    """Return a temporary SQLite database path."""
    return str(tmp_path / "test_xboxlive.db")


@pytest_asyncio.fixture
async def store(tmp_db_path: str) -> AsyncGenerator[IdentityStore, None]:
    """Provide an initialized identity store with temp file."""
    s = IdentityStore(tmp_db_path, logging.getLogger("test"))
    await s.initialize()
    yield s


@pytest.fixture
def openxbl_client() -> OpenXBLClient:
    """Real OpenXBLClient without a session; tests attach a mock session."""
    cfg = OpenXBLConfig(base_url=BASE_URL, api_key="test-key")
    return OpenXBLClient(cfg, logging.getLogger("test"))


@pytest.fixture
def mock_openxbl() -> MagicMock:
    """Mock OpenXBLClient with async lookups."""
    client = MagicMock(spec=OpenXBLClient)
    client.lookup_identity = AsyncMock(return_value=("2533274798129181", "xTACTICSx"))
    client.recent_titles = AsyncMock(return_value=[])
    client.latest_achievement = AsyncMock()
    client.player_summary = AsyncMock()
    client.start = AsyncMock()
    client.stop = AsyncMock()
    return client


@pytest_asyncio.fixture
async def resolver(mock_openxbl: MagicMock, store: IdentityStore) -> CommandResolver:
    return CommandResolver(mock_openxbl, store, logging.getLogger("test"))


@pytest_asyncio.fixture
async def dispatcher(resolver: CommandResolver) -> CommandDispatcher:
    return CommandDispatcher(resolver, logging.getLogger("test"))


@pytest.fixture
def mock_client() -> MagicMock:
    """Return a mock KrytenClient with async methods."""
    client = MagicMock()
    client.send_chat = AsyncMock(return_value="corr-id-456")
    client.connect = AsyncMock()
    client.run = AsyncMock()
    client.stop = AsyncMock()
    client.subscribe = AsyncMock()
    client.subscribe_request_reply = AsyncMock()
    return client
