"""Configuration system for kryten-xboxlive.

Pydantic models with sensible defaults, layered on top of KrytenConfig
(nats, channels, service, metrics). Loaded from YAML with ${VAR} expansion
so the OpenXBL API key can come from the environment.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from kryten import KrytenConfig
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    path: str = "xboxlive.db"


class OpenXBLConfig(BaseModel):
    """OpenXBL API access."""
    base_url: str = "https://xbl.io/api/v2"
    api_key: str = Field(default="", description="Sent as the x-authorization header")
    timeout_seconds: float = 10.0


class CommandsConfig(BaseModel):
    prefix: str = "!"
    trigger: str = "xbl"
    service_name: str = Field(
        default="xbox live",
        description="Service name used in reply text",
    )


class BotConfig(BaseModel):
    username: str = "XboxLiveBot"


# NOTE: metrics is inherited from KrytenConfig (kryten.config.MetricsConfig).


class XboxLiveConfig(KrytenConfig):
    """Full service config: KrytenConfig plus the xboxlive sub-models."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    openxbl: OpenXBLConfig = Field(default_factory=OpenXBLConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    bot: BotConfig = Field(default_factory=BotConfig)
    ignored_users: list[str] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════
#  Config Loading
# ═══════════════════════════════════════════════════════════════

def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand ${VAR} and ${VAR:-default} in string values."""
    if isinstance(obj, str):
        return re.sub(
            r"\$\{([^}:]+)(?::-(.*?))?\}",
            lambda m: os.environ.get(m.group(1), m.group(2) or ""),
            obj,
        )
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def load_config(config_path: str, overrides: dict[str, dict[str, Any]] | None = None) -> XboxLiveConfig:
    """Load and validate YAML config file into XboxLiveConfig.

    ``overrides`` maps section name to field values (e.g. from CLI flags)
    and wins over the file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Config file must contain a YAML mapping at the top level.")

    raw = _expand_env_vars(raw)
    for section, values in (overrides or {}).items():
        merged = dict(raw.get(section) or {})
        merged.update({k: v for k, v in values.items() if v is not None})
        raw[section] = merged
    config = XboxLiveConfig(**raw)
    if not config.openxbl.api_key:
        raise ValueError("openxbl.api_key must be set (e.g. api_key: ${XBOXLIVE_API_KEY}).")
    return config
