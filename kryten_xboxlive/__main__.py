"""CLI entry point for kryten-xboxlive."""
import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

from .main import XboxLiveApp

CONFIG_CANDIDATES = [
    "/etc/kryten/kryten-xboxlive/config.yaml",
    "./config.yaml",
]


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Kryten Xbox Live gamertag lookup service")
    parser.add_argument("--config", type=str, help="Path to config.yaml")
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument(
        "-k", "--api-key", type=str, default=os.environ.get("XBOXLIVE_API_KEY"),
        help="OpenXBL API key (env: XBOXLIVE_API_KEY); overrides openxbl.api_key",
    )
    parser.add_argument(
        "-K", "--kv-path", type=str, default=os.environ.get("XBOXLIVE_KV_PATH"),
        help="Identity database path (env: XBOXLIVE_KV_PATH); overrides database.path",
    )
    parser.add_argument("--validate-config", action="store_true", help="Validate config and exit without starting")
    return parser.parse_args(argv)


def config_overrides(args: argparse.Namespace) -> dict[str, dict[str, str]]:
    """Translate CLI flags into load_config() overrides."""
    return {
        "openxbl": {"api_key": args.api_key},
        "database": {"path": args.kv_path},
    }


def find_config(explicit: str | None) -> str | None:
    if explicit:
        return explicit
    for candidate in CONFIG_CANDIDATES:
        if Path(candidate).exists():
            return candidate
    return None


async def main_async() -> None:
    args = parse_args()
    setup_logging(args.log_level)
    logger = logging.getLogger("xboxlive")

    config_path = find_config(args.config)
    if not config_path:
        logger.error("No config file found. Use --config or place config.yaml in CWD.")
        sys.exit(1)

    overrides = config_overrides(args)

    if args.validate_config:
        from .config import load_config

        try:
            load_config(config_path, overrides)
            logger.info("Config is valid.")
        except Exception as e:
            logger.error("Config validation failed: %s", e)
            sys.exit(1)
        return

    app = XboxLiveApp(config_path, overrides)

    # Signal handling (Unix only; Windows uses KeyboardInterrupt)
    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda: asyncio.ensure_future(app.stop()))

    try:
        await app.start()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


def main() -> None:
    """Sync entry point for pyproject.toml [project.scripts]."""
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
