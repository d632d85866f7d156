#!/usr/bin/env python3
"""Main entry point for the tournament bracket service."""

import argparse
import logging
from pathlib import Path

from config.settings import DEFAULT_CONFIG_PATH, AppConfig, get_default_config


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def start_web_server(config: AppConfig) -> None:
    """Start the FastAPI web server."""
    import uvicorn

    from web.api import create_app

    setup_logging(config.system.log_level)

    app = create_app(config)

    print("🏆 Starting Tournament Bracket Service...")
    print(f"📡 API Documentation: http://localhost:{config.server.port}/docs")

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.system.log_level.lower(),
        access_log=True,
    )


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Tournament bracket service")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to a JSON or YAML configuration file",
    )
    args = parser.parse_args()

    start_web_server(get_default_config(args.config))


if __name__ == "__main__":
    main()
