"""Main entry point for the Minecraft status webhook."""

import argparse
import logging
import os
import sys

import structlog
import uvicorn

from status_webhook.app import create_app
from status_webhook.config import ConfigError, load_config
from status_webhook.state_store import StateStore


logger = structlog.get_logger(__name__)


def configure_logging(level_name: str) -> None:
    """Configure structured console logging."""
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    # The webhook token is part of the request URL; keep client libraries quiet.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def main() -> int:
    """Main entry point with argument handling."""
    parser = argparse.ArgumentParser(description="Minecraft SRV status -> Discord webhook")
    parser.add_argument(
        "--config",
        default=os.getenv("STATUS_WEBHOOK_CONFIG", "config.json"),
        help="Path to JSON/YAML config",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (INFO, DEBUG, ...); defaults to the config value",
    )
    parser.add_argument(
        "--reset-state",
        action="store_true",
        help="Forget the tracked message id and server state before starting",
    )
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        configure_logging(args.log_level or os.getenv("LOG_LEVEL", "INFO"))
        logger.error("Configuration error", error=str(e))
        return 1

    configure_logging(args.log_level or ("DEBUG" if config.debug else config.log_level))
    logger.info("Configuration loaded", config=args.config)

    if args.reset_state:
        StateStore(config.state_path).reset()

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
