"""Main entry point for the workflow API server."""

import argparse
import logging
import sys

import uvicorn
from fastapi import FastAPI

from flowline.api.app import FlowlineAPI
from flowline.config import Settings
from flowline.container import build_components, get_redis_client
from flowline.services.log_service import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application with all dependencies."""
    settings = settings or Settings.from_env()
    components = build_components(get_redis_client(settings), settings)
    api = FlowlineAPI(components.service, components.engine)
    return api.create_app()


def main(argv: list[str] | None = None) -> int:
    """Run the API server."""
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Flowline API Server")
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Host to bind to (default: {settings.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to bind to (default: {settings.port})",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})",
    )
    args = parser.parse_args(argv)

    configure_logging(
        log_file="flowline-api.log",
        log_dir=settings.log_dir,
        level=args.log_level,
    )

    logger.info("Starting Flowline API server")
    logger.info(f"Redis: {settings.redis_url}")
    if not settings.durable_waits:
        logger.warning("Durable waits disabled: Wait nodes block the request")

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)
    return 0


def get_app() -> FastAPI:
    """Get or create the FastAPI application (for uvicorn import)."""
    return create_app()


if __name__ == "__main__":
    sys.exit(main())
