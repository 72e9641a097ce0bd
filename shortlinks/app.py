#!/usr/bin/env python3
"""
Main entry point for the short link service.

Concurrency: one registry instance owns all records. With the memory backend
run a single worker; the postgres and redis backends keep per-code
operations atomic on the server side, so WORKERS > 1 is safe with them.

Usage:
    shortlinks

Environment variables:
    STORAGE_BACKEND - memory, postgres or redis
    DATABASE_URL - PostgreSQL connection URL
    DATABASE_CREATE_TABLES - Set to true to create tables on first use
    REDIS_URL - Redis connection URL
    BASE_URL - Base URL for short links
    PATH_PREFIX - Path redirects are served under (default /r)
    DEFAULT_VALIDITY_MINUTES - Validity when a request omits it (default 30)
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from shortlinks.config import load_config
from shortlinks.lib.common.logging_config import setup_logging
from shortlinks.lib.database import create_store
from shortlinks.lib.registry import LinkRegistry
from shortlinks.lib.shortcode import ShortCodeGenerator
from shortlinks.web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store and registry on startup, close them on shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short link service...")
    logger.info(f"Using {config.storage_backend} storage")

    store = create_store(config, logger=logger)
    registry = LinkRegistry(
        store=store,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        logger=logger,
        enable_custom_codes=config.enable_custom_codes,
        max_collision_retries=config.max_collision_retries,
        lock_stripes=config.lock_stripes,
    )

    health = await registry.health_check()
    if not health["overall"]:
        logger.warning("Storage is not reachable yet; requests may fail")

    app.state.store = store
    app.state.registry = registry

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down short link service...")
    await registry.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Short Link Service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    app = create_app(
        store_instance=None,  # Set in lifespan
        registry_instance=None,
        config=config,
    )

    app.state.config = config
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
