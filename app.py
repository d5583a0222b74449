#!/usr/bin/env python3
"""
Main entry point for the short links service.

Concurrency: each request is handled as its own asyncio task (FastAPI +
redis.asyncio); live feeds are long-lived tasks suspended on Redis pub/sub.
Set WORKERS > 1 for multi-process scaling; this needs a shared store
(STORE_URL=redis://...), the memory:// store is per process.

Usage:
    python app.py

Environment variables:
    STORE_URL - Link store URL (redis://host:port/db or memory://)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    GITHUB_CLIENT_ID, GITHUB_CLIENT_SECRET, GITHUB_REDIRECT_URI - OAuth app
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from shortlinks.database import create_store
from shortlinks.service import LinkService
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.common.logging_config import setup_logging
from web_app import create_app
from web_app.auth import GitHubOAuthClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short links service...")

    logger.info(f"Connecting to link store at {config.store_url}")
    store = create_store(config.store_url, logger=logger)
    if not await store.health_check():
        logger.warning("Link store is not reachable yet; requests will fail until it is")

    generator = ShortCodeGenerator(default_length=config.short_code_length)
    service = LinkService(
        store=store,
        short_code_generator=generator,
        logger=logger,
        max_collision_retries=config.max_collision_retries,
    )

    if not config.github_client_id:
        logger.warning("GITHUB_CLIENT_ID is not set; sign-in will fail")
    oauth = GitHubOAuthClient(
        client_id=config.github_client_id,
        client_secret=config.github_client_secret,
        redirect_uri=config.github_redirect_uri,
        logger=logger,
    )

    app.state.store = store
    app.state.service = service
    app.state.oauth = oauth

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down short links service...")
    await oauth.close()
    await service.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Short Links Service")
    logger.info(
        f"Configuration: {config.model_dump(exclude={'github_client_secret'})}"
    )

    # Instances are created in the lifespan, inside the server's event loop
    app = create_app(
        store=None,
        service=None,
        oauth=None,
        config=config,
    )
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
