"""Entry point for the reading list service.

Starts the FastAPI application with Uvicorn.  Host, port and every
other option come from the environment (see
``reading_list_api/app/core/config.py``), e.g. ``PORT=8080 python run.py``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from reading_list_api.app.core.config import settings
from reading_list_api.app.main import app


async def run_api() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Serving on %s:%s", settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        pass
