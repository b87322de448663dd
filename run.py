"""Entry point for the Biblioteca API server.

Starts the FastAPI application with Uvicorn.  Host, port and log level
come from the environment (see ``biblioteca_api.app.core.config``).

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from biblioteca_api.app.core.config import settings
from biblioteca_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted.

    A single worker is used: borrow and return requests for the same
    book are serialized by locks held in this process.
    """
    config = Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Biblioteca API listening on %s:%s", settings.api_host, settings.api_port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
