"""Entry point for the IPBan Web UI API.

Starts the FastAPI application with Uvicorn.  Host, port and the
paths of the IPBan database and configuration document are read from
environment variables (see ``ipban_webui.app.core.config``).

Usage:
    python run.py
"""
import logging

from uvicorn import Config, Server

from ipban_webui.app.core.config import settings
from ipban_webui.app.main import app


def main() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info(
        "Serving database %s and config %s", settings.database_path, settings.config_path
    )
    server.run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
