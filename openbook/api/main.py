"""CLI entrypoint for API service."""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from openbook.api.app import build_app
from openbook.api.routes import register_routes
from openbook.shared.config import AppSettings
from openbook.shared.logs import configure_logging


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """
    Build the application and register every route.

    Args:
        settings: Application settings, read from the environment when omitted.

    Returns:
        Application ready to serve.
    """
    application = build_app(settings)
    register_routes(application)
    return application


app = create_app()


def main() -> None:
    """
    Run the FastAPI application with Uvicorn.

    Returns:
        None.
    """
    configure_logging()
    settings: AppSettings = app.state.settings
    uvicorn.run(
        "openbook.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    main()
