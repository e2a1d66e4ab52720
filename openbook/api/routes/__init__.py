"""Route package registration."""

from __future__ import annotations

from fastapi import FastAPI

from openbook.api.routes import auth, books, genres, health, teacher, users


def register_routes(app: FastAPI) -> None:
    """
    Register all API routers on the application instance.

    Args:
        app: FastAPI application.

    Returns:
        None.
    """
    routers = (
        health.router,
        books.router,
        genres.router,
        auth.router,
        users.router,
        teacher.router,
    )
    for router in routers:
        app.include_router(router)
