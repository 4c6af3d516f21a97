# reportable/core/router.py
"""Route registration for the FastAPI application."""

from fastapi import FastAPI

from reportable.exports.router import router as export_router


def register_routes(app: FastAPI) -> None:
    """
    Registers all the routes for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    app.include_router(export_router, prefix="/api")
