"""FastAPI application entry point for the export API."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reportable.core.database import create_all_tables
from reportable.core.exceptions import ReportableError
from reportable.core.router import register_routes

logger = logging.getLogger(__name__)


async def reportable_exception_handler(request: Request, exc: ReportableError) -> JSONResponse:
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": type(exc).__name__})


def create_app(init_db: bool = True) -> FastAPI:
    app = FastAPI(docs_url="/api/docs", redoc_url="/api/redoc", openapi_url="/api/openapi.json")
    if init_db:
        create_all_tables()

    app.add_exception_handler(ReportableError, reportable_exception_handler)
    register_routes(app)
    return app
