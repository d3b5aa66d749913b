"""
retention/service.py

HTTP front for the advising engine.

Run with ``python -m retention.service`` or ``uvicorn retention.service:app``.
The tables are read and parsed once in the lifespan hook; every request then
works against the same in-memory repository.
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from retention import config
from retention.data_dictionary import TABLE_FILES
from retention.engine import AdvisingEngine
from retention.errors import RetentionError
from retention.routes import router as advising_router
from retention.tables import TableRepository

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def build_engine(data_dir=None) -> AdvisingEngine:
    repository = TableRepository.from_directory(data_dir or config.DATA_DIR)
    repository.preload()
    return AdvisingEngine(repository, term_id=config.DEFAULT_TERM_ID)


def create_app(engine: Optional[AdvisingEngine] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Pass ``engine`` to serve an already-built engine (tests do this);
    otherwise the tables are loaded from config.DATA_DIR at start-up.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.configure_logging()
        if engine is not None:
            app.state.engine = engine
        else:
            logger.info(f"Loading tables from {config.DATA_DIR}")
            # A missing or malformed table is fatal: refuse to start.
            app.state.engine = build_engine()
        logger.info("Advising service ready")
        yield
        logger.info("Advising service shut down")

    app = FastAPI(
        title="Student Retention Advising API",
        description="Risk-scored rosters and per-student dashboards for advisors",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(advising_router, prefix="/api", tags=["Advising"])

    @app.get("/")
    async def root():
        return {"message": "Student Retention Advising API", "status": "running", "version": VERSION}

    @app.get("/health")
    async def health(request: Request):
        repository = request.app.state.engine.repository
        loaded = repository.loaded_tables()
        return {
            "api": "healthy",
            "tables": {name: name in loaded for name in TABLE_FILES},
            "overall": "healthy" if len(loaded) == len(TABLE_FILES) else "degraded",
        }

    @app.exception_handler(RetentionError)
    async def data_error_handler(request: Request, exc: RetentionError):
        # Table problems are configuration errors, not bad requests.
        logger.error(f"Data error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Data unavailable", "debug": str(exc) if config.API_DEBUG else None},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning(f"Bad request on {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred",
                "debug": str(exc) if config.API_DEBUG else None,
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("retention.service:app", host=config.API_HOST, port=config.API_PORT)
