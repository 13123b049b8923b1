"""FastAPI application for the choreography studio."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Config, config as default_config
from ..errors import StudioError, from_pydantic
from ..studio import StudioRegistry
from .routers import analysis, characters, health, jobs, learning, storyboard

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Choreo Studio API...")
    yield
    logger.info("Shutting down Choreo Studio API...")


def create_app(
    settings: Optional[Config] = None,
    registry: Optional[StudioRegistry] = None,
) -> FastAPI:
    """Build the API app.

    Args:
        settings: Configuration. Defaults to the global config.
        registry: Session registry. A new one is created if not provided.
    """
    settings = settings or default_config
    app = FastAPI(
        title="Choreo Studio API",
        description="Action-sequence storyboarding with preference learning",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry or StudioRegistry(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StudioError)
    async def studio_error_handler(request: Request, exc: StudioError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path}: {exc.kind}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = from_pydantic(exc, "Invalid request body")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Internal server error"}
        )

    app.include_router(health.router, tags=["Health"])
    app.include_router(storyboard.router, prefix="/api/storyboard", tags=["Storyboard"])
    app.include_router(learning.router, prefix="/api/learning", tags=["Learning"])
    app.include_router(jobs.router, prefix="/api", tags=["Jobs"])
    app.include_router(characters.router, prefix="/api/characters", tags=["Characters"])
    app.include_router(analysis.router, prefix="/api/nlp", tags=["Analysis"])

    @app.get("/")
    def root():
        """Root endpoint."""
        return {"name": "Choreo Studio API", "version": __version__, "status": "running"}

    return app


app = create_app()


def run(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    """Run the server."""
    uvicorn.run(
        "choreo.api.main:app",
        host=host or default_config.host,
        port=port or default_config.port,
        reload=reload,
        log_level="info",
    )
