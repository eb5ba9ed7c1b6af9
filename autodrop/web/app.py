"""
Web Application Entry Point
============================

FastAPI application exposing the AutoDrop engine: organize dropped items,
browse the history and undo operations.

Author: AutoDrop Project
License: MIT
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.config_loader import ConfigLoader
from ..config.schema import Config, LogLevel
from ..core.orchestrator import AutoDropOrchestrator
from ..utils.logger import get_logger, setup_logging
from .routes import api_router, set_orchestrator

logger = get_logger(__name__)

# Global orchestrator instance
orchestrator: Optional[AutoDropOrchestrator] = None


def configure_logging(config: Config):
    """Apply the logging section of the configuration."""
    setup_logging(
        log_level=LogLevel(config.app.log_level).value,
        log_to_file=config.app.log_to_file,
        log_file_path=str(config.log_file_path),
        log_rotation_size=config.app.log_rotation_size,
        log_retention_count=config.app.log_retention_count,
        json_format=config.app.log_json
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the orchestrator on startup and stop it on shutdown."""
    global orchestrator

    try:
        config = ConfigLoader().load()
        configure_logging(config)

        logger.info("AutoDrop web application starting...")

        orchestrator = AutoDropOrchestrator(config)
        await orchestrator.initialize()
        set_orchestrator(orchestrator)

        logger.info("AutoDrop initialized successfully")

    except Exception as e:
        logger.error(f"Error during startup: {e}", exc_info=True)
        raise

    yield

    logger.info("AutoDrop web application shutting down...")
    if orchestrator:
        orchestrator.close()
    set_orchestrator(None)
    orchestrator = None
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="AutoDrop",
    description="Duplicate-aware batch file organizer with undo",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api", tags=["API"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "autodrop"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "autodrop.web.app:app",
        host="127.0.0.1",
        port=8080,
        log_level="info"
    )
