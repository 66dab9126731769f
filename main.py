"""
Homeschool Planner - Main Application Entry Point

Adaptive learning-session scheduling for homeschool families.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from homeschool_planner.core.config import get_settings
from homeschool_planner.core.logger import setup_logger

logger = setup_logger("homeschool_planner.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Homeschool Planner in {settings.ENVIRONMENT} mode...")

    if settings.ENVIRONMENT == "local":
        from homeschool_planner.infrastructure.local.database import init_db

        await init_db()

    yield

    # Shutdown
    logger.info("Shutting down Homeschool Planner...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Homeschool Planner",
        description="Adaptive learning-session scheduling engine",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from homeschool_planner.api import calendar, children, sessions, topics

    app.include_router(children.router, prefix="/api/children", tags=["children"])
    app.include_router(sessions.router, prefix="/api/children/{child_id}/sessions", tags=["sessions"])
    app.include_router(calendar.router, prefix="/api/children/{child_id}", tags=["calendar"])
    app.include_router(topics.router, prefix="/api/topics", tags=["topics"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
