"""
markshare - FastAPI Application

Collaborative markdown document sharing with role-based access control.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.core.config import settings
from src.core.database import MongoConnection
from src.core.store import EntityStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown events."""
    mongo = MongoConnection()
    await mongo.connect()
    await EntityStore(mongo.db).ensure_indexes()
    app.state.mongo = mongo

    yield

    mongo.close()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Application factory for creating FastAPI instance."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Collaborative markdown document sharing API",
        version="0.1.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        swagger_ui_parameters={"persistAuthorization": True},
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "healthy", "app": settings.APP_NAME}

    # Register module routers
    from src.modules.auth.router import router as auth_router
    from src.modules.documents.comments_router import router as comments_router
    from src.modules.documents.router import router as documents_router

    app.include_router(auth_router)
    app.include_router(documents_router)
    app.include_router(comments_router)

    return app


# Create application instance
app = create_app()
