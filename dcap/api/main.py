"""
Main FastAPI application for the dcap API.

Startup (lifespan) loads every type definition, seeds catalogs for types
that have none, and wires the document service onto ``app.state``. A
ConfigError while loading types aborts startup.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from dcap.api.error_handlers import register_error_handlers
from dcap.api.middleware import LoggingMiddleware, RequestIDMiddleware
from dcap.api.routers import documents_router, health_router, types_router
from dcap.core.config import Settings, get_settings
from dcap.core.database import create_engine, create_session_factory, init_database
from dcap.core.logging import configure_logging
from dcap.crypto.cipher import Cipher, X25519Cipher
from dcap.domain.document_service import DocumentService
from dcap.domain.index_manager import TypeIndexManager
from dcap.domain.registry import TypeRegistry
from dcap.storage.content_store import ContentStore, FileContentStore
from dcap.users.directory import SqlUserDirectory, UserDirectory
from dcap.validation.schema_validator import SchemaValidator


logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    content_store: Optional[ContentStore] = None,
    user_directory: Optional[UserDirectory] = None,
    cipher: Optional[Cipher] = None,
) -> FastAPI:
    """Build the application. Collaborators default to the settings-driven backends."""
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, format_type=settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} API")

        engine = None
        users = user_directory
        if users is None:
            engine = create_engine(settings.database_url)
            await init_database(engine)
            users = SqlUserDirectory(create_session_factory(engine))

        store = content_store if content_store is not None else FileContentStore(settings.store_dir)
        validator = SchemaValidator()

        registry = TypeRegistry(
            settings.types_dir,
            store,
            validator=validator,
            retry_attempts=settings.pointer_retry_attempts,
            retry_delay=settings.pointer_retry_delay,
        )
        registry.load_types()
        seeded = await registry.ensure_catalogs()
        logger.info(f"Loaded {registry.count()} types ({len(seeded)} catalogs seeded)")

        app.state.settings = settings
        app.state.registry = registry
        app.state.user_directory = users
        app.state.document_service = DocumentService(
            registry=registry,
            index_manager=TypeIndexManager(registry, store),
            content_store=store,
            validator=validator,
            cipher=cipher if cipher is not None else X25519Cipher(),
            users=users,
        )

        logger.info(f"{settings.app_name} API started successfully")
        try:
            yield
        finally:
            logger.info(f"Shutting down {settings.app_name} API...")
            if engine is not None:
                await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Typed, content-addressed document catalogs",
        version=settings.app_version,
        lifespan=lifespan,
    )

    # Order matters - last added = first executed
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(types_router)
    app.include_router(documents_router)

    @app.get("/")
    async def root():
        """Root endpoint - API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "operational",
            "docs": "/docs",
            "health": "/health",
        }

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(create_app(_settings), host=_settings.host, port=_settings.port)
