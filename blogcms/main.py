import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from blogcms import __version__
from blogcms.core.config import settings
from blogcms.core.errors import BlogError
from blogcms.db.session import Database, database_from_settings
from blogcms.services.storage import ImageStorage, storage_from_settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None, storage: Optional[ImageStorage] = None) -> FastAPI:
    database = database or database_from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # a database opened by the caller stays open after shutdown
        owns_database = not database.is_open
        database.open()
        database.create_db_and_tables()
        yield
        if owns_database:
            database.close()

    app = FastAPI(
        title=f"{settings.PROJECT_NAME} API",
        version=__version__,
        lifespan=lifespan,
        description="Blog reader and admin dashboard API",
    )
    app.state.database = database
    app.state.storage = storage or storage_from_settings()

    @app.exception_handler(BlogError)
    async def blog_error_handler(request: Request, exc: BlogError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.get("/health")
    def health():
        return {"ok": True}

    from blogcms.routers import admin, auth, public, upload

    admin_prefix = f"/{settings.ADMIN_PATH.strip('/')}"
    app.include_router(public.router, tags=["blogs"])
    app.include_router(auth.router, prefix=admin_prefix, tags=["auth"])
    app.include_router(admin.router, prefix=admin_prefix, tags=["admin"])
    app.include_router(upload.router, prefix=f"{admin_prefix}/upload", tags=["upload"])

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        max_age=settings.SESSION_MAX_AGE,
        https_only=settings.SESSION_HTTPS_ONLY,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
