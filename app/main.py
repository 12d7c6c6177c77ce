from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.common.logger import get_logger

# Persistence
from app.persistence.bootstrap import init_db
from app.persistence.session import init_engine, dispose_engine

# Routers
from app.auth_routes import router as auth_router
from app.me_routes import router as me_router
from app.draft_routes import router as draft_router

logger = get_logger(__name__)


# ------------------------------------------------------------
# App Init
# ------------------------------------------------------------
def create_app(database_url: Optional[str] = None) -> FastAPI:
    """
    SchoolFanta API.

    The connection pool lives for the lifetime of the app: opened and
    schema-checked on startup, disposed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_engine(database_url)
        init_db()
        logger.info("SchoolFanta API started")
        yield
        dispose_engine()

    app = FastAPI(title="SchoolFanta", lifespan=lifespan)

    app.include_router(auth_router)
    app.include_router(me_router)
    app.include_router(draft_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


# uvicorn app.main:app
app = create_app()
