from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.common.config import DATABASE_URL
from app.common.logger import get_logger

logger = get_logger(__name__)

# Bound by init_engine() when the application starts.
SessionLocal = sessionmaker(
    autoflush=False,
    autocommit=False,
)

_engine: Optional[Engine] = None


def init_engine(url: Optional[str] = None) -> Engine:
    """
    Open the process-wide connection pool and bind SessionLocal to it.

    An in-memory SQLite URL gets a single shared connection so every
    session sees the same database.
    """
    global _engine

    if _engine is not None:
        return _engine

    url = url or DATABASE_URL
    if url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            url,
            echo=False,
            pool_pre_ping=True,
        )

    SessionLocal.configure(bind=engine)
    _engine = engine
    logger.info(f"[db] engine ready dialect={engine.dialect.name}")
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database engine not initialised; call init_engine() first")
    return _engine


def dispose_engine() -> None:
    global _engine

    if _engine is None:
        return

    _engine.dispose()
    SessionLocal.configure(bind=None)
    _engine = None
    logger.info("[db] engine disposed")


def get_db():
    """
    FastAPI dependency for database sessions.

    Yields a database session and ensures it's closed after use.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
