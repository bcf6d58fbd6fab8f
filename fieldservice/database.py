import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
LOG_SLOW_QUERIES = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_SECONDS = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def normalize_database_url(url: str) -> str:
    """Hosted Postgres URLs use postgres:// or postgresql://; route both through psycopg 3"""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


SQLALCHEMY_URL = normalize_database_url(DATABASE_URL)
IS_SQLITE = SQLALCHEMY_URL.startswith("sqlite")


def _engine_options() -> dict:
    if IS_SQLITE:
        # One shared connection keeps an in-memory database alive between sessions
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "pool_pre_ping": True,
        "pool_recycle": POOL_RECYCLE,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
    }


try:
    engine = create_engine(SQLALCHEMY_URL, echo=False, **_engine_options())
    if IS_SQLITE:
        logger.info("✅ SQLite engine ready")
    else:
        logger.info(
            f"✅ Database engine ready (pool size={POOL_SIZE}, overflow={MAX_OVERFLOW}, timeout={POOL_TIMEOUT}s)"
        )
except Exception as e:
    logger.error(f"❌ Could not create database engine: {e}")
    raise


if LOG_SLOW_QUERIES:

    @event.listens_for(engine, "before_cursor_execute")
    def _start_timer(conn, _cursor, _statement, _parameters, _context, _executemany):
        conn.info.setdefault("query_started", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def _log_slow_query(conn, _cursor, statement, _parameters, _context, _executemany):
        elapsed = time.time() - conn.info["query_started"].pop()
        if elapsed > SLOW_QUERY_SECONDS:
            logger.warning(f"🐌 Slow query ({elapsed:.2f}s): {statement[:200]}...")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a request-scoped session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
