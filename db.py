import logging
from contextlib import contextmanager

import psycopg2
import psycopg2.extras
from psycopg2.pool import PoolError, ThreadedConnectionPool

from services.errors import StorageError
from settings import settings

logger = logging.getLogger("vendorpay.db")

_pool: ThreadedConnectionPool | None = None


def init_pool():
    """
    Initialize the PostgreSQL connection pool.
    Called once at app startup.
    """
    psycopg2.extras.register_uuid()
    global _pool
    if _pool is None:
        _pool = ThreadedConnectionPool(
            minconn=settings.DB_POOL_MIN,
            maxconn=settings.DB_POOL_MAX,
            dsn=settings.DATABASE_URL,
            connect_timeout=settings.DB_CONNECT_TIMEOUT_S,
        )
        logger.info("db pool opened min=%s max=%s", settings.DB_POOL_MIN, settings.DB_POOL_MAX)


def close_pool():
    """
    Gracefully close all pooled connections.
    """
    global _pool
    if _pool:
        _pool.closeall()
        _pool = None
        logger.info("db pool closed")


@contextmanager
def get_conn():
    """
    Provides a transactional DB connection.
    Auto-commits on success, rolls back on error.
    """
    if _pool is None:
        init_pool()

    # ThreadedConnectionPool does not block when empty; keep DB_POOL_MAX at or
    # above the request threadpool size
    try:
        conn = _pool.getconn()
    except PoolError as exc:
        logger.error("db pool exhausted max=%s", settings.DB_POOL_MAX)
        raise StorageError("Connection pool exhausted") from exc

    try:
        # Safety: never allow long-running queries
        with conn.cursor() as cur:
            cur.execute("SET statement_timeout = %s;", (f"{settings.DB_STATEMENT_TIMEOUT_MS}ms",))
            cur.execute("SET idle_in_transaction_session_timeout = %s;", (f"{settings.DB_STATEMENT_TIMEOUT_MS}ms",))
            cur.execute("SET application_name = %s;", (settings.APP_NAME,))

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        _pool.putconn(conn)
