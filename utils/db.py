"""
PostgreSQL access for project reports.

Only services/project_service.py imports this module; the scoring core
never sees a connection. Everything here is read-only twice over: every
pooled session runs with default_transaction_read_only, and each query
string is checked before a connection is borrowed.

    from utils.db import fetch_dataframe

    stations = fetch_dataframe(
        "SELECT id, name FROM stations WHERE project_id = %s",
        params=(project_id,)
    )
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import psycopg2
from psycopg2 import pool

from utils.config import Settings, load_settings

logger = logging.getLogger(__name__)


# ============================================================================
# POOL
# ============================================================================

class ReadOnlyPool:
    """A lazily created ThreadedConnectionPool whose sessions cannot write."""

    def __init__(self):
        self._pool = None

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    def open(self, db_settings: Dict[str, Any], min_conn: int, max_conn: int):
        if self._pool is not None:
            logger.warning("Connection pool already open, keeping it")
            return

        self._pool = pool.ThreadedConnectionPool(
            minconn=min_conn,
            maxconn=max_conn,
            host=db_settings['host'],
            port=db_settings['port'],
            database=db_settings['database'],
            user=db_settings['user'],
            password=db_settings['password'],
            options='-c default_transaction_read_only=on'
        )
        logger.info(
            f"Opened read-only pool ({min_conn}..{max_conn}) to "
            f"{db_settings['host']}:{db_settings['port']}/{db_settings['database']}"
        )

    def get_connection(self):
        if self._pool is None:
            raise RuntimeError("No database pool. Call startup_db() first.")
        conn = self._pool.getconn()
        conn.set_session(readonly=True, autocommit=True)
        return conn

    def return_connection(self, conn):
        if self._pool is not None and conn is not None:
            self._pool.putconn(conn)

    def close(self):
        if self._pool is None:
            return
        self._pool.closeall()
        self._pool = None
        logger.info("Database pool closed")


_db_pool = ReadOnlyPool()


@contextmanager
def get_connection():
    """Borrow a pooled connection; it goes back to the pool on exit."""
    conn = _db_pool.get_connection()
    try:
        yield conn
    finally:
        _db_pool.return_connection(conn)


# ============================================================================
# READ-ONLY GUARD
# ============================================================================

FORBIDDEN_KEYWORDS = (
    'INSERT', 'UPDATE', 'DELETE', 'DROP', 'CREATE', 'ALTER',
    'TRUNCATE', 'REPLACE', 'MERGE', 'GRANT', 'REVOKE',
)

# whole words only, so created_at / updated_at columns pass
_WRITE_KEYWORD = re.compile(r'\b(' + '|'.join(FORBIDDEN_KEYWORDS) + r')\b')
_READ_PREFIX = re.compile(r'^\(?\s*(SELECT|WITH)\b')


def validate_query_is_readonly(query: str) -> bool:
    """
    Raise ValueError unless the query is a single read.

    >>> validate_query_is_readonly("SELECT id FROM players")
    True
    """
    normalized = query.strip().upper()

    write = _WRITE_KEYWORD.search(normalized)
    if write:
        raise ValueError(f"Refusing write statement '{write.group(1)}': database access is read-only")

    if not _READ_PREFIX.match(normalized):
        raise ValueError(f"Invalid query: Must start with SELECT or WITH, got '{query.strip()[:40]}'")

    return True


# ============================================================================
# QUERIES
# ============================================================================

def fetch_dataframe(
    query: str,
    params: Optional[Tuple] = None,
    parse_dates: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Run a guarded read query into a DataFrame.

    Raises:
        ValueError: If the query could write
        RuntimeError: If startup_db() has not run
        psycopg2.Error: If PostgreSQL rejects the query
    """
    validate_query_is_readonly(query)

    with get_connection() as conn:
        try:
            df = pd.read_sql_query(query, conn, params=params, parse_dates=parse_dates)
        except psycopg2.Error as e:
            logger.error(f"Query failed ({e}): {' '.join(query.split())} params={params}")
            raise

    logger.debug(f"{len(df)} rows from: {' '.join(query.split())[:80]}")
    return df


def test_connection() -> bool:
    """True when SELECT 1 round-trips; failures are logged, not raised."""
    try:
        with get_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                ok = cursor.fetchone() == (1,)
    except (psycopg2.Error, RuntimeError) as e:
        logger.error(f"Database connection check failed: {e}")
        return False

    if not ok:
        logger.error("Database connection check returned an unexpected row")
    return ok


# ============================================================================
# LIFECYCLE
# ============================================================================

def startup_db(settings: Optional[Settings] = None):
    """
    Open the pool described by settings.database; a no-op when already open.

    Pool size is pool_size connections plus up to max_overflow more.

    Raises:
        RuntimeError: If the connection check fails (the pool is closed again)
    """
    if _db_pool.is_initialized:
        return

    db_settings = (settings or load_settings()).database
    min_conn = int(db_settings.get('pool_size', 2))
    max_conn = min_conn + int(db_settings.get('max_overflow', 5))

    _db_pool.open(db_settings, min_conn, max_conn)

    if not test_connection():
        shutdown_db()
        raise RuntimeError("Database initialization failed")


def shutdown_db():
    """Close every pooled connection."""
    _db_pool.close()
