"""
PostgreSQL Connection Utility

PostgreSQL owns the portal's `jobs` and `students` tables. The workflow
only reads them and bumps one counter, so this module hands out plain
connections for raw `text()` statements instead of ORM sessions.
"""
import logging
from typing import List

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from placement_portal.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Connects lazily; pre-ping drops connections the server has closed
engine = create_engine(settings.postgres_url, pool_pre_ping=True)


def fetch_all(sql: str, params: dict = None) -> List[dict]:
    """Run a SELECT and return the rows as dicts."""
    with engine.connect() as conn:
        result = conn.execute(text(sql), params or {})
        return [dict(row) for row in result.mappings()]


def execute(sql: str, params: dict = None) -> int:
    """Run a write in its own transaction. Returns the affected row count."""
    with engine.begin() as conn:
        return conn.execute(text(sql), params or {}).rowcount


def test_postgres_connection() -> bool:
    """True if PostgreSQL answers a trivial query."""
    try:
        with engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError as e:
        logger.warning("PostgreSQL connection failed: %s", e)
        return False
