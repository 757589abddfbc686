"""
Database module - PostgreSQL and MongoDB connections.
"""
from placement_portal.db.postgres import fetch_all, execute, test_postgres_connection
from placement_portal.db.mongodb import get_mongo_db, test_mongo_connection

__all__ = [
    "fetch_all",
    "execute",
    "test_postgres_connection",
    "get_mongo_db",
    "test_mongo_connection"
]
