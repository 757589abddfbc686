#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify all database connections are working.
Usage: python scripts/check_connections.py
"""
from placement_portal.core.config import get_settings
from placement_portal.db.postgres import test_postgres_connection
from placement_portal.db.mongodb import test_mongo_connection, init_mongo_indexes


def main():
    settings = get_settings()
    print("=" * 50)
    print("PLACEMENT PORTAL - CONNECTION CHECK")
    print("=" * 50)

    # PostgreSQL (job/student directories)
    print("\n[1] Checking PostgreSQL...")
    print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    if test_postgres_connection():
        print("    ✅ PostgreSQL: CONNECTED")
    else:
        print("    ❌ PostgreSQL: FAILED")

    # MongoDB (applications, notifications)
    print("\n[2] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    ✅ MongoDB: CONNECTED")
        init_mongo_indexes()
        print("    ✅ MongoDB: indexes ensured")
    else:
        print("    ❌ MongoDB: FAILED")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
