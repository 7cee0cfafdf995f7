"""
Database connectivity module for the primate store.

This module provides PostgreSQL connectivity over a psycopg3 async
connection pool, with query logging and upsert capabilities.
"""

from .connector import Database, QueryResult, build_upsert, create_pool, upsert

__all__ = ["Database", "QueryResult", "build_upsert", "create_pool", "upsert"]
