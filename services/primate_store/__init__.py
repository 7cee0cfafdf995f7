"""
Primate Store

Data-access service for IUCN Red List primate data with:
- Shared psycopg3 async connection pool
- Parameterized query execution with timing logs
- Table-specific INSERT ... ON CONFLICT upsert helpers
- Pydantic settings for configuration
- Structured JSON logging with structlog
- CLI interface
"""

__version__ = "0.1.0"
