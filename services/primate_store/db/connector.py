"""
PostgreSQL database connector with upsert functionality.

This module owns the shared psycopg3 connection pool, executes parameterized
statements written with positional ``$1..$N`` placeholders, and builds upsert
statements using PostgreSQL's INSERT ... ON CONFLICT syntax.
"""

import re
import time
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from ..log_config import format_params, get_logger, log_query, module_label
from ..schema import get_table
from ..settings import Settings, settings

logger = get_logger(__name__, label=module_label(__file__))

PLACEHOLDER_RE = re.compile(r"\$(\d+)")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class QueryResult(SequenceABC):
    """
    Outcome of a single statement.

    Behaves as a read-only sequence of row mappings. A failed statement is an
    empty sequence with ``ok`` set to False and the exception kept in ``error``,
    so callers can tell a failure apart from an empty success.

    Equality is field-wise, so compare ``result.rows`` (or ``list(result)``)
    against a plain list; ``QueryResult() == []`` is False.
    """

    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    duration_ms: float = 0.0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        """Check if the statement executed without errors."""
        return self.error is None

    def __getitem__(self, index):
        return self.rows[index]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)


def _on_reconnect_failed(pool: AsyncConnectionPool) -> None:
    logger.error(
        "DATABASE ERROR! Pool failed to reconnect",
        pool=pool.name,
    )


def create_pool(
    conninfo: str,
    min_size: int = 1,
    max_size: int = 5,
    **kwargs
) -> AsyncConnectionPool:
    """
    Create (but do not open) the shared connection pool.

    Connections are handed out in autocommit mode and return rows as dicts.

    Args:
        conninfo: libpq connection string or URL
        min_size: Minimum number of connections kept open
        max_size: Maximum number of connections
        **kwargs: Additional arguments passed to AsyncConnectionPool()

    Returns:
        Closed AsyncConnectionPool instance
    """
    default_kwargs = {
        "kwargs": {"autocommit": True, "row_factory": dict_row},
        "reconnect_failed": _on_reconnect_failed,
        "name": "primate_store",
    }
    default_kwargs.update(kwargs)

    return AsyncConnectionPool(
        conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,
        **default_kwargs
    )


def to_pyformat(
    sql: str,
    params: Optional[Sequence[Any]] = None
) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Rewrite ``$n`` placeholders into psycopg named placeholders.

    Args:
        sql: Statement using ``$1..$N`` positional placeholders
        params: Values for the placeholders, in order

    Returns:
        Tuple of (statement, params mapping). The mapping is None when the
        statement takes no parameters.

    Raises:
        ValueError: If placeholders and parameters do not line up

    Example:
        >>> to_pyformat("SELECT * FROM species WHERE name = $1", ["Gorilla gorilla"])
        ('SELECT * FROM species WHERE name = %(p1)s', {'p1': 'Gorilla gorilla'})
    """
    values = list(params) if params is not None else []

    if not values:
        if PLACEHOLDER_RE.search(sql):
            raise ValueError("Statement has placeholders but no parameters were given")
        return sql, None

    referenced = set()

    def _replace(match: "re.Match[str]") -> str:
        index = int(match.group(1))
        if not 1 <= index <= len(values):
            raise ValueError(
                f"Placeholder ${index} has no matching parameter ({len(values)} given)"
            )
        referenced.add(index)
        return f"%(p{index})s"

    # Literal percent signs must be doubled once parameters are passed
    statement = PLACEHOLDER_RE.sub(_replace, sql.replace("%", "%%"))

    if len(referenced) != len(values):
        raise ValueError(
            f"{len(values)} parameters given but statement references {len(referenced)}"
        )

    return statement, {f"p{i}": value for i, value in enumerate(values, start=1)}


class Database:
    """
    Query executor over a shared connection pool.

    The pool is injected and lives as long as this object is open. Every call
    to query() writes at least one log entry and never raises for execution
    errors; those are reported through the returned QueryResult.

    Example:
        >>> async with Database.from_settings() as db:
        ...     result = await db.query("SELECT * FROM species")
        ...     if result.ok:
        ...         print(len(result))
    """

    def __init__(self, pool: AsyncConnectionPool, connect_timeout: float = 30.0):
        self.pool = pool
        self.connect_timeout = connect_timeout

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "Database":
        """Build a Database with a pool configured from settings."""
        config = config or settings()
        pool = create_pool(
            config.conninfo(),
            min_size=config.db_pool_min_size,
            max_size=config.db_pool_max_size,
        )
        return cls(pool, connect_timeout=config.db_connect_timeout)

    async def __aenter__(self) -> "Database":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self) -> None:
        """
        Open the pool and wait until its minimum connections are ready.

        Raises:
            psycopg_pool.PoolTimeout: If the database cannot be reached in time
        """
        try:
            await self.pool.open(wait=True, timeout=self.connect_timeout)
        except Exception as e:
            logger.error(
                "DATABASE ERROR! Pool failed to open",
                pool=self.pool.name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=e,
            )
            raise

        logger.info(
            "Database pool opened",
            pool=self.pool.name,
            min_size=self.pool.min_size,
            max_size=self.pool.max_size,
        )

    async def close(self) -> None:
        """Close the pool, releasing all connections."""
        await self.pool.close()
        logger.info("Database pool closed", pool=self.pool.name)

    async def query(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None
    ) -> QueryResult:
        """
        Execute a statement on a pooled connection.

        Args:
            sql: SQL text with ``$1..$N`` placeholders
            params: Ordered placeholder values (scalars or None)

        Returns:
            QueryResult with the returned rows, or a failed QueryResult
            carrying the error
        """
        start_time = time.perf_counter()

        try:
            statement, bound = to_pyformat(sql, params)

            async with self.pool.connection() as conn:
                cursor = await conn.execute(statement, bound)
                rows = await cursor.fetchall() if cursor.description is not None else []
                row_count = cursor.rowcount

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "DATABASE ERROR! Query failed",
                sql=sql,
                params=format_params(params),
                duration_ms=round(duration_ms, 2),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=e,
            )
            return QueryResult(duration_ms=duration_ms, error=e)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_query(logger, sql, params, duration_ms=duration_ms, row_count=row_count)

        return QueryResult(rows=list(rows), row_count=row_count, duration_ms=duration_ms)


def _check_identifiers(table_name: str, columns: Iterable[str]) -> None:
    """Reject identifiers that are malformed or not part of the known schema."""
    for identifier in (table_name, *columns):
        if not isinstance(identifier, str) or not IDENTIFIER_RE.match(identifier):
            raise ValueError(f"Invalid SQL identifier: {identifier!r}")

    table = get_table(table_name)
    unknown = [col for col in columns if col not in table.c]
    if unknown:
        raise ValueError(f"Unknown columns for table {table_name!r}: {unknown}")


def build_upsert(
    table_name: str,
    columns: Sequence[str],
    conflict_columns: Sequence[str]
) -> str:
    """
    Build an INSERT ... ON CONFLICT statement with positional placeholders.

    Args:
        table_name: Target table, must be defined in the schema
        columns: Ordered, unique column names; placeholder ``$i`` binds to
            the i-th column
        conflict_columns: Conflict target, a non-empty subset of columns

    Returns:
        SQL text ending in ``RETURNING *``

    Raises:
        ValueError: If columns or conflict_columns are empty, duplicated,
            malformed or unknown to the schema

    Examples:
        >>> build_upsert("species", ["name", "family"], ["name"])
        'INSERT INTO species(name,family) VALUES($1,$2) ON CONFLICT (name) DO UPDATE SET family=EXCLUDED.family RETURNING *'

    Notes:
        - Every column outside the conflict target is overwritten from EXCLUDED
        - When every column is part of the conflict target there is nothing to
          update, and the statement becomes ON CONFLICT ... DO NOTHING
    """
    columns = list(columns)
    conflict_columns = list(conflict_columns)

    if not columns:
        raise ValueError("columns cannot be empty")

    if not conflict_columns:
        raise ValueError("conflict_columns cannot be empty")

    if len(set(columns)) != len(columns):
        raise ValueError(f"columns must be unique: {columns}")

    if len(set(conflict_columns)) != len(conflict_columns):
        raise ValueError(f"conflict_columns must be unique: {conflict_columns}")

    _check_identifiers(table_name, columns)

    missing = [col for col in conflict_columns if col not in columns]
    if missing:
        raise ValueError(f"conflict_columns not present in columns: {missing}")

    placeholders = ",".join(f"${i}" for i in range(1, len(columns) + 1))
    statement = (
        f"INSERT INTO {table_name}({','.join(columns)}) VALUES({placeholders}) "
        f"ON CONFLICT ({','.join(conflict_columns)})"
    )

    update_cols = [col for col in columns if col not in conflict_columns]

    if not update_cols:
        logger.warning(
            "No columns to update, equivalent to DO NOTHING",
            table=table_name,
            conflict_columns=conflict_columns,
        )
        return f"{statement} DO NOTHING RETURNING *"

    assignments = ",".join(f"{col}=EXCLUDED.{col}" for col in update_cols)
    return f"{statement} DO UPDATE SET {assignments} RETURNING *"


async def upsert(
    db: Database,
    table_name: str,
    columns: Sequence[str],
    values: Sequence[Any],
    conflict_columns: Sequence[str]
) -> QueryResult:
    """
    Insert a row, or update it when the conflict target already exists.

    Args:
        db: Open Database
        table_name: Target table
        columns: Ordered column names
        values: Row values aligned positionally with columns
        conflict_columns: Conflict target

    Returns:
        QueryResult with the inserted/updated rows (empty and not ok on failure)

    Raises:
        ValueError: If values and columns differ in length, or the statement
            cannot be built
    """
    columns = list(columns)
    values = list(values)

    if len(values) != len(columns):
        raise ValueError(
            f"values ({len(values)}) and columns ({len(columns)}) must have the same length"
        )

    statement = build_upsert(table_name, columns, conflict_columns)
    return await db.query(statement, values)
