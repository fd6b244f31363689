"""SQLite database client wrapper with collection-level CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import Constants, settings


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """Raised when the store cannot complete an operation."""


class RecordNotFoundError(KeyError):
    """Raised when a record looked up by ID does not exist."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and foreign key fields to strings for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _to_db_value(val: object) -> object:
    """Convert a Python value into something sqlite3 can bind."""
    if isinstance(val, datetime | date):
        return val.isoformat()
    if isinstance(val, dict | list):
        return json.dumps(val)
    return val


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _parse_value(value: str, *, is_like: bool = False) -> str | int | float | bool | None:
    """Parse a string value to the appropriate Python type for SQLite."""
    if is_like:
        escaped = value.replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"

    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit():
        return float(value)

    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False

    return value


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


def _parse_single_comparison(comparison: str) -> tuple[str, str | int | float | None]:
    """Parse a single comparison expression into a SQL condition and parameter."""
    match = re.match(
        r"""(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(['"])([^'"]*)\3""",
        comparison,
    )
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field = match.group(1)
    op = match.group(2)
    raw_value = match.group(4)

    sql_op = _get_sql_operator(op)
    is_like = sql_op == "LIKE"
    value = _parse_value(raw_value, is_like=is_like)

    if is_like:
        return f"{field} LIKE ? ESCAPE '\\'", value
    return f"{field} {sql_op} ?", value


def _parse_or_group(or_group: str) -> tuple[str, list[str | int | float | None]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    inner = or_group[1:-1]  # Remove parentheses
    or_parts = [p.strip() for p in inner.split("||")]
    or_conditions = []
    or_params = []

    for part in or_parts:
        cond, value = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.append(value)

    return f"({' OR '.join(or_conditions)})", or_params


def _split_and_conditions(filter_query: str) -> list[str]:
    """Split filter query by && while preserving parenthesized groups."""
    parts = []
    current = ""
    paren_depth = 0

    for char in filter_query:
        if char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1

        current += char

        if paren_depth == 0 and current.endswith("&&"):
            parts.append(current[:-2].strip())
            current = ""

    if current.strip():
        parts.append(current.strip())

    return parts


def parse_filter(filter_query: str) -> tuple[str, list[str | int | float | None]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list."""
    if not filter_query:
        return "", []

    parts = _split_and_conditions(filter_query)
    conditions = []
    params = []

    for raw_part in parts:
        part = raw_part.strip()

        # Handle parenthesized OR groups
        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
            conditions.append(cond)
            params.extend(cond_params)
        else:
            cond, value = _parse_single_comparison(part)
            conditions.append(cond)
            params.append(value)

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate a sort string like "-added_at,-id" into an ORDER BY clause.

    A leading "-" means descending. Invalid fields fall back to "id ASC".
    """
    clauses = []
    for raw_field in sort.split(","):
        field = raw_field.strip()
        if not field:
            continue
        direction = "DESC" if field.startswith("-") else "ASC"
        name = field.lstrip("+-")
        if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", name):
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
            return "id ASC"
        clauses.append(f"{name} {direction}")
    return ", ".join(clauses) or "id ASC"


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    # Create new connection with async lock to prevent races
    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key not in _db_connections:
        return

    try:
        async with _db_lock:
            conn = _db_connections.pop(cache_key, None)
            if conn is not None:
                await conn.close()
                logger.info(
                    "Closed SQLite connection",
                    extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
                )
    except (aiosqlite.Error, OSError) as e:
        logger.warning(
            "Error closing SQLite connection",
            extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
        )


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from src.core import schema  # noqa: PLC0415 - schema imports this module

    await schema.init_db(db_path=db_path)


def _table_missing(e: Exception) -> bool:
    return isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e)


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        columns = list(data.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_to_db_value(data[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()

        record_id = cursor.lastrowid
        result = await get_record(collection=collection, record_id=str(record_id))

        logger.info("Created record", extra={"collection": collection, "record_id": record_id})
        return result
    except Exception as e:
        if _table_missing(e):
            logger.error("Table not found", extra={"collection": collection})
            msg = f"Table '{collection}' does not exist. Call init_db() first."
            raise DatabaseError(msg) from e
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create record in {collection}: {e}"
        raise DatabaseError(msg) from e


async def create_records(*, collection: str, records: list[dict[str, Any]]) -> int:
    """Insert several records in a single transaction.

    Either every record is inserted or none is. All records must share the
    same set of columns.

    Returns:
        Number of inserted records
    """
    if not records:
        return 0

    columns = list(records[0].keys())
    if any(list(record.keys()) != columns for record in records):
        msg = "All records in a batch insert must have the same columns"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        rows = [[_to_db_value(record[key]) for key in columns] for record in records]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        try:
            await conn.executemany(query, rows)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

        logger.info("Created records", extra={"collection": collection, "count": len(rows)})
        return len(rows)
    except Exception as e:
        logger.error("create_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create records in {collection}: {e}"
        raise DatabaseError(msg) from e


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        row = await cursor.fetchone()

        if row is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        columns = [description[0] for description in cursor.description]
        record = dict(zip(columns, row, strict=True))

        logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
        return _convert_record_ids(record)
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to get record from {collection}: {e}"
        raise DatabaseError(msg) from e


async def update_records(*, collection: str, filter_query: str, data: dict[str, Any]) -> int:
    """Update every record matching the filter.

    Returns:
        Number of updated records
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)
    if not filter_query:
        msg = "Refusing to update without a filter"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        set_clause = ", ".join(f"{key} = ?" for key in data)
        where_clause, params = parse_filter(filter_query)
        values = [_to_db_value(val) for val in data.values()]

        query = f"UPDATE {collection} SET {set_clause} WHERE {where_clause}"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, [*values, *params])
        await conn.commit()

        logger.info("Updated records", extra={"collection": collection, "count": cursor.rowcount})
        return cursor.rowcount
    except Exception as e:
        logger.error("update_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to update records in {collection}: {e}"
        raise DatabaseError(msg) from e


async def delete_records(*, collection: str, filter_query: str) -> int:
    """Delete every record matching the filter.

    Returns:
        Number of deleted records
    """
    if not filter_query:
        msg = "Refusing to delete without a filter"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause, params = parse_filter(filter_query)
        query = f"DELETE FROM {collection} WHERE {where_clause}"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, params)
        await conn.commit()

        logger.info("Deleted records", extra={"collection": collection, "count": cursor.rowcount})
        return cursor.rowcount
    except Exception as e:
        logger.error("delete_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to delete records from {collection}: {e}"
        raise DatabaseError(msg) from e


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause = ""
        params: list[Any] = []
        if filter_query:
            where_clause, params = parse_filter(filter_query)
            where_clause = f"WHERE {where_clause}"

        order_by = parse_sort(sort) if sort else "id ASC"
        offset = (page - 1) * per_page

        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        params.extend([per_page, offset])

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        columns = [description[0] for description in cursor.description]
        records = [_convert_record_ids(dict(zip(columns, row, strict=True))) for row in rows]

        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records
    except Exception as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to list records from {collection}: {e}"
        raise DatabaseError(msg) from e


async def list_all_records(*, collection: str, filter_query: str = "", sort: str = "") -> list[dict[str, Any]]:
    """Fetch every page of a listing and return the concatenated records."""
    per_page = Constants.DEFAULT_PER_PAGE_LIMIT
    records: list[dict[str, Any]] = []
    page = 1
    while True:
        batch = await list_records(
            collection=collection,
            page=page,
            per_page=per_page,
            filter_query=filter_query,
            sort=sort,
        )
        records.extend(batch)
        if len(batch) < per_page:
            return records
        page += 1


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, filter_query=filter_query, per_page=1)
    return records[0] if records else None
