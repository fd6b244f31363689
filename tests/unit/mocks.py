"""Pure Python in-memory database for unit testing."""

import copy
import re
from datetime import UTC, datetime
from typing import Any

from src.core.db_client import DatabaseError, RecordNotFoundError
from src.core.schema import TIMESTAMP_COLUMNS


_COMPARISON = re.compile(r"""^(\w+)\s*(!=|=|~)\s*(['"])(.*)\3$""")


def _now() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class InMemoryDBClient:
    """Pure Python in-memory database for unit testing.

    Mirrors the module-level interface of src.core.db_client: the same
    keyword arguments, filter mini-language (&&, parenthesized || groups,
    =, != and ~) and multi-field sort strings.

    Failures can be injected per operation with fail(), and every write is
    recorded in ``calls`` as (operation, collection, filter_or_none).
    """

    def __init__(self):
        """Initialize empty in-memory database."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._id_counter = 1000
        self._failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str, str | None]] = []

    # Failure injection

    def fail(self, operation: str, error: Exception | None = None) -> None:
        """Make every call to an operation raise until recover() is called."""
        self._failures[operation] = error or DatabaseError(f"injected failure in {operation}")

    def recover(self, operation: str | None = None) -> None:
        """Clear one injected failure, or all of them."""
        if operation is None:
            self._failures.clear()
        else:
            self._failures.pop(operation, None)

    def _check(self, operation: str) -> None:
        if operation in self._failures:
            raise self._failures[operation]

    # Helpers for tests

    def rows(self, collection: str) -> list[dict[str, Any]]:
        """All stored rows of a collection, in insertion order."""
        return [copy.deepcopy(r) for r in self._collections.get(collection, {}).values()]

    def _insert(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise DatabaseError(f"Data must be a dictionary, got {type(data)}")

        record_id = str(self._id_counter)
        self._id_counter += 1

        record = {"id": record_id, **data}
        stamp = TIMESTAMP_COLUMNS.get(collection)
        if stamp and not record.get(stamp):
            record[stamp] = _now()

        self._collections.setdefault(collection, {})[record_id] = record
        return record

    # db_client interface

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a new record and return it with its assigned id."""
        self._check("create_record")
        self.calls.append(("create_record", collection, None))
        return copy.deepcopy(self._insert(collection, data))

    async def create_records(self, *, collection: str, records: list[dict[str, Any]]) -> int:
        """Insert several records; all or nothing."""
        self._check("create_records")
        self.calls.append(("create_records", collection, None))
        if any(not isinstance(r, dict) for r in records):
            raise DatabaseError("Every record must be a dictionary")
        for record in records:
            self._insert(collection, record)
        return len(records)

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Get a record by ID, raising RecordNotFoundError if missing."""
        self._check("get_record")
        record = self._collections.get(collection, {}).get(str(record_id))
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return copy.deepcopy(record)

    async def update_records(self, *, collection: str, filter_query: str, data: dict[str, Any]) -> int:
        """Update every record matching the filter."""
        if not data:
            raise ValueError("Empty update payload")
        if not filter_query:
            raise ValueError("Refusing to update without a filter")
        self._check("update_records")
        self.calls.append(("update_records", collection, filter_query))

        matched = [r for r in self._collections.get(collection, {}).values() if self._matches(filter_query, r)]
        for record in matched:
            record.update(copy.deepcopy(data))
        return len(matched)

    async def delete_records(self, *, collection: str, filter_query: str) -> int:
        """Delete every record matching the filter."""
        if not filter_query:
            raise ValueError("Refusing to delete without a filter")
        self._check("delete_records")
        self.calls.append(("delete_records", collection, filter_query))

        rows = self._collections.get(collection, {})
        doomed = [record_id for record_id, r in rows.items() if self._matches(filter_query, r)]
        for record_id in doomed:
            del rows[record_id]
        return len(doomed)

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting and pagination."""
        self._check("list_records")
        records = list(self._collections.get(collection, {}).values())
        if filter_query:
            records = [r for r in records if self._matches(filter_query, r)]
        records = self._apply_sort(records, sort or "id")

        start = (page - 1) * per_page
        return [copy.deepcopy(r) for r in records[start : start + per_page]]

    async def list_all_records(self, *, collection: str, filter_query: str = "", sort: str = "") -> list[dict[str, Any]]:
        """Return every matching record."""
        self._check("list_all_records")
        return await self.list_records(collection=collection, per_page=10**9, filter_query=filter_query, sort=sort)

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Get the first matching record or None."""
        records = await self.list_records(collection=collection, per_page=1, filter_query=filter_query)
        return records[0] if records else None

    # Filter and sort evaluation

    def _matches(self, filter_str: str, record: dict[str, Any]) -> bool:
        return all(self._matches_group(part, record) for part in self._split_and(filter_str))

    @staticmethod
    def _split_and(filter_str: str) -> list[str]:
        parts: list[str] = []
        depth = 0
        current = ""
        i = 0
        while i < len(filter_str):
            char = filter_str[i]
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            if depth == 0 and filter_str.startswith("&&", i):
                parts.append(current.strip())
                current = ""
                i += 2
                continue
            current += char
            i += 1
        if current.strip():
            parts.append(current.strip())
        return parts

    def _matches_group(self, part: str, record: dict[str, Any]) -> bool:
        if part.startswith("(") and part.endswith(")"):
            return any(self._matches_comparison(p.strip(), record) for p in part[1:-1].split("||"))
        return self._matches_comparison(part, record)

    @staticmethod
    def _matches_comparison(comparison: str, record: dict[str, Any]) -> bool:
        match = _COMPARISON.match(comparison)
        if not match:
            raise DatabaseError(f"Invalid filter syntax: {comparison}")
        field, op, _, value = match.groups()
        actual = record.get(field)

        if op == "~":
            return value.lower() in str(actual or "").lower()

        if value.lower() in ("true", "false"):
            equal = bool(actual) == (value.lower() == "true")
        elif field == "email":
            equal = str(actual or "").lower() == value.lower()
        else:
            equal = str(actual) == value
        return equal if op == "=" else not equal

    @staticmethod
    def _apply_sort(records: list[dict], sort: str) -> list[dict]:
        """Sort by comma-separated fields (prefix with - for descending)."""

        def key_for(field: str):
            def key(r: dict) -> Any:
                value = r.get(field)
                if field == "id":
                    return int(value)
                return "" if value is None else value

            return key

        result = list(records)
        for entry in reversed([s.strip() for s in sort.split(",") if s.strip()]):
            reverse = entry.startswith("-")
            field = entry.lstrip("-+")
            result.sort(key=key_for(field), reverse=reverse)
        return result
