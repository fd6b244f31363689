"""Owner-scoped access to the pantry and shopping collections of the store."""

import logging
import time
from collections.abc import Callable, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar

from src.core import db_client
from src.core.db_client import sanitize_param
from src.domain.pantry import Category, PantryItem, PantryItemDraft, ShoppingItem, ShoppingItemDraft


logger = logging.getLogger(__name__)

T = TypeVar("T")

PANTRY_COLLECTION = "pantry_items"
SHOPPING_COLLECTION = "shopping_items"

# Most recent first; id breaks ties between rows stamped in the same instant
PANTRY_SORT = "-added_at,-id"
SHOPPING_SORT = "-created_at,-id"

# Model attribute -> column; identical names today, kept explicit as the contract
_PANTRY_COLUMNS = {
    "name": "name",
    "quantity": "quantity",
    "unit": "unit",
    "expiry_date": "expiry_date",
    "category": "category",
}
_SHOPPING_COLUMNS = {
    "name": "name",
    "category": "category",
    "is_checked": "is_checked",
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _timestamp_ms(value: Any) -> int:
    """Parse a stored ISO timestamp into epoch milliseconds, defaulting to now."""
    if not value:
        return _now_ms()
    try:
        return int(datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp() * 1000)
    except ValueError:
        logger.warning("invalid_timestamp", extra={"value": value})
        return _now_ms()


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("invalid_expiry_date", extra={"value": value})
        return None


def _category(value: Any) -> Category:
    """Stored category, or OTHER for values outside the fixed set."""
    try:
        return Category(value)
    except ValueError:
        logger.warning("unknown_category", extra={"value": value})
        return Category.OTHER


def pantry_item_from_row(row: dict[str, Any]) -> PantryItem:
    """Map a pantry_items row onto a PantryItem.

    A missing expiry means no expiry, a missing quantity is 0 and a missing
    timestamp is now.
    """
    quantity = row.get("quantity")
    return PantryItem(
        id=str(row["id"]),
        name=row["name"],
        quantity=float(quantity) if quantity is not None else 0.0,
        unit=row["unit"],
        expiry_date=_parse_date(row.get("expiry_date")),
        category=_category(row.get("category")),
        added_at=_timestamp_ms(row.get("added_at")),
    )


def shopping_item_from_row(row: dict[str, Any]) -> ShoppingItem:
    """Map a shopping_items row onto a ShoppingItem."""
    return ShoppingItem(
        id=str(row["id"]),
        name=row["name"],
        category=_category(row.get("category")),
        is_checked=bool(row.get("is_checked")),
    )


def _column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def pantry_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate model attributes into column values, dropping unknown keys."""
    return {column: _column_value(fields[attr]) for attr, column in _PANTRY_COLUMNS.items() if attr in fields}


def shopping_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate model attributes into column values, dropping unknown keys."""
    return {column: _column_value(fields[attr]) for attr, column in _SHOPPING_COLUMNS.items() if attr in fields}


def _map_rows(rows: list[dict[str, Any]], mapper: Callable[[dict[str, Any]], T], collection: str) -> list[T]:
    """Map rows onto models, skipping (and logging) rows that cannot be represented."""
    result = []
    for row in rows:
        try:
            result.append(mapper(row))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                "invalid_row_skipped",
                extra={"collection": collection, "id": row.get("id"), "error": str(e)},
            )
    return result


def _ids_filter(item_ids: Sequence[str]) -> str:
    clauses = " || ".join(f'id = "{sanitize_param(item_id)}"' for item_id in item_ids)
    return f"({clauses})"


class RemoteStore:
    """Remote collections of one authenticated user.

    Every query carries the owner filter, so rows of other users are never
    visible or mutable through this object. Store failures propagate as
    db_client.DatabaseError.
    """

    def __init__(self, *, user_id: str) -> None:
        if not user_id:
            raise ValueError("RemoteStore requires an authenticated user")
        self.user_id = user_id

    def _owner_filter(self, extra: str = "") -> str:
        owner = f'user_id = "{sanitize_param(self.user_id)}"'
        return f"{owner} && {extra}" if extra else owner

    def _owned_row(self, columns: dict[str, Any]) -> dict[str, Any]:
        return {"user_id": self.user_id, **columns}

    # Pantry

    async def insert_pantry_items(self, drafts: Sequence[PantryItemDraft]) -> int:
        """Insert pantry rows in a single batched write."""
        rows = [self._owned_row(pantry_columns(draft.model_dump())) for draft in drafts]
        return await db_client.create_records(collection=PANTRY_COLLECTION, records=rows)

    async def update_pantry_item(self, item_id: str, fields: dict[str, Any]) -> int:
        """Write only the given fields of one pantry row."""
        return await db_client.update_records(
            collection=PANTRY_COLLECTION,
            filter_query=self._owner_filter(_ids_filter([item_id])),
            data=pantry_columns(fields),
        )

    async def delete_pantry_items(self, item_ids: Sequence[str]) -> int:
        """Delete pantry rows by ID."""
        return await db_client.delete_records(
            collection=PANTRY_COLLECTION,
            filter_query=self._owner_filter(_ids_filter(item_ids)),
        )

    async def list_pantry_items(self) -> list[PantryItem]:
        """Fetch the whole pantry, most recently added first."""
        rows = await db_client.list_all_records(
            collection=PANTRY_COLLECTION,
            filter_query=self._owner_filter(),
            sort=PANTRY_SORT,
        )
        return _map_rows(rows, pantry_item_from_row, PANTRY_COLLECTION)

    # Shopping list

    async def insert_shopping_item(self, draft: ShoppingItemDraft) -> None:
        """Insert one shopping row."""
        await db_client.create_record(
            collection=SHOPPING_COLLECTION,
            data=self._owned_row(shopping_columns(draft.model_dump())),
        )

    async def update_shopping_item(self, item_id: str, fields: dict[str, Any]) -> int:
        """Write only the given fields of one shopping row."""
        return await db_client.update_records(
            collection=SHOPPING_COLLECTION,
            filter_query=self._owner_filter(_ids_filter([item_id])),
            data=shopping_columns(fields),
        )

    async def delete_shopping_items(self, item_ids: Sequence[str]) -> int:
        """Delete shopping rows by ID."""
        return await db_client.delete_records(
            collection=SHOPPING_COLLECTION,
            filter_query=self._owner_filter(_ids_filter(item_ids)),
        )

    async def delete_checked_shopping_items(self) -> int:
        """Delete every checked shopping row of the owner."""
        return await db_client.delete_records(
            collection=SHOPPING_COLLECTION,
            filter_query=self._owner_filter('is_checked = "true"'),
        )

    async def list_shopping_items(self) -> list[ShoppingItem]:
        """Fetch the whole shopping list, most recently created first."""
        rows = await db_client.list_all_records(
            collection=SHOPPING_COLLECTION,
            filter_query=self._owner_filter(),
            sort=SHOPPING_SORT,
        )
        return _map_rows(rows, shopping_item_from_row, SHOPPING_COLLECTION)
