"""Optimistic local view of the pantry and shopping list, reconciled with the store.

Every mutation follows the same shape:

1. apply the change to the local collection synchronously, before awaiting;
2. issue the owner-scoped remote write;
3. on success of a create, reload the collection to pick up the store's IDs
   and ordering (temporary IDs are never patched in place);
4. on failure, drop the temporary entry (creates) or reload the collection
   (updates, toggles, deletes).

Store failures are logged and reported through the boolean return value and
``notice``; they never propagate to the caller. The store is the source of
truth, and a reload always fully replaces the local collection.
"""

import logging
import time
from collections.abc import Sequence
from enum import StrEnum
from typing import Any
from uuid import uuid4

from src.core.config import settings
from src.core.db_client import DatabaseError, RecordNotFoundError
from src.core.keyed_lock import KeyedLock
from src.core.logging import log_with_user_context, span
from src.domain.pantry import (
    Category,
    IngredientUsage,
    PantryItem,
    PantryItemDraft,
    PantryItemUpdate,
    ShoppingItem,
    ShoppingItemDraft,
    ViewState,
)
from src.services.consumption import consume
from src.services.remote_store import RemoteStore


logger = logging.getLogger(__name__)

_STORE_ERRORS = (DatabaseError, RecordNotFoundError, ConnectionError, OSError)

RESYNC_NOTICE = "La modifica potrebbe non essere stata salvata: la lista è stata aggiornata allo stato reale."
ROLLBACK_NOTICE = "Impossibile salvare il nuovo elemento. Riprova."


class MoveOutcome(StrEnum):
    """Result of moving shopping entries into the pantry."""

    MOVED = "moved"
    PARTIAL = "partial"  # pantry rows written, shopping rows still present
    NOTHING_MOVED = "nothing_moved"


def _now_ms() -> int:
    return int(time.time() * 1000)


class SyncEngine:
    """Pantry and shopping collections of one signed-in user."""

    def __init__(self, store: RemoteStore, *, persist_consumption: bool | None = None) -> None:
        self.store = store
        self.persist_consumption = (
            settings.persist_consumption if persist_consumption is None else persist_consumption
        )
        self.pantry_items: list[PantryItem] = []
        self.shopping_items: list[ShoppingItem] = []
        self.active_view = ViewState.PANTRY
        self.notice: str | None = None
        self._locks = KeyedLock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Detach the engine; results of in-flight operations are discarded from now on."""
        self._closed = True
        logger.info("sync_engine_closed", extra={"user_id": self.store.user_id})

    # State helpers. Every local mutation goes through these so nothing
    # lands after close().

    def _set_pantry(self, items: list[PantryItem]) -> None:
        if not self._closed:
            self.pantry_items = items

    def _set_shopping(self, items: list[ShoppingItem]) -> None:
        if not self._closed:
            self.shopping_items = items

    def _set_notice(self, notice: str | None) -> None:
        if not self._closed:
            self.notice = notice

    def _log_failure(self, event: str, error: Exception, **extra: object) -> None:
        log_with_user_context(logger, "error", event, user_id=self.store.user_id, error=str(error), **extra)

    # Reloads

    async def reload_pantry(self) -> bool:
        """Replace the local pantry with the store's rows.

        A failed read is logged and leaves the local pantry untouched.
        """
        with span("sync_engine.reload_pantry"):
            try:
                items = await self.store.list_pantry_items()
            except _STORE_ERRORS as e:
                self._log_failure("pantry_reload_failed", e)
                return False

            self._set_pantry(items)
            logger.debug("pantry_reloaded", extra={"count": len(items)})
            return True

    async def reload_shopping(self) -> bool:
        """Replace the local shopping list with the store's rows."""
        with span("sync_engine.reload_shopping"):
            try:
                items = await self.store.list_shopping_items()
            except _STORE_ERRORS as e:
                self._log_failure("shopping_reload_failed", e)
                return False

            self._set_shopping(items)
            logger.debug("shopping_reloaded", extra={"count": len(items)})
            return True

    async def reload_all(self) -> bool:
        """Reload the pantry, then the shopping list."""
        pantry_ok = await self.reload_pantry()
        shopping_ok = await self.reload_shopping()
        return pantry_ok and shopping_ok

    # Pantry

    async def add_pantry_item(self, draft: PantryItemDraft) -> bool:
        """Add an item locally under a temporary ID, then persist it.

        Returns:
            True if the store accepted the insert
        """
        with span("sync_engine.add_pantry_item"):
            temp = PantryItem(id=str(uuid4()), added_at=_now_ms(), **draft.model_dump())
            self._set_pantry([temp, *self.pantry_items])

            try:
                await self.store.insert_pantry_items([draft])
            except _STORE_ERRORS as e:
                self._log_failure("pantry_insert_failed", e, item_name=draft.name)
                self._set_pantry([item for item in self.pantry_items if item.id != temp.id])
                self._set_notice(ROLLBACK_NOTICE)
                return False

            log_with_user_context(logger, "info", "pantry_item_added", user_id=self.store.user_id, item_name=draft.name)
            await self.reload_pantry()
            return True

    async def update_pantry_item(self, item_id: str, update: PantryItemUpdate | dict[str, Any]) -> bool:
        """Merge fields into a pantry item and write only those fields remotely.

        An update with no recognized fields does nothing and issues no remote
        call.

        Returns:
            True if the store accepted the update (or there was nothing to write)
        """
        if not isinstance(update, PantryItemUpdate):
            update = PantryItemUpdate.model_validate(update)
        changes = update.changes()
        if not changes:
            logger.debug("pantry_update_skipped", extra={"item_id": item_id, "reason": "no_fields"})
            return True

        with span("sync_engine.update_pantry_item"):
            self._set_pantry(
                [item.model_copy(update=changes) if item.id == item_id else item for item in self.pantry_items]
            )

            async with self._locks.hold(item_id):
                try:
                    matched = await self.store.update_pantry_item(item_id, changes)
                except _STORE_ERRORS as e:
                    self._log_failure("pantry_update_failed", e, item_id=item_id)
                    self._set_notice(RESYNC_NOTICE)
                    await self.reload_pantry()
                    return False

            if matched == 0:
                logger.warning("pantry_update_no_rows", extra={"item_id": item_id})
            return True

    async def remove_pantry_item(self, item_id: str) -> bool:
        """Remove a pantry item locally, then from the store."""
        with span("sync_engine.remove_pantry_item"):
            self._set_pantry([item for item in self.pantry_items if item.id != item_id])

            async with self._locks.hold(item_id):
                try:
                    await self.store.delete_pantry_items([item_id])
                except _STORE_ERRORS as e:
                    self._log_failure("pantry_delete_failed", e, item_id=item_id)
                    self._set_notice(RESYNC_NOTICE)
                    await self.reload_pantry()
                    return False

            return True

    async def cook(self, usages: Sequence[IngredientUsage]) -> list[PantryItem]:
        """Consume a recipe's ingredients from the local pantry.

        Quantities are written back to the store only when
        persist_consumption is enabled; a failed write reloads the pantry.

        Returns:
            The pantry items whose quantity changed
        """
        with span("sync_engine.cook"):
            before = self.pantry_items
            after = consume(before, usages)
            changed = [new for old, new in zip(before, after, strict=True) if old.quantity != new.quantity]
            self._set_pantry(after)
            logger.info("recipe_cooked", extra={"usages": len(usages), "changed": len(changed)})

            if not self.persist_consumption:
                return changed

            for item in changed:
                async with self._locks.hold(item.id):
                    try:
                        await self.store.update_pantry_item(item.id, {"quantity": item.quantity})
                    except _STORE_ERRORS as e:
                        self._log_failure("consumption_persist_failed", e, item_id=item.id)
                        self._set_notice(RESYNC_NOTICE)
                        await self.reload_pantry()
                        break
            return changed

    # Shopping list

    async def add_shopping_item(self, name: str, category: Category = Category.OTHER) -> bool:
        """Add an unchecked shopping entry locally, then persist it."""
        draft = ShoppingItemDraft(name=name, category=category)

        with span("sync_engine.add_shopping_item"):
            temp = ShoppingItem(id=str(uuid4()), **draft.model_dump())
            self._set_shopping([temp, *self.shopping_items])

            try:
                await self.store.insert_shopping_item(draft)
            except _STORE_ERRORS as e:
                self._log_failure("shopping_insert_failed", e, item_name=draft.name)
                self._set_shopping([item for item in self.shopping_items if item.id != temp.id])
                self._set_notice(ROLLBACK_NOTICE)
                return False

            await self.reload_shopping()
            return True

    async def toggle_shopping_item(self, item_id: str) -> bool:
        """Invert an entry's checked state locally and remotely.

        The target value comes from the local state before the flip, so each
        call strictly inverts the previous value. Remote writes for the same
        entry are issued in call order.
        """
        with span("sync_engine.toggle_shopping_item"):
            current = next((item for item in self.shopping_items if item.id == item_id), None)
            next_checked = not current.is_checked if current is not None else True
            self._set_shopping(
                [
                    item.model_copy(update={"is_checked": next_checked}) if item.id == item_id else item
                    for item in self.shopping_items
                ]
            )

            async with self._locks.hold(item_id):
                try:
                    await self.store.update_shopping_item(item_id, {"is_checked": next_checked})
                except _STORE_ERRORS as e:
                    self._log_failure("shopping_toggle_failed", e, item_id=item_id)
                    self._set_notice(RESYNC_NOTICE)
                    await self.reload_shopping()
                    return False

            return True

    async def clear_completed_shopping(self) -> bool:
        """Drop every checked entry locally and with one remote delete."""
        with span("sync_engine.clear_completed_shopping"):
            checked_ids = [item.id for item in self.shopping_items if item.is_checked]
            self._set_shopping([item for item in self.shopping_items if not item.is_checked])

            async with self._locks.hold_many(checked_ids):
                try:
                    deleted = await self.store.delete_checked_shopping_items()
                except _STORE_ERRORS as e:
                    self._log_failure("shopping_clear_failed", e)
                    self._set_notice(RESYNC_NOTICE)
                    await self.reload_shopping()
                    return False

            logger.info("shopping_cleared", extra={"deleted": deleted})
            return True

    # Shopping -> pantry

    async def move_to_pantry(self, drafts: Sequence[PantryItemDraft], shopping_ids: Sequence[str]) -> MoveOutcome:
        """Insert pantry drafts, then delete the shopping entries they came from.

        This is not atomic. If the pantry insert fails nothing has moved. If
        the shopping delete fails the pantry rows stay persisted and no
        compensating delete is attempted. In both failure cases both
        collections are reloaded to show the store's actual state.
        """
        with span("sync_engine.move_to_pantry"):
            async with self._locks.hold_many(shopping_ids):
                if drafts:
                    try:
                        await self.store.insert_pantry_items(drafts)
                    except _STORE_ERRORS as e:
                        self._log_failure("move_pantry_insert_failed", e, count=len(drafts))
                        self._set_notice(RESYNC_NOTICE)
                        await self.reload_all()
                        return MoveOutcome.NOTHING_MOVED

                if shopping_ids:
                    try:
                        await self.store.delete_shopping_items(shopping_ids)
                    except _STORE_ERRORS as e:
                        self._log_failure("move_shopping_delete_failed", e, count=len(shopping_ids))
                        self._set_notice(RESYNC_NOTICE)
                        await self.reload_all()
                        return MoveOutcome.PARTIAL

            await self.reload_all()
            if not self._closed:
                self.active_view = ViewState.PANTRY
            log_with_user_context(
                logger,
                "info",
                "moved_to_pantry",
                user_id=self.store.user_id,
                added=len(drafts),
                removed=len(shopping_ids),
            )
            return MoveOutcome.MOVED
