"""End-to-end sync engine tests over SQLite."""

from datetime import date

import pytest

from src.domain.pantry import Category, IngredientUsage, PantryItemDraft, Unit, ViewState
from src.services.pantry_service import build_move_drafts
from src.services.remote_store import RemoteStore
from src.services.sync_engine import MoveOutcome, SyncEngine


@pytest.fixture
def engine(user_id):
    """SyncEngine of the signed-up user with consumption persisted."""
    return SyncEngine(RemoteStore(user_id=user_id), persist_consumption=True)


@pytest.mark.integration
class TestSyncEngineSqlite:
    """Sync engine over the real store."""

    async def test_pantry_lifecycle(self, engine):
        """Test add, update, cook and remove against the real store."""
        await engine.add_pantry_item(
            PantryItemDraft(name="Latte", quantity=1, unit=Unit.LITERS, expiry_date=date(2024, 5, 11))
        )
        (item,) = engine.pantry_items

        await engine.update_pantry_item(item.id, {"expiryDate": None, "category": Category.DAIRY})
        await engine.cook([IngredientUsage(name="latte", quantity=200, unit=Unit.MILLILITERS)])
        await engine.reload_pantry()

        (reloaded,) = engine.pantry_items
        assert reloaded.quantity == 0.8
        assert reloaded.expiry_date is None
        assert reloaded.category == Category.DAIRY

        assert await engine.remove_pantry_item(item.id) is True
        await engine.reload_pantry()
        assert engine.pantry_items == []

    async def test_same_name_twice(self, engine):
        """Test that two adds of the same name give two rows, newest first."""
        await engine.add_pantry_item(PantryItemDraft(name="Mele", quantity=1))
        await engine.add_pantry_item(PantryItemDraft(name="Mele", quantity=2))

        assert [item.quantity for item in engine.pantry_items] == [2.0, 1.0]

    async def test_shopping_to_pantry(self, engine):
        """Test checking an entry and moving it into the pantry with default drafts."""
        await engine.add_shopping_item("Pane", Category.PANTRY)
        await engine.add_shopping_item("Uova", Category.DAIRY)
        pane = next(item for item in engine.shopping_items if item.name == "Pane")
        await engine.toggle_shopping_item(pane.id)
        engine.active_view = ViewState.SHOPPING

        drafts, ids = build_move_drafts(engine.shopping_items)
        outcome = await engine.move_to_pantry(drafts, ids)

        assert outcome == MoveOutcome.MOVED
        assert [(item.name, item.unit, item.quantity) for item in engine.pantry_items] == [("Pane", Unit.PIECES, 1.0)]
        assert [item.name for item in engine.shopping_items] == ["Uova"]
        assert engine.active_view == ViewState.PANTRY

    async def test_clear_completed(self, engine):
        """Test that clearing completed entries leaves only unchecked ones after reload."""
        for name in ("Pane", "Uova", "Latte"):
            await engine.add_shopping_item(name)
        for item in list(engine.shopping_items):
            if item.name != "Uova":
                await engine.toggle_shopping_item(item.id)

        await engine.clear_completed_shopping()
        await engine.reload_shopping()

        assert [item.name for item in engine.shopping_items] == ["Uova"]

    async def test_users_do_not_see_each_other(self, engine, auth):
        """Test that one user's items are invisible to another."""
        other = await auth.sign_up("luigi@example.com", "password123")
        other_engine = SyncEngine(RemoteStore(user_id=other.user_id))
        await other_engine.add_pantry_item(PantryItemDraft(name="Segreto"))

        await engine.reload_all()

        assert engine.pantry_items == []
