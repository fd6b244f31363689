"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta

import pytest

from src.agents import agent_instance
from src.domain.pantry import Category, PantryItem, ShoppingItem, Unit


TEST_SESSION_SECRET = "test-session-secret"


@pytest.fixture(autouse=True)
def _reset_agents():
    """Drop cached agents so each test builds (or patches) its own."""
    agent_instance.reset_agents()
    yield
    agent_instance.reset_agents()


@pytest.fixture
def today() -> date:
    return date(2024, 5, 10)


@pytest.fixture
def make_pantry_item():
    """Factory for PantryItem objects with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(
        name: str = "Latte",
        quantity: float = 1.0,
        unit: Unit = Unit.LITERS,
        *,
        expiry_date: date | None = None,
        category: Category = Category.DAIRY,
        item_id: str | None = None,
        added_at: int | None = None,
    ) -> PantryItem:
        n = next(counter)
        return PantryItem(
            id=item_id or str(n),
            name=name,
            quantity=quantity,
            unit=unit,
            expiry_date=expiry_date,
            category=category,
            added_at=added_at if added_at is not None else 1_700_000_000_000 + n,
        )

    return _make


@pytest.fixture
def make_shopping_item():
    """Factory for ShoppingItem objects."""
    counter = iter(range(1, 10_000))

    def _make(
        name: str = "Pane",
        *,
        category: Category = Category.PANTRY,
        is_checked: bool = False,
        item_id: str | None = None,
    ) -> ShoppingItem:
        return ShoppingItem(id=item_id or f"s{next(counter)}", name=name, category=category, is_checked=is_checked)

    return _make


@pytest.fixture
def sample_pantry(make_pantry_item, today):
    """A small pantry with mixed expiry dates."""
    return [
        make_pantry_item("Latte", 1.0, Unit.LITERS, expiry_date=today + timedelta(days=1)),
        make_pantry_item("Mele Golden", 6, Unit.PIECES, expiry_date=today + timedelta(days=10), category=Category.FRUIT_VEG),
        make_pantry_item("Pasta", 0.5, Unit.KILOGRAMS, category=Category.PANTRY),
        make_pantry_item("Yogurt", 2, Unit.PIECES, expiry_date=today - timedelta(days=1)),
    ]
