"""Pantry view helpers: expiry status, sorting, filtering and move drafts."""

from collections.abc import Iterable, Sequence
from datetime import date

from src.core.config import Constants, settings
from src.domain.pantry import Category, ExpiryStatus, PantryItem, PantryItemDraft, ShoppingItem, Unit


def days_until_expiry(item: PantryItem, today: date | None = None) -> int | None:
    """Whole days from today to the item's expiry date (negative once expired).

    Returns None for items without an expiry date.
    """
    if item.expiry_date is None:
        return None
    return (item.expiry_date - (today or date.today())).days


def expiry_status(item: PantryItem, today: date | None = None, *, window_days: int | None = None) -> ExpiryStatus:
    """Classify an item for the expiry badge.

    Args:
        item: Pantry item
        today: Reference date (defaults to today)
        window_days: Days-left threshold for "expiring" (defaults to EXPIRY_WARNING_DAYS)

    Returns:
        EXPIRED when the date is past, EXPIRING within the window, FRESH
        otherwise and NONE without an expiry date
    """
    days = days_until_expiry(item, today)
    if days is None:
        return ExpiryStatus.NONE
    if days < 0:
        return ExpiryStatus.EXPIRED
    window = settings.expiry_warning_days if window_days is None else window_days
    if days <= window:
        return ExpiryStatus.EXPIRING
    return ExpiryStatus.FRESH


def sort_by_expiry(items: Iterable[PantryItem]) -> list[PantryItem]:
    """Soonest expiry first; items without expiry go last in their original order."""
    return sorted(items, key=lambda item: (item.expiry_date is None, item.expiry_date or date.max))


def filter_by_category(items: Iterable[PantryItem], category: Category | None) -> list[PantryItem]:
    """Keep the items of one category; None keeps everything."""
    if category is None:
        return list(items)
    return [item for item in items if item.category == category]


def count_expiring(items: Iterable[PantryItem], today: date | None = None, *, window_days: int | None = None) -> int:
    """Count items whose days-left is within the window, expired ones included."""
    window = settings.expiry_warning_days if window_days is None else window_days
    count = 0
    for item in items:
        days = days_until_expiry(item, today)
        if days is not None and days <= window:
            count += 1
    return count


def build_move_drafts(shopping_items: Sequence[ShoppingItem]) -> tuple[list[PantryItemDraft], list[str]]:
    """Default pantry drafts for the checked shopping entries.

    Each checked entry becomes one piece of the same name and category with
    no expiry; the user may edit the drafts before confirming the move.

    Returns:
        (drafts, shopping IDs the drafts came from)
    """
    checked = [item for item in shopping_items if item.is_checked]
    drafts = [
        PantryItemDraft(
            name=item.name,
            category=item.category,
            quantity=Constants.DEFAULT_MOVE_QUANTITY,
            unit=Unit.PIECES,
            expiry_date=None,
        )
        for item in checked
    ]
    return drafts, [item.id for item in checked]
