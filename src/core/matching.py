"""Name matching between recipe ingredients and pantry entries."""

from collections.abc import Iterable
from typing import TypeVar

from src.domain.pantry import PantryItem


T = TypeVar("T", bound=PantryItem)


def names_match(first: str, second: str) -> bool:
    """Return True if either name contains the other, ignoring case.

    Blank names never match.
    """
    a = first.strip().lower()
    b = second.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def match_pantry_item(usage_name: str, pantry_items: Iterable[T]) -> T | None:
    """Find the pantry item an ingredient name refers to.

    The first item in iteration order wins; there is no ranking by closeness,
    so "Latte" against ["Latte Intero", "Latte di Soia"] returns "Latte Intero".

    Args:
        usage_name: Free-text ingredient name from a recipe
        pantry_items: Pantry collection in its current order

    Returns:
        First matching item or None
    """
    return next((item for item in pantry_items if names_match(usage_name, item.name)), None)
