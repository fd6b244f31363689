"""Domain models and DTOs."""

from src.domain.pantry import (
    Category,
    ExpiryStatus,
    IngredientUsage,
    PantryItem,
    PantryItemDraft,
    PantryItemUpdate,
    ShoppingItem,
    ShoppingItemDraft,
    Unit,
    ViewState,
)
from src.domain.recipe import Difficulty, PantryItemGuess, Recipe, VisionResult
from src.domain.user import Credentials, Session, User


__all__ = [
    "Category",
    "Credentials",
    "Difficulty",
    "ExpiryStatus",
    "IngredientUsage",
    "PantryItem",
    "PantryItemDraft",
    "PantryItemGuess",
    "PantryItemUpdate",
    "Recipe",
    "Session",
    "ShoppingItem",
    "ShoppingItemDraft",
    "Unit",
    "User",
    "ViewState",
    "VisionResult",
]
