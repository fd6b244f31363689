"""Pantry and shopping list domain models and enums."""

from datetime import date
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


ItemName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Unit(StrEnum):
    """Measurement unit of a pantry quantity."""

    PIECES = "pz"
    KILOGRAMS = "kg"
    GRAMS = "g"
    LITERS = "l"
    MILLILITERS = "ml"


class Category(StrEnum):
    """Fixed item categories (values are what the store persists)."""

    FRUIT_VEG = "Ortofrutta"
    DAIRY = "Latticini"
    MEAT_FISH = "Carne & Pesce"
    PANTRY = "Dispensa"
    FROZEN = "Surgelati"
    HOUSEHOLD = "Casa"
    OTHER = "Altro"


class ExpiryStatus(StrEnum):
    """Where an item stands relative to its expiry date."""

    EXPIRED = "expired"
    EXPIRING = "expiring"
    FRESH = "fresh"
    NONE = "none"


class ViewState(StrEnum):
    """Active section of the app."""

    PANTRY = "pantry"
    SHOPPING = "shopping"
    CHEF = "chef"


class _CamelModel(BaseModel):
    """Base model exposing camelCase aliases at the JSON boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PantryItemDraft(_CamelModel):
    """A pantry item before the store has assigned it an ID."""

    name: ItemName = Field(..., description="Item name (e.g., 'Latte', 'Mele Golden')")
    quantity: float = Field(default=1.0, ge=0, description="Current quantity")
    unit: Unit = Field(default=Unit.PIECES, description="Unit of the quantity")
    expiry_date: date | None = Field(default=None, description="Expiry date, None when unknown")
    category: Category = Field(default=Category.OTHER, description="Item category")


class PantryItem(PantryItemDraft):
    """Pantry item data transfer object."""

    id: str = Field(..., description="Store-assigned ID, or a temporary UUID pending confirmation")
    added_at: int = Field(..., description="Creation time in epoch milliseconds")


class PantryItemUpdate(_CamelModel):
    """Partial pantry item update; only explicitly set fields are applied."""

    name: ItemName | None = None
    quantity: float | None = Field(default=None, ge=0)
    unit: Unit | None = None
    expiry_date: date | None = None
    category: Category | None = None

    def changes(self) -> dict[str, object]:
        """Return the fields explicitly set by the caller, keyed by attribute name.

        None only means something for expiry_date (clear the expiry); on the
        other fields it is treated as not set.
        """
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key == "expiry_date"
        }


class ShoppingItemDraft(_CamelModel):
    """A shopping list entry before the store has assigned it an ID."""

    name: ItemName
    category: Category = Category.OTHER
    is_checked: bool = False


class ShoppingItem(ShoppingItemDraft):
    """Shopping list item data transfer object."""

    id: str = Field(..., description="Store-assigned ID, or a temporary UUID pending confirmation")


class IngredientUsage(_CamelModel):
    """Quantity of a named ingredient a recipe consumes."""

    name: ItemName = Field(..., description="Ingredient name as written by the recipe")
    quantity: float = Field(..., gt=0, description="Numeric quantity used")
    unit: Unit = Field(..., description="Unit of measure (g, kg, l, ml, pz)")
