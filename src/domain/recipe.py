"""Recipe domain models returned by the recipe and vision agents."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.domain.pantry import Category, IngredientUsage, Unit


class Difficulty(StrEnum):
    """Recipe difficulty levels."""

    EASY = "Facile"
    MEDIUM = "Media"
    HARD = "Difficile"


class Recipe(BaseModel):
    """A recipe suggested by the chef agent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    difficulty: Difficulty = Field(..., description="Facile, Media, o Difficile")
    time: str = Field(..., description="Tempo stimato, es. '30 min'")
    description: str = Field(..., description="Breve descrizione del piatto")
    ingredients_used: list[IngredientUsage] = Field(
        default_factory=list,
        description="Lista degli ingredienti presi dalla dispensa con le quantità necessarie",
    )
    missing_ingredients: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list, description="Lista ordinata dei passaggi per la preparazione")


class PantryItemGuess(BaseModel):
    """Partial pantry item recognized from a product photo."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Nome breve e descrittivo in Italiano")
    category: Category = Category.OTHER
    quantity: float = Field(default=1.0, ge=0, description="Stima numerica della quantità")
    unit: Unit = Unit.PIECES
    expiry_date: date | None = Field(default=None, description="Stima della data di scadenza (YYYY-MM-DD)")

    @field_validator("category", mode="before")
    @classmethod
    def _unknown_category_is_other(cls, value: object) -> object:
        if isinstance(value, str) and value not in {c.value for c in Category}:
            return Category.OTHER
        return value

    @field_validator("unit", mode="before")
    @classmethod
    def _unknown_unit_is_pieces(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().lower()
            return normalized if normalized in {u.value for u in Unit} else Unit.PIECES
        return value

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _drop_unparseable_expiry(cls, value: object) -> object:
        if value in ("", None):
            return None
        if isinstance(value, str):
            try:
                return date.fromisoformat(value[:10])
            except ValueError:
                return None
        return value


class VisionResult(BaseModel):
    """Structured output of the vision agent."""

    is_food: bool = Field(..., description="False se l'immagine non mostra un prodotto alimentare")
    item: PantryItemGuess | None = None
