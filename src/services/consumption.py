"""Apply a recipe's ingredient usages to the pantry."""

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from src.core.config import Constants
from src.core.matching import names_match
from src.core.units import convert
from src.domain.pantry import IngredientUsage, PantryItem


logger = logging.getLogger(__name__)


def round_quantity(value: float) -> float:
    """Round to QUANTITY_DECIMALS places, ties away from zero (0.125 -> 0.13)."""
    step = Decimal(1).scaleb(-Constants.QUANTITY_DECIMALS)
    return float(Decimal(str(value)).quantize(step, rounding=ROUND_HALF_UP))


def amount_to_subtract(item: PantryItem, usage: IngredientUsage) -> float:
    """Express a usage's quantity in the pantry item's unit.

    Incompatible units (e.g. a "pz" usage against a "kg" item) are applied
    unconverted, so the raw usage quantity is subtracted as-is.
    """
    if usage.unit == item.unit:
        return usage.quantity

    converted = convert(usage.quantity, usage.unit, item.unit)
    if converted is None:
        logger.warning(
            "consumption_unit_mismatch",
            extra={"item": item.name, "item_unit": item.unit, "usage_unit": usage.unit},
        )
        return usage.quantity
    return converted


def consume(pantry_items: Sequence[PantryItem], usages: Sequence[IngredientUsage]) -> list[PantryItem]:
    """Return the pantry with every matched item reduced by its usage.

    Each pantry item is compared against the usages in order and the first
    usage whose name matches is applied. The new quantity is rounded to two
    decimals (half up) and floored at zero. Unmatched items are returned unchanged.
    The input collection is not modified.

    Args:
        pantry_items: Current pantry collection
        usages: Ingredient usages declared by a recipe

    Returns:
        New pantry collection in the same order
    """
    result = []
    for item in pantry_items:
        usage = next((u for u in usages if names_match(u.name, item.name)), None)
        if usage is None:
            result.append(item)
            continue

        remaining = round_quantity(item.quantity - amount_to_subtract(item, usage))
        result.append(item.model_copy(update={"quantity": max(0.0, remaining)}))
    return result
