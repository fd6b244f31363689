"""Conversion between compatible measurement units."""

from src.core.config import Constants
from src.domain.pantry import Unit


# Unit -> (dimension, factor to the dimension's base unit)
_DIMENSIONS: dict[Unit, tuple[str, int]] = {
    Unit.GRAMS: ("mass", 1),
    Unit.KILOGRAMS: ("mass", Constants.UNIT_SCALE),
    Unit.MILLILITERS: ("volume", 1),
    Unit.LITERS: ("volume", Constants.UNIT_SCALE),
}


def convert(quantity: float, from_unit: Unit, to_unit: Unit) -> float | None:
    """Convert a quantity between units of the same dimension.

    Only g <-> kg and ml <-> l are defined. Converting a unit to itself
    returns the quantity unchanged.

    Args:
        quantity: Amount expressed in from_unit
        from_unit: Unit of the given quantity
        to_unit: Target unit

    Returns:
        The converted quantity, or None when the units are incompatible
        (e.g. pz vs kg)
    """
    if from_unit == to_unit:
        return quantity

    source = _DIMENSIONS.get(from_unit)
    target = _DIMENSIONS.get(to_unit)
    if source is None or target is None or source[0] != target[0]:
        return None

    if source[1] > target[1]:
        return quantity * (source[1] // target[1])
    return quantity / (target[1] // source[1])
