"""Unit tests for the consumption engine."""

import pytest

from src.domain.pantry import IngredientUsage, Unit
from src.services.consumption import amount_to_subtract, consume, round_quantity


@pytest.mark.unit
class TestAmountToSubtract:
    """Tests for amount_to_subtract function."""

    def test_same_unit(self, make_pantry_item):
        """Test that a usage in the item's unit is returned as-is."""
        item = make_pantry_item("Latte", 1.0, Unit.LITERS)
        assert amount_to_subtract(item, IngredientUsage(name="Latte", quantity=0.3, unit=Unit.LITERS)) == 0.3

    def test_converts_compatible_units(self, make_pantry_item):
        """Test that grams are converted into the item's kilograms."""
        item = make_pantry_item("Farina", 1.0, Unit.KILOGRAMS)
        usage = IngredientUsage(name="Farina", quantity=250, unit=Unit.GRAMS)
        assert amount_to_subtract(item, usage) == pytest.approx(0.25)

    def test_incompatible_units_pass_through_unconverted(self, make_pantry_item):
        """Test that an incompatible usage unit applies the raw quantity."""
        item = make_pantry_item("Mele", 2.0, Unit.KILOGRAMS)
        usage = IngredientUsage(name="Mele", quantity=3, unit=Unit.PIECES)
        assert amount_to_subtract(item, usage) == 3


@pytest.mark.unit
class TestRoundQuantity:
    """Tests for round_quantity function."""

    def test_ties_round_up(self):
        """Test that an exact tie rounds away from zero instead of to even."""
        assert round_quantity(0.125) == 0.13
        assert round_quantity(0.625) == 0.63

    def test_non_ties_round_to_nearest(self):
        """Test that ordinary values round to the nearest hundredth."""
        assert round_quantity(0.667) == 0.67
        assert round_quantity(2.0) == 2.0


@pytest.mark.unit
class TestConsume:
    """Tests for consume function."""

    def test_milliliters_from_liters(self, make_pantry_item):
        """Test that 200 ml taken from 1 l leaves 0.8 l in the item's unit."""
        pantry = [make_pantry_item("Latte", 1.0, Unit.LITERS)]

        result = consume(pantry, [IngredientUsage(name="Latte", quantity=200, unit=Unit.MILLILITERS)])

        assert result[0].quantity == 0.8
        assert result[0].unit == Unit.LITERS

    def test_never_negative(self, make_pantry_item):
        """Test that using more than is available floors the quantity at zero."""
        pantry = [make_pantry_item("Burro", 100, Unit.GRAMS)]

        result = consume(pantry, [IngredientUsage(name="Burro", quantity=0.5, unit=Unit.KILOGRAMS)])

        assert result[0].quantity == 0.0

    def test_rounds_to_two_decimals(self, make_pantry_item):
        """Test that remaining quantities are rounded half up to two decimals."""
        pantry = [make_pantry_item("Olio", 1.0, Unit.LITERS)]

        result = consume(pantry, [IngredientUsage(name="Olio", quantity=333, unit=Unit.MILLILITERS)])

        assert result[0].quantity == 0.67

        tied = consume(
            [make_pantry_item("Farina", 1.0, Unit.KILOGRAMS)],
            [IngredientUsage(name="Farina", quantity=875, unit=Unit.GRAMS)],
        )

        assert tied[0].quantity == 0.13

    def test_unit_mismatch_subtracts_raw_quantity(self, make_pantry_item):
        """Test that a unit mismatch subtracts the unconverted quantity."""
        pantry = [make_pantry_item("Mele", 5.0, Unit.KILOGRAMS)]

        result = consume(pantry, [IngredientUsage(name="Mele", quantity=2, unit=Unit.PIECES)])

        assert result[0].quantity == 3.0

    def test_non_matching_usage_changes_nothing(self, make_pantry_item):
        """Test that a usage matching no item leaves every quantity unchanged."""
        pantry = [make_pantry_item("Latte", 1.0, Unit.LITERS), make_pantry_item("Pasta", 0.5, Unit.KILOGRAMS)]

        result = consume(pantry, [IngredientUsage(name="Zafferano", quantity=1, unit=Unit.GRAMS)])

        assert [item.quantity for item in result] == [1.0, 0.5]

    def test_first_matching_usage_applies(self, make_pantry_item):
        """Test that only the first matching usage is applied to an item."""
        pantry = [make_pantry_item("Latte Intero", 1.0, Unit.LITERS)]
        usages = [
            IngredientUsage(name="Latte", quantity=100, unit=Unit.MILLILITERS),
            IngredientUsage(name="Latte Intero", quantity=500, unit=Unit.MILLILITERS),
        ]

        result = consume(pantry, usages)

        assert result[0].quantity == 0.9

    def test_one_usage_reduces_every_matching_item(self, make_pantry_item):
        """Test that one usage reduces every item whose name matches."""
        pantry = [make_pantry_item("Latte Intero", 1.0, Unit.LITERS), make_pantry_item("Latte di Soia", 1.0, Unit.LITERS)]

        result = consume(pantry, [IngredientUsage(name="Latte", quantity=250, unit=Unit.MILLILITERS)])

        assert [item.quantity for item in result] == [0.75, 0.75]

    def test_input_is_not_modified(self, make_pantry_item):
        """Test that the input pantry is left untouched."""
        pantry = [make_pantry_item("Latte", 1.0, Unit.LITERS)]

        consume(pantry, [IngredientUsage(name="Latte", quantity=1, unit=Unit.LITERS)])

        assert pantry[0].quantity == 1.0

    def test_preserves_order_and_ids(self, make_pantry_item):
        """Test that the result keeps the input order and ids."""
        pantry = [make_pantry_item("Pasta"), make_pantry_item("Latte"), make_pantry_item("Uova")]

        result = consume(pantry, [IngredientUsage(name="Latte", quantity=0.1, unit=Unit.LITERS)])

        assert [item.id for item in result] == [item.id for item in pantry]
