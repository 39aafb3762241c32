"""
Pricing helpers for cocktail ingredients.

Prices are stored per ingredient and price category as "price (minor units)
for amount of units". A cocktail ingredient's price per use is the cheapest
price in the category whose units can be converted to the units the recipe
uses, multiplied by the recipe amount.

Pricing never reports an ingredient as free: a non-positive price per use
is raised to MIN_PRICE_PER_USE.
"""

from decimal import Decimal
from typing import Iterable, Optional

from barpack.services.exceptions import UnitConversionError, ValidationError
from barpack.services.logging_utils import get_service_logger
from barpack.services.unit_converter import convert
from barpack.utils.constants import MIN_PRICE_PER_USE

logger = get_service_logger(__name__)


def price_per_unit_in(price, units: Optional[str]) -> Optional[Decimal]:
    """
    Price of one unit of `units` according to an IngredientPrice.

    Args:
        price: IngredientPrice
        units: Unit the price should be expressed in

    Returns:
        Decimal price in major currency units, or None when the price's unit
        cannot be converted to `units`
    """
    try:
        converted = convert(price.amount, None, price.units, units)
    except (UnitConversionError, ValidationError) as e:
        logger.debug(f"Skipping price {price.id}: {e}")
        return None

    amount = Decimal(str(converted.amount))
    if amount <= 0:
        return None
    return (Decimal(price.price or 0) / Decimal(100)) / amount


def cheapest_price_per_unit(ingredient, price_category, units: Optional[str]) -> Optional[Decimal]:
    """Lowest price per unit of `units` for an ingredient in a price category."""
    candidates = []
    for price in ingredient.prices:
        if price.price_category_id != price_category.id:
            continue
        per_unit = price_per_unit_in(price, units)
        if per_unit is not None:
            candidates.append(per_unit)
    return min(candidates) if candidates else None


def price_per_use(cocktail_ingredient, price_category) -> Optional[Decimal]:
    """
    Price of one use of a cocktail ingredient in a price category.

    Args:
        cocktail_ingredient: CocktailIngredient with its ingredient and prices loaded
        price_category: PriceCategory to price in

    Returns:
        Decimal in major currency units, at least MIN_PRICE_PER_USE, or None
        when no price in the category applies to the recipe's units
    """
    ingredient = cocktail_ingredient.ingredient
    if ingredient is None:
        return None

    per_unit = cheapest_price_per_unit(ingredient, price_category, cocktail_ingredient.units)
    if per_unit is None:
        return None

    result = per_unit * Decimal(str(cocktail_ingredient.amount or 0))
    if result <= 0:
        return MIN_PRICE_PER_USE
    return result


def cocktail_price_per_use(cocktail, price_category) -> Optional[Decimal]:
    """
    Sum of the price per use of every priced ingredient of a cocktail.

    Returns:
        Decimal total, or None when none of the ingredients has a price
    """
    prices = [price_per_use(ci, price_category) for ci in cocktail.ingredients]
    prices = [p for p in prices if p is not None]
    if not prices:
        return None
    return sum(prices, Decimal("0"))


def has_substitute_in_shelf(cocktail_ingredient, shelf_ingredient_ids: Iterable[int]) -> bool:
    """
    Check whether any substitute of a cocktail ingredient is on the shelf.

    Args:
        cocktail_ingredient: CocktailIngredient with substitutes loaded
        shelf_ingredient_ids: Ids of the ingredients on the shelf; pass a set
            when checking many ingredients against the same shelf
    """
    if not isinstance(shelf_ingredient_ids, (set, frozenset)):
        shelf_ingredient_ids = set(shelf_ingredient_ids)
    return any(sub.ingredient_id in shelf_ingredient_ids for sub in cocktail_ingredient.substitutes)
