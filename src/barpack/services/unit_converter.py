"""
Unit conversion system for Bar Pack.

This module provides:
- Standard unit conversions (volume, weight, count)
- Unit symbol normalization (aliases such as "fl oz" or "teaspoons")
- Range-aware amount conversion used by the export mapper
- Display rounding for converted values

Conversion Strategy:
- Volume units convert through milliliters (base unit)
- Weight units convert through grams (base unit)
- Count units convert through single items (base unit)
- Factors are Decimal and no intermediate result is rounded; values are
  rounded once, with round_for_display(), when they enter a portable record

"oz" always means the fluid ounce here; bar recipes do not weigh in ounces.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Optional, Union

from barpack.services.exceptions import (
    IncompatibleUnitError,
    UnknownUnitError,
    ValidationError,
)

Number = Union[int, float, Decimal]


# ============================================================================
# Standard Conversion Tables
# ============================================================================

# Volume conversions to milliliters (base unit)
VOLUME_TO_ML: Dict[str, Decimal] = {
    "ml": Decimal("1"),
    "cl": Decimal("10"),
    "l": Decimal("1000"),
    "oz": Decimal("29.5735"),
    "shot": Decimal("44.36025"),
    "jigger": Decimal("44.36025"),
    "cup": Decimal("236.588"),
    "pint": Decimal("473.176"),
    "tsp": Decimal("4.92892"),
    "tbsp": Decimal("14.7868"),
    "barspoon": Decimal("5"),
    "dash": Decimal("0.9"),
    "splash": Decimal("5"),
    "drop": Decimal("0.05"),
}

# Weight conversions to grams (base unit)
WEIGHT_TO_GRAMS: Dict[str, Decimal] = {
    "mg": Decimal("0.001"),
    "g": Decimal("1"),
    "kg": Decimal("1000"),
    "lb": Decimal("453.592"),
}

# Count conversions to individual items (base unit)
COUNT_TO_ITEMS: Dict[str, Decimal] = {
    "each": Decimal("1"),
    "piece": Decimal("1"),
    "dozen": Decimal("12"),
}

UNIT_ALIASES: Dict[str, str] = {
    # Volume
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "centiliter": "cl",
    "centiliters": "cl",
    "centilitre": "cl",
    "centilitres": "cl",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "fl oz": "oz",
    "fl. oz": "oz",
    "fl.oz": "oz",
    "floz": "oz",
    "oz.": "oz",
    "ounce": "oz",
    "ounces": "oz",
    "shots": "shot",
    "jiggers": "jigger",
    "cups": "cup",
    "pt": "pint",
    "pints": "pint",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "bsp": "barspoon",
    "barspoons": "barspoon",
    "bar spoon": "barspoon",
    "dashes": "dash",
    "splashes": "splash",
    "drops": "drop",
    # Weight
    "gr": "g",
    "gram": "g",
    "grams": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "milligram": "mg",
    "milligrams": "mg",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
    # Count
    "count": "each",
    "pieces": "piece",
    "pc": "piece",
    "pcs": "piece",
}

# Decimal places kept when a converted value is stored for export
DISPLAY_PRECISION = 2


class ForceUnits(str, Enum):
    """Target unit requested for an export. ORIGINAL means no conversion."""

    ORIGINAL = "original"
    ML = "ml"
    OZ = "oz"
    CL = "cl"

    @property
    def target_unit(self) -> Optional[str]:
        """Unit symbol to convert to, or None for ORIGINAL."""
        if self is ForceUnits.ORIGINAL:
            return None
        return self.value


@dataclass(frozen=True)
class ConvertedAmount:
    """Result of a conversion: amount, optional upper bound and unit symbol.

    `is_identity` is True when source and target were the same unit and the
    amounts were passed through untouched.
    """

    amount: Number
    amount_max: Optional[Number]
    units: Optional[str]
    is_identity: bool = False


# ============================================================================
# Unit Type Detection
# ============================================================================


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """
    Map a unit symbol to its canonical form.

    Args:
        unit: Unit string (e.g., "Fl Oz", "teaspoons", "ml")

    Returns:
        Canonical symbol (e.g., "oz", "tsp", "ml"), or None if not recognized
    """
    if unit is None:
        return None
    key = " ".join(unit.strip().lower().split())
    key = UNIT_ALIASES.get(key, key)
    if get_conversion_table(key) is None:
        return None
    return key


def get_conversion_table(unit: str) -> Optional[Dict[str, Decimal]]:
    """
    Get the conversion table for a canonical unit.

    Args:
        unit: Canonical unit string (e.g., "oz", "g", "dozen")

    Returns:
        Conversion table dict, or None if unit not found
    """
    if unit in VOLUME_TO_ML:
        return VOLUME_TO_ML
    elif unit in WEIGHT_TO_GRAMS:
        return WEIGHT_TO_GRAMS
    elif unit in COUNT_TO_ITEMS:
        return COUNT_TO_ITEMS

    return None


def get_unit_type(unit: Optional[str]) -> str:
    """
    Determine the type of a unit.

    Args:
        unit: Unit string (aliases accepted)

    Returns:
        Unit type: "volume", "weight", "count", or "unknown"
    """
    canonical = normalize_unit(unit)

    if canonical in VOLUME_TO_ML:
        return "volume"
    elif canonical in WEIGHT_TO_GRAMS:
        return "weight"
    elif canonical in COUNT_TO_ITEMS:
        return "count"

    return "unknown"


def units_compatible(unit1: Optional[str], unit2: Optional[str]) -> bool:
    """
    Check if two units are of the same type and can be converted.

    Returns:
        True if units are compatible for conversion
    """
    type1 = get_unit_type(unit1)
    type2 = get_unit_type(unit2)

    if type1 == "unknown" or type2 == "unknown":
        return False

    return type1 == type2


# ============================================================================
# Conversions
# ============================================================================


def _to_decimal(value: Number, field: str) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError([f"{field} is not a number: {value!r}"])
    if not result.is_finite():
        raise ValidationError([f"{field} is not a finite number: {value!r}"])
    return result


def _same_unit(from_unit: Optional[str], to_unit: Optional[str]) -> bool:
    if from_unit == to_unit:
        return True
    if from_unit is None or to_unit is None:
        return False
    from_key = normalize_unit(from_unit) or from_unit.strip().lower()
    to_key = normalize_unit(to_unit) or to_unit.strip().lower()
    return from_key == to_key


def convert(
    amount: Number,
    amount_max: Optional[Number],
    from_unit: Optional[str],
    to_unit: Optional[str],
) -> ConvertedAmount:
    """
    Convert an amount (and optional range upper bound) to another unit.

    Args:
        amount: Quantity to convert (non-negative)
        amount_max: Upper bound of a range, or None
        from_unit: Source unit (e.g., "oz")
        to_unit: Target unit (e.g., "ml")

    Returns:
        ConvertedAmount. When the units are the same the inputs come back
        unchanged; otherwise amounts are unrounded Decimals.

    Raises:
        ValidationError: If amount is negative or amount_max < amount
        UnknownUnitError: If either unit is not recognized
        IncompatibleUnitError: If the units belong to different families
    """
    amount_dec = _to_decimal(amount, "amount")
    if amount_dec < 0:
        raise ValidationError([f"amount cannot be negative: {amount}"])

    amount_max_dec = None
    if amount_max is not None:
        amount_max_dec = _to_decimal(amount_max, "amount_max")
        if amount_max_dec < amount_dec:
            raise ValidationError([f"amount_max ({amount_max}) is less than amount ({amount})"])

    if _same_unit(from_unit, to_unit):
        return ConvertedAmount(amount, amount_max, to_unit, is_identity=True)

    from_canonical = normalize_unit(from_unit)
    if from_canonical is None:
        raise UnknownUnitError(from_unit)

    to_canonical = normalize_unit(to_unit)
    if to_canonical is None:
        raise UnknownUnitError(to_unit)

    conversion_table = get_conversion_table(from_canonical)
    if to_canonical not in conversion_table:
        raise IncompatibleUnitError(from_canonical, to_canonical)

    factor = conversion_table[from_canonical] / conversion_table[to_canonical]

    converted_max = None
    if amount_max_dec is not None:
        converted_max = amount_max_dec * factor

    return ConvertedAmount(amount_dec * factor, converted_max, to_canonical)


def round_for_display(value: Number, places: int = DISPLAY_PRECISION) -> Decimal:
    """
    Round a value to the export display precision.

    Rounding is monotone, so a range that satisfied amount <= amount_max
    before rounding still does afterwards.

    Args:
        value: Value to round
        places: Decimal places to keep

    Returns:
        Decimal rounded half-up (e.g., 29.5735 -> 29.57)
    """
    quantum = Decimal(1).scaleb(-places)
    return _to_decimal(value, "value").quantize(quantum, rounding=ROUND_HALF_UP)
