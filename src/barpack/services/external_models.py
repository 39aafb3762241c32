"""
External (portable) models for the Bar Pack data pack.

External models are immutable, database-id-free records built once per
export or import pass. Each type can be built three ways:

- from_model(): from a loaded ORM entity (export)
- from_data_pack(): from decoded archive data (import)
- IngredientExternal.from_flat_record(): from a spreadsheet row (degraded import)

and turned back into plain data with to_data_pack(), which is the draft-02
key layout every round-trip encoder writes.

Every optional field is declared with its default on the dataclass, so both
construction paths name their arguments instead of relying on position.

Usage:
    from barpack.services.external_models import RecipeExternal
    from barpack.services.unit_converter import ForceUnits

    recipe = RecipeExternal.from_model(cocktail, to_units=ForceUnits.ML)
    data = recipe.to_data_pack()
    assert RecipeExternal.from_data_pack(data) == recipe
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from barpack.services.exceptions import MalformedRecordError, UnitConversionError
from barpack.services.unit_converter import ForceUnits, convert, round_for_display
from barpack.utils.datetime_utils import to_atom_string
from barpack.utils.slug_utils import external_id

logger = logging.getLogger(__name__)

TargetUnits = Union[ForceUnits, str, None]


# ============================================================================
# Field Helpers
# ============================================================================


def _ensure_mapping(data: Any, record_type: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise MalformedRecordError(record_type, f"expected an object, got {type(data).__name__}")
    return data


def _required_str(data: Mapping, key: str, record_type: str) -> str:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedRecordError(record_type, f"missing required field '{key}'")
    if isinstance(value, (dict, list)):
        raise MalformedRecordError(record_type, f"field '{key}' must be a string")
    return str(value)


def _optional_str(data: Mapping, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return str(value)


def _float(value: Any, key: str, record_type: str, default: Optional[float]) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise MalformedRecordError(record_type, f"field '{key}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MalformedRecordError(record_type, f"field '{key}' must be a number, got {value!r}")


def _int(value: Any, key: str, record_type: str, default: int = 0) -> int:
    number = _float(value, key, record_type, None)
    if number is None:
        return default
    return int(number)


def _strength(value: Any, record_type: str) -> float:
    strength = _float(value, "strength", record_type, 0.0)
    if not 0.0 <= strength <= 100.0:
        raise MalformedRecordError(
            record_type, f"field 'strength' must be a percentage (0-100), got {value!r}"
        )
    return strength


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _list(data: Mapping, key: str, record_type: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise MalformedRecordError(record_type, f"field '{key}' must be a list")
    return list(value)


def _target_unit(to_units: TargetUnits) -> Optional[str]:
    if isinstance(to_units, ForceUnits):
        return to_units.target_unit
    if to_units in (None, "", ForceUnits.ORIGINAL.value):
        return None
    return to_units


def _convert_for_export(
    amount: Optional[float],
    amount_max: Optional[float],
    units: Optional[str],
    to_units: TargetUnits,
) -> Tuple[Optional[float], Optional[float], Optional[str]]:
    """Convert an amount for export, keeping the original on any conversion failure."""
    target = _target_unit(to_units)
    if target is None or amount is None:
        return amount, amount_max, units

    try:
        converted = convert(amount, amount_max, units, target)
    except UnitConversionError as e:
        logger.debug(f"Keeping original unit '{units}': {e}")
        return amount, amount_max, units

    if converted.is_identity:
        return amount, amount_max, units

    converted_max = None
    if converted.amount_max is not None:
        converted_max = float(round_for_display(converted.amount_max))
    return float(round_for_display(converted.amount)), converted_max, converted.units


# ============================================================================
# Images
# ============================================================================


@dataclass(frozen=True)
class ImageExternal:
    """
    Portable image reference.

    `uri` is either the file name stored next to the record inside the
    archive, or a "file:///<name>" URI.
    """

    uri: str
    copyright: Optional[str] = None
    sort: int = 0
    placeholder_hash: Optional[str] = None

    @property
    def is_file_uri(self) -> bool:
        return self.uri.startswith("file://")

    @property
    def file_name(self) -> str:
        """File name part of the uri."""
        return self.uri.rsplit("/", 1)[-1]

    @classmethod
    def from_model(cls, image, use_file_uri: bool = False) -> "ImageExternal":
        file_name = image.get_file_name()
        return cls(
            uri=f"file:///{file_name}" if use_file_uri else file_name,
            copyright=image.copyright,
            sort=image.sort or 0,
            placeholder_hash=image.placeholder_hash,
        )

    @classmethod
    def from_data_pack(cls, data: Any) -> "ImageExternal":
        data = _ensure_mapping(data, "image")
        return cls(
            uri=_required_str(data, "uri", "image"),
            copyright=_optional_str(data, "copyright"),
            sort=_int(data.get("sort"), "sort", "image"),
            placeholder_hash=_optional_str(data, "placeholder_hash"),
        )

    def to_data_pack(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "copyright": self.copyright,
            "sort": self.sort,
            "placeholder_hash": self.placeholder_hash,
        }


# ============================================================================
# Ingredients
# ============================================================================


@dataclass(frozen=True)
class IngredientBasicExternal:
    """Reference form of an ingredient (used for complex-ingredient parts)."""

    id: str
    name: str

    @classmethod
    def from_model(cls, ingredient) -> "IngredientBasicExternal":
        return cls(id=ingredient.get_external_id(), name=ingredient.name)

    @classmethod
    def from_data_pack(cls, data: Any) -> "IngredientBasicExternal":
        data = _ensure_mapping(data, "ingredient part")
        return cls(
            id=_required_str(data, "_id", "ingredient part"),
            name=_required_str(data, "name", "ingredient part"),
        )

    def to_data_pack(self) -> Dict[str, Any]:
        return {"_id": self.id, "name": self.name}


@dataclass(frozen=True)
class IngredientPriceExternal:
    """
    Price of an ingredient in a price category.

    `price` is in minor currency units (e.g., 2599 for 25.99).
    """

    price_category_id: str
    price: int
    currency: str
    amount: float
    units: str
    description: Optional[str] = None

    @classmethod
    def from_model(cls, price) -> "IngredientPriceExternal":
        category = price.price_category
        return cls(
            price_category_id=category.get_external_id(),
            price=int(price.price or 0),
            currency=category.currency,
            amount=float(price.amount),
            units=price.units,
            description=price.description,
        )

    @classmethod
    def from_data_pack(cls, data: Any) -> "IngredientPriceExternal":
        data = _ensure_mapping(data, "price")
        return cls(
            price_category_id=_required_str(data, "price_category_id", "price"),
            price=_int(data.get("price"), "price", "price"),
            currency=_required_str(data, "currency", "price"),
            amount=_float(data.get("amount"), "amount", "price", 0.0),
            units=_required_str(data, "units", "price"),
            description=_optional_str(data, "description"),
        )

    def to_data_pack(self) -> Dict[str, Any]:
        return {
            "price_category_id": self.price_category_id,
            "price": self.price,
            "currency": self.currency,
            "amount": self.amount,
            "units": self.units,
            "description": self.description,
        }


@dataclass(frozen=True)
class IngredientExternal:
    """
    Portable ingredient record.

    `parent_id` is a back-reference to another ingredient's external id,
    not an ownership edge. Timestamps are the database row timestamps.
    """

    id: str
    name: str
    parent_id: Optional[str] = None
    strength: float = 0.0
    description: Optional[str] = None
    origin: Optional[str] = None
    color: Optional[str] = None
    category: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    images: Tuple[ImageExternal, ...] = ()
    ingredient_parts: Tuple[IngredientBasicExternal, ...] = ()
    prices: Tuple[IngredientPriceExternal, ...] = ()
    calculator_id: Optional[str] = None

    @classmethod
    def from_model(cls, ingredient, use_file_uri: bool = False) -> "IngredientExternal":
        parent = ingredient.parent_ingredient if ingredient.parent_ingredient_id else None
        return cls(
            id=ingredient.get_external_id(),
            name=ingredient.name,
            parent_id=parent.get_external_id() if parent is not None else None,
            strength=float(ingredient.strength or 0.0),
            description=ingredient.description,
            origin=ingredient.origin,
            color=ingredient.color,
            category=ingredient.category.name if ingredient.category is not None else None,
            created_at=to_atom_string(ingredient.created_at),
            updated_at=to_atom_string(ingredient.updated_at),
            images=tuple(
                ImageExternal.from_model(image, use_file_uri) for image in ingredient.images
            ),
            ingredient_parts=tuple(
                IngredientBasicExternal.from_model(part.ingredient)
                for part in ingredient.ingredient_parts
                if part.ingredient is not None
            ),
            prices=tuple(IngredientPriceExternal.from_model(p) for p in ingredient.prices),
            calculator_id=(
                ingredient.calculator.get_external_id()
                if ingredient.calculator is not None
                else None
            ),
        )

    @classmethod
    def from_data_pack(cls, data: Any) -> "IngredientExternal":
        data = _ensure_mapping(data, "ingredient")
        return cls(
            id=_required_str(data, "_id", "ingredient"),
            name=_required_str(data, "name", "ingredient"),
            parent_id=_optional_str(data, "_parent_id"),
            strength=_strength(data.get("strength"), "ingredient"),
            description=_optional_str(data, "description"),
            origin=_optional_str(data, "origin"),
            color=_optional_str(data, "color"),
            category=_optional_str(data, "category"),
            created_at=_optional_str(data, "created_at"),
            updated_at=_optional_str(data, "updated_at"),
            images=tuple(
                ImageExternal.from_data_pack(i) for i in _list(data, "images", "ingredient")
            ),
            ingredient_parts=tuple(
                IngredientBasicExternal.from_data_pack(p)
                for p in _list(data, "ingredient_parts", "ingredient")
            ),
            prices=tuple(
                IngredientPriceExternal.from_data_pack(p)
                for p in _list(data, "prices", "ingredient")
            ),
            calculator_id=_optional_str(data, "calculator_id"),
        )

    @classmethod
    def from_flat_record(cls, row: Mapping[str, Any]) -> "IngredientExternal":
        """
        Build an ingredient from a spreadsheet-style row.

        Keys are matched case-insensitively and blank values count as absent.
        Flat records carry no relationships, so nested collections stay empty
        and the id is derived from the name alone.

        Raises:
            MalformedRecordError: If the row has no name or a strength
                outside 0-100
        """
        row = _ensure_mapping(row, "flat ingredient")
        normalized = {}
        for key, value in row.items():
            if key is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    value = None
            normalized[str(key).strip().lower()] = value

        name = _required_str(normalized, "name", "flat ingredient")
        return cls(
            id=external_id(name),
            name=name,
            strength=_strength(normalized.get("strength"), "flat ingredient"),
            description=_optional_str(normalized, "description"),
            origin=_optional_str(normalized, "origin"),
            color=_optional_str(normalized, "color"),
            category=_optional_str(normalized, "category"),
        )

    def to_data_pack(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "_parent_id": self.parent_id,
            "name": self.name,
            "strength": self.strength,
            "description": self.description,
            "origin": self.origin,
            "color": self.color,
            "category": self.category,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "images": [image.to_data_pack() for image in self.images],
            "ingredient_parts": [part.to_data_pack() for part in self.ingredient_parts],
            "prices": [price.to_data_pack() for price in self.prices],
            "calculator_id": self.calculator_id,
        }


# ============================================================================
# Recipes
# ============================================================================


@dataclass(frozen=True)
class SubstituteExternal:
    """Alternative ingredient for a recipe line; amounts default to the line's own."""

    ingredient_id: str
    amount: Optional[float] = None
    amount_max: Optional[float] = None
    units: Optional[str] = None

    @classmethod
    def from_model(cls, substitute, to_units: TargetUnits = None) -> "SubstituteExternal":
        amount, amount_max, units = _convert_for_export(
            substitute.amount, substitute.amount_max, substitute.units, to_units
        )
        return cls(
            ingredient_id=substitute.ingredient.get_external_id(),
            amount=amount,
            amount_max=amount_max,
            units=units,
        )

    @classmethod
    def from_data_pack(cls, data: Any) -> "SubstituteExternal":
        data = _ensure_mapping(data, "substitute")
        return cls(
            ingredient_id=_required_str(data, "ingredient_id", "substitute"),
            amount=_float(data.get("amount"), "amount", "substitute", None),
            amount_max=_float(data.get("amount_max"), "amount_max", "substitute", None),
            units=_optional_str(data, "units"),
        )

    def to_data_pack(self) -> Dict[str, Any]:
        return {
            "ingredient_id": self.ingredient_id,
            "amount": self.amount,
            "amount_max": self.amount_max,
            "units": self.units,
        }


@dataclass(frozen=True)
class IngredientUse:
    """
    One ingredient line of a recipe.

    `units` is kept verbatim when it is not a unit the converter knows.
    """

    ingredient_id: str
    amount: float = 0.0
    amount_max: Optional[float] = None
    units: Optional[str] = None
    optional: bool = False
    is_specified: bool = False
    note: Optional[str] = None
    substitutes: Tuple[SubstituteExternal, ...] = ()

    def __post_init__(self):
        if self.amount < 0:
            raise MalformedRecordError("ingredient use", f"negative amount {self.amount}")
        if self.amount_max is not None and self.amount_max < self.amount:
            raise MalformedRecordError(
                "ingredient use",
                f"amount_max {self.amount_max} is less than amount {self.amount}",
            )

    @classmethod
    def from_model(cls, cocktail_ingredient, to_units: TargetUnits = None) -> "IngredientUse":
        amount, amount_max, units = _convert_for_export(
            float(cocktail_ingredient.amount or 0.0),
            cocktail_ingredient.amount_max,
            cocktail_ingredient.units,
            to_units,
        )
        return cls(
            ingredient_id=cocktail_ingredient.ingredient.get_external_id(),
            amount=amount,
            amount_max=amount_max,
            units=units,
            optional=bool(cocktail_ingredient.optional),
            is_specified=bool(cocktail_ingredient.is_specified),
            note=cocktail_ingredient.note,
            substitutes=tuple(
                SubstituteExternal.from_model(sub, to_units)
                for sub in cocktail_ingredient.substitutes
            ),
        )

    @classmethod
    def from_data_pack(cls, data: Any) -> "IngredientUse":
        data = _ensure_mapping(data, "ingredient use")
        return cls(
            ingredient_id=_required_str(data, "ingredient_id", "ingredient use"),
            amount=_float(data.get("amount"), "amount", "ingredient use", 0.0),
            amount_max=_float(data.get("amount_max"), "amount_max", "ingredient use", None),
            units=_optional_str(data, "units"),
            optional=_bool(data.get("optional", False)),
            is_specified=_bool(data.get("is_specified", False)),
            note=_optional_str(data, "note"),
            substitutes=tuple(
                SubstituteExternal.from_data_pack(s)
                for s in _list(data, "substitutes", "ingredient use")
            ),
        )

    def to_data_pack(self) -> Dict[str, Any]:
        return {
            "ingredient_id": self.ingredient_id,
            "amount": self.amount,
            "amount_max": self.amount_max,
            "units": self.units,
            "optional": self.optional,
            "is_specified": self.is_specified,
            "note": self.note,
            "substitutes": [sub.to_data_pack() for sub in self.substitutes],
        }


@dataclass(frozen=True)
class RecipeExternal:
    """
    Portable recipe with everything needed to rebuild it elsewhere.

    `ingredients` keeps preparation order. `ingredient_records` holds the
    definition of every ingredient referenced by a line or a substitute,
    in first-reference order. Glass, method, utensils and tags are carried
    by name.
    """

    id: str
    name: str
    instructions: Optional[str] = None
    garnish: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    tags: Tuple[str, ...] = ()
    images: Tuple[ImageExternal, ...] = ()
    ingredients: Tuple[IngredientUse, ...] = ()
    glass: Optional[str] = None
    method: Optional[str] = None
    utensils: Tuple[str, ...] = ()
    ingredient_records: Tuple[IngredientExternal, ...] = ()

    @classmethod
    def from_model(
        cls,
        cocktail,
        to_units: TargetUnits = None,
        use_file_uri: bool = False,
    ) -> "RecipeExternal":
        """
        Map a loaded Cocktail (and its relationships) to a portable recipe.

        Args:
            cocktail: Cocktail ORM instance
            to_units: Target unit (ForceUnits or symbol); None/ORIGINAL keeps units
            use_file_uri: Write image uris as "file:///<name>"

        Returns:
            RecipeExternal; the cocktail is not modified
        """
        referenced = []
        seen = set()
        for cocktail_ingredient in cocktail.ingredients:
            candidates = [cocktail_ingredient.ingredient] + [
                sub.ingredient for sub in cocktail_ingredient.substitutes
            ]
            for ingredient in candidates:
                if ingredient is not None and ingredient.id not in seen:
                    seen.add(ingredient.id)
                    referenced.append(ingredient)

        return cls(
            id=cocktail.get_external_id(),
            name=cocktail.name,
            instructions=cocktail.instructions,
            garnish=cocktail.garnish,
            description=cocktail.description,
            source=cocktail.source,
            tags=tuple(tag.name for tag in cocktail.tags),
            images=tuple(ImageExternal.from_model(i, use_file_uri) for i in cocktail.images),
            ingredients=tuple(
                IngredientUse.from_model(ci, to_units)
                for ci in cocktail.ingredients
                if ci.ingredient is not None
            ),
            glass=cocktail.glass.name if cocktail.glass is not None else None,
            method=cocktail.method.name if cocktail.method is not None else None,
            utensils=tuple(utensil.name for utensil in cocktail.utensils),
            ingredient_records=tuple(
                IngredientExternal.from_model(ingredient, use_file_uri) for ingredient in referenced
            ),
        )

    @classmethod
    def from_data_pack(cls, data: Any) -> "RecipeExternal":
        """
        Rebuild a recipe from decoded archive data.

        Raises:
            MalformedRecordError: If `_id` or `name` is missing, or any field
                has the wrong shape
        """
        data = _ensure_mapping(data, "recipe")
        return cls(
            id=_required_str(data, "_id", "recipe"),
            name=_required_str(data, "name", "recipe"),
            instructions=_optional_str(data, "instructions"),
            garnish=_optional_str(data, "garnish"),
            description=_optional_str(data, "description"),
            source=_optional_str(data, "source"),
            tags=tuple(str(tag) for tag in _list(data, "tags", "recipe")),
            images=tuple(ImageExternal.from_data_pack(i) for i in _list(data, "images", "recipe")),
            ingredients=tuple(
                IngredientUse.from_data_pack(i) for i in _list(data, "ingredients", "recipe")
            ),
            glass=_optional_str(data, "glass"),
            method=_optional_str(data, "method"),
            utensils=tuple(str(u) for u in _list(data, "utensils", "recipe")),
            ingredient_records=tuple(
                IngredientExternal.from_data_pack(i)
                for i in _list(data, "ingredient_records", "recipe")
            ),
        )

    def to_data_pack(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "instructions": self.instructions,
            "garnish": self.garnish,
            "description": self.description,
            "source": self.source,
            "tags": list(self.tags),
            "images": [image.to_data_pack() for image in self.images],
            "ingredients": [use.to_data_pack() for use in self.ingredients],
            "glass": self.glass,
            "method": self.method,
            "utensils": list(self.utensils),
            "ingredient_records": [record.to_data_pack() for record in self.ingredient_records],
        }

    def get_ingredient_record(self, ingredient_id: str) -> Optional[IngredientExternal]:
        """Look up a referenced ingredient definition by external id."""
        for record in self.ingredient_records:
            if record.id == ingredient_id:
                return record
        return None

    def ingredient_name(self, ingredient_id: str) -> str:
        """Display name for an ingredient id, falling back to the id itself."""
        record = self.get_ingredient_record(ingredient_id)
        return record.name if record is not None else ingredient_id
