"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .bar import Bar
from .catalog import Glass, CocktailMethod, Utensil, Tag, IngredientCategory
from .image import Image
from .ingredient import (
    Ingredient,
    ComplexIngredient,
    PriceCategory,
    IngredientPrice,
    PriceCalculator,
)
from .cocktail import (
    Cocktail,
    CocktailIngredient,
    CocktailIngredientSubstitute,
    cocktail_tags,
    cocktail_utensils,
)

__all__ = [
    "Base",
    "BaseModel",
    "Bar",
    # Catalogs
    "Glass",
    "CocktailMethod",
    "Utensil",
    "Tag",
    "IngredientCategory",
    # Ingredients and pricing
    "Ingredient",
    "ComplexIngredient",
    "PriceCategory",
    "IngredientPrice",
    "PriceCalculator",
    # Cocktails
    "Cocktail",
    "CocktailIngredient",
    "CocktailIngredientSubstitute",
    "cocktail_tags",
    "cocktail_utensils",
    "Image",
]
