"""
Small per-bar catalogs referenced by cocktails.

This module contains:
- Glass: Serving glass
- CocktailMethod: Preparation method (shake, stir, build, ...)
- Utensil: Bar tool
- Tag: Free-form label
- IngredientCategory: Ingredient grouping
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, Index

from .base import BaseModel


class Glass(BaseModel):
    """Serving glass (e.g., "Coupe", "Rocks")."""

    __tablename__ = "glasses"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    __table_args__ = (Index("idx_glass_bar", "bar_id"),)


class CocktailMethod(BaseModel):
    """Preparation method (e.g., "Shake", "Stir")."""

    __tablename__ = "cocktail_methods"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    dilution_percentage = Column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_cocktail_method_bar", "bar_id"),)


class Utensil(BaseModel):
    """Bar tool (e.g., "Jigger", "Hawthorne strainer")."""

    __tablename__ = "utensils"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    __table_args__ = (Index("idx_utensil_bar", "bar_id"),)


class Tag(BaseModel):
    """Free-form cocktail label (e.g., "Tiki", "Classic")."""

    __tablename__ = "tags"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)

    __table_args__ = (Index("idx_tag_bar", "bar_id"),)


class IngredientCategory(BaseModel):
    """Ingredient grouping (e.g., "Spirits", "Bitters")."""

    __tablename__ = "ingredient_categories"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
