"""
Ingredient models.

This module contains:
- Ingredient: Bar ingredient with optional parent (e.g., "Bourbon" under "Whiskey")
- ComplexIngredient: Junction linking an ingredient to the ingredients it is made from
- IngredientPrice: Price of an ingredient in a price category
- PriceCategory: Named pricing context with a currency (e.g., "Retail", "Wholesale")
- PriceCalculator: Reference to an external pricing calculator definition
"""

from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text, Index
from sqlalchemy.orm import relationship

from .base import BaseModel
from barpack.utils.slug_utils import external_id


class Ingredient(BaseModel):
    """
    Ingredient model.

    Attributes:
        bar_id: Owning bar
        name: Ingredient name (required)
        parent_ingredient_id: Optional parent ingredient (a back-reference, not ownership)
        strength: Alcohol by volume, percentage 0-100
        description: Free text
        origin: Country or region of origin
        color: Display color (e.g., "#c27c0e")
        category_id: Optional IngredientCategory
        calculator_id: Optional PriceCalculator
    """

    __tablename__ = "ingredients"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    parent_ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="SET NULL"), nullable=True
    )
    strength = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=True)
    origin = Column(String(200), nullable=True)
    color = Column(String(20), nullable=True)
    category_id = Column(
        Integer, ForeignKey("ingredient_categories.id", ondelete="SET NULL"), nullable=True
    )
    calculator_id = Column(
        Integer, ForeignKey("price_calculators.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    bar = relationship("Bar", back_populates="ingredients")
    parent_ingredient = relationship("Ingredient", remote_side="Ingredient.id", lazy="select")
    category = relationship("IngredientCategory", lazy="joined")
    calculator = relationship("PriceCalculator", lazy="joined")
    images = relationship(
        "Image",
        primaryjoin="Ingredient.id == Image.ingredient_id",
        order_by="Image.sort",
        cascade="all, delete-orphan",
        lazy="select",
    )
    ingredient_parts = relationship(
        "ComplexIngredient",
        foreign_keys="ComplexIngredient.main_ingredient_id",
        cascade="all, delete-orphan",
        lazy="select",
    )
    prices = relationship(
        "IngredientPrice",
        back_populates="ingredient",
        order_by="IngredientPrice.id",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        Index("idx_ingredient_bar", "bar_id"),
        Index("idx_ingredient_name", "name"),
    )

    def get_external_id(self) -> str:
        """Stable export-scoped identifier (e.g., "bourbon-whiskey-4")."""
        return external_id(self.name, self.id)


class ComplexIngredient(BaseModel):
    """
    Junction table: `main_ingredient` is made from `ingredient`.

    Example: a house "Rich Simple Syrup" made from "Demerara Sugar" and "Water".
    """

    __tablename__ = "complex_ingredients"

    main_ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id = Column(Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)

    ingredient = relationship("Ingredient", foreign_keys=[ingredient_id], lazy="joined")


class PriceCategory(BaseModel):
    """
    Named pricing context for a bar.

    Attributes:
        bar_id: Owning bar
        name: Category name (e.g., "Retail")
        currency: ISO 4217 currency code (e.g., "EUR")
        description: Free text
    """

    __tablename__ = "price_categories"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    currency = Column(String(3), nullable=False)
    description = Column(Text, nullable=True)

    bar = relationship("Bar", back_populates="price_categories")

    def get_external_id(self) -> str:
        return external_id(self.name, self.id)


class IngredientPrice(BaseModel):
    """
    Price paid for an amount of an ingredient.

    Attributes:
        ingredient_id: Priced ingredient
        price_category_id: Pricing context
        price: Price in minor currency units (e.g., cents)
        amount: Amount of ingredient the price buys (e.g., 700)
        units: Unit of `amount` (e.g., "ml")
        description: Free text (e.g., "700ml bottle")
    """

    __tablename__ = "ingredient_prices"

    ingredient_id = Column(Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    price_category_id = Column(
        Integer, ForeignKey("price_categories.id", ondelete="CASCADE"), nullable=False
    )
    price = Column(Integer, nullable=False, default=0)
    amount = Column(Float, nullable=False)
    units = Column(String(50), nullable=False)
    description = Column(String(255), nullable=True)

    ingredient = relationship("Ingredient", back_populates="prices")
    price_category = relationship("PriceCategory", lazy="joined")


class PriceCalculator(BaseModel):
    """Reference to a pricing calculator definition kept outside this package."""

    __tablename__ = "price_calculators"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    def get_external_id(self) -> str:
        return external_id(self.name, self.id)
