"""
Cocktail models.

This module contains:
- Cocktail: Recipe with instructions and catalog references
- CocktailIngredient: Ordered ingredient line of a cocktail
- CocktailIngredientSubstitute: Alternative ingredient for a line
- cocktail_tags / cocktail_utensils: Many-to-many association tables
"""

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base, BaseModel
from barpack.utils.slug_utils import external_id


cocktail_tags = Table(
    "cocktail_tags",
    Base.metadata,
    Column("cocktail_id", Integer, ForeignKey("cocktails.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

cocktail_utensils = Table(
    "cocktail_utensils",
    Base.metadata,
    Column("cocktail_id", Integer, ForeignKey("cocktails.id", ondelete="CASCADE"), primary_key=True),
    Column("utensil_id", Integer, ForeignKey("utensils.id", ondelete="CASCADE"), primary_key=True),
)


class Cocktail(BaseModel):
    """
    Cocktail recipe.

    Attributes:
        bar_id: Owning bar
        name: Cocktail name (required)
        instructions: Preparation steps (required)
        garnish: Garnish description
        description: Free text
        source: Where the recipe came from (book, URL, ...)
        glass_id: Serving glass
        cocktail_method_id: Preparation method
    """

    __tablename__ = "cocktails"

    bar_id = Column(Integer, ForeignKey("bars.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    instructions = Column(Text, nullable=False)
    garnish = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    source = Column(String(500), nullable=True)
    glass_id = Column(Integer, ForeignKey("glasses.id", ondelete="SET NULL"), nullable=True)
    cocktail_method_id = Column(
        Integer, ForeignKey("cocktail_methods.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    bar = relationship("Bar", back_populates="cocktails")
    glass = relationship("Glass", lazy="joined")
    method = relationship("CocktailMethod", lazy="joined")
    ingredients = relationship(
        "CocktailIngredient",
        back_populates="cocktail",
        order_by="CocktailIngredient.sort",
        cascade="all, delete-orphan",
        lazy="select",
    )
    images = relationship(
        "Image",
        primaryjoin="Cocktail.id == Image.cocktail_id",
        order_by="Image.sort",
        cascade="all, delete-orphan",
        lazy="select",
    )
    tags = relationship("Tag", secondary=cocktail_tags, order_by="Tag.name", lazy="select")
    utensils = relationship(
        "Utensil", secondary=cocktail_utensils, order_by="Utensil.name", lazy="select"
    )

    __table_args__ = (
        Index("idx_cocktail_bar", "bar_id"),
        Index("idx_cocktail_name", "name"),
    )

    def get_external_id(self) -> str:
        """Stable export-scoped identifier (e.g., "old-fashioned-12")."""
        return external_id(self.name, self.id)


class CocktailIngredient(BaseModel):
    """
    Ingredient line of a cocktail.

    Attributes:
        cocktail_id: Owning cocktail
        ingredient_id: Ingredient used
        amount: Amount (non-negative)
        amount_max: Upper bound when the amount is a range
        units: Unit symbol (e.g., "ml", "oz", "dash"); unknown symbols are kept as-is
        optional: Line can be left out
        is_specified: This exact ingredient is required (no parent/child swaps)
        note: Free text (e.g., "freshly squeezed")
        sort: Position in the recipe (ascending)
    """

    __tablename__ = "cocktail_ingredients"

    cocktail_id = Column(Integer, ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )
    amount = Column(Float, nullable=False, default=0.0)
    amount_max = Column(Float, nullable=True)
    units = Column(String(50), nullable=True)
    optional = Column(Boolean, nullable=False, default=False)
    is_specified = Column(Boolean, nullable=False, default=False)
    note = Column(String(255), nullable=True)
    sort = Column(Integer, nullable=False, default=0)

    cocktail = relationship("Cocktail", back_populates="ingredients")
    ingredient = relationship("Ingredient", lazy="joined")
    substitutes = relationship(
        "CocktailIngredientSubstitute",
        back_populates="cocktail_ingredient",
        order_by="CocktailIngredientSubstitute.id",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (Index("idx_cocktail_ingredient_cocktail", "cocktail_id"),)

    def __repr__(self) -> str:
        return (
            f"CocktailIngredient(cocktail_id={self.cocktail_id}, "
            f"ingredient_id={self.ingredient_id}, amount={self.amount}, units='{self.units}')"
        )


class CocktailIngredientSubstitute(BaseModel):
    """
    Alternative ingredient for a cocktail ingredient line.

    Amount fields are optional; when absent the line's own amount applies.
    """

    __tablename__ = "cocktail_ingredient_substitutes"

    cocktail_ingredient_id = Column(
        Integer, ForeignKey("cocktail_ingredients.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )
    amount = Column(Float, nullable=True)
    amount_max = Column(Float, nullable=True)
    units = Column(String(50), nullable=True)

    cocktail_ingredient = relationship("CocktailIngredient", back_populates="substitutes")
    ingredient = relationship("Ingredient", lazy="joined")
