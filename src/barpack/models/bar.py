"""
Bar model.

A bar owns every other record: cocktails, ingredients, price categories and
the small catalogs (glasses, methods, utensils, tags). Exports are always
scoped to one bar.
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class Bar(BaseModel):
    """
    Bar model.

    Attributes:
        name: Bar name (required)
        slug: Public URL identifier
        subtitle: Short tagline
        description: Longer description
    """

    __tablename__ = "bars"

    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=True, unique=True)
    subtitle = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)

    cocktails = relationship(
        "Cocktail", back_populates="bar", cascade="all, delete-orphan", lazy="select"
    )
    ingredients = relationship(
        "Ingredient", back_populates="bar", cascade="all, delete-orphan", lazy="select"
    )
    price_categories = relationship(
        "PriceCategory", back_populates="bar", cascade="all, delete-orphan", lazy="select"
    )
