"""
Image model for cocktail and ingredient photos.

An image row points at a file kept in the uploads storage. The file itself
may have gone missing (manual cleanup, failed restore); export reports
such files as missing images.
"""

from pathlib import PurePosixPath

from sqlalchemy import Column, ForeignKey, Integer, String, Index

from .base import BaseModel


class Image(BaseModel):
    """
    Image attached to a cocktail or an ingredient.

    Attributes:
        cocktail_id: Owning cocktail (nullable)
        ingredient_id: Owning ingredient (nullable)
        file_path: Path of the file, relative to the uploads storage root
        file_extension: Extension without the dot (e.g., "jpg")
        copyright: Attribution text
        sort: Display order (ascending)
        placeholder_hash: Compact hash used to render a blurred preview
    """

    __tablename__ = "images"

    cocktail_id = Column(Integer, ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=True)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=True
    )

    file_path = Column(String(500), nullable=False)
    file_extension = Column(String(10), nullable=True)
    copyright = Column(String(255), nullable=True)
    sort = Column(Integer, nullable=False, default=0)
    placeholder_hash = Column(String(100), nullable=True)

    __table_args__ = (
        Index("idx_image_cocktail", "cocktail_id"),
        Index("idx_image_ingredient", "ingredient_id"),
    )

    def get_file_name(self) -> str:
        """Return the stored file name without directories."""
        return PurePosixPath(self.file_path.replace("\\", "/")).name
