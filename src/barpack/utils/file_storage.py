"""
Local file storage used by the data-pack engine.

Export resolves stored image paths through it and import writes image
bytes back to disk with it, so callers and tests can point both at any
directory.

Usage:
    from barpack.utils.file_storage import LocalFileStorage

    storage = LocalFileStorage(config.uploads_dir)
    path = storage.resolve_path("cocktails/12/photo.jpg")
"""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class LocalFileStorage:
    """Filesystem access rooted at a base directory.

    Keys are relative paths resolved against the root. Absolute keys and
    keys that resolve outside the root are rejected.
    """

    def __init__(self, root: PathLike):
        self.root = Path(root)

    def resolve_path(self, key: PathLike) -> Path:
        """
        Return the absolute path for a storage key.

        Raises:
            ValueError: If the key is absolute or escapes the storage root
        """
        key_path = Path(key)
        if key_path.is_absolute() or ".." in key_path.parts:
            raise ValueError(f"Invalid storage key: {key}")
        root = self.root.resolve()
        path = (root / key_path).resolve()
        if not path.is_relative_to(root):
            raise ValueError(f"Invalid storage key: {key}")
        return path

    def write_bytes(self, key: PathLike, data: bytes) -> Path:
        """Write bytes to a key, creating parent directories as needed."""
        path = self.resolve_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug(f"Saved {len(data)} bytes to {path}")
        return path

    def __repr__(self) -> str:
        return f"LocalFileStorage(root='{self.root}')"
