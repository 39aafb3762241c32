"""Bar Pack - recipe export/import data-pack engine for bar management."""

__version__ = "0.1.0"
