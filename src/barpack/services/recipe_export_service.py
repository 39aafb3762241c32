"""
Recipe Export Service - Package a bar's recipes into a data-pack archive.

The archive is a ZIP file with one directory per recipe:

    _meta.json                          manifest
    cocktails/<recipe-id>/recipe.<ext>  exactly one, in the requested format
    cocktails/<recipe-id>/<image file>  zero or more, original image bytes

ArchiveBuilder owns the open ZIP handle for its whole lifetime and is the
single writer; recipe workers hand it finished entries. The archive is
written to "<path>.part" and only renamed to its final name once the
manifest is in place, so a failed export never leaves a file at the
target path.

Usage:
    from barpack.services.recipe_export_service import export_bar
    from barpack.services.recipe_encoders import ExportType
    from barpack.services.unit_converter import ForceUnits

    result = export_bar(1, "exports/bar.zip", ExportType.SCHEMA, ForceUnits.ML)
    print(result.get_summary())
"""

import json
import logging
import os
import threading
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload, selectinload

from barpack.models.bar import Bar
from barpack.models.cocktail import Cocktail, CocktailIngredient, CocktailIngredientSubstitute
from barpack.models.ingredient import ComplexIngredient, Ingredient, IngredientPrice
from barpack.services.database import session_scope
from barpack.services.exceptions import (
    ArchiveCreationError,
    BarNotFound,
    ExportCancelled,
    ImageFileNotFound,
)
from barpack.services.external_models import RecipeExternal
from barpack.services.logging_utils import get_service_logger, log_operation
from barpack.services.recipe_encoders import ExportType, RecipeEncoder, get_encoder
from barpack.services.unit_converter import ForceUnits
from barpack.utils.config import get_config
from barpack.utils.constants import (
    INCOMPLETE_SUFFIX,
    MANIFEST_FILENAME,
    PARTIAL_SUFFIX,
    RECIPES_DIR,
    SCHEMA_URL,
)
from barpack.utils.datetime_utils import to_atom_string, utc_now
from barpack.utils.file_storage import LocalFileStorage

logger = get_service_logger(__name__)


# ============================================================================
# Archive Builder
# ============================================================================


class ArchiveState(str, Enum):
    CREATED = "created"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


class ArchiveBuilder:
    """
    Exclusive writer of one data-pack archive.

    States: CREATED -> OPEN -> CLOSED, or FAILED after abort(). Entry writes
    are serialized by an internal lock, so worker threads may call
    add_entry()/add_file() concurrently.

    Usable as a context manager: entering opens the archive, and leaving
    with an exception (or without close()) aborts it.
    """

    def __init__(self, path):
        self.path = Path(path).expanduser().absolute()
        self.partial_path = self.path.with_name(self.path.name + PARTIAL_SUFFIX)
        self.state = ArchiveState.CREATED
        self.entry_names: List[str] = []
        self._zip: Optional[zipfile.ZipFile] = None
        self._lock = threading.Lock()

    def open(self) -> "ArchiveBuilder":
        """
        Create the archive file.

        Raises:
            ArchiveCreationError: If the directory or file cannot be created
        """
        if self.state is not ArchiveState.CREATED:
            raise RuntimeError(f"Cannot open archive in state '{self.state.value}'")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._zip = zipfile.ZipFile(self.partial_path, "w", zipfile.ZIP_DEFLATED)
        except OSError as e:
            raise ArchiveCreationError(str(self.path), e)

        self.state = ArchiveState.OPEN
        logger.debug(f"Opened archive {self.partial_path}")
        return self

    def _require_open(self) -> None:
        if self.state is not ArchiveState.OPEN:
            raise RuntimeError(f"Archive is not open (state '{self.state.value}')")

    def add_entry(self, name: str, data: bytes) -> None:
        """Add an in-memory entry."""
        with self._lock:
            self._require_open()
            self._zip.writestr(name, data)
            self.entry_names.append(name)

    def add_file(self, name: str, source) -> None:
        """
        Copy a file from disk into the archive.

        Raises:
            ImageFileNotFound: If the source file does not exist
        """
        source = Path(source)
        if not source.is_file():
            raise ImageFileNotFound(None, str(source))

        with self._lock:
            self._require_open()
            if name in self.entry_names:
                logger.debug(f"Skipping duplicate archive entry {name}")
                return
            self._zip.write(source, name)
            self.entry_names.append(name)

    def close(self, manifest: Dict) -> Path:
        """
        Write the manifest, close the archive and move it to its final path.

        Returns:
            Absolute path of the finished archive

        Raises:
            ArchiveCreationError: If the archive cannot be finalized
        """
        with self._lock:
            self._require_open()
            try:
                self._zip.writestr(
                    MANIFEST_FILENAME,
                    json.dumps(manifest, indent=4, ensure_ascii=False) + "\n",
                )
                self._zip.close()
                os.replace(self.partial_path, self.path)
            except OSError as e:
                self._discard()
                raise ArchiveCreationError(str(self.path), e)

            self.state = ArchiveState.CLOSED
        return self.path

    def close_incomplete(self) -> Path:
        """
        Close the archive without a manifest and keep it as "<path>.incomplete".

        The result is not importable; it only preserves what was written.
        """
        incomplete_path = self.path.with_name(self.path.name + INCOMPLETE_SUFFIX)
        with self._lock:
            self._require_open()
            self._zip.close()
            os.replace(self.partial_path, incomplete_path)
            self.state = ArchiveState.CLOSED
        return incomplete_path

    def abort(self) -> None:
        """Close and delete the partial archive. No-op unless the archive is open."""
        with self._lock:
            if self.state is not ArchiveState.OPEN:
                return
            self._discard()

    def _discard(self) -> None:
        try:
            self._zip.close()
        except (OSError, ValueError) as e:
            logger.warning(f"Error closing aborted archive {self.partial_path}: {e}")
        finally:
            self.partial_path.unlink(missing_ok=True)
            self.state = ArchiveState.FAILED
        logger.debug(f"Discarded partial archive {self.partial_path}")

    def __enter__(self) -> "ArchiveBuilder":
        if self.state is ArchiveState.CREATED:
            self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.abort()
        return False


# ============================================================================
# Export Result
# ============================================================================


class ExportResult:
    """Result of an export operation."""

    def __init__(self, file_path: str, record_count: int, export_type: str, units: str):
        self.file_path = file_path
        self.record_count = record_count
        self.export_type = export_type
        self.units = units
        self.missing_images: List[str] = []

    def add_missing_image(self, path: str):
        """Record an image that could not be copied into the archive."""
        self.missing_images.append(path)

    def get_summary(self) -> str:
        """Get a summary string of the export results."""
        lines = [
            f"Exported {self.record_count} recipes to {self.file_path}",
            f"  Format: {self.export_type}",
            f"  Units:  {self.units}",
        ]

        if self.missing_images:
            lines.append("")
            lines.append(f"Missing images ({len(self.missing_images)}):")
            for path in self.missing_images:
                lines.append(f"  - {path}")

        return "\n".join(lines)


# ============================================================================
# Export
# ============================================================================


@dataclass
class _ImageSource:
    image_id: int
    file_name: str
    path: Path


@dataclass
class _RecipeJob:
    recipe: RecipeExternal
    images: List[_ImageSource] = field(default_factory=list)


def _load_cocktails(session: Session, bar_id: int) -> List[Cocktail]:
    """Load a bar's cocktails with every relationship the mapper reads."""
    ingredient_graph = (
        selectinload(Ingredient.parent_ingredient),
        selectinload(Ingredient.images),
        selectinload(Ingredient.ingredient_parts).joinedload(ComplexIngredient.ingredient),
        selectinload(Ingredient.prices).joinedload(IngredientPrice.price_category),
        joinedload(Ingredient.category),
        joinedload(Ingredient.calculator),
    )
    return (
        session.query(Cocktail)
        .options(
            joinedload(Cocktail.glass),
            joinedload(Cocktail.method),
            selectinload(Cocktail.images),
            selectinload(Cocktail.tags),
            selectinload(Cocktail.utensils),
            selectinload(Cocktail.ingredients).options(
                joinedload(CocktailIngredient.ingredient).options(*ingredient_graph),
                selectinload(CocktailIngredient.substitutes)
                .joinedload(CocktailIngredientSubstitute.ingredient)
                .options(*ingredient_graph),
            ),
        )
        .filter(Cocktail.bar_id == bar_id)
        .order_by(Cocktail.name, Cocktail.id)
        .all()
    )


def _write_recipe(
    builder: ArchiveBuilder,
    encoder: RecipeEncoder,
    job: _RecipeJob,
    cancel_event: Optional[threading.Event],
) -> Optional[List[str]]:
    """
    Copy a recipe's images and add its encoded entry.

    Returns:
        Paths of missing images, or None when skipped because of cancellation
    """
    if cancel_event is not None and cancel_event.is_set():
        return None

    base = f"{RECIPES_DIR}/{job.recipe.id}"
    missing = []
    for image in job.images:
        try:
            builder.add_file(f"{base}/{image.file_name}", image.path)
        except ImageFileNotFound as e:
            log_operation(
                logger,
                operation="export_bar",
                outcome="image_missing",
                level=logging.WARNING,
                recipe_id=job.recipe.id,
                image_id=image.image_id,
                image_path=e.path,
            )
            missing.append(e.path)

    builder.add_entry(f"{base}/{encoder.file_name}", encoder.encode(job.recipe))
    return missing


def _write_recipes(
    builder: ArchiveBuilder,
    encoder: RecipeEncoder,
    jobs: List[_RecipeJob],
    cancel_event: Optional[threading.Event],
    max_workers: int,
) -> Tuple[int, List[str]]:
    if max_workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = list(
                executor.map(lambda job: _write_recipe(builder, encoder, job, cancel_event), jobs)
            )
    else:
        outcomes = [_write_recipe(builder, encoder, job, cancel_event) for job in jobs]

    written = [missing for missing in outcomes if missing is not None]
    return len(written), [path for missing in written for path in missing]


def export_bar(
    bar_id: int,
    filename,
    export_type=ExportType.SCHEMA,
    units=ForceUnits.ORIGINAL,
    session: Optional[Session] = None,
    storage: Optional[LocalFileStorage] = None,
    cancel_event: Optional[threading.Event] = None,
    max_workers: int = 1,
    called_from: Optional[str] = None,
) -> ExportResult:
    """
    Export every cocktail of a bar into a data-pack archive.

    A missing image file is logged as a warning and reported in the result;
    the rest of the export goes on. Any other failure while writing entries
    deletes the partial archive and re-raises.

    Args:
        bar_id: Bar to export
        filename: Target archive path
        export_type: ExportType (or its value) of the recipe entries
        units: ForceUnits target for ingredient amounts (ORIGINAL keeps them)
        session: Optional SQLAlchemy session for transactional composition
        storage: File storage holding the images (default: configured uploads dir)
        cancel_event: When set, remaining recipes are skipped and the export
            is left as "<filename>.incomplete"
        max_workers: Worker threads for image copy and encoding
        called_from: Free-text origin recorded in the manifest

    Returns:
        ExportResult with the absolute archive path

    Raises:
        BarNotFound: If the bar does not exist
        ArchiveCreationError: If the archive cannot be created
        ExportCancelled: If cancel_event was set before the export finished
    """
    if session is not None:
        return _export_bar_impl(
            bar_id, filename, export_type, units, session, storage, cancel_event,
            max_workers, called_from,
        )
    with session_scope() as sess:
        return _export_bar_impl(
            bar_id, filename, export_type, units, sess, storage, cancel_event,
            max_workers, called_from,
        )


def _export_bar_impl(
    bar_id: int,
    filename,
    export_type,
    units,
    session: Session,
    storage: Optional[LocalFileStorage],
    cancel_event: Optional[threading.Event],
    max_workers: int,
    called_from: Optional[str],
) -> ExportResult:
    """Internal implementation of bar export."""
    export_type = ExportType(export_type)
    units = ForceUnits(units)
    encoder = get_encoder(export_type)
    config = get_config()
    if storage is None:
        storage = LocalFileStorage(config.uploads_dir)

    bar = session.get(Bar, bar_id)
    if bar is None:
        raise BarNotFound(bar_id)

    # Mapping reads the session, so it stays on this thread
    jobs = []
    for cocktail in _load_cocktails(session, bar_id):
        jobs.append(
            _RecipeJob(
                recipe=RecipeExternal.from_model(cocktail, to_units=units),
                images=[
                    _ImageSource(image.id, image.get_file_name(), storage.resolve_path(image.file_path))
                    for image in cocktail.images
                ],
            )
        )

    with ArchiveBuilder(filename) as builder:
        record_count, missing_images = _write_recipes(
            builder, encoder, jobs, cancel_event, max(1, max_workers)
        )

        if cancel_event is not None and cancel_event.is_set():
            incomplete_path = builder.close_incomplete()
            log_operation(
                logger,
                operation="export_bar",
                outcome="cancelled",
                level=logging.WARNING,
                bar_id=bar_id,
                record_count=record_count,
                archive_path=str(incomplete_path),
            )
            raise ExportCancelled(str(incomplete_path), record_count)

        manifest = {
            "version": config.app_version,
            "date": to_atom_string(utc_now()),
            "called_from": called_from or config.app_name,
            "type": export_type.value,
            "bar_id": bar_id,
            "units": units.value,
            "schema": SCHEMA_URL if export_type is ExportType.SCHEMA else None,
        }
        file_path = builder.close(manifest)

    result = ExportResult(str(file_path), record_count, export_type.value, units.value)
    for path in missing_images:
        result.add_missing_image(path)

    log_operation(
        logger,
        operation="export_bar",
        outcome="success",
        bar_id=bar_id,
        record_count=record_count,
        missing_images=len(missing_images),
        archive_path=str(file_path),
    )
    return result
