"""
Recipe Import Service - Read data-pack archives back into portable recipes.

The reader only reconstructs RecipeExternal instances; matching them against
an existing bar (id remapping, de-duplication) is left to the caller.

Reading is two-step: the manifest is always validated first, then entries
are decoded lazily. A broken recipe entry is reported in the result and
does not stop the rest of the import.

Usage:
    from barpack.services.recipe_import_service import import_archive

    result = import_archive("exports/bar.zip")
    for recipe in result.recipes:
        print(recipe.name)
    print(result.get_summary())
"""

import json
import logging
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Iterator, List, Optional, Tuple

from barpack.services.exceptions import (
    ArchiveCorruptError,
    ArchiveNotFoundError,
    DataPackError,
    UnsupportedExportTypeError,
    UnsupportedVersionError,
)
from barpack.services.external_models import RecipeExternal
from barpack.services.logging_utils import get_service_logger, log_operation
from barpack.services.recipe_encoders import ExportType, get_encoder
from barpack.utils.config import get_config
from barpack.utils.constants import MANIFEST_FILENAME, MIN_SUPPORTED_VERSION, RECIPES_DIR
from barpack.utils.file_storage import LocalFileStorage

logger = get_service_logger(__name__)


def parse_version(version: Any) -> Tuple[int, ...]:
    """
    Parse a dotted version string ("1.2.0") into a comparable tuple.

    Raises:
        ValueError: If the version is not dotted integers
    """
    if not isinstance(version, str) or not version.strip():
        raise ValueError(f"Invalid version: {version!r}")
    return tuple(int(part) for part in version.strip().split("."))


@dataclass(frozen=True)
class Manifest:
    """Validated archive manifest."""

    version: str
    export_type: ExportType
    date: Optional[str] = None
    called_from: Optional[str] = None
    bar_id: Optional[int] = None
    units: Optional[str] = None
    schema: Optional[str] = None


@dataclass(frozen=True)
class EntryFailure:
    """A recipe entry that could not be decoded."""

    path: str
    cause: Exception

    def __str__(self) -> str:
        return f"{self.path}: {self.cause}"


class ImportResult:
    """Recipes decoded from an archive, plus per-entry failures."""

    def __init__(self, manifest: Manifest):
        self.manifest = manifest
        self.recipes: List[RecipeExternal] = []
        self.failures: List[EntryFailure] = []

    def add_recipe(self, recipe: RecipeExternal):
        self.recipes.append(recipe)

    def add_failure(self, path: str, cause: Exception):
        self.failures.append(EntryFailure(path, cause))

    def get_summary(self) -> str:
        """Get a user-friendly summary string of the import results."""
        lines = [
            f"Archive version {self.manifest.version} ({self.manifest.export_type.value})",
            f"Recipes: {len(self.recipes)}",
            f"Failed:  {len(self.failures)}",
        ]

        if self.failures:
            lines.append("")
            lines.append("Failures:")
            for failure in self.failures:
                lines.append(f"  - {failure}")

        return "\n".join(lines)


class ArchiveHandle:
    """
    Open data-pack archive.

    The manifest must be read (and pass validation) before any entry is
    decoded; iter_entries() and load_recipes() do this on their own.
    """

    def __init__(self, path: Path, zip_file: zipfile.ZipFile):
        self.path = path
        self._zip = zip_file
        self._manifest: Optional[Manifest] = None

    def read_manifest(self) -> Manifest:
        """
        Read and validate the archive manifest.

        Raises:
            ArchiveCorruptError: If the manifest is missing, unreadable or
                names an unknown export type
            UnsupportedVersionError: If the manifest version is outside
                MIN_SUPPORTED_VERSION .. running application version
        """
        if self._manifest is not None:
            return self._manifest

        try:
            raw = self._zip.read(MANIFEST_FILENAME)
        except KeyError:
            raise ArchiveCorruptError(str(self.path), f"missing {MANIFEST_FILENAME}")
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveCorruptError(str(self.path), f"cannot read {MANIFEST_FILENAME}: {e}")

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ArchiveCorruptError(str(self.path), f"invalid {MANIFEST_FILENAME}: {e}")
        if not isinstance(data, dict):
            raise ArchiveCorruptError(str(self.path), f"{MANIFEST_FILENAME} is not an object")

        version = data.get("version")
        max_version = get_config().app_version
        try:
            parsed = parse_version(version)
            supported = parse_version(MIN_SUPPORTED_VERSION) <= parsed <= parse_version(max_version)
        except ValueError:
            supported = False
        if not supported:
            raise UnsupportedVersionError(version, MIN_SUPPORTED_VERSION, max_version)

        try:
            export_type = ExportType(data.get("type"))
        except ValueError:
            raise ArchiveCorruptError(str(self.path), f"unknown export type {data.get('type')!r}")

        self._manifest = Manifest(
            version=version,
            export_type=export_type,
            date=data.get("date"),
            called_from=data.get("called_from"),
            bar_id=data.get("bar_id"),
            units=data.get("units"),
            schema=data.get("schema"),
        )
        logger.debug(f"Read manifest of {self.path}: {self._manifest}")
        return self._manifest

    def recipe_entry_names(self) -> List[str]:
        """Names of the recipe entries, in archive order."""
        file_name = get_encoder(self.read_manifest().export_type).file_name
        names = []
        for name in self._zip.namelist():
            parts = PurePosixPath(name).parts
            if len(parts) == 3 and parts[0] == RECIPES_DIR and parts[2] == file_name:
                names.append(name)
        return names

    def iter_entries(self) -> Iterator[Tuple[str, bytes]]:
        """
        Yield (path, bytes) for each recipe entry.

        The manifest is validated before this returns; entries are read
        lazily. Each call returns a new, independent iterator.
        """
        names = self.recipe_entry_names()
        return self._read_entries(names)

    def _read_entries(self, names: List[str]) -> Iterator[Tuple[str, bytes]]:
        for name in names:
            yield name, self._zip.read(name)

    def read_bytes(self, name: str) -> Optional[bytes]:
        """Read any entry by name, or None if the archive does not have it."""
        try:
            return self._zip.read(name)
        except KeyError:
            return None

    def load_recipes(self) -> ImportResult:
        """
        Decode every recipe entry.

        Entries that cannot be read or decoded are collected as failures
        and logged; they never abort the import.

        Raises:
            UnsupportedExportTypeError: If the archive holds a one-way format
        """
        manifest = self.read_manifest()
        encoder = get_encoder(manifest.export_type)
        if not encoder.round_trip:
            raise UnsupportedExportTypeError(manifest.export_type.value)

        result = ImportResult(manifest)
        names = self.recipe_entry_names()
        for name in names:
            try:
                data = encoder.decode(self._zip.read(name))
                result.add_recipe(RecipeExternal.from_data_pack(data))
            except (DataPackError, zipfile.BadZipFile, zlib.error, OSError) as e:
                log_operation(
                    logger,
                    operation="load_recipes",
                    outcome="entry_skipped",
                    level=logging.WARNING,
                    entry=name,
                    error=str(e),
                )
                result.add_failure(name, e)

        log_operation(
            logger,
            operation="load_recipes",
            outcome="success",
            archive_path=str(self.path),
            record_count=len(result.recipes),
            failure_count=len(result.failures),
        )
        return result

    def close(self):
        self._zip.close()

    def __enter__(self) -> "ArchiveHandle":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.close()
        return False


def open_archive(path) -> ArchiveHandle:
    """
    Open a data-pack archive for reading.

    Raises:
        ArchiveNotFoundError: If the file does not exist
        ArchiveCorruptError: If the file is not a readable ZIP archive
    """
    archive_path = Path(path).expanduser().absolute()
    if not archive_path.is_file():
        raise ArchiveNotFoundError(str(archive_path))

    try:
        zip_file = zipfile.ZipFile(archive_path, "r")
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveCorruptError(str(archive_path), str(e))

    return ArchiveHandle(archive_path, zip_file)


def import_archive(path) -> ImportResult:
    """Open an archive, decode all of its recipes and close it."""
    with open_archive(path) as handle:
        return handle.load_recipes()


def _is_plain_name(name: str) -> bool:
    """True if name is a single file or directory name with no separators."""
    if not name or name in (".", "..") or "\x00" in name:
        return False
    return "/" not in name and "\\" not in name and PurePosixPath(name).name == name


def materialize_images(
    handle: ArchiveHandle,
    recipe: RecipeExternal,
    storage: LocalFileStorage,
    target_dir: str,
) -> List[Path]:
    """
    Write a recipe's embedded images back to disk.

    Files go to "<target_dir>/<image file name>" in the given storage. An
    image listed by the recipe but missing from the archive is logged as a
    warning and skipped. So is an image whose recipe id or file name is not
    a plain path component, since both come from archive data.

    Returns:
        Paths of the written files, in image order
    """
    written = []
    for image in recipe.images:
        if not (_is_plain_name(recipe.id) and _is_plain_name(image.file_name)):
            log_operation(
                logger,
                operation="materialize_images",
                outcome="unsafe_path",
                level=logging.WARNING,
                recipe_id=recipe.id,
                file_name=image.file_name,
            )
            continue
        entry_name = f"{RECIPES_DIR}/{recipe.id}/{image.file_name}"
        data = handle.read_bytes(entry_name)
        if data is None:
            log_operation(
                logger,
                operation="materialize_images",
                outcome="image_missing",
                level=logging.WARNING,
                recipe_id=recipe.id,
                entry=entry_name,
            )
            continue
        try:
            written.append(storage.write_bytes(f"{target_dir}/{image.file_name}", data))
        except ValueError:
            log_operation(
                logger,
                operation="materialize_images",
                outcome="unsafe_path",
                level=logging.WARNING,
                recipe_id=recipe.id,
                target_dir=target_dir,
            )
    return written
