"""Service layer exception classes for Bar Pack.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── DatabaseError
    ├── BarNotFound
    ├── UnitConversionError            (recoverable: keep the original unit)
    │   ├── UnknownUnitError
    │   └── IncompatibleUnitError
    └── DataPackError
        ├── ArchiveCreationError       (fatal for the export)
        ├── ExportCancelled
        ├── ImageFileNotFound          (degraded to a warning during export)
        ├── EncodingError              (internal invariant violation)
        ├── MalformedRecordError       (fatal for one record only)
        ├── ArchiveNotFoundError       (fatal for the import)
        ├── ArchiveCorruptError        (fatal for the import)
        ├── UnsupportedVersionError    (fatal for the import)
        └── UnsupportedExportTypeError (fatal for the import)
"""

from typing import Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class BarNotFound(ServiceError):
    """Raised when a bar cannot be found by ID."""

    def __init__(self, bar_id: int):
        self.bar_id = bar_id
        super().__init__(f"Bar with ID {bar_id} not found")


# ============================================================================
# Unit Conversion
# ============================================================================


class UnitConversionError(ServiceError):
    """Base class for unit conversion failures.

    Callers treat these as non-fatal and keep the original amount and unit.
    """

    pass


class UnknownUnitError(UnitConversionError):
    """Raised when a unit symbol is not recognized.

    Example:
        >>> raise UnknownUnitError("splosh")
        UnknownUnitError: Unknown unit: 'splosh'
    """

    def __init__(self, unit: Optional[str]):
        self.unit = unit
        super().__init__(f"Unknown unit: '{unit}'")


class IncompatibleUnitError(UnitConversionError):
    """Raised when converting between unit families (e.g., volume to weight).

    Example:
        >>> raise IncompatibleUnitError("ml", "g")
        IncompatibleUnitError: Cannot convert ml to g: incompatible unit types
    """

    def __init__(self, from_unit: str, to_unit: str):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(f"Cannot convert {from_unit} to {to_unit}: incompatible unit types")


# ============================================================================
# Data Pack (export / import)
# ============================================================================


class DataPackError(ServiceError):
    """Base class for data-pack export and import errors."""

    pass


class ArchiveCreationError(DataPackError):
    """Raised when the export archive file or its directory cannot be created.

    Args:
        path: Path the archive was supposed to be written to
        original_error: Underlying OS or zip error, if any
    """

    def __init__(self, path: str, original_error: Exception = None):
        self.path = path
        self.original_error = original_error
        message = f'Error creating zip archive with filepath "{path}"'
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)


class ExportCancelled(DataPackError):
    """Raised when an export is cancelled before completion.

    Args:
        path: Where the incomplete archive (no manifest) was left
        records_written: Number of recipes written before cancellation
    """

    def __init__(self, path: str, records_written: int):
        self.path = path
        self.records_written = records_written
        super().__init__(
            f"Export cancelled after {records_written} recipe(s); incomplete archive left at {path}"
        )


class ImageFileNotFound(DataPackError):
    """Raised when an image row points at a file that does not exist.

    Example:
        >>> raise ImageFileNotFound(7, "/data/uploads/cocktails/1/missing.jpg")
        ImageFileNotFound: Image file for image 7 not found: /data/uploads/cocktails/1/missing.jpg
    """

    def __init__(self, image_id: Optional[int], path: str):
        self.image_id = image_id
        self.path = path
        super().__init__(f"Image file for image {image_id} not found: {path}")


class EncodingError(DataPackError):
    """Raised when an encoder cannot serialize a record.

    This indicates a defect (the mapper should always produce encodable
    records), not a user-facing retryable condition.
    """

    def __init__(self, export_type: str, record_id: str, original_error: Exception = None):
        self.export_type = export_type
        self.record_id = record_id
        self.original_error = original_error
        super().__init__(f"Cannot encode record '{record_id}' as {export_type}: {original_error}")


class MalformedRecordError(DataPackError):
    """Raised when a record from an archive or spreadsheet is unusable.

    Args:
        record_type: Kind of record (e.g., "recipe", "ingredient")
        reason: What is wrong with it
    """

    def __init__(self, record_type: str, reason: str):
        self.record_type = record_type
        self.reason = reason
        super().__init__(f"Malformed {record_type} record: {reason}")


class ArchiveNotFoundError(DataPackError):
    """Raised when the archive to import does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Archive not found: {path}")


class ArchiveCorruptError(DataPackError):
    """Raised when the archive cannot be read or its manifest is invalid."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Archive {path} is corrupt: {reason}")


class UnsupportedVersionError(DataPackError):
    """Raised when the manifest version is outside the supported range.

    Example:
        >>> raise UnsupportedVersionError("9.0.0", "0.1.0", "0.1.0")
        UnsupportedVersionError: Archive version '9.0.0' is not supported (supported: 0.1.0 - 0.1.0)
    """

    def __init__(self, version, min_version: str, max_version: str):
        self.version = version
        self.min_version = min_version
        self.max_version = max_version
        super().__init__(
            f"Archive version '{version}' is not supported "
            f"(supported: {min_version} - {max_version})"
        )


class UnsupportedExportTypeError(DataPackError):
    """Raised when importing an archive written in a lossy, one-way format."""

    def __init__(self, export_type: str):
        self.export_type = export_type
        super().__init__(f"Archives of type '{export_type}' cannot be imported")
