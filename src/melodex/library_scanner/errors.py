"""Error classes for the library scanner."""

from melodex.common import (
    MelodexError,
    PermissionDeniedError,
    CorruptedFileError,
    UnsupportedFormatError,
)


class ScannerError(MelodexError):
    """Base error for library scanner operations."""
    pass


class WorkerError(ScannerError):
    """A worker stream or pool job failed.

    The originating worker kind ('scanner', 'cover-writer', 'scraper') is
    available as ``context['worker']``.
    """
    pass


class CatalogError(ScannerError):
    """A catalog read or write failed."""
    pass


class CoverStoreError(ScannerError):
    """A cover buffer could not be decoded or written."""
    pass


def classify_error(exception: Exception) -> str:
    """
    Classify an exception into an error category.

    Args:
        exception: The exception to classify

    Returns:
        Error category string: 'permission', 'corrupted', 'io', 'parse',
        'unsupported', 'worker', 'catalog', 'cover' or 'unknown'
    """
    if isinstance(exception, WorkerError):
        return 'worker'
    elif isinstance(exception, CatalogError):
        return 'catalog'
    elif isinstance(exception, CoverStoreError):
        return 'cover'
    elif isinstance(exception, (PermissionDeniedError, PermissionError)):
        return 'permission'
    elif isinstance(exception, CorruptedFileError):
        return 'corrupted'
    elif isinstance(exception, UnsupportedFormatError):
        return 'unsupported'
    elif isinstance(exception, OSError):
        return 'io'
    elif isinstance(exception, (ValueError, KeyError)):
        return 'parse'
    else:
        return 'unknown'
