"""Common utilities shared by melodex packages."""

from .config import ConfigLoader
from .logging import setup_logging, get_logger, LogContext
from .logging_config import LoggingConfig
from .errors import (
    MelodexError, FileProcessingError, PermissionDeniedError,
    CorruptedFileError, UnsupportedFormatError
)
from .path_utils import normalize_path
from .checksums import compute_sha256_hex

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'get_logger',
    'LogContext',
    'MelodexError',
    'FileProcessingError',
    'PermissionDeniedError',
    'CorruptedFileError',
    'UnsupportedFormatError',
    'normalize_path',
    'compute_sha256_hex',
]
