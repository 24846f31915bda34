"""Base error definitions for melodex packages."""

from typing import Any, Dict, Optional


class MelodexError(Exception):
    """Base exception for all melodex errors.

    Keyword arguments are kept in ``context`` so log lines and scan reports
    can carry them without parsing the message.
    """

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class FileProcessingError(MelodexError):
    """An audio file under a library root could not be read."""

    @property
    def path(self) -> Optional[str]:
        return self.context.get('path')


class PermissionDeniedError(FileProcessingError):
    pass


class CorruptedFileError(FileProcessingError):
    """Tags or stream data could not be decoded."""
    pass


class UnsupportedFormatError(FileProcessingError):
    pass
