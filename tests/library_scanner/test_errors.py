"""Tests for library scanner error classification."""

import pytest

from melodex.common import CorruptedFileError, MelodexError, PermissionDeniedError, UnsupportedFormatError
from melodex.library_scanner.errors import (
    CatalogError,
    CoverStoreError,
    ScannerError,
    WorkerError,
    classify_error,
)


class TestErrorHierarchy:
    """Test error classes and context."""

    def test_context_is_kept(self):
        """Test that keyword context is stored on the error."""
        error = WorkerError("stream failed", worker="scanner")
        assert error.message == "stream failed"
        assert error.context == {"worker": "scanner"}
        assert str(error) == "stream failed"

    def test_hierarchy(self):
        """Test that scanner errors share the melodex base."""
        for cls in (WorkerError, CatalogError, CoverStoreError):
            assert issubclass(cls, ScannerError)
            assert issubclass(cls, MelodexError)


class TestClassifyError:
    """Test classify_error."""

    @pytest.mark.parametrize("error, category", [
        (WorkerError("x"), "worker"),
        (CatalogError("x"), "catalog"),
        (CoverStoreError("x"), "cover"),
        (PermissionDeniedError("x"), "permission"),
        (PermissionError("x"), "permission"),
        (CorruptedFileError("x"), "corrupted"),
        (UnsupportedFormatError("x"), "unsupported"),
        (FileNotFoundError("x"), "io"),
        (ValueError("x"), "parse"),
        (RuntimeError("x"), "unknown"),
    ])
    def test_categories(self, error, category):
        """Test the category of each error type."""
        assert classify_error(error) == category
