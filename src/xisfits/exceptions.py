"""
Custom exceptions for xisfits.

Provides a hierarchy of exceptions for the XISF to FITS conversion pipeline.
"""

import os
from typing import Optional


class XisfitsError(Exception):
    """Base exception for all xisfits errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 phase: Optional[str] = None, **kwargs):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.phase = phase
        self.details = kwargs

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class FileProcessingError(XisfitsError):
    """Raised when an operation on a specific file fails."""

    def __init__(self, message: str, file_path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.file_path = file_path


class ParseError(FileProcessingError):
    """Raised when the XISF header is malformed or lacks a required field."""
    pass


class ConversionIOError(FileProcessingError):
    """Raised when a file cannot be opened, read or written, or a data block is short."""
    pass


class UnsupportedTypeError(XisfitsError):
    """Raised when a sample format has no FITS conversion."""

    def __init__(self, message: str, sample_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.sample_format = sample_format


class ConfigurationError(XisfitsError):
    """Raised when configuration is invalid or missing."""
    pass


class FileOperation:
    """Context manager that removes registered temporary files unless committed."""

    def __init__(self, temp_files: list = None):
        self.temp_files = temp_files or []

    def add_temp_file(self, file_path: str):
        """Add a temporary file to be cleaned up."""
        self.temp_files.append(file_path)

    def commit(self):
        """Keep every registered file; nothing is removed on exit."""
        self.temp_files = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for temp_file in self.temp_files:
            try:
                if os.path.exists(temp_file):
                    os.remove(temp_file)
            except OSError:
                pass  # Best effort cleanup, the original error still propagates
        return False
