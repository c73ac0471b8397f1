"""Exceptions raised by readerly.

"No extractable article" is not an error: :func:`readerly.parse` returns
``None`` for it.
"""

from __future__ import annotations


class ReadabilityError(Exception):
    """Base class for every readerly error."""


class InvalidDocumentError(ReadabilityError):
    """Raised when the input cannot be turned into an HTML tree at all.

    Attributes:
        reason -- short description of what was wrong with the input
    """

    def __init__(self, message: str, reason: str = "") -> None:
        super().__init__(message)
        self.reason = reason


class ConfigError(ReadabilityError, ValueError):
    """Raised when extraction options are invalid (e.g. a bad video regex)."""
