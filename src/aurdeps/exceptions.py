"""Custom exceptions for aurdeps."""

from pathlib import Path


class AurDepsError(Exception):
    """Base exception for all aurdeps errors."""


class RecipeUnavailable(AurDepsError):
    """Raised when a PKGBUILD cannot be located or read."""

    def __init__(self, path: Path, reason: str | None = None):
        self.path = path
        self.reason = reason
        message = f"Could not open PKGBUILD for dependency parsing: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ParseMalformed(AurDepsError):
    """Raised when an array declaration is opened but never closed."""

    def __init__(self, keyword: str, line: int):
        self.keyword = keyword
        self.line = line
        super().__init__(f"Unterminated '{keyword}' array starting on line {line}")


class AURError(AurDepsError):
    """Raised when an AUR query or tarball download fails."""
