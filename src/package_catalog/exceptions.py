"""
Exception hierarchy for the package catalog.

Each failure stage of a refresh (checksum fetch, data fetch, verification,
decode) raises its own type so callers can branch on the kind of error
instead of on message text.
"""

from pathlib import Path


class CatalogError(Exception):
    """Base exception for all catalog errors."""


class TransportError(CatalogError):
    """Raised when a remote resource could not be fetched."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class IntegrityError(CatalogError):
    """Raised when data does not match its SHA-256 checksum."""

    def __init__(self, expected: str, actual: str, message: str | None = None):
        super().__init__(message or f"Database checksum mismatch! Expected: {expected}, got: {actual}")
        self.expected = expected
        self.actual = actual


class CacheVerificationError(IntegrityError):
    """Raised when the cached database no longer matches its stored checksum."""


class CorruptDataError(CatalogError):
    """Raised when checksum-valid bytes cannot be decoded into a dataset."""


class StorageError(CatalogError):
    """Raised on filesystem failures inside the cache directory."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class MetadataUnreadable(CatalogError):
    """Raised when cache metadata is missing or malformed."""


def format_error_chain(exc: BaseException) -> str:
    """Render an exception and its causes, one per line."""
    lines = [str(exc) or type(exc).__name__]
    seen = {id(exc)}
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        detail = str(cause)
        label = f"{type(cause).__name__}: {detail}" if detail else type(cause).__name__
        lines.append(f"  caused by: {label}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(lines)
