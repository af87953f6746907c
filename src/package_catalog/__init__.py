"""
Package Catalog - Cached, integrity-checked package database.

Downloads the compiled package catalog from its release location, verifies
it against a published SHA-256 checksum, caches it per user and serves it
as an in-memory Dataset, falling back to a stale copy when a refresh fails.
"""

__version__ = "1.0.0"


def __getattr__(name: str):
    """Lazy import for heavy dependencies."""
    if name == "CatalogLoader":
        from package_catalog.core.loader import CatalogLoader

        return CatalogLoader
    if name == "Dataset":
        from package_catalog.models.dataset import Dataset

        return Dataset
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["CatalogLoader", "Dataset", "__version__"]
