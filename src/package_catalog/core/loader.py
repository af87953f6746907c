"""
Catalog Loader — downloads, verifies and decodes the package catalog.

Freshness policy:
- A cache younger than the staleness threshold is used without touching
  the network.
- A stale cache triggers a download. If the download fails and a cached
  copy exists, the stale copy is served with a warning; with no cached
  copy the error propagates.
- Whatever blob ends up cached is re-verified against its checksum before
  it is decoded.
"""

import logging

import httpx

from package_catalog.config import CatalogSettings
from package_catalog.core.cache import CacheMetadata, CacheStore, sha256_hex
from package_catalog.exceptions import (
    CacheVerificationError,
    CorruptDataError,
    IntegrityError,
    TransportError,
)
from package_catalog.models.dataset import Dataset

logger = logging.getLogger(__name__)

# Refresh failures that may fall back to a stale cache. StorageError is not
# among them: a broken cache directory is never recoverable here.
RECOVERABLE_ERRORS = (TransportError, IntegrityError, CorruptDataError)


class CatalogLoader:
    """
    Loads the package catalog from cache, downloading it when necessary.

    The loader keeps no state of its own besides the HTTP client; all
    persistence goes through the CacheStore. A client passed in by the
    caller is left open, one created here is closed by `close()`.
    """

    def __init__(
        self,
        cache: CacheStore | None = None,
        client: httpx.Client | None = None,
        settings: CatalogSettings | None = None,
    ):
        self.settings = settings or CatalogSettings()
        self.cache = cache or CacheStore(self.settings.cache_dir)

        self._owns_client = client is None
        if client is None:
            client_kwargs: dict = {"follow_redirects": True}
            if self.settings.timeout is not None:
                client_kwargs["timeout"] = self.settings.timeout
            client = httpx.Client(**client_kwargs)
        self.client = client

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "CatalogLoader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ──────────────────────────────────────────────
    # HTTP Layer
    # ──────────────────────────────────────────────

    def _fetch(self, url: str, what: str) -> httpx.Response:
        """GET a resource, raising TransportError on network failure or non-2xx status."""
        logger.debug(f"[LOADER] Fetching {what} from {url}")
        try:
            response = self.client.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to download {what}", url=url) from e

        if not response.is_success:
            raise TransportError(
                f"Failed to download {what}: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response

    # ──────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────

    def download(self) -> CacheMetadata:
        """
        Download, verify and cache the catalog.

        Nothing is written unless the data matches its checksum and decodes.

        Returns:
            Metadata of the freshly cached catalog.

        Raises:
            TransportError: A fetch failed.
            IntegrityError: The data does not match the published checksum.
            CorruptDataError: The data matches but does not decode.
            StorageError: The cache could not be written.
        """
        checksum_response = self._fetch(self.settings.checksum_url, "database checksum")
        expected = checksum_response.text.strip().lower()

        data = self._fetch(self.settings.database_url, "package database").content

        computed = sha256_hex(data)
        if computed != expected:
            raise IntegrityError(expected=expected, actual=computed)

        try:
            dataset = Dataset.from_bytes(data)
        except CorruptDataError as e:
            raise CorruptDataError("Downloaded database is corrupted") from e

        self.cache.write_blob(data)
        self.cache.write_checksum(computed)
        metadata = CacheMetadata.create(dataset.version, len(dataset.packages), len(data))
        self.cache.write_metadata(metadata)

        logger.info(
            f"[LOADER] Cached package database v{metadata.version}: "
            f"{metadata.package_count} packages, {metadata.size_bytes} bytes"
        )
        return metadata

    def load(self, force_refresh: bool = False) -> Dataset:
        """
        Load the cached catalog, downloading it first if forced or missing.

        Download errors propagate unchanged; there is no fallback here.

        Raises:
            CacheVerificationError: The cached blob fails its checksum.
            CorruptDataError: The cached blob does not decode.
        """
        if force_refresh or not self.cache.exists():
            self.download()

        if not self.cache.verify_integrity():
            stored = self.cache.read_checksum() if self.cache.checksum_path.is_file() else ""
            raise CacheVerificationError(
                expected=stored.lower(),
                actual=sha256_hex(self.cache.read_blob()),
                message=(
                    "Database checksum verification failed. "
                    "Run 'package-catalog update --force' to re-download."
                ),
            )

        return Dataset.from_bytes(self.cache.read_blob())

    def load_with_auto_update(self, max_age_days: int | None = None) -> Dataset:
        """
        Load the catalog, refreshing it first when it is older than max_age_days.

        A failed refresh falls back to the cached copy when there is one.
        """
        if max_age_days is None:
            max_age_days = self.settings.max_age_days

        if self.cache.needs_refresh(max_age_days):
            try:
                self.download()
            except RECOVERABLE_ERRORS as e:
                if not self.cache.exists():
                    raise
                logger.warning(
                    f"Failed to update package database: {e}. Using cached version (may be outdated)"
                )

        return self.load(force_refresh=False)

    def get_cache_info(self) -> CacheMetadata | None:
        """Return metadata of the cached catalog, or None when nothing is cached."""
        if not self.cache.exists():
            return None
        return self.cache.read_metadata()

    def clear_cache(self) -> None:
        self.cache.clear()
