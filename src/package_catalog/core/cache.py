"""
Cache Store — on-disk home of the downloaded package catalog.

Holds exactly three artifacts in one directory:

    cache_dir/
    ├── packages.db          serialized catalog, stored byte for byte
    ├── packages.db.sha256   lowercase hex SHA-256 of packages.db
    └── packages.db.meta     JSON metadata written after each download

The store never talks to the network and never decodes the catalog.
"""

import hashlib
import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from package_catalog.config import default_cache_dir
from package_catalog.exceptions import MetadataUnreadable, StorageError

logger = logging.getLogger(__name__)


def sha256_hex(data: bytes) -> str:
    """Lowercase hex SHA-256 digest of `data`."""
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class CacheMetadata:
    """Metadata about the cached catalog."""

    last_updated: str  # RFC 3339
    version: int
    package_count: int
    size_bytes: int

    @classmethod
    def create(cls, version: int, package_count: int, size_bytes: int) -> "CacheMetadata":
        """Build metadata stamped with the current UTC time."""
        return cls(
            last_updated=datetime.now(timezone.utc).isoformat(),
            version=version,
            package_count=package_count,
            size_bytes=size_bytes,
        )

    def updated_at(self) -> datetime:
        """Parse `last_updated`; naive timestamps are taken as UTC."""
        parsed = datetime.fromisoformat(self.last_updated)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CacheMetadata":
        return cls(
            last_updated=str(data["last_updated"]),
            version=int(data["version"]),
            package_count=int(data["package_count"]),
            size_bytes=int(data["size_bytes"]),
        )


class CacheStore:
    """
    Filesystem-backed storage for the catalog blob, its checksum and metadata.

    Writes go through a temporary file and an atomic rename, so each artifact
    is either the old or the new version, never a torn one. The three writes
    together are not atomic: a crash between them leaves a checksum that will
    fail `verify_integrity()` until the next forced refresh.
    """

    DB_FILENAME = "packages.db"
    CHECKSUM_FILENAME = "packages.db.sha256"
    METADATA_FILENAME = "packages.db.meta"

    def __init__(self, cache_dir: Path | None = None):
        self.cache_dir = cache_dir or default_cache_dir()
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create cache directory {self.cache_dir}", self.cache_dir) from e

    @property
    def db_path(self) -> Path:
        return self.cache_dir / self.DB_FILENAME

    @property
    def checksum_path(self) -> Path:
        return self.cache_dir / self.CHECKSUM_FILENAME

    @property
    def metadata_path(self) -> Path:
        return self.cache_dir / self.METADATA_FILENAME

    def exists(self) -> bool:
        """True if a catalog blob is cached."""
        return self.db_path.is_file()

    # ──────────────────────────────────────────────
    # Artifact I/O
    # ──────────────────────────────────────────────

    def read_blob(self) -> bytes:
        try:
            return self.db_path.read_bytes()
        except OSError as e:
            raise StorageError("Failed to read cached database", self.db_path) from e

    def write_blob(self, data: bytes) -> None:
        self._write(self.db_path, data, "database")

    def read_checksum(self) -> str:
        """
        Return the stored checksum with surrounding whitespace removed.

        Undecodable bytes come back as U+FFFD, so they never match a digest.
        """
        try:
            raw = self.checksum_path.read_bytes()
        except OSError as e:
            raise StorageError("Failed to read checksum", self.checksum_path) from e
        return raw.decode("utf-8", errors="replace").strip()

    def write_checksum(self, checksum: str) -> None:
        self._write(self.checksum_path, checksum.encode("utf-8"), "checksum")

    def read_metadata(self) -> CacheMetadata:
        """
        Read the metadata record.

        Raises:
            MetadataUnreadable: If the record is missing or malformed.
            StorageError: On any other filesystem failure.
        """
        try:
            raw = self.metadata_path.read_bytes()
        except FileNotFoundError as e:
            raise MetadataUnreadable(f"No cache metadata at {self.metadata_path}") from e
        except OSError as e:
            raise StorageError("Failed to read cache metadata", self.metadata_path) from e

        try:
            metadata = CacheMetadata.from_dict(json.loads(raw.decode("utf-8")))
            metadata.updated_at()
        except (ValueError, KeyError, TypeError, RecursionError) as e:
            raise MetadataUnreadable(f"Malformed cache metadata: {e}") from e
        return metadata

    def write_metadata(self, metadata: CacheMetadata) -> None:
        content = json.dumps(metadata.to_dict(), indent=2)
        self._write(self.metadata_path, content.encode("utf-8"), "metadata")

    def _write(self, path: Path, data: bytes, description: str) -> None:
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(dir=self.cache_dir, prefix=f".{path.name}.", delete=False) as f:
                temp_path = Path(f.name)
                f.write(data)
            os.replace(temp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {description} to cache", path) from e
        finally:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
        logger.debug(f"[CACHE] Wrote {description} ({len(data)} bytes) to {path}")

    # ──────────────────────────────────────────────
    # Staleness & Integrity
    # ──────────────────────────────────────────────

    def age_in_days(self) -> int:
        """Whole days since the cache was last updated."""
        metadata = self.read_metadata()
        elapsed = datetime.now(timezone.utc) - metadata.updated_at()
        return int(elapsed / timedelta(days=1))

    def needs_refresh(self, max_age_days: int) -> bool:
        """True if the cache is missing, has unreadable metadata, or is max_age_days old."""
        if not self.exists():
            return True

        try:
            age = self.age_in_days()
        except MetadataUnreadable as e:
            logger.debug(f"[CACHE] {e}; treating cache as stale")
            return True

        return age >= max_age_days

    def verify_integrity(self) -> bool:
        """Check the cached blob against the stored checksum (case-insensitive)."""
        if not self.exists() or not self.checksum_path.is_file():
            return False

        computed = sha256_hex(self.read_blob())
        stored = self.read_checksum().lower()
        if computed != stored:
            logger.debug(f"[CACHE] Checksum mismatch: stored={stored} computed={computed}")
            return False
        return True

    def clear(self) -> None:
        """Remove all cached artifacts. Missing artifacts are ignored."""
        for path in (self.db_path, self.checksum_path, self.metadata_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(f"Failed to remove {path.name}", path) from e
        logger.info(f"[CACHE] Cleared {self.cache_dir}")
