"""Tests for the on-disk CacheStore."""

import hashlib
import json
from datetime import datetime, timedelta, timezone

import pytest

from package_catalog.core.cache import CacheMetadata, CacheStore, sha256_hex
from package_catalog.exceptions import MetadataUnreadable, StorageError
from package_catalog.models.dataset import Dataset
from package_catalog.models.package import Package


@pytest.fixture
def store(tmp_path):
    return CacheStore(cache_dir=tmp_path / "cache")


def _metadata_aged(days: float) -> CacheMetadata:
    stamp = datetime.now(timezone.utc) - timedelta(days=days)
    return CacheMetadata(last_updated=stamp.isoformat(), version=1, package_count=1, size_bytes=3)


# ═══════════════════════════════════════════
# Construction & Artifact I/O
# ═══════════════════════════════════════════


class TestArtifacts:
    def test_creates_directory(self, tmp_path):
        cache_dir = tmp_path / "a" / "b" / "cache"
        CacheStore(cache_dir=cache_dir)
        assert cache_dir.is_dir()
        # Second construction over the same directory is fine
        CacheStore(cache_dir=cache_dir)

    def test_exists_tracks_blob(self, store):
        assert store.exists() is False
        store.write_checksum("abc")
        assert store.exists() is False
        store.write_blob(b"data")
        assert store.exists() is True

    @pytest.mark.parametrize("data", [b"", b"abc", bytes(range(256)), b"\r\n\x00trailing  "])
    def test_blob_passthrough(self, store, data):
        store.write_blob(data)
        assert store.read_blob() == data

    def test_blob_overwrite(self, store):
        store.write_blob(b"old contents that are longer")
        store.write_blob(b"new")
        assert store.read_blob() == b"new"

    def test_checksum_trimmed_on_read(self, store):
        store.write_checksum("  deadbeef\n")
        assert store.read_checksum() == "deadbeef"

    def test_no_temp_files_left(self, store):
        store.write_blob(b"abc")
        store.write_checksum(sha256_hex(b"abc"))
        store.write_metadata(_metadata_aged(0))
        names = sorted(p.name for p in store.cache_dir.iterdir())
        assert names == ["packages.db", "packages.db.meta", "packages.db.sha256"]

    def test_read_missing_blob(self, store):
        with pytest.raises(StorageError) as exc_info:
            store.read_blob()
        assert exc_info.value.path == store.db_path
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_construct_over_file_fails(self, tmp_path):
        blocker = tmp_path / "cache"
        blocker.write_text("not a directory")
        with pytest.raises(StorageError):
            CacheStore(cache_dir=blocker)


class TestMetadata:
    def test_round_trip(self, store):
        metadata = CacheMetadata.create(version=2, package_count=10, size_bytes=2048)
        store.write_metadata(metadata)
        assert store.read_metadata() == metadata

    def test_stored_as_json_record(self, store):
        store.write_metadata(CacheMetadata.create(version=2, package_count=10, size_bytes=2048))
        record = json.loads(store.metadata_path.read_text())
        assert set(record) == {"last_updated", "version", "package_count", "size_bytes"}
        assert record["version"] == 2

    def test_missing_metadata(self, store):
        with pytest.raises(MetadataUnreadable):
            store.read_metadata()

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            '{"version": 1}',
            '{"last_updated": "yesterday", "version": 1, "package_count": 1, "size_bytes": 1}',
        ],
    )
    def test_malformed_metadata(self, store, content):
        store.metadata_path.write_text(content)
        with pytest.raises(MetadataUnreadable):
            store.read_metadata()
        with pytest.raises(MetadataUnreadable):
            store.age_in_days()


# ═══════════════════════════════════════════
# Staleness
# ═══════════════════════════════════════════


class TestStaleness:
    def test_age_in_days(self, store):
        store.write_metadata(_metadata_aged(3.5))
        assert store.age_in_days() == 3

    def test_age_accepts_zulu_timestamps(self, store):
        stamp = (datetime.now(timezone.utc) - timedelta(days=2, hours=1)).strftime("%Y-%m-%dT%H:%M:%SZ")
        store.metadata_path.write_text(
            json.dumps({"last_updated": stamp, "version": 1, "package_count": 0, "size_bytes": 0})
        )
        assert store.age_in_days() == 2

    @pytest.mark.parametrize("max_age", [0, 1, 7, 365])
    def test_needs_refresh_without_cache(self, store, max_age):
        assert store.needs_refresh(max_age) is True

    @pytest.mark.parametrize(
        ("age", "max_age", "expected"),
        [
            (0, 0, True),
            (0, 1, False),
            (2.5, 2, True),
            (2.5, 3, False),
            (7.1, 7, True),
            (6.9, 7, False),
        ],
    )
    def test_needs_refresh_by_age(self, store, age, max_age, expected):
        store.write_blob(b"abc")
        store.write_metadata(_metadata_aged(age))
        assert store.needs_refresh(max_age) is expected

    def test_unreadable_metadata_means_refresh(self, store):
        store.write_blob(b"abc")
        store.metadata_path.write_text("garbage")
        assert store.needs_refresh(365) is True

    def test_missing_metadata_means_refresh(self, store):
        store.write_blob(b"abc")
        assert store.needs_refresh(365) is True

    def test_undecodable_metadata_means_refresh(self, store):
        store.write_blob(b"abc")
        store.metadata_path.write_bytes(b"\xff\xfe\x00garbage")
        assert store.needs_refresh(7) is True
        with pytest.raises(MetadataUnreadable):
            store.read_metadata()

    def test_deeply_nested_metadata_means_refresh(self, store):
        store.write_blob(b"abc")
        store.metadata_path.write_bytes(b"[" * 100_000 + b"]" * 100_000)
        assert store.needs_refresh(7) is True


# ═══════════════════════════════════════════
# Integrity
# ═══════════════════════════════════════════


class TestIntegrity:
    def test_matching_checksum(self, store):
        store.write_blob(b"abc")
        store.write_checksum(hashlib.sha256(b"abc").hexdigest())
        assert store.verify_integrity() is True

    def test_uppercase_checksum(self, store):
        store.write_blob(b"abc")
        store.write_checksum(hashlib.sha256(b"abc").hexdigest().upper())
        assert store.verify_integrity() is True

    def test_checksum_with_whitespace(self, store):
        store.write_blob(b"abc")
        store.write_checksum(hashlib.sha256(b"abc").hexdigest() + "\n")
        assert store.verify_integrity() is True

    def test_mismatch(self, store):
        store.write_blob(b"abc")
        store.write_checksum(hashlib.sha256(b"abd").hexdigest())
        assert store.verify_integrity() is False

    def test_undecodable_checksum(self, store):
        store.write_blob(b"abc")
        store.checksum_path.write_bytes(b"\xff\xfe")
        assert store.verify_integrity() is False

    def test_missing_checksum(self, store):
        store.write_blob(b"abc")
        assert store.verify_integrity() is False

    def test_missing_blob(self, store):
        store.write_checksum(hashlib.sha256(b"abc").hexdigest())
        assert store.verify_integrity() is False


class TestClear:
    def test_clear_removes_everything(self, store):
        store.write_blob(b"abc")
        store.write_checksum(sha256_hex(b"abc"))
        store.write_metadata(_metadata_aged(0))
        store.clear()
        assert store.exists() is False
        assert not store.checksum_path.exists()
        assert not store.metadata_path.exists()

    def test_clear_is_idempotent(self, store):
        store.write_blob(b"abc")
        store.clear()
        store.clear()
        assert store.exists() is False

    def test_clear_with_partial_artifacts(self, store):
        store.write_checksum("abc")
        store.clear()
        assert not store.checksum_path.exists()


def test_cached_dataset_end_to_end(store):
    """A dataset written to the store verifies and decodes back."""
    from package_catalog.core.loader import CatalogLoader

    data = Dataset(version=1, last_updated="", packages=(Package(name="git"),)).to_bytes()
    store.write_blob(data)
    store.write_checksum(hashlib.sha256(data).hexdigest())
    assert store.verify_integrity() is True

    with CatalogLoader(cache=store) as loader:
        dataset = loader.load(force_refresh=False)
    assert dataset.packages[0].name == "git"
