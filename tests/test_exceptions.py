"""Tests for the error hierarchy and error-chain rendering."""

from package_catalog.exceptions import (
    CacheVerificationError,
    CatalogError,
    CorruptDataError,
    IntegrityError,
    MetadataUnreadable,
    StorageError,
    TransportError,
    format_error_chain,
)


class TestHierarchy:
    def test_all_catalog_errors(self):
        for cls in (TransportError, IntegrityError, CorruptDataError, StorageError, MetadataUnreadable):
            assert issubclass(cls, CatalogError)

    def test_verification_is_integrity(self):
        assert issubclass(CacheVerificationError, IntegrityError)

    def test_integrity_fields(self):
        err = IntegrityError(expected="aa", actual="bb")
        assert err.expected == "aa"
        assert err.actual == "bb"
        assert "Expected: aa, got: bb" in str(err)

    def test_transport_fields(self):
        err = TransportError("Failed to download package database: HTTP 404", url="https://x", status_code=404)
        assert err.status_code == 404
        assert err.url == "https://x"


class TestFormatErrorChain:
    def test_single_error(self):
        assert format_error_chain(CorruptDataError("bad data")) == "bad data"

    def test_chain(self):
        try:
            try:
                raise ConnectionError("reset by peer")
            except ConnectionError as e:
                raise TransportError("Failed to download database checksum") from e
        except TransportError as e:
            rendered = format_error_chain(e)

        lines = rendered.splitlines()
        assert lines[0] == "Failed to download database checksum"
        assert lines[1] == "  caused by: ConnectionError: reset by peer"

    def test_cause_without_message(self):
        err = StorageError("Failed to read cached database")
        err.__cause__ = FileNotFoundError()
        assert format_error_chain(err).endswith("caused by: FileNotFoundError")
