"""Tests for the Blob Store and Range header parsing."""

import pytest

from cloudimega.core.errors import RangeNotSatisfiable
from cloudimega.storage.blob_store import BlobStore, parse_range_header


class TestParseRangeHeader:
    def test_no_header_means_whole_file(self):
        assert parse_range_header(None, 100) is None
        assert parse_range_header("", 100) is None

    def test_closed_range(self):
        assert parse_range_header("bytes=10-19", 100) == (10, 19)

    def test_open_range_runs_to_end(self):
        assert parse_range_header("bytes=90-", 100) == (90, 99)

    def test_suffix_range(self):
        assert parse_range_header("bytes=-5", 100) == (95, 99)

    def test_end_is_clamped_to_file_size(self):
        assert parse_range_header("bytes=50-1000", 100) == (50, 99)

    def test_unknown_unit_is_ignored(self):
        assert parse_range_header("items=0-1", 100) is None

    def test_empty_file_ignores_ranges(self):
        assert parse_range_header("bytes=0-9", 0) is None
        assert parse_range_header("bytes=-5", 0) is None

    @pytest.mark.parametrize(
        "header",
        ["bytes=100-", "bytes=20-10", "bytes=0-1,5-6", "bytes=abc-", "bytes=5", "bytes=-0"],
    )
    def test_unsatisfiable_ranges(self, header):
        with pytest.raises(RangeNotSatisfiable):
            parse_range_header(header, 100)


class TestBlobStore:
    def test_write_then_read_back(self, tmp_path):
        store = BlobStore(str(tmp_path))
        store.write(7, "abc", b"hello world")

        assert store.exists(7, "abc")
        assert store.size(7, "abc") == 11
        assert b"".join(store.iter_range(7, "abc")) == b"hello world"

    def test_keys_are_scoped_per_owner(self, tmp_path):
        store = BlobStore(str(tmp_path))
        store.write(1, "abc", b"data")

        assert not store.exists(2, "abc")

    def test_iter_range_returns_inclusive_slice(self, tmp_path):
        store = BlobStore(str(tmp_path))
        store.write(1, "k", b"0123456789")

        assert b"".join(store.iter_range(1, "k", 2, 5)) == b"2345"

    def test_iter_range_spans_chunks(self, tmp_path, monkeypatch):
        monkeypatch.setattr("cloudimega.storage.blob_store.CHUNK_SIZE", 3)
        store = BlobStore(str(tmp_path))
        store.write(1, "k", b"0123456789")

        chunks = list(store.iter_range(1, "k", 1, 8))
        assert chunks == [b"123", b"456", b"78"]

    def test_storage_key_cannot_escape_owner_dir(self, tmp_path):
        store = BlobStore(str(tmp_path))
        store.write(2, "secret", b"x")

        with pytest.raises(ValueError):
            store.path_for(1, "../2/secret")
        assert not store.exists(1, "../2/secret")

    def test_missing_key_does_not_exist(self, tmp_path):
        store = BlobStore(str(tmp_path))
        assert not store.exists(1, "nope")
        assert not store.exists(1, None)
