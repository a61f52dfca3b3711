"""
Tests for the on-disk variant cache.
"""

import logging
import os

import pytest

from imageserver.core.errors import CacheWriteFailed
from imageserver.services.cache_store import CacheStore


@pytest.fixture
def store(image_root):
    return CacheStore(image_root)


class TestCacheStore:

    def test_miss_on_empty_cache(self, store):
        assert store.lookup("w100", "a.png") is None

    def test_store_then_lookup(self, store, image_root):
        assert store.store("w100h50", "nested/dir/a.png", b"data")
        assert (image_root / "w100h50" / "nested" / "dir" / "a.png").read_bytes() == b"data"
        assert store.lookup("w100h50", "nested/dir/a.png") == b"data"

    def test_store_overwrites(self, store):
        store.store("q80", "a.jpg", b"first")
        store.store("q80", "a.jpg", b"second")
        assert store.lookup("q80", "a.jpg") == b"second"

    def test_prefix(self, image_root):
        store = CacheStore(image_root, prefix="cache/")
        store.store("w10", "a.png", b"x")
        assert (image_root / "cache" / "w10" / "a.png").is_file()
        assert store.lookup("w10", "a.png") == b"x"

    def test_directory_entry_is_a_miss(self, store, image_root):
        (image_root / "w10" / "a.png").mkdir(parents=True)
        assert store.lookup("w10", "a.png") is None

    def test_traversal_is_a_miss(self, store):
        assert store.lookup("w10", "../../etc/passwd") is None

    def test_write_failure_raises(self, store, image_root):
        # A plain file where the key directory should be
        (image_root / "w10").write_bytes(b"")
        with pytest.raises(CacheWriteFailed):
            store.write("w10", "a.png", b"x")

    def test_store_failure_is_swallowed(self, store, image_root, caplog):
        (image_root / "w10").write_bytes(b"")
        with caplog.at_level(logging.ERROR):
            assert store.store("w10", "a.png", b"x") is False
        assert "Failed to write to cache" in caplog.text

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_key_directory_escape(self, store, image_root, tmp_path):
        outside = tmp_path / "outside"
        (outside / "a.png").parent.mkdir(parents=True)
        (outside / "a.png").write_bytes(b"secret")
        (image_root / "w10").symlink_to(outside, target_is_directory=True)

        assert store.lookup("w10", "a.png") is None
        assert store.store("w10", "b.png", b"x") is False
        assert not (outside / "b.png").exists()
