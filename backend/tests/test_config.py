"""
Tests for settings and image root discovery.
"""

import pytest

from imageserver.config import ImageServerConfig, Settings, build_config, discover_image_dir


class TestDiscoverImageDir:

    def test_explicit_directory_is_created(self, tmp_path):
        target = tmp_path / "a" / "b"
        assert discover_image_dir(str(target)) == target.resolve()
        assert target.is_dir()

    def test_fallback_to_local_images(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert discover_image_dir() == (tmp_path / "images").resolve()
        assert (tmp_path / "images").is_dir()

    def test_existing_local_images(self, tmp_path, monkeypatch):
        (tmp_path / "images").mkdir()
        monkeypatch.chdir(tmp_path)
        assert discover_image_dir(None) == (tmp_path / "images").resolve()


class TestSettings:

    def test_image_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMAGE_DIR", str(tmp_path / "env-images"))
        config = build_config(Settings(_env_file=None))

        assert config.image_root == (tmp_path / "env-images").resolve()
        assert config.image_root.is_dir()

    def test_cache_prefix_is_normalized(self, tmp_path):
        config = build_config(Settings(_env_file=None, image_dir=str(tmp_path), cache_prefix="/cache/"))
        assert config.cache_prefix == "cache"

    def test_config_is_immutable(self, tmp_path):
        config = ImageServerConfig(image_root=tmp_path)
        with pytest.raises(Exception):
            config.image_root = tmp_path / "other"
