"""
Shared fixtures: a temporary image root per test and a client bound to it.
"""

import io
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from imageserver.config import ImageServerConfig
from imageserver.main import create_app
from imageserver.services.image_service import ImageRequestHandler


def write_image(path: Path, size=(200, 100), mode="RGB", image_format="PNG", color=None) -> bytes:
    """Create an image file and return its bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if color is None:
        color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    img = Image.new(mode, size, color=color)
    buf = io.BytesIO()
    img.save(buf, format=image_format)
    path.write_bytes(buf.getvalue())
    return buf.getvalue()


def image_size(data: bytes):
    with Image.open(io.BytesIO(data)) as img:
        return img.size


@pytest.fixture
def image_root(tmp_path):
    """Empty image root inside a sandbox directory."""
    root = tmp_path / "images"
    root.mkdir()
    return root


@pytest.fixture
def config(image_root):
    return ImageServerConfig(image_root=image_root.resolve())


@pytest.fixture
def handler(config):
    return ImageRequestHandler(config)


@pytest.fixture
def client(config):
    """TestClient against an app bound to the temporary image root."""
    return TestClient(create_app(config))
