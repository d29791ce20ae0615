"""
Tests for Image Loader
"""

import base64

import pytest
import numpy as np

from vehicle_match.exceptions import ImageLoadError
from vehicle_match.preprocessing.image_loader import ImageLoader


class TestImageLoader:
    """Test suite for file and base64 image loading."""

    @pytest.fixture
    def loader(self):
        return ImageLoader()

    def test_load_file(self, loader, png_bytes, front_image, tmp_path):
        """Test that a PNG file decodes to a BGR image with the original content."""
        path = tmp_path / "front.png"
        path.write_bytes(png_bytes)

        image = loader.load_file(path)

        assert image.shape == (*front_image.shape, 3)
        assert np.array_equal(image[:, :, 0], front_image)

    def test_load_missing_file(self, loader, tmp_path):
        with pytest.raises(ImageLoadError, match="not found"):
            loader.load_file(tmp_path / "missing.png")

    def test_load_undecodable_file(self, loader, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("not an image")

        with pytest.raises(ImageLoadError, match="decode"):
            loader.load_file(path)

    def test_load_base64(self, loader, png_bytes, front_image):
        encoded = base64.b64encode(png_bytes).decode('ascii')
        image = loader.load_base64(encoded)

        assert image.shape[:2] == front_image.shape

    def test_load_base64_data_uri(self, loader, png_bytes):
        """Test that a data URI prefix is stripped."""
        encoded = "data:image/png;base64," + base64.b64encode(png_bytes).decode('ascii')
        image = loader.load_base64(encoded)

        assert image.ndim == 3

    @pytest.mark.parametrize("payload", ["", "!!!not-base64!!!", base64.b64encode(b"plain text").decode()])
    def test_invalid_base64(self, loader, payload):
        with pytest.raises(ImageLoadError):
            loader.load_base64(payload)
