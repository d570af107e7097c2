"""Tests for image decoding into pixel buffers."""

import cv2
import numpy as np
import pytest

from fingerprint_search.errors import ImageDecodeError, MalformedBuffer
from fingerprint_search.pixel_buffer import ByteBuffer
from fingerprint_search.preprocessing import (
    is_image_file, load_pixel_buffer, normalize_image, pixel_buffer_from_array,
)


class TestPixelBufferFromArray:
    """Tests for wrapping in-memory arrays."""

    def test_rgb(self, red_square_image):
        buf = pixel_buffer_from_array(red_square_image)
        assert isinstance(buf, ByteBuffer)
        assert (buf.height, buf.width, buf.channel_count) == (200, 200, 3)
        assert list(buf.samples[:3]) == [255, 255, 255]

    def test_grayscale(self):
        buf = pixel_buffer_from_array(np.zeros((4, 5), dtype=np.uint8))
        assert (buf.height, buf.width, buf.channel_count) == (4, 5, 1)

    def test_bad_shape(self):
        with pytest.raises(MalformedBuffer):
            pixel_buffer_from_array(np.zeros((2, 2, 2, 2), dtype=np.uint8))


class TestNormalizeImage:
    """Tests for sample dtype normalization."""

    def test_float_truncates(self):
        img = np.array([[0.0, 0.5, 0.999, 1.0]], dtype=np.float32)
        assert list(normalize_image(img)[0]) == [0, 127, 254, 255]

    def test_uint16_high_byte(self):
        img = np.array([[0, 256, 65535]], dtype=np.uint16)
        assert list(normalize_image(img)[0]) == [0, 1, 255]

    def test_uint8_untouched(self, red_square_image):
        assert normalize_image(red_square_image) is red_square_image


class TestLoadPixelBuffer:
    """Tests for decoding files with OpenCV."""

    def test_png_is_rgb(self, tmp_path, red_square_image):
        path = str(tmp_path / "red.png")
        cv2.imwrite(path, cv2.cvtColor(red_square_image, cv2.COLOR_RGB2BGR))
        buf = load_pixel_buffer(path)
        center = buf.pixels()[100 * 200 + 100]
        assert list(center) == [200, 30, 30]

    def test_alpha_kept(self, tmp_path):
        img = np.zeros((8, 8, 4), dtype=np.uint8)
        img[:, :, 3] = 128
        path = str(tmp_path / "alpha.png")
        cv2.imwrite(path, img)
        buf = load_pixel_buffer(path)
        assert buf.channel_count == 4
        assert np.all(buf.pixels()[:, 3] == 128)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageDecodeError):
            load_pixel_buffer(str(tmp_path / "nope.png"))

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "fake.png"
        path.write_text("hello")
        with pytest.raises(ImageDecodeError):
            load_pixel_buffer(str(path))

    def test_is_image_file(self, image_dir):
        assert is_image_file(str(image_dir / "red.png"))
        assert not is_image_file(str(image_dir / "notes.txt"))
        assert not is_image_file(str(image_dir))
