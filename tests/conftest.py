"""Shared test fixtures for fingerprint search tests."""

import numpy as np
import cv2
import pytest

from fingerprint_search.pixel_buffer import ByteBuffer
from fingerprint_search.preprocessing import pixel_buffer_from_array


@pytest.fixture
def red_square_image():
    """Generate a 200x200 red square on white background (RGB)."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    img[40:160, 40:160] = [200, 30, 30]  # Red square
    return img


@pytest.fixture
def blue_circle_image():
    """Generate a 200x200 blue circle on white background (RGB)."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    cv2.circle(img, (100, 100), 60, (30, 30, 200), -1)
    return img


@pytest.fixture
def dark_image():
    """Generate a 200x200 almost black image."""
    return np.full((200, 200, 3), 10, dtype=np.uint8)


@pytest.fixture
def noise_image():
    """Generate a 200x200 random noise image."""
    rng = np.random.RandomState(42)
    return rng.randint(0, 256, (200, 200, 3), dtype=np.uint8)


@pytest.fixture
def red_square_buffer(red_square_image):
    return pixel_buffer_from_array(red_square_image)


@pytest.fixture
def blue_circle_buffer(blue_circle_image):
    return pixel_buffer_from_array(blue_circle_image)


@pytest.fixture
def noise_buffer(noise_image):
    return pixel_buffer_from_array(noise_image)


@pytest.fixture
def rgba_buffer():
    """Generate a 64x64 RGBA buffer with a varying alpha channel."""
    rng = np.random.RandomState(7)
    img = rng.randint(0, 256, (64, 64, 4), dtype=np.uint8)
    return pixel_buffer_from_array(img)


@pytest.fixture
def two_channel_buffer():
    """1x2 image, 2 channels, samples [0, 255, 25, 99]."""
    return ByteBuffer(1, 2, 2, [0, 255, 25, 99])


@pytest.fixture
def image_dir(tmp_path, red_square_image, blue_circle_image, dark_image):
    """Directory with three PNG images and one non-image file."""
    directory = tmp_path / "images"
    directory.mkdir()
    for name, img in [("red.png", red_square_image),
                      ("blue.png", blue_circle_image),
                      ("dark.png", dark_image)]:
        cv2.imwrite(str(directory / name), cv2.cvtColor(img, cv2.COLOR_RGB2BGR))
    (directory / "notes.txt").write_text("not an image")
    return directory


@pytest.fixture
def datastore_path(tmp_path):
    return str(tmp_path / "store" / "data.json")
