"""Pytest configuration and fixtures."""
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend

import numpy as np
import pytest

from slicseg.image_buffer import ImageBuffer


def make_image(rgb: np.ndarray) -> ImageBuffer:
    """Wrap an (H, W, 3) uint8 array as an opaque ImageBuffer."""
    return ImageBuffer.from_array(np.asarray(rgb, dtype=np.uint8))


@pytest.fixture
def uniform_image():
    """16x16 mid-gray image."""
    rgb = np.full((16, 16, 3), 128, dtype=np.uint8)
    return make_image(rgb)


@pytest.fixture
def split_image():
    """32x32 image, red left half, blue right half."""
    rgb = np.zeros((32, 32, 3), dtype=np.uint8)
    rgb[:, :16] = [255, 0, 0]
    rgb[:, 16:] = [0, 0, 255]
    return make_image(rgb)


@pytest.fixture
def noise_image():
    """24x20 random image with a fixed seed."""
    rng = np.random.default_rng(7)
    rgb = rng.integers(0, 256, size=(20, 24, 3), dtype=np.uint8)
    return make_image(rgb)


@pytest.fixture
def png_path(tmp_path, split_image):
    """Path to the split image saved as PNG."""
    path = tmp_path / "split.png"
    split_image.save_png(path)
    return path
