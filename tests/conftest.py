"""
Pytest configuration and shared fixtures for Open Matte tests.

This module provides shared test fixtures used across multiple test
modules.
"""

import numpy as np
import pytest
from PIL import Image

from OM_Libs.ImageEditingLib.image_models import PixelBuffer


def make_subject_image(width: int = 32, height: int = 24) -> Image.Image:
    """
    Build a dark frame with a bright off-center rectangle.

    Gives the segmentation engine real edges to find.
    """
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :, :3] = (20, 30, 40)
    arr[:, :, 3] = 255
    arr[height // 4: 3 * height // 4, width // 3: 2 * width // 3, :3] = (230, 210, 190)
    return Image.fromarray(arr)


@pytest.fixture
def subject_image():
    """A 32x24 RGBA image with a bright rectangle on a dark frame."""
    return make_subject_image()


@pytest.fixture
def subject_buffer():
    """PixelBuffer of the subject image."""
    return PixelBuffer.from_image(make_subject_image())


@pytest.fixture
def flat_buffer():
    """8x6 PixelBuffer filled with a single opaque color (200, 100, 50)."""
    return PixelBuffer.from_image(Image.new("RGBA", (8, 6), (200, 100, 50, 255)))
