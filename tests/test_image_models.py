"""
Tests for image data models.

Tests cover:
- PixelBuffer construction from images, arrays and bytes
- Zero-area and undecodable input rejection
- Immutability
- AlphaMask creation, replacement and equality
- Hex color parsing
"""

import io
import unittest

import numpy as np
from PIL import Image

from OM_Libs.errors import InvalidImageError
from OM_Libs.ImageEditingLib.image_models import (
    AlphaMask,
    PixelBuffer,
    format_hex_color,
    parse_hex_color,
)


class TestPixelBuffer(unittest.TestCase):
    """Test PixelBuffer."""

    def test_from_image_converts_to_rgba(self):
        """RGB images gain an opaque alpha channel."""
        buffer = PixelBuffer.from_image(Image.new("RGB", (5, 3), (10, 20, 30)))

        self.assertEqual(buffer.size, (5, 3))
        self.assertEqual(buffer.pixels.shape, (3, 5, 4))
        self.assertTrue(np.all(buffer.alpha == 255))
        self.assertEqual(tuple(buffer.rgb[0, 0]), (10, 20, 30))

    def test_from_array_rgb(self):
        """RGB arrays get an opaque alpha channel."""
        arr = np.zeros((2, 4, 3), dtype=np.uint8)
        buffer = PixelBuffer.from_array(arr)

        self.assertEqual(buffer.size, (4, 2))
        self.assertTrue(np.all(buffer.alpha == 255))

    def test_pixels_are_read_only(self):
        """Buffers cannot be mutated in place."""
        buffer = PixelBuffer.from_image(Image.new("RGBA", (2, 2)))

        with self.assertRaises(ValueError):
            buffer.pixels[0, 0, 0] = 1

    def test_source_array_is_copied(self):
        """Changing the source array does not change the buffer."""
        arr = np.zeros((2, 2, 4), dtype=np.uint8)
        buffer = PixelBuffer(arr)
        arr[0, 0, 0] = 99

        self.assertEqual(buffer.pixels[0, 0, 0], 0)

    def test_zero_area_rejected(self):
        """Zero width or height raises InvalidImageError."""
        with self.assertRaises(InvalidImageError):
            PixelBuffer(np.zeros((0, 4, 4), dtype=np.uint8))
        with self.assertRaises(InvalidImageError):
            PixelBuffer(np.zeros((4, 0, 4), dtype=np.uint8))

    def test_wrong_shape_rejected(self):
        with self.assertRaises(InvalidImageError):
            PixelBuffer(np.zeros((4, 4), dtype=np.uint8))

    def test_from_bytes_decodes_png(self):
        """Encoded PNG bytes decode to the same pixels."""
        image = Image.new("RGBA", (3, 2), (1, 2, 3, 4))
        data = io.BytesIO()
        image.save(data, format="PNG")

        buffer = PixelBuffer.from_bytes(data.getvalue())

        self.assertEqual(buffer.size, (3, 2))
        self.assertEqual(tuple(buffer.pixels[1, 2]), (1, 2, 3, 4))

    def test_from_bytes_rejects_garbage(self):
        with self.assertRaises(InvalidImageError):
            PixelBuffer.from_bytes(b"definitely not an image")

    def test_with_alpha_keeps_rgb(self):
        """with_alpha replaces alpha only and returns a new buffer."""
        buffer = PixelBuffer.from_image(Image.new("RGBA", (3, 3), (9, 8, 7, 255)))
        mask = AlphaMask(np.full((3, 3), 40, dtype=np.uint8))

        result = buffer.with_alpha(mask)

        self.assertTrue(np.all(result.alpha == 40))
        self.assertTrue(np.all(result.rgb == buffer.rgb))
        self.assertTrue(np.all(buffer.alpha == 255))

    def test_with_alpha_size_mismatch(self):
        buffer = PixelBuffer.from_image(Image.new("RGBA", (3, 3)))

        with self.assertRaises(ValueError):
            buffer.with_alpha(AlphaMask.empty(4, 3))

    def test_to_image_round_trip(self):
        image = Image.new("RGBA", (4, 2), (50, 60, 70, 80))
        self.assertEqual(PixelBuffer.from_image(image).to_image().tobytes(), image.tobytes())


class TestAlphaMask(unittest.TestCase):
    """Test AlphaMask."""

    def test_empty_is_fully_opaque(self):
        mask = AlphaMask.empty(6, 4)

        self.assertEqual(mask.size, (6, 4))
        self.assertEqual(mask.values.shape, (4, 6))
        self.assertTrue(np.all(mask.values == 255))

    def test_replace_and_copy_are_independent(self):
        mask = AlphaMask.empty(3, 3)
        copy = mask.copy()
        mask.replace(np.zeros((3, 3), dtype=np.uint8))

        self.assertTrue(np.all(mask.values == 0))
        self.assertTrue(np.all(copy.values == 255))
        self.assertNotEqual(mask, copy)

    def test_replace_rejects_other_dimensions(self):
        mask = AlphaMask.empty(3, 3)

        with self.assertRaises(ValueError):
            mask.replace(np.zeros((3, 4), dtype=np.uint8))

    def test_clear_restores_opaque(self):
        mask = AlphaMask(np.zeros((2, 2), dtype=np.uint8))
        mask.clear()

        self.assertEqual(mask, AlphaMask.empty(2, 2))

    def test_to_image_is_grayscale(self):
        image = AlphaMask.empty(5, 2).to_image()

        self.assertEqual(image.mode, "L")
        self.assertEqual(image.size, (5, 2))


class TestHexColor(unittest.TestCase):
    """Test hex color helpers."""

    def test_parse_long_form(self):
        self.assertEqual(parse_hex_color("#112233"), (0x11, 0x22, 0x33))

    def test_parse_short_form_and_case(self):
        self.assertEqual(parse_hex_color("#FfF"), (255, 255, 255))
        self.assertEqual(parse_hex_color("0a0b0c"), (10, 11, 12))

    def test_parse_invalid(self):
        for text in ("", "#12", "#1234567", "#gg0000"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    parse_hex_color(text)

    def test_format(self):
        self.assertEqual(format_hex_color((17, 34, 51)), "#112233")


if __name__ == "__main__":
    unittest.main()
