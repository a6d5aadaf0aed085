"""
Constants and configuration values for Open Matte.

This module centralizes all constant values, magic numbers, and
default settings used throughout the matte pipeline.
"""

# Luma weights (ITU-R BT.601)
LUMA_WEIGHT_R = 0.299
LUMA_WEIGHT_G = 0.587
LUMA_WEIGHT_B = 0.114

# Sobel kernels, row-major 3x3
SOBEL_X = (-1, 0, 1, -2, 0, 2, -1, 0, 1)
SOBEL_Y = (-1, -2, -1, 0, 0, 0, 1, 2, 1)

# Foreground classification
# threshold = (255 - sensitivity * SENSITIVITY_SCALE) * THRESHOLD_FACTOR
SENSITIVITY_SCALE = 2.55
THRESHOLD_FACTOR = 0.5
CENTER_BOOST_CUTOFF = 0.3
CENTER_BOOST_GAIN = 100.0

# Morphology
DILATION_SIZE = 3

# Channel range
ALPHA_MIN = 0
ALPHA_MAX = 255

# Parameter ranges
SENSITIVITY_MIN = 0
SENSITIVITY_MAX = 100
HARDNESS_MIN = 0
HARDNESS_MAX = 100
ZOOM_MIN = 0.5
ZOOM_MAX = 3.0
ZOOM_IN_FACTOR = 1.2
ZOOM_OUT_FACTOR = 0.8
JPEG_QUALITY_MIN = 1
JPEG_QUALITY_MAX = 100

# Editor defaults
DEFAULT_SENSITIVITY = 70
DEFAULT_EDGE_FEATHER = 8
DEFAULT_BRUSH_RADIUS = 20
DEFAULT_BRUSH_HARDNESS = 70
DEFAULT_BRUSH_MODE = "erase"
DEFAULT_BACKDROP = "transparent"
DEFAULT_BACKDROP_COLOR = "#ffffff"
DEFAULT_BLUR_RADIUS = 10
DEFAULT_ZOOM = 1.0
DEFAULT_JPEG_QUALITY = 95

# Backdrop names
BACKDROP_TRANSPARENT = "transparent"
BACKDROP_SOLID = "solid"
BACKDROP_BLUR = "blur"
BACKDROP_NAMES = (BACKDROP_TRANSPARENT, BACKDROP_SOLID, BACKDROP_BLUR)

# Display-only checkerboard
CHECKER_TILE_SIZE = 10
CHECKER_LIGHT = (42, 42, 42)
CHECKER_DARK = (26, 26, 26)

# Export
EXPORT_FORMAT_PNG = "PNG"
EXPORT_FORMAT_JPEG = "JPEG"
DEFAULT_PNG_FILENAME = "removed-background.png"
DEFAULT_JPEG_FILENAME = "removed-background.jpg"
