"""
Exception types raised by Open Matte.

Every failure that should reach the user is reported as a subclass of
MatteError so callers can catch the whole family in one place.
"""


class MatteError(RuntimeError):
    """Base class for Open Matte errors."""


class InvalidImageError(MatteError, ValueError):
    """Input image is empty (zero width or height) or cannot be decoded."""


class NoImageLoadedError(MatteError):
    """A session operation needs an image but none has been loaded."""


class SegmentationError(MatteError):
    """The segmentation engine failed or is unavailable."""


class SessionBusyError(MatteError):
    """Operation rejected because a segmentation request is outstanding."""


class ExportError(MatteError):
    """Encoding or writing an export failed."""
