class ShapeDetectionError(Exception):
    """Base class for errors raised by this package."""


class InvalidImageError(ShapeDetectionError, ValueError):
    """Pixel buffer does not match the stated dimensions."""


class ImageLoadError(ShapeDetectionError, RuntimeError):
    """Image file could not be read or decoded."""


class UnknownImageError(ShapeDetectionError, KeyError):
    """Name is not in the sample image catalog."""

    def __str__(self):
        # KeyError repr-quotes its message otherwise
        return str(self.args[0]) if self.args else ""
