"""Shared test fixtures: synthetic grayscale canvases packed as RGBA buffers."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from sample_images import star_vertices
from shape_detector import ShapeDetector


class Canvas:
    """Single-channel drawing surface; pixel (x, y) is gray[y, x]."""

    def __init__(self, width, height, value=255):
        self.width = width
        self.height = height
        self.gray = np.full((height, width), value, dtype=np.uint8)

    def rect(self, x0, y0, x1, y1, value=0):
        """Fill columns x0..x1-1 and rows y0..y1-1."""
        self.gray[y0:y1, x0:x1] = value
        return self

    def disk(self, cx, cy, r, value=0):
        ys, xs = np.mgrid[0:self.height, 0:self.width]
        self.gray[(xs - cx) ** 2 + (ys - cy) ** 2 <= r * r] = value
        return self

    def polygon(self, verts, value=0):
        """Even-odd fill sampled at integer pixel coordinates."""
        ys, xs = np.mgrid[0:self.height, 0:self.width].astype(np.float64)
        inside = np.zeros(self.gray.shape, dtype=bool)
        for i in range(len(verts)):
            xi, yi = verts[i]
            xj, yj = verts[i - 1]
            crosses = (yi > ys) != (yj > ys)
            with np.errstate(divide="ignore", invalid="ignore"):
                x_at = (xj - xi) * (ys - yi) / (yj - yi) + xi
            inside ^= crosses & (xs < x_at)
        self.gray[inside] = value
        return self

    def inverted(self):
        out = Canvas(self.width, self.height)
        out.gray = 255 - self.gray
        return out

    def rgba(self):
        """Flat RGBA buffer with R = G = B = gray and opaque alpha."""
        out = np.empty((self.height, self.width, 4), dtype=np.uint8)
        out[..., 0] = out[..., 1] = out[..., 2] = self.gray
        out[..., 3] = 255
        return out.ravel()

    def args(self):
        return self.rgba(), self.width, self.height


@pytest.fixture
def canvas():
    return Canvas


@pytest.fixture
def detector():
    return ShapeDetector()


@pytest.fixture
def traversal_detector():
    return ShapeDetector(contour_mode="traversal")


@pytest.fixture
def square_image():
    """100x100 black square centred in a 200x200 white image."""
    return Canvas(200, 200).rect(50, 50, 150, 150)


@pytest.fixture
def disk_image():
    return Canvas(200, 200).disk(100, 100, 40)


@pytest.fixture
def star_image():
    return Canvas(200, 200).polygon(star_vertices(100, 100, 80, 32))
