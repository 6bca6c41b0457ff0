"""
Catalog of synthetic test images with their expected labels.

Every image is white with black filled shapes unless noted, drawn with OpenCV.
Shapes stay clear of the border so the border-based polarity estimate holds.
"""

import math
from typing import Callable, NamedTuple, Tuple

import cv2
import numpy as np

from errors import UnknownImageError

WIDTH, HEIGHT = 200, 200
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


class SampleImage(NamedTuple):
    name: str
    expected: Tuple[str, ...]
    draw: Callable[[np.ndarray], None]
    background: Tuple[int, int, int] = WHITE


def regular_vertices(cx, cy, radius, n, rotation=-math.pi / 2):
    """Float vertices of a regular n-gon, first vertex at `rotation` (top by default)."""
    return [(cx + radius * math.cos(rotation + 2 * i * math.pi / n),
             cy + radius * math.sin(rotation + 2 * i * math.pi / n))
            for i in range(n)]


def star_vertices(cx, cy, outer, inner, points=5):
    """Float vertices of a star, alternating outer and inner radius, tip at the top."""
    verts = []
    for i in range(2 * points):
        a = -math.pi / 2 + i * math.pi / points
        r = outer if i % 2 == 0 else inner
        verts.append((cx + r * math.cos(a), cy + r * math.sin(a)))
    return verts


def _to_pixels(verts):
    return np.array(verts).round().astype(np.int32)


def regular_polygon(cx, cy, radius, n, rotation=-math.pi / 2):
    return _to_pixels(regular_vertices(cx, cy, radius, n, rotation))


def star_polygon(cx, cy, outer, inner, points=5):
    return _to_pixels(star_vertices(cx, cy, outer, inner, points))


def _poly(pts, color=BLACK):
    return lambda img: cv2.fillPoly(img, [pts], color)


def _two_squares(img):
    cv2.rectangle(img, (20, 20), (59, 59), BLACK, -1)
    cv2.rectangle(img, (110, 120), (169, 169), BLACK, -1)


SAMPLES = {
    s.name: s for s in (
        SampleImage("square", ("rectangle",),
                    lambda img: cv2.rectangle(img, (50, 50), (149, 149), BLACK, -1)),
        SampleImage("circle", ("circle",),
                    lambda img: cv2.circle(img, (100, 100), 40, BLACK, -1)),
        SampleImage("triangle", ("triangle",),
                    _poly(np.array([(100, 30), (170, 160), (30, 160)], dtype=np.int32))),
        SampleImage("pentagon", ("pentagon",), _poly(regular_polygon(100, 105, 70, 5))),
        SampleImage("star", ("star",), _poly(star_polygon(100, 100, 80, 32))),
        SampleImage("wide_rectangle", ("rectangle",),
                    lambda img: cv2.rectangle(img, (30, 60), (169, 129), BLACK, -1)),
        SampleImage("two_squares", ("rectangle", "rectangle"), _two_squares),
        SampleImage("light_circle_on_dark", ("circle",),
                    lambda img: cv2.circle(img, (100, 100), 40, WHITE, -1),
                    background=BLACK),
        SampleImage("blank", (), lambda img: None),
    )
}


def sample_names():
    return list(SAMPLES)


def get_sample(name):
    try:
        return SAMPLES[name]
    except KeyError:
        raise UnknownImageError(f"Unknown sample image: {name}") from None


def render_sample(name):
    """BGR uint8 image for a catalog entry."""
    sample = get_sample(name)
    img = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)
    img[:] = sample.background
    sample.draw(img)
    return img
