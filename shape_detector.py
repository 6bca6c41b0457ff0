import logging
import time
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from errors import InvalidImageError
from shape_types import SHAPE_TYPES, BoundingBox, DetectedShape, DetectionResult, Point

logger = logging.getLogger(__name__)

# Tuned constants, reproduced exactly for compatibility
RDP_TOLERANCE = 3.0
NOISE_LIMIT = 20          # blobs with <= this many pixels are dropped
CIRCLE_CV = 0.15          # radial coefficient of variation below this => circle
SIZE_SATURATION = 500     # blob pixel count at which confidence stops growing

# circle, triangle, rectangle, pentagon, star
BASE_CONFIDENCE = dict(zip(SHAPE_TYPES, (0.95, 0.9, 0.9, 0.85, 0.8)))
DEFAULT_CONFIDENCE = 0.8

CONTOUR_MODES = ("boundary", "traversal")

# Flood-fill neighbor order: 4 axis then 4 diagonal
FILL_DIRS = ((1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (-1, -1), (1, -1), (-1, 1))

# Moore neighborhood, clockwise (y grows downward) starting at west
MOORE_RING = ((-1, 0), (-1, -1), (0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1))
MOORE_INDEX = {d: i for i, d in enumerate(MOORE_RING)}


def _as_array(pixels):
    """bytes-like buffers are read as raw uint8, anything else goes through asarray."""
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        return np.frombuffer(pixels, dtype=np.uint8)
    return np.asarray(pixels)


class Polarity(NamedTuple):
    bg_level: float
    avg_level: float
    dark_shapes: bool
    threshold: float


class ShapeDetector:
    def __init__(self, rdp_tolerance=RDP_TOLERANCE, noise_limit=NOISE_LIMIT,
                 circle_cv=CIRCLE_CV, contour_mode="boundary"):
        if contour_mode not in CONTOUR_MODES:
            raise ValueError(f"contour_mode must be one of {CONTOUR_MODES}, got {contour_mode!r}")
        # Max perpendicular distance (px) a point may deviate before RDP keeps it
        self.rdp_tolerance = float(rdp_tolerance)
        # Keep only blobs with > noise_limit pixels
        self.noise_limit = int(noise_limit)
        # Circularity cut-off on stddev(radii) / mean(radii)
        self.circle_cv = float(circle_cv)
        # "boundary": RDP + circularity on the traced outline
        # "traversal": RDP + circularity on flood-fill order (legacy output)
        self.contour_mode = contour_mode

    # ------------------------------------------------------------------ stages

    def to_grayscale(self, pixels, width, height):
        """RGBA buffer -> (height, width) uint8 luminance, round-half-up."""
        rgba = _as_array(pixels).astype(np.uint8, copy=False).reshape(height, width, 4)
        r = rgba[..., 0].astype(np.float64)
        g = rgba[..., 1].astype(np.float64)
        b = rgba[..., 2].astype(np.float64)
        lum = np.floor(0.299 * r + 0.587 * g + 0.114 * b + 0.5)
        return np.clip(lum, 0, 255).astype(np.uint8)

    def estimate_polarity(self, gray):
        """
        Border mean vs. whole-image mean.
        Shapes are dark when the image average is below the border average.
        Corners are counted once per edge they sit on.
        """
        g = gray.astype(np.int64)
        height, width = g.shape
        border_sum = int(g[0, :].sum() + g[height - 1, :].sum()
                         + g[:, 0].sum() + g[:, width - 1].sum())
        border_count = 2 * width + 2 * height
        bg_level = border_sum / border_count
        avg_level = int(g.sum()) / g.size
        dark_shapes = bool(avg_level < bg_level)
        threshold = bg_level * 0.9 if dark_shapes else bg_level * 1.1
        return Polarity(bg_level, avg_level, dark_shapes, threshold)

    def binarize(self, gray, threshold, dark_shapes):
        """1 = candidate shape pixel, 0 = background."""
        if dark_shapes:
            return (gray < threshold).astype(np.uint8)
        return (gray > threshold).astype(np.uint8)

    def find_blobs(self, mask) -> List[List[Point]]:
        """
        8-connected components by iterative flood fill, in row-major discovery order.
        Pixels are marked visited when pushed, so each is processed exactly once.
        Blobs with <= noise_limit pixels are discarded.
        """
        height, width = mask.shape
        fg = mask.ravel().astype(bool).tolist()
        visited = bytearray(width * height)
        blobs = []

        for start in np.flatnonzero(mask).tolist():
            if visited[start]:
                continue
            visited[start] = 1
            stack = [Point(start % width, start // width)]
            blob = []
            while stack:
                p = stack.pop()
                blob.append(p)
                for dx, dy in FILL_DIRS:
                    nx, ny = p.x + dx, p.y + dy
                    if nx < 0 or ny < 0 or nx >= width or ny >= height:
                        continue
                    ni = ny * width + nx
                    if fg[ni] and not visited[ni]:
                        visited[ni] = 1
                        stack.append(Point(nx, ny))
            if len(blob) > self.noise_limit:
                blobs.append(blob)
        return blobs

    def trace_boundary(self, mask, start: Point) -> List[Point]:
        """
        Moore-neighbor outline of the component containing `start`, clockwise.
        `start` must be the component's first pixel in row-major order, so its
        west neighbor is background. Stops when the first move is about to repeat.
        """
        height, width = mask.shape

        def is_fg(x, y):
            return 0 <= x < width and 0 <= y < height and mask[y, x] != 0

        outline = [start]
        cur = start
        back = Point(start.x - 1, start.y)
        first_move = None
        while True:
            d0 = MOORE_INDEX[(back.x - cur.x, back.y - cur.y)]
            nxt = None
            for k in range(1, 9):
                d = (d0 + k) % 8
                dx, dy = MOORE_RING[d]
                if is_fg(cur.x + dx, cur.y + dy):
                    nxt = Point(cur.x + dx, cur.y + dy)
                    bx, by = MOORE_RING[(d - 1) % 8]
                    back = Point(cur.x + bx, cur.y + by)
                    break
            if nxt is None:  # isolated pixel
                break
            if first_move is None:
                first_move = nxt
            elif cur == start and nxt == first_move:
                break
            cur = nxt
            outline.append(cur)

        if len(outline) > 1 and outline[-1] == start:
            outline.pop()
        return outline

    @staticmethod
    def perpendicular_distance(p, a, b):
        """Distance from p to the line through a and b (0 when a == b)."""
        num = abs((b[1] - a[1]) * p[0] - (b[0] - a[0]) * p[1] + b[0] * a[1] - b[1] * a[0])
        den = np.hypot(b[0] - a[0], b[1] - a[1])
        return 0.0 if den == 0 else float(num / den)

    def rdp_simplify(self, points: Sequence[Point], tolerance: Optional[float] = None) -> List[Point]:
        """
        Ramer-Douglas-Peucker over an ordered point list.
        Explicit stack of (start, end) index ranges instead of recursion; yields the
        same vertices as the recursive split-and-concatenate form (first maximum wins).
        """
        tol = self.rdp_tolerance if tolerance is None else float(tolerance)
        n = len(points)
        if n < 3:
            return list(points)

        pts = np.asarray(points, dtype=np.float64)
        xs, ys = pts[:, 0], pts[:, 1]
        keep = np.zeros(n, dtype=bool)
        keep[0] = keep[n - 1] = True

        ranges = [(0, n - 1)]
        while ranges:
            s, e = ranges.pop()
            if e - s < 2:
                continue
            ax, ay, bx, by = xs[s], ys[s], xs[e], ys[e]
            den = np.hypot(bx - ax, by - ay)
            if den == 0:
                continue
            # Same operand order as perpendicular_distance
            num = np.abs((by - ay) * xs[s + 1:e] - (bx - ax) * ys[s + 1:e] + bx * ay - by * ax)
            dist = num / den
            i = int(np.argmax(dist))
            if dist[i] > tol:
                split = s + 1 + i
                keep[split] = True
                ranges.append((split, e))
                ranges.append((s, split))

        return [points[i] for i in np.flatnonzero(keep)]

    def _drop_closing_vertex(self, approx, tol):
        """Outline is closed: a last vertex on the (prev -> first) edge is redundant."""
        if len(approx) > 3 and self.perpendicular_distance(approx[-1], approx[-2], approx[0]) <= tol:
            return approx[:-1]
        return approx

    @staticmethod
    def compute_center(points):
        """True point-average centroid (not the bounding-box center)."""
        pts = np.asarray(points, dtype=np.float64)
        return float(pts[:, 0].mean()), float(pts[:, 1].mean())

    def classify_shape(self, approx, outline, w, h):
        """
        Decision table on vertex count, then radial circularity.
        w/h are the bounding-box extents (not used by the current table).
        """
        v = len(approx)
        if v == 3:
            return "triangle"
        if v == 4:
            return "rectangle"
        if v == 5:
            return "pentagon"

        cx, cy = self.compute_center(outline)
        pts = np.asarray(outline, dtype=np.float64)
        radii = np.hypot(pts[:, 0] - cx, pts[:, 1] - cy)
        mean = radii.mean()
        # std is population std (ddof=0)
        if mean > 0 and radii.std() / mean < self.circle_cv:
            return "circle"

        # none of the above
        return "star"

    def compute_confidence(self, shape_type, approx, blob):
        base = BASE_CONFIDENCE.get(shape_type, DEFAULT_CONFIDENCE)
        size_factor = min(1.0, len(blob) / SIZE_SATURATION)
        return min(1.0, base * (0.8 + 0.2 * size_factor))

    # ---------------------------------------------------------------- pipeline

    def _validate(self, pixels, width, height):
        if isinstance(width, bool) or isinstance(height, bool):
            raise InvalidImageError("width and height must be integers")
        try:
            width, height = int(width), int(height)
        except (TypeError, ValueError) as e:
            raise InvalidImageError(f"width and height must be integers: {e}") from e
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"image dimensions must be positive, got {width}x{height}")
        arr = _as_array(pixels)
        expected = width * height * 4
        if arr.size != expected:
            raise InvalidImageError(
                f"pixel buffer has {arr.size} values, expected {expected} for {width}x{height} RGBA")
        if arr.ndim == 3 and arr.shape != (height, width, 4):
            raise InvalidImageError(
                f"pixel array has shape {arr.shape}, expected {(height, width, 4)}")
        if arr.ndim not in (1, 3):
            raise InvalidImageError(
                f"pixel buffer must be flat or (height, width, 4), got {arr.ndim} dimensions")
        if arr.dtype != np.uint8:
            if arr.dtype.kind not in "iu":
                raise InvalidImageError(f"pixel values must be integers, got dtype {arr.dtype}")
            lo, hi = int(arr.min()), int(arr.max())
            if lo < 0 or hi > 255:
                raise InvalidImageError(f"pixel values must be in 0..255, got range {lo}..{hi}")
        return width, height

    def detect(self, pixels, width, height) -> DetectionResult:
        """
        Full pipeline for a single RGBA buffer:
        1) Gray 2) Polarity + threshold 3) Binary mask 4) Blobs (flood fill)
        5) Outline + RDP 6) Classify + confidence
        Returns: DetectionResult with shapes in row-major discovery order.
        """
        t0 = time.perf_counter()
        width, height = self._validate(pixels, width, height)

        # 1) Convert to grayscale
        gray = self.to_grayscale(pixels, width, height)

        # 2) Background polarity from the border
        pol = self.estimate_polarity(gray)
        logger.debug("bg=%.2f avg=%.2f dark_shapes=%s threshold=%.2f",
                     pol.bg_level, pol.avg_level, pol.dark_shapes, pol.threshold)

        # 3) Binarize
        mask = self.binarize(gray, pol.threshold, pol.dark_shapes)

        # 4) Connected components
        blobs = self.find_blobs(mask)
        logger.debug("%d blob(s) after noise filter", len(blobs))

        # 5) + 6) Simplify, classify, score
        shapes = []
        for blob in blobs:
            box = BoundingBox.from_points(blob)
            if self.contour_mode == "boundary":
                outline = self.trace_boundary(mask, blob[0])
                approx = self._drop_closing_vertex(
                    self.rdp_simplify(outline), self.rdp_tolerance)
            else:
                outline = blob
                approx = self.rdp_simplify(blob)

            shape_type = self.classify_shape(approx, outline, box.width, box.height)
            confidence = self.compute_confidence(shape_type, approx, blob)
            logger.debug("blob at (%d,%d) size=%d vertices=%d -> %s (%.3f)",
                         box.x, box.y, len(blob), len(approx), shape_type, confidence)

            shapes.append(DetectedShape(
                type=shape_type,
                confidence=confidence,
                bounding_box=box,
                center=box.center,
                area=box.area,
            ))

        elapsed = (time.perf_counter() - t0) * 1000.0
        logger.debug("detected %d shape(s) in %.1fms", len(shapes), elapsed)
        return DetectionResult(shapes=shapes, processing_time=elapsed,
                               image_width=width, image_height=height)


_default_detector = ShapeDetector()


def detect(pixels, width, height) -> DetectionResult:
    """Run the default-configured detector on an RGBA buffer."""
    return _default_detector.detect(pixels, width, height)
