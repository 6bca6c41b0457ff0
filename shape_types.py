"""Result types shared by the detector, the renderer and the batch evaluator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Sequence

SHAPE_TYPES = ("circle", "triangle", "rectangle", "pentagon", "star")


class Point(NamedTuple):
    """Integer pixel coordinate, top-left origin."""

    x: int
    y: int


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned min/max extent of a blob.

    width/height are extents (max - min), so a 100px wide square
    reports width 99. Kept this way for output compatibility.
    """

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> "BoundingBox":
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        min_x, min_y = min(xs), min(ys)
        return cls(min_x, min_y, max(xs) - min_x, max(ys) - min_y)

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def area(self) -> int:
        return self.width * self.height

    def contains(self, point: Point) -> bool:
        return (self.x <= point.x <= self.x + self.width
                and self.y <= point.y <= self.y + self.height)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class DetectedShape:
    type: str
    confidence: float
    bounding_box: BoundingBox
    center: tuple[float, float]
    area: float

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "confidence": self.confidence,
            "boundingBox": self.bounding_box.to_dict(),
            "center": {"x": self.center[0], "y": self.center[1]},
            "area": self.area,
        }


@dataclass
class DetectionResult:
    """Shapes in blob discovery order (row-major). processing_time is in ms."""

    shapes: List[DetectedShape] = field(default_factory=list)
    processing_time: float = 0.0
    image_width: int = 0
    image_height: int = 0

    @property
    def types(self) -> list[str]:
        return [s.type for s in self.shapes]

    def to_dict(self) -> dict:
        return {
            "shapes": [s.to_dict() for s in self.shapes],
            "processingTime": self.processing_time,
            "imageWidth": self.image_width,
            "imageHeight": self.image_height,
        }
