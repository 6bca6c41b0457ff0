"""Image selection and batch evaluation against the sample catalog's expected labels."""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import sample_images
from errors import UnknownImageError
from image_source import from_bgr
from shape_detector import detect as default_detect

logger = logging.getLogger(__name__)


class SelectionManager:
    """
    Tracks which catalog images are selected for a batch run.

    Listeners registered with add_listener() are called with the new
    selection (a list in catalog order) after every change.
    """

    def __init__(self, names: Sequence[str]):
        self._names = list(names)
        self._selected = set()
        self._listeners: List[Callable[[List[str]], None]] = []

    def add_listener(self, callback):
        self._listeners.append(callback)

    def remove_listener(self, callback):
        self._listeners.remove(callback)

    def _notify(self):
        current = self.selected()
        for callback in list(self._listeners):
            callback(current)

    def _check(self, name):
        if name not in self._names:
            raise UnknownImageError(f"Unknown sample image: {name}")

    def is_selected(self, name) -> bool:
        return name in self._selected

    def select(self, name):
        self._check(name)
        if name not in self._selected:
            self._selected.add(name)
            self._notify()

    def deselect(self, name):
        self._check(name)
        if name in self._selected:
            self._selected.discard(name)
            self._notify()

    def toggle(self, name) -> bool:
        """Flip selection of one image; returns the new state."""
        self._check(name)
        if name in self._selected:
            self._selected.discard(name)
        else:
            self._selected.add(name)
        self._notify()
        return name in self._selected

    def select_all(self):
        self._selected = set(self._names)
        self._notify()

    def deselect_all(self):
        self._selected.clear()
        self._notify()

    def selected(self) -> List[str]:
        return [n for n in self._names if n in self._selected]

    def summary(self) -> str:
        n = len(self._selected)
        return f"{n} image{'' if n == 1 else 's'} selected"


@dataclass
class ImageEvaluation:
    name: str
    expected: Tuple[str, ...]
    detected: Tuple[str, ...]
    passed: bool
    processing_time: float  # ms, as reported by the detector


@dataclass
class EvaluationReport:
    results: List[ImageEvaluation] = field(default_factory=list)
    total: int = 0
    passed: int = 0
    accuracy: float = 0.0
    mean_processing_time: float = 0.0

    @property
    def failures(self) -> List[ImageEvaluation]:
        return [r for r in self.results if not r.passed]


class BatchEvaluator:
    """
    Runs detect once per selected image and compares labels.

    An image passes when the detected labels equal the expected labels as a
    multiset (order does not matter, counts do).
    """

    def __init__(self, detect_fn: Optional[Callable] = None, catalog=sample_images):
        self.detect_fn = detect_fn if detect_fn is not None else default_detect
        self.catalog = catalog

    def evaluate_one(self, name) -> ImageEvaluation:
        sample = self.catalog.get_sample(name)
        img = from_bgr(self.catalog.render_sample(name))
        result = self.detect_fn(img.pixels, img.width, img.height)
        detected = tuple(s.type for s in result.shapes)
        passed = Counter(detected) == Counter(sample.expected)
        logger.debug("%s: expected=%s detected=%s passed=%s",
                     name, sample.expected, detected, passed)
        return ImageEvaluation(name, tuple(sample.expected), detected, passed,
                               result.processing_time)

    def evaluate(self, names: Sequence[str]) -> EvaluationReport:
        # Resolve every name first so a typo fails before any work is done
        for name in names:
            self.catalog.get_sample(name)

        t0 = time.perf_counter()
        results = [self.evaluate_one(name) for name in names]
        wall = time.perf_counter() - t0

        total = len(results)
        passed = sum(r.passed for r in results)
        report = EvaluationReport(
            results=results,
            total=total,
            passed=passed,
            accuracy=passed / total if total else 0.0,
            mean_processing_time=(sum(r.processing_time for r in results) / total
                                  if total else 0.0),
        )
        logger.info("evaluated %d image(s): %d passed (%.1f%%) in %.2fs",
                    total, passed, report.accuracy * 100, wall)
        return report


def format_report(report):
    lines = []
    for r in report.results:
        status = "PASS" if r.passed else "FAIL"
        expected = ", ".join(r.expected) or "(none)"
        detected = ", ".join(r.detected) or "(none)"
        lines.append(f"[{status}] {r.name}: expected {expected} | detected {detected}"
                     f" | {r.processing_time:.2f}ms")
    lines.append(f"Passed: {report.passed}/{report.total} ({report.accuracy * 100:.1f}%)")
    lines.append(f"Average processing time: {report.mean_processing_time:.2f}ms")
    return "\n".join(lines)
