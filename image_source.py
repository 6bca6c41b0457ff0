"""Acquire RGBA pixel buffers for the detector using OpenCV."""

import logging
import os
from typing import NamedTuple

import cv2
import numpy as np

from errors import ImageLoadError
from shape_detector import ShapeDetector

logger = logging.getLogger(__name__)


class RGBAImage(NamedTuple):
    pixels: np.ndarray  # (height, width, 4) uint8, RGBA
    width: int
    height: int


def from_bgr(frame):
    """Wrap an OpenCV frame (gray, BGR or BGRA) as an RGBA image."""
    if frame.ndim == 2:
        rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    elif frame.shape[2] == 3:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
    elif frame.shape[2] == 4:
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
    else:
        raise ImageLoadError(f"unsupported channel count: {frame.shape[2]}")
    if rgba.dtype == np.uint16:
        rgba = (rgba >> 8).astype(np.uint8)
    elif rgba.dtype != np.uint8:
        raise ImageLoadError(f"unsupported pixel depth: {rgba.dtype}")
    h, w = rgba.shape[:2]
    return RGBAImage(rgba, w, h)


def load_image(path):
    if not os.path.isfile(path):
        raise ImageLoadError(f"Could not open {path}")
    frame = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if frame is None:
        raise ImageLoadError(f"Could not decode {path}")
    img = from_bgr(frame)
    logger.debug("loaded %s (%dx%d)", path, img.width, img.height)
    return img


def decode_image(data: bytes):
    """Decode an encoded image (PNG, JPEG, ...) held in memory."""
    buf = np.frombuffer(data, dtype=np.uint8)
    if buf.size == 0:
        raise ImageLoadError("empty image buffer")
    frame = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if frame is None:
        raise ImageLoadError("Could not decode image buffer")
    return from_bgr(frame)


def detect_file(path, detector=None):
    """Load then detect. Decode errors are raised before the detector runs."""
    img = load_image(path)
    det = detector if detector is not None else ShapeDetector()
    return det.detect(img.pixels, img.width, img.height)
