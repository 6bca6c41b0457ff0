from __future__ import annotations

import cv2
import numpy as np
import pytest

from errors import ImageLoadError
from image_source import decode_image, detect_file, from_bgr, load_image


@pytest.fixture
def square_png(tmp_path):
    bgr = np.full((120, 160, 3), 255, dtype=np.uint8)
    bgr[30:90, 40:100] = 0
    bgr[0, 0] = (255, 0, 0)  # one blue pixel to check channel order
    path = tmp_path / "square.png"
    assert cv2.imwrite(str(path), bgr)
    return path


def test_load_image(square_png):
    img = load_image(str(square_png))
    assert (img.width, img.height) == (160, 120)
    assert img.pixels.shape == (120, 160, 4)
    assert img.pixels.dtype == np.uint8
    assert img.pixels[0, 0].tolist() == [0, 0, 255, 255]
    assert img.pixels[60, 60].tolist() == [0, 0, 0, 255]


def test_missing_file(tmp_path):
    with pytest.raises(ImageLoadError, match="Could not open"):
        load_image(str(tmp_path / "nope.png"))


def test_undecodable_file(tmp_path):
    path = tmp_path / "garbage.png"
    path.write_bytes(b"definitely not a png")
    with pytest.raises(ImageLoadError, match="Could not decode"):
        load_image(str(path))


def test_decode_image():
    bgr = np.zeros((10, 20, 3), dtype=np.uint8)
    ok, encoded = cv2.imencode(".png", bgr)
    assert ok
    img = decode_image(encoded.tobytes())
    assert (img.width, img.height) == (20, 10)


@pytest.mark.parametrize("data", [b"", b"\x89PNG broken"])
def test_decode_image_errors(data):
    with pytest.raises(ImageLoadError):
        decode_image(data)


def test_from_bgr_gray_and_bgra():
    gray = np.full((4, 5), 77, dtype=np.uint8)
    img = from_bgr(gray)
    assert img.pixels[0, 0].tolist() == [77, 77, 77, 255]

    bgra = np.zeros((4, 5, 4), dtype=np.uint8)
    bgra[..., 0] = 200  # blue
    bgra[..., 3] = 10
    img = from_bgr(bgra)
    assert img.pixels[0, 0].tolist() == [0, 0, 200, 10]


def test_from_bgr_16_bit():
    frame = np.full((2, 2, 3), 65535, dtype=np.uint16)
    img = from_bgr(frame)
    assert img.pixels.dtype == np.uint8
    assert img.pixels[0, 0].tolist() == [255, 255, 255, 255]


def test_detect_file(square_png):
    result = detect_file(str(square_png))
    assert result.types == ["rectangle"]
    box = result.shapes[0].bounding_box
    assert (box.x, box.y, box.width, box.height) == (40, 30, 59, 59)


def test_detect_file_does_not_run_detector_on_bad_input(tmp_path):
    class Exploding:
        def detect(self, *args):
            raise AssertionError("detector must not run")

    with pytest.raises(ImageLoadError):
        detect_file(str(tmp_path / "missing.png"), detector=Exploding())
