import logging
import sys

import cv2
import matplotlib.pyplot as plt

from image_source import load_image
from renderer import draw_detections, format_results
from shape_detector import ShapeDetector

# ==== Config ====
IMG_PATH      = "shapes.png"
RDP_TOL       = 3.0          # max deviation (px) RDP may drop
NOISE_LIMIT   = 20           # blobs with <= this many pixels are noise
CIRCLE_CV     = 0.15         # radial stddev/mean below this => circle
CONTOUR_MODE  = "boundary"   # "boundary" or "traversal" (legacy ordering)
SHOW_PLOT     = True

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

path = sys.argv[1] if len(sys.argv) > 1 else IMG_PATH
detector = ShapeDetector(rdp_tolerance=RDP_TOL, noise_limit=NOISE_LIMIT,
                         circle_cv=CIRCLE_CV, contour_mode=CONTOUR_MODE)

# ---- Load -> RGBA buffer ----
img = load_image(path)

result = detector.detect(img.pixels, img.width, img.height)
print(format_results(result))

if SHOW_PLOT:
    bgr = cv2.cvtColor(img.pixels, cv2.COLOR_RGBA2BGR)
    final_vis = draw_detections(bgr, result)
    plt.imshow(cv2.cvtColor(final_vis, cv2.COLOR_BGR2RGB)); plt.axis("off")
    plt.title(f"{len(result.shapes)} shape(s) | {result.processing_time:.1f} ms")
    plt.tight_layout(); plt.show()
