import logging
import sys
import time

import matplotlib.pyplot as plt

import sample_images
from evaluation import BatchEvaluator, SelectionManager, format_report
from image_source import from_bgr
from renderer import draw_detections, plot_overlays
from shape_detector import ShapeDetector

# ========================== Config ==========================
CONTOUR_MODE = "boundary"   # "traversal" reproduces the legacy point ordering
SHOW_PLOTS   = True         # grid of annotated overlays after the run

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

# ===================== Pick the images =======================
selection = SelectionManager(sample_images.sample_names())
selection.add_listener(lambda names: print(f"Selection: {selection.summary()}"))
if len(sys.argv) > 1:
    for name in sys.argv[1:]:
        selection.select(name)
else:
    selection.select_all()

# ======================= Evaluate ============================
det = ShapeDetector(contour_mode=CONTOUR_MODE)
evaluator = BatchEvaluator(det.detect)

wall_start = time.perf_counter()
report = evaluator.evaluate(selection.selected())
wall = time.perf_counter() - wall_start

print(format_report(report))
throughput = report.total / wall if wall > 0 else 0.0
print(f"End-to-end throughput (incl. rendering): {throughput:.2f} images/s")

# ===================== Show overlays =========================
if SHOW_PLOTS and report.results:
    overlays, titles = [], []
    for r in report.results:
        bgr = sample_images.render_sample(r.name)
        img = from_bgr(bgr)
        overlays.append(draw_detections(bgr, det.detect(img.pixels, img.width, img.height)))
        titles.append(f"{'PASS' if r.passed else 'FAIL'}: {r.name}")
    plot_overlays(overlays, titles)
    plt.show()
