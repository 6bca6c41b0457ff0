import cv2
import matplotlib.pyplot as plt

from shape_types import SHAPE_TYPES

# BGR, in SHAPE_TYPES order
SHAPE_COLORS = dict(zip(SHAPE_TYPES, (
    (0, 255, 0),     # circle: lime
    (0, 165, 255),   # triangle: orange
    (255, 255, 0),   # rectangle: aqua
    (255, 0, 255),   # pentagon: magenta
    (0, 255, 255),   # star: yellow
)))
DEFAULT_COLOR = (0, 255, 0)


def draw_detections(bgr, result, thickness=2):
    """Draw bounding boxes and type labels on a copy of the input color image."""
    overlay = bgr.copy()
    for s in result.shapes:
        color = SHAPE_COLORS.get(s.type, DEFAULT_COLOR)
        box = s.bounding_box
        cv2.rectangle(overlay, (box.x, box.y), (box.x + box.width, box.y + box.height),
                      color, thickness)
        cv2.putText(overlay, s.type, (box.x + 5, box.y + 15),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1, cv2.LINE_AA)
    return overlay


def format_results(result):
    lines = [
        f"Processing Time: {result.processing_time:.2f}ms",
        f"Shapes Found: {len(result.shapes)}",
    ]
    if not result.shapes:
        lines.append("No shapes detected.")
        return "\n".join(lines)

    lines.append("Detected Shapes:")
    for s in result.shapes:
        cx, cy = s.center
        lines.append(
            f"  {s.type.capitalize()}: confidence {s.confidence * 100:.1f}%, "
            f"center ({cx:.1f}, {cy:.1f}), area {s.area:.1f}px²"
        )
    return "\n".join(lines)


def plot_overlays(images, titles=None, cols=3):
    """One matplotlib axis per BGR overlay. Returns the figure (caller shows/saves it)."""
    n = max(len(images), 1)
    cols = min(cols, n)
    rows = (n + cols - 1) // cols
    fig, axes = plt.subplots(rows, cols, figsize=(4 * cols, 4 * rows), squeeze=False)
    for i, ax in enumerate(axes.flat):
        ax.axis("off")
        if i >= len(images):
            continue
        ax.imshow(cv2.cvtColor(images[i], cv2.COLOR_BGR2RGB))
        if titles is not None:
            ax.set_title(titles[i])
    fig.tight_layout()
    return fig
