"""
Demonstration of the full matte pipeline.

Builds a synthetic photo, segments it on the background worker, touches up
the mask with brush strokes, then writes PNG and JPEG exports for every
backdrop mode. Timings are printed so the cost of segmentation at
different sizes can be compared.

Usage:
    python examples/matte_pipeline_demo.py [output_dir]
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
import time

import numpy as np
from PIL import Image

from OM_Libs.CompositeLib.exporter import save_export
from OM_Libs.MatteLib.segmentation_engine import SegmentationParams, segment
from OM_Libs.SessionLib.editor_session import EditorSession


def make_demo_image(width, height):
    """Dark gradient background with a bright disc in the middle."""
    ys, xs = np.mgrid[0:height, 0:width]
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[:, :, 0] = (xs * 60 // max(width - 1, 1)).astype(np.uint8)
    arr[:, :, 2] = (ys * 80 // max(height - 1, 1)).astype(np.uint8)

    disc = (xs - width / 2) ** 2 + (ys - height / 2) ** 2 < (min(width, height) / 3) ** 2
    arr[disc] = (235, 200, 120)
    return Image.fromarray(arr)


def benchmark_segmentation(size, iterations=3):
    """Time segmentation of a size x size image."""
    print(f"\nSegmenting {size}x{size} image")
    print("-" * 60)
    image = make_demo_image(size, size)

    times = []
    for i in range(iterations):
        start = time.time()
        segment(image, SegmentationParams())
        elapsed = time.time() - start
        times.append(elapsed)
        print(f"  Run {i+1}: {elapsed:.3f}s")

    average = sum(times) / len(times)
    print(f"Average: {average:.3f}s")
    return average


def run_session(output_dir):
    """Run one editing session and save its exports."""
    print("\nEditing session")
    print("-" * 60)

    with EditorSession() as session:
        session.load(make_demo_image(320, 240))
        session.request_segmentation(
            lambda response, error: print(
                f"  Segmentation {'failed: ' + str(error) if error else 'finished'}"
            )
        )
        session.wait_for_segmentation(timeout=60)

        session.update_settings(brush_mode="erase", brush_radius=12, brush_hardness=100)
        session.paint_stroke([(20 + 4 * i, 20 + 2 * i) for i in range(10)])
        session.update_settings(brush_mode="restore", brush_hardness=70)
        session.paint_stroke([(160, 120), (164, 122)])
        print(f"  History: {len(session.history)} snapshots")

        for backdrop in ("transparent", "solid", "blur"):
            session.update_settings(backdrop=backdrop, backdrop_color="#2b6cb0")
            path = save_export(
                session.export_png(),
                output_dir / f"matte_{backdrop}.png",
                overwrite=True,
            )
            print(f"  Wrote {path}")

        path = save_export(session.export_jpeg(), output_dir / "matte.jpg", overwrite=True)
        print(f"  Wrote {path}")


def main():
    """Run the demonstration."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Matte Pipeline Demonstration")
    print("=" * 60)

    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("demo_output")

    results = []
    for size in (200, 500, 1000):
        try:
            results.append((size, benchmark_segmentation(size)))
        except KeyboardInterrupt:
            print("\n\nBenchmark interrupted by user")
            break

    run_session(output_dir)

    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    print("Size        Average")
    print("-" * 60)
    for size, average in results:
        print(f"{size:4d}x{size:<4d}  {average:6.3f}s")
    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
