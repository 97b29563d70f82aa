#!/usr/bin/env python
"""
Run the magic wand on an image and print (or save) the detected polygon.

Usage:
    python scripts/magic_wand.py <image> <x> <y> [--tolerance 30] [--edge-threshold 50]
        [--method contour] [--color] [--overlay out.png] [--add-to labels.json --type park]
"""

import sys
import json
import argparse
from pathlib import Path

import cv2
import numpy as np

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import AnnotationError
from core.images import decode_image
from core.models import LABEL_TYPES
from core.store import LabelStore
from vision.sampler import sample_color
from vision.segment import segment_region, METHODS, DEFAULT_TOLERANCE, DEFAULT_EDGE_THRESHOLD


def draw_overlay(raster, polygon, seed, out_path):
    """Save the image with the detected outline and seed drawn on it."""
    bgr = cv2.cvtColor(np.ascontiguousarray(raster.rgb), cv2.COLOR_RGB2BGR)
    pts = np.array([[int(round(p.x)), int(round(p.y))] for p in polygon], dtype=np.int32)
    cv2.polylines(bgr, [pts], isClosed=True, color=(0, 0, 255), thickness=2)
    cv2.circle(bgr, (int(seed[0]), int(seed[1])), 4, (0, 255, 0), -1)
    cv2.imwrite(str(out_path), bgr)


def add_label(args, raster, result, color):
    """Add the detected polygon to a label document, registering the image if needed."""
    name = args.image_name or Path(args.image).name
    try:
        store = LabelStore.open_or_create(args.add_to)
        if name not in store.document.images:
            store.add_image(name, raster.width, raster.height, image_uri=str(Path(args.image).resolve()))
        label = store.create_label(name, result.polygon, type=args.type, color=color)
        store.save()
    except (AnnotationError, OSError, ValueError) as e:
        print(f"✗ Could not add label: {e}")
        sys.exit(1)

    print(f"✓ Added label {label.id} to {store.path}")


def main():
    parser = argparse.ArgumentParser(description="Detect the region around a point")
    parser.add_argument("image", help="Path to the image file")
    parser.add_argument("x", type=float, help="Seed x in pixels")
    parser.add_argument("y", type=float, help="Seed y in pixels")
    parser.add_argument("--tolerance", type=float, default=DEFAULT_TOLERANCE, help="Color tolerance")
    parser.add_argument("--edge-threshold", type=float, default=DEFAULT_EDGE_THRESHOLD, help="Edge threshold")
    parser.add_argument("--method", default="angular", choices=METHODS, help="Outline method")
    parser.add_argument("--color", action="store_true", help="Also sample the region color")
    parser.add_argument("--overlay", help="Write a debug overlay PNG to this path")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--add-to", metavar="DOCUMENT", help="Add the polygon as a label to this document")
    parser.add_argument("--image-name", help="Image name in the document (default: file name)")
    parser.add_argument("--type", default="other", choices=list(LABEL_TYPES), help="Label type when adding")

    args = parser.parse_args()

    try:
        raster = decode_image(args.image)
        result = segment_region(
            raster,
            (args.x, args.y),
            tolerance=args.tolerance,
            edge_threshold=args.edge_threshold,
            method=args.method,
        )
    except AnnotationError as e:
        print(f"✗ {e}")
        sys.exit(1)

    output = result.to_dict()
    if args.color:
        output["color"] = sample_color(raster, result.polygon)

    if args.json:
        print(json.dumps(output, indent=2))
    else:
        print(f"Image: {args.image} ({raster.width}x{raster.height})")
        print(f"Region: {result.pixel_count} pixels, {len(result.polygon)} vertices ({result.method})")
        if result.capped:
            print("  ⚠ Fill stopped at the pixel cap")
        if result.fallback_used:
            print("  ⚠ Outline degenerated, using bounding box")
        if args.color:
            print(f"Color: {output['color']}")
        for p in result.polygon:
            print(f"  ({p.x:.1f}, {p.y:.1f})")

    if args.overlay:
        draw_overlay(raster, result.polygon, (args.x, args.y), args.overlay)
        print(f"✓ Overlay written to {args.overlay}")

    if args.add_to:
        add_label(args, raster, result, output.get("color"))


if __name__ == "__main__":
    main()
