#!/usr/bin/env python
"""
Create a grid of numbered labels inside a rectangle of a label document image.

Usage:
    python scripts/batch_grid.py <document.json> <image_name> <x1> <y1> <x2> <y2> \
        --rows 2 --cols 5 [--order boustrophedon] [--start 1] [--detect-color]
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.batch import plan_grid, generate_batch_labels
from core.errors import AnnotationError
from core.images import ImageRepository
from core.models import BatchConfig, NumberingOrder, LABEL_TYPES
from core.store import LabelStore
from vision.ocr import TesseractEngine


def parse_float_list(value):
    return [float(v) for v in value.split(",") if v.strip()]


def main():
    parser = argparse.ArgumentParser(description="Create a grid of numbered labels")
    parser.add_argument("document", help="Path to the label document (JSON)")
    parser.add_argument("image", help="Image name inside the document")
    parser.add_argument("coords", nargs=4, type=float, metavar="N", help="Selection corners: x1 y1 x2 y2")
    parser.add_argument("--rows", type=int, required=True, help="Grid rows")
    parser.add_argument("--cols", type=int, required=True, help="Grid columns")
    parser.add_argument("--order", default="ltr", choices=[o.value for o in NumberingOrder],
                        help="House numbering order (default: ltr)")
    parser.add_argument("--start", type=int, default=1, help="First house number (default: 1)")
    parser.add_argument("--increment", type=int, default=1, help="House number step (default: 1)")
    parser.add_argument("--sequence", type=parse_float_list, help="Custom house numbers, comma separated")
    parser.add_argument("--block", default="", help="Block number")
    parser.add_argument("--type", default="residential", choices=list(LABEL_TYPES), help="Label type")
    parser.add_argument("--col-dividers", type=parse_float_list, help="Column divider fractions, comma separated")
    parser.add_argument("--row-dividers", type=parse_float_list, help="Row divider fractions, comma separated")
    parser.add_argument("--detect-color", action="store_true", help="Sample each cell's fill color")
    parser.add_argument("--detect-area", action="store_true", help="Read each cell's area with Tesseract")
    parser.add_argument("--image-path", help="Image file (defaults to the document's imageUri)")
    parser.add_argument("--workers", type=int, default=4, help="Cells analysed in parallel")
    parser.add_argument("--dry-run", action="store_true", help="Print the plan without saving")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    config = BatchConfig(
        rows=args.rows,
        cols=args.cols,
        start_block_number=args.block,
        start_house_number=args.start,
        house_number_increment=args.increment,
        custom_sequence=[int(n) for n in args.sequence] if args.sequence else None,
        use_custom_sequence=bool(args.sequence),
        column_dividers=args.col_dividers,
        row_dividers=args.row_dividers,
        type=args.type,
        color=LABEL_TYPES[args.type],
        numbering_order=args.order,
        auto_detect_color=args.detect_color,
        auto_detect_area=args.detect_area,
    )
    start = (args.coords[0], args.coords[1])
    end = (args.coords[2], args.coords[3])

    try:
        store = LabelStore.load(args.document)
        image = store.get_image(args.image)

        if args.dry_run:
            for cell in plan_grid(config, start, end):
                corner = cell.points[0]
                print(f"  ({cell.row}, {cell.col}) house {cell.house_number} at ({corner.x:.0f}, {corner.y:.0f})")
            return

        raster = None
        if config.auto_detect_color or config.auto_detect_area:
            image_path = args.image_path or image.image_uri
            if not image_path:
                print("✗ Auto-detection needs --image-path or an imageUri in the document")
                sys.exit(1)
            repository = ImageRepository()
            repository.register_path(image.name, image_path)
            raster = repository.get(image.name)

        labels = generate_batch_labels(
            config,
            start,
            end,
            raster=raster,
            ocr_engine=TesseractEngine() if config.auto_detect_area else None,
            max_workers=args.workers,
        )
        store.add_labels(image.name, labels)
        store.save()
    except (AnnotationError, FileNotFoundError, ValueError) as e:
        print(f"✗ Batch failed: {e}")
        sys.exit(1)

    print(f"✓ Added {len(labels)} labels to {image.name}")
    for label in labels:
        extras = []
        if label.area is not None:
            extras.append(f"area {label.area:g}")
        extras.append(label.color)
        print(f"  {label.house_number:>5}  {', '.join(extras)}")


if __name__ == "__main__":
    main()
