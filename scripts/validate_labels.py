#!/usr/bin/env python
"""
Validate a label document and report issues.

Usage:
    python scripts/validate_labels.py <document.json> [--show-info]
"""

import sys
import argparse
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.store import LabelStore
from core.validate import validate_document


def main():
    parser = argparse.ArgumentParser(description="Validate a label document")
    parser.add_argument("document", help="Path to the label document (JSON)")
    parser.add_argument("--show-info", action="store_true", help="Also list info-level findings")

    args = parser.parse_args()

    try:
        store = LabelStore.load(args.document)
    except (FileNotFoundError, ValueError) as e:
        print(f"✗ Could not load document: {e}")
        sys.exit(1)

    report = validate_document(store)
    print(report.summary())

    findings = report.errors + report.warnings
    if args.show_info:
        findings += report.info

    for w in findings[:50]:
        print(f"  [{w.severity}] {w.image_name} / {w.label_id}: {w.code} - {w.message}")
    if len(findings) > 50:
        print(f"  ... and {len(findings) - 50} more")

    sys.exit(0 if report.is_valid else 1)


if __name__ == "__main__":
    main()
