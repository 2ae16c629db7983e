#!/usr/bin/env python3
"""
Command-line interface for PDF accessibility remediation.

Usage:
    python run_remediate.py <pdf_path> -o <output_path> [workflows]

Examples:
    # Tag tree only
    python run_remediate.py report.pdf -o report_tagged.pdf --tags

    # Everything
    python run_remediate.py report.pdf -o report_accessible.pdf --alt --ocr --tags --summaries
"""

import argparse
import logging
from pathlib import Path

from pdfremediate import add_alt_text, add_ocr_text, add_summaries, add_tag_tree
from pdfremediate.errors import RemediationError
from pdfremediate.utils import ConfigLoader


def main():
    parser = argparse.ArgumentParser(
        description='Make PDF documents accessible',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Workflows (run in this order):
  --alt        Generate alt text for images without it
  --ocr        Overlay invisible OCR text on image-only pages
  --tags       Generate the tag tree, text layer and heading bookmarks
  --summaries  Add one summary bookmark per page and set the title
        """
    )

    parser.add_argument('pdf_path', help='Path to input PDF file')
    parser.add_argument('--output', '-o', required=True, help='Output PDF path')

    parser.add_argument('--alt', action='store_true', help='Generate alt text')
    parser.add_argument('--ocr', action='store_true', help='Run OCR on image-only pages')
    parser.add_argument('--tags', action='store_true', help='Generate tag tree')
    parser.add_argument('--summaries', action='store_true', help='Generate summaries & bookmarks')

    parser.add_argument('--model', default=None, help='LLM model for classification and summaries')
    parser.add_argument('--vision-model', default=None, help='Vision model for alt text and OCR')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not (args.alt or args.ocr or args.tags or args.summaries):
        print("Nothing to do - add --alt, --ocr, --tags or --summaries.")
        return 1

    pdf_path = Path(args.pdf_path)
    if not pdf_path.exists():
        print(f"Error: File not found: {pdf_path}")
        return 1

    overrides = {}
    if args.model:
        overrides['model'] = args.model
    if args.vision_model:
        overrides['vision_model'] = args.vision_model
    opt = ConfigLoader().load(overrides)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    print("=" * 70)
    print("PDF Remediation")
    print("=" * 70)
    print(f"Input:     {pdf_path}")
    print(f"Output:    {output_path}")
    print(f"Model:     {opt.model}")
    print(f"Workflows: alt={args.alt}, ocr={args.ocr}, tags={args.tags}, summaries={args.summaries}")
    print("=" * 70)
    print()

    try:
        pdf_bytes = pdf_path.read_bytes()
        if args.alt:
            pdf_bytes = add_alt_text(pdf_bytes, opt)
        if args.ocr:
            pdf_bytes = add_ocr_text(pdf_bytes, opt)
        if args.tags:
            pdf_bytes = add_tag_tree(pdf_bytes, opt)
        if args.summaries:
            pdf_bytes = add_summaries(pdf_bytes, opt)
        output_path.write_bytes(pdf_bytes)
    except RemediationError as e:
        page = getattr(e, 'page_index', None)
        where = f" (page {page + 1})" if page is not None else ""
        print(f"Error remediating PDF{where}: {e}")
        return 1

    print(f"✓ Remediated PDF saved to: {output_path}")
    return 0


if __name__ == '__main__':
    exit(main())
