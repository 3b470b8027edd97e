#!/usr/bin/env python3
"""
Decode a barcode from a local image file and look it up in the product directory
"""
import argparse
import asyncio
import mimetypes
import sys
import os
from pathlib import Path

# Add parent directory to path to import pos_app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from pos_app.config import settings
from pos_app.exceptions import PosError
from pos_app.services.billing_session import BillingSession
import logging

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def scan_file(file_path: str, lookup: bool) -> int:
    print(f"\n{'='*60}")
    print(f"Scanning image: {file_path}")
    print(f"{'='*60}\n")

    if not os.path.exists(file_path):
        print(f"ERROR: File not found: {file_path}")
        return 1

    with open(file_path, 'rb') as f:
        content = f.read()
    content_type = mimetypes.guess_type(file_path)[0]
    print(f"Size: {len(content):,} bytes, type: {content_type or 'unknown'}")
    print(f"Max dimension: {settings.max_image_dimension}px\n")

    session = BillingSession()
    try:
        barcode = session.image_source.read_barcode(content, content_type)
    except PosError as e:
        print(f"ERROR [{e.code}]: {e.message}")
        return 1
    print(f"Barcode: {barcode}")

    if not lookup:
        return 0

    print(f"\nLooking up in directory: {settings.directory_api_url}")
    try:
        await session.catalog.refresh_products()
    except PosError as e:
        print(f"ERROR [{e.code}]: {e.message}")
        return 1

    product = session.catalog.find_by_barcode(barcode)
    if product is None:
        print("Product not found!")
        return 1
    print(f"Product: {product.name} (id {product.product_id})")
    print(f"Price: {product.price}  Selling price: {product.selling_price}  Stock: {product.quantity}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Decode a barcode from an image file")
    parser.add_argument("image", help="Path to a photo of the barcode")
    parser.add_argument("--lookup", action="store_true", help="Look the barcode up in the product directory")
    args = parser.parse_args()
    sys.exit(asyncio.run(scan_file(args.image, args.lookup)))


if __name__ == "__main__":
    main()
