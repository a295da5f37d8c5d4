#!/usr/bin/env python3
"""
Example usage of the Vendor Invoice Parser
Demonstrates parsing extracted Amazon and Wayfair invoice text.
"""

import json
import os
import sys
import tempfile
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_parser import detect_vendor, parse_amazon_invoice_text, parse_invoice_text


def create_sample_wayfair_text():
    """Create sample Wayfair invoice text as pdfplumber would extract it."""
    return """
    Wayfair
    Invoice # 4412345678
    Order Date: 01/12/2026
    Shipped On Jan 15, 2026
    Item Unit Price Qty Subtotal Shipping & Delivery Adjustment Tax Total
    Modern Desk Lamp
    W004170933
    Color: Black
    49.99 1 49.99 0.00 -5.00 3.50 48.49
    Items to be Shipped
    Andover Mills Area Rug
    FOW21689
    Size: 5' x 8'
    120.00 2 240.00 0.00 16.80 256.80
    Order Total: $305.29
    Tax Total: $20.30
    """


def create_sample_amazon_text():
    """Create sample Amazon invoice text."""
    return """
    Final Details for Order #112-1234567-1234567
    Amazon.com order number: 112-1234567-1234567
    Order Placed: January 5, 2026
    Shipped on January 6, 2026
    Items Ordered Price
    2 of: USB-C Charging Cable, 6 ft
    Sold by: Acme Electronics
    Condition: New
    $9.99
    Shipping Address:
    Jane Doe
    123 Main St
    Shipping Speed: Standard
    Item(s) Subtotal: $19.98
    Shipping & Handling: $0.00
    Estimated Tax: $1.60
    Grand Total: $21.58
    """


def demonstrate_wayfair_parser():
    """Demonstrate vendor auto-detection and the Wayfair parser."""
    print("=" * 60)
    print("DEMONSTRATION: Wayfair Invoice")
    print("=" * 60)

    text = create_sample_wayfair_text()
    print(f"Detected vendor: {detect_vendor(text)}")

    result = parse_invoice_text(text)
    print(f"Found {len(result.line_items)} line items")
    print(json.dumps(result.to_dict(), indent=2))


def demonstrate_amazon_parser():
    """Demonstrate the Amazon parser."""
    print("\n" + "=" * 60)
    print("DEMONSTRATION: Amazon Invoice")
    print("=" * 60)

    result = parse_amazon_invoice_text(create_sample_amazon_text())
    for item in result.line_items:
        print(f"{item.qty} x {item.description} @ {item.unit_price} = {item.total}")
    for warning in result.warnings:
        print(f"Warning: {warning}")


def demonstrate_cli_usage():
    """Demonstrate CLI usage."""
    print("\n" + "=" * 60)
    print("DEMONSTRATION: CLI Usage")
    print("=" * 60)

    with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
        f.write(create_sample_wayfair_text())
        temp_file = f.name

    try:
        print("CLI Commands to try:")
        print(f"1. Parse to JSON:  invoice-parser parse {temp_file}")
        print(f"2. Save to file:   invoice-parser parse {temp_file} --output result.json")
        print(f"3. Table view:     invoice-parser parse {temp_file} --table")
        print(f"4. Detect vendor:  invoice-parser detect {temp_file}")
        input("\nPress Enter to clean up the sample file...")
    finally:
        os.unlink(temp_file)


if __name__ == "__main__":
    demonstrate_wayfair_parser()
    demonstrate_amazon_parser()
    demonstrate_cli_usage()
