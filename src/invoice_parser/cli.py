#!/usr/bin/env python3
"""
Command-line interface for the vendor invoice parser.
"""

import json
import logging
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .models import ParseResult
from .pdf_extractor import InvoiceTextError, load_invoice_text
from .registry import AUTO, UnknownVendorError, available_vendors, detect_vendor, parse_invoice_text

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _read_text(path: str) -> str:
    try:
        return load_invoice_text(path)
    except InvoiceTextError as e:
        raise click.ClickException(str(e))


def render_table(result: ParseResult) -> None:
    """Print line items and warnings as rich tables."""
    table = Table(title=f"{result.vendor.title()} invoice: {len(result.line_items)} line item(s)")
    table.add_column("#", justify="right")
    table.add_column("Description")
    table.add_column("SKU")
    table.add_column("Qty", justify="right")
    table.add_column("Unit Price", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Section")

    for i, item in enumerate(result.line_items, 1):
        table.add_row(
            str(i),
            item.description,
            item.sku or "",
            str(item.qty),
            item.unit_price or "",
            item.total,
            item.section,
        )
    console.print(table)

    if result.header is not None:
        header = result.header.to_dict()
        for key, value in header.items():
            console.print(f"[bold]{key}[/bold]: {value}")

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


@click.group()
@click.version_option(package_name="vendor-invoice-parser")
def cli():
    """Parse Amazon and Wayfair invoice PDFs into line items."""


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--vendor', type=click.Choice([AUTO, "amazon", "wayfair"]), default=AUTO, show_default=True,
              help='Vendor template to parse with')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output JSON file path')
@click.option('--table', 'as_table', is_flag=True, help='Render a table instead of JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def parse(file_path: str, vendor: str, output: Optional[str], as_table: bool, verbose: bool):
    """Parse FILE_PATH (.pdf or extracted .txt) and print the result."""
    setup_logging(verbose)
    text = _read_text(file_path)

    try:
        result = parse_invoice_text(text, vendor=vendor)
    except UnknownVendorError as e:
        raise click.BadParameter(str(e), param_hint="--vendor")

    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(payload + "\n")
        logger.info(f"Results saved to: {output}")

    if as_table:
        render_table(result)
    elif not output:
        click.echo(payload)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
def detect(file_path: str):
    """Print which vendor template FILE_PATH matches."""
    text = _read_text(file_path)
    vendor = detect_vendor(text)
    if vendor is None:
        click.echo(f"unknown (supported: {', '.join(available_vendors())})", err=True)
        raise SystemExit(1)
    click.echo(vendor)


if __name__ == "__main__":
    cli()
