"""
Barcode rendering for product labels.

Single barcodes are drawn as SVG with python-barcode; printable label
sheets are built with reportlab, one label per page sized to the chosen
paper size.
"""

from __future__ import annotations

import io

import barcode
from barcode.errors import BarcodeError as _PythonBarcodeError
from barcode.writer import SVGWriter
from reportlab.graphics.barcode import code128
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ..models import Product, PaperSize
from ..money import money_str

DEFAULT_SYMBOLOGY = "code128"
MAX_LABEL_COPIES = 100


class BarcodeError(Exception):
    """Raised when a code cannot be rendered in the requested symbology."""
    pass


def product_code(product: Product) -> str:
    """The value printed on a product's barcode: its SKU, or a padded id."""
    return product.sku or f"{product.id:05d}"


def render_svg(code: str, symbology: str | None = None) -> bytes:
    """Render `code` as an SVG barcode."""
    symbology = (symbology or DEFAULT_SYMBOLOGY).lower()
    try:
        barcode_class = barcode.get_barcode_class(symbology)
    except _PythonBarcodeError:
        raise BarcodeError(f"Unsupported barcode symbology: {symbology}")

    try:
        barcode_instance = barcode_class(code, writer=SVGWriter())
    except (_PythonBarcodeError, ValueError) as e:
        raise BarcodeError(f"Cannot encode {code!r} as {symbology}: {e}")

    buffer = io.BytesIO()
    barcode_instance.write(
        buffer,
        options={
            "module_width": 0.3,
            "module_height": 15.0,
            "quiet_zone": 6.5,
            "font_size": 10,
            "text_distance": 5.0,
        },
    )
    return buffer.getvalue()


def label_sheet_pdf(products: list[Product], paper_size: PaperSize, copies: int = 1) -> bytes:
    """
    Build a PDF of product labels: name, Code128 barcode and price.

    Each label is its own page of paper_size dimensions, repeated `copies`
    times per product.
    """
    if copies < 1 or copies > MAX_LABEL_COPIES:
        raise BarcodeError(f"copies must be between 1 and {MAX_LABEL_COPIES}")

    width = paper_size.width_mm * mm
    height = paper_size.height_mm * mm
    margin = 2 * mm

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(width, height))
    pdf.setTitle("Product labels")

    for product in products:
        code = product_code(product)
        for _ in range(copies):
            pdf.setFont("Helvetica-Bold", 7)
            pdf.drawString(margin, height - margin - 7, product.name[:40])

            bar_height = max(height * 0.4, 5 * mm)
            symbol = code128.Code128(code, barHeight=bar_height, barWidth=0.25 * mm, humanReadable=True)
            x = max((width - symbol.width) / 2, 0)
            symbol.drawOn(pdf, x, margin + 9)

            pdf.setFont("Helvetica", 7)
            pdf.drawRightString(width - margin, margin, money_str(product.price) or "")
            pdf.showPage()

    pdf.save()
    return buffer.getvalue()
