# Overview: Tabular exports (CSV, Excel, PDF) for the sales and expenses screens.

"""
Rows are plain dicts keyed by the same column headers the importers read,
so an exported sheet can be fed straight back into an import.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable

import openpyxl
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models import Sale, Expense
from ..money import money_str
from boutique.time_utils import to_utc_z, utcnow

EXPORT_FORMATS = {
    "csv": ("text/csv", "csv"),
    "xlsx": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
    "pdf": ("application/pdf", "pdf"),
}

SALE_EXPORT_HEADERS = [
    "Sale ID", "Date", "Customer Name", "Cashier",
    "Payment Method", "Subtotal", "Discount", "Total", "Status",
]

EXPENSE_EXPORT_HEADERS = [
    "Date", "Category", "Amount", "Payment Method", "Reference", "Warehouse", "Description", "Created By",
]


def rows_for_sales(sales: Iterable[Sale]) -> list[dict]:
    rows = []
    for sale in sales:
        rows.append({
            "Sale ID": sale.id,
            "Date": to_utc_z(sale.created_at),
            "Customer Name": sale.customer.name if sale.customer else "",
            "Cashier": sale.user.username if sale.user else "",
            "Payment Method": sale.payment_method,
            "Subtotal": money_str(sale.subtotal),
            "Discount": money_str(sale.discount_amount),
            "Total": money_str(sale.total),
            "Status": sale.status.value,
        })
    return rows


def rows_for_expenses(expenses: Iterable[Expense]) -> list[dict]:
    rows = []
    for expense in expenses:
        rows.append({
            "Date": to_utc_z(expense.date),
            "Category": expense.category,
            "Amount": money_str(expense.amount),
            "Payment Method": expense.payment_method,
            "Reference": expense.reference or "",
            "Warehouse": expense.warehouse or "",
            "Description": expense.description or "",
            "Created By": expense.user.username if expense.user else "",
        })
    return rows


def to_csv(rows: list[dict], headers: list[str]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


def to_xlsx(rows: list[dict], headers: list[str], title: str) -> bytes:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = title[:31]

    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append([row.get(header, "") for header in headers])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def to_pdf(rows: list[dict], headers: list[str], title: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4))
    styles = getSampleStyleSheet()
    story = [
        Paragraph(title, styles["Title"]),
        Spacer(1, 12),
        Paragraph(f"Generated on: {utcnow().strftime('%Y-%m-%d %H:%M:%S')} UTC", styles["Normal"]),
        Spacer(1, 12),
    ]

    table_data = [headers]
    for row in rows:
        table_data.append([str(row.get(header, "")) for header in headers])

    table = Table(table_data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 9),
                ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 1), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    story.append(table)
    story.append(Spacer(1, 12))
    story.append(Paragraph(f"Total rows: {len(rows)}", styles["Normal"]))

    doc.build(story)
    return buffer.getvalue()


def render(rows: list[dict], headers: list[str], fmt: str, title: str) -> tuple[bytes, str, str]:
    """Render rows in `fmt`. Returns (body, mimetype, file extension)."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"format must be one of: {', '.join(EXPORT_FORMATS)}")
    mimetype, extension = EXPORT_FORMATS[fmt]
    if fmt == "csv":
        body = to_csv(rows, headers)
    elif fmt == "xlsx":
        body = to_xlsx(rows, headers, title)
    else:
        body = to_pdf(rows, headers, title)
    return body, mimetype, extension


def read_tabular_upload(filename: str, data: bytes) -> list[dict]:
    """
    Parse an uploaded .csv or .xlsx into a list of dicts keyed by the
    header row. Empty rows are dropped.
    """
    name = (filename or "").lower()
    if name.endswith(".xlsx"):
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        try:
            sheet = workbook.active
            rows_iter = sheet.iter_rows(values_only=True)
            try:
                header_row = next(rows_iter)
            except StopIteration:
                return []
            headers = [str(h).strip() if h is not None else "" for h in header_row]
            rows = []
            for values in rows_iter:
                if values is None or all(v is None or str(v).strip() == "" for v in values):
                    continue
                rows.append({headers[i]: values[i] for i in range(min(len(headers), len(values))) if headers[i]})
            return rows
        finally:
            workbook.close()

    if name.endswith(".csv") or not name:
        text = data.decode("utf-8-sig")
        reader = csv.DictReader(io.StringIO(text))
        return [
            {(k or "").strip(): v for k, v in row.items()}
            for row in reader
            if any((v or "").strip() for v in row.values() if isinstance(v, str))
        ]

    raise ValueError("Only .csv and .xlsx files are supported")
