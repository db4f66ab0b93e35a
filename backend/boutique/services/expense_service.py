# Overview: Service-layer operations for store expenses (CRUD and CSV/Excel import).

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Expense
from ..money import to_decimal
from boutique.time_utils import parse_iso_datetime, utcnow

EXPENSE_MUTABLE_FIELDS = {
    "date", "category", "amount", "payment_method", "reference", "warehouse", "description",
}

EXPENSE_IMPORT_HEADERS = (
    "Date", "Category", "Amount", "Payment Method", "Reference", "Warehouse", "Description",
)


def list_expenses(start: datetime | None = None, end: datetime | None = None) -> list[Expense]:
    q = db.session.query(Expense)
    if start is not None:
        q = q.filter(Expense.date >= start)
    if end is not None:
        q = q.filter(Expense.date <= end)
    return q.order_by(Expense.date.desc(), Expense.id.desc()).all()


def get_expense(expense_id: int) -> Expense | None:
    return db.session.get(Expense, expense_id)


def create_expense(*, patch: dict, user_id: int) -> Expense:
    expense = Expense(created_by=user_id, date=patch.get("date") or utcnow())
    for k, v in patch.items():
        if k in EXPENSE_MUTABLE_FIELDS and v is not None:
            setattr(expense, k, v)
    db.session.add(expense)
    db.session.commit()
    return expense


def update_expense(*, expense_id: int, patch: dict) -> Expense | None:
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        return None
    for k, v in patch.items():
        if k in EXPENSE_MUTABLE_FIELDS:
            setattr(expense, k, v)
    db.session.commit()
    return expense


def delete_expense(*, expense_id: int) -> bool:
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        return False
    db.session.delete(expense)
    db.session.commit()
    return True


def _cell(row: dict, key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def import_expenses(rows: list[dict], user_id: int) -> dict:
    """
    Import expense rows keyed by EXPENSE_IMPORT_HEADERS.

    Rows without a category or a positive amount are skipped. A missing or
    unparseable date falls back to now. Each row commits on its own so one
    bad row does not discard the rest.
    """
    imported = 0
    errors: list[str] = []

    for index, row in enumerate(rows, start=1):
        category = _cell(row, "Category")
        raw_amount = _cell(row, "Amount")
        if not category or not raw_amount:
            continue
        try:
            amount = to_decimal(raw_amount)
        except ArithmeticError:
            continue
        if amount <= 0:
            continue

        raw_date = row.get("Date")
        if isinstance(raw_date, datetime):
            date = raw_date
        else:
            try:
                date = parse_iso_datetime(_cell(row, "Date")) or utcnow()
            except ValueError:
                date = utcnow()

        try:
            expense = Expense(
                date=date,
                category=category[:100],
                amount=amount,
                payment_method=(_cell(row, "Payment Method") or "CASH").upper()[:50],
                reference=_cell(row, "Reference")[:100] or None,
                warehouse=_cell(row, "Warehouse")[:100] or None,
                description=_cell(row, "Description") or None,
                created_by=user_id,
            )
            db.session.add(expense)
            db.session.commit()
            imported += 1
        except Exception as exc:  # noqa: BLE001
            db.session.rollback()
            errors.append(f"Row {index}: {exc}")

    return {
        "imported": imported,
        "errors": errors or None,
        "message": f"Successfully imported {imported} expenses",
    }
