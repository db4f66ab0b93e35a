# Overview: Service-layer operations for reporting; dashboard tiles and period sales reports.

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func

from boutique.extensions import db
from boutique.models import Sale, SaleItem, SaleStatus, Product, Customer, Expense
from boutique.money import ZERO, CENT, to_decimal, money_str
from boutique.time_utils import period_start, start_of_day, utcnow, to_utc_z

REPORT_PERIODS = ("today", "week", "month")
TOP_PRODUCTS_LIMIT = 5


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _amount(value) -> Decimal:
    return to_decimal(value) if value is not None else ZERO


def dashboard_stats(now: datetime | None = None) -> dict:
    """
    Tiles for the dashboard: today's takings, today's transaction count,
    products at or below their restock threshold, customer count and
    today's expenses.
    """
    now = now or utcnow()
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)

    revenue, transactions = db.session.query(
        func.coalesce(func.sum(Sale.total), 0),
        func.count(Sale.id),
    ).filter(Sale.created_at >= today, Sale.created_at < tomorrow).one()

    low_stock_count = (
        db.session.query(func.count(Product.id))
        .filter(Product.stock <= Product.low_stock_threshold)
        .scalar()
    )
    total_customers = db.session.query(func.count(Customer.id)).scalar()

    expenses = (
        db.session.query(func.coalesce(func.sum(Expense.amount), 0))
        .filter(Expense.date >= today, Expense.date < tomorrow)
        .scalar()
    )

    return {
        "today_revenue": money_str(_amount(revenue)),
        "today_transactions": int(transactions or 0),
        "low_stock_count": int(low_stock_count or 0),
        "total_customers": int(total_customers or 0),
        "today_expenses": money_str(_amount(expenses)),
    }


def sales_report(period: str, now: datetime | None = None) -> dict:
    """
    Aggregate sales since the start of `period` (today, week or month).

    Refunded sales stay in the gross figures; refunded_total and
    refunded_transactions report them separately so a net figure can be
    derived.
    """
    if period not in REPORT_PERIODS:
        raise ReportError(f"period must be one of: {', '.join(REPORT_PERIODS)}")

    now = now or utcnow()
    start = period_start(period, now)

    revenue, transactions = db.session.query(
        func.coalesce(func.sum(Sale.total), 0),
        func.count(Sale.id),
    ).filter(Sale.created_at >= start).one()
    revenue = _amount(revenue)
    transactions = int(transactions or 0)

    refunded_total, refunded_transactions = db.session.query(
        func.coalesce(func.sum(Sale.total), 0),
        func.count(Sale.id),
    ).filter(Sale.created_at >= start, Sale.status == SaleStatus.REFUNDED).one()

    items_sold = (
        db.session.query(func.coalesce(func.sum(SaleItem.quantity), 0))
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.created_at >= start)
        .scalar()
    )

    quantity_sold = func.sum(SaleItem.quantity).label("quantity_sold")
    top_rows = (
        db.session.query(
            SaleItem.product_id,
            func.max(SaleItem.product_name).label("product_name"),
            quantity_sold,
            func.sum(SaleItem.total_price).label("revenue"),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.created_at >= start)
        .group_by(SaleItem.product_id)
        .order_by(quantity_sold.desc(), SaleItem.product_id.asc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )

    top_products = []
    for row in top_rows:
        product = db.session.get(Product, row.product_id)
        top_products.append({
            "product_id": row.product_id,
            "product_name": row.product_name,
            "product": product.to_dict() if product else None,
            "quantity_sold": int(row.quantity_sold or 0),
            "revenue": money_str(_amount(row.revenue)),
        })

    payment_rows = (
        db.session.query(
            Sale.payment_method,
            func.coalesce(func.sum(Sale.total), 0).label("revenue"),
            func.count(Sale.id).label("transactions"),
        )
        .filter(Sale.created_at >= start)
        .group_by(Sale.payment_method)
        .order_by(Sale.payment_method.asc())
        .all()
    )
    revenue_by_payment_method = {
        row.payment_method: money_str(_amount(row.revenue)) for row in payment_rows
    }

    average_ticket = (revenue / transactions).quantize(CENT, rounding=ROUND_HALF_UP) if transactions else ZERO

    return {
        "period": period,
        "start": to_utc_z(start),
        "end": to_utc_z(now),
        "total_items_sold": int(items_sold or 0),
        "total_revenue": money_str(revenue),
        "total_transactions": transactions,
        "average_ticket": money_str(average_ticket),
        "top_products": top_products,
        "revenue_by_payment_method": revenue_by_payment_method,
        "refunded_total": money_str(_amount(refunded_total)),
        "refunded_transactions": int(refunded_transactions or 0),
    }
