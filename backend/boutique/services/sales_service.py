"""
Sales Service - checkout and refund units of work

A sale and everything it implies (line items, stock decrements, loyalty
points) is written in one transaction. A refund reverses exactly those
effects, also in one transaction, and can happen at most once per sale.

Stock and points are never read-modified-written in Python: both go
through single-statement arithmetic UPDATEs so concurrent checkouts on the
same product or customer cannot lose an update. Nothing here retries; a
failed unit of work is rolled back and the error propagates to the route.
"""
from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Sale, SaleItem, SaleStatus, Product, Customer, PromoCode, User
from ..money import to_decimal
from ..validation import ValidationError, validate_sale_payload, SaleInput
from boutique.time_utils import utcnow
from .concurrency import lock_for_update, begin_write_transaction
from .products_service import update_stock
from .customers_service import adjust_points, find_by_name, create_customer


class SaleError(Exception):
    """Raised for sale operation errors."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(SaleError):
    status_code = 404


class SaleAlreadyRefundedError(SaleError):
    pass


class SaleHasNoItemsError(SaleError):
    pass


SALE_IMPORT_HEADERS = ("Payment Method", "Subtotal", "Discount", "Total", "Status", "Customer Name")


# =============================================================================
# CHECKOUT
# =============================================================================

def _check_references(sale_input: SaleInput) -> None:
    if db.session.get(User, sale_input.user_id) is None:
        raise ValidationError(f"User {sale_input.user_id} not found")

    if sale_input.customer_id is not None and db.session.get(Customer, sale_input.customer_id) is None:
        raise ValidationError(f"Customer {sale_input.customer_id} not found")

    if sale_input.promo_code_id is not None and db.session.get(PromoCode, sale_input.promo_code_id) is None:
        raise ValidationError(f"Promo code {sale_input.promo_code_id} not found")

    product_ids = {item.product_id for item in sale_input.items}
    found = {pid for (pid,) in db.session.query(Product.id).filter(Product.id.in_(product_ids))}
    missing = sorted(product_ids - found)
    if missing:
        raise ValidationError(
            f"Product(s) not found: {', '.join(str(pid) for pid in missing)}",
        )


def create_sale(header: dict, items: list) -> Sale:
    """
    Record a checkout.

    Within one transaction:
    - insert the sale (status completed) and its items
    - decrement each product's stock by the item quantity
    - apply points_earned - points_used to the customer, when one is set
      and the net change is non-zero

    Totals are taken as computed by the POS. Stock is not checked, so it
    can go negative. Raises ValidationError before touching the database
    when the payload is malformed or references rows that do not exist.
    """
    sale_input = validate_sale_payload(header, items)

    try:
        begin_write_transaction()
        _check_references(sale_input)

        sale = Sale(
            customer_id=sale_input.customer_id,
            user_id=sale_input.user_id,
            subtotal=sale_input.subtotal,
            discount_amount=sale_input.discount_amount,
            promo_code_id=sale_input.promo_code_id,
            points_used=sale_input.points_used,
            points_earned=sale_input.points_earned,
            total=sale_input.total,
            payment_method=sale_input.payment_method,
            status=SaleStatus.COMPLETED,
        )
        db.session.add(sale)
        db.session.flush()

        for item in sale_input.items:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
            ))
            update_stock(item.product_id, -item.quantity)

        if sale_input.customer_id is not None:
            points_delta = sale_input.points_earned - sale_input.points_used
            if points_delta:
                adjust_points(sale_input.customer_id, points_delta)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return sale


# =============================================================================
# REFUND
# =============================================================================

def refund_sale(sale_id: int) -> Sale:
    """
    Refund a completed sale in full.

    Locks the sale row, then restores stock for every item, reverses the
    customer's points change (points_used - points_earned) and marks the
    sale refunded with the current time. Not idempotent: a second call
    raises SaleAlreadyRefundedError and changes nothing.
    """
    try:
        begin_write_transaction()

        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise SaleNotFoundError("Sale not found")

        if sale.status == SaleStatus.REFUNDED:
            raise SaleAlreadyRefundedError("Sale already refunded")

        items = (
            db.session.query(SaleItem)
            .filter_by(sale_id=sale.id)
            .order_by(SaleItem.id.asc())
            .all()
        )
        if not items:
            raise SaleHasNoItemsError("No sale items found for this sale")

        for item in items:
            update_stock(item.product_id, item.quantity)

        if sale.customer_id is not None:
            points_delta = sale.points_used - sale.points_earned
            if points_delta:
                adjust_points(sale.customer_id, points_delta)

        sale.status = SaleStatus.REFUNDED
        sale.refunded_at = utcnow()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return sale


# =============================================================================
# READS
# =============================================================================

def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def get_sale_items(sale_id: int) -> list[SaleItem]:
    return (
        db.session.query(SaleItem)
        .filter_by(sale_id=sale_id)
        .order_by(SaleItem.id.asc())
        .all()
    )


def list_sales() -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def get_recent_sales(limit: int = 10) -> list[Sale]:
    return (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )


def get_sales_by_customer(customer_id: int) -> list[Sale]:
    return (
        db.session.query(Sale)
        .filter(Sale.customer_id == customer_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )


def get_sales_by_period(start: datetime, end: datetime) -> list[Sale]:
    """Sales whose created_at falls within [start, end], newest first."""
    return (
        db.session.query(Sale)
        .filter(Sale.created_at >= start, Sale.created_at <= end)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )


# =============================================================================
# IMPORT
# =============================================================================

def _cell(row: dict, key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _parse_amount(raw: str):
    if not raw:
        return None
    try:
        return to_decimal(raw)
    except ArithmeticError:
        return None


def import_sales(rows: list[dict], user_id: int) -> dict:
    """
    Import historical sales keyed by SALE_IMPORT_HEADERS.

    Imported sales carry no items and leave stock and points untouched.
    Rows without a payment method or a positive total are skipped. The
    customer is matched by name (case-insensitive) and created when
    missing. Each row commits on its own; failures are collected per row.
    """
    imported = 0
    errors: list[str] = []

    for index, row in enumerate(rows, start=1):
        payment_method = _cell(row, "Payment Method")
        total = _parse_amount(_cell(row, "Total"))
        if not payment_method or total is None or total <= 0:
            continue

        try:
            raw_status = (_cell(row, "Status") or SaleStatus.COMPLETED.value).lower()
            try:
                status = SaleStatus(raw_status)
            except ValueError:
                raise ValidationError(f"Unknown status: {raw_status}")

            subtotal = _parse_amount(_cell(row, "Subtotal"))
            discount = _parse_amount(_cell(row, "Discount"))

            customer_id = None
            customer_name = _cell(row, "Customer Name")
            if customer_name:
                customer = find_by_name(customer_name)
                if customer is None:
                    customer = create_customer(patch={"name": customer_name[:255]}, commit=False)
                customer_id = customer.id

            sale = Sale(
                customer_id=customer_id,
                user_id=user_id,
                subtotal=subtotal if subtotal is not None else total,
                discount_amount=discount if discount is not None else 0,
                total=total,
                payment_method=payment_method.upper()[:50],
                status=status,
                refunded_at=utcnow() if status == SaleStatus.REFUNDED else None,
            )
            db.session.add(sale)
            db.session.commit()
            imported += 1
        except Exception as exc:  # noqa: BLE001
            db.session.rollback()
            errors.append(f"Row {index}: {exc}")

    return {
        "imported": imported,
        "errors": errors or None,
        "message": f"Successfully imported {imported} sales",
    }
