# backend/boutique/services/products_service.py
"""
Product store: catalog CRUD plus the stock primitive used by checkout.

update_stock() is the only way sales and refunds touch inventory. It is a
single `stock = stock + :delta` statement so concurrent adjustments are
serialized by the database rather than lost in a read-modify-write.
"""
from __future__ import annotations

import random

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, SaleItem
from ..validation import ConflictError, NotFoundError
from boutique.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "name", "category", "size", "color", "purchase_price", "price", "tax_rate",
    "stock", "low_stock_threshold", "sku", "description", "image_url", "barcode_symbology",
}

PRODUCT_CODE_MIN = 10000
PRODUCT_CODE_MAX = 99999


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_sku_available(sku: str | None, exclude_id: int | None = None) -> None:
    if not sku:
        return
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"SKU already exists: {sku}")


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.created_at.desc(), Product.id.desc()).all()


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def get_low_stock_products() -> list[Product]:
    """Products at or below their restock threshold, emptiest first."""
    return (
        db.session.query(Product)
        .filter(Product.stock <= Product.low_stock_threshold)
        .order_by(Product.stock.asc(), Product.id.asc())
        .all()
    )


def create_product(*, patch: dict) -> Product:
    """Create product from a validated patch dict."""
    _ensure_sku_available(patch.get("sku"))

    product = Product()
    apply_product_patch(product, patch)
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product violates a uniqueness constraint")
    return product


def update_product(*, product_id: int, patch: dict) -> Product | None:
    product = db.session.get(Product, product_id)
    if product is None:
        return None

    if "sku" in patch:
        _ensure_sku_available(patch["sku"], exclude_id=product_id)

    apply_product_patch(product, patch)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product violates a uniqueness constraint")
    return product


def delete_product(*, product_id: int) -> bool:
    """
    Delete a product that has never been sold.

    Sold products are referenced by sale_items and stay for history.
    """
    product = db.session.get(Product, product_id)
    if product is None:
        return False

    if db.session.query(SaleItem.id).filter(SaleItem.product_id == product_id).first() is not None:
        raise ConflictError("Product has sales history and cannot be deleted")

    db.session.delete(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product has sales history and cannot be deleted")
    return True


def update_stock(product_id: int, delta: int) -> None:
    """
    Atomically add delta (may be negative) to a product's stock.

    Does not commit: callers own the unit of work. No floor is applied,
    stock may go negative under concurrent overselling.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + delta, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Product {product_id} not found")


def generate_codes(count: int = 1) -> list[str]:
    """
    Generate `count` unique 5-digit product codes not used as a SKU yet.

    Gives up after count*100 random draws.
    """
    if count < 1:
        raise ValueError("count must be >= 1")

    existing = {sku for (sku,) in db.session.query(Product.sku).filter(Product.sku.isnot(None))}
    codes: list[str] = []
    attempts = 0
    max_attempts = count * 100

    while len(codes) < count and attempts < max_attempts:
        code = str(random.randint(PRODUCT_CODE_MIN, PRODUCT_CODE_MAX))
        if code not in existing:
            codes.append(code)
            existing.add(code)
        attempts += 1

    if len(codes) < count:
        raise ConflictError(f"Unable to generate enough unique codes ({len(codes)} of {count})")
    return codes
