"""
Customer store: profile CRUD and the loyalty points primitive.
"""
from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Customer, Sale
from ..validation import NotFoundError, ConflictError
from boutique.time_utils import utcnow

CUSTOMER_MUTABLE_FIELDS = {"name", "email", "phone", "points"}


def list_customers() -> list[Customer]:
    return db.session.query(Customer).order_by(Customer.created_at.desc(), Customer.id.desc()).all()


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)


def find_by_name(name: str) -> Customer | None:
    """Case-insensitive exact name match (used by sale import)."""
    return (
        db.session.query(Customer)
        .filter(db.func.lower(Customer.name) == name.strip().lower())
        .order_by(Customer.id.asc())
        .first()
    )


def create_customer(*, patch: dict, commit: bool = True) -> Customer:
    customer = Customer(points=0)
    for k, v in patch.items():
        if k in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, k, v)
    db.session.add(customer)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return customer


def update_customer(*, customer_id: int, patch: dict) -> Customer | None:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return None
    for k, v in patch.items():
        if k in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, k, v)
    db.session.commit()
    return customer


def delete_customer(*, customer_id: int) -> bool:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return False
    has_sales = db.session.query(Sale.id).filter(Sale.customer_id == customer_id).first() is not None
    if has_sales:
        raise ConflictError("Customer has sales history and cannot be deleted")
    db.session.delete(customer)
    db.session.commit()
    return True


def adjust_points(customer_id: int, delta: int) -> None:
    """
    Atomically add delta (may be negative) to a customer's points balance.

    Does not commit: callers own the unit of work.
    """
    result = db.session.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(points=Customer.points + delta, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Customer {customer_id} not found")
