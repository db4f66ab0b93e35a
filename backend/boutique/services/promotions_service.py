from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import PromoCode, Sale, DISCOUNT_PERCENTAGE, DISCOUNT_FIXED
from ..money import CENT, ZERO, to_decimal
from ..validation import ConflictError

PROMO_MUTABLE_FIELDS = ("code", "discount_type", "value", "is_active")


def list_promo_codes(active_only: bool = False) -> list[PromoCode]:
    q = db.session.query(PromoCode)
    if active_only:
        q = q.filter_by(is_active=True)
    return q.order_by(PromoCode.created_at.desc(), PromoCode.id.desc()).all()


def get_promo_code(promo_id: int) -> PromoCode | None:
    return db.session.get(PromoCode, promo_id)


def get_active_by_code(code: str) -> PromoCode | None:
    """Look up an active promo code; codes are stored upper-case."""
    if not code:
        return None
    return (
        db.session.query(PromoCode)
        .filter(PromoCode.code == code.strip().upper(), PromoCode.is_active.is_(True))
        .first()
    )


def _ensure_code_available(code: str, exclude_id: int | None = None) -> None:
    q = db.session.query(PromoCode.id).filter(PromoCode.code == code)
    if exclude_id is not None:
        q = q.filter(PromoCode.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"Promo code already exists: {code}")


def create_promo_code(*, patch: dict) -> PromoCode:
    _ensure_code_available(patch["code"])
    promo = PromoCode(is_active=True)
    for key in PROMO_MUTABLE_FIELDS:
        if key in patch:
            setattr(promo, key, patch[key])
    db.session.add(promo)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Promo code already exists: {patch['code']}")
    return promo


def update_promo_code(*, promo_id: int, patch: dict) -> PromoCode | None:
    promo = db.session.get(PromoCode, promo_id)
    if not promo:
        return None
    if patch.get("code"):
        _ensure_code_available(patch["code"], exclude_id=promo_id)
    for key in PROMO_MUTABLE_FIELDS:
        if key in patch:
            setattr(promo, key, patch[key])
    db.session.commit()
    return promo


def delete_promo_code(*, promo_id: int) -> bool:
    """
    Delete a promo code. Codes already used on a sale are deactivated
    instead, so the sale keeps its reference.
    """
    promo = db.session.get(PromoCode, promo_id)
    if not promo:
        return False
    used = db.session.query(Sale.id).filter(Sale.promo_code_id == promo_id).first() is not None
    if used:
        promo.is_active = False
    else:
        db.session.delete(promo)
    db.session.commit()
    return True


def compute_discount(promo: PromoCode, subtotal) -> Decimal:
    """
    Discount a promo grants on a subtotal, clamped to [0, subtotal].

    percentage: subtotal * value / 100, rounded half-up to cents
    fixed:      value
    """
    subtotal = to_decimal(subtotal)
    if subtotal <= 0:
        return ZERO

    value = Decimal(promo.value)
    if promo.discount_type == DISCOUNT_PERCENTAGE:
        discount = (subtotal * value / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    elif promo.discount_type == DISCOUNT_FIXED:
        discount = to_decimal(value)
    else:
        raise ValueError(f"Unknown discount type: {promo.discount_type}")

    return max(ZERO, min(discount, subtotal))
