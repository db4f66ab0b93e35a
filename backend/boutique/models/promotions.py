from __future__ import annotations

from ..extensions import db
from boutique.money import money_str
from boutique.time_utils import to_utc_z


DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"
DISCOUNT_TYPES = (DISCOUNT_PERCENTAGE, DISCOUNT_FIXED)


class PromoCode(db.Model):
    """
    Named discount applied at checkout.

    value is a percentage (0-100) for "percentage" codes and a currency
    amount for "fixed" codes. Sales reference a code, they never mutate it.
    """
    __tablename__ = "promo_codes"
    __table_args__ = (
        db.CheckConstraint("discount_type IN ('percentage', 'fixed')", name="ck_promo_codes_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), nullable=False, unique=True, index=True)
    discount_type = db.Column(db.String(20), nullable=False)
    value = db.Column(db.Numeric(10, 2), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "discount_type": self.discount_type,
            "value": money_str(self.value),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
