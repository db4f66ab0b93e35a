from __future__ import annotations

import enum

from ..extensions import db
from boutique.money import money_str
from boutique.time_utils import to_utc_z, utcnow


class SaleStatus(str, enum.Enum):
    """
    Sale lifecycle: COMPLETED -> REFUNDED, exactly once.

    The refunded_at timestamp is tied to the status by a table CHECK, so a
    refunded sale always carries the moment it was refunded and a completed
    one never does.
    """
    COMPLETED = "completed"
    REFUNDED = "refunded"


class Sale(db.Model):
    """
    A completed checkout.

    Created atomically with its items (sales_service.create_sale) and only
    ever mutated by a refund. Sales are never deleted.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint(
            "(status = 'completed' AND refunded_at IS NULL) OR "
            "(status = 'refunded' AND refunded_at IS NOT NULL)",
            name="ck_sales_status_refunded_at",
        ),
        db.Index("ix_sales_created_at", "created_at"),
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    # Operator (cashier/admin) who processed the sale
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    promo_code_id = db.Column(db.Integer, db.ForeignKey("promo_codes.id"), nullable=True)
    points_used = db.Column(db.Integer, nullable=False, default=0)
    points_earned = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False)

    # Free-form: cash, card, digital_wallet...
    payment_method = db.Column(db.String(50), nullable=False)

    status = db.Column(
        db.Enum(
            SaleStatus,
            name="sale_status",
            native_enum=False,
            length=20,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=SaleStatus.COMPLETED,
    )
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    user = db.relationship("User", backref=db.backref("sales", lazy=True))
    promo_code = db.relationship("PromoCode", backref=db.backref("sales", lazy=True))

    @property
    def is_refunded(self) -> bool:
        return self.status == SaleStatus.REFUNDED

    def __repr__(self) -> str:
        return f"<Sale id={self.id} total={self.total} status={self.status.value if self.status else None}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "subtotal": money_str(self.subtotal),
            "discount_amount": money_str(self.discount_amount),
            "promo_code_id": self.promo_code_id,
            "points_used": self.points_used,
            "points_earned": self.points_earned,
            "total": money_str(self.total),
            "payment_method": self.payment_method,
            "status": self.status.value if self.status else None,
            "refunded_at": to_utc_z(self.refunded_at) if self.refunded_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    One line of a sale.

    product_name is copied from the product at checkout so receipts and
    reports keep the name the customer saw, even after a rename.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship(
        "Sale",
        backref=db.backref("items", lazy=True, order_by="SaleItem.id"),
    )
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total_price": money_str(self.total_price),
            "created_at": to_utc_z(self.created_at),
        }
