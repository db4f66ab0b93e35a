from __future__ import annotations

from ..extensions import db
from boutique.money import money_str
from boutique.time_utils import to_utc_z


class Expense(db.Model):
    """Operating expense recorded by the back office (rent, supplies, ...)."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(50), nullable=False, default="CASH")
    reference = db.Column(db.String(100), nullable=True)
    warehouse = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    user = db.relationship("User", backref=db.backref("expenses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_utc_z(self.date),
            "category": self.category,
            "amount": money_str(self.amount),
            "payment_method": self.payment_method,
            "reference": self.reference,
            "warehouse": self.warehouse,
            "description": self.description,
            "created_by": self.created_by,
            "user": {
                "username": self.user.username,
                "first_name": self.user.first_name,
                "last_name": self.user.last_name,
            } if self.user else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
