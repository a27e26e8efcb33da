from __future__ import annotations

from ..extensions import db
from pos_system.time_utils import to_utc_z, utcnow
from .inventory import cents_to_decimal

SALE_STATUS_COMPLETED = "completed"
DEFAULT_PAYMENT_METHOD = "cash"


class Sale(db.Model):
    """
    Completed checkout. Written once by the sale processor and never updated.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Sum of item subtotals (cents)
    total_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default=DEFAULT_PAYMENT_METHOD)
    status = db.Column(db.String(16), nullable=False, default=SALE_STATUS_COMPLETED)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User")
    items = db.relationship("SaleItem", back_populates="sale", lazy=True, order_by="SaleItem.id")

    @property
    def total_amount(self):
        return cents_to_decimal(self.total_cents)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "total_amount": self.total_amount,
            "payment_method": self.payment_method,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """Individual line items on a sale."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    # Price captured under the row lock at checkout time
    unit_price_cents = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": cents_to_decimal(self.unit_price_cents),
            "subtotal": cents_to_decimal(self.subtotal_cents),
        }
