from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from ..extensions import db
from pos_system.time_utils import to_utc_z, utcnow

TWO_PLACES = Decimal("0.01")


def cents_to_decimal(cents: int | None) -> Decimal | None:
    if cents is None:
        return None
    return (Decimal(cents) / 100).quantize(TWO_PLACES)


def compute_profit_margin(price_cents: int | None, cost_cents: int | None) -> Decimal:
    """
    Profit margin as a percentage of cost: (price - cost) / cost * 100.

    Rounded half-up to 2 decimals. Zero when cost is zero or absent.
    """
    if not cost_cents or price_cents is None:
        return Decimal("0.00")
    margin = Decimal(price_cents - cost_cents) / Decimal(cost_cents) * 100
    return margin.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class Product(db.Model):
    """
    Product master data and the authoritative stock quantity.

    Quantity is a stored counter owned by the inventory ledger. The CHECK
    constraint is the last line of defence; the sale path already refuses
    to decrement below zero.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_nonneg"),
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    # NULL barcodes do not collide under the unique constraint
    barcode = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (API renders 2-decimal amounts)
    price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_quantity = db.Column(db.Integer, nullable=False, default=10)
    category = db.Column(db.String(128), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @property
    def profit_margin(self) -> Decimal:
        return compute_profit_margin(self.price_cents, self.cost_price_cents)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "barcode": self.barcode,
            "name": self.name,
            "description": self.description,
            "price": cents_to_decimal(self.price_cents),
            "cost_price": cents_to_decimal(self.cost_price_cents),
            "profit_margin": self.profit_margin,
            "quantity": self.quantity,
            "min_quantity": self.min_quantity,
            "category": self.category,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryHistoryEntry(db.Model):
    """Append-only audit trail of stock movements."""
    __tablename__ = "inventory_history"
    __table_args__ = (
        db.Index("ix_inventory_history_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # sale, initial, adjustment
    change_type = db.Column(db.String(32), nullable=False, index=True)
    quantity_change = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "change_type": self.change_type,
            "quantity_change": self.quantity_change,
            "reason": self.reason,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
