# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/pos_system/services/inventory_service.py
"""
Inventory Ledger

Stock is a stored counter on Product.quantity. Every movement also appends an
InventoryHistoryEntry in the same DB transaction.

Invariants:
- A product row is locked (check_and_reserve) before its quantity is read
  for a sale; the lock is held until the encompassing transaction ends.
- decrement() is a conditional UPDATE that refuses to take quantity below
  zero even if a caller skipped the reservation check.
- Nothing here commits; the caller owns the transaction boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import update

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import InventoryHistoryEntry, Product
from .concurrency import lock_for_update

CHANGE_SALE = "sale"
CHANGE_INITIAL = "initial"
CHANGE_ADJUSTMENT = "adjustment"


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", details={"product_id": product_id})
        self.product_id = product_id


class InsufficientStockError(ConflictError):
    """Requested quantity exceeds stock on hand; carries the product name."""

    def __init__(self, product_name: str, *, product_id: int | None = None,
                 requested: int | None = None, available: int | None = None):
        super().__init__(
            f"Insufficient stock for {product_name}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested_quantity": requested,
                "available_quantity": available,
            },
        )
        self.product_name = product_name


@dataclass(frozen=True)
class Reservation:
    product_id: int
    product_name: str
    unit_price_cents: int
    quantity: int


def check_and_reserve(product_id: int, quantity: int, *, already_reserved: int = 0) -> Reservation:
    """
    Lock the product row and verify it can supply `quantity` more units.

    already_reserved counts units of the same product claimed earlier in the
    same transaction (a cart listing one product twice). Re-locking a row the
    transaction already holds does not block.

    The returned unit price is the one observed under the lock.
    """
    product = (
        lock_for_update(db.session.query(Product).filter_by(id=product_id))
        .populate_existing()
        .first()
    )
    if product is None or not product.is_active:
        raise ProductNotFoundError(product_id)

    if product.quantity < already_reserved + quantity:
        raise InsufficientStockError(
            product.name,
            product_id=product.id,
            requested=already_reserved + quantity,
            available=product.quantity,
        )

    return Reservation(
        product_id=product.id,
        product_name=product.name,
        unit_price_cents=product.price_cents,
        quantity=quantity,
    )


def record_movement(
    *,
    product_id: int,
    change_type: str,
    quantity_change: int,
    reason: str | None,
    user_id: int | None,
) -> InventoryHistoryEntry:
    """Append an audit entry (flushed, not committed)."""
    entry = InventoryHistoryEntry(
        product_id=product_id,
        change_type=change_type,
        quantity_change=quantity_change,
        reason=reason,
        user_id=user_id,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def decrement(
    product_id: int,
    quantity: int,
    *,
    user_id: int | None,
    reason: str = "Sale",
    change_type: str = CHANGE_SALE,
    product_name: str | None = None,
) -> InventoryHistoryEntry:
    """
    Reduce stock by `quantity` and log the movement.

    Must follow a successful check_and_reserve() in the same transaction.
    The WHERE clause keeps the stored quantity from going below zero; if it
    matches no row the movement is refused with InsufficientStockError.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity >= quantity)
        .values(quantity=Product.quantity - quantity)
    )
    if result.rowcount != 1:
        raise InsufficientStockError(product_name or f"product {product_id}", product_id=product_id,
                                     requested=quantity)

    return record_movement(
        product_id=product_id,
        change_type=change_type,
        quantity_change=-quantity,
        reason=reason,
        user_id=user_id,
    )


def list_history(product_id: int | None = None, limit: int = 100) -> list[InventoryHistoryEntry]:
    query = db.session.query(InventoryHistoryEntry)
    if product_id is not None:
        query = query.filter(InventoryHistoryEntry.product_id == product_id)
    return (
        query.order_by(InventoryHistoryEntry.created_at.desc(), InventoryHistoryEntry.id.desc())
        .limit(limit)
        .all()
    )
