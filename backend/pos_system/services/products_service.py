# backend/pos_system/services/products_service.py
"""
Products Service

Catalog CRUD. Products are never physically removed: delete sets
is_active=False so historical sale items keep their reference.
Quantity changes made through the catalog are logged to the inventory
history like any other stock movement.
"""
from __future__ import annotations

import secrets

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Product
from . import inventory_service
from .concurrency import begin_write_transaction, lock_for_update

PRODUCT_MUTABLE_FIELDS = {
    "sku", "barcode", "name", "description", "price_cents", "cost_price_cents",
    "quantity", "min_quantity", "category", "is_active",
}

SKU_PREFIX = "SKU-"


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def generate_sku() -> str:
    """Random SKU for products created without one (e.g. SKU-3F9A0C1B)."""
    while True:
        sku = SKU_PREFIX + secrets.token_hex(4).upper()
        if not db.session.query(Product.id).filter(Product.sku == sku).first():
            return sku


def _ensure_unique(*, sku: str | None, barcode: str | None, exclude_id: int | None = None) -> None:
    if sku is not None:
        q = db.session.query(Product.id).filter(Product.sku == sku)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ConflictError("SKU or barcode already exists")
    if barcode is not None:
        q = db.session.query(Product.id).filter(Product.barcode == barcode)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ConflictError("SKU or barcode already exists")


def list_products() -> list[Product]:
    """Active products ordered by name."""
    return (
        db.session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )


def get_product(product_id: int) -> Product:
    p = db.session.query(Product).filter(
        Product.id == product_id,
        Product.is_active.is_(True),
    ).first()
    if not p:
        raise NotFoundError("Product not found")
    return p


def get_product_by_barcode(barcode: str) -> Product:
    p = db.session.query(Product).filter(
        Product.barcode == barcode,
        Product.is_active.is_(True),
    ).first()
    if not p:
        raise NotFoundError("Product not found")
    return p


def create_product(*, patch: dict, user_id: int | None = None) -> Product:
    """
    Create product using a validated patch dict.

    Generates a SKU when none is supplied. Logs the opening stock level
    as an `initial` history entry.

    Raises:
        ConflictError: If SKU or barcode already exists
    """
    patch = dict(patch)
    if not patch.get("sku"):
        patch["sku"] = generate_sku()

    _ensure_unique(sku=patch["sku"], barcode=patch.get("barcode"))

    p = Product()
    apply_product_patch(p, patch)

    try:
        db.session.add(p)
        db.session.flush()  # ensure p.id exists before history append

        if p.quantity:
            inventory_service.record_movement(
                product_id=p.id,
                change_type=inventory_service.CHANGE_INITIAL,
                quantity_change=p.quantity,
                reason="Initial stock",
                user_id=user_id,
            )
        db.session.commit()
    except IntegrityError as exc:
        # Lost a race against a concurrent insert of the same SKU/barcode
        db.session.rollback()
        raise ConflictError("SKU or barcode already exists") from exc
    return p


def update_product(*, product_id: int, patch: dict, user_id: int | None = None) -> Product:
    """
    Update a product.

    The row is locked first so an absolute quantity set cannot interleave
    with a concurrent sale's decrement. A quantity change is logged as an
    `adjustment` history entry with the signed difference.

    Raises:
        NotFoundError: If product does not exist
        ConflictError: If new SKU or barcode already exists
    """
    begin_write_transaction()
    try:
        p = (
            lock_for_update(db.session.query(Product).filter(Product.id == product_id))
            .populate_existing()
            .first()
        )
        if not p:
            raise NotFoundError("Product not found")

        if "sku" in patch and not patch["sku"]:
            patch = {k: v for k, v in patch.items() if k != "sku"}

        _ensure_unique(
            sku=patch.get("sku") if patch.get("sku") != p.sku else None,
            barcode=patch.get("barcode") if patch.get("barcode") != p.barcode else None,
            exclude_id=p.id,
        )

        old_quantity = p.quantity
        apply_product_patch(p, patch)

        if "quantity" in patch and patch["quantity"] != old_quantity:
            inventory_service.record_movement(
                product_id=p.id,
                change_type=inventory_service.CHANGE_ADJUSTMENT,
                quantity_change=patch["quantity"] - old_quantity,
                reason="Manual adjustment",
                user_id=user_id,
            )

        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("SKU or barcode already exists") from exc
    except Exception:
        db.session.rollback()
        raise
    return p


def delete_product(*, product_id: int) -> Product:
    """
    Soft-delete a product.

    Raises:
        NotFoundError: If product does not exist
    """
    p = db.session.query(Product).filter(Product.id == product_id).first()
    if not p:
        raise NotFoundError("Product not found")

    # Soft-delete only: preserve IDs and historical references.
    if p.is_active:
        p.is_active = False

    db.session.commit()
    return p
