"""
Sales Service - atomic checkout

WHY: A checkout touches several tables (sales, sale_items, products,
inventory_history). Either all of them change or none do, and two
checkouts competing for the same stock must never both succeed when only
one can be supplied.

Flow (one DB transaction):
    Validating  lock every product row in submitted order, check stock
    Computing   total from prices read under the lock (client prices ignored)
    Persisting  sale row, sale items, stock decrements, history entries
    Committed   commit releases the row locks
Any failure rolls the whole transaction back (Aborted).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from ..errors import NotFoundError, PosError, StorageError, ValidationError
from ..extensions import db
from ..models import (
    DEFAULT_PAYMENT_METHOD,
    SALE_STATUS_COMPLETED,
    Sale,
    SaleItem,
    User,
    cents_to_decimal,
)
from ..validation import parse_int
from . import inventory_service
from .concurrency import begin_write_transaction, run_with_retry

RECENT_SALES_LIMIT = 100
PAYMENT_METHOD_MAX_LENGTH = 32


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__("No items in sale")


class SaleState(enum.Enum):
    STARTED = "started"
    VALIDATING = "validating"
    COMPUTING = "computing"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class SaleResult:
    sale_id: int
    total_cents: int

    @property
    def total_amount(self):
        return cents_to_decimal(self.total_cents)

    def to_dict(self) -> dict:
        return {"sale_id": self.sale_id, "total_amount": self.total_amount}


def normalize_items(items) -> list[CartLine]:
    """
    Validate the submitted cart before any transaction is opened.

    Raises EmptyCartError for a missing or empty list and ValidationError
    for malformed lines.
    """
    if not items:
        raise EmptyCartError()
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if item.get("product_id") is None or item.get("quantity") is None:
            raise ValidationError(f"items[{index}] requires product_id and quantity")

        product_id = parse_int(f"items[{index}].product_id", item["product_id"])
        quantity = parse_int(f"items[{index}].quantity", item["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")

        lines.append(CartLine(product_id=product_id, quantity=quantity))
    return lines


def normalize_payment_method(payment_method) -> str:
    if payment_method is None:
        return DEFAULT_PAYMENT_METHOD
    value = str(payment_method).strip().lower()
    if not value:
        return DEFAULT_PAYMENT_METHOD
    if len(value) > PAYMENT_METHOD_MAX_LENGTH:
        raise ValidationError(f"payment_method exceeds max length {PAYMENT_METHOD_MAX_LENGTH}")
    return value


def _process_sale_locked(lines: list[CartLine], user_id: int, payment_method: str) -> SaleResult:
    state = SaleState.STARTED
    begin_write_transaction()
    try:
        state = SaleState.VALIDATING
        reservations = []
        reserved: dict[int, int] = {}
        for line in lines:
            reservation = inventory_service.check_and_reserve(
                line.product_id,
                line.quantity,
                already_reserved=reserved.get(line.product_id, 0),
            )
            reserved[line.product_id] = reserved.get(line.product_id, 0) + line.quantity
            reservations.append(reservation)

        state = SaleState.COMPUTING
        total_cents = sum(r.unit_price_cents * r.quantity for r in reservations)

        state = SaleState.PERSISTING
        sale = Sale(
            user_id=user_id,
            total_cents=total_cents,
            payment_method=payment_method,
            status=SALE_STATUS_COMPLETED,
        )
        db.session.add(sale)
        db.session.flush()  # need sale.id for the items
        sale_id = sale.id

        for reservation in reservations:
            db.session.add(SaleItem(
                sale_id=sale_id,
                product_id=reservation.product_id,
                quantity=reservation.quantity,
                unit_price_cents=reservation.unit_price_cents,
                subtotal_cents=reservation.unit_price_cents * reservation.quantity,
            ))
            inventory_service.decrement(
                reservation.product_id,
                reservation.quantity,
                user_id=user_id,
                reason="Sale",
                product_name=reservation.product_name,
            )

        db.session.commit()
        state = SaleState.COMMITTED
        return SaleResult(sale_id=sale_id, total_cents=total_cents)
    except Exception:
        db.session.rollback()
        current_app.logger.debug("Sale aborted during %s", state.value)
        raise


def process_sale(items, *, user_id: int, payment_method: str | None = None) -> SaleResult:
    """
    Record a sale atomically.

    Returns SaleResult(sale_id, total). Raises EmptyCartError /
    ValidationError, ProductNotFoundError, InsufficientStockError, or
    StorageError; in every failure case nothing has been written.
    """
    lines = normalize_items(items)
    method = normalize_payment_method(payment_method)

    try:
        result = run_with_retry(lambda: _process_sale_locked(lines, user_id, method))
    except PosError:
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Sale transaction failed for user %s", user_id)
        raise StorageError("Sale could not be recorded") from exc

    current_app.logger.info(
        "Sale %s completed by user %s: %d line(s), total %s",
        result.sale_id, user_id, len(lines), result.total_amount,
    )
    return result


def get_sale(sale_id: int) -> Sale:
    """Sale with its items; items survive soft-deletion of their products."""
    sale = (
        db.session.query(Sale)
        .options(joinedload(Sale.items).joinedload(SaleItem.product), joinedload(Sale.user))
        .filter(Sale.id == sale_id)
        .first()
    )
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def sale_detail(sale: Sale) -> dict:
    data = sale.to_dict()
    data["cashier_name"] = _cashier_name(sale.user)
    data["items"] = [item.to_dict() for item in sale.items]
    return data


def list_recent_sales(limit: int = RECENT_SALES_LIMIT) -> list[dict]:
    """Most recent sales, newest first, with the cashier's display name."""
    rows = (
        db.session.query(Sale, User)
        .outerjoin(User, Sale.user_id == User.id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )
    result = []
    for sale, user in rows:
        data = sale.to_dict()
        data["cashier_name"] = _cashier_name(user)
        result.append(data)
    return result


def _cashier_name(user: User | None) -> str | None:
    if user is None:
        return None
    return user.display_name or user.username
