# Overview: Read-only dashboard rollups over sales and products.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Product, Sale, cents_to_decimal
from pos_system.time_utils import local_day_bounds, to_utc_z


def get_dashboard(*, tz_name: str | None = None, now: datetime | None = None) -> dict:
    """
    Aggregate snapshot for the dashboard.

    "Today" is the current calendar day in tz_name (defaults to the
    POS_TIMEZONE setting), translated to a UTC range over Sale.created_at.
    Reads only; a result one transaction stale is acceptable.
    """
    tz_name = tz_name or current_app.config.get("POS_TIMEZONE", "UTC")
    start, end = local_day_bounds(tz_name, now)

    transactions, total_cents = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_cents), 0),
    ).filter(
        Sale.created_at >= start,
        Sale.created_at < end,
    ).one()

    total_products = db.session.query(func.count(Product.id)).filter(
        Product.is_active.is_(True),
    ).scalar()

    low_stock_count = db.session.query(func.count(Product.id)).filter(
        Product.is_active.is_(True),
        Product.quantity <= Product.min_quantity,
    ).scalar()

    return {
        "todays_transactions": int(transactions or 0),
        "todays_sales": cents_to_decimal(int(total_cents or 0)),
        "total_products": int(total_products or 0),
        "low_stock_count": int(low_stock_count or 0),
        "timezone": tz_name,
        "day_start": to_utc_z(start),
        "day_end": to_utc_z(end),
    }
