# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pos_system/routes/sales.py
"""
Sales routes.

POST /api/sales records a whole cart atomically. Unit prices come from the
catalog at checkout time; any price sent by the client is ignored.
"""
from flask import Blueprint, request, g, current_app

from ..errors import PosError
from ..services import sales_service
from ..decorators import require_auth
from ..responses import success, error, from_exception

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Process a sale.

    Request body:
    - items: [{product_id: int, quantity: int}, ...] (required, non-empty)
    - payment_method: str (optional, default "cash")

    Returns {sale_id, total_amount}. On any failure no stock moves.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return error("Invalid JSON payload", 400)

    try:
        result = sales_service.process_sale(
            data.get("items"),
            user_id=g.current_user.id,
            payment_method=data.get("payment_method"),
        )
    except PosError as e:
        if e.status_code < 500:
            current_app.logger.info("Sale rejected for user %s: %s", g.current_user.id, e.message)
        return from_exception(e)
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return error("Internal server error", 500)

    return success(result.to_dict(), message="Sale completed", status=201)


@sales_bp.get("")
@require_auth
def list_sales_route():
    """Most recent sales (newest first) with cashier display names."""
    return success(sales_service.list_recent_sales())


@sales_bp.get("/<id:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except PosError as e:
        return from_exception(e)
    return success(sales_service.sale_detail(sale))
