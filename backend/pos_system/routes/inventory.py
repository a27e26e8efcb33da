# Overview: Flask API routes for inventory history; parses input and returns JSON responses.

from flask import Blueprint, request

from ..models import ROLE_ADMIN
from ..services import inventory_service
from ..decorators import require_auth, require_role
from ..responses import success, error, from_exception
from ..validation import ValidationError, parse_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

MAX_HISTORY_LIMIT = 500


@inventory_bp.get("/history")
@require_auth
@require_role(ROLE_ADMIN)
def history_route():
    """
    Stock movement audit trail, newest first.

    Query params:
    - product_id: int (optional)
    - limit: int (optional, default 100, max 500)
    """
    raw_product_id = request.args.get("product_id")
    try:
        product_id = parse_int("product_id", raw_product_id) if raw_product_id is not None else None
    except ValidationError as e:
        return from_exception(e)
    limit = request.args.get("limit", default=100, type=int)
    if limit is None or limit < 1:
        return error("limit must be a positive integer", 400)

    entries = inventory_service.list_history(product_id=product_id, limit=min(limit, MAX_HISTORY_LIMIT))
    return success([e.to_dict() for e in entries])
