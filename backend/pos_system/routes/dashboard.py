# Overview: Flask API route for the dashboard snapshot.

from flask import Blueprint, current_app

from ..services import dashboard_service
from ..decorators import require_auth
from ..responses import success, error

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
def dashboard_route():
    """Today's sales count and total (POS_TIMEZONE day), catalog size, low-stock count."""
    try:
        return success(dashboard_service.get_dashboard())
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return error("Internal server error", 500)
