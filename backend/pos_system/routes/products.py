# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/pos_system/routes/products.py
"""
Product catalog routes.

Reads require an authenticated session; writes require the admin role.
Delete is a soft delete (is_active=False) so sale history keeps its references.

Amounts (price, cost_price, profit_margin) are rendered as two-decimal strings.
A product with no cost price reports profit_margin "0.00", never a bare 0.
"""
from flask import Blueprint, request, g, current_app

from ..errors import PosError
from ..models import Product, ROLE_ADMIN
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
)
from ..decorators import require_auth, require_role
from ..responses import success, error, from_exception

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "barcode", "name", "description", "price", "cost_price",
        "quantity", "min_quantity", "category", "is_active",
    },
    required_on_create={"name", "price"},
    money_fields={"price": "price_cents", "cost_price": "cost_price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """List active products ordered by name."""
    products = products_service.list_products()
    return success([p.to_dict() for p in products])


@products_bp.get("/<id:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except PosError as e:
        return from_exception(e)
    return success(product.to_dict())


@products_bp.get("/barcode/<string:barcode>")
@require_auth
def get_product_by_barcode(barcode: str):
    """Scanner lookup; inactive products are not found."""
    try:
        product = products_service.get_product_by_barcode(barcode.strip())
    except PosError as e:
        return from_exception(e)
    return success(product.to_dict())


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_product_route():
    """
    Create a new product.

    Request body:
    - name: str (required)
    - price: decimal (required)
    - sku: str (optional, generated when omitted)
    - barcode, description, category: str (optional)
    - cost_price: decimal (optional, default 0)
    - quantity, min_quantity: int (optional)
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch, user_id=g.current_user.id)
    except PosError as e:
        return from_exception(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return error("Internal server error", 500)

    current_app.logger.info("Product %s (%s) created", created.id, created.sku)
    return success(created.to_dict(), message="Product created", status=201)


@products_bp.put("/<id:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_product_route(product_id: int):
    """
    Update a product (partial).

    A change to quantity is recorded in the inventory history as an adjustment.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(
            product_id=product_id, patch=patch, user_id=g.current_user.id
        )
    except PosError as e:
        return from_exception(e)
    except Exception:
        current_app.logger.exception("Failed to update product %s", product_id)
        return error("Internal server error", 500)

    return success(updated.to_dict(), message="Product updated")


@products_bp.delete("/<id:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: int):
    """Soft-delete a product."""
    try:
        products_service.delete_product(product_id=product_id)
    except PosError as e:
        return from_exception(e)
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return error("Internal server error", 500)

    return success(message="Product deleted")
