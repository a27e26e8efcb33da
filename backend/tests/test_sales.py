"""
Sale processing tests.

Covers the all-or-nothing contract: a failed cart leaves stock, sales and
history untouched; a successful one writes all of them together.
"""

from decimal import Decimal

import pytest

from sqlalchemy.exc import OperationalError

from pos_system.errors import StorageError, ValidationError
from pos_system.models import InventoryHistoryEntry, Product, Sale, SaleItem
from pos_system.services import concurrency, inventory_service, products_service, sales_service
from pos_system.services.inventory_service import InsufficientStockError, ProductNotFoundError
from pos_system.services.sales_service import EmptyCartError


def _quantity(db_session, product_id):
    db_session.expire_all()
    return db_session.get(Product, product_id).quantity


class TestProcessSale:

    def test_success_writes_sale_items_and_history(self, db_session, cashier_user, make_product):
        a = make_product(price_cents=250, quantity=10)
        b = make_product(price_cents=1000, quantity=3)

        result = sales_service.process_sale(
            [{"product_id": a.id, "quantity": 4}, {"product_id": b.id, "quantity": 1}],
            user_id=cashier_user.id,
        )

        assert result.total_amount == Decimal("20.00")
        assert _quantity(db_session, a.id) == 6
        assert _quantity(db_session, b.id) == 2

        sale = db_session.get(Sale, result.sale_id)
        assert sale.user_id == cashier_user.id
        assert sale.payment_method == "cash"
        assert sale.status == "completed"
        assert [(i.product_id, i.quantity, i.unit_price_cents, i.subtotal_cents) for i in sale.items] == [
            (a.id, 4, 250, 1000),
            (b.id, 1, 1000, 1000),
        ]

        history = db_session.query(InventoryHistoryEntry).order_by(InventoryHistoryEntry.id).all()
        assert [(h.product_id, h.change_type, h.quantity_change, h.user_id) for h in history] == [
            (a.id, "sale", -4, cashier_user.id),
            (b.id, "sale", -1, cashier_user.id),
        ]

    def test_empty_cart_rejected(self, db_session, cashier_user):
        with pytest.raises(EmptyCartError, match="No items in sale"):
            sales_service.process_sale([], user_id=cashier_user.id)
        with pytest.raises(EmptyCartError):
            sales_service.process_sale(None, user_id=cashier_user.id)
        assert db_session.query(Sale).count() == 0

    @pytest.mark.parametrize("items", [
        [{"product_id": 1}],
        [{"product_id": 1, "quantity": 0}],
        [{"product_id": 1, "quantity": -2}],
        [{"product_id": "abc", "quantity": 1}],
        [{"product_id": 1, "quantity": 1.5}],
        ["not-an-object"],
        [{"product_id": 10**20, "quantity": 1}],
        [{"product_id": 1, "quantity": 10**20}],
    ])
    def test_malformed_lines_rejected(self, db_session, cashier_user, items):
        with pytest.raises(ValidationError):
            sales_service.process_sale(items, user_id=cashier_user.id)

    def test_unknown_product_rolls_back_everything(self, db_session, cashier_user, make_product):
        existing = make_product(quantity=5)

        with pytest.raises(ProductNotFoundError):
            sales_service.process_sale(
                [{"product_id": existing.id, "quantity": 1}, {"product_id": 999999, "quantity": 1}],
                user_id=cashier_user.id,
            )

        assert _quantity(db_session, existing.id) == 5
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert db_session.query(InventoryHistoryEntry).count() == 0

    def test_insufficient_stock_names_product(self, db_session, cashier_user, make_product):
        p = make_product(name="Coffee Beans", quantity=2)

        with pytest.raises(InsufficientStockError) as exc_info:
            sales_service.process_sale([{"product_id": p.id, "quantity": 3}], user_id=cashier_user.id)

        assert exc_info.value.product_name == "Coffee Beans"
        assert str(exc_info.value) == "Insufficient stock for Coffee Beans"
        assert _quantity(db_session, p.id) == 2

    def test_repeated_product_checked_cumulatively(self, db_session, cashier_user, make_product):
        p = make_product(quantity=5)

        with pytest.raises(InsufficientStockError):
            sales_service.process_sale(
                [{"product_id": p.id, "quantity": 3}, {"product_id": p.id, "quantity": 3}],
                user_id=cashier_user.id,
            )
        assert _quantity(db_session, p.id) == 5

        sales_service.process_sale(
            [{"product_id": p.id, "quantity": 2}, {"product_id": p.id, "quantity": 3}],
            user_id=cashier_user.id,
        )
        assert _quantity(db_session, p.id) == 0

    def test_exact_stock_can_be_sold(self, db_session, cashier_user, make_product):
        p = make_product(quantity=3)
        sales_service.process_sale([{"product_id": p.id, "quantity": 3}], user_id=cashier_user.id)
        assert _quantity(db_session, p.id) == 0

    def test_inactive_product_cannot_be_sold(self, db_session, cashier_user, make_product):
        p = make_product(quantity=3, is_active=False)
        with pytest.raises(ProductNotFoundError):
            sales_service.process_sale([{"product_id": p.id, "quantity": 1}], user_id=cashier_user.id)

    def test_payment_method_normalized(self, db_session, cashier_user, make_product):
        p = make_product()
        result = sales_service.process_sale(
            [{"product_id": p.id, "quantity": 1}],
            user_id=cashier_user.id,
            payment_method=" Card ",
        )
        assert db_session.get(Sale, result.sale_id).payment_method == "card"


class TestSalesRoutes:

    def test_post_sale_uses_catalog_prices(self, client, cashier_headers, make_product):
        p = make_product(price_cents=499, quantity=10)

        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": p.id, "quantity": 2, "price": "0.01"}]},
            headers=cashier_headers,
        )

        assert resp.status_code == 201
        assert resp.json["status"] == "success"
        assert resp.json["data"]["total_amount"] == "9.98"
        assert isinstance(resp.json["data"]["sale_id"], int)

    def test_empty_cart_is_400(self, client, cashier_headers):
        resp = client.post("/api/sales", json={"items": []}, headers=cashier_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "No items in sale"

    def test_insufficient_stock_is_409(self, client, cashier_headers, make_product):
        p = make_product(name="Tea", quantity=1)
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": p.id, "quantity": 2}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 409
        assert resp.json["message"] == "Insufficient stock for Tea"
        assert resp.json["details"]["available_quantity"] == 1

    def test_unknown_product_is_404(self, client, cashier_headers):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": 424242, "quantity": 1}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 404

    def test_list_sales_with_cashier_name(self, client, cashier_headers, make_product):
        p = make_product()
        client.post("/api/sales", json={"items": [{"product_id": p.id, "quantity": 1}]}, headers=cashier_headers)
        client.post("/api/sales", json={"items": [{"product_id": p.id, "quantity": 2}]}, headers=cashier_headers)

        resp = client.get("/api/sales", headers=cashier_headers)
        assert resp.status_code == 200
        sales = resp.json["data"]
        assert len(sales) == 2
        assert sales[0]["total_amount"] == "20.00"  # newest first
        assert all(s["cashier_name"] == "Casey Cashier" for s in sales)

    def test_sale_items_survive_soft_delete(self, client, db_session, cashier_headers, make_product):
        p = make_product(name="Discontinued", price_cents=300)
        sale_id = client.post(
            "/api/sales",
            json={"items": [{"product_id": p.id, "quantity": 1}]},
            headers=cashier_headers,
        ).json["data"]["sale_id"]

        products_service.delete_product(product_id=p.id)

        resp = client.get(f"/api/sales/{sale_id}", headers=cashier_headers)
        assert resp.status_code == 200
        items = resp.json["data"]["items"]
        assert len(items) == 1
        assert items[0]["product_name"] == "Discontinued"
        assert items[0]["unit_price"] == "3.00"
        assert items[0]["subtotal"] == "3.00"

    def test_get_missing_sale_is_404(self, client, cashier_headers):
        resp = client.get("/api/sales/31337", headers=cashier_headers)
        assert resp.status_code == 404

    def test_huge_product_id_is_400(self, client, cashier_headers):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": 10**20, "quantity": 1}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "items[0].product_id is out of range"

    def test_huge_sale_id_is_404(self, client, cashier_headers):
        resp = client.get(f"/api/sales/{10**20}", headers=cashier_headers)
        assert resp.status_code == 404


class TestDecrementFloor:

    def test_decrement_never_goes_negative(self, db_session, cashier_user, make_product):
        p = make_product(name="Last One", quantity=1)

        with pytest.raises(InsufficientStockError, match="Insufficient stock for Last One"):
            inventory_service.decrement(p.id, 2, user_id=cashier_user.id, product_name=p.name)
        db_session.rollback()

        assert _quantity(db_session, p.id) == 1
        assert db_session.query(InventoryHistoryEntry).count() == 0

    def test_decrement_to_zero(self, db_session, cashier_user, make_product):
        p = make_product(quantity=2)
        inventory_service.decrement(p.id, 2, user_id=cashier_user.id)
        db_session.commit()
        assert _quantity(db_session, p.id) == 0


def _locked(*args, **kwargs):
    raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))


class TestLockConflicts:

    @pytest.fixture(autouse=True)
    def no_backoff(self, monkeypatch):
        monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)

    def test_lock_conflict_becomes_storage_error(self, db_session, cashier_user, make_product, monkeypatch):
        p = make_product(quantity=5)
        calls = []

        def locked(*args, **kwargs):
            calls.append(args)
            _locked()

        monkeypatch.setattr(sales_service, "_process_sale_locked", locked)

        with pytest.raises(StorageError, match="Sale could not be recorded"):
            sales_service.process_sale([{"product_id": p.id, "quantity": 1}], user_id=cashier_user.id)

        assert len(calls) == 3
        assert _quantity(db_session, p.id) == 5
        assert db_session.query(Sale).count() == 0

    def test_retry_recovers_from_transient_lock(self, db_session, cashier_user, make_product, monkeypatch):
        p = make_product(quantity=5)
        real = sales_service._process_sale_locked
        attempts = []

        def flaky(*args, **kwargs):
            attempts.append(1)
            if len(attempts) == 1:
                _locked()
            return real(*args, **kwargs)

        monkeypatch.setattr(sales_service, "_process_sale_locked", flaky)

        result = sales_service.process_sale([{"product_id": p.id, "quantity": 2}], user_id=cashier_user.id)

        assert len(attempts) == 2
        assert result.total_amount == Decimal("20.00")
        assert _quantity(db_session, p.id) == 3

    def test_lock_conflict_route_is_500(self, client, cashier_headers, make_product, monkeypatch):
        p = make_product(quantity=5)
        monkeypatch.setattr(sales_service, "_process_sale_locked", _locked)

        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": p.id, "quantity": 1}]},
            headers=cashier_headers,
        )

        assert resp.status_code == 500
        assert resp.json == {"status": "error", "message": "Sale could not be recorded"}
