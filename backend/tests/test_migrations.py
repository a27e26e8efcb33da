"""
Schema migration tests.

Both revisions inspect the live schema before acting, so the upgrade must
be repeatable and must bring a pre-migration database into shape.
"""

import os
import tempfile

import pytest
import sqlalchemy as sa
from flask_migrate import upgrade

from pos_system import create_app
from pos_system.extensions import db
from pos_system.models import Product


@pytest.fixture
def migrated_app():
    tmpdir = tempfile.TemporaryDirectory()
    db_path = os.path.join(tmpdir.name, "migrations.db")
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        "AUTO_BOOTSTRAP": False,
    })

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    tmpdir.cleanup()


def _columns(table):
    return [c["name"] for c in sa.inspect(db.engine).get_columns(table)]


def test_upgrade_twice_is_safe(migrated_app):
    with migrated_app.app_context():
        upgrade()
        first = {t: _columns(t) for t in sa.inspect(db.engine).get_table_names()}

        upgrade()
        second = {t: _columns(t) for t in sa.inspect(db.engine).get_table_names()}

        assert first == second
        for table in ("users", "sessions", "products", "sales", "sale_items", "inventory_history", "alembic_version"):
            assert table in second
        for table, cols in second.items():
            assert len(cols) == len(set(cols)), f"duplicate columns in {table}"

        version = db.session.execute(sa.text("SELECT version_num FROM alembic_version")).scalar()
        assert version == "0002_reconcile_legacy"


def test_upgraded_schema_matches_models(migrated_app):
    with migrated_app.app_context():
        upgrade()
        for table in db.metadata.sorted_tables:
            assert set(_columns(table.name)) == {c.name for c in table.columns}, table.name


def test_legacy_database_is_reconciled(migrated_app):
    with migrated_app.app_context():
        with db.engine.begin() as conn:
            conn.execute(sa.text(
                "CREATE TABLE products ("
                " id INTEGER PRIMARY KEY AUTOINCREMENT,"
                " sku VARCHAR(64) NOT NULL,"
                " name VARCHAR(255) NOT NULL,"
                " price DECIMAL(10, 2) NOT NULL,"
                " cost_price DECIMAL(10, 2),"
                " profit_margin DECIMAL(5, 2),"
                " quantity INTEGER NOT NULL DEFAULT 0"
                ")"
            ))
            conn.execute(sa.text(
                "INSERT INTO products (sku, name, price, cost_price, profit_margin, quantity)"
                " VALUES ('OLD-1', 'Legacy Widget', 12.50, 10.00, 25.00, 7)"
            ))
            conn.execute(sa.text(
                "CREATE TABLE sales ("
                " id INTEGER PRIMARY KEY AUTOINCREMENT,"
                " user_id INTEGER NOT NULL,"
                " total_amount DECIMAL(10, 2) NOT NULL"
                ")"
            ))
            conn.execute(sa.text("INSERT INTO sales (user_id, total_amount) VALUES (1, 19.99)"))

        upgrade()
        upgrade()

        product_cols = _columns("products")
        assert "profit_margin" not in product_cols
        assert "price" not in product_cols
        assert "cost_price" not in product_cols
        for col in ("price_cents", "cost_price_cents", "barcode", "min_quantity", "is_active", "category"):
            assert col in product_cols

        sales_cols = _columns("sales")
        assert "total_amount" not in sales_cols
        assert {"total_cents", "payment_method", "status"} <= set(sales_cols)

        product = db.session.query(Product).filter_by(sku="OLD-1").one()
        assert product.price_cents == 1250
        assert product.cost_price_cents == 1000
        assert product.quantity == 7
        assert product.min_quantity == 10
        assert product.is_active is True
        assert str(product.profit_margin) == "25.00"

        row = db.session.execute(sa.text("SELECT total_cents, payment_method FROM sales")).one()
        assert tuple(row) == (1999, "cash")

        # Tables the old server never had are created
        assert "sessions" in sa.inspect(db.engine).get_table_names()
