"""Initial POS schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-12

Creates each table only if it is missing, so databases created by the
pre-migration server (tables present, no alembic_version) upgrade cleanly;
their column shapes are reconciled by the next revision.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("username", sa.String(length=64), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("display_name", sa.String(length=128), nullable=True),
            sa.Column("role", sa.String(length=16), nullable=False, server_default="cashier"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("username", name="uq_users_username"),
            sa.CheckConstraint("role IN ('admin', 'cashier')", name="ck_users_role"),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_users_username", "users", ["username"], unique=False)

    if not inspector.has_table("products"):
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sku", sa.String(length=64), nullable=False),
            sa.Column("barcode", sa.String(length=64), nullable=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("price_cents", sa.Integer(), nullable=False),
            sa.Column("cost_price_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("min_quantity", sa.Integer(), nullable=False, server_default="10"),
            sa.Column("category", sa.String(length=128), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("sku", name="uq_products_sku"),
            sa.UniqueConstraint("barcode", name="uq_products_barcode"),
            sa.CheckConstraint("quantity >= 0", name="ck_products_quantity_nonneg"),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_products_active_name", "products", ["is_active", "name"], unique=False)

    if not inspector.has_table("sessions"):
        op.create_table(
            "sessions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("user_snapshot", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_sessions_token_hash", "sessions", ["token_hash"], unique=True)
        op.create_index("ix_sessions_user_id", "sessions", ["user_id"], unique=False)
        op.create_index("ix_sessions_expires_at", "sessions", ["expires_at"], unique=False)

    if not inspector.has_table("sales"):
        op.create_table(
            "sales",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("total_cents", sa.Integer(), nullable=False),
            sa.Column("payment_method", sa.String(length=32), nullable=False, server_default="cash"),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="completed"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_sales_user_id", "sales", ["user_id"], unique=False)
        op.create_index("ix_sales_created_at", "sales", ["created_at"], unique=False)

    if not inspector.has_table("sale_items"):
        op.create_table(
            "sale_items",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sale_id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("unit_price_cents", sa.Integer(), nullable=False),
            sa.Column("subtotal_cents", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_sale_items_sale_id", "sale_items", ["sale_id"], unique=False)
        op.create_index("ix_sale_items_product_id", "sale_items", ["product_id"], unique=False)

    if not inspector.has_table("inventory_history"):
        op.create_table(
            "inventory_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("change_type", sa.String(length=32), nullable=False),
            sa.Column("quantity_change", sa.Integer(), nullable=False),
            sa.Column("reason", sa.String(length=255), nullable=True),
            sa.Column("user_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        op.create_index("ix_inventory_history_product_id", "inventory_history", ["product_id"], unique=False)
        op.create_index("ix_inventory_history_change_type", "inventory_history", ["change_type"], unique=False)
        op.create_index("ix_inventory_history_user_id", "inventory_history", ["user_id"], unique=False)
        op.create_index("ix_inventory_history_created_at", "inventory_history", ["created_at"], unique=False)
        op.create_index(
            "ix_inventory_history_product_created", "inventory_history", ["product_id", "created_at"], unique=False
        )


def downgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    for table in ("inventory_history", "sale_items", "sales", "sessions", "products", "users"):
        if inspector.has_table(table):
            op.drop_table(table)
