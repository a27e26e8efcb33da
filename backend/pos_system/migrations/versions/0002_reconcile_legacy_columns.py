"""Reconcile legacy column shapes

Revision ID: 0002_reconcile_legacy
Revises: 0001_initial_schema
Create Date: 2026-10-12

Databases written by the pre-migration server stored money as DECIMAL
(price, cost_price, total_amount, unit_price, subtotal), kept a stored
profit_margin, and may lack columns added later. This revision inspects
each table and only touches what is actually out of shape:

- decimal amount present, cents column absent -> add cents, backfill, drop decimal
- expected column absent -> add it (nullable or with a constant default)
- known legacy column present -> drop it

On a database created by 0001 every check is a no-op.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0002_reconcile_legacy"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


# (legacy decimal column, integer cents column)
DECIMAL_TO_CENTS = {
    "products": [("price", "price_cents"), ("cost_price", "cost_price_cents")],
    "sales": [("total_amount", "total_cents")],
    "sale_items": [("unit_price", "unit_price_cents"), ("subtotal", "subtotal_cents")],
}

# Columns added after the first release; SQLite cannot ADD COLUMN with a
# non-constant default, so timestamps are added nullable.
EXPECTED_COLUMNS = {
    "users": lambda: [
        sa.Column("display_name", sa.String(length=128), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="cashier"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    ],
    "products": lambda: [
        sa.Column("barcode", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cost_price_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_quantity", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ],
    "sales": lambda: [
        sa.Column("payment_method", sa.String(length=32), nullable=False, server_default="cash"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="completed"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    ],
    "inventory_history": lambda: [
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    ],
}

LEGACY_COLUMNS = {
    "products": ["profit_margin"],
}


def _columns(inspector, table: str) -> set[str]:
    return {c["name"] for c in inspector.get_columns(table)}


def _convert_decimal_columns(table: str, existing: set[str]) -> tuple[list[str], list[str]]:
    """Add + backfill cents columns. Returns (legacy columns to drop, cents columns to tighten)."""
    to_drop, to_tighten = [], []
    for legacy, cents in DECIMAL_TO_CENTS.get(table, []):
        if legacy not in existing:
            continue
        if cents not in existing:
            op.add_column(table, sa.Column(cents, sa.Integer(), nullable=True))
            t = sa.table(table, sa.column(legacy), sa.column(cents))
            op.execute(
                t.update().values({
                    cents: sa.cast(sa.func.round(sa.func.coalesce(t.c[legacy], 0) * 100), sa.Integer),
                })
            )
            existing.add(cents)
            to_tighten.append(cents)
        to_drop.append(legacy)
    return to_drop, to_tighten


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ("users", "products", "sales", "sale_items", "inventory_history"):
        if not inspector.has_table(table):
            continue

        existing = _columns(inspector, table)
        to_drop, to_tighten = _convert_decimal_columns(table, existing)

        for column in EXPECTED_COLUMNS.get(table, lambda: [])():
            if column.name not in existing:
                op.add_column(table, column)
                existing.add(column.name)

        to_drop += [c for c in LEGACY_COLUMNS.get(table, []) if c in existing]

        if to_drop or to_tighten:
            with op.batch_alter_table(table, schema=None) as batch_op:
                for cents in to_tighten:
                    batch_op.alter_column(cents, existing_type=sa.Integer(), nullable=False)
                for column in to_drop:
                    batch_op.drop_column(column)


def downgrade():
    # Legacy shapes are not restored; money stays in cents.
    pass
