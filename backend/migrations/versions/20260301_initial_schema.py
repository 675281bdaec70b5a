"""Initial schema: catalog, outlets, receipts, receipt sequences

Revision ID: 20260301_initial
Revises:
Create Date: 2026-03-01
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260301_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(50), nullable=False, server_default=""),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default=""),
        sa.Column("unit", sa.String(20), nullable=False, server_default="pc"),
        sa.Column("unit_cost", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("markup", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("delivery_fee", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id", name="pk_products"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_active_name", ["is_active", "name"], unique=False)

    op.create_table(
        "weekly_prices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=False),
        sa.Column("cost_override", sa.Numeric(18, 2), nullable=True),
        sa.Column("delivery_fee_override", sa.Numeric(18, 2), nullable=True),
        sa.Column("markup", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("base_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("delivery_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], name="fk_weekly_prices_product_id_products"),
        sa.PrimaryKeyConstraint("id", name="pk_weekly_prices"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("weekly_prices", schema=None) as batch_op:
        batch_op.create_index("ix_weekly_prices_product_id", ["product_id"], unique=False)
        batch_op.create_index(
            "ix_weekly_prices_product_range", ["product_id", "effective_from", "effective_to"], unique=False
        )

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("address", sa.String(200), nullable=True),
        sa.Column("contact_person", sa.String(50), nullable=True),
        sa.Column("contact_number", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("group_name", sa.String(100), nullable=True),
        sa.Column("sub_label", sa.String(50), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_customers"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_name", ["name"], unique=False)
        batch_op.create_index("ix_customers_active_group", ["is_active", "group_name"], unique=False)

    op.create_table(
        "receipts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("receipt_number", sa.String(20), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("customer_address", sa.String(200), nullable=True),
        sa.Column("contact_number", sa.String(50), nullable=True),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("paid_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("receipt_type", sa.String(16), nullable=False, server_default="DELIVERY"),
        sa.Column("status", sa.String(16), nullable=False, server_default="UNPAID"),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("received_by", sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], name="fk_receipts_customer_id_customers"),
        sa.PrimaryKeyConstraint("id", name="pk_receipts"),
        sa.UniqueConstraint("receipt_number", name="uq_receipts_receipt_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("receipts", schema=None) as batch_op:
        batch_op.create_index("ix_receipts_date", ["date"], unique=False)
        batch_op.create_index("ix_receipts_status", ["status"], unique=False)
        batch_op.create_index("ix_receipts_date_status", ["date", "status"], unique=False)
        batch_op.create_index("ix_receipts_customer_date", ["customer_id", "date"], unique=False)

    op.create_table(
        "receipt_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("receipt_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("item_name", sa.String(100), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit", sa.String(20), nullable=False, server_default="pc"),
        sa.Column("price", sa.Numeric(18, 2), nullable=False),
        sa.Column("cost_price_snapshot", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.ForeignKeyConstraint(["receipt_id"], ["receipts.id"], name="fk_receipt_lines_receipt_id_receipts"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], name="fk_receipt_lines_product_id_products"),
        sa.PrimaryKeyConstraint("id", name="pk_receipt_lines"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("receipt_lines", schema=None) as batch_op:
        batch_op.create_index("ix_receipt_lines_receipt_id", ["receipt_id"], unique=False)
        batch_op.create_index("ix_receipt_lines_product_id", ["product_id"], unique=False)

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("receipt_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("method", sa.String(16), nullable=False, server_default="CASH"),
        sa.Column("reference_no", sa.String(50), nullable=True),
        sa.Column("recorded_by", sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(["receipt_id"], ["receipts.id"], name="fk_payments_receipt_id_receipts"),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("payments", schema=None) as batch_op:
        batch_op.create_index("ix_payments_receipt_id", ["receipt_id"], unique=False)

    op.create_table(
        "receipt_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id", name="pk_receipt_sequences"),
        sa.UniqueConstraint("year", name="uq_receipt_sequences_year"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("receipt_sequences")

    with op.batch_alter_table("payments", schema=None) as batch_op:
        batch_op.drop_index("ix_payments_receipt_id")
    op.drop_table("payments")

    with op.batch_alter_table("receipt_lines", schema=None) as batch_op:
        batch_op.drop_index("ix_receipt_lines_product_id")
        batch_op.drop_index("ix_receipt_lines_receipt_id")
    op.drop_table("receipt_lines")

    with op.batch_alter_table("receipts", schema=None) as batch_op:
        batch_op.drop_index("ix_receipts_customer_date")
        batch_op.drop_index("ix_receipts_date_status")
        batch_op.drop_index("ix_receipts_status")
        batch_op.drop_index("ix_receipts_date")
    op.drop_table("receipts")

    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.drop_index("ix_customers_active_group")
        batch_op.drop_index("ix_customers_name")
    op.drop_table("customers")

    with op.batch_alter_table("weekly_prices", schema=None) as batch_op:
        batch_op.drop_index("ix_weekly_prices_product_range")
        batch_op.drop_index("ix_weekly_prices_product_id")
    op.drop_table("weekly_prices")

    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.drop_index("ix_products_active_name")
    op.drop_table("products")
