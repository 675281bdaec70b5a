"""Add purchases module and profit summary tables

Revision ID: 20260302_purchases_profit
Revises: 20260301_initial
Create Date: 2026-03-02
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260302_purchases_profit"
down_revision = "20260301_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("contact_person", sa.String(100), nullable=True),
        sa.Column("contact_number", sa.String(50), nullable=True),
        sa.Column("address", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id", name="pk_suppliers"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("suppliers", schema=None) as batch_op:
        batch_op.create_index("ix_suppliers_name", ["name"], unique=False)

    op.create_table(
        "purchases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_number", sa.String(20), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("supplier_id", sa.Integer(), nullable=True),
        sa.Column("supplier_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("supplier_address", sa.String(200), nullable=True),
        sa.Column("contact_number", sa.String(50), nullable=True),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("paid_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="UNPAID"),
        sa.Column("notes", sa.String(200), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], name="fk_purchases_supplier_id_suppliers"),
        sa.PrimaryKeyConstraint("id", name="pk_purchases"),
        sa.UniqueConstraint("purchase_number", name="uq_purchases_purchase_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchases", schema=None) as batch_op:
        batch_op.create_index("ix_purchases_date", ["date"], unique=False)
        batch_op.create_index("ix_purchases_supplier_id", ["supplier_id"], unique=False)
        batch_op.create_index("ix_purchases_status", ["status"], unique=False)

    op.create_table(
        "purchase_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("item_name", sa.String(120), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit", sa.String(20), nullable=False, server_default="pc"),
        sa.Column("cost", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.ForeignKeyConstraint(["purchase_id"], ["purchases.id"], name="fk_purchase_lines_purchase_id_purchases"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], name="fk_purchase_lines_product_id_products"),
        sa.PrimaryKeyConstraint("id", name="pk_purchase_lines"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_lines", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_lines_purchase_id", ["purchase_id"], unique=False)

    op.create_table(
        "purchase_payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False, server_default="CASH"),
        sa.Column("reference_no", sa.String(50), nullable=True),
        sa.Column("recorded_by", sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(
            ["purchase_id"], ["purchases.id"], name="fk_purchase_payments_purchase_id_purchases"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_purchase_payments"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_payments", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_payments_purchase_id", ["purchase_id"], unique=False)

    op.create_table(
        "purchase_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id", name="pk_purchase_sequences"),
        sa.UniqueConstraint("year", name="uq_purchase_sequences_year"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "deductions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("description", sa.String(200), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("applied_to", sa.String(50), nullable=True, server_default="General"),
        sa.PrimaryKeyConstraint("id", name="pk_deductions"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("deductions", schema=None) as batch_op:
        batch_op.create_index("ix_deductions_date", ["date"], unique=False)

    op.create_table(
        "partner_purchases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("partner_name", sa.String(50), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.String(200), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_partner_purchases"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("partner_purchases", schema=None) as batch_op:
        batch_op.create_index("ix_partner_purchases_partner_name", ["partner_name"], unique=False)
        batch_op.create_index("ix_partner_purchases_date", ["date"], unique=False)

    op.create_table(
        "partner_balance_configs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("partner_name", sa.String(50), nullable=False),
        sa.Column("opening_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("as_of_date", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_partner_balance_configs"),
        sa.UniqueConstraint("partner_name", name="uq_partner_balance_configs_partner_name"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "partner_capitals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("description", sa.String(100), nullable=False, server_default="Capital Fund"),
        sa.PrimaryKeyConstraint("id", name="pk_partner_capitals"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("partner_capitals", schema=None) as batch_op:
        batch_op.create_index("ix_partner_capitals_date", ["date"], unique=False)


def downgrade():
    with op.batch_alter_table("partner_capitals", schema=None) as batch_op:
        batch_op.drop_index("ix_partner_capitals_date")
    op.drop_table("partner_capitals")

    op.drop_table("partner_balance_configs")

    with op.batch_alter_table("partner_purchases", schema=None) as batch_op:
        batch_op.drop_index("ix_partner_purchases_date")
        batch_op.drop_index("ix_partner_purchases_partner_name")
    op.drop_table("partner_purchases")

    with op.batch_alter_table("deductions", schema=None) as batch_op:
        batch_op.drop_index("ix_deductions_date")
    op.drop_table("deductions")

    op.drop_table("purchase_sequences")

    with op.batch_alter_table("purchase_payments", schema=None) as batch_op:
        batch_op.drop_index("ix_purchase_payments_purchase_id")
    op.drop_table("purchase_payments")

    with op.batch_alter_table("purchase_lines", schema=None) as batch_op:
        batch_op.drop_index("ix_purchase_lines_purchase_id")
    op.drop_table("purchase_lines")

    with op.batch_alter_table("purchases", schema=None) as batch_op:
        batch_op.drop_index("ix_purchases_status")
        batch_op.drop_index("ix_purchases_supplier_id")
        batch_op.drop_index("ix_purchases_date")
    op.drop_table("purchases")

    with op.batch_alter_table("suppliers", schema=None) as batch_op:
        batch_op.drop_index("ix_suppliers_name")
    op.drop_table("suppliers")
