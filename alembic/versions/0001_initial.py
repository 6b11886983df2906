"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(256), nullable=False, unique=True),
        sa.Column("role", sa.String(32), nullable=False, server_default="SALESPERSON"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("phone", sa.String(32)),
        sa.Column("email", sa.String(256)),
        sa.Column("preferred_channel", sa.String(16)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("make", sa.String(64), nullable=False),
        sa.Column("model", sa.String(64), nullable=False),
        sa.Column("variant", sa.String(64)),
        sa.Column("year", sa.Integer),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("customer_id", sa.String(64), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("vehicle_id", sa.String(64), sa.ForeignKey("vehicles.id")),
        sa.Column("salesperson_id", sa.String(64), sa.ForeignKey("users.id")),
        sa.Column("status", sa.String(32), nullable=False, server_default="NEW"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("booking_amount", sa.Numeric(14, 2)),
        sa.Column("financing_status", sa.String(16), nullable=False, server_default="NOT_STARTED"),
        sa.Column("financing_applied_at", sa.DateTime(timezone=True)),
        sa.Column("last_contact_at", sa.DateTime(timezone=True)),
        sa.Column("status_changed_at", sa.DateTime(timezone=True)),
        sa.Column("expected_delivery_date", sa.DateTime(timezone=True)),
        sa.Column("risk_score", sa.Integer),
        sa.Column("risk_level", sa.String(8)),
        sa.Column("fulfillment_probability", sa.Integer),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("ix_orders_salesperson_id", "orders", ["salesperson_id"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "activities",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("order_id", sa.String(64), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("summary", sa.Text),
        sa.Column("sentiment", sa.String(16)),
        sa.Column("performed_by_id", sa.String(64), sa.ForeignKey("users.id")),
        sa.Column("performed_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("ix_activities_order_id", "activities", ["order_id"])

def downgrade():
    op.drop_index("ix_activities_order_id", table_name="activities")
    op.drop_table("activities")

    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_index("ix_orders_salesperson_id", table_name="orders")
    op.drop_table("orders")

    op.drop_table("vehicles")
    op.drop_table("customers")
    op.drop_table("users")
