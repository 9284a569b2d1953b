"""Initial fleet schema: drivers, vehicles, maintenance orders, schedules.

Revision ID: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("id_number", sa.String(64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("make", sa.String(80), nullable=True),
        sa.Column("model", sa.String(80), nullable=True),
        sa.Column("year", sa.Integer, nullable=True),
        sa.Column("license_plate", sa.String(32), nullable=True),
        sa.Column(
            "status",
            sa.Enum("active", "maintenance", "idle", name="vehiclestatus"),
            server_default="idle",
            nullable=False,
        ),
        sa.Column(
            "assigned_driver_id",
            sa.Integer,
            sa.ForeignKey("drivers.id"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_vehicles_status", "vehicles", ["status"])

    # ── maintenance_orders ────────────────────────────────────────────
    op.create_table(
        "maintenance_orders",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("order_number", sa.String(32), nullable=True),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column(
            "status",
            sa.Enum(
                "pending_authorization",
                "scheduled",
                "active",
                "completed",
                name="maintenanceorderstatus",
            ),
            server_default="scheduled",
            nullable=False,
        ),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("estimated_completion_date", sa.Date, nullable=False),
        sa.Column("urgent", sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column("type", sa.String(80), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("cost", sa.Float, nullable=True),
        sa.Column("quotation_details", sa.Text, nullable=True),
        sa.Column("comments", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_maintenance_orders_status", "maintenance_orders", ["status"]
    )
    op.create_index(
        "idx_maintenance_orders_vehicle", "maintenance_orders", ["vehicle_id"]
    )

    # ── vehicle_schedules ─────────────────────────────────────────────
    op.create_table(
        "vehicle_schedules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=False
        ),
        sa.Column(
            "status",
            sa.Enum("scheduled", "active", "completed", name="schedulestatus"),
            server_default="scheduled",
            nullable=False,
        ),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_vehicle_schedules_status", "vehicle_schedules", ["status"]
    )
    op.create_index(
        "idx_vehicle_schedules_vehicle", "vehicle_schedules", ["vehicle_id"]
    )
    op.create_index(
        "idx_vehicle_schedules_driver", "vehicle_schedules", ["driver_id"]
    )


def downgrade() -> None:
    op.drop_table("vehicle_schedules")
    op.drop_table("maintenance_orders")
    op.drop_table("vehicles")
    op.drop_table("drivers")
    op.execute("DROP TYPE IF EXISTS schedulestatus")
    op.execute("DROP TYPE IF EXISTS maintenanceorderstatus")
    op.execute("DROP TYPE IF EXISTS vehiclestatus")
