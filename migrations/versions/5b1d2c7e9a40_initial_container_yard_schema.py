"""initial_container_yard_schema

Revision ID: 5b1d2c7e9a40
Revises:
Create Date: 2026-10-18 12:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1d2c7e9a40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE = sa.Enum("admin", "member", "operator", name="role")
CONTAINER_STATUS = sa.Enum("active", "inactive", "closed", name="container_status")

CONTAINER_TYPES = [
    {"code": "20DV", "name": "20' Dry Van", "default_base_cost": 800},
    {"code": "40DV", "name": "40' Dry Van", "default_base_cost": 1200},
    {"code": "40HC", "name": "40' High Cube", "default_base_cost": 1300},
    {"code": "20RF", "name": "20' Reefer", "default_base_cost": 1100},
    {"code": "40RF", "name": "40' Reefer", "default_base_cost": 1600},
]


def upgrade() -> None:
    """Create accounts, clients, containers, inventory, events and the stats view."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255)),
        sa.Column("full_name", sa.String(255)),
        sa.Column("role", ROLE, nullable=False),
        sa.Column("client_id", sa.Integer()),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("trade_name", sa.String(200)),
        sa.Column("tax_id", sa.String(14), nullable=False, unique=True),
        sa.Column("email", sa.String(100)),
        sa.Column("phone", sa.String(20)),
        sa.Column("address", sa.String(300)),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_foreign_key(
        "fk_users_client_id", "users", "clients", ["client_id"], ["id"]
    )

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("token", sa.String(128), nullable=False, unique=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ip", sa.String(64)),
        sa.Column("user_agent", sa.String(500)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime()),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime()),
    )

    container_types = op.create_table(
        "container_types",
        sa.Column("code", sa.String(20), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("default_base_cost", sa.Numeric(12, 2)),
    )
    op.bulk_insert(container_types, CONTAINER_TYPES)

    op.create_table(
        "containers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("container_number", sa.String(20), nullable=False, unique=True),
        sa.Column("container_code", sa.String(50)),
        sa.Column("bl_number", sa.String(50)),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column(
            "container_type",
            sa.String(20),
            sa.ForeignKey("container_types.code"),
            nullable=False,
        ),
        sa.Column("status", CONTAINER_STATUS, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("yard_location", sa.String(100)),
        sa.Column("nominal_volume_m3", sa.Numeric(10, 3)),
        sa.Column("base_cost", sa.Numeric(12, 2)),
        sa.Column("measurement_day", sa.SmallInteger()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
        sa.CheckConstraint(
            "measurement_day IS NULL OR (measurement_day BETWEEN 1 AND 31)",
            name="ck_containers_measurement_day",
        ),
    )
    op.create_index("ix_containers_client_id", "containers", ["client_id"])
    op.create_index("ix_containers_status", "containers", ["status"])

    op.create_table(
        "inventory",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "container_id",
            sa.Integer(),
            sa.ForeignKey("containers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sku", sa.String(100), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("current_quantity", sa.Integer(), nullable=False),
        sa.Column("unit_volume_m3", sa.Numeric(12, 4)),
        sa.Column("unit_gross_weight_kg", sa.Numeric(12, 3)),
        sa.Column("total_volume_m3", sa.Numeric(14, 4)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_inventory_container_id", "inventory", ["container_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "container_id",
            sa.Integer(),
            sa.ForeignKey("containers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("quantity", sa.Integer()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_events_container_id", "events", ["container_id"])
    op.create_index("ix_events_created_at", "events", ["created_at"])

    # Same relation the API builds inline in src/containers/stats.py
    op.execute("""
        CREATE VIEW containers_stats_view AS
        SELECT
            c.id,
            c.container_number,
            c.container_code,
            c.bl_number,
            c.start_date,
            c.end_date,
            c.status,
            c.yard_location,
            c.nominal_volume_m3,
            c.base_cost,
            c.client_id,
            c.container_type,
            c.created_by,
            cl.name AS client_name,
            cl.owner_id AS client_owner_id,
            ct.name AS container_type_name,
            COUNT(DISTINCT i.sku) AS items_count,
            COALESCE(SUM(i.total_volume_m3), 0) AS used_volume,
            COALESCE(SUM(i.unit_gross_weight_kg * i.current_quantity), 0)
                AS total_gross_weight
        FROM containers c
        LEFT JOIN clients cl ON cl.id = c.client_id
        LEFT JOIN container_types ct ON ct.code = c.container_type
        LEFT JOIN inventory i ON i.container_id = c.id
        GROUP BY c.id, cl.name, cl.owner_id, ct.name
    """)


def downgrade() -> None:
    """Drop the stats view and every table."""
    op.execute("DROP VIEW IF EXISTS containers_stats_view")
    op.drop_index("ix_events_created_at", table_name="events")
    op.drop_index("ix_events_container_id", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_inventory_container_id", table_name="inventory")
    op.drop_table("inventory")
    op.drop_index("ix_containers_status", table_name="containers")
    op.drop_index("ix_containers_client_id", table_name="containers")
    op.drop_table("containers")
    op.drop_table("container_types")
    op.drop_table("auth_sessions")
    op.drop_constraint("fk_users_client_id", "users", type_="foreignkey")
    op.drop_table("clients")
    op.drop_table("users")
    CONTAINER_STATUS.drop(op.get_bind(), checkfirst=True)
    ROLE.drop(op.get_bind(), checkfirst=True)
