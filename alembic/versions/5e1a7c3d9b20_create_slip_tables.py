"""create master data, slip number configs and slip tables

Revision ID: 5e1a7c3d9b20
Revises:
Create Date: 2026-10-12 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5e1a7c3d9b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


slip_type_enum = postgresql.ENUM("transport", "freight", name="slip_type_enum", create_type=False)
slip_status_enum = postgresql.ENUM(
    "pending",
    "in_progress",
    "delivered",
    "invoiced",
    name="slip_status_enum",
    create_type=False,
)
user_role_enum = postgresql.ENUM(
    "admin",
    "exploit",
    "compta",
    "direction",
    name="user_role_enum",
    create_type=False,
)


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column(
            "created_by",
            sa.String(length=255),
            nullable=False,
            server_default=sa.text("'system@local'"),
        ),
        sa.Column(
            "last_changed_by",
            sa.String(length=255),
            nullable=False,
            server_default=sa.text("'system@local'"),
        ),
    ]


def _slip_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("number", sa.String(length=30), nullable=False),
        sa.Column("status", slip_status_enum, nullable=False, server_default=sa.text("'pending'")),
        sa.Column(
            "client_id",
            sa.Integer(),
            sa.ForeignKey("clients.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("loading_date", sa.Date(), nullable=False),
        sa.Column("loading_time", sa.Time(), nullable=True),
        sa.Column("loading_time_start", sa.Time(), nullable=True),
        sa.Column("loading_time_end", sa.Time(), nullable=True),
        sa.Column("loading_address", sa.String(length=500), nullable=True),
        sa.Column("loading_contact", sa.String(length=255), nullable=True),
        sa.Column("delivery_date", sa.Date(), nullable=False),
        sa.Column("delivery_time", sa.Time(), nullable=True),
        sa.Column("delivery_time_start", sa.Time(), nullable=True),
        sa.Column("delivery_time_end", sa.Time(), nullable=True),
        sa.Column("delivery_address", sa.String(length=500), nullable=True),
        sa.Column("delivery_contact", sa.String(length=255), nullable=True),
        sa.Column("goods_description", sa.Text(), nullable=True),
        sa.Column("volume", sa.Float(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("vehicle_type", sa.String(length=50), nullable=True),
        sa.Column("custom_vehicle_type", sa.String(length=100), nullable=True),
        sa.Column("exchange_type", sa.String(length=20), nullable=True),
        sa.Column("tailgate", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_method", sa.String(length=100), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("photo_required", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("order_number", sa.String(length=100), nullable=True),
        sa.Column(
            "documents",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        *_audit_columns(),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    slip_type_enum.create(bind, checkfirst=True)
    slip_status_enum.create(bind, checkfirst=True)
    user_role_enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default=sa.text("'exploit'")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", sa.String(length=50), nullable=False, unique=True),
        sa.Column(
            "config",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "slip_number_configs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", slip_type_enum, nullable=False, unique=True),
        sa.Column("prefix", sa.String(length=20), nullable=False),
        sa.Column("current_number", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("current_number >= 0", name="ck_slip_number_configs_non_negative"),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nom", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("telephone", sa.String(length=50), nullable=True),
        sa.Column("adresse", sa.String(length=500), nullable=True),
        sa.Column("facturation", sa.Text(), nullable=True),
        *_audit_columns(),
    )
    op.create_index("ix_clients_nom", "clients", ["nom"], unique=False)

    op.create_table(
        "client_contacts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "client_id",
            sa.Integer(),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("telephone", sa.String(length=50), nullable=True),
        sa.Column("role", sa.String(length=100), nullable=True),
    )
    op.create_index("ix_client_contacts_client_id", "client_contacts", ["client_id"], unique=False)

    op.create_table(
        "client_accounting_contacts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "client_id",
            sa.Integer(),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("telephone", sa.String(length=50), nullable=True),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nom", sa.String(length=255), nullable=False),
        sa.Column("telephone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("contact_nom", sa.String(length=255), nullable=True),
        sa.Column("deletion_indicator", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_audit_columns(),
    )
    op.create_index("ix_suppliers_nom", "suppliers", ["nom"], unique=False)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("immatriculation", sa.String(length=20), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )

    op.create_table(
        "transport_slips",
        *_slip_columns(),
        sa.Column(
            "vehicle_id",
            sa.Integer(),
            sa.ForeignKey("vehicles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("loading_instructions", sa.Text(), nullable=True),
        sa.Column("unloading_instructions", sa.Text(), nullable=True),
        sa.Column("kilometers", sa.Float(), nullable=True),
    )

    op.create_table(
        "freight_slips",
        *_slip_columns(),
        sa.Column(
            "supplier_id",
            sa.Integer(),
            sa.ForeignKey("suppliers.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("metre", sa.Float(), nullable=True),
        sa.Column("commercial_id", sa.String(length=255), nullable=True),
        sa.Column("purchase_price", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("selling_price", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("margin", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("margin_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
    )

    for table in ("transport_slips", "freight_slips"):
        op.create_index(f"ix_{table}_number", table, ["number"], unique=True)
        op.create_index(f"ix_{table}_client_id", table, ["client_id"], unique=False)
        op.create_index(f"ix_{table}_loading_date", table, ["loading_date"], unique=False)
        op.create_index(f"ix_{table}_created_at", table, ["created_at"], unique=False)
    op.create_index("ix_freight_slips_supplier_id", "freight_slips", ["supplier_id"], unique=False)
    for table in ("app_settings", "clients", "suppliers"):
        op.create_index(f"ix_{table}_created_at", table, ["created_at"], unique=False)

def downgrade() -> None:
    for table in ("suppliers", "clients", "app_settings"):
        op.drop_index(f"ix_{table}_created_at", table_name=table)
    op.drop_index("ix_freight_slips_supplier_id", table_name="freight_slips")
    for table in ("freight_slips", "transport_slips"):
        op.drop_index(f"ix_{table}_created_at", table_name=table)
        op.drop_index(f"ix_{table}_loading_date", table_name=table)
        op.drop_index(f"ix_{table}_client_id", table_name=table)
        op.drop_index(f"ix_{table}_number", table_name=table)
    op.drop_table("freight_slips")
    op.drop_table("transport_slips")
    op.drop_table("vehicles")
    op.drop_index("ix_suppliers_nom", table_name="suppliers")
    op.drop_table("suppliers")
    op.drop_table("client_accounting_contacts")
    op.drop_index("ix_client_contacts_client_id", table_name="client_contacts")
    op.drop_table("client_contacts")
    op.drop_index("ix_clients_nom", table_name="clients")
    op.drop_table("clients")
    op.drop_table("slip_number_configs")
    op.drop_table("app_settings")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    user_role_enum.drop(bind, checkfirst=True)
    slip_status_enum.drop(bind, checkfirst=True)
    slip_type_enum.drop(bind, checkfirst=True)
