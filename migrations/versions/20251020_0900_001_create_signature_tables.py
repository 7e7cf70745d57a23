"""Create signature workflow tables

Revision ID: 001
Revises:
Create Date: 2025-10-20 09:00:00.000000

Creates the following tables:
- general_settings: Company-wide settings (low-amount threshold)
- approval_flow_templates: Named signature chains
- document_approval_configurations: Per-document signature chains
- requirements, quotation_requests, fuel_daily_controls, purchase_orders:
  Signable documents with four signature slots and a rejection record
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SLOT_PREFIXES = ("first", "second", "third", "fourth")


def signature_columns() -> list[sa.Column]:
    columns = []
    for prefix in SLOT_PREFIXES:
        columns += [
            sa.Column(f"{prefix}_signature", sa.Text(), nullable=True),
            sa.Column(f"{prefix}_signed_by", sa.Integer(), nullable=True),
            sa.Column(f"{prefix}_signed_at", sa.DateTime(timezone=True), nullable=True),
        ]
    columns += [
        sa.Column("rejected_reason", sa.Text(), nullable=True),
        sa.Column("rejected_by", sa.Integer(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
    ]
    return columns


def timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ========================================
    # 1. general_settings table
    # ========================================
    op.create_table(
        "general_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False, server_default="PROCURA ERP"),
        sa.Column("low_amount_threshold", sa.Numeric(10, 2), nullable=True, server_default="10000"),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ========================================
    # 2. approval_flow_templates table
    # ========================================
    op.create_table(
        "approval_flow_templates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("template_name", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("signature_level", sa.Integer(), nullable=False),
        sa.Column("role_name", sa.String(100), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("signature_level BETWEEN 1 AND 4", name="template_level"),
    )
    op.create_index(
        "idx_template_lookup",
        "approval_flow_templates",
        ["template_name", "entity_type", "is_active"],
    )

    # ========================================
    # 3. document_approval_configurations table
    # ========================================
    op.create_table(
        "document_approval_configurations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("signature_level", sa.Integer(), nullable=False),
        sa.Column("role_name", sa.String(100), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("signature_level BETWEEN 1 AND 4", name="approval_config_level"),
    )
    op.create_index(
        "idx_approval_config_document",
        "document_approval_configurations",
        ["entity_type", "entity_id", "is_active"],
    )

    # ========================================
    # 4. Signable documents
    # ========================================
    op.create_table(
        "requirements",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        *signature_columns(),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_requirements_created_by", "requirements", ["created_by"])
    op.create_index("ix_requirements_status", "requirements", ["status"])

    op.create_table(
        "quotation_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        *signature_columns(),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_quotation_requests_created_by", "quotation_requests", ["created_by"])
    op.create_index("ix_quotation_requests_status", "quotation_requests", ["status"])

    op.create_table(
        "fuel_daily_controls",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("control_date", sa.Date(), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("total_outputs", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        *signature_columns(),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fuel_daily_controls_status", "fuel_daily_controls", ["status"])
    op.create_index(
        "idx_fuel_control_warehouse_date",
        "fuel_daily_controls",
        ["warehouse_id", "control_date"],
    )

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(30), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("total", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        *signature_columns(),
        *timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_purchase_orders_created_by", "purchase_orders", ["created_by"])
    op.create_index("ix_purchase_orders_status", "purchase_orders", ["status"])

    # ========================================
    # 5. Seed data
    # ========================================
    op.execute(
        "INSERT INTO general_settings (id, company_name, low_amount_threshold) "
        "VALUES (1, 'PROCURA ERP', 10000)"
    )

    templates = sa.table(
        "approval_flow_templates",
        sa.column("template_name", sa.String),
        sa.column("entity_type", sa.String),
        sa.column("signature_level", sa.Integer),
        sa.column("role_name", sa.String),
        sa.column("is_required", sa.Boolean),
        sa.column("description", sa.Text),
    )
    default_chain = (
        (1, "SOLICITANTE"),
        (2, "OFICINA_TECNICA"),
        (3, "ADMINISTRACION"),
        (4, "GERENCIA"),
    )
    op.bulk_insert(
        templates,
        [
            {
                "template_name": "DEFAULT",
                "entity_type": entity_type,
                "signature_level": level,
                "role_name": role,
                "is_required": True,
                "description": "Default signature chain",
            }
            for entity_type in ("requirement", "quotation", "fuel_control", "purchase_order")
            for level, role in default_chain
        ],
    )


def downgrade() -> None:
    op.drop_table("purchase_orders")
    op.drop_table("fuel_daily_controls")
    op.drop_table("quotation_requests")
    op.drop_table("requirements")
    op.drop_table("document_approval_configurations")
    op.drop_table("approval_flow_templates")
    op.drop_table("general_settings")
