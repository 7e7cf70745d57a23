"""Signature configuration and template models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from procura.models.base import Base, TimestampMixin


class ApprovalConfiguration(Base, TimestampMixin):
    """One required signature on a specific document."""

    __tablename__ = "document_approval_configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Document reference
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Signature rule
    signature_level: Mapped[int] = mapped_column(Integer, nullable=False)
    role_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    updated_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_approval_config_document", "entity_type", "entity_id", "is_active"),
        CheckConstraint(
            "signature_level BETWEEN 1 AND 4", name="approval_config_level"
        ),
    )


class ApprovalTemplate(Base):
    """Named signature chain used to seed document configurations."""

    __tablename__ = "approval_flow_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    template_name: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    signature_level: Mapped[int] = mapped_column(Integer, nullable=False)
    role_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_template_lookup", "template_name", "entity_type", "is_active"),
        CheckConstraint("signature_level BETWEEN 1 AND 4", name="template_level"),
    )
