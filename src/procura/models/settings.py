"""General settings model."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from procura.models.base import Base, TimestampMixin


class GeneralSettings(Base, TimestampMixin):
    """Company-wide settings row (single row, id=1)."""

    __tablename__ = "general_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_name: Mapped[str] = mapped_column(
        String(255), default="PROCURA ERP", nullable=False
    )
    low_amount_threshold: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2), default=Decimal("10000"), nullable=True
    )
