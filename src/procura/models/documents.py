"""Signable document models.

Only the fields the signature workflow reads or writes are mapped here:
identity, creator, the amount used for tier selection, status and the
embedded signature slots.
"""

from datetime import date
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import Date, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, synonym

from procura.models.base import Base, TimestampMixin
from procura.models.signature import (
    RejectionRecord,
    SignatureSlot,
    rejection_composite,
    signature_slot_composite,
)


class Requirement(Base, TimestampMixin):
    """Purchase requirement table."""

    __tablename__ = "requirements"

    entity_type: ClassVar[str] = "requirement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default="PENDING", nullable=False, index=True
    )

    # Signatures
    first_slot: Mapped[SignatureSlot] = signature_slot_composite("first")
    second_slot: Mapped[SignatureSlot] = signature_slot_composite("second")
    third_slot: Mapped[SignatureSlot] = signature_slot_composite("third")
    fourth_slot: Mapped[SignatureSlot] = signature_slot_composite("fourth")
    rejection: Mapped[RejectionRecord] = rejection_composite()


class QuotationRequest(Base, TimestampMixin):
    """Quotation request table."""

    __tablename__ = "quotation_requests"

    entity_type: ClassVar[str] = "quotation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default="PENDING", nullable=False, index=True
    )

    # Signatures
    first_slot: Mapped[SignatureSlot] = signature_slot_composite("first")
    second_slot: Mapped[SignatureSlot] = signature_slot_composite("second")
    third_slot: Mapped[SignatureSlot] = signature_slot_composite("third")
    fourth_slot: Mapped[SignatureSlot] = signature_slot_composite("fourth")
    rejection: Mapped[RejectionRecord] = rejection_composite()


class FuelDailyControl(Base, TimestampMixin):
    """Fuel daily control table.

    A control is OPEN while outputs are being recorded and enters the
    signature flow once CLOSED. It has no requester of its own.
    """

    __tablename__ = "fuel_daily_controls"

    entity_type: ClassVar[str] = "fuel_control"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    control_date: Mapped[date] = mapped_column(Date, nullable=False)
    warehouse_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_outputs: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    amount: Mapped[Decimal] = synonym("total_outputs")
    status: Mapped[str] = mapped_column(
        String(20), default="OPEN", nullable=False, index=True
    )

    # Signatures
    first_slot: Mapped[SignatureSlot] = signature_slot_composite("first")
    second_slot: Mapped[SignatureSlot] = signature_slot_composite("second")
    third_slot: Mapped[SignatureSlot] = signature_slot_composite("third")
    fourth_slot: Mapped[SignatureSlot] = signature_slot_composite("fourth")
    rejection: Mapped[RejectionRecord] = rejection_composite()

    __table_args__ = (
        Index("idx_fuel_control_warehouse_date", "warehouse_id", "control_date"),
    )


class PurchaseOrder(Base, TimestampMixin):
    """Purchase order table."""

    __tablename__ = "purchase_orders"

    entity_type: ClassVar[str] = "purchase_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    total: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    amount: Mapped[Decimal] = synonym("total")
    status: Mapped[str] = mapped_column(
        String(20), default="PENDING", nullable=False, index=True
    )

    # Signatures
    first_slot: Mapped[SignatureSlot] = signature_slot_composite("first")
    second_slot: Mapped[SignatureSlot] = signature_slot_composite("second")
    third_slot: Mapped[SignatureSlot] = signature_slot_composite("third")
    fourth_slot: Mapped[SignatureSlot] = signature_slot_composite("fourth")
    rejection: Mapped[RejectionRecord] = rejection_composite()


SignableDocument = Requirement | QuotationRequest | FuelDailyControl | PurchaseOrder

SIGNABLE_DOCUMENTS: dict[str, type[SignableDocument]] = {
    model.entity_type: model
    for model in (Requirement, QuotationRequest, FuelDailyControl, PurchaseOrder)
}
