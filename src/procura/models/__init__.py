"""Database models for Procura Backend."""

from procura.models.approval import ApprovalConfiguration, ApprovalTemplate
from procura.models.base import Base, TimestampMixin
from procura.models.documents import (
    SIGNABLE_DOCUMENTS,
    FuelDailyControl,
    PurchaseOrder,
    QuotationRequest,
    Requirement,
    SignableDocument,
)
from procura.models.settings import GeneralSettings
from procura.models.signature import RejectionRecord, SignatureSlot, SignatureSlots

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Signature value types
    "SignatureSlot",
    "RejectionRecord",
    "SignatureSlots",
    # Signable documents
    "Requirement",
    "QuotationRequest",
    "FuelDailyControl",
    "PurchaseOrder",
    "SignableDocument",
    "SIGNABLE_DOCUMENTS",
    # Configuration models
    "ApprovalConfiguration",
    "ApprovalTemplate",
    "GeneralSettings",
]
