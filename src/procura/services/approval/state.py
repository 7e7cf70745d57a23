"""Snapshot of the document fields the signature workflow reads."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from procura.models.signature import SignatureSlots
from procura.services.approval.schemas import EntityType


@dataclass(frozen=True)
class DocumentState:
    """Read-only view of a signable document."""

    entity_type: EntityType
    entity_id: int
    status: str
    amount: Decimal
    creator_id: int | None
    slots: SignatureSlots

    @classmethod
    def of(cls, document: Any) -> "DocumentState":
        """Snapshot an ORM document record."""
        return cls(
            entity_type=EntityType(document.entity_type),
            entity_id=document.id,
            status=document.status,
            amount=Decimal(document.amount or 0),
            creator_id=document.created_by,
            slots=SignatureSlots.of(document),
        )
