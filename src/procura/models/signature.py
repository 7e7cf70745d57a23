"""Signature slot value types embedded in every signable document.

A document carries four ordered signature slots and one rejection record.
They are mapped as SQLAlchemy composites, so each document table owns the
columns while the workflow code works on the ``SignatureSlots`` value.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import composite, mapped_column

# Attribute names of the slot composites, index 0 = level 1
SLOT_ATTRIBUTES = ("first_slot", "second_slot", "third_slot", "fourth_slot")
SLOT_COLUMN_PREFIXES = ("first", "second", "third", "fourth")
MAX_SIGNATURE_LEVEL = len(SLOT_ATTRIBUTES)


@dataclass
class SignatureSlot:
    """One signature level: opaque blob, signer and timestamp."""

    signature: str | None = None
    signed_by: int | None = None
    signed_at: datetime | None = None

    @property
    def is_signed(self) -> bool:
        return self.signed_at is not None


@dataclass
class RejectionRecord:
    """Who rejected the document, when and why."""

    reason: str | None = None
    rejected_by: int | None = None
    rejected_at: datetime | None = None

    @property
    def is_rejected(self) -> bool:
        return self.rejected_at is not None


def signature_slot_composite(prefix: str) -> Any:
    """Build the composite property for one slot.

    @param prefix - Column prefix ("first", "second", ...)
    @returns Composite mapping three nullable columns onto SignatureSlot
    """
    return composite(
        SignatureSlot,
        mapped_column(f"{prefix}_signature", Text, nullable=True),
        mapped_column(f"{prefix}_signed_by", Integer, nullable=True),
        mapped_column(f"{prefix}_signed_at", DateTime(timezone=True), nullable=True),
    )


def rejection_composite() -> Any:
    """Build the composite property for the rejection record."""
    return composite(
        RejectionRecord,
        mapped_column("rejected_reason", Text, nullable=True),
        mapped_column("rejected_by", Integer, nullable=True),
        mapped_column("rejected_at", DateTime(timezone=True), nullable=True),
    )


@dataclass(frozen=True)
class SignatureSlots:
    """The four signature slots plus rejection record of a document."""

    slots: tuple[SignatureSlot, ...] = field(
        default_factory=lambda: tuple(SignatureSlot() for _ in SLOT_ATTRIBUTES)
    )
    rejection: RejectionRecord = field(default_factory=RejectionRecord)

    @classmethod
    def of(cls, document: Any) -> "SignatureSlots":
        """Read the slots embedded in a document record."""
        return cls(
            slots=tuple(
                getattr(document, attr) or SignatureSlot() for attr in SLOT_ATTRIBUTES
            ),
            rejection=getattr(document, "rejection", None) or RejectionRecord(),
        )

    def slot(self, level: int) -> SignatureSlot:
        if not 1 <= level <= MAX_SIGNATURE_LEVEL:
            raise ValueError(f"Signature level must be 1..{MAX_SIGNATURE_LEVEL}, got {level}")
        return self.slots[level - 1]

    def is_signed(self, level: int) -> bool:
        return self.slot(level).is_signed

    @property
    def is_rejected(self) -> bool:
        return self.rejection.is_rejected

    def with_signature(
        self, level: int, signature: str, signed_by: int, signed_at: datetime
    ) -> "SignatureSlots":
        """Return a copy with the given level filled.

        The caller is responsible for checking the slot is empty.
        """
        self.slot(level)
        slots = list(self.slots)
        slots[level - 1] = SignatureSlot(
            signature=signature, signed_by=signed_by, signed_at=signed_at
        )
        return replace(self, slots=tuple(slots))
