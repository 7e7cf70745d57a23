"""Signature processing: write a slot and derive the new status."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

from procura.models.signature import SignatureSlots
from procura.services.approval.exceptions import InvalidStateError
from procura.services.approval.schemas import ApprovalTier, ConfigurationRow
from procura.services.approval.state import DocumentState
from procura.services.approval.status import DocumentStatusMachine
from procura.services.approval.tiers import enforced_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignatureResult:
    """Outcome of applying one signature to a document snapshot."""

    level: int
    slots: SignatureSlots
    signed_at: datetime
    new_status: str
    became_approved: bool


class SignatureProcessor:
    """Applies a signature at a level and recomputes the document status.

    The processor only computes the new state. Persisting it as a
    conditional update is the caller's job.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        """Initialize processor.

        @param clock - Source of signature timestamps (UTC now by default)
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def apply(
        self,
        document: DocumentState,
        level: int,
        actor_id: int,
        signature: str,
        config: Iterable[ConfigurationRow],
        tier: ApprovalTier,
    ) -> SignatureResult:
        """Apply a signature.

        @param document - Document snapshot
        @param level - Level to sign
        @param actor_id - Signer ID
        @param signature - Opaque signature blob
        @param config - Resolved configuration rows
        @param tier - Amount tier of the document
        @returns New slots, status and approval flag
        @raises InvalidStateError if the document or slot cannot take the signature
        """
        machine = DocumentStatusMachine(document.entity_type)

        if document.slots.is_rejected:
            raise InvalidStateError("Document has been rejected")
        if not machine.accepts_signatures(document.status):
            raise InvalidStateError(
                f"Document status '{document.status}' does not accept signatures"
            )
        if not signature:
            raise InvalidStateError("Signature is empty")
        if document.slots.is_signed(level):
            raise InvalidStateError(f"Signature level {level} is already signed")

        signed_at = self._clock()
        slots = document.slots.with_signature(level, signature, actor_id, signed_at)

        became_approved = all(
            slots.is_signed(row.level) for row in enforced_rows(config, tier)
        )
        new_status = machine.after_signature(level, became_approved)

        logger.debug(
            f"{document.entity_type.value}:{document.entity_id} level {level} "
            f"signed by {actor_id}: {document.status} -> {new_status}"
        )

        return SignatureResult(
            level=level,
            slots=slots,
            signed_at=signed_at,
            new_status=new_status,
            became_approved=became_approved,
        )
