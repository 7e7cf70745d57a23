"""Document status machine shared by all signable document types.

Every document type walks the same generic states

    PENDING -> SIGNED_1 -> SIGNED_2 -> SIGNED_3 -> SIGNED_4 -> APPROVED

with REJECTED reachable from any non-terminal state and CANCELLED reachable
from PENDING only. Document types differ only in the labels they store,
which are looked up in ``STATUS_LABELS``.
"""

from dataclasses import dataclass
from typing import Iterable

from procura.models.signature import MAX_SIGNATURE_LEVEL, SignatureSlots
from procura.services.approval.schemas import (
    ApprovalTier,
    ConfigurationRow,
    EntityType,
    GenericStatus,
)
from procura.services.approval.tiers import enforced_rows

TERMINAL_STATUSES = frozenset(
    {GenericStatus.APPROVED, GenericStatus.REJECTED, GenericStatus.CANCELLED}
)

SIGNED_STATUSES = (
    GenericStatus.SIGNED_1,
    GenericStatus.SIGNED_2,
    GenericStatus.SIGNED_3,
    GenericStatus.SIGNED_4,
)


@dataclass(frozen=True)
class StatusLabels:
    """Stored status strings of one document type."""

    pending: str = "PENDING"
    approved: str = "APPROVED"
    rejected: str = "REJECTED"
    cancelled: str = "CANCELLED"
    signed_prefix: str = "SIGNED_"

    def label(self, status: GenericStatus) -> str:
        if status == GenericStatus.PENDING:
            return self.pending
        if status == GenericStatus.APPROVED:
            return self.approved
        if status == GenericStatus.REJECTED:
            return self.rejected
        if status == GenericStatus.CANCELLED:
            return self.cancelled
        return f"{self.signed_prefix}{SIGNED_STATUSES.index(status) + 1}"

    def generic(self, label: str) -> GenericStatus | None:
        """Map a stored label to its generic status (None if outside the flow)."""
        for status in GenericStatus:
            if self.label(status) == label:
                return status
        return None


STATUS_LABELS: dict[EntityType, StatusLabels] = {
    EntityType.REQUIREMENT: StatusLabels(),
    EntityType.QUOTATION: StatusLabels(),
    EntityType.FUEL_CONTROL: StatusLabels(pending="CLOSED", approved="FINALIZED"),
    EntityType.PURCHASE_ORDER: StatusLabels(),
}


class DocumentStatusMachine:
    """Status transitions for one document type."""

    def __init__(self, entity_type: EntityType) -> None:
        self.entity_type = entity_type
        self.labels = STATUS_LABELS[entity_type]

    def generic(self, label: str) -> GenericStatus | None:
        return self.labels.generic(label)

    def label(self, status: GenericStatus) -> str:
        return self.labels.label(status)

    def accepts_signatures(self, label: str) -> bool:
        """PENDING or SIGNED_n: the document is inside the signing flow."""
        status = self.generic(label)
        return status is not None and status not in TERMINAL_STATUSES

    def can_reject(self, label: str) -> bool:
        return self.can_transition(label, self.labels.rejected)

    def can_cancel(self, label: str) -> bool:
        return self.can_transition(label, self.labels.cancelled)

    def can_approve(self, label: str) -> bool:
        return self.can_transition(label, self.labels.approved)

    def after_signature(self, level: int, became_approved: bool) -> str:
        """Label for a document that just received a signature at ``level``."""
        if became_approved:
            return self.labels.approved
        if not 1 <= level <= MAX_SIGNATURE_LEVEL:
            raise ValueError(f"Signature level must be 1..{MAX_SIGNATURE_LEVEL}, got {level}")
        return self.label(SIGNED_STATUSES[level - 1])

    def can_transition(self, from_label: str, to_label: str) -> bool:
        """Whether moving between two stored labels is a legal transition."""
        source = self.generic(from_label)
        target = self.generic(to_label)
        if source is None or target is None or source in TERMINAL_STATUSES:
            return False
        if target == GenericStatus.CANCELLED:
            return source == GenericStatus.PENDING
        if target == GenericStatus.REJECTED:
            return True
        if target == GenericStatus.PENDING:
            return False
        order = [GenericStatus.PENDING, *SIGNED_STATUSES, GenericStatus.APPROVED]
        return order.index(target) > order.index(source)


def approval_progress(
    slots: SignatureSlots,
    config: Iterable[ConfigurationRow],
    tier: ApprovalTier,
    *,
    base_progress: int = 80,
    max_progress: int = 100,
) -> int:
    """Approval progress percentage for UI display.

    ``base_progress`` once a workflow exists, plus an equal share of the
    remainder for each enforced signature in place.
    """
    rows = enforced_rows(config, tier)
    if not rows:
        return max_progress
    signed = sum(1 for row in rows if slots.is_signed(row.level))
    if signed >= len(rows):
        return max_progress
    return round(base_progress + (signed / len(rows)) * (max_progress - base_progress))
