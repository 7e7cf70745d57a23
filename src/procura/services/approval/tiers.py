"""Amount tier selection and tier gating of configuration rows."""

from decimal import Decimal
from typing import Iterable

from procura.services.approval.schemas import (
    ApprovalTier,
    ConfigurationRow,
    SignatureRole,
)

# Short chain: requester + administration, the rest optional
LOW_AMOUNT_CHAIN: tuple[ConfigurationRow, ...] = (
    ConfigurationRow(level=1, role=SignatureRole.SOLICITANTE, required=True),
    ConfigurationRow(level=2, role=SignatureRole.ADMINISTRACION, required=True),
    ConfigurationRow(level=3, role=SignatureRole.OFICINA_TECNICA, required=False),
    ConfigurationRow(level=4, role=SignatureRole.GERENCIA, required=False),
)

# Full chain: every level required
FULL_AMOUNT_CHAIN: tuple[ConfigurationRow, ...] = (
    ConfigurationRow(level=1, role=SignatureRole.SOLICITANTE, required=True),
    ConfigurationRow(level=2, role=SignatureRole.OFICINA_TECNICA, required=True),
    ConfigurationRow(level=3, role=SignatureRole.ADMINISTRACION, required=True),
    ConfigurationRow(level=4, role=SignatureRole.GERENCIA, required=True),
)


def select_tier(amount: Decimal | int | float, threshold: Decimal | int | float) -> ApprovalTier:
    """Select the approval tier for an amount.

    @param amount - Document amount
    @param threshold - Low-amount threshold
    @returns LOW when amount < threshold, FULL otherwise
    """
    if Decimal(str(amount)) < Decimal(str(threshold)):
        return ApprovalTier.LOW
    return ApprovalTier.FULL


def chain_for_tier(tier: ApprovalTier) -> list[ConfigurationRow]:
    """Configuration rows materialised for a tier."""
    if tier == ApprovalTier.LOW:
        return list(LOW_AMOUNT_CHAIN)
    return list(FULL_AMOUNT_CHAIN)


def is_enforced(row: ConfigurationRow, tier: ApprovalTier) -> bool:
    """Whether a row must be signed for the document to be approved.

    Management sign-off is never enforced for low-amount documents, even
    when a configuration row asks for it.
    """
    if not row.required:
        return False
    if row.role == SignatureRole.GERENCIA and tier == ApprovalTier.LOW:
        return False
    return True


def enforced_rows(
    config: Iterable[ConfigurationRow], tier: ApprovalTier
) -> list[ConfigurationRow]:
    """Rows that gate approval for the tier, in level order."""
    return sorted(
        (row for row in config if is_enforced(row, tier)), key=lambda r: r.level
    )
