"""Eligibility evaluation: may this actor apply the next signature?"""

import logging
from decimal import Decimal
from typing import Iterable

from procura.services.approval.schemas import (
    ApprovalTier,
    ConfigurationRow,
    EligibilityDecision,
    GenericStatus,
    SignatureActor,
    SignatureRole,
    signing_permission,
)
from procura.services.approval.state import DocumentState
from procura.services.approval.status import DocumentStatusMachine
from procura.services.approval.tiers import enforced_rows, select_tier

logger = logging.getLogger(__name__)

NO_PERMISSION_REASON = "no permission at any available level"


class EligibilityEvaluator:
    """Decides whether an actor may sign a document and at which level.

    Rules are applied in order and the first match wins:

    1. Rejected, cancelled or approved documents, documents outside the
       signing flow, and documents whose enforced levels are all signed
       cannot be signed. An empty configuration means nothing is required.
    2. Required rows are walked in ascending level order:
       a. SOLICITANTE rows can only be signed by the document creator.
       b. GERENCIA rows are skipped for LOW tier documents.
       c. Other rows need the ``{entity_type}-signed-{role}`` permission.
       Filled rows are passed over. The first enforced row the actor cannot
       fill closes the walk, since later levels wait for it.
    3. Otherwise the actor has no permission at any available level.
    """

    def evaluate(
        self,
        document: DocumentState,
        actor: SignatureActor,
        config: Iterable[ConfigurationRow],
        threshold: Decimal,
    ) -> EligibilityDecision:
        """Evaluate eligibility.

        @param document - Document snapshot
        @param actor - Acting user and permission tokens
        @param config - Resolved configuration rows
        @param threshold - Low-amount threshold
        @returns Decision with the level to sign, or the reason it is refused
        """
        rows = sorted(config, key=lambda r: r.level)
        machine = DocumentStatusMachine(document.entity_type)
        status = machine.generic(document.status)

        if document.slots.is_rejected or status == GenericStatus.REJECTED:
            return self._closed("document has been rejected")
        if status == GenericStatus.CANCELLED:
            return self._closed("document has been cancelled")
        if status == GenericStatus.APPROVED:
            return self._closed("document is already approved")
        if status is None:
            return self._closed(
                f"document status '{document.status}' does not accept signatures"
            )

        tier = select_tier(document.amount, threshold)
        gating = enforced_rows(rows, tier)
        if not gating:
            return self._closed("no signatures required; document is already approved")
        if all(document.slots.is_signed(row.level) for row in gating):
            return self._closed("all required signatures are already in place")

        for row in rows:
            if not row.required:
                continue
            if row.role == SignatureRole.GERENCIA and tier == ApprovalTier.LOW:
                continue
            if document.slots.is_signed(row.level):
                continue

            if row.role == SignatureRole.SOLICITANTE:
                if document.creator_id is not None and actor.user_id == document.creator_id:
                    return EligibilityDecision(can_sign=True, level=row.level, role=row.role)
                break

            permission = signing_permission(document.entity_type, row.role)
            if permission in actor.permissions:
                return EligibilityDecision(
                    can_sign=True,
                    level=row.level,
                    role=row.role,
                    required_permission=permission,
                )
            break

        logger.debug(
            f"User {actor.user_id} cannot sign {document.entity_type.value}:"
            f"{document.entity_id} (status={document.status}, tier={tier.value})"
        )
        return EligibilityDecision(can_sign=False, reason=NO_PERMISSION_REASON)

    @staticmethod
    def _closed(reason: str) -> EligibilityDecision:
        return EligibilityDecision(can_sign=False, reason=reason, closed=True)
