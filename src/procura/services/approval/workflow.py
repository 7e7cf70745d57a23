"""Signature workflow service.

Orchestrates configuration resolution, eligibility, signature processing
and the conditional writes that persist them. Each public operation runs
in its own session and transaction.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from procura.core.config import Settings, get_settings
from procura.infrastructure.database.session import get_session_factory
from procura.models.approval import ApprovalConfiguration, ApprovalTemplate
from procura.models.signature import MAX_SIGNATURE_LEVEL
from procura.repositories.document import SignableDocumentRepository
from procura.repositories.general_settings import GeneralSettingsRepository
from procura.services.approval.configuration import ApprovalConfigurationStore
from procura.services.approval.eligibility import EligibilityEvaluator
from procura.services.approval.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from procura.services.approval.processor import SignatureProcessor
from procura.services.approval.schemas import (
    AmountConfigurationResult,
    ConfigurationChange,
    ConfigurationRow,
    EligibilityDecision,
    EntityType,
    GenericStatus,
    SignatureActor,
    SignatureLevelView,
    SignatureOutcome,
    SignatureOverview,
    StatusChange,
    TemplateCreate,
)
from procura.services.approval.state import DocumentState
from procura.services.approval.status import DocumentStatusMachine, approval_progress
from procura.services.approval.tiers import (
    chain_for_tier,
    enforced_rows,
    is_enforced,
    select_tier,
)

logger = logging.getLogger(__name__)


class SignatureWorkflowService:
    """Multi-level signature workflow over all signable document types.

    Signing flow:
    1. Load the document and its resolved configuration
    2. Evaluate eligibility against the low-amount threshold
    3. Compute the new slots and status
    4. Persist with a conditional update; a lost race raises ConflictError
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None = None,
        settings: Settings | None = None,
        evaluator: EligibilityEvaluator | None = None,
        processor: SignatureProcessor | None = None,
    ) -> None:
        """Initialize workflow service.

        @param session_factory - Optional factory for creating database sessions
        @param settings - Application settings (threshold fallback, default template)
        @param evaluator - Eligibility evaluator
        @param processor - Signature processor
        """
        self._session_factory = session_factory or get_session_factory()
        self.settings = settings or get_settings()
        self.evaluator = evaluator or EligibilityEvaluator()
        self.processor = processor or SignatureProcessor()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _threshold(self, session: AsyncSession) -> Decimal:
        configured = await GeneralSettingsRepository(session).get_low_amount_threshold()
        if configured is not None:
            return configured
        return Decimal(self.settings.low_amount_threshold)

    @staticmethod
    async def _load(
        session: AsyncSession, entity_type: EntityType, entity_id: int
    ) -> tuple[SignableDocumentRepository, DocumentState]:
        documents = SignableDocumentRepository(session, entity_type.value)
        document = await documents.get(entity_id)
        if document is None:
            raise NotFoundError(f"{entity_type.value} {entity_id} not found")
        return documents, DocumentState.of(document)

    async def _settle(
        self,
        documents: SignableDocumentRepository,
        state: DocumentState,
        config: Sequence[ConfigurationRow],
        threshold: Decimal,
    ) -> DocumentState:
        """Approve a document whose enforced levels are already all signed.

        A reconfiguration or a threshold change can drop the levels a
        document was still waiting for, so no further signature will
        ever approve it.

        @param documents - Repository the snapshot was loaded from
        @param state - Document snapshot
        @param config - Active configuration rows
        @param threshold - Low-amount threshold
        @returns The same snapshot, or a new one carrying the approved status
        @raises ConflictError if the document changed since it was read
        """
        machine = DocumentStatusMachine(state.entity_type)
        if state.slots.is_rejected or not machine.can_approve(state.status):
            return state
        rows = enforced_rows(config, select_tier(state.amount, threshold))
        if not rows or not all(state.slots.is_signed(row.level) for row in rows):
            return state

        approved = machine.label(GenericStatus.APPROVED)
        updated = await documents.set_status(
            state.entity_id, expected_status=state.status, new_status=approved
        )
        if updated == 0:
            await documents.session.rollback()
            logger.warning(
                f"Approval conflict on {state.entity_type.value}:{state.entity_id}"
            )
            raise ConflictError(
                f"{state.entity_type.value} {state.entity_id} changed while approving; "
                "reload and try again"
            )
        logger.info(
            f"{state.entity_type.value}:{state.entity_id} approved with levels "
            f"{[row.level for row in rows]} signed: {state.status} -> {approved}"
        )
        return replace(state, status=approved)

    # =========================================================================
    # Configuration
    # =========================================================================

    async def get_resolved_configuration(
        self, entity_type: EntityType, entity_id: int
    ) -> list[ConfigurationRow]:
        """Active configuration of a document, ordered by level.

        @param entity_type - Document type
        @param entity_id - Document ID
        @returns Ordered rows (empty when unconfigured)
        """
        async with self._session_factory() as session:
            return await ApprovalConfigurationStore(session).resolve(entity_type, entity_id)

    async def get_or_create_configuration(
        self, entity_type: EntityType, entity_id: int
    ) -> list[ConfigurationRow]:
        """Resolve a configuration, seeding it from the default template if empty."""
        async with self._session_factory() as session:
            await self._load(session, entity_type, entity_id)
            rows = await ApprovalConfigurationStore(session).get_or_create(
                entity_type, entity_id, self.settings.default_template_name
            )
            await session.commit()
            return rows

    async def apply_template(
        self,
        entity_type: EntityType,
        entity_id: int,
        template_name: str,
        actor_id: int | None = None,
    ) -> ConfigurationChange:
        """Replace a document configuration with a template.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param template_name - Template name
        @param actor_id - User performing the change
        @returns New configuration and the resulting document status
        @raises NotFoundError if the document or template does not exist
        @raises ConflictError if the document changed while it was being approved
        """
        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            rows = await ApprovalConfigurationStore(session).apply_template(
                entity_type, entity_id, template_name, actor_id
            )
            settled = await self._settle(
                documents, state, rows, await self._threshold(session)
            )
            await session.commit()
        return ConfigurationChange(
            configurations=rows,
            status=settled.status,
            became_approved=settled is not state,
        )

    async def apply_custom_configuration(
        self,
        entity_type: EntityType,
        entity_id: int,
        rows: Sequence[ConfigurationRow],
        actor_id: int | None = None,
    ) -> ConfigurationChange:
        """Replace a document configuration with explicit rows."""
        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            result = await ApprovalConfigurationStore(session).apply_custom(
                entity_type, entity_id, rows, actor_id
            )
            settled = await self._settle(
                documents, state, result, await self._threshold(session)
            )
            await session.commit()
        return ConfigurationChange(
            configurations=result,
            status=settled.status,
            became_approved=settled is not state,
        )

    async def apply_configuration_by_amount(
        self,
        entity_type: EntityType,
        entity_id: int,
        amount: Decimal | None = None,
        actor_id: int | None = None,
    ) -> AmountConfigurationResult:
        """Configure a document with the chain of its amount tier.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param amount - Amount to classify (the document amount if omitted)
        @param actor_id - User performing the change
        @returns Selected tier, the rows created and the resulting status
        """
        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            threshold = await self._threshold(session)
            effective = amount if amount is not None else state.amount
            tier = select_tier(effective, threshold)
            rows = await ApprovalConfigurationStore(session).apply_custom(
                entity_type, entity_id, chain_for_tier(tier), actor_id
            )
            settled = await self._settle(documents, state, rows, threshold)
            await session.commit()

        logger.info(
            f"{entity_type.value}:{entity_id} configured for {tier.value} tier "
            f"(amount={effective}, threshold={threshold})"
        )
        return AmountConfigurationResult(
            tier=tier,
            amount=str(effective),
            threshold=str(threshold),
            configurations=rows,
            status=settled.status,
            became_approved=settled is not state,
        )

    # =========================================================================
    # Signing
    # =========================================================================

    async def evaluate_eligibility(
        self, entity_type: EntityType, entity_id: int, actor: SignatureActor
    ) -> EligibilityDecision:
        """Decide whether the actor may sign the document now.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param actor - Acting user and permissions
        @returns Eligibility decision
        @raises NotFoundError if the document does not exist
        """
        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            config = await ApprovalConfigurationStore(session).resolve(entity_type, entity_id)
            threshold = await self._threshold(session)
            settled = await self._settle(documents, state, config, threshold)
            if settled is not state:
                await session.commit()
        return self.evaluator.evaluate(settled, actor, config, threshold)

    async def sign(
        self,
        entity_type: EntityType,
        entity_id: int,
        actor: SignatureActor,
        signature: str,
        level: int | None = None,
    ) -> SignatureOutcome:
        """Sign the next level the actor is eligible for.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param actor - Acting user and permissions
        @param signature - Opaque signature blob
        @param level - Level the client expects to sign, if any
        @returns Signed level and the resulting status
        @raises NotFoundError if the document does not exist
        @raises InvalidStateError if the document or slot cannot take a signature
        @raises ForbiddenError if the actor is not eligible (or not for ``level``)
        @raises ConflictError if a concurrent change won the race
        """
        if level is not None and not 1 <= level <= MAX_SIGNATURE_LEVEL:
            raise InvalidStateError(
                f"Signature level must be 1..{MAX_SIGNATURE_LEVEL}, got {level}"
            )

        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            config = await ApprovalConfigurationStore(session).resolve(entity_type, entity_id)
            threshold = await self._threshold(session)

            settled = await self._settle(documents, state, config, threshold)
            if settled is not state:
                await session.commit()
                raise InvalidStateError(
                    f"{entity_type.value} {entity_id} is already approved; "
                    "every required level was signed"
                )

            if level is not None and state.slots.is_signed(level):
                raise InvalidStateError(f"Signature level {level} is already signed")

            decision = self.evaluator.evaluate(state, actor, config, threshold)
            if not decision.can_sign:
                if decision.closed:
                    raise InvalidStateError(decision.reason)
                raise ForbiddenError(decision.reason)
            if level is not None and level != decision.level:
                raise ForbiddenError(
                    f"User {actor.user_id} can sign level {decision.level}, not {level}"
                )

            tier = select_tier(state.amount, threshold)
            result = self.processor.apply(
                state, decision.level, actor.user_id, signature, config, tier
            )

            updated = await documents.sign_slot(
                entity_id,
                result.level,
                signature=signature,
                signed_by=actor.user_id,
                signed_at=result.signed_at,
                expected_status=state.status,
                new_status=result.new_status,
            )
            if updated == 0:
                await session.rollback()
                logger.warning(
                    f"Signature conflict on {entity_type.value}:{entity_id} "
                    f"level {result.level} by user {actor.user_id}"
                )
                raise ConflictError(
                    f"{entity_type.value} {entity_id} changed while signing; "
                    "reload and try again"
                )
            await session.commit()

        logger.info(
            f"{entity_type.value}:{entity_id} level {result.level} signed by "
            f"user {actor.user_id}: {state.status} -> {result.new_status}"
        )
        return SignatureOutcome(
            entity_type=entity_type,
            entity_id=entity_id,
            level=result.level,
            signed_by=actor.user_id,
            signed_at=result.signed_at,
            new_status=result.new_status,
            became_approved=result.became_approved,
        )

    async def reject(
        self, entity_type: EntityType, entity_id: int, actor_id: int, reason: str
    ) -> StatusChange:
        """Reject a document and clear its signatures.

        @param entity_type - Document type
        @param entity_id - Document ID
        @param actor_id - Rejecting user
        @param reason - Rejection reason
        @returns Status change
        @raises InvalidStateError if the document is approved, rejected or cancelled
        @raises ConflictError if a concurrent change won the race
        """
        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            machine = DocumentStatusMachine(entity_type)
            if state.slots.is_rejected or not machine.can_reject(state.status):
                raise InvalidStateError(
                    f"Cannot reject {entity_type.value} {entity_id} in status '{state.status}'"
                )

            new_status = machine.label(GenericStatus.REJECTED)
            updated = await documents.reject(
                entity_id,
                reason=reason,
                rejected_by=actor_id,
                rejected_at=datetime.now(timezone.utc),
                expected_status=state.status,
                new_status=new_status,
            )
            if updated == 0:
                await session.rollback()
                logger.warning(f"Rejection conflict on {entity_type.value}:{entity_id}")
                raise ConflictError(
                    f"{entity_type.value} {entity_id} changed while rejecting; "
                    "reload and try again"
                )
            await session.commit()

        logger.info(
            f"{entity_type.value}:{entity_id} rejected by user {actor_id}: {reason}"
        )
        return StatusChange(
            entity_type=entity_type,
            entity_id=entity_id,
            old_status=state.status,
            new_status=new_status,
            actor=actor_id,
            reason=reason,
        )

    async def cancel(
        self, entity_type: EntityType, entity_id: int, actor_id: int
    ) -> StatusChange:
        """Cancel a document that has not been signed yet.

        @raises InvalidStateError unless the document is pending
        @raises ConflictError if a concurrent change won the race
        """
        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            machine = DocumentStatusMachine(entity_type)
            if not machine.can_cancel(state.status):
                raise InvalidStateError(
                    f"Cannot cancel {entity_type.value} {entity_id} in status '{state.status}'"
                )

            new_status = machine.label(GenericStatus.CANCELLED)
            updated = await documents.set_status(
                entity_id, expected_status=state.status, new_status=new_status
            )
            if updated == 0:
                await session.rollback()
                logger.warning(f"Cancellation conflict on {entity_type.value}:{entity_id}")
                raise ConflictError(
                    f"{entity_type.value} {entity_id} changed while cancelling; "
                    "reload and try again"
                )
            await session.commit()

        logger.info(f"{entity_type.value}:{entity_id} cancelled by user {actor_id}")
        return StatusChange(
            entity_type=entity_type,
            entity_id=entity_id,
            old_status=state.status,
            new_status=new_status,
            actor=actor_id,
        )

    async def signature_overview(
        self, entity_type: EntityType, entity_id: int
    ) -> SignatureOverview:
        """Per-level signature state, tier and progress of a document."""
        async with self._session_factory() as session:
            documents, state = await self._load(session, entity_type, entity_id)
            config = await ApprovalConfigurationStore(session).resolve(entity_type, entity_id)
            threshold = await self._threshold(session)
            settled = await self._settle(documents, state, config, threshold)
            if settled is not state:
                await session.commit()
            state = settled

        tier = select_tier(state.amount, threshold)
        machine = DocumentStatusMachine(entity_type)
        levels = []
        next_role = None
        for row in config:
            slot = state.slots.slot(row.level)
            enforced = is_enforced(row, tier)
            if next_role is None and enforced and not slot.is_signed:
                next_role = row.role
            levels.append(
                SignatureLevelView(
                    level=row.level,
                    role=row.role,
                    required=row.required,
                    enforced=enforced,
                    signed=slot.is_signed,
                    signed_by=slot.signed_by,
                    signed_at=slot.signed_at,
                )
            )
        if not machine.accepts_signatures(state.status):
            next_role = None

        rejection = state.slots.rejection
        return SignatureOverview(
            entity_type=entity_type,
            entity_id=entity_id,
            status=state.status,
            tier=tier,
            amount=str(state.amount),
            threshold=str(threshold),
            progress=approval_progress(state.slots, config, tier),
            next_role=next_role,
            levels=levels,
            rejected_reason=rejection.reason,
            rejected_by=rejection.rejected_by,
            rejected_at=rejection.rejected_at,
        )

    # =========================================================================
    # Administration
    # =========================================================================

    async def list_configurations(
        self, entity_type: EntityType
    ) -> Sequence[ApprovalConfiguration]:
        async with self._session_factory() as session:
            return await ApprovalConfigurationStore(session).list_configurations(entity_type)

    async def toggle_configuration(
        self, configuration_id: int, is_active: bool, actor_id: int | None = None
    ) -> ApprovalConfiguration:
        """Activate or deactivate one row, approving the document if that completes it."""
        async with self._session_factory() as session:
            store = ApprovalConfigurationStore(session)
            record = await store.toggle_configuration(configuration_id, is_active, actor_id)
            entity_type = EntityType(record.entity_type)
            documents, state = await self._load(session, entity_type, record.entity_id)
            config = await store.resolve(entity_type, record.entity_id)
            await self._settle(documents, state, config, await self._threshold(session))
            await session.commit()
            return record

    async def list_templates(
        self, entity_type: EntityType | None = None
    ) -> Sequence[ApprovalTemplate]:
        async with self._session_factory() as session:
            return await ApprovalConfigurationStore(session).list_templates(entity_type)

    async def grouped_templates(self) -> dict[str, dict[str, list[ApprovalTemplate]]]:
        async with self._session_factory() as session:
            return await ApprovalConfigurationStore(session).grouped_templates()

    async def get_template(self, template_id: int) -> ApprovalTemplate:
        async with self._session_factory() as session:
            return await ApprovalConfigurationStore(session).get_template(template_id)

    async def create_template(self, data: TemplateCreate) -> ApprovalTemplate:
        async with self._session_factory() as session:
            record = await ApprovalConfigurationStore(session).create_template(data)
            await session.commit()
            return record

    async def update_template(
        self, template_id: int, data: TemplateCreate
    ) -> ApprovalTemplate:
        async with self._session_factory() as session:
            record = await ApprovalConfigurationStore(session).update_template(
                template_id, data
            )
            await session.commit()
            return record

    async def delete_template(self, template_id: int) -> None:
        async with self._session_factory() as session:
            await ApprovalConfigurationStore(session).delete_template(template_id)
            await session.commit()

    @staticmethod
    def available_entity_types() -> list[EntityType]:
        return ApprovalConfigurationStore.available_entity_types()


# Service singleton with dependency injection support
_workflow_service: SignatureWorkflowService | None = None


def get_signature_workflow_service() -> SignatureWorkflowService:
    """Get or create signature workflow service singleton.

    @returns SignatureWorkflowService instance
    """
    global _workflow_service
    if _workflow_service is None:
        _workflow_service = SignatureWorkflowService()
    return _workflow_service


def reset_signature_workflow_service() -> None:
    """Reset signature workflow service singleton (for testing)."""
    global _workflow_service
    _workflow_service = None
