"""Multi-level document signature workflow."""

from procura.services.approval.configuration import ApprovalConfigurationStore
from procura.services.approval.eligibility import EligibilityEvaluator
from procura.services.approval.exceptions import (
    ApprovalError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from procura.services.approval.processor import SignatureProcessor, SignatureResult
from procura.services.approval.schemas import (
    ApprovalTier,
    ConfigurationRow,
    EligibilityDecision,
    EntityType,
    GenericStatus,
    SignatureActor,
    SignatureRole,
    signing_permission,
)
from procura.services.approval.state import DocumentState
from procura.services.approval.status import DocumentStatusMachine, approval_progress
from procura.services.approval.tiers import (
    FULL_AMOUNT_CHAIN,
    LOW_AMOUNT_CHAIN,
    chain_for_tier,
    select_tier,
)
from procura.services.approval.workflow import (
    SignatureWorkflowService,
    get_signature_workflow_service,
    reset_signature_workflow_service,
)

__all__ = [
    "ApprovalConfigurationStore",
    "ApprovalError",
    "ApprovalTier",
    "ConfigurationRow",
    "ConflictError",
    "DocumentState",
    "DocumentStatusMachine",
    "EligibilityDecision",
    "EligibilityEvaluator",
    "EntityType",
    "ForbiddenError",
    "FULL_AMOUNT_CHAIN",
    "GenericStatus",
    "InvalidStateError",
    "LOW_AMOUNT_CHAIN",
    "NotFoundError",
    "SignatureActor",
    "SignatureProcessor",
    "SignatureResult",
    "SignatureRole",
    "SignatureWorkflowService",
    "approval_progress",
    "chain_for_tier",
    "get_signature_workflow_service",
    "reset_signature_workflow_service",
    "select_tier",
    "signing_permission",
]
