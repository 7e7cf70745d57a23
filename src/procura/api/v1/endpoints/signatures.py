"""Document signature API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from procura.api.v1.errors import http_error
from procura.services.approval import (
    ApprovalError,
    EligibilityDecision,
    EntityType,
    SignatureWorkflowService,
    get_signature_workflow_service,
)
from procura.services.approval.schemas import (
    RejectRequest,
    SignatureOutcome,
    SignatureOverview,
    SignRequest,
    StatusChange,
)
from procura.services.auth import CurrentUser

router = APIRouter(prefix="/signatures", tags=["Signatures"])

WorkflowService = Annotated[
    SignatureWorkflowService, Depends(get_signature_workflow_service)
]


@router.get("/{entity_type}/{entity_id}", response_model=SignatureOverview)
async def get_signature_overview(
    entity_type: EntityType,
    entity_id: int,
    user: CurrentUser,
    service: WorkflowService,
) -> SignatureOverview:
    """Get per-level signature state, tier and progress of a document."""
    try:
        return await service.signature_overview(entity_type, entity_id)
    except ApprovalError as e:
        raise http_error(e) from e


@router.get("/{entity_type}/{entity_id}/eligibility", response_model=EligibilityDecision)
async def get_eligibility(
    entity_type: EntityType,
    entity_id: int,
    user: CurrentUser,
    service: WorkflowService,
) -> EligibilityDecision:
    """Check whether the current user may sign the document, and at which level."""
    try:
        return await service.evaluate_eligibility(entity_type, entity_id, user.to_actor())
    except ApprovalError as e:
        raise http_error(e) from e


@router.post("/{entity_type}/{entity_id}/sign", response_model=SignatureOutcome)
async def sign_document(
    entity_type: EntityType,
    entity_id: int,
    request: SignRequest,
    user: CurrentUser,
    service: WorkflowService,
) -> SignatureOutcome:
    """Sign the next level the current user is eligible for.

    A 409 with ``retryable`` set means another signature won the race;
    reload the document and try again.
    """
    try:
        return await service.sign(
            entity_type,
            entity_id,
            user.to_actor(),
            request.signature,
            level=request.level,
        )
    except ApprovalError as e:
        raise http_error(e) from e


@router.post("/{entity_type}/{entity_id}/reject", response_model=StatusChange)
async def reject_document(
    entity_type: EntityType,
    entity_id: int,
    request: RejectRequest,
    user: CurrentUser,
    service: WorkflowService,
) -> StatusChange:
    """Reject a document. Recorded signatures are cleared."""
    try:
        return await service.reject(entity_type, entity_id, user.user_id, request.reason)
    except ApprovalError as e:
        raise http_error(e) from e


@router.post("/{entity_type}/{entity_id}/cancel", response_model=StatusChange)
async def cancel_document(
    entity_type: EntityType,
    entity_id: int,
    user: CurrentUser,
    service: WorkflowService,
) -> StatusChange:
    """Cancel a document that has not been signed yet."""
    try:
        return await service.cancel(entity_type, entity_id, user.user_id)
    except ApprovalError as e:
        raise http_error(e) from e
