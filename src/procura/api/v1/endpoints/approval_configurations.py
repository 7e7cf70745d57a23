"""Signature configuration and template API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from procura.api.v1.errors import http_error
from procura.services.approval import (
    ApprovalError,
    ConfigurationRow,
    EntityType,
    SignatureWorkflowService,
    get_signature_workflow_service,
)
from procura.services.approval.schemas import (
    AmountConfigurationRequest,
    AmountConfigurationResult,
    ApplyTemplateRequest,
    ConfigurationChange,
    ConfigurationRecord,
    CustomConfigurationRequest,
    TemplateCreate,
    TemplateRecord,
    ToggleConfigurationRequest,
)
from procura.services.auth import AdminUser, CurrentUser

router = APIRouter(prefix="/approval-configurations", tags=["Approval Configurations"])

WorkflowService = Annotated[
    SignatureWorkflowService, Depends(get_signature_workflow_service)
]


@router.get("/entity-types", response_model=list[str])
async def list_entity_types(user: CurrentUser) -> list[str]:
    """List the document types that carry a signature chain."""
    return [entity_type.value for entity_type in SignatureWorkflowService.available_entity_types()]


# =============================================================================
# Templates
# =============================================================================


@router.get("/templates", response_model=list[TemplateRecord])
async def list_templates(
    user: AdminUser,
    service: WorkflowService,
    entity_type: EntityType | None = Query(None, description="Filter by document type"),
) -> list[TemplateRecord]:
    """List active template rows.

    Requires: admin role
    """
    records = await service.list_templates(entity_type)
    return [TemplateRecord.model_validate(r) for r in records]


@router.get(
    "/templates/grouped", response_model=dict[str, dict[str, list[TemplateRecord]]]
)
async def grouped_templates(
    user: AdminUser,
    service: WorkflowService,
) -> dict[str, dict[str, list[TemplateRecord]]]:
    """Active template rows grouped by document type and template name.

    Requires: admin role
    """
    grouped = await service.grouped_templates()
    return {
        entity_type: {
            name: [TemplateRecord.model_validate(r) for r in rows]
            for name, rows in templates.items()
        }
        for entity_type, templates in grouped.items()
    }


@router.post(
    "/templates", response_model=TemplateRecord, status_code=status.HTTP_201_CREATED
)
async def create_template(
    request: TemplateCreate,
    user: AdminUser,
    service: WorkflowService,
) -> TemplateRecord:
    """Add a level to a template.

    Requires: admin role
    """
    try:
        record = await service.create_template(request)
    except ApprovalError as e:
        raise http_error(e) from e
    return TemplateRecord.model_validate(record)


@router.put("/templates/{template_id}", response_model=TemplateRecord)
async def update_template(
    template_id: int,
    request: TemplateCreate,
    user: AdminUser,
    service: WorkflowService,
) -> TemplateRecord:
    """Update a template row.

    Requires: admin role
    """
    try:
        record = await service.update_template(template_id, request)
    except ApprovalError as e:
        raise http_error(e) from e
    return TemplateRecord.model_validate(record)


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: int,
    user: AdminUser,
    service: WorkflowService,
) -> None:
    """Deactivate a template row.

    Requires: admin role
    """
    try:
        await service.delete_template(template_id)
    except ApprovalError as e:
        raise http_error(e) from e


# =============================================================================
# Document configurations
# =============================================================================


@router.get("/document/{entity_type}/{entity_id}", response_model=list[ConfigurationRow])
async def get_document_configuration(
    entity_type: EntityType,
    entity_id: int,
    user: CurrentUser,
    service: WorkflowService,
    seed_default: bool = Query(
        False, description="Seed from the default template when unconfigured"
    ),
) -> list[ConfigurationRow]:
    """Get the active configuration of a document, ordered by level."""
    try:
        if seed_default:
            return await service.get_or_create_configuration(entity_type, entity_id)
        return await service.get_resolved_configuration(entity_type, entity_id)
    except ApprovalError as e:
        raise http_error(e) from e


@router.post("/apply-template", response_model=ConfigurationChange)
async def apply_template(
    request: ApplyTemplateRequest,
    user: AdminUser,
    service: WorkflowService,
) -> ConfigurationChange:
    """Replace a document configuration with a template.

    Requires: admin role
    """
    try:
        return await service.apply_template(
            request.entity_type, request.entity_id, request.template_name, user.user_id
        )
    except ApprovalError as e:
        raise http_error(e) from e


@router.post("/custom", response_model=ConfigurationChange)
async def apply_custom_configuration(
    request: CustomConfigurationRequest,
    user: AdminUser,
    service: WorkflowService,
) -> ConfigurationChange:
    """Replace a document configuration with explicit levels.

    Requires: admin role
    """
    try:
        return await service.apply_custom_configuration(
            request.entity_type, request.entity_id, request.configurations, user.user_id
        )
    except ApprovalError as e:
        raise http_error(e) from e


@router.post("/by-amount", response_model=AmountConfigurationResult)
async def apply_configuration_by_amount(
    request: AmountConfigurationRequest,
    user: AdminUser,
    service: WorkflowService,
) -> AmountConfigurationResult:
    """Configure a document with the signature chain of its amount tier.

    Requires: admin role
    """
    try:
        return await service.apply_configuration_by_amount(
            request.entity_type, request.entity_id, request.amount, user.user_id
        )
    except ApprovalError as e:
        raise http_error(e) from e


@router.get("/entity-type/{entity_type}", response_model=list[ConfigurationRecord])
async def list_configurations(
    entity_type: EntityType,
    user: AdminUser,
    service: WorkflowService,
) -> list[ConfigurationRecord]:
    """List every configuration row of a document type.

    Requires: admin role
    """
    records = await service.list_configurations(entity_type)
    return [ConfigurationRecord.model_validate(r) for r in records]


@router.post("/{configuration_id}/toggle-status", response_model=ConfigurationRecord)
async def toggle_configuration(
    configuration_id: int,
    request: ToggleConfigurationRequest,
    user: AdminUser,
    service: WorkflowService,
) -> ConfigurationRecord:
    """Activate or deactivate one configuration row.

    Requires: admin role
    """
    try:
        record = await service.toggle_configuration(
            configuration_id, request.is_active, user.user_id
        )
    except ApprovalError as e:
        raise http_error(e) from e
    return ConfigurationRecord.model_validate(record)
