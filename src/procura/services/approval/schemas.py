"""Signature workflow schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntityType(str, Enum):
    """Document types that carry a signature chain."""

    REQUIREMENT = "requirement"
    QUOTATION = "quotation"
    FUEL_CONTROL = "fuel_control"
    PURCHASE_ORDER = "purchase_order"


class SignatureRole(str, Enum):
    """Roles that can be assigned to a signature level."""

    SOLICITANTE = "SOLICITANTE"  # Requester, always the document creator
    OFICINA_TECNICA = "OFICINA_TECNICA"
    ADMINISTRACION = "ADMINISTRACION"
    GERENCIA = "GERENCIA"  # Management, skipped for low amounts


class ApprovalTier(str, Enum):
    """Amount tier of a document."""

    LOW = "LOW"
    FULL = "FULL"


class GenericStatus(str, Enum):
    """Document-type independent workflow status."""

    PENDING = "PENDING"
    SIGNED_1 = "SIGNED_1"
    SIGNED_2 = "SIGNED_2"
    SIGNED_3 = "SIGNED_3"
    SIGNED_4 = "SIGNED_4"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


def signing_permission(entity_type: EntityType, role: SignatureRole) -> str:
    """Permission token an actor needs to sign a level with the given role.

    @param entity_type - Document type
    @param role - Role configured for the level
    @returns Token such as "requirement-signed-administracion"
    """
    return f"{entity_type.value}-signed-{role.value.lower()}"


class ConfigurationRow(BaseModel):
    """One signature level of a resolved configuration."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1, le=4, description="Signature level (1-4)")
    role: SignatureRole = Field(..., description="Role that signs this level")
    required: bool = Field(default=True, description="Whether the level is required")


class SignatureActor(BaseModel):
    """Identity and capabilities of the user attempting an action."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., description="Employee ID")
    permissions: frozenset[str] = Field(
        default_factory=frozenset, description="Permission tokens held by the user"
    )


class EligibilityDecision(BaseModel):
    """Result of evaluating whether an actor may sign."""

    can_sign: bool = Field(..., description="Whether the actor may sign now")
    level: int | None = Field(None, description="Level the actor would sign")
    role: SignatureRole | None = Field(None, description="Role of that level")
    required_permission: str | None = Field(
        None, description="Permission that granted (or would grant) the level"
    )
    reason: str | None = Field(None, description="Why signing is not possible")
    closed: bool = Field(
        default=False,
        description="Document no longer accepts signatures (approved/rejected/cancelled)",
    )


class SignRequest(BaseModel):
    """Request to sign a document."""

    signature: str = Field(..., min_length=1, description="Opaque signature blob")
    level: int | None = Field(
        None, ge=1, le=4, description="Expected level (rejected if it differs)"
    )


class RejectRequest(BaseModel):
    """Request to reject a document."""

    reason: str = Field(..., min_length=1, max_length=1000, description="Rejection reason")


class SignatureOutcome(BaseModel):
    """Result of a successful signature."""

    entity_type: EntityType = Field(..., description="Document type")
    entity_id: int = Field(..., description="Document ID")
    level: int = Field(..., description="Level that was signed")
    signed_by: int = Field(..., description="Signer ID")
    signed_at: datetime = Field(..., description="Signature timestamp")
    new_status: str = Field(..., description="Document status after signing")
    became_approved: bool = Field(..., description="Whether the document is now approved")


class StatusChange(BaseModel):
    """Result of a rejection or cancellation."""

    entity_type: EntityType = Field(..., description="Document type")
    entity_id: int = Field(..., description="Document ID")
    old_status: str = Field(..., description="Status before the change")
    new_status: str = Field(..., description="Status after the change")
    actor: int = Field(..., description="User who performed the change")
    reason: str | None = Field(None, description="Reason, for rejections")


class ApplyTemplateRequest(BaseModel):
    """Apply a named template to a document."""

    entity_type: EntityType = Field(..., description="Document type")
    entity_id: int = Field(..., ge=1, description="Document ID")
    template_name: str = Field(..., min_length=1, max_length=100, description="Template")


class CustomConfigurationRequest(BaseModel):
    """Replace a document configuration with explicit rows."""

    entity_type: EntityType = Field(..., description="Document type")
    entity_id: int = Field(..., ge=1, description="Document ID")
    configurations: list[ConfigurationRow] = Field(
        default_factory=list, description="Signature levels"
    )

    @field_validator("configurations")
    @classmethod
    def unique_levels(cls, rows: list[ConfigurationRow]) -> list[ConfigurationRow]:
        levels = [row.level for row in rows]
        if len(levels) != len(set(levels)):
            raise ValueError("Signature levels must be unique")
        return rows


class AmountConfigurationRequest(BaseModel):
    """Configure a document from its amount tier."""

    entity_type: EntityType = Field(..., description="Document type")
    entity_id: int = Field(..., ge=1, description="Document ID")
    amount: Decimal | None = Field(
        None, ge=0, description="Amount to use (document amount if omitted)"
    )


class ConfigurationChange(BaseModel):
    """Configuration applied to a document and the status it left behind."""

    configurations: list[ConfigurationRow] = Field(..., description="Active rows")
    status: str = Field(..., description="Document status after the change")
    became_approved: bool = Field(
        default=False,
        description="Whether the change left every required level signed",
    )


class AmountConfigurationResult(ConfigurationChange):
    """Configuration materialised for an amount tier."""

    tier: ApprovalTier = Field(..., description="Selected tier")
    amount: str = Field(..., description="Amount used for selection")
    threshold: str = Field(..., description="Low-amount threshold")


class ConfigurationRecord(BaseModel):
    """Stored configuration row."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Row ID")
    entity_type: str = Field(..., description="Document type")
    entity_id: int = Field(..., description="Document ID")
    signature_level: int = Field(..., description="Signature level")
    role_name: str = Field(..., description="Role")
    is_required: bool = Field(..., description="Required flag")
    is_active: bool = Field(..., description="Active flag")
    updated_by: int | None = Field(None, description="Last user who configured it")


class ToggleConfigurationRequest(BaseModel):
    """Activate or deactivate a configuration row."""

    is_active: bool = Field(..., description="New active flag")


class TemplateCreate(BaseModel):
    """Create or update a template row."""

    template_name: str = Field(..., min_length=1, max_length=100, description="Template name")
    entity_type: EntityType = Field(..., description="Document type")
    signature_level: int = Field(..., ge=1, le=4, description="Signature level")
    role_name: SignatureRole = Field(..., description="Role")
    is_required: bool = Field(default=True, description="Required flag")
    description: str | None = Field(None, max_length=1000, description="Description")


class TemplateRecord(BaseModel):
    """Stored template row."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Row ID")
    template_name: str = Field(..., description="Template name")
    entity_type: str = Field(..., description="Document type")
    signature_level: int = Field(..., description="Signature level")
    role_name: str = Field(..., description="Role")
    is_required: bool = Field(..., description="Required flag")
    is_active: bool = Field(..., description="Active flag")
    description: str | None = Field(None, description="Description")


class SignatureLevelView(BaseModel):
    """State of one configured signature level."""

    level: int = Field(..., description="Signature level")
    role: SignatureRole = Field(..., description="Role")
    required: bool = Field(..., description="Required by configuration")
    enforced: bool = Field(..., description="Required after amount-tier gating")
    signed: bool = Field(..., description="Whether the slot is filled")
    signed_by: int | None = Field(None, description="Signer ID")
    signed_at: datetime | None = Field(None, description="Signature timestamp")


class SignatureOverview(BaseModel):
    """Signature state of a document."""

    entity_type: EntityType = Field(..., description="Document type")
    entity_id: int = Field(..., description="Document ID")
    status: str = Field(..., description="Current status")
    tier: ApprovalTier = Field(..., description="Amount tier")
    amount: str = Field(..., description="Document amount")
    threshold: str = Field(..., description="Low-amount threshold")
    progress: int = Field(..., ge=0, le=100, description="Approval progress percentage")
    next_role: SignatureRole | None = Field(None, description="Role expected to sign next")
    levels: list[SignatureLevelView] = Field(default_factory=list, description="Levels")
    rejected_reason: str | None = Field(None, description="Rejection reason")
    rejected_by: int | None = Field(None, description="Rejecting user")
    rejected_at: datetime | None = Field(None, description="Rejection timestamp")
